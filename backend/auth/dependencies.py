import logging
from collections.abc import Callable
from datetime import timedelta
from functools import lru_cache

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.auth.jwt_handler import TokenIdentity, TokenService
from backend.core import config
from backend.core.errors import AuthenticationError, AuthorizationError
from backend.models.user import User, UserRole

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


@lru_cache
def get_token_service() -> TokenService:
    return TokenService(
        secret_key=config.JWT_SECRET_KEY,
        algorithm=config.JWT_ALGORITHM,
        lifetime=timedelta(minutes=config.JWT_EXPIRES_MINUTES),
    )


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    token_service: TokenService = Depends(get_token_service),
) -> TokenIdentity:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Missing bearer token")
    return token_service.verify(credentials.credentials)


def require_roles(*allowed_roles: UserRole) -> Callable[..., TokenIdentity]:
    allowed = frozenset(UserRole(role) for role in allowed_roles)
    if not allowed:
        raise ValueError("require_roles needs at least one role.")

    def dependency(current_user: TokenIdentity = Depends(get_current_user)) -> TokenIdentity:
        if current_user.role not in allowed:
            raise AuthorizationError("Insufficient role privileges")
        return current_user

    return dependency


def ensure_student_access(
    db: Session,
    current_user: TokenIdentity,
    student_id: int,
    detail: str = "Access denied: you can only view your own profile",
) -> None:
    """Only lets a student-role caller through when ``student_id`` is their own linked record."""
    if current_user.role is not UserRole.STUDENT:
        return

    linked_student_id = db.scalar(select(User.student_id).where(User.id == current_user.user_id))
    if linked_student_id is None or linked_student_id != student_id:
        logger.warning(
            'User %s denied access to student %s (linked student: %s).',
            current_user.user_id,
            student_id,
            linked_student_id,
        )
        raise AuthorizationError(detail)

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth.dependencies import get_current_user, require_roles
from backend.auth.jwt_handler import TokenIdentity
from backend.core.errors import NotFoundError, PersistenceError
from backend.database import get_db
from backend.models.user import UserRole
from backend.routes.auth_routes import UserResponse
from backend.services import users as user_service

router = APIRouter(tags=['users'])

logger = logging.getLogger(__name__)


@router.get('/me', response_model=UserResponse)
def me(
    current_user: TokenIdentity = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        user = user_service.get_user(db, current_user.user_id)
    except SQLAlchemyError as exc:
        logger.exception('Failed to load user %s.', current_user.user_id)
        raise PersistenceError() from exc

    if user is None:
        raise NotFoundError('User not found')
    return user


@router.get('', response_model=list[UserResponse])
def list_users(
    _: TokenIdentity = Depends(require_roles(UserRole.ADMIN)),
    db: Session = Depends(get_db),
):
    try:
        return user_service.list_users(db)
    except SQLAlchemyError as exc:
        logger.exception('Failed to list users.')
        raise PersistenceError() from exc

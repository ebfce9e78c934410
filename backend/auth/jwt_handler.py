from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt

from backend.core.errors import InvalidToken
from backend.models.user import UserRole

DEFAULT_TOKEN_LIFETIME = timedelta(hours=24)


@dataclass(frozen=True)
class TokenIdentity:
    user_id: int
    email: str
    role: UserRole


class TokenService:
    """Issues and verifies signed session tokens carrying identity and role claims.

    Tokens are stateless: nothing server-side can revoke one before ``exp``.
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        lifetime: timedelta = DEFAULT_TOKEN_LIFETIME,
    ) -> None:
        if not secret_key:
            raise ValueError("A signing key is required.")
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._lifetime = lifetime

    @property
    def lifetime(self) -> timedelta:
        return self._lifetime

    def issue(self, user_id: int, email: str, role: UserRole, issued_at: datetime | None = None) -> str:
        issued_at = issued_at or datetime.now(timezone.utc)
        payload = {
            "user_id": user_id,
            "email": email,
            "role": UserRole(role).value,
            "iat": issued_at,
            "exp": issued_at + self._lifetime,
        }
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def verify(self, token: str) -> TokenIdentity:
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"require": ["exp", "iat"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise InvalidToken("Token expired") from exc
        except jwt.InvalidTokenError as exc:
            raise InvalidToken("Invalid token") from exc

        user_id = payload.get("user_id")
        email = payload.get("email")
        if not isinstance(user_id, int) or isinstance(user_id, bool) or not isinstance(email, str):
            raise InvalidToken("Invalid token payload")
        try:
            role = UserRole(payload.get("role"))
        except ValueError as exc:
            raise InvalidToken("Invalid token payload") from exc

        return TokenIdentity(user_id=user_id, email=email, role=role)

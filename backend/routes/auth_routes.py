import logging
import re
from datetime import datetime

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth.dependencies import get_token_service
from backend.auth.jwt_handler import TokenService
from backend.core.errors import AuthenticationError, PersistenceError
from backend.database import get_db
from backend.models.user import User, UserRole
from backend.services import users as user_service

router = APIRouter(tags=['auth'])

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}$')
MIN_PASSWORD_LENGTH = 6


def normalize_email(value: str) -> str:
    return value.strip().lower()


class RegisterRequest(BaseModel):
    email: str
    password: str
    role: UserRole = UserRole.STUDENT
    full_name: str = ''

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        normalized = normalize_email(value)
        if not EMAIL_PATTERN.match(normalized):
            raise ValueError('Invalid email format')
        return normalized

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:
        if len(value) < MIN_PASSWORD_LENGTH:
            raise ValueError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters long')
        return value

    @field_validator('role', mode='before')
    @classmethod
    def validate_role(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            return UserRole.STUDENT
        normalized = value.strip().lower() if isinstance(value, str) else value
        if normalized not in {role.value for role in UserRole}:
            raise ValueError('Invalid role. Must be student, teacher, or admin')
        return normalized

    @field_validator('full_name', mode='before')
    @classmethod
    def validate_full_name(cls, value) -> str:
        return (value or '').strip()


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        normalized = normalize_email(value)
        if not normalized:
            raise ValueError('Email is required')
        return normalized


class UserResponse(BaseModel):
    id: int
    email: str
    role: UserRole
    full_name: str = ''
    created_at: datetime

    class Config:
        from_attributes = True


class AuthResponse(BaseModel):
    token: str
    user: UserResponse


def build_auth_response(user: User, token_service: TokenService) -> AuthResponse:
    return AuthResponse(
        token=token_service.issue(user.id, user.email, user.role),
        user=UserResponse.model_validate(user),
    )


@router.post('/register', response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    data: RegisterRequest,
    db: Session = Depends(get_db),
    token_service: TokenService = Depends(get_token_service),
):
    try:
        user = user_service.create_user(
            db,
            email=data.email,
            password=data.password,
            role=data.role,
            full_name=data.full_name,
        )
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Failed to create user %s.', data.email)
        raise PersistenceError() from exc

    logger.info('Registered user %s with role %s.', user.id, user.role.value)
    return build_auth_response(user, token_service)


@router.post('/login', response_model=AuthResponse)
def login(
    data: LoginRequest,
    db: Session = Depends(get_db),
    token_service: TokenService = Depends(get_token_service),
):
    try:
        user = user_service.authenticate_user(db, data.email, data.password)
    except SQLAlchemyError as exc:
        logger.exception('Failed to look up user %s.', data.email)
        raise PersistenceError() from exc

    if user is None:
        logger.warning('Rejected login for %s.', data.email)
        raise AuthenticationError('Invalid email or password')

    return build_auth_response(user, token_service)

import logging
from datetime import date

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth.dependencies import ensure_student_access, get_current_user, require_roles
from backend.auth.jwt_handler import TokenIdentity
from backend.core.errors import NotFoundError, PersistenceError
from backend.database import get_db
from backend.models.student import Student
from backend.models.user import UserRole
from backend.services import catalog
from backend.services import students as student_service

router = APIRouter(tags=['students'])

logger = logging.getLogger(__name__)


def require_text(value, field_name: str) -> str:
    normalized = value.strip() if isinstance(value, str) else value
    if not normalized:
        raise ValueError(f'{field_name} is required')
    return normalized


def optional_reference(value, field_name: str) -> int | None:
    # Clients send 0 for "no group" / "no user".
    if value in (None, 0, ''):
        return None
    if isinstance(value, int) and value < 0:
        raise ValueError(f'{field_name} must be a positive integer')
    return value


class CreateStudentRequest(BaseModel):
    full_name: str
    gender: str
    birth_date: date
    group_id: int | None = None
    user_id: int | None = None

    @field_validator('full_name', 'gender', 'birth_date', mode='before')
    @classmethod
    def validate_required(cls, value, info):
        return require_text(value, info.field_name)

    @field_validator('group_id', 'user_id', mode='before')
    @classmethod
    def validate_reference(cls, value, info):
        return optional_reference(value, info.field_name)


class CreateStudentFromUserRequest(BaseModel):
    user_id: int
    gender: str
    birth_date: date
    group_id: int | None = None

    @field_validator('user_id')
    @classmethod
    def validate_user_id(cls, value: int) -> int:
        if value <= 0:
            raise ValueError('user_id must be a positive integer')
        return value

    @field_validator('gender', 'birth_date', mode='before')
    @classmethod
    def validate_required(cls, value, info):
        return require_text(value, info.field_name)

    @field_validator('group_id', mode='before')
    @classmethod
    def validate_reference(cls, value, info):
        return optional_reference(value, info.field_name)


class StudentResponse(BaseModel):
    id: int
    full_name: str
    gender: str
    birth_date: date | None = None
    group_id: int
    group_name: str
    user_id: int | None = None

    class Config:
        from_attributes = True


def build_student_response(db: Session, student: Student, user_id: int | None = None) -> StudentResponse:
    return StudentResponse(
        id=student.id,
        full_name=student.full_name,
        gender=student.gender,
        birth_date=student.birth_date,
        group_id=student.group_id or 0,
        group_name=catalog.get_group_name(db, student.group_id),
        user_id=user_id,
    )


@router.get('/students', response_model=list[StudentResponse])
def list_students(
    _: TokenIdentity = Depends(require_roles(UserRole.TEACHER, UserRole.ADMIN)),
    db: Session = Depends(get_db),
):
    try:
        return [StudentResponse.model_validate(dict(row._mapping)) for row in student_service.list_students(db)]
    except SQLAlchemyError as exc:
        logger.exception('Failed to list students.')
        raise PersistenceError() from exc


@router.post('/students', response_model=StudentResponse, status_code=status.HTTP_201_CREATED)
def create_student(
    data: CreateStudentRequest,
    _: TokenIdentity = Depends(require_roles(UserRole.ADMIN)),
    db: Session = Depends(get_db),
):
    try:
        student = student_service.create_student(
            db,
            full_name=data.full_name,
            gender=data.gender,
            birth_date=data.birth_date,
            group_id=data.group_id,
            user_id=data.user_id,
        )
        response = build_student_response(db, student, user_id=data.user_id)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Failed to create student %s.', data.full_name)
        raise PersistenceError() from exc

    logger.info('Created student %s.', student.id)
    return response


@router.post('/students/from-user', response_model=StudentResponse, status_code=status.HTTP_201_CREATED)
def create_student_from_user(
    data: CreateStudentFromUserRequest,
    _: TokenIdentity = Depends(require_roles(UserRole.ADMIN)),
    db: Session = Depends(get_db),
):
    try:
        student, user = student_service.create_student_from_user(
            db,
            user_id=data.user_id,
            gender=data.gender,
            birth_date=data.birth_date,
            group_id=data.group_id,
        )
        response = build_student_response(db, student, user_id=user.id)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Failed to create student for user %s.', data.user_id)
        raise PersistenceError() from exc

    logger.info('Created student %s for user %s.', student.id, user.id)
    return response


@router.get('/student/{student_id}', response_model=StudentResponse)
def get_student(
    student_id: int,
    current_user: TokenIdentity = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        ensure_student_access(db, current_user, student_id)
        student = student_service.get_student(db, student_id)
    except SQLAlchemyError as exc:
        logger.exception('Failed to load student %s.', student_id)
        raise PersistenceError() from exc

    if student is None:
        raise NotFoundError('Student not found')
    return StudentResponse.model_validate(dict(student._mapping))

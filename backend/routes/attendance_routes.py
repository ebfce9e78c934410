import logging
from datetime import date

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth.dependencies import ensure_student_access, get_current_user, require_roles
from backend.auth.jwt_handler import TokenIdentity
from backend.core.errors import PersistenceError
from backend.database import get_db
from backend.models.user import UserRole
from backend.services import attendance as attendance_service

router = APIRouter(tags=['attendance'])

logger = logging.getLogger(__name__)


class CreateAttendanceRequest(BaseModel):
    student_id: int
    subject_id: int
    visit_day: date
    visited: bool = False

    @field_validator('student_id', 'subject_id')
    @classmethod
    def validate_positive_id(cls, value: int, info) -> int:
        if value <= 0:
            raise ValueError(f'{info.field_name} must be a positive integer')
        return value

    @field_validator('visit_day', mode='before')
    @classmethod
    def validate_visit_day(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValueError('visit_day is required')
        return value.strip() if isinstance(value, str) else value


class AttendanceResponse(BaseModel):
    id: int
    subject_id: int
    visit_day: date
    visited: bool
    student_id: int

    class Config:
        from_attributes = True


@router.post('/attendance/subject', response_model=AttendanceResponse, status_code=status.HTTP_201_CREATED)
def create_attendance(
    data: CreateAttendanceRequest,
    current_user: TokenIdentity = Depends(require_roles(UserRole.TEACHER, UserRole.ADMIN)),
    db: Session = Depends(get_db),
):
    try:
        attendance = attendance_service.create_attendance(
            db,
            student_id=data.student_id,
            subject_id=data.subject_id,
            visit_day=data.visit_day,
            visited=data.visited,
        )
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception(
            'Failed to record attendance for student %s, subject %s on %s.',
            data.student_id,
            data.subject_id,
            data.visit_day,
        )
        raise PersistenceError() from exc

    logger.info(
        'User %s recorded attendance %s for student %s.',
        current_user.user_id,
        attendance.id,
        attendance.student_id,
    )
    return AttendanceResponse.model_validate(attendance)


@router.get('/attendanceByStudentId/{student_id}', response_model=list[AttendanceResponse])
def list_attendance_by_student(
    student_id: int,
    current_user: TokenIdentity = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        ensure_student_access(
            db,
            current_user,
            student_id,
            detail='Access denied: you can only view your own attendance',
        )
        records = attendance_service.list_attendance_for_student(db, student_id)
    except SQLAlchemyError as exc:
        logger.exception('Failed to list attendance for student %s.', student_id)
        raise PersistenceError() from exc

    return [AttendanceResponse.model_validate(record) for record in records]


@router.get('/attendanceBySubjectId/{subject_id}', response_model=list[AttendanceResponse])
def list_attendance_by_subject(
    subject_id: int,
    _: TokenIdentity = Depends(require_roles(UserRole.TEACHER, UserRole.ADMIN)),
    db: Session = Depends(get_db),
):
    try:
        records = attendance_service.list_attendance_for_subject(db, subject_id)
    except SQLAlchemyError as exc:
        logger.exception('Failed to list attendance for subject %s.', subject_id)
        raise PersistenceError() from exc

    return [AttendanceResponse.model_validate(record) for record in records]

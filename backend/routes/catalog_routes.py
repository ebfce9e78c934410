import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth.dependencies import get_current_user
from backend.auth.jwt_handler import TokenIdentity
from backend.core.errors import PersistenceError
from backend.database import get_db
from backend.services import catalog

router = APIRouter(tags=['catalog'])

logger = logging.getLogger(__name__)


class GroupResponse(BaseModel):
    id: int
    group_name: str
    faculty_id: int
    course_year: int

    class Config:
        from_attributes = True


class SubjectResponse(BaseModel):
    id: int
    subject_name: str
    subject_code: str
    credits: int

    class Config:
        from_attributes = True


class ScheduleResponse(BaseModel):
    id: int
    subject_name: str
    time_slot: str
    group_id: int
    group_name: str


@router.get('/groups', response_model=list[GroupResponse])
def list_groups(
    _: TokenIdentity = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return [GroupResponse.model_validate(group) for group in catalog.list_groups(db)]
    except SQLAlchemyError as exc:
        logger.exception('Failed to list groups.')
        raise PersistenceError() from exc


@router.get('/subjects', response_model=list[SubjectResponse])
def list_subjects(
    _: TokenIdentity = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return [SubjectResponse.model_validate(subject) for subject in catalog.list_subjects(db)]
    except SQLAlchemyError as exc:
        logger.exception('Failed to list subjects.')
        raise PersistenceError() from exc


@router.get('/all_class_schedule', response_model=list[ScheduleResponse])
def list_all_schedules(
    _: TokenIdentity = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return [ScheduleResponse.model_validate(dict(row._mapping)) for row in catalog.list_schedules(db)]
    except SQLAlchemyError as exc:
        logger.exception('Failed to list schedules.')
        raise PersistenceError() from exc


@router.get('/schedule/group/{group_id}', response_model=list[ScheduleResponse])
def list_group_schedule(
    group_id: int,
    _: TokenIdentity = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        rows = catalog.list_schedules_for_group(db, group_id)
    except SQLAlchemyError as exc:
        logger.exception('Failed to list schedule for group %s.', group_id)
        raise PersistenceError() from exc

    return [ScheduleResponse.model_validate(dict(row._mapping)) for row in rows]

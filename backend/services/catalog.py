"""Read paths for the static reference data: groups, subjects and timetables."""

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from backend.models.group import StudentGroup
from backend.models.schedule import Schedule
from backend.models.subject import Subject

NO_GROUP = "No Group"


def list_groups(db: Session) -> list[StudentGroup]:
    return list(db.scalars(select(StudentGroup).order_by(StudentGroup.group_name, StudentGroup.id)))


def group_exists(db: Session, group_id: int) -> bool:
    return db.get(StudentGroup, group_id) is not None


def get_group_name(db: Session, group_id: int | None) -> str:
    if group_id is None:
        return NO_GROUP
    group = db.get(StudentGroup, group_id)
    return group.group_name if group is not None else NO_GROUP


def list_subjects(db: Session) -> list[Subject]:
    return list(db.scalars(select(Subject).order_by(Subject.subject_name, Subject.id)))


def subject_exists(db: Session, subject_id: int) -> bool:
    return db.get(Subject, subject_id) is not None


def _schedule_query():
    return select(
        Schedule.id,
        Schedule.subject_name,
        Schedule.time_slot,
        func.coalesce(Schedule.group_id, 0).label("group_id"),
        func.coalesce(StudentGroup.group_name, NO_GROUP).label("group_name"),
    ).outerjoin(StudentGroup, Schedule.group_id == StudentGroup.id)


def list_schedules(db: Session):
    return db.execute(_schedule_query().order_by(Schedule.id)).all()


def list_schedules_for_group(db: Session, group_id: int):
    return db.execute(_schedule_query().where(Schedule.group_id == group_id).order_by(Schedule.id)).all()

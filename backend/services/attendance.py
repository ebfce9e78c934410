from datetime import date

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend.core.errors import ConflictError, NotFoundError
from backend.models.attendance import Attendance
from backend.models.student import Student
from backend.services.catalog import subject_exists

ATTENDANCE_LIST_LIMIT = 50


def create_attendance(
    db: Session,
    *,
    student_id: int,
    subject_id: int,
    visit_day: date,
    visited: bool,
) -> Attendance:
    if db.get(Student, student_id) is None:
        raise NotFoundError("Student not found")
    if not subject_exists(db, subject_id):
        raise NotFoundError("Subject not found")

    attendance = Attendance(
        student_id=student_id,
        subject_id=subject_id,
        visit_day=visit_day,
        visited=visited,
    )
    db.add(attendance)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("Attendance for this student, subject and day is already recorded") from exc
    db.refresh(attendance)
    return attendance


def _recent_attendance(db: Session, *criteria) -> list[Attendance]:
    query = (
        select(Attendance)
        .where(*criteria)
        .order_by(Attendance.visit_day.desc(), Attendance.id.desc())
        .limit(ATTENDANCE_LIST_LIMIT)
    )
    return list(db.scalars(query))


def list_attendance_for_student(db: Session, student_id: int) -> list[Attendance]:
    return _recent_attendance(db, Attendance.student_id == student_id)


def list_attendance_for_subject(db: Session, subject_id: int) -> list[Attendance]:
    return _recent_attendance(db, Attendance.subject_id == subject_id)

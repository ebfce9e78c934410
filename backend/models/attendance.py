"""Attendance model definitions."""

from sqlalchemy import Boolean, Column, Date, ForeignKey, Integer, UniqueConstraint
from backend.database import Base


class Attendance(Base):
    """Represents one student's presence at one subject on one day."""
    __tablename__ = "attendance"
    __table_args__ = (
        UniqueConstraint("student_id", "subject_id", "visit_day", name="uq_attendance_student_subject_day"),
    )

    id = Column(Integer, primary_key=True)
    subject_id = Column(Integer, ForeignKey("subjects.id"), nullable=False, index=True)
    visit_day = Column(Date, nullable=False)
    visited = Column(Boolean, nullable=False, default=False)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)

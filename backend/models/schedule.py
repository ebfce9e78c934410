"""Schedule model definitions."""

from sqlalchemy import Column, ForeignKey, Integer, String
from backend.database import Base


class Schedule(Base):
    """Represents one timetable slot of a group."""
    __tablename__ = "schedule"

    id = Column(Integer, primary_key=True, index=True)
    subject_name = Column(String(255), nullable=False)
    time_slot = Column(String(64), nullable=False)
    group_id = Column(Integer, ForeignKey("student_groups.id"), nullable=True, index=True)

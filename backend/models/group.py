"""Student group model definitions."""

from sqlalchemy import Column, Integer, String
from backend.database import Base


class StudentGroup(Base):
    """Represents a cohort of students sharing a schedule."""
    __tablename__ = "student_groups"

    id = Column(Integer, primary_key=True, index=True)
    group_name = Column(String(100), nullable=False)
    faculty_id = Column(Integer, nullable=False, default=0)
    course_year = Column(Integer, nullable=False, default=1)

"""Student model definitions."""

from sqlalchemy import Column, Date, ForeignKey, Integer, String
from backend.database import Base


class Student(Base):
    """Represents a student record, optionally linked from a user account."""
    __tablename__ = "students"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    gender = Column(String(32), nullable=False)
    birth_date = Column(Date, nullable=False)
    group_id = Column(Integer, ForeignKey("student_groups.id"), nullable=True)

"""Subject model definitions."""

from sqlalchemy import Column, Integer, String
from backend.database import Base


class Subject(Base):
    __tablename__ = "subjects"

    id = Column(Integer, primary_key=True, index=True)
    subject_name = Column(String(255), nullable=False)
    subject_code = Column(String(32), nullable=False)
    credits = Column(Integer, nullable=False, default=0)

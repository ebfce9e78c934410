import os
from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from backend.auth import passwords  # noqa: E402
from backend.auth.jwt_handler import TokenIdentity, TokenService  # noqa: E402
from backend.database import Base  # noqa: E402
from backend.models.attendance import Attendance  # noqa: E402
from backend.models.group import StudentGroup  # noqa: E402
from backend.models.schedule import Schedule  # noqa: E402
from backend.models.student import Student  # noqa: E402
from backend.models.subject import Subject  # noqa: E402
from backend.models.user import User, UserRole  # noqa: E402

TEST_SIGNING_KEY = 'test-signing-key-with-at-least-32-bytes'


@pytest.fixture(autouse=True)
def fast_password_hashing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(passwords, 'BCRYPT_ROUNDS', 4)


@pytest.fixture
def db():
    engine = create_engine('sqlite:///:memory:')
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def token_service() -> TokenService:
    return TokenService(TEST_SIGNING_KEY)


@pytest.fixture
def add_user(db):
    def _add_user(
        email: str,
        role: UserRole = UserRole.STUDENT,
        full_name: str = '',
        student_id: int | None = None,
        password: str = 'password123',
    ) -> User:
        user = User(
            email=email,
            password=passwords.hash_password(password),
            role=role,
            full_name=full_name,
            student_id=student_id,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _add_user


@pytest.fixture
def add_group(db):
    def _add_group(group_name: str, faculty_id: int = 1, course_year: int = 1) -> StudentGroup:
        group = StudentGroup(group_name=group_name, faculty_id=faculty_id, course_year=course_year)
        db.add(group)
        db.commit()
        db.refresh(group)
        return group

    return _add_group


@pytest.fixture
def add_student(db):
    def _add_student(
        full_name: str,
        group_id: int | None = None,
        gender: str = 'female',
        birth_date: date = date(2005, 3, 14),
    ) -> Student:
        student = Student(full_name=full_name, gender=gender, birth_date=birth_date, group_id=group_id)
        db.add(student)
        db.commit()
        db.refresh(student)
        return student

    return _add_student


@pytest.fixture
def add_subject(db):
    def _add_subject(subject_name: str, subject_code: str = 'SUB-101', credits: int = 5) -> Subject:
        subject = Subject(subject_name=subject_name, subject_code=subject_code, credits=credits)
        db.add(subject)
        db.commit()
        db.refresh(subject)
        return subject

    return _add_subject


@pytest.fixture
def add_schedule(db):
    def _add_schedule(subject_name: str, time_slot: str, group_id: int | None) -> Schedule:
        schedule = Schedule(subject_name=subject_name, time_slot=time_slot, group_id=group_id)
        db.add(schedule)
        db.commit()
        db.refresh(schedule)
        return schedule

    return _add_schedule


@pytest.fixture
def add_attendance(db):
    def _add_attendance(student_id: int, subject_id: int, visit_day: date, visited: bool = True) -> Attendance:
        attendance = Attendance(student_id=student_id, subject_id=subject_id, visit_day=visit_day, visited=visited)
        db.add(attendance)
        db.commit()
        db.refresh(attendance)
        return attendance

    return _add_attendance


def identity_for(user: User) -> TokenIdentity:
    return TokenIdentity(user_id=user.id, email=user.email, role=user.role)


@pytest.fixture
def as_identity():
    return identity_for

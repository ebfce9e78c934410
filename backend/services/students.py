from datetime import date

from sqlalchemy import Integer, cast, func, literal, literal_column, null, select, union
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.core.errors import ConflictError, NotFoundError, ValidationError
from backend.models.group import StudentGroup
from backend.models.student import Student
from backend.models.user import User, UserRole
from backend.services.catalog import NO_GROUP, group_exists

UNKNOWN_GENDER = "Unknown"


def get_student(db: Session, student_id: int):
    query = (
        select(
            Student.id,
            Student.full_name,
            Student.gender,
            Student.birth_date,
            func.coalesce(Student.group_id, 0).label("group_id"),
            func.coalesce(StudentGroup.group_name, NO_GROUP).label("group_name"),
            User.id.label("user_id"),
        )
        .outerjoin(StudentGroup, Student.group_id == StudentGroup.id)
        .outerjoin(User, User.student_id == Student.id)
        .where(Student.id == student_id)
    )
    return db.execute(query).first()


def list_students(db: Session):
    """List every student once, whichever way the record came to exist.

    Student-role users are listed through their linked row; users that have
    not been linked yet show up with their negated user id so they can be
    told apart from real student ids. Student rows nobody links to are
    appended as they are, with no user_id.
    """
    from_users = (
        select(
            func.coalesce(Student.id, -User.id).label("id"),
            func.coalesce(Student.full_name, func.nullif(User.full_name, ""), User.email).label("full_name"),
            func.coalesce(Student.gender, literal(UNKNOWN_GENDER)).label("gender"),
            Student.birth_date.label("birth_date"),
            func.coalesce(Student.group_id, 0).label("group_id"),
            func.coalesce(StudentGroup.group_name, literal(NO_GROUP)).label("group_name"),
            User.id.label("user_id"),
        )
        .select_from(User)
        .outerjoin(Student, User.student_id == Student.id)
        .outerjoin(StudentGroup, Student.group_id == StudentGroup.id)
        .where(User.role == UserRole.STUDENT)
    )
    linked_student_ids = select(User.student_id).where(User.student_id.is_not(None))
    unlinked_students = (
        select(
            Student.id,
            Student.full_name,
            Student.gender,
            Student.birth_date,
            func.coalesce(Student.group_id, 0),
            func.coalesce(StudentGroup.group_name, literal(NO_GROUP)),
            cast(null(), Integer),
        )
        .outerjoin(StudentGroup, Student.group_id == StudentGroup.id)
        .where(Student.id.not_in(linked_student_ids))
    )
    query = union(from_users, unlinked_students).order_by(literal_column("id").desc())
    return db.execute(query).all()


def _check_group(db: Session, group_id: int | None) -> None:
    if group_id is not None and not group_exists(db, group_id):
        raise ValidationError("Invalid group_id. Please select a valid group")


def _get_linkable_user(db: Session, user_id: int, require_student: bool = False) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    if require_student and user.role is not UserRole.STUDENT:
        raise ValidationError("User is not a student")
    if user.student_id is not None:
        raise ConflictError("User already has a student profile")
    return user


def _insert_and_link(db: Session, student: Student, user: User | None) -> Student:
    """Insert the student and point ``user`` at it in one transaction."""
    try:
        db.add(student)
        db.flush()
        if user is not None:
            user.student_id = student.id
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if user is None:
            raise
        raise ConflictError("User already has a student profile") from exc
    except SQLAlchemyError:
        db.rollback()
        raise
    db.refresh(student)
    return student


def create_student(
    db: Session,
    *,
    full_name: str,
    gender: str,
    birth_date: date,
    group_id: int | None = None,
    user_id: int | None = None,
) -> Student:
    _check_group(db, group_id)
    user = _get_linkable_user(db, user_id) if user_id is not None else None

    student = Student(
        full_name=full_name,
        email=user.email if user is not None else None,
        gender=gender,
        birth_date=birth_date,
        group_id=group_id,
    )
    return _insert_and_link(db, student, user)


def create_student_from_user(
    db: Session,
    *,
    user_id: int,
    gender: str,
    birth_date: date,
    group_id: int | None = None,
) -> tuple[Student, User]:
    user = _get_linkable_user(db, user_id, require_student=True)
    _check_group(db, group_id)

    student = Student(
        full_name=user.full_name or user.email,
        email=user.email,
        gender=gender,
        birth_date=birth_date,
        group_id=group_id,
    )
    return _insert_and_link(db, student, user), user

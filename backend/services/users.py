from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend.auth.passwords import hash_password, verify_password
from backend.core.errors import ConflictError
from backend.models.user import User, UserRole


def get_user(db: Session, user_id: int) -> User | None:
    return db.get(User, user_id)


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.scalar(select(User).where(User.email == email))


def list_users(db: Session) -> list[User]:
    return list(db.scalars(select(User).order_by(User.created_at.desc(), User.id.desc())))


def create_user(db: Session, *, email: str, password: str, role: UserRole, full_name: str = "") -> User:
    if get_user_by_email(db, email) is not None:
        raise ConflictError("This email is taken")

    user = User(
        email=email,
        password=hash_password(password),
        role=role,
        full_name=full_name,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        # Another request registered the same email between the check and the insert.
        if db.scalar(select(User.id).where(User.email == email)) is not None:
            raise ConflictError("This email is taken") from exc
        raise
    db.refresh(user)
    return user


def authenticate_user(db: Session, email: str, password: str) -> User | None:
    user = get_user_by_email(db, email)
    if user is None or not verify_password(password, user.password):
        return None
    return user

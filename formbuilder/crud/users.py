from typing import Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from formbuilder.core.exceptions import ValidationFailedError
from formbuilder.core.security.auth import PasswordHasher
from formbuilder.models.user import User
from formbuilder.schemas.user import RegisterRequest

DUPLICATE_USER_MESSAGE = "User with this email or username already exists"


def get_user(db: Session, user_id: str) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email).first()


def get_user_by_email_or_username(db: Session, email: str, username: str) -> Optional[User]:
    return db.query(User).filter(or_(User.email == email, User.username == username)).first()


def create_user(db: Session, user_in: RegisterRequest, hasher: PasswordHasher) -> User:
    """
    Register a new user

    Parameters:
    - db: Database session
    - user_in: Validated registration payload
    - hasher: Password hasher configured for this app

    Returns:
    - The persisted User
    """
    existing_user = get_user_by_email_or_username(db, user_in.email, user_in.username)
    if existing_user:
        raise ValidationFailedError(DUPLICATE_USER_MESSAGE)

    new_user = User(
        username=user_in.username,
        email=user_in.email,
        hashed_password=hasher.hash(user_in.password),
    )

    try:
        db.add(new_user)
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration
        db.rollback()
        raise ValidationFailedError(DUPLICATE_USER_MESSAGE)
    except Exception:
        db.rollback()
        raise

    db.refresh(new_user)
    return new_user


def authenticate_user(db: Session, email: str, password: str, hasher: PasswordHasher) -> Optional[User]:
    user = get_user_by_email(db, email)
    if not user or not hasher.verify(password, user.hashed_password):
        return None
    return user

import logging
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from codeclub.core.config import settings
from codeclub.core.security import get_password_hash, verify_password
from codeclub.models.user.user_model import User
from codeclub.schemas.user.user_schema import UserCreate
from codeclub.services.errors import conflict

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_USERNAME = "admin"


def get_user(db: Session, user_id: int) -> Optional[User]:
    return db.get(User, user_id)


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email).first()


def get_user_by_username(db: Session, username: str) -> Optional[User]:
    return db.query(User).filter(User.username == username).first()


def create_user(db: Session, user: UserCreate, *, is_admin: bool = False) -> User:
    """Persist a new account with a bcrypt hash of ``user.password``."""
    db_user = User(
        email=user.email,
        username=user.username,
        first_name=user.first_name,
        last_name=user.last_name,
        hashed_password=get_password_hash(user.password),
        is_admin=is_admin,
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


def authenticate(db: Session, identifier: str, password: str) -> Optional[User]:
    """Return the active user matching *identifier* (username or email) and *password*."""
    user = (
        db.query(User)
        .filter(or_(User.username == identifier, User.email == identifier))
        .first()
    )
    if not user or not user.is_active:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


def register_user(db: Session, user_in: UserCreate) -> User:
    """Create a student account; email and username must be unused."""
    if get_user_by_email(db, email=user_in.email):
        raise conflict("email_already_registered")
    if get_user_by_username(db, username=user_in.username):
        raise conflict("username_already_taken")
    return create_user(db, user_in)


def ensure_default_admin(db: Session) -> Optional[User]:
    """Create the bootstrap administrator when one is configured.

    Nothing happens without ``DEFAULT_ADMIN_PASSWORD``. An existing account
    that is not already an admin is never promoted.
    """
    if not settings.DEFAULT_ADMIN_PASSWORD:
        logger.info("DEFAULT_ADMIN_PASSWORD not set; no default admin created.")
        return None

    existing = get_user_by_email(db, settings.DEFAULT_ADMIN_EMAIL) or get_user_by_username(
        db, DEFAULT_ADMIN_USERNAME
    )
    if existing is not None:
        if not existing.is_admin:
            logger.warning(
                "Account %s matches the default admin but is not an admin; leaving it unchanged.",
                existing.id,
            )
            return None
        return existing

    logger.info("Creating default admin account %s", settings.DEFAULT_ADMIN_EMAIL)
    return create_user(
        db,
        UserCreate(
            email=settings.DEFAULT_ADMIN_EMAIL,
            username=DEFAULT_ADMIN_USERNAME,
            first_name="Admin",
            last_name="CodeClub",
            password=settings.DEFAULT_ADMIN_PASSWORD,
        ),
        is_admin=True,
    )

"""Sign-up and login against the users table."""
from __future__ import annotations

import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from todoai.core.errors import AuthenticationFailed, Conflict
from todoai.core.security import hash_password, verify_password
from todoai.db.models.user import DEFAULT_DISPLAY_NAME, User

logger = logging.getLogger(__name__)

DUPLICATE_EMAIL = "This email is already registered."
BAD_CREDENTIALS = "Invalid email or password."


def find_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(func.lower(User.email) == email.strip().lower()).one_or_none()


def register_user(db: Session, *, email: str, password: str, name: str | None = None) -> User:
    """Create the credential and its profile in one transaction."""
    normalized_email = email.strip().lower()
    if find_user_by_email(db, normalized_email):
        raise Conflict(DUPLICATE_EMAIL)

    user = User(
        email=normalized_email,
        name=(name or "").strip() or DEFAULT_DISPLAY_NAME,
        password_hash=hash_password(password),
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        # Lost a race with a concurrent sign-up for the same address.
        db.rollback()
        raise Conflict(DUPLICATE_EMAIL, detail=str(exc.orig)) from exc
    db.refresh(user)
    logger.info("Registered user %s", user.id)
    return user


def authenticate(db: Session, *, email: str, password: str) -> User:
    user = find_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        raise AuthenticationFailed(BAD_CREDENTIALS)
    return user

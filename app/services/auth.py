from typing import Optional

from fastapi import Depends, Request, Response
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.config import settings
from app.database import get_db
from app.models.users import User
from app.exceptions import (
    AuthenticationError,
    NotFoundError,
    ValidationError,
    handle_database_error,
)
from app.utils import security
from app.utils.logger import get_logger

logger = get_logger("auth")


def get_or_create_user(db: Session, email: str, display_name: Optional[str] = None) -> User:
    """
    Resolve the user for a verified email, creating it on first login

    A concurrent first login for the same email loses the insert race on the
    unique email index; the loser re-reads the winner's row.

    Args:
        db: Database session
        email: Verified email address
        display_name: Name applied only when the user is created

    Returns:
        User object
    """
    try:
        user = db.query(User).filter(User.email == email).first()
        if user:
            return user

        user = User(email=email, display_name=display_name, japa_count=0)
        db.add(user)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            user = db.query(User).filter(User.email == email).first()
            if user is None:
                raise
            logger.info(f"User for {email} was created concurrently; using existing row")
            return user
        db.refresh(user)
        logger.info(f"User created on first login: {email} (id={user.id})")
        return user
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "resolve user")


def get_user_by_id(db: Session, user_id) -> Optional[User]:
    try:
        user_id = int(user_id)
    except (TypeError, ValueError):
        return None
    return db.query(User).filter(User.id == user_id).first()


def resolve_session_user(db: Session, token: Optional[str]) -> Optional[User]:
    """
    User behind a session token, or None

    A missing token, a bad signature, an expired token and a subject that no
    longer resolves all count as anonymous.
    """
    if not token:
        return None
    subject = security.session_subject(token)
    if subject is None:
        logger.debug("Session token rejected: invalid signature or expired")
        return None
    try:
        user = get_user_by_id(db, subject)
    except SQLAlchemyError as e:
        raise handle_database_error(e, "resolve session user")
    if user is None:
        logger.info(f"Session token subject {subject} no longer resolves to a user")
    return user


def get_current_user_optional(
    request: Request,
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Acting user if the session cookie is valid, else None"""
    return resolve_session_user(db, request.cookies.get(settings.SESSION_COOKIE_NAME))


def get_current_user(
    user: Optional[User] = Depends(get_current_user_optional),
) -> User:
    """
    Acting user for endpoints that need one

    Raises:
        AuthenticationError: If the request is anonymous
    """
    if user is None:
        raise AuthenticationError("Not authenticated")
    return user


def _cookie_flags() -> dict:
    if settings.is_production:
        return {"httponly": True, "secure": True, "samesite": "none"}
    return {"httponly": True, "secure": False, "samesite": "lax"}


def set_session_cookie(response: Response, user: User) -> str:
    """Mint a session token for the user and attach it as the session cookie"""
    token = security.create_session_token(user.id)
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.session_max_age_seconds,
        path="/",
        **_cookie_flags()
    )
    return token


def clear_session_cookie(response: Response):
    response.delete_cookie(
        key=settings.SESSION_COOKIE_NAME,
        path="/",
        **_cookie_flags()
    )


def update_profile(
    db: Session,
    user: User,
    display_name: Optional[str] = None,
    avatar_url: Optional[str] = None,
) -> User:
    """
    Update the editable profile fields

    Blank values are ignored.

    Raises:
        ValidationError: If no usable field was provided
        NotFoundError: If the user row is gone
    """
    changes = {}
    if display_name:
        changes["display_name"] = display_name
    if avatar_url:
        changes["avatar_url"] = avatar_url
    if not changes:
        raise ValidationError("No valid fields provided")

    try:
        db_user = db.query(User).filter(User.id == user.id).first()
        if db_user is None:
            raise NotFoundError("User not found")
        for field, value in changes.items():
            setattr(db_user, field, value)
        db.commit()
        db.refresh(db_user)
    except NotFoundError:
        raise
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "update profile")

    logger.info(f"Profile updated for user {db_user.id}: {sorted(changes)}")
    return db_user

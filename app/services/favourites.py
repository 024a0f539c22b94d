from typing import List, Optional, Tuple

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.models.favourites import Favourite
from app.exceptions import handle_database_error
from app.utils.logger import get_logger

logger = get_logger("favourites")


def toggle_favourite(db: Session, user_id: int, chapter: int, verse: int) -> Tuple[bool, Optional[Favourite]]:
    """
    Flip membership of a verse in the user's favourites

    Check-then-write; the unique (user, chapter, verse) index backs it up. An
    insert that loses a race to an identical toggle already has the desired
    end state and is reported as a favourite.

    Returns:
        (is_favourite, created record or None)
    """
    chapter, verse = int(chapter), int(verse)
    try:
        existing = db.query(Favourite).filter(
            Favourite.user_id == user_id,
            Favourite.chapter == chapter,
            Favourite.verse == verse,
        ).first()

        if existing:
            db.delete(existing)
            db.commit()
            logger.info(f"User {user_id} removed favourite {chapter}.{verse}")
            return False, None

        item = Favourite(user_id=user_id, chapter=chapter, verse=verse)
        db.add(item)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.info(f"Favourite {chapter}.{verse} for user {user_id} already inserted by a concurrent request")
            return True, None
        db.refresh(item)
        logger.info(f"User {user_id} added favourite {chapter}.{verse}")
        return True, item
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "toggle favourite")


def list_favourites(db: Session, user_id: int) -> List[Favourite]:
    """All favourites of the user, newest first"""
    try:
        return db.query(Favourite).filter(
            Favourite.user_id == user_id
        ).order_by(Favourite.created_at.desc(), Favourite.id.desc()).all()
    except SQLAlchemyError as e:
        raise handle_database_error(e, "list favourites")

from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from app.models.users import User
from app.exceptions import NotFoundError, ValidationError, handle_database_error
from app.utils.logger import get_logger

logger = get_logger("japa")


def validate_count(count) -> int:
    """Only positive integers are accepted; bools are not numbers here"""
    if isinstance(count, bool) or not isinstance(count, int) or count <= 0:
        raise ValidationError("Invalid count provided.")
    return count


def increment_japa_count(db: Session, user_id: int, count) -> int:
    """
    Atomically add count to the user's Japa total

    Returns:
        int: The new total

    Raises:
        ValidationError: If count is not a positive integer
        NotFoundError: If the user row is gone
    """
    count = validate_count(count)
    try:
        updated = db.query(User).filter(User.id == user_id).update(
            {User.japa_count: User.japa_count + count},
            synchronize_session=False,
        )
        if not updated:
            db.rollback()
            raise NotFoundError("User not found.")
        db.commit()
        total = db.query(User.japa_count).filter(User.id == user_id).scalar()
    except NotFoundError:
        raise
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "increment japa count")

    logger.info(f"User {user_id} japa count +{count} -> {total}")
    return total or 0


def get_japa_count(db: Session, user_id: int) -> int:
    try:
        user = db.query(User).filter(User.id == user_id).first()
    except SQLAlchemyError as e:
        raise handle_database_error(e, "read japa count")
    if user is None:
        raise NotFoundError("User not found.")
    return user.japa_count or 0

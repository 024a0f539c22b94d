from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from app.models.progress import VerseProgress
from app.exceptions import ValidationError, handle_database_error
from app.services.catalog import VerseCatalog, get_catalog
from app.utils.logger import get_logger

logger = get_logger("progress")

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _upsert_statement(db: Session, rows: List[dict]):
    """
    INSERT ... ON CONFLICT (user_id, chapter, verse) DO UPDATE
    """
    dialect = db.get_bind().dialect.name
    insert = _INSERT_BY_DIALECT.get(dialect)
    if insert is None:
        raise NotImplementedError(f"Progress upserts are not supported on {dialect}")

    stmt = insert(VerseProgress).values(rows)
    return stmt.on_conflict_do_update(
        index_elements=[VerseProgress.user_id, VerseProgress.chapter, VerseProgress.verse],
        set_={
            "completed": stmt.excluded.completed,
            "completed_at": stmt.excluded.completed_at,
            "updated_at": stmt.excluded.updated_at,
        },
    )


def _row(user_id: int, chapter: int, verse: int, completed: bool, now: datetime) -> dict:
    return {
        "user_id": user_id,
        "chapter": int(chapter),
        "verse": int(verse),
        "completed": bool(completed),
        "completed_at": now if completed else None,
        "created_at": now,
        "updated_at": now,
    }


def set_verse_state(db: Session, user_id: int, chapter: int, verse: int, completed: bool) -> VerseProgress:
    """
    Mark or unmark a single verse

    Replaying the same (chapter, verse, completed) converges to one row in
    that state.

    Returns:
        The stored progress row
    """
    now = datetime.utcnow()
    try:
        db.execute(_upsert_statement(db, [_row(user_id, chapter, verse, completed, now)]))
        db.commit()
        record = db.query(VerseProgress).filter(
            VerseProgress.user_id == user_id,
            VerseProgress.chapter == int(chapter),
            VerseProgress.verse == int(verse),
        ).one()
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "set verse progress")

    logger.info(f"User {user_id} set {chapter}.{verse} completed={completed}")
    return record


def set_chapter_state(
    db: Session,
    user_id: int,
    chapter_id: int,
    completed: bool,
    verse_ids: Optional[List[int]] = None,
    catalog: Optional[VerseCatalog] = None,
) -> int:
    """
    Mark or unmark many verses of a chapter in one batched write

    Without explicit verse_ids every catalog verse of the chapter is used.

    Returns:
        int: Number of verses written

    Raises:
        ValidationError: If the chapter has no known verses
    """
    catalog = catalog or get_catalog()
    if verse_ids:
        targets = sorted({int(v) for v in verse_ids})
    else:
        targets = catalog.verses_for_chapter(chapter_id)

    if not targets:
        logger.warning(f"Chapter progress rejected: no verses for chapter {chapter_id}")
        raise ValidationError("No verses found for given chapter")

    now = datetime.utcnow()
    rows = [_row(user_id, chapter_id, verse, completed, now) for verse in targets]
    try:
        db.execute(_upsert_statement(db, rows))
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "set chapter progress")

    logger.info(f"User {user_id} set chapter {chapter_id} completed={completed} ({len(targets)} verses)")
    return len(targets)


def chapter_detail(
    db: Session,
    user_id: int,
    chapter_id: int,
    catalog: Optional[VerseCatalog] = None,
) -> List[dict]:
    """
    Completion state of every catalog verse in a chapter

    Verses never marked are reported as not completed.
    """
    catalog = catalog or get_catalog()
    try:
        records = db.query(VerseProgress).filter(
            VerseProgress.user_id == user_id,
            VerseProgress.chapter == int(chapter_id),
        ).all()
    except SQLAlchemyError as e:
        raise handle_database_error(e, "read chapter progress")

    by_verse = {record.verse: record for record in records}
    verses = []
    for verse in catalog.verses_for_chapter(chapter_id):
        record = by_verse.get(verse)
        verses.append({
            "verse": verse,
            "completed": bool(record and record.completed),
            "completed_at": record.completed_at if record and record.completed else None,
        })
    return verses


def percent_complete(completed_count: int, total_verses: int) -> int:
    """Whole percent, halves rounded up (9 of 72 is 13)"""
    if not total_verses:
        return 0
    return (200 * completed_count + total_verses) // (2 * total_verses)


def progress_summary(
    db: Session,
    user_id: int,
    catalog: Optional[VerseCatalog] = None,
) -> List[dict]:
    """
    Per-chapter totals for the user, ordered by chapter

    Every catalog chapter appears, including those with no progress.
    """
    catalog = catalog or get_catalog()
    try:
        completed_rows = db.query(
            VerseProgress.chapter,
            func.count(VerseProgress.id),
        ).filter(
            VerseProgress.user_id == user_id,
            VerseProgress.completed.is_(True),
        ).group_by(VerseProgress.chapter).all()
    except SQLAlchemyError as e:
        raise handle_database_error(e, "read progress summary")

    completed_by_chapter: Dict[int, int] = {int(ch): int(count) for ch, count in completed_rows}

    summary = []
    for chapter in sorted(set(catalog.chapters()) | set(completed_by_chapter)):
        total = catalog.total_verses(chapter)
        done = completed_by_chapter.get(chapter, 0)
        summary.append({
            "chapter": chapter,
            "total_verses": total,
            "completed_count": done,
            "percent": percent_complete(done, total),
        })
    return summary

from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.users import User
from app.schemas.progress import (
    ChapterDetailResponse,
    ChapterProgressIn,
    ChapterProgressResponse,
    ProgressSummaryResponse,
    VerseProgressIn,
    VerseProgressResponse,
)
from app.services import progress as progress_service
from app.services.auth import get_current_user

router = APIRouter(prefix="/progress", tags=["progress"])

@router.get("/me", response_model=ProgressSummaryResponse)
def read_summary(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Completed and total verses for every chapter"""
    chapters = progress_service.progress_summary(db, current_user.id)
    return {"ok": True, "chapters": chapters}

@router.get("/me/chapter/{chapter_id}", response_model=ChapterDetailResponse)
def read_chapter(
    chapter_id: int = Path(..., ge=1),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Per-verse completion state for one chapter"""
    verses = progress_service.chapter_detail(db, current_user.id, chapter_id)
    return {"ok": True, "chapter": chapter_id, "verses": verses}

@router.post("/me/verse", response_model=VerseProgressResponse)
def set_verse(
    payload: VerseProgressIn,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    record = progress_service.set_verse_state(
        db, current_user.id, payload.chapter, payload.verse, payload.completed
    )
    return {"ok": True, "progress": record}

@router.post("/me/chapter", response_model=ChapterProgressResponse)
def set_chapter(
    payload: ChapterProgressIn,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    affected = progress_service.set_chapter_state(
        db,
        current_user.id,
        payload.chapter_id,
        payload.completed,
        verse_ids=payload.verse_ids,
    )
    return {
        "ok": True,
        "chapter_id": payload.chapter_id,
        "completed": payload.completed,
        "affected": affected,
    }

from datetime import datetime
from typing import List, Optional

from pydantic import Field, StrictBool

from app.schemas.base import CamelModel


class VerseProgressIn(CamelModel):
    chapter: int = Field(..., ge=1)
    verse: int = Field(..., ge=1)
    completed: StrictBool


class ChapterProgressIn(CamelModel):
    chapter_id: int = Field(..., ge=1)
    verse_ids: Optional[List[int]] = Field(None, max_length=200)
    completed: StrictBool


class VerseProgressOut(CamelModel):
    chapter: int
    verse: int
    completed: bool
    completed_at: Optional[datetime] = None


class VerseProgressResponse(CamelModel):
    ok: bool = True
    progress: VerseProgressOut


class ChapterProgressResponse(CamelModel):
    ok: bool = True
    chapter_id: int
    completed: bool
    affected: int


class ChapterSummary(CamelModel):
    chapter: int
    total_verses: int
    completed_count: int
    percent: int


class ProgressSummaryResponse(CamelModel):
    ok: bool = True
    chapters: List[ChapterSummary]


class VerseState(CamelModel):
    verse: int
    completed: bool
    completed_at: Optional[datetime] = None


class ChapterDetailResponse(CamelModel):
    ok: bool = True
    chapter: int
    verses: List[VerseState]

from datetime import datetime
from typing import List, Optional

from app.schemas.base import CamelModel


class FavouriteToggleIn(CamelModel):
    chapter: int
    verse: int


class FavouriteOut(CamelModel):
    id: int
    chapter: int
    verse: int
    created_at: datetime


class FavouriteToggleResponse(CamelModel):
    ok: bool = True
    favourite: bool
    item: Optional[FavouriteOut] = None


class FavouriteListResponse(CamelModel):
    ok: bool = True
    favourites: List[FavouriteOut]

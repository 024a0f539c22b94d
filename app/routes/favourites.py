from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.users import User
from app.schemas.favourites import FavouriteListResponse, FavouriteToggleIn, FavouriteToggleResponse
from app.services import favourites as favourites_service
from app.services.auth import get_current_user

router = APIRouter(prefix="/favourites", tags=["favourites"])

@router.get("/me", response_model=FavouriteListResponse)
def read_favourites(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Saved verses, newest first"""
    return {"ok": True, "favourites": favourites_service.list_favourites(db, current_user.id)}

@router.post("/toggle", response_model=FavouriteToggleResponse, response_model_exclude_none=True)
def toggle(
    payload: FavouriteToggleIn,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    is_favourite, item = favourites_service.toggle_favourite(
        db, current_user.id, payload.chapter, payload.verse
    )
    return {"ok": True, "favourite": is_favourite, "item": item}

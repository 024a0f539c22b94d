from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.users import User
from app.schemas.japa import JapaCountResponse, JapaIncrementIn
from app.services import japa as japa_service
from app.services.auth import get_current_user

router = APIRouter(prefix="/japaCount", tags=["japa"])

@router.put("/update-japa", response_model=JapaCountResponse, response_model_exclude_none=True)
def update_japa(
    payload: JapaIncrementIn,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Add a committed tally to the user's Japa count"""
    total = japa_service.increment_japa_count(db, current_user.id, payload.count)
    return {"ok": True, "message": "Japa count updated successfully!", "japa_count": total}

@router.get("/me", response_model=JapaCountResponse, response_model_exclude_none=True)
def read_japa(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"ok": True, "japa_count": japa_service.get_japa_count(db, current_user.id)}

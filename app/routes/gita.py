from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from app.database import get_db
from app.services.gita import GitaClient, get_gita_client, verse_of_the_day

router = APIRouter(tags=["gita"])

@router.get("/chapters")
def chapters(client: GitaClient = Depends(get_gita_client)):
    return client.chapters()

@router.get("/chapter/{ch}")
def chapter(ch: int = Path(..., ge=1), client: GitaClient = Depends(get_gita_client)):
    return client.chapter(ch)

@router.get("/chapter/{ch}/slok")
def chapter_verses(ch: int = Path(..., ge=1), client: GitaClient = Depends(get_gita_client)):
    return client.chapter_verses(ch)

@router.get("/chapter/{ch}/slok/{sl}")
def verse(
    ch: int = Path(..., ge=1),
    sl: int = Path(..., ge=1),
    client: GitaClient = Depends(get_gita_client),
):
    return client.verse(ch, sl)

@router.get("/slok")
def daily_verse(db: Session = Depends(get_db), client: GitaClient = Depends(get_gita_client)):
    """Verse of the day"""
    daily = verse_of_the_day(db, client)
    return [daily.payload]

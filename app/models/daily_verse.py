from datetime import datetime

from sqlalchemy import Column, Integer, Date, DateTime, JSON
from app.database import Base

class DailyVerse(Base):
    """The verse of the day, one row per UTC date"""
    __tablename__ = "daily_verses"

    id = Column(Integer, primary_key=True)
    day = Column(Date, unique=True, nullable=False, index=True)
    chapter = Column(Integer, nullable=False)
    verse = Column(Integer, nullable=False)
    payload = Column(JSON, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

from datetime import datetime

from sqlalchemy import Column, Integer, Boolean, DateTime, ForeignKey, UniqueConstraint
from app.database import Base

class VerseProgress(Base):
    __tablename__ = "verse_progress"
    __table_args__ = (
        UniqueConstraint("user_id", "chapter", "verse", name="uq_progress_user_chapter_verse"),
    )

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    chapter = Column(Integer, nullable=False, index=True)
    verse = Column(Integer, nullable=False)
    completed = Column(Boolean, nullable=False, default=False)
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<VerseProgress user={self.user_id} {self.chapter}.{self.verse} {'DONE' if self.completed else 'OPEN'}>"

import uuid
from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, Boolean
from app.database import Base

def _new_otp_id() -> str:
    return uuid.uuid4().hex

class OTP(Base):
    __tablename__ = "otps"

    id = Column(String(32), primary_key=True, default=_new_otp_id)
    delivery_target = Column(String, index=True, nullable=False)  # email address
    otp_type = Column(String(16), nullable=False, default="email")
    otp_hash = Column(String, nullable=False)
    display_name = Column(String(100), nullable=True)  # applied if the verification creates the user
    attempts_left = Column(Integer, nullable=False, default=5)
    used = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    seq = Column(Integer, nullable=False, default=1)  # issue order per delivery target
    expires_at = Column(DateTime, nullable=False, index=True)

    def __repr__(self):
        return f"<OTP {self.delivery_target} {'USED' if self.used else 'ACTIVE'}>"

    def is_expired(self, now: datetime = None) -> bool:
        """Expired at or after expires_at"""
        return (now or datetime.utcnow()) >= self.expires_at

    def is_exhausted(self) -> bool:
        return self.attempts_left <= 0

    def record_failed_attempt(self):
        self.attempts_left = max(0, self.attempts_left - 1)

    def mark_as_used(self):
        self.used = True

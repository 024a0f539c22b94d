from datetime import datetime
from typing import Optional

from pydantic import field_validator

from app.schemas.base import CamelModel


class VerifiedUser(CamelModel):
    id: int
    email: Optional[str] = None
    phone: Optional[str] = None
    display_name: Optional[str] = None


class UserOut(VerifiedUser):
    avatar_url: Optional[str] = None
    japa_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserUpdate(CamelModel):
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None

    @field_validator("display_name", "avatar_url")
    @classmethod
    def strip_blank(cls, v):
        if v is None:
            return None
        v = v.strip()
        return v or None


class MeResponse(CamelModel):
    ok: bool = True
    user: Optional[UserOut] = None


class UserResponse(CamelModel):
    ok: bool = True
    user: UserOut

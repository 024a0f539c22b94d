from typing import Any, Optional

from app.schemas.base import CamelModel


class JapaIncrementIn(CamelModel):
    # Checked by the service so every bad value gets the same message
    count: Any = None


class JapaCountResponse(CamelModel):
    ok: bool = True
    message: Optional[str] = None
    japa_count: int

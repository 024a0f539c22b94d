from typing import Optional, Union

from app.schemas.base import CamelModel
from app.schemas.users import VerifiedUser


class SendOTPRequest(CamelModel):
    email: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None  # rejected, SMS delivery is disabled


class SendOTPResponse(CamelModel):
    ok: bool = True
    message: str = "OTP sent"
    otp_id: str
    otp: Optional[str] = None  # development echo only


class VerifyOTPRequest(CamelModel):
    otp_id: Optional[str] = None
    delivery_target: Optional[str] = None
    otp: Optional[Union[str, int]] = None


class VerifyOTPResponse(CamelModel):
    ok: bool = True
    message: str = "Verified"
    user: VerifiedUser

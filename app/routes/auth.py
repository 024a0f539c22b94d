from typing import Optional

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.users import User
from app.schemas.message import Message
from app.schemas.otp import SendOTPRequest, SendOTPResponse, VerifyOTPRequest, VerifyOTPResponse
from app.schemas.users import MeResponse, UserResponse, UserUpdate
from app.services import otp as otp_service
from app.services.auth import (
    clear_session_cookie,
    get_current_user,
    get_current_user_optional,
    get_or_create_user,
    set_session_cookie,
    update_profile,
)
from app.utils.logger import get_logger

logger = get_logger("auth_routes")

router = APIRouter(prefix="/auth", tags=["auth"])

@router.post("/send-otp", response_model=SendOTPResponse, response_model_exclude_none=True)
def send_otp(payload: SendOTPRequest, db: Session = Depends(get_db)):
    """
    Issue a one-time code for email login

    The code is emailed on a best-effort basis. In development the code is
    echoed back in the response.
    """
    logger.info(f"OTP request for email: {payload.email}")
    result = otp_service.issue_otp(db, payload.email, name=payload.name, phone=payload.phone)
    return SendOTPResponse(otp_id=result["otp_id"], otp=result.get("otp"))

@router.post("/verify-otp", response_model=VerifyOTPResponse)
def verify_otp(payload: VerifyOTPRequest, response: Response, db: Session = Depends(get_db)):
    """
    Verify a one-time code and start a session

    Creates the user on first login and sets the session cookie.
    """
    otp = otp_service.verify_otp(
        db,
        payload.otp,
        otp_id=payload.otp_id,
        delivery_target=payload.delivery_target,
    )
    user = get_or_create_user(db, otp.delivery_target, display_name=otp.display_name)
    set_session_cookie(response, user)
    logger.info(f"Session started for user {user.id}")
    return {"ok": True, "message": "Verified", "user": user}

@router.get("/me", response_model=MeResponse)
def read_me(current_user: Optional[User] = Depends(get_current_user_optional)):
    """Current user, or null when the request carries no valid session"""
    return {"ok": True, "user": current_user}

@router.patch("/me", response_model=UserResponse)
def update_me(
    payload: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user = update_profile(
        db,
        current_user,
        display_name=payload.display_name,
        avatar_url=payload.avatar_url,
    )
    return {"ok": True, "user": user}

@router.post("/logout", response_model=Message)
def logout(response: Response):
    clear_session_cookie(response)
    return {"ok": True, "message": "Logged out"}

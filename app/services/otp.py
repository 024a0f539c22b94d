from datetime import datetime, timedelta
from typing import Optional, Tuple

from pydantic.networks import validate_email
from sqlalchemy import func
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from app.config import settings
from app.models.otp import OTP
from app.exceptions import (
    RateLimitError,
    TokenError,
    ValidationError,
    handle_database_error,
)
from app.utils import security
from app.utils.email import send_email_bounded, send_otp_email
from app.utils.logger import get_logger, log_database_operation

logger = get_logger("otp")


def normalize_email(email: Optional[str]) -> str:
    """
    Validate an email address for OTP delivery

    Raises:
        ValidationError: If the address is missing or malformed
    """
    if not isinstance(email, str) or not email.strip():
        raise ValidationError("email required")
    try:
        _, normalized = validate_email(email.strip())
    except ValueError:
        raise ValidationError("Invalid email address")
    return normalized


def create_otp(db: Session, email: str, display_name: Optional[str] = None) -> Tuple[OTP, str]:
    """
    Create a new OTP record for the given email

    Only the hash is stored; the plaintext code is returned to the caller for
    delivery.

    Args:
        db: Database session
        email: Delivery target
        display_name: Name to give the user if this code creates one

    Returns:
        (OTP record, plaintext code)

    Raises:
        DatabaseError: If database operation fails
    """
    otp_code = security.generate_numeric_otp(settings.OTP_LENGTH)
    try:
        last_seq = db.query(func.max(OTP.seq)).filter(OTP.delivery_target == email).scalar()
    except SQLAlchemyError as e:
        raise handle_database_error(e, "create OTP")

    otp = OTP(
        delivery_target=email,
        seq=(last_seq or 0) + 1,
        otp_type="email",
        otp_hash=security.hash_otp(otp_code),
        display_name=(display_name or "").strip() or None,
        attempts_left=settings.OTP_ATTEMPTS,
        used=False,
        expires_at=datetime.utcnow() + timedelta(minutes=settings.OTP_TTL_MINUTES),
    )
    try:
        db.add(otp)
        db.commit()
        db.refresh(otp)
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "create OTP")

    logger.info(f"OTP created for {email} (id={otp.id})")
    return otp, otp_code


def issue_otp(
    db: Session,
    email: Optional[str],
    name: Optional[str] = None,
    phone: Optional[str] = None,
) -> dict:
    """
    Create an OTP and deliver it by email

    Delivery is best effort: it is bounded by EMAIL_SEND_TIMEOUT_SECONDS and a
    failure never fails the issuance, since the stored record stays verifiable.

    Returns:
        dict with otp_id, plus the plaintext otp when the development echo is on
    """
    if phone:
        logger.warning("OTP request rejected: phone delivery is disabled")
        raise ValidationError("SMS-based OTP is disabled. Please use email for OTP login.")

    target = normalize_email(email)
    otp, otp_code = create_otp(db, target, display_name=name)

    delivered = send_email_bounded(
        settings.EMAIL_SEND_TIMEOUT_SECONDS,
        send_otp_email,
        target,
        otp_code,
        name=name,
    )
    if not delivered:
        logger.warning(f"OTP email to {target} was not delivered; code remains verifiable")

    result = {"otp_id": otp.id}
    if settings.show_dev_otp:
        result["otp"] = otp_code
    return result


def find_latest_otp(
    db: Session,
    otp_id: Optional[str] = None,
    delivery_target: Optional[str] = None,
) -> Optional[OTP]:
    """Most recently created OTP matching the issuance id, or else the delivery target"""
    query = db.query(OTP)
    if otp_id:
        query = query.filter(OTP.id == str(otp_id))
    else:
        query = query.filter(OTP.delivery_target == delivery_target)
    return query.order_by(OTP.created_at.desc(), OTP.seq.desc()).first()


def verify_otp(
    db: Session,
    otp_code,
    otp_id: Optional[str] = None,
    delivery_target: Optional[str] = None,
) -> OTP:
    """
    Verify a submitted code and consume the OTP record

    Rejections are checked in order: not found, already used, attempts
    exhausted, expired, wrong code. A wrong code costs one attempt.

    Returns:
        The consumed OTP record

    Raises:
        ValidationError: If the code or lookup key is missing
        TokenError: If the record is missing, used, expired or the code is wrong
        RateLimitError: If the attempt budget is exhausted
        DatabaseError: If database operation fails
    """
    if otp_code is None or str(otp_code).strip() == "":
        raise ValidationError("otp required")
    if not otp_id and not delivery_target:
        raise ValidationError("otpId or deliveryTarget required")
    otp_code = str(otp_code).strip()

    if not otp_id:
        try:
            delivery_target = normalize_email(delivery_target)
        except ValidationError:
            logger.warning(f"OTP verification failed: unusable delivery target {delivery_target!r}")
            raise TokenError("OTP not found or expired")

    try:
        otp = find_latest_otp(db, otp_id=otp_id, delivery_target=delivery_target)

        if not otp:
            logger.warning(f"OTP verification failed: no record for id={otp_id} target={delivery_target}")
            raise TokenError("OTP not found or expired")

        if otp.used:
            logger.warning(f"OTP verification failed: already used (id={otp.id})")
            raise TokenError("OTP already used")

        if otp.is_exhausted():
            logger.warning(f"OTP verification failed: attempts exhausted (id={otp.id})")
            raise RateLimitError("Too many failed attempts")

        if otp.is_expired():
            logger.warning(f"OTP verification failed: expired (id={otp.id})")
            raise TokenError("OTP expired")

        if not security.verify_otp_hash(otp_code, otp.otp_hash):
            otp.record_failed_attempt()
            db.commit()
            logger.warning(f"OTP verification failed: wrong code (id={otp.id}, attempts left={otp.attempts_left})")
            raise TokenError("Invalid OTP")

        otp.mark_as_used()
        db.commit()
        db.refresh(otp)
        logger.info(f"OTP verified for {otp.delivery_target} (id={otp.id})")
        return otp
    except (TokenError, RateLimitError):
        raise
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "verify OTP")


@log_database_operation("cleanup expired OTPs")
def cleanup_expired_otps(db: Session) -> int:
    """
    Delete OTP records past their expiry

    Returns:
        int: Number of expired OTPs deleted
    """
    try:
        expired_count = db.query(OTP).filter(
            OTP.expires_at <= datetime.utcnow()
        ).delete(synchronize_session=False)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "cleanup expired OTPs")

    if expired_count > 0:
        logger.info(f"Cleaned up {expired_count} expired OTPs")
    return expired_count

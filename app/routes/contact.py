from fastapi import APIRouter

from app.exceptions import EmailError
from app.schemas.contact import ContactRequest
from app.schemas.message import Message
from app.utils.email import send_contact_acknowledgement, send_contact_to_admin
from app.utils.logger import get_logger

logger = get_logger("contact_routes")

router = APIRouter(prefix="/contact", tags=["contact"])

@router.post("", response_model=Message)
def contact(payload: ContactRequest):
    """
    Acknowledge a contact query to the sender and forward it to the admin

    Only the acknowledgement has to succeed.
    """
    try:
        send_contact_acknowledgement(payload.name, payload.email)
    except EmailError as e:
        logger.error(f"Failed to send contact acknowledgement to {payload.email}: {e.message}")
        raise EmailError("Could not send email. Please try again.", details=e.details)

    try:
        send_contact_to_admin(payload.name, payload.email, payload.message)
    except EmailError as e:
        logger.error(f"Failed to forward contact query from {payload.email}: {e.message}")

    return {"ok": True, "message": "Message sent successfully to both parties"}

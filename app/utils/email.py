import emails
from emails.template import JinjaTemplate
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from app.config import settings
from app.utils.logger import get_logger
from app.exceptions import EmailError, handle_email_error

logger = get_logger("email")

# Sends run here so a slow SMTP server can be raced against a timeout
_mail_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="mail")

def send_email(
    email_to: str,
    subject: str = "",
    html_content: str = None,
    template_name: str = None,
    environment: dict = None,
    text_content: str = None,
) -> bool:
    """
    Send email with either direct HTML content or a template

    Args:
        email_to: Recipient email address
        subject: Email subject
        html_content: Direct HTML content
        template_name: Template string to render
        environment: Template variables
        text_content: Optional plain text alternative

    Returns:
        bool: True if email sent successfully

    Raises:
        EmailError: If email configuration is missing or sending fails
    """
    if not email_to:
        raise EmailError("Recipient email is required")

    # Check required email settings
    required_settings = {
        "SMTP_HOST": settings.SMTP_HOST,
        "SMTP_PORT": settings.SMTP_PORT,
        "SMTP_USER": settings.SMTP_USER,
        "SMTP_PASSWORD": settings.SMTP_PASSWORD,
        "EMAILS_FROM": settings.EMAILS_FROM,
    }

    if not all(required_settings.values()):
        error_msg = "Email configuration not set - skipping email sending"
        logger.warning(error_msg)
        raise EmailError(
            message=error_msg,
            details={
                "missing_settings": [name for name, value in required_settings.items() if not value]
            }
        )

    # Create message
    try:
        if html_content:
            html = html_content
        elif template_name:
            html = JinjaTemplate(template_name).render(**(environment or {}))
        else:
            raise ValueError("Either html_content or template_name must be provided")
        message = emails.Message(
            mail_from=(settings.EMAILS_FROM_NAME, settings.EMAILS_FROM),
            subject=subject,
            html=html,
            text=text_content,
        )
    except Exception as e:
        raise handle_email_error(e, "create email message")

    # Configure SMTP options
    smtp_options = {
        "host": settings.SMTP_HOST,
        "port": settings.SMTP_PORT,
        "user": settings.SMTP_USER,
        "password": settings.SMTP_PASSWORD,
        "timeout": settings.EMAIL_SEND_TIMEOUT_SECONDS,
    }

    # Add TLS/SSL configuration if specified
    if settings.SMTP_TLS:
        smtp_options["tls"] = True
    if settings.SMTP_SSL:
        smtp_options["ssl"] = True

    # Send email
    try:
        logger.info(f"Sending email to {email_to} with subject: {subject}")
        response = message.send(to=email_to, smtp=smtp_options)
    except Exception as e:
        raise handle_email_error(e, "send email")

    if response.success:
        logger.info(f"Email sent successfully to {email_to}")
        return True

    logger.error(f"Failed to send email to {email_to}: {response.error}")
    raise EmailError(
        message=f"Failed to send email: {response.error}",
        details={"recipient": email_to, "subject": subject}
    )


def send_email_bounded(timeout: float, func, *args, **kwargs) -> bool:
    """
    Run an email send, giving up after `timeout` seconds

    Never raises: a timeout or transport error is logged and reported as
    False. After a timeout a send still queued is dropped; one already
    running is left to finish.
    """
    future = _mail_executor.submit(func, *args, **kwargs)
    try:
        return bool(future.result(timeout=timeout))
    except FutureTimeoutError:
        future.cancel()
        logger.error(f"Email send timed out after {timeout}s ({getattr(func, '__name__', func)})")
    except EmailError as e:
        logger.error(f"Email send failed: {e.message}", extra={"details": e.details})
    except Exception as e:
        logger.error(f"Unexpected email send failure: {str(e)}", exc_info=True)
    return False


def send_otp_email(email: str, otp_code: str, name: str = None) -> bool:
    """
    Send OTP email

    Args:
        email: Recipient email address
        otp_code: OTP code
        name: Optional display name for the greeting

    Returns:
        bool: True if email sent successfully

    Raises:
        EmailError: If email sending fails
    """
    subject = "Your OTP code"
    template = """
    <html>
    <body>
        <p>Hi{% if name %} {{ name|e }}{% endif %},</p>
        <p>Your OTP code is <strong>{{ otp_code }}</strong>.</p>
        <p>It will expire in {{ ttl_minutes }} minutes.</p>
    </body>
    </html>
    """
    text = f"Your OTP code is {otp_code}. It will expire in {settings.OTP_TTL_MINUTES} minutes."

    logger.info(f"Sending OTP email to {email}")
    return send_email(
        email_to=email,
        subject=subject,
        template_name=template,
        environment={"otp_code": otp_code, "name": name, "ttl_minutes": settings.OTP_TTL_MINUTES},
        text_content=text,
    )


def send_contact_acknowledgement(name: str, email: str) -> bool:
    """Tell the sender their query was received"""
    template = """
    <html>
    <body>
        <p>Hi {{ name|e }},</p>
        <p>Thanks for raising a query. We have received it and will contact you within 24-48 hours.</p>
        <p>Regards,<br>Gita App</p>
    </body>
    </html>
    """
    return send_email(
        email_to=email,
        subject="Query Received - Gita App",
        template_name=template,
        environment={"name": name},
    )


def send_contact_to_admin(name: str, email: str, message: str) -> bool:
    """Forward a contact form submission to the admin mailbox"""
    template = """
    <html>
    <body>
        <p><strong>Name:</strong> {{ name|e }}</p>
        <p><strong>Email:</strong> {{ email|e }}</p>
        <p><strong>Message:</strong></p>
        <p>{{ message|e }}</p>
    </body>
    </html>
    """
    return send_email(
        email_to=settings.ADMIN_EMAIL or settings.EMAILS_FROM,
        subject=f"New Query from {name}",
        template_name=template,
        environment={"name": name, "email": email, "message": message},
    )

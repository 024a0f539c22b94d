from fastapi import status
from typing import Optional, Dict, Any

from app.utils.logger import get_logger

logger = get_logger("exceptions")


class BaseCustomException(Exception):
    """Base custom exception class"""
    def __init__(self, message: str, status_code: int = 500, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class AuthenticationError(BaseCustomException):
    """Raised when a session is missing or invalid on an endpoint that needs one"""
    def __init__(self, message: str = "Not authenticated", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_401_UNAUTHORIZED, details)


class ValidationError(BaseCustomException):
    """Raised when data validation fails"""
    def __init__(self, message: str = "Validation error", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_400_BAD_REQUEST, details)


class NotFoundError(BaseCustomException):
    """Raised when a resource is not found"""
    def __init__(self, message: str = "Resource not found", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_404_NOT_FOUND, details)


class DatabaseError(BaseCustomException):
    """Raised when database operations fail"""
    def __init__(self, message: str = "Database error", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR, details)


class EmailError(BaseCustomException):
    """Raised when email operations fail"""
    def __init__(self, message: str = "Email error", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR, details)


class TokenError(BaseCustomException):
    """Raised when an OTP or token cannot be accepted"""
    def __init__(self, message: str = "Token error", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_400_BAD_REQUEST, details)


class RateLimitError(BaseCustomException):
    """Raised when an attempt budget is exhausted"""
    def __init__(self, message: str = "Rate limit exceeded", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_429_TOO_MANY_REQUESTS, details)


class UpstreamError(BaseCustomException):
    """Raised when the upstream content API fails"""
    def __init__(self, message: str = "Upstream service error", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_502_BAD_GATEWAY, details)


def to_error_body(exc: BaseCustomException) -> Dict[str, Any]:
    """Client-facing error body; details stay in the server log"""
    return {"ok": False, "message": exc.message}


def handle_database_error(error: Exception, operation: str = "database operation") -> DatabaseError:
    """Handle database errors and return appropriate custom exception"""
    logger.error(f"Database error during {operation}: {str(error)}", exc_info=True)
    return DatabaseError(
        message="Server error",
        details={"operation": operation, "original_error": str(error)}
    )


def handle_email_error(error: Exception, operation: str = "email operation") -> EmailError:
    """Handle email errors and return appropriate custom exception"""
    logger.error(f"Email error during {operation}: {str(error)}", exc_info=True)
    return EmailError(
        message=f"Email error during {operation}",
        details={"operation": operation, "original_error": str(error)}
    )

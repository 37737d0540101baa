"""
Service Error Types

Base exceptions shared by every module's service layer. Routers convert
these into HTTP responses with the uniform ``{"error": message}`` body.
"""

from typing import NoReturn

from fastapi import HTTPException, status


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class ValidationError(ServiceError):
    """Raised when required input is missing or malformed."""

    def __init__(self, message: str, error_code: str = "VALIDATION_ERROR"):
        super().__init__(message=message, error_code=error_code, status_code=400)


class NotFoundError(ServiceError):
    """Raised when a referenced entity does not exist."""

    def __init__(self, message: str, error_code: str = "NOT_FOUND"):
        super().__init__(message=message, error_code=error_code, status_code=404)


def handle_service_error(e: ServiceError) -> NoReturn:
    """Convert a service error to an HTTPException."""
    raise HTTPException(status_code=e.status_code, detail=e.message) from e


def internal_error() -> HTTPException:
    """Generic 500. Driver and SQL details stay in the logs."""
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal server error",
    )

"""
User Errors

Raised by any service that references a user by id.
"""

from app.core.exceptions import NotFoundError


class UserNotFoundError(NotFoundError):
    def __init__(self):
        super().__init__(message="User not found", error_code="USER_NOT_FOUND")

"""
Users module - users, panel roles and country access grants.
"""

from app.modules.users.exceptions import UserNotFoundError
from app.modules.users.models import User, UserAdminRole, UserCountryAccess, UserRole
from app.modules.users.repository import UserRepository, is_employee_clause

__all__ = [
    "User",
    "UserAdminRole",
    "UserCountryAccess",
    "UserRole",
    "UserNotFoundError",
    "UserRepository",
    "is_employee_clause",
]

"""
User Repository

Read-only queries over users, panel roles and country access grants.
"""

import logging

from sqlalchemy import ColumnElement, and_, exists, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.users.models import User, UserAdminRole, UserCountryAccess, UserRole

logger = logging.getLogger(__name__)


def is_employee_clause(user_id_column=User.id) -> ColumnElement[bool]:
    """
    SQL condition that is true when the user is an employee.

    A user is an employee when ``users.role`` is "employee" (any case) or
    when a ``user_admin_roles`` row maps them to "employee". Every query that
    needs the employee capability goes through this clause.

    Args:
        user_id_column: Column holding the user id to test. The users table
            must be part of the enclosing query when ``users.role`` is used,
            so callers join ``User`` on this column.
    """
    mapped_role = exists().where(
        and_(
            UserAdminRole.user_id == user_id_column,
            func.lower(UserAdminRole.role) == UserRole.EMPLOYEE,
        )
    )
    return or_(func.lower(User.role) == UserRole.EMPLOYEE, mapped_role)


class UserRepository:
    """Repository for user database operations."""

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> User | None:
        """Get a user by exact email match."""
        result = await db.execute(select(User).where(User.email == email).limit(1))
        return result.scalar_one_or_none()

    @staticmethod
    async def exists(db: AsyncSession, user_id: int) -> bool:
        """Check whether a user id exists."""
        result = await db.execute(select(User.id).where(User.id == user_id).limit(1))
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def get_employee_ids_for_country(db: AsyncSession, country_id: int) -> list[int]:
        """
        Get ids of employees holding an access grant for a country.

        Args:
            db: Database session
            country_id: Country id

        Returns:
            Distinct employee user ids, ascending
        """
        result = await db.execute(
            select(UserCountryAccess.user_id)
            .join(User, User.id == UserCountryAccess.user_id)
            .where(
                UserCountryAccess.country_id == country_id,
                is_employee_clause(User.id),
            )
            .distinct()
            .order_by(UserCountryAccess.user_id)
        )
        return list(result.scalars().all())


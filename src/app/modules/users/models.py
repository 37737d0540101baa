"""
User Models

Users, panel role mappings and country access grants.

These tables are owned by admin user management; the application task and
lead conversation workflows only read them.
"""

from sqlalchemy import ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base
from app.modules.shared import BaseModel


class UserRole:
    """Known values of ``users.role`` and ``user_admin_roles.role``."""

    STUDENT = "student"
    EMPLOYEE = "employee"


class User(BaseModel):
    """
    Registered user.

    Students are the leads tracked by the CRM. Staff users carry a panel role
    either in ``role`` or through ``user_admin_roles``.
    """

    __tablename__ = "users"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), unique=True, index=True, nullable=True)
    phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    role: Mapped[str] = mapped_column(String(30), nullable=False, default=UserRole.STUDENT)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"


class UserAdminRole(Base):
    """Panel role mapping. A user may hold several panel roles."""

    __tablename__ = "user_admin_roles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    role: Mapped[str] = mapped_column(String(30), nullable=False)

    __table_args__ = (UniqueConstraint("user_id", "role", name="uq_user_admin_roles_user_role"),)


class UserCountryAccess(Base):
    """Access grant: the user may work applications for this country."""

    __tablename__ = "user_country_access"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    country_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("countries.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("user_id", "country_id", name="uq_user_country_access_user_country"),
        Index("ix_user_country_access_country_id", "country_id"),
    )

"""
Application Models

Student program applications and the per-employee task ledger that tracks
who is working each application.
"""

import enum
from datetime import datetime

from sqlalchemy import (
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base
from app.modules.shared import BaseModel

DEFAULT_APPLICATION_STATUS = "submitted"


class TaskStatus(str, enum.Enum):
    """Lifecycle status of an employee task."""

    UNDER_PROCESS = "under_process"
    COMPLETED = "completed"


class Application(BaseModel):
    """
    A student's submission for one program.

    ``country_id`` is copied from the program when the submitter does not
    provide it, and ``user_id`` is resolved by email when possible.
    Duplicate submissions for the same program and email are rejected by
    the unique index.
    """

    __tablename__ = "applications"

    program_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("programs.id", ondelete="CASCADE"), nullable=False
    )
    country_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("countries.id", ondelete="SET NULL"), nullable=True
    )
    user_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    applicant_name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    country_of_residence: Mapped[str | None] = mapped_column(String(120), nullable=True)
    statement: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Free text; managed by the admin review screens
    status: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        default=DEFAULT_APPLICATION_STATUS,
        server_default=DEFAULT_APPLICATION_STATUS,
    )

    __table_args__ = (
        Index("uq_applications_program_email", "program_id", "email", unique=True),
        Index("ix_applications_country_id", "country_id"),
        Index("ix_applications_user_id", "user_id"),
        Index("ix_applications_created_at", "created_at"),
    )


class ApplicationTask(Base):
    """
    One employee's task for one application.

    ``updated_at`` is the only input to aging classification; every status or
    notes update refreshes it.
    """

    __tablename__ = "application_tasks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    application_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False
    )
    employee_user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    task_status: Mapped[TaskStatus] = mapped_column(
        Enum(
            TaskStatus,
            name="task_status",
            values_callable=lambda statuses: [status.value for status in statuses],
        ),
        nullable=False,
        default=TaskStatus.UNDER_PROCESS,
        server_default=TaskStatus.UNDER_PROCESS.value,
    )
    task_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint(
            "application_id",
            "employee_user_id",
            name="uq_application_tasks_application_employee",
        ),
        Index("ix_application_tasks_employee_status", "employee_user_id", "task_status"),
    )

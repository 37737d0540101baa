"""
Applications Repository

Database operations for applications and the employee task ledger.

Design Principles:
- All queries are parameterized
- Writes that must be idempotent use PostgreSQL INSERT ... ON CONFLICT so a
  concurrent duplicate never produces a second row
- Single responsibility - no business rules beyond what a query expresses
- Timezone-aware datetime handling (UTC)
"""

from datetime import datetime
from typing import Any

from sqlalchemy import case, func, or_, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.engine import RowMapping
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from app.modules.applications.aging import TaskAgingStatus, aging_thresholds
from app.modules.applications.models import Application, ApplicationTask, TaskStatus
from app.modules.catalog.models import Country, Program
from app.modules.users.models import User, UserCountryAccess
from app.modules.users.repository import is_employee_clause

ADMIN_LIST_LIMIT = 100
EMPLOYEE_TASKS_LIMIT = 500
ANALYTICS_EMPLOYEE_LIMIT = 50
ANALYTICS_COUNTRY_LIMIT = 20
UNKNOWN_COUNTRY = "Unknown"


# ============================================
# Applications
# ============================================


async def get_by_id(db: AsyncSession, application_id: int) -> Application | None:
    """Get application by id."""
    return await db.get(Application, application_id)


async def find_existing_id(
    db: AsyncSession,
    program_id: int,
    email: str,
    user_id: int | None,
) -> int | None:
    """
    Find an earlier application for the same program by email or user.

    The user condition is only applied when a user id is known; a NULL
    user id never matches.
    """
    match = Application.email == email
    if user_id is not None:
        match = or_(match, Application.user_id == user_id)

    result = await db.execute(
        select(Application.id)
        .where(Application.program_id == program_id, match)
        .order_by(Application.id)
        .limit(1)
    )
    return result.scalar_one_or_none()


async def insert_application(db: AsyncSession, values: dict[str, Any]) -> int | None:
    """
    Insert an application unless (program_id, email) already exists.

    Returns:
        The new application id, or None when the unique index rejected the
        row (a concurrent duplicate won the race)
    """
    stmt = (
        insert(Application)
        .values(**values)
        .on_conflict_do_nothing(index_elements=[Application.program_id, Application.email])
        .returning(Application.id)
    )
    result = await db.execute(stmt)
    new_id = result.scalar_one_or_none()
    await db.commit()
    return new_id


async def get_applications_for_admin(
    db: AsyncSession, limit: int = ADMIN_LIST_LIMIT
) -> list[RowMapping]:
    """Newest applications with program and linked user names."""
    result = await db.execute(
        select(
            Application.id,
            Application.applicant_name,
            Application.email,
            Application.phone,
            Application.country_of_residence,
            Application.statement,
            Application.status,
            Application.created_at,
            Application.updated_at,
            Program.program_name,
            Program.university_name,
            User.name.label("user_name"),
            User.email.label("user_email"),
        )
        .outerjoin(Program, Program.id == Application.program_id)
        .outerjoin(User, User.id == Application.user_id)
        .order_by(Application.created_at.desc(), Application.id.desc())
        .limit(limit)
    )
    return list(result.mappings().all())


# ============================================
# Task ledger
# ============================================


async def create_tasks(
    db: AsyncSession,
    application_id: int,
    employee_user_ids: list[int],
) -> int:
    """
    Create under_process tasks for an application, skipping existing pairs.

    Safe to re-run: existing (application, employee) rows are left untouched.

    Returns:
        Number of rows actually inserted
    """
    if not employee_user_ids:
        return 0

    stmt = (
        insert(ApplicationTask)
        .values(
            [
                {
                    "application_id": application_id,
                    "employee_user_id": employee_user_id,
                    "task_status": TaskStatus.UNDER_PROCESS,
                    "task_notes": None,
                }
                for employee_user_id in employee_user_ids
            ]
        )
        .on_conflict_do_nothing(
            index_elements=[ApplicationTask.application_id, ApplicationTask.employee_user_id]
        )
        .returning(ApplicationTask.id)
    )
    result = await db.execute(stmt)
    inserted = len(result.scalars().all())
    await db.commit()
    return inserted


async def upsert_task(
    db: AsyncSession,
    application_id: int,
    employee_user_id: int,
    task_status: TaskStatus,
    task_notes: str | None,
) -> ApplicationTask:
    """
    Insert or update the task for (application, employee) in one statement.

    On conflict the status and notes are overwritten and ``updated_at`` is
    set to now, which restarts the aging clock.
    """
    stmt = insert(ApplicationTask).values(
        application_id=application_id,
        employee_user_id=employee_user_id,
        task_status=task_status,
        task_notes=task_notes,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[ApplicationTask.application_id, ApplicationTask.employee_user_id],
        set_={
            "task_status": stmt.excluded.task_status,
            "task_notes": stmt.excluded.task_notes,
            "updated_at": func.now(),
        },
    ).returning(ApplicationTask)

    result = await db.execute(stmt, execution_options={"populate_existing": True})
    task = result.scalar_one()
    await db.commit()
    return task


async def get_tasks_for_employee(
    db: AsyncSession,
    employee_user_id: int,
    limit: int = EMPLOYEE_TASKS_LIMIT,
) -> list[RowMapping]:
    """
    Applications in the employee's granted countries, with their task row.

    Visibility comes from the access grants, not from task rows: an
    application without a task for this employee is still returned with
    NULL task columns.
    """
    linked_user = aliased(User, name="linked_user")
    granted_countries = select(UserCountryAccess.country_id).where(
        UserCountryAccess.user_id == employee_user_id
    )

    result = await db.execute(
        select(
            Application.id,
            Application.applicant_name,
            Application.email,
            Application.phone,
            Application.status,
            Application.notes,
            Application.created_at,
            Application.country_id,
            Country.name.label("country_name"),
            Country.iso_code.label("country_iso_code"),
            Application.program_id,
            Program.program_name,
            Program.university_name,
            linked_user.id.label("linked_user_id"),
            linked_user.name.label("linked_user_name"),
            linked_user.email.label("linked_user_email"),
            linked_user.phone.label("linked_user_phone"),
            linked_user.city.label("linked_user_city"),
            ApplicationTask.task_status,
            ApplicationTask.task_notes,
            ApplicationTask.updated_at.label("task_updated_at"),
        )
        .outerjoin(Country, Country.id == Application.country_id)
        .outerjoin(Program, Program.id == Application.program_id)
        .outerjoin(linked_user, linked_user.id == Application.user_id)
        .outerjoin(
            ApplicationTask,
            (ApplicationTask.application_id == Application.id)
            & (ApplicationTask.employee_user_id == employee_user_id),
        )
        .where(Application.country_id.in_(granted_countries))
        .order_by(Application.created_at.desc(), Application.id.desc())
        .limit(limit)
    )
    return list(result.mappings().all())


# ============================================
# Analytics
# ============================================


def _aging_counts(now: datetime) -> tuple:
    """count() columns for the three aging buckets of ApplicationTask.updated_at."""
    on_time_after, critical_at_or_before = aging_thresholds(now)
    bucket = case(
        (ApplicationTask.updated_at > on_time_after, TaskAgingStatus.ON_TIME.value),
        (ApplicationTask.updated_at > critical_at_or_before, TaskAgingStatus.AGING.value),
        else_=TaskAgingStatus.CRITICAL.value,
    )
    return (
        func.count(case((bucket == TaskAgingStatus.ON_TIME.value, 1))).label("on_time"),
        func.count(case((bucket == TaskAgingStatus.AGING.value, 1))).label("aging"),
        func.count(case((bucket == TaskAgingStatus.CRITICAL.value, 1))).label("critical"),
    )


def _open_employee_tasks(*columns):
    """Select over under_process tasks owned by employees."""
    return (
        select(*columns)
        .select_from(ApplicationTask)
        .join(User, User.id == ApplicationTask.employee_user_id)
        .where(
            ApplicationTask.task_status == TaskStatus.UNDER_PROCESS,
            is_employee_clause(User.id),
        )
    )


async def get_employee_task_counts(
    db: AsyncSession,
    now: datetime,
    limit: int = ANALYTICS_EMPLOYEE_LIMIT,
) -> list[RowMapping]:
    """Open task counts per employee, busiest first."""
    task_count = func.count(ApplicationTask.id).label("task_count")
    stmt = (
        _open_employee_tasks(
            User.id.label("employee_user_id"),
            User.name.label("employee_name"),
            task_count,
            *_aging_counts(now),
        )
        .group_by(User.id, User.name)
        .order_by(task_count.desc(), User.name.asc())
        .limit(limit)
    )
    result = await db.execute(stmt)
    return list(result.mappings().all())


async def get_country_task_counts(
    db: AsyncSession,
    limit: int = ANALYTICS_COUNTRY_LIMIT,
) -> list[RowMapping]:
    """Open task counts per application country, busiest first."""
    country_name = func.coalesce(Country.name, UNKNOWN_COUNTRY).label("country_name")
    task_count = func.count(ApplicationTask.id).label("task_count")
    stmt = (
        _open_employee_tasks(country_name, task_count)
        .join(Application, Application.id == ApplicationTask.application_id)
        .outerjoin(Country, Country.id == Application.country_id)
        .group_by(country_name)
        .order_by(task_count.desc(), country_name.asc())
        .limit(limit)
    )
    result = await db.execute(stmt)
    return list(result.mappings().all())


async def get_task_aging_totals(db: AsyncSession, now: datetime) -> RowMapping:
    """Bucket counts and total across all open employee tasks."""
    stmt = _open_employee_tasks(
        func.count(ApplicationTask.id).label("total"),
        *_aging_counts(now),
    )
    result = await db.execute(stmt)
    return result.mappings().one()

"""
Applications Service Layer

Business logic for program applications and the employee task workflow.

This module implements:
1. Application Intake:
   - Normalise and validate the submission
   - Check the program, a given user and a given country exist
   - Resolve the linked user (by email) and the country (from the program)
   - Short-circuit duplicates for the same program and email/user
   - Fan out one under_process task per employee granted the country

2. Employee Tasks:
   - List applications visible through the employee's country grants,
     each with the employee's task row and its aging bucket
   - Upsert an employee's task status and notes

3. Task Analytics:
   - Open task counts per employee and per country
   - Global aging bucket totals

Fan-out runs after the application is committed and is best-effort: a
failure is logged and the application stands.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Literal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, ValidationError
from app.core.validators import blank_to_none, parse_positive_int, resolve_id
from app.modules.applications import repository
from app.modules.applications.aging import classify_task_aging
from app.modules.applications.models import DEFAULT_APPLICATION_STATUS, Application, TaskStatus
from app.modules.applications.schemas import (
    ApplicationCreate,
    ApplicationListItem,
    CountryTaskCount,
    EmployeeTaskCount,
    EmployeeTaskItem,
    TaskAgingSummary,
    TaskAnalyticsResponse,
    TaskResponse,
    TaskUpdateRequest,
)
from app.modules.catalog import repository as catalog_repository
from app.modules.catalog.models import Program
from app.modules.users.exceptions import UserNotFoundError
from app.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)


class MissingApplicationFieldsError(ValidationError):
    """Raised when programId, applicantName or email is missing."""

    def __init__(self):
        super().__init__(
            message="programId, applicantName and email are required",
            error_code="MISSING_APPLICATION_FIELDS",
        )


class InvalidTaskStatusError(ValidationError):
    """Raised when a task status is not one of the allowed values."""

    def __init__(self):
        allowed = ", ".join(status.value for status in TaskStatus)
        super().__init__(
            message=f"taskStatus must be one of: {allowed}",
            error_code="INVALID_TASK_STATUS",
        )


class ProgramNotFoundError(NotFoundError):
    def __init__(self):
        super().__init__(message="Program not found", error_code="PROGRAM_NOT_FOUND")


class CountryNotFoundError(NotFoundError):
    def __init__(self):
        super().__init__(message="Country not found", error_code="COUNTRY_NOT_FOUND")


class ApplicationNotFoundError(NotFoundError):
    """Raised when an application is not found."""

    def __init__(self, application_id: int | None = None):
        message = (
            f"Application {application_id} not found" if application_id else "Application not found"
        )
        super().__init__(message=message, error_code="APPLICATION_NOT_FOUND")


@dataclass
class SubmissionResult:
    """Outcome of an application submission."""

    status: Literal["created", "exists"]
    application_id: int
    application: Application | None = None


def normalize_email(email: str) -> str:
    return email.strip().lower()


def parse_task_status(value: object) -> TaskStatus:
    """Accept exactly "under_process" or "completed"."""
    if isinstance(value, TaskStatus):
        return value
    if isinstance(value, str):
        try:
            return TaskStatus(value)
        except ValueError:
            pass
    raise InvalidTaskStatusError()


# ============================================
# Intake
# ============================================


async def _resolve_user_id(db: AsyncSession, data: ApplicationCreate, email: str) -> int | None:
    user_id = resolve_id(data.user_id) or resolve_id(data.user)
    if user_id is not None:
        if not await UserRepository.exists(db, user_id):
            raise UserNotFoundError()
        return user_id

    user = await UserRepository.get_by_email(db, email)
    return user.id if user else None


async def _resolve_country_id(
    db: AsyncSession, data: ApplicationCreate, program: Program
) -> int | None:
    country_id = parse_positive_int(data.country_id)
    if country_id is None:
        return program.country_id
    if not await catalog_repository.country_exists(db, country_id):
        raise CountryNotFoundError()
    return country_id


async def _fan_out_tasks(db: AsyncSession, application_id: int, country_id: int) -> int:
    """
    Create tasks for every employee granted the country.

    Returns the number of new task rows. Failures are logged, rolled back
    and reported as 0; the committed application is not affected.
    """
    try:
        employee_ids = await UserRepository.get_employee_ids_for_country(db, country_id)
        created = await repository.create_tasks(db, application_id, employee_ids)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Task fan-out failed for application {application_id}: {e}")
        return 0

    logger.info(
        f"Fan-out for application {application_id}: country={country_id}, "
        f"employees={len(employee_ids)}, created={created}"
    )
    return created


async def submit_application(db: AsyncSession, data: ApplicationCreate) -> SubmissionResult:
    """
    Submit a student application for a program.

    Steps, in order:
    1. Validate required fields and normalise the email
    2. Load the program
    3. Resolve the user id (given and existing, else by email match, else None)
    4. Resolve the country id (given and existing, else the program's country)
    5. Return "exists" if the program already has an application for this
       email or user
    6. Insert the application
    7. Fan out tasks to employees granted the country
    8. Re-fetch and return the stored application

    Args:
        db: Database session
        data: Submission body

    Returns:
        SubmissionResult with status "created" (and the application) or
        "exists" (and the earlier application's id)

    Raises:
        MissingApplicationFieldsError: If programId, applicantName or email
            is missing or invalid. Raised before any statement runs.
        ProgramNotFoundError: If the program does not exist
        UserNotFoundError: If a given user id does not exist
        CountryNotFoundError: If a given country id does not exist

    All lookups run before any write.
    """
    program_id = resolve_id(data.program_id) or resolve_id(data.program)
    applicant_name = blank_to_none(data.applicant_name)
    raw_email = blank_to_none(data.email)

    if program_id is None or applicant_name is None or raw_email is None:
        raise MissingApplicationFieldsError()

    email = normalize_email(raw_email)

    program = await catalog_repository.get_program(db, program_id)
    if program is None:
        raise ProgramNotFoundError()

    user_id = await _resolve_user_id(db, data, email)
    country_id = await _resolve_country_id(db, data, program)

    logger.info(f"Processing application submission for program {program_id}")

    existing_id = await repository.find_existing_id(db, program_id, email, user_id)
    if existing_id is not None:
        logger.info(f"Application already exists for program {program_id}: id={existing_id}")
        return SubmissionResult(status="exists", application_id=existing_id)

    new_id = await repository.insert_application(
        db,
        {
            "program_id": program_id,
            "country_id": country_id,
            "user_id": user_id,
            "applicant_name": applicant_name,
            "email": email,
            "phone": data.phone,
            "country_of_residence": data.country_of_residence,
            "statement": data.statement,
            "notes": data.notes,
            "status": DEFAULT_APPLICATION_STATUS,
        },
    )

    if new_id is None:
        # Lost a race with an identical submission; report the winner
        existing_id = await repository.find_existing_id(db, program_id, email, user_id)
        logger.warning(f"Concurrent duplicate application for program {program_id}")
        if existing_id is None:
            raise ApplicationNotFoundError()
        return SubmissionResult(status="exists", application_id=existing_id)

    logger.info(f"Created application {new_id} for program {program_id}")

    if country_id is not None:
        await _fan_out_tasks(db, new_id, country_id)

    application = await repository.get_by_id(db, new_id)
    if application is None:
        raise ApplicationNotFoundError(new_id)

    return SubmissionResult(status="created", application_id=new_id, application=application)


async def list_applications(db: AsyncSession) -> list[ApplicationListItem]:
    """Newest applications for the admin table."""
    rows = await repository.get_applications_for_admin(db)
    return [ApplicationListItem.model_validate(dict(row)) for row in rows]


# ============================================
# Employee tasks
# ============================================


def _require_positive_id(value: object, name: str) -> int:
    parsed = parse_positive_int(value)
    if parsed is None:
        raise ValidationError(f"Invalid {name}")
    return parsed


async def list_employee_tasks(
    db: AsyncSession,
    employee_user_id: object,
    now: datetime | None = None,
) -> list[EmployeeTaskItem]:
    """
    List applications an employee may work, with aging buckets.

    Raises:
        ValidationError: If employee_user_id is not a positive integer
    """
    user_id = _require_positive_id(employee_user_id, "userId")
    current = now or datetime.now(UTC)

    rows = await repository.get_tasks_for_employee(db, user_id)

    tasks = []
    for row in rows:
        values = dict(row)
        task_status = values.get("task_status") or TaskStatus.UNDER_PROCESS
        values["task_status"] = task_status
        values["task_aging_status"] = classify_task_aging(
            task_status,
            values.get("task_updated_at"),
            values.get("created_at"),
            now=current,
        )
        tasks.append(EmployeeTaskItem.model_validate(values))

    logger.info(f"Listed {len(tasks)} tasks for employee {user_id}")
    return tasks


async def update_employee_task(
    db: AsyncSession,
    application_id: object,
    data: TaskUpdateRequest,
) -> TaskResponse:
    """
    Set an employee's status and notes for an application.

    Creates the task row if it does not exist yet. Every call refreshes
    ``updated_at``.

    Raises:
        ValidationError: If an id is not a positive integer
        InvalidTaskStatusError: If taskStatus is not allowed
        ApplicationNotFoundError: If the application does not exist
    """
    app_id = _require_positive_id(application_id, "applicationId")
    employee_id = _require_positive_id(data.employee_user_id, "employeeUserId")
    task_status = parse_task_status(data.task_status)
    task_notes = blank_to_none(data.task_notes)

    if await repository.get_by_id(db, app_id) is None:
        raise ApplicationNotFoundError(app_id)

    task = await repository.upsert_task(db, app_id, employee_id, task_status, task_notes)
    logger.info(
        f"Task {task.id} updated: application={app_id}, employee={employee_id}, "
        f"status={task_status.value}"
    )
    return TaskResponse.model_validate(task)


# ============================================
# Analytics
# ============================================


async def get_task_analytics(
    db: AsyncSession, now: datetime | None = None
) -> TaskAnalyticsResponse:
    """Open task workload per employee and per country, plus aging totals."""
    current = now or datetime.now(UTC)

    employee_rows = await repository.get_employee_task_counts(db, current)
    country_rows = await repository.get_country_task_counts(db)
    totals = await repository.get_task_aging_totals(db, current)

    analytics = TaskAnalyticsResponse(
        employee_tasks=[EmployeeTaskCount.model_validate(dict(row)) for row in employee_rows],
        country_tasks=[CountryTaskCount.model_validate(dict(row)) for row in country_rows],
        task_aging=TaskAgingSummary.model_validate(dict(totals)),
    )
    logger.info(f"Task analytics: total_open={analytics.task_aging.total}")
    return analytics

"""
Application Schemas

Pydantic schemas for request validation and response serialization.
JSON uses camelCase keys to match the web and admin frontends.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import Field

from app.modules.applications.aging import TaskAgingStatus
from app.modules.applications.models import TaskStatus
from app.modules.shared.schemas import CamelModel


# ============================================
# Intake
# ============================================


class ApplicationCreate(CamelModel):
    """
    Request body for POST /applications.

    Ids are loosely typed: the program and user can arrive as
    ``programId``, as a scalar ``program`` or as a nested ``program`` object.
    Required fields are checked by the service so a missing field is a 400
    with a single message rather than a field-by-field report.
    """

    program_id: Any = None
    program: Any = None
    user_id: Any = None
    user: Any = None
    applicant_name: str | None = Field(None, max_length=200)
    email: str | None = Field(None, max_length=255)
    phone: str | None = Field(None, max_length=30)
    country_of_residence: str | None = Field(None, max_length=120)
    country_id: Any = None
    statement: str | None = None
    notes: str | None = None


class ApplicationResponse(CamelModel):
    """Full application projection returned after creation."""

    id: int
    program_id: int
    country_id: int | None = None
    user_id: int | None = None
    applicant_name: str
    email: str
    phone: str | None = None
    country_of_residence: str | None = None
    statement: str | None = None
    notes: str | None = None
    status: str
    created_at: datetime
    updated_at: datetime


class ApplicationExistsResponse(CamelModel):
    """Returned with HTTP 200 when the program/email pair was already submitted."""

    status: Literal["exists"] = "exists"
    application_id: int


class ApplicationListItem(CamelModel):
    """Row of the admin applications table."""

    id: int
    applicant_name: str
    email: str
    phone: str | None = None
    country_of_residence: str | None = None
    statement: str | None = None
    status: str
    created_at: datetime
    updated_at: datetime
    program_name: str | None = None
    university_name: str | None = None
    user_name: str | None = None
    user_email: str | None = None


# ============================================
# Employee tasks
# ============================================


class EmployeeTaskItem(CamelModel):
    """An application visible to an employee, merged with their task row."""

    id: int
    applicant_name: str
    email: str
    phone: str | None = None
    status: str
    notes: str | None = None
    created_at: datetime
    country_id: int | None = None
    country_name: str | None = None
    country_iso_code: str | None = None
    program_id: int | None = None
    program_name: str | None = None
    university_name: str | None = None
    linked_user_id: int | None = None
    linked_user_name: str | None = None
    linked_user_email: str | None = None
    linked_user_phone: str | None = None
    linked_user_city: str | None = None
    task_status: TaskStatus = TaskStatus.UNDER_PROCESS
    task_notes: str | None = None
    task_updated_at: datetime | None = None
    task_aging_status: TaskAgingStatus | None = None


class TaskUpdateRequest(CamelModel):
    """Request body for PUT /applications/employee-tasks/{applicationId}."""

    employee_user_id: Any = None
    task_status: Any = None
    task_notes: str | None = None


class TaskResponse(CamelModel):
    """Persisted task row."""

    id: int
    application_id: int
    employee_user_id: int
    task_status: TaskStatus
    task_notes: str | None = None
    created_at: datetime
    updated_at: datetime


# ============================================
# Analytics
# ============================================


class AgingCounts(CamelModel):
    on_time: int = 0
    aging: int = 0
    critical: int = 0


class EmployeeTaskCount(AgingCounts):
    employee_user_id: int
    employee_name: str
    task_count: int


class CountryTaskCount(CamelModel):
    country_name: str
    task_count: int


class TaskAgingSummary(AgingCounts):
    total: int = 0


class TaskAnalyticsResponse(CamelModel):
    """Workload summary for the admin dashboard."""

    employee_tasks: list[EmployeeTaskCount]
    country_tasks: list[CountryTaskCount]
    task_aging: TaskAgingSummary

"""
Applications Admin Router

Endpoints used by the admin console and the employee task screens.

Endpoints:
- GET /applications - Latest applications for the admin table
- GET /applications/employee-tasks?userId= - Tasks visible to an employee
- PUT /applications/employee-tasks/{applicationId} - Update an employee's task
- GET /applications/task-analytics - Workload and aging summary

Employees are identified by id. Task visibility is driven by the employee's
country access grants.
"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import ServiceError, handle_service_error, internal_error
from app.modules.applications import service
from app.modules.applications.schemas import (
    ApplicationListItem,
    EmployeeTaskItem,
    TaskAnalyticsResponse,
    TaskResponse,
    TaskUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "",
    response_model=list[ApplicationListItem],
    summary="List Applications",
    description="Latest 100 applications, newest first, with program and linked user names.",
)
async def list_applications(db: AsyncSession = Depends(get_db)) -> list[ApplicationListItem]:
    try:
        return await service.list_applications(db)
    except ServiceError as e:
        handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error listing applications: {e}")
        raise internal_error() from e


@router.get(
    "/employee-tasks",
    response_model=list[EmployeeTaskItem],
    summary="List Employee Tasks",
    description="""
Applications in every country the employee has access to, newest first,
each merged with the employee's own task row.

**Aging (`taskAgingStatus`):** measured from the task's last update, or from
the application's creation when there is no task row yet.
- `on_time`: under 24 hours
- `aging`: 24 hours to under 6 days
- `critical`: 6 days or more
- `null`: task is completed
""",
    responses={400: {"description": "Invalid userId"}},
)
async def list_employee_tasks(
    user_id: str | None = Query(None, alias="userId", description="Employee user id"),
    db: AsyncSession = Depends(get_db),
) -> list[EmployeeTaskItem]:
    try:
        return await service.list_employee_tasks(db, user_id)
    except ServiceError as e:
        handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error listing employee tasks: {e}")
        raise internal_error() from e


@router.put(
    "/employee-tasks/{application_id}",
    response_model=TaskResponse,
    summary="Update Employee Task",
    description="""
Set the employee's task status (`under_process` or `completed`) and notes for
an application. Creates the task if it does not exist. Every update resets
the task's aging clock.
""",
    responses={
        400: {"description": "Invalid ids or task status"},
        404: {"description": "Application not found"},
    },
)
async def update_employee_task(
    application_id: str,
    data: TaskUpdateRequest,
    db: AsyncSession = Depends(get_db),
) -> TaskResponse:
    try:
        return await service.update_employee_task(db, application_id, data)
    except ServiceError as e:
        logger.warning(f"Task update rejected for application {application_id}: {e.message}")
        handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error updating task for application {application_id}: {e}")
        raise internal_error() from e


@router.get(
    "/task-analytics",
    response_model=TaskAnalyticsResponse,
    summary="Task Analytics",
    description="""
Open (`under_process`) task workload for the admin dashboard.

- `employeeTasks`: top 50 employees by open tasks, with aging buckets
- `countryTasks`: top 20 countries by open tasks ("Unknown" when unset)
- `taskAging`: bucket counts and total across all open tasks
""",
)
async def get_task_analytics(db: AsyncSession = Depends(get_db)) -> TaskAnalyticsResponse:
    try:
        return await service.get_task_analytics(db)
    except ServiceError as e:
        handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error computing task analytics: {e}")
        raise internal_error() from e

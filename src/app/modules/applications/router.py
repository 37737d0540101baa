"""
Applications Router

Public endpoint for submitting a program application from the web app.

Endpoints:
- POST /applications - Submit an application (idempotent per program + email)

Security:
- Rate limited per client IP (Redis, in-memory fallback)
- Input validation in the service layer before any write
"""

import logging

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.core.exceptions import ServiceError, handle_service_error, internal_error
from app.core.rate_limit import enforce_rate_limit
from app.modules.applications import service
from app.modules.applications.schemas import (
    ApplicationCreate,
    ApplicationExistsResponse,
    ApplicationResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=ApplicationResponse | ApplicationExistsResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit Program Application",
    description="""
Submit a student's application for a program.

`programId` may also be sent as `program` (scalar or object with `id`), and
`userId` as `user`. When `userId` is omitted the user is matched by email;
when `countryId` is omitted the program's country is used.

**Duplicate Handling:**
If the program already has an application for this email (or user), no row
is created and the response is `200 {"status": "exists", "applicationId": n}`.

**Task Fan-Out:**
A new application in a country creates one `under_process` task for every
employee with access to that country.
""",
    responses={
        200: {"description": "Application already exists", "model": ApplicationExistsResponse},
        201: {"description": "Application created", "model": ApplicationResponse},
        400: {
            "description": "Missing required fields",
            "content": {
                "application/json": {
                    "example": {"error": "programId, applicantName and email are required"}
                }
            },
        },
        429: {"description": "Too many submissions from this client"},
    },
)
async def submit_application(
    data: ApplicationCreate,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
) -> ApplicationResponse | ApplicationExistsResponse:
    await enforce_rate_limit(
        request,
        "applications:submit",
        settings.application_submit_rate_limit,
        settings.application_submit_rate_window_seconds,
    )

    try:
        result = await service.submit_application(db, data)
    except ServiceError as e:
        logger.warning(f"Application submission rejected: {e.message}")
        handle_service_error(e)
    except Exception as e:
        logger.exception(f"Error submitting application: {e}")
        raise internal_error() from e

    if result.status == "exists":
        response.status_code = status.HTTP_200_OK
        return ApplicationExistsResponse(application_id=result.application_id)

    return ApplicationResponse.model_validate(result.application)

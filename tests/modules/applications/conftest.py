"""
Fixtures for applications tests.
"""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.modules.applications.models import Application, ApplicationTask, TaskStatus
from app.modules.applications.schemas import ApplicationCreate

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=UTC)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.get = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def sample_application_create():
    """Submission as sent by the web app."""
    return ApplicationCreate(
        program_id=12,
        applicant_name="Amina Bello",
        email="  Amina.Bello@Example.com ",
        phone="+2348012345678",
        country_of_residence="Nigeria",
        statement="I want to study data science.",
    )


@pytest.fixture
def sample_application_model():
    """Stored application row."""
    return Application(
        id=41,
        program_id=12,
        country_id=3,
        user_id=None,
        applicant_name="Amina Bello",
        email="amina.bello@example.com",
        phone="+2348012345678",
        country_of_residence="Nigeria",
        statement="I want to study data science.",
        notes=None,
        status="submitted",
        created_at=NOW,
        updated_at=NOW,
    )


@pytest.fixture
def sample_task_model():
    """Stored task row after an update."""
    return ApplicationTask(
        id=7,
        application_id=41,
        employee_user_id=5,
        task_status=TaskStatus.COMPLETED,
        task_notes="Documents verified",
        created_at=NOW - timedelta(days=2),
        updated_at=NOW,
    )


@pytest.fixture
def make_task_row():
    """Build a row as returned by get_tasks_for_employee."""

    def _make(application_id=41, **overrides):
        row = {
            "id": application_id,
            "applicant_name": "Amina Bello",
            "email": "amina.bello@example.com",
            "phone": None,
            "status": "submitted",
            "notes": None,
            "created_at": NOW - timedelta(hours=2),
            "country_id": 3,
            "country_name": "Canada",
            "country_iso_code": "CA",
            "program_id": 12,
            "program_name": "MSc Data Science",
            "university_name": "University of Toronto",
            "linked_user_id": None,
            "linked_user_name": None,
            "linked_user_email": None,
            "linked_user_phone": None,
            "linked_user_city": None,
            "task_status": None,
            "task_notes": None,
            "task_updated_at": None,
        }
        row.update(overrides)
        return row

    return _make

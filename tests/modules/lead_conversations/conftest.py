"""
Fixtures for lead conversation tests.
"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=UTC)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def make_conversation_row():
    """Build a row as returned by the repository's joined select."""

    def _make(user_id=8, **overrides):
        row = {
            "id": 3,
            "user_id": user_id,
            "looking_for": "MBA in Canada",
            "conversation_status": "contacted",
            "notes": "Call back after exams",
            "reminder_at": datetime(2026, 3, 10, 15, 0, tzinfo=UTC),
            "reminder_done": False,
            "last_contacted_at": datetime(2026, 3, 9, 10, 0, tzinfo=UTC),
            "created_at": datetime(2026, 3, 1, 9, 0, tzinfo=UTC),
            "updated_at": NOW,
            "user_name": "Tunde Okafor",
            "user_email": "tunde@example.com",
            "user_phone": "+2348000000000",
            "user_city": "Lagos",
        }
        row.update(overrides)
        return row

    return _make

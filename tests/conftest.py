"""
Shared fixtures: an HTTP client over the FastAPI app with the database
session overridden. The lifespan is not run, so no Redis or PostgreSQL
connection is attempted.
"""

import pytest
from fastapi.testclient import TestClient

from app.core.database import get_db
from app.core.rate_limit import _memory_store
from app.main import app as fastapi_app


@pytest.fixture
def client(mock_db):
    async def override_get_db():
        yield mock_db

    fastapi_app.dependency_overrides[get_db] = override_get_db
    yield TestClient(fastapi_app, raise_server_exceptions=False)
    fastapi_app.dependency_overrides.clear()
    _memory_store.clear()

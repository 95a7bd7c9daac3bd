"""Pytest configuration and fixtures."""
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from mongomock_motor import AsyncMongoMockClient

from app.main import app
from app.config import settings


@pytest.fixture
def user_id():
    """Owner of the goals created in a test."""
    return "user123"


@pytest.fixture
def auth_headers(user_id):
    """Bearer headers for ``user_id``."""
    from app.utils.auth import create_access_token

    return {"Authorization": f"Bearer {create_access_token(user_id=user_id)}"}


@pytest.fixture
def db():
    """
    Fresh in-memory database.

    Behaves like a Motor database, so services run against it unchanged.
    """
    client = AsyncMongoMockClient()
    return client[f"{settings.mongodb_db_name}_test"]


@pytest_asyncio.fixture
async def app_client(db):
    """
    Create a test client bound to the in-memory database.

    This fixture:
    - Swaps the application database for the test database
    - Yields an async HTTP client for testing
    - Restores the original database afterwards
    """
    from app.database import database

    original_db = database.db
    database.db = db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client

    database.db = original_db

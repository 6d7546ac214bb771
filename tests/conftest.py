"""Pytest configuration and fixtures."""
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from app.database import get_database
from app.main import app


@pytest.fixture
def mock_entries():
    """
    Mock time_entries collection.

    Async methods (find_one, insert_one, ...) are AsyncMocks; find() is
    synchronous and returns a cursor whose to_list is awaited, as in Motor.
    """
    collection = AsyncMock()
    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.to_list = AsyncMock(return_value=[])
    collection.find = MagicMock(return_value=cursor)
    return collection


@pytest.fixture
def mock_db(mock_entries):
    """Mock database returning the mock collection for any name."""
    db = MagicMock()
    db.__getitem__.return_value = mock_entries
    return db


@pytest_asyncio.fixture
async def app_client(mock_db):
    """
    Async HTTP client against the app with the database dependency overridden.

    The lifespan (real MongoDB connection) is not run by ASGITransport.
    """
    app.dependency_overrides[get_database] = lambda: mock_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client

    app.dependency_overrides.clear()

"""
Todo Service — Test Configuration (conftest.py)
================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Points the app at a throwaway SQLite file (aiosqlite) before any
       todoapp module is imported, then builds/drops the schema per test.

Fixture Hierarchy:
    ├── mock_db_session: AsyncMock session for service unit tests (no DB)
    ├── sample_todo:     A transient Todo model instance
    ├── database:        Creates all tables, drops them afterwards
    ├── db_session:      Real AsyncSession against the test database
    └── test_client:     HTTPX AsyncClient talking to the ASGI app
"""

import os
import tempfile
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

# Must be set BEFORE any todoapp import: settings and the engine are built at import
_test_dir = tempfile.mkdtemp(prefix="todoapp_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_test_dir}/test.db"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from todoapp.database import Base, async_session_factory, engine  # noqa: E402
from todoapp.models.todo import Todo  # noqa: E402


@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        async def test_delete(mock_db_session):
            mock_db_session.get.return_value = todo
            await todo_service.delete_todo(mock_db_session, todo.uid)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.get = AsyncMock()
    session.delete = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def sample_todo():
    return Todo(
        uid="7d1f6a0e-2b55-4c3e-9a51-0d5f1c0b9e11",
        created_at=datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc),
        text="Buy milk",
        done=False,
    )


@pytest_asyncio.fixture
async def database():
    """Creates the schema for one test and drops it afterwards."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(database):
    async with async_session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def test_client(database):
    """
    HTTPX AsyncClient routed straight into the FastAPI app.

    Redirects are not followed, so tests see the 303 itself.

    Usage:
        async def test_list(test_client):
            response = await test_client.get("/todos")
            assert response.status_code == 200
    """
    from todoapp.main import app
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

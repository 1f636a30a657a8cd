"""
Test fixtures for the OTP Bank API test suite.

This module provides shared fixtures used across all test files:

  - database: Fresh in-memory SQLite Database for each test
  - file_database: File-backed SQLite Database, for tests that need several
    real connections at once (concurrency)
  - db_session: An AsyncSession on `database`, for service-level tests
  - client: Async HTTP test client for an app wired to `database`
  - registered_user / logged_in_user: "alice" registered (and logged in)
    through the real endpoints

Key design decisions:
  - The app is built with create_app(database=...), so every request hits
    the test database through the same get_db dependency as production.
  - httpx's ASGITransport doesn't run the lifespan, so the reaper is not
    running during endpoint tests; reaper tests drive it directly.
"""

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from otpbank.config import Settings
from otpbank.database import Database
from otpbank.main import create_app


# In-memory SQLite for fast, isolated tests
TEST_DATABASE_URL = "sqlite+aiosqlite://"

USERNAME = "alice"
PASSWORD = "pw1"


@pytest_asyncio.fixture
async def database():
    """Create a fresh in-memory database with all tables for each test."""
    db = Database(TEST_DATABASE_URL)
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def file_database(tmp_path):
    """A database in a temporary file, so each session gets its own connection."""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'bank.db'}")
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def db_session(database):
    """Provide an async session bound to the test database."""
    async with database.session() as session:
        yield session


def _make_client(database: Database) -> AsyncClient:
    app = create_app(Settings(), database=database)
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest_asyncio.fixture
async def client(database):
    """Async HTTP test client with the in-memory test database injected."""
    async with _make_client(database) as ac:
        yield ac


@pytest_asyncio.fixture
async def file_client(file_database):
    """Async HTTP test client backed by the file database."""
    async with _make_client(file_database) as ac:
        yield ac


@pytest.fixture
def fixed_otp(monkeypatch):
    """Make every login issue the code "123456"."""
    monkeypatch.setattr(
        "otpbank.services.session_service.generate_otp",
        lambda length=6: "123456",
    )
    return "123456"


@pytest_asyncio.fixture
async def registered_user(client):
    """Register alice via the real endpoint and return her credentials."""
    response = await client.post(
        "/users",
        json={"username": USERNAME, "password": PASSWORD},
    )
    assert response.status_code == 201, f"Register failed: {response.text}"
    return {"username": USERNAME, "password": PASSWORD}


@pytest_asyncio.fixture
async def logged_in_user(client, registered_user):
    """Log alice in and return her credentials plus the issued otp."""
    response = await client.post("/login", json=registered_user)
    assert response.status_code == 200, f"Login failed: {response.text}"
    return {**registered_user, "otp": response.json()["otp"]}

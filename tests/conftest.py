"""
Pytest configuration and shared fixtures.

Tests run against an in-memory SQLite database (aiosqlite) built from the
SQLModel metadata, so no database server is needed. Redis publishing and
outbound email are replaced with mocks.
"""

import os
from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock, patch

# Settings are read at import time; provide test values before importing the app
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("TASK_QUEUE_TYPE", "background")

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

import survivor_hub.models  # noqa: F401
from survivor_hub.config import Role, settings
from survivor_hub.core.database import get_db
from survivor_hub.core.security import create_access_token, get_password_hash
from survivor_hub.main import app as main_app
from survivor_hub.models.user import Profiles, UserPreferences, UserRoles, Users

TEST_PASSWORD = "TestPassword123!"


@pytest.fixture(scope="function")
async def engine():
    """
    Fresh in-memory database per test.

    StaticPool keeps the single connection alive so every session sees the
    same database.
    """
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest.fixture(scope="function")
async def db_session(engine) -> AsyncGenerator[AsyncSession, None]:
    """Database session for a single test."""
    async_session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_maker() as session:
        yield session
        await session.rollback()


@pytest.fixture(autouse=True)
def evidence_root(tmp_path, monkeypatch):
    """Store evidence under a per-test temporary directory."""
    root = tmp_path / "evidence"
    root.mkdir()
    monkeypatch.setattr(settings, "EVIDENCE_STORAGE_PATH", str(root))
    return root


@pytest.fixture(autouse=True)
def report_events():
    """Capture report change events instead of publishing to Redis."""
    with patch(
        "survivor_hub.services.reports.publish_report_event",
        new_callable=AsyncMock,
        return_value=True,
    ) as mock_publish:
        yield mock_publish


@pytest.fixture(scope="function")
def app(db_session: AsyncSession) -> FastAPI:
    """
    FastAPI app with the database dependency pointed at the test session.
    """

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    main_app.dependency_overrides[get_db] = override_get_db

    yield main_app

    main_app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """
    Async HTTP client for API tests.

    Usage:
        async def test_endpoint(client):
            response = await client.get("/api/v1/resources")
            assert response.status_code == 200
    """
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# =============================================================================
# Test Data Helpers
# =============================================================================


async def create_user(
    db_session: AsyncSession,
    email: str = "user@example.com",
    admin: bool = False,
    display_name: str | None = None,
) -> Users:
    """Create an account with profile, preferences and roles."""
    user = Users(email=email, password=get_password_hash(TEST_PASSWORD))
    db_session.add(user)
    await db_session.flush()

    assert user.user_id is not None
    db_session.add(Profiles(user_id=user.user_id, display_name=display_name))
    db_session.add(UserPreferences(user_id=user.user_id))
    db_session.add(UserRoles(user_id=user.user_id, role=Role.USER.value))
    if admin:
        db_session.add(UserRoles(user_id=user.user_id, role=Role.ADMIN.value))

    await db_session.commit()
    await db_session.refresh(user)
    return user


def auth_headers(user: Users) -> dict[str, str]:
    """Bearer header for a user."""
    assert user.user_id is not None
    return {"Authorization": f"Bearer {create_access_token(user.user_id)}"}


@pytest.fixture
async def regular_user(db_session: AsyncSession) -> Users:
    return await create_user(db_session, email="member@example.com", display_name="Member")


@pytest.fixture
async def admin_user(db_session: AsyncSession) -> Users:
    return await create_user(db_session, email="admin@example.com", admin=True)


@pytest.fixture
def user_headers(regular_user: Users) -> dict[str, str]:
    return auth_headers(regular_user)


@pytest.fixture
def admin_headers(admin_user: Users) -> dict[str, str]:
    return auth_headers(admin_user)

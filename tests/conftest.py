"""
Pytest configuration and fixtures for dashsnap tests.
"""
import os
from collections.abc import AsyncGenerator, Callable
from datetime import UTC, datetime

# Settings are read from the environment at import time of the app module
os.environ["APP_SECRET_KEY"] = "test-secret-key-for-encryption-32chars"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SEARCH_BACKEND"] = "memory"
os.environ["APP_ENV"] = "development"

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from dashsnap.config import Settings
from dashsnap.domain.snapshots.factory import SnapshotFactory
from dashsnap.domain.snapshots.models import CreateSnapshotCommand
from dashsnap.domain.snapshots.store import SnapshotStore
from dashsnap.infrastructure.database.connection import build_session_factory, get_session
from dashsnap.infrastructure.database.models import Base
from dashsnap.infrastructure.database.repositories.snapshot import SnapshotRepository
from dashsnap.search.memory import InMemorySearchIndex

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_SECRET_KEY = "test-secret-key-for-encryption-32chars"

# Fixed "current time" used by stores under test
NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)

ORG_ID = 1
OTHER_ORG_ID = 2
USER_ID = 10


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings backed by in-memory SQLite."""
    return Settings(
        _env_file=None,
        app_env="development",
        app_secret_key=TEST_SECRET_KEY,
        database_url=TEST_DATABASE_URL,
        search_backend="memory",
    )


@pytest.fixture
async def async_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create an in-memory SQLite engine with the schema created."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return build_session_factory(async_engine)


@pytest.fixture
async def async_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create async test database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def search_index() -> InMemorySearchIndex:
    return InMemorySearchIndex()


@pytest.fixture
def store(async_session: AsyncSession, search_index: InMemorySearchIndex) -> SnapshotStore:
    """Snapshot store over the test session with a frozen clock."""
    return SnapshotStore(
        repository=SnapshotRepository(async_session),
        transaction=async_session,
        search_index=search_index,
        factory=SnapshotFactory(),
        clock=lambda: NOW,
    )


@pytest.fixture
def make_command() -> Callable[..., CreateSnapshotCommand]:
    """Build create commands with sensible defaults."""

    def _make(**overrides: object) -> CreateSnapshotCommand:
        fields: dict[str, object] = {
            "org_id": ORG_ID,
            "user_id": USER_ID,
            "dashboard": {"title": "Service Overview", "panels": [{"id": 1}]},
            "name": "Service overview",
        }
        fields.update(overrides)
        return CreateSnapshotCommand(**fields)  # type: ignore[arg-type]

    return _make


@pytest.fixture
def app(
    session_factory: async_sessionmaker[AsyncSession],
    search_index: InMemorySearchIndex,
) -> FastAPI:
    """Create test FastAPI application wired to the test database."""
    from dashsnap.main import create_app

    app = create_app()

    async def override_get_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.state.search_index = search_index
    return app


@pytest.fixture
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client


@pytest.fixture
def auth_headers() -> dict[str, str]:
    """Headers the gateway forwards for an authenticated caller."""
    return {"X-Org-Id": str(ORG_ID), "X-User-Id": str(USER_ID)}


@pytest.fixture
def now() -> datetime:
    """The store clock's current time."""
    return NOW

"""Pytest fixtures for CivicWatch backend tests."""

import os
from collections.abc import AsyncGenerator, Awaitable, Callable
from unittest.mock import AsyncMock

# Rate limiting would trip across the suite; settings are cached on first import.
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from civicwatch.database import Base, get_db
from civicwatch.main import app
from civicwatch.models import Report, User
from civicwatch.routers.reports import get_media_service
from civicwatch.services.media import MediaUploadService
from civicwatch.services.storage import StorageClient, StorageClientError


# Test database URL - in-memory SQLite shared by every connection of one engine
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def async_engine():
    """Create async engine with the schema in place."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(async_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async_session = async_sessionmaker(
        async_engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def users(db_session: AsyncSession) -> list[User]:
    """Two citizens with zeroed counters."""
    seeded = [
        User(id="u1", full_name="Asha Rao", email="asha@example.com"),
        User(id="u2", full_name="Ben Okafor", email="ben@example.com"),
    ]
    db_session.add_all(seeded)
    await db_session.flush()
    return seeded


@pytest.fixture
def counters(db_session: AsyncSession) -> Callable[[str], Awaitable[tuple[int, int]]]:
    """Read (total_reports, resolved_reports) straight from the users table."""

    async def read(user_id: str) -> tuple[int, int]:
        result = await db_session.execute(
            text("SELECT total_reports, resolved_reports FROM users WHERE id = :id"),
            {"id": user_id},
        )
        row = result.one()
        return row.total_reports, row.resolved_reports

    return read


@pytest.fixture
def make_report(db_session: AsyncSession) -> Callable[..., Awaitable[Report]]:
    """Insert a report row directly, bypassing the service and the counters."""

    async def insert(**fields) -> Report:
        fields.setdefault("user_id", "u1")
        fields.setdefault("title", "Broken streetlight")
        report = Report(**fields)
        db_session.add(report)
        await db_session.flush()
        return report

    return insert


@pytest.fixture
def stub_storage() -> StorageClient:
    """Storage client whose uploads succeed unless the filename starts with 'broken'."""
    storage = StorageClient(
        cloud_name="test", api_key="test_key", api_secret="test_secret", max_retries=1
    )

    async def fake_upload(data: bytes, filename: str | None = None) -> str:
        if filename and filename.startswith("broken"):
            raise StorageClientError("Upload rejected: corrupt file")
        return f"https://res.cloudinary.com/test/{filename or 'file'}"

    storage.upload = AsyncMock(side_effect=fake_upload)
    return storage


@pytest_asyncio.fixture
async def client(
    db_session: AsyncSession, stub_storage: StorageClient
) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client with database and storage overrides."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_media_service] = lambda: MediaUploadService(
        storage=stub_storage
    )

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    app.dependency_overrides.clear()


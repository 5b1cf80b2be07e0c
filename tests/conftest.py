# ABOUTME: Pytest fixtures and configuration for Continued Education tests.
# ABOUTME: Provides mock settings, an in-memory subscriber database, and sample data.

from collections.abc import AsyncGenerator
from datetime import UTC, datetime

import pytest
from pydantic import SecretStr
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from continued_education.config import Settings
from continued_education.contacts.database import DatabaseContactStore
from continued_education.db.session import init_db, make_session_factory
from continued_education.models import PostRef, Subscriber


@pytest.fixture
def mock_settings() -> Settings:
    """Create mock settings for testing."""
    return Settings(
        _env_file=None,
        site_name="Continued Education",
        app_base_url="https://blog.example.com/",
        resend_api_key=SecretStr("re_test_key"),
        resend_audience_id=None,
        sender_email="noreply@example.com",
        sender_name="Test Blog",
        contact_backend="database",
        database_url="sqlite+aiosqlite:///:memory:",
        dispatch_batch_size=10,
        dispatch_batch_delay=0,
        admin_api_key=None,
        csv_date_format="%Y-%m-%d",
        log_level="DEBUG",
    )


@pytest.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine]:
    """In-memory SQLite engine shared across sessions, with tables created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return make_session_factory(db_engine)


@pytest.fixture
def db_store(session_factory: async_sessionmaker[AsyncSession]) -> DatabaseContactStore:
    """Database contact store over the in-memory engine."""
    return DatabaseContactStore(session_factory)


@pytest.fixture
def sample_post() -> PostRef:
    """Create a sample published post."""
    return PostRef(
        id="kyoto-in-autumn",
        title="Kyoto in Autumn",
        excerpt="Maple leaves & temple gardens.",
    )


@pytest.fixture
def make_subscriber():
    """Factory for Subscriber values that never touch a store."""
    return _make_subscriber


def _make_subscriber(
    email: str = "jane@example.com",
    *,
    id: str | None = None,
    first_name: str | None = "Jane",
    last_name: str | None = "Doe",
    is_active: bool = True,
    token: str | None = "a1b2c3d4e5f6",
    created_at: datetime | None = None,
) -> Subscriber:
    """Build a Subscriber value without touching a store."""
    return Subscriber(
        id=id or f"id-{email}",
        email=email,
        first_name=first_name,
        last_name=last_name,
        is_active=is_active,
        created_at=created_at or datetime(2026, 3, 14, 9, 30, tzinfo=UTC),
        unsubscribe_token=token,
    )

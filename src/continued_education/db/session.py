# ABOUTME: Async database session management for SQLAlchemy.
# ABOUTME: Provides engine, session factory, and table initialization for the subscriber store.

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from continued_education.config import Settings, get_settings
from continued_education.db.models import Base

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

_engine: "AsyncEngine | None" = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def create_engine_for(settings: Settings) -> "AsyncEngine":
    """Build an async engine for the configured database URL."""
    kwargs: dict[str, Any] = {"echo": settings.log_level == "DEBUG"}
    if not settings.database_url.startswith("sqlite"):
        kwargs["pool_size"] = settings.db_pool_size
        kwargs["max_overflow"] = settings.db_pool_max_overflow
    return create_async_engine(settings.database_url, **kwargs)


def get_engine() -> "AsyncEngine":
    """Get or create the async database engine."""
    global _engine
    if _engine is None:
        _engine = create_engine_for(get_settings())
    return _engine


def make_session_factory(engine: "AsyncEngine") -> async_sessionmaker[AsyncSession]:
    """Session factory with the options the contact store relies on."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get or create the session factory."""
    global _session_factory
    if _session_factory is None:
        _session_factory = make_session_factory(get_engine())
    return _session_factory


@asynccontextmanager
async def get_session(
    factory: async_sessionmaker[AsyncSession] | None = None,
) -> AsyncGenerator[AsyncSession]:
    """Context manager for database sessions with automatic commit/rollback.

    Usage:
        async with get_session() as session:
            result = await session.execute(query)
    """
    session = (factory or get_session_factory())()
    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()


async def init_db(engine: "AsyncEngine | None" = None) -> None:
    """Initialize database tables (creates all tables if they don't exist).

    Note: In production, use Alembic migrations instead.
    """
    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Close the database engine and release connections."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None

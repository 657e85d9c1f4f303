"""
GrantIQ Database Connection Setup
Provides the async database engine and session dependencies.
"""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from backend.core.config import settings
from backend.models import Base

# =============================================================================
# Async Engine and Session (for FastAPI)
# =============================================================================

_engine_options: dict[str, Any] = {"echo": settings.debug}
if not settings.async_database_url.startswith("sqlite"):
    # SQLite uses a static pool and rejects sizing arguments
    _engine_options.update(
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,
        pool_recycle=3600,
    )

async_engine = create_async_engine(settings.async_database_url, **_engine_options)

AsyncSessionLocal = async_sessionmaker(
    bind=async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency for database sessions.

    Yields an async database session, committing on success and rolling
    back if the request handler raises.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# =============================================================================
# Database Initialization
# =============================================================================


async def init_db() -> None:
    """
    Create all tables.

    Note: In production, use Alembic migrations instead.
    """
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Dispose of pooled connections during application shutdown."""
    await async_engine.dispose()


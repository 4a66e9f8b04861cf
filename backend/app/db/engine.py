"""Database engine and session factory."""

from collections.abc import AsyncGenerator
from functools import lru_cache

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine

from backend.app.config import PLACEHOLDER_POSTGRES_URL, Settings, get_settings


def resolve_database_url(settings: Settings) -> str:
    """Return the configured database URL.

    Raises:
        ValueError: If DATABASE_URL is unset, empty or still the placeholder.
    """
    database_url = settings.database_url or settings.postgres_url

    if not database_url or database_url == PLACEHOLDER_POSTGRES_URL:
        raise ValueError(
            "DATABASE_URL must be set to a valid connection string. "
            "Please configure the database_url setting."
        )

    return database_url


def create_async_engine_from_settings(settings: Settings) -> AsyncEngine:
    """Create async SQLAlchemy engine from settings.

    Raises:
        ValueError: If DATABASE_URL is unset or empty.
    """
    database_url = resolve_database_url(settings)

    # Convert postgresql:// to postgresql+asyncpg://
    if database_url.startswith("postgresql://"):
        database_url = database_url.replace("postgresql://", "postgresql+asyncpg://", 1)

    return create_async_engine(database_url, pool_pre_ping=True, echo=False)


@lru_cache
def get_async_engine() -> AsyncEngine:
    """Get the process-wide async engine (owns the connection pool)."""
    return create_async_engine_from_settings(get_settings())


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for async database session.

    Yields:
        AsyncSession instance
    """
    async with AsyncSession(get_async_engine(), expire_on_commit=False) as session:
        yield session

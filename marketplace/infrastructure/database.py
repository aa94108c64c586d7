"""Database configuration and session management.

Provides async SQLAlchemy engine and session factory builders used by
the composition root.
"""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from marketplace.infrastructure.config import Settings

# Base class for models
Base = declarative_base()


def create_engine(settings: Settings) -> AsyncEngine:
    """Create the async engine.

    Args:
        settings: Application settings.

    Returns:
        AsyncEngine bound to ``settings.database_url``.
    """
    options: dict = {"echo": settings.debug}
    if not settings.database_url.startswith("sqlite"):
        options["pool_pre_ping"] = True
    return create_async_engine(settings.database_url, **options)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create a session factory bound to an engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def create_tables(engine: AsyncEngine) -> None:
    """Create every table known to the models.

    Used for local SQLite setups and tests; deployments run migrations.
    """
    from marketplace.infrastructure import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

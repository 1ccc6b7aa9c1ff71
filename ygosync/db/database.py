"""
Database engine and session management.

The engine is built lazily from settings so that importing this module
does not require DATABASE_URL to be set.
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from ygosync.config import Settings
from ygosync.models.db import Base


def create_engine(settings: Settings) -> AsyncEngine:
    """Create an async engine for the configured database."""
    options: dict[str, object] = {"echo": settings.debug, "pool_pre_ping": True}
    if not settings.database_url.startswith("sqlite"):
        options["pool_size"] = settings.db_pool_size
    return create_async_engine(settings.database_url, **options)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to an engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    """
    Initialize database tables.

    Creates ygo_cards and sync_watermarks if they do not exist.
    Existing tables are left untouched.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_db(engine: AsyncEngine) -> None:
    """
    Drop all database tables.

    Removes ygo_cards and sync_watermarks along with all synced data.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

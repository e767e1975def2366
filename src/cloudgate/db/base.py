"""Database connection and session management."""

from typing import Any

from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from cloudgate.config import settings

# JSONB on PostgreSQL, plain JSON elsewhere
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """SQLAlchemy declarative base."""

    pass


def engine_options(database_url: str, debug: bool = False) -> dict[str, Any]:
    """Return create_async_engine keyword arguments suited to the backend."""
    options: dict[str, Any] = {"echo": debug}
    if database_url.startswith("sqlite"):
        if ":memory:" in database_url:
            # One shared connection, otherwise every checkout sees an empty db
            options["poolclass"] = StaticPool
            options["connect_args"] = {"check_same_thread": False}
        return options
    options.update(pool_pre_ping=True, pool_size=20, max_overflow=10)
    return options


# Create async engine
engine = create_async_engine(
    settings.database_url,
    **engine_options(settings.database_url, settings.debug),
)

# Create async session factory
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def init_db() -> None:
    """Initialize database tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Close database connections."""
    await engine.dispose()

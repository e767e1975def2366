"""
Pytest fixtures for CloudGate tests.
"""

import os

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Ensure test config is set before importing cloudgate modules.
os.environ.setdefault("CLOUDGATE_ALLOW_INSECURE_DEV", "true")
os.environ.setdefault("CLOUDGATE_ENV", "development")
os.environ.setdefault("CLOUDGATE_EXTERNAL_URL", "http://api.example.com")
os.environ.setdefault(
    "CLOUDGATE_DATABASE_URL",
    os.getenv("CLOUDGATE_TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:"),
)

from cloudgate.config import settings
from cloudgate.db import base as db_base
from cloudgate.db.base import Base, engine_options
from cloudgate.db.repositories import (
    AppRepository,
    OrganizationRepository,
    RoleRepository,
    SpaceRepository,
)
import cloudgate.db.tables  # noqa: F401
from cloudgate.models import RoleMembership, RoleType, UserAuditInfo


def _ensure_test_database_url(database_url: str) -> None:
    if ":memory:" not in database_url and "test" not in database_url:
        raise RuntimeError(
            "Refusing to run CloudGate tests against a non-test database. "
            "Set CLOUDGATE_TEST_DATABASE_URL to a dedicated test database."
        )


@pytest_asyncio.fixture
async def engine():
    """Create a fresh schema and wire the engine into cloudgate.db.base."""
    _ensure_test_database_url(settings.database_url)
    engine = create_async_engine(
        settings.database_url,
        **engine_options(settings.database_url, settings.debug),
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    # Override global engine/session factory for dependency injection.
    original_engine = db_base.engine
    original_factory = db_base.async_session_factory
    db_base.engine = engine
    db_base.async_session_factory = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    yield engine

    db_base.engine = original_engine
    db_base.async_session_factory = original_factory
    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine):
    """Provide a database session per test."""
    async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with async_session() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def client(session):
    """Async test client with overridden dependencies."""
    from cloudgate.api.deps import get_db_session
    from cloudgate.main import app

    async def override_get_db_session():
        yield session

    app.dependency_overrides[get_db_session] = override_get_db_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# ============================================================================
# World fixtures: org -> space -> app, plus users with roles
# ============================================================================


@pytest_asyncio.fixture
async def org(session):
    return await OrganizationRepository(session).create("acme")


@pytest_asyncio.fixture
async def space(session, org):
    return await SpaceRepository(session).create(org.guid, "payments-dev")


@pytest_asyncio.fixture
async def app_model(session, space):
    return await AppRepository(session).create(space, "checkout", droplet_guid="droplet-1")


@pytest.fixture
def developer_info():
    return UserAuditInfo(
        user_guid="user-dev",
        user_email="dev@example.com",
        user_name="dev",
    )


@pytest_asyncio.fixture
async def developer(session, space, developer_info):
    """A space developer in ``space``."""
    await RoleRepository(session).add(
        RoleMembership(
            user_guid=developer_info.user_guid,
            role=RoleType.SPACE_DEVELOPER,
            space_guid=space.guid,
        )
    )
    return developer_info


@pytest_asyncio.fixture
async def org_manager(session, org):
    """An organization manager of ``org``."""
    manager = UserAuditInfo(
        user_guid="user-orgmgr",
        user_email="boss@example.com",
        user_name="boss",
    )
    await RoleRepository(session).add(
        RoleMembership(
            user_guid=manager.user_guid,
            role=RoleType.ORGANIZATION_MANAGER,
            organization_guid=org.guid,
        )
    )
    return manager

"""
Pytest fixtures for the test suite.

Provides:
- test_engine: isolated in-memory SQLite database with FK enforcement
- test_db: async session on that database
- test_client: HTTP client wired to the test database
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from tasktags.api.dependencies import get_color_assigner, get_db
from tasktags.core.database import configure_sqlite
from tasktags.main import app, limiter
from tasktags.models import Base
from tasktags.services import HashColorAssigner

# Test database URL (SQLite in-memory)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def test_engine():
    """
    Async engine for the test database (SQLite in-memory).

    StaticPool keeps a single connection, which an in-memory database needs
    (otherwise every connection sees an empty database). Tables are
    recreated for every test.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    configure_sqlite(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def test_db(test_engine):
    """
    Async session on the test database.

    Every test gets a clean database; leftovers are rolled back.
    """
    TestSessionLocal = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def test_client(test_engine):
    """
    HTTP client for API tests.

    Uses the test database instead of the configured one, the default hash
    palette regardless of local config, and no rate limiting.
    """
    TestSessionLocal = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with TestSessionLocal() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    def override_get_color_assigner():
        return HashColorAssigner()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_color_assigner] = override_get_color_assigner
    limiter.enabled = False

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
    limiter.enabled = True


# Pytest configuration
@pytest.fixture(scope="session")
def anyio_backend():
    """Use asyncio for all async tests."""
    return "asyncio"

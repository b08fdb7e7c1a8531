"""Pytest configuration and fixtures for jwt-oracle tests.

Database handling:
- TEST_DATABASE_URL is used when set (e.g. postgresql+asyncpg://...)
- Otherwise, if testcontainers is installed and Docker is available, a
  PostgreSQL container is started for the session
- Otherwise each test gets its own SQLite file through aiosqlite
"""

import os
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

# Set test environment variables before importing jwt_oracle modules
os.environ.setdefault("JWT_ORACLE_TABLE_NAME", "JWT_ORACLE")

TEST_TABLE_NAME = "JWT_ORACLE_TEST"
TEST_SECRET = "shhh-this-is-a-test-secret-of-32-bytes"


# --- Database URL resolution ---

_container = None
_database_url: str | None = None
_resolved = False


def _try_testcontainers() -> str | None:
    """Try to start PostgreSQL using testcontainers.

    Returns database URL if successful, None otherwise.
    """
    try:
        from testcontainers.postgres import PostgresContainer
    except ImportError:
        return None

    global _container
    try:
        _container = PostgresContainer(
            image="postgres:15-alpine",
            username="test",
            password="test",
            dbname="jwt_oracle_test",
        )
        _container.start()
        url = _container.get_connection_url()
        async_url = url.replace("postgresql+psycopg2://", "postgresql+asyncpg://")
        return async_url.replace("postgresql://", "postgresql+asyncpg://")
    except Exception as e:
        # Docker not available or other error
        import warnings

        warnings.warn(f"Testcontainers not available: {e}", stacklevel=2)
        if _container:
            try:
                _container.stop()
            except Exception:
                pass
            _container = None
        return None


def _get_database_url() -> str | None:
    """Shared database URL, or None to use a per-test SQLite file."""
    global _database_url, _resolved
    if _resolved:
        return _database_url

    _resolved = True
    _database_url = os.environ.get("TEST_DATABASE_URL") or _try_testcontainers()
    return _database_url


def pytest_sessionfinish(session, exitstatus):
    """Clean up testcontainers when tests finish."""
    global _container
    if _container:
        try:
            _container.stop()
        except Exception:
            pass
        _container = None


# --- Database Fixtures ---


@pytest_asyncio.fixture(scope="function")
async def db_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Create an engine with the revocation table created, dropped after the test."""
    from jwt_oracle.core import Base
    from jwt_oracle.models import revocation_table

    url = _get_database_url() or f"sqlite+aiosqlite:///{tmp_path / 'jwt_oracle.db'}"
    engine = create_async_engine(url, poolclass=NullPool, echo=False)

    revocation_table(TEST_TABLE_NAME)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_maker(db_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def sql_store(session_maker):
    from jwt_oracle.services.revocation_store import SQLAlchemyRevocationStore

    return SQLAlchemyRevocationStore(session_maker, TEST_TABLE_NAME)


@pytest.fixture
def memory_store():
    from jwt_oracle.services.memory_store import InMemoryRevocationStore

    return InMemoryRevocationStore()


@pytest.fixture
def manager_factory(memory_store):
    """Factory for TokenManager instances over the in-memory store."""
    from jwt_oracle.services.token_manager import TokenManager

    def _create_manager(store=None, **kwargs) -> TokenManager:
        kwargs.setdefault("secret_or_private_key", TEST_SECRET)
        kwargs.setdefault("algorithm", "HS256")
        return TokenManager(store if store is not None else memory_store, **kwargs)

    return _create_manager


@pytest.fixture
def payload() -> dict:
    return {
        "sub": "1234567890",
        "name": "John Doe",
        "admin": True,
        "jti": "jti",
    }

"""jwt-oracle Database Configuration - Async SQLAlchemy."""

from functools import lru_cache

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from jwt_oracle.core.config import Settings, settings
from jwt_oracle.core.logging import get_logger

logger = get_logger("database")

# Base class whose metadata holds the revocation tables
Base = declarative_base()


def create_engine_from_settings(config: Settings) -> AsyncEngine:
    """Create an async engine with the configured connection pool.

    Pool settings come from the environment:
    - DB_POOL_SIZE: Connections kept in the pool (default: 20)
    - DB_MAX_OVERFLOW: Extra connections allowed under load (default: 20)
    - DB_POOL_TIMEOUT: Seconds to wait for a connection (default: 30)
    - DB_POOL_RECYCLE: Recycle connections after this many seconds (default: 1800)
    """
    return create_async_engine(
        config.database_url,
        pool_size=config.db_pool_size,
        max_overflow=config.db_max_overflow,
        pool_timeout=config.db_pool_timeout,
        pool_recycle=config.db_pool_recycle,
        pool_pre_ping=True,  # Verify connection before use
        # Only echo SQL when debug is explicitly enabled
        echo=config.debug and config.log_level == "DEBUG",
    )


@lru_cache
def get_engine() -> AsyncEngine:
    """Get the process-wide engine, created on first use."""
    return create_engine_from_settings(settings)


@lru_cache
def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """Get the session factory bound to the process-wide engine."""
    return async_sessionmaker(
        get_engine(),
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def check_db_connection(
    session_maker: async_sessionmaker[AsyncSession] | None = None,
) -> bool:
    """Check if database is reachable."""
    maker = session_maker or get_session_maker()
    try:
        async with maker() as session:
            await session.execute(text("SELECT 1"))
            return True
    except (OSError, ConnectionError) as e:
        # Expected network/connection errors
        logger.debug(f"Database connection check failed: {e}")
        return False
    except Exception as e:
        logger.warning(f"Unexpected error checking database connection: {e}")
        return False

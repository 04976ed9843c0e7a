"""Database connection management.

Provides async database connection using SQLAlchemy with asyncpg.

## Configuration

Database connection is configured via environment variables:
- DATABASE_URL: Full PostgreSQL connection string
- DATABASE_POOL_SIZE: Connection pool size (default: 5)
- DATABASE_MAX_OVERFLOW: Max overflow connections (default: 10)

## Usage

```python
from weather_portal.database import get_db, init_db

# Initialize on startup
await init_db()

# Use in request handlers
async with get_db() as session:
    user = await session.get(User, user_id)
```
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import (
    AsyncConnection,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from weather_portal.config import get_settings
from weather_portal.database.models import Base

logger = logging.getLogger(__name__)

# Global engine and session factory
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def _engine_options(database_url: str) -> dict:
    settings = get_settings()
    options: dict = {"echo": settings.database_echo}
    # SQLite (tests, local demo) has no connection pool to size
    if not database_url.startswith("sqlite"):
        options.update(
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_pre_ping=True,  # Verify connections before use
        )
    return options


async def init_db(engine: AsyncEngine | None = None) -> None:
    """Initialize the database connection.

    Creates the async engine and session factory. Should be called
    once on application startup. An existing engine may be passed in
    (tests share one in-memory SQLite engine this way).
    """
    global _engine, _session_factory

    if engine is None:
        settings = get_settings()
        logger.info("Initializing database connection")
        engine = create_async_engine(
            settings.database_url, **_engine_options(settings.database_url)
        )

    _engine = engine
    _session_factory = async_sessionmaker(
        _engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    logger.info("Database connection initialized")


async def close_db() -> None:
    """Close the database connection.

    Should be called on application shutdown.
    """
    global _engine, _session_factory

    if _engine:
        logger.info("Closing database connection")
        await _engine.dispose()
        _engine = None
        _session_factory = None


async def create_tables() -> None:
    """Create all database tables.

    For development/testing only. Use migrations in production.
    """
    if _engine is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")

    async with _engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Database tables created")


async def table_exists(connection: AsyncConnection, table_name: str) -> bool:
    """Check whether a table has been created in the connected database."""
    return await connection.run_sync(
        lambda sync_conn: inspect(sync_conn).has_table(table_name)
    )


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the session factory, for components that open their own sessions."""
    if _session_factory is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return _session_factory


@asynccontextmanager
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get a database session.

    Use as an async context manager:
    ```python
    async with get_db() as session:
        # Use session
        await session.commit()
    ```

    The session is automatically closed when the context exits.
    Transactions are not automatically committed - call commit() explicitly.
    """
    session = get_session_factory()()
    try:
        yield session
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions.

    Usage:
    ```python
    @app.get("/users/premium-status")
    async def premium_status(
        userId: str,
        db: AsyncSession = Depends(get_db_session)
    ):
        ...
    ```
    """
    async with get_db() as session:
        yield session

"""
Database initialization and connection management.

This module provides functions for:
1. Creating the async engine and session factory
2. Creating the placement tables
3. Disposing of the engine on shutdown
"""

from typing import Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from cefr_backend.common.exceptions import DatabaseError
from cefr_backend.common.logger import app_logger
from cefr_backend.database.base import metadata
from cefr_backend.database import models  # noqa: F401  (registers tables on metadata)

logger = app_logger.getChild("database.init_db")

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker] = None


def get_engine() -> AsyncEngine:
    """Get the global async engine instance."""
    if _engine is None:
        raise RuntimeError("Database engine not initialized. Call initialize_database() first.")
    return _engine


def get_session_factory() -> async_sessionmaker:
    """Get the global session factory."""
    if _session_factory is None:
        raise RuntimeError("Database engine not initialized. Call initialize_database() first.")
    return _session_factory


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """
    Create an async engine for ``database_url``.

    In-memory SQLite databases share one connection so every session sees
    the same tables.
    """
    kwargs = {"echo": echo}
    if database_url.startswith("sqlite") and ":memory:" in database_url:
        kwargs.update({
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
        })
    elif not database_url.startswith("sqlite"):
        kwargs.update({"pool_pre_ping": True, "pool_recycle": 300})
    return create_async_engine(database_url, **kwargs)


async def create_tables(engine: AsyncEngine) -> None:
    """Create all placement tables that do not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)


async def initialize_database(database_url: str, echo: bool = False) -> AsyncEngine:
    """
    Initialize the async database engine and session factory.

    Args:
        database_url: Database connection URL
        echo: Whether to echo SQL statements

    Returns:
        AsyncEngine instance

    Raises:
        DatabaseError: If the database cannot be reached or prepared
    """
    global _engine, _session_factory

    logger.info(f"Initializing database with URL: {database_url[:10]}...")
    try:
        _engine = build_engine(database_url, echo=echo)
        _session_factory = async_sessionmaker(_engine, class_=AsyncSession, expire_on_commit=False)

        async with _engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

        await create_tables(_engine)
    except Exception as e:
        logger.error(f"Failed to initialize database: {str(e)}")
        raise DatabaseError("initialization failed", e)

    logger.info("Database engine initialized successfully")
    return _engine


async def close_database() -> None:
    """Close the database engine and all connections."""
    global _engine, _session_factory

    if _engine:
        await _engine.dispose()
        _engine = None
        _session_factory = None
        logger.info("Database engine closed successfully")

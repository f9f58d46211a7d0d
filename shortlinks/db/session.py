"""
Database Session Management with Connection Pooling

This module builds async engines and session factories for the relational
repository. Nothing here is module-level state: the application creates one
engine at startup (see ``shortlinks.repositories.factory``) and passes the
session factory to the repositories that need it.

Key Features:
- Database abstraction: the adapter owns all dialect-specific configuration
- Connection pooling: configured per database type
- Schema bootstrap for development and tests (production uses Alembic)
"""

import logging

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlmodel import SQLModel

from shortlinks.core.setting import StorageBackend
from shortlinks.db import models  # noqa: F401  (registers tables on SQLModel.metadata)
from shortlinks.db.interface import DatabaseAdapter
from shortlinks.db.mysql_adapter import MySQLAdapter
from shortlinks.db.postgres_adapter import PostgreSQLAdapter
from shortlinks.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


def get_database_adapter(
    backend: StorageBackend,
    database_url: str = "",
    connect_timeout: float = 5.0,
    pool_size: int = 10,
) -> DatabaseAdapter:
    """
    Factory function to get the database adapter for a relational backend.

    Args:
        backend: One of the relational StorageBackend values
        database_url: Connection string (used to detect in-memory SQLite)
        connect_timeout: Seconds to wait for a connection
        pool_size: Pooled connections for server databases

    Returns:
        DatabaseAdapter instance

    Raises:
        ValueError: If the backend is not relational
    """
    if backend == StorageBackend.MYSQL:
        return MySQLAdapter(connect_timeout=connect_timeout, pool_size=pool_size)
    if backend == StorageBackend.POSTGRES:
        return PostgreSQLAdapter(connect_timeout=connect_timeout, pool_size=pool_size)
    if backend == StorageBackend.SQLITE:
        in_memory = database_url.rstrip("/").endswith(":memory:") or database_url in (
            "sqlite+aiosqlite://",
            "sqlite+aiosqlite:///",
        )
        return SQLiteAdapter(connect_timeout=connect_timeout, in_memory=in_memory)
    raise ValueError(f"No database adapter for backend: {backend}")


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Create the async session factory used by the SQL repositories.

    expire_on_commit=False keeps loaded rows readable after the transaction
    commits, so repositories can convert them to entities.
    """
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def create_schema(engine: AsyncEngine) -> None:
    """Create all tables (development and tests; production runs Alembic)."""
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info("Database schema created")


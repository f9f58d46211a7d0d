"""
Database Abstraction Interface

This module defines the dialect adapter contract that lets one relational
repository run on MySQL, PostgreSQL, or SQLite without changing the rest of
the codebase.

The canonical schema and every query live in the SQL repository. An adapter
only supplies what genuinely differs between engines:
- driver engine configuration (pool class, connection arguments, timeouts)
- connection setup hooks (e.g. SQLite foreign key enforcement)
- the "insert unless the row already exists" statement
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from sqlalchemy import Table
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import Pool
from sqlalchemy.sql.dml import Insert


class DatabaseAdapter(ABC):
    """
    Abstract base class for database adapters.

    To add a new database backend:
    1. Create a new class inheriting from DatabaseAdapter
    2. Implement all abstract methods
    3. Register it in get_database_adapter()
    """

    def __init__(self, connect_timeout: float = 5.0, pool_size: int = 10):
        """
        Args:
            connect_timeout: Seconds to wait for a new connection
            pool_size: Number of pooled connections (server databases only)
        """
        self.connect_timeout = connect_timeout
        self.pool_size = pool_size

    def create_engine(self, database_url: str, **kwargs) -> AsyncEngine:
        """
        Create and configure the async database engine.

        Args:
            database_url: Connection string for the database
            **kwargs: Additional engine options (merged with adapter defaults)

        Returns:
            Configured AsyncEngine instance
        """
        engine_kwargs = self.get_engine_kwargs()
        engine_kwargs.update(kwargs)

        pool_class = self.get_pool_class()
        if pool_class is not None:
            engine_kwargs["poolclass"] = pool_class

        engine = create_async_engine(
            database_url,
            connect_args=self.get_connect_args(),
            **engine_kwargs
        )
        self.on_engine_created(engine)
        return engine

    def on_engine_created(self, engine: AsyncEngine) -> None:
        """Hook for per-connection setup. No-op by default."""

    @abstractmethod
    def get_pool_class(self) -> Optional[type[Pool]]:
        """
        Get the connection pool class for this database type.

        Returns:
            Pool class (e.g., NullPool for SQLite) or None to use default
        """

    @abstractmethod
    def get_connect_args(self) -> dict[str, Any]:
        """Get driver connection arguments specific to this database type."""

    @abstractmethod
    def get_engine_kwargs(self) -> dict[str, Any]:
        """Get additional engine configuration specific to this database type."""

    @abstractmethod
    def insert_ignore(self, table: Table) -> Insert:
        """
        Build an INSERT that silently skips rows violating a unique key.

        Used for idempotent association inserts: concurrent attaches of the
        same (url, category) pair must not fail.
        """

    @abstractmethod
    def get_dialect_name(self) -> str:
        """
        Get the SQLAlchemy dialect name for this database.

        Returns:
            Dialect name (e.g., 'sqlite', 'postgresql', 'mysql')
        """

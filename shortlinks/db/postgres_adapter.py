"""
PostgreSQL Database Adapter

This module implements the DatabaseAdapter interface for PostgreSQL
through the asyncpg driver (``postgresql+asyncpg://``).

Key characteristics:
- Server-based, pooled connections
- Row-level locking for atomic counter updates
- Native aware timestamps (TIMESTAMP WITH TIME ZONE)
"""

from typing import Any, Optional

from sqlalchemy import Table
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.sql.dml import Insert

from shortlinks.db.interface import DatabaseAdapter


class PostgreSQLAdapter(DatabaseAdapter):
    """PostgreSQL database adapter implementation."""

    def get_pool_class(self) -> Optional[type]:
        """Use SQLAlchemy's default async queue pool."""
        return None

    def get_connect_args(self) -> dict[str, Any]:
        """
        Get asyncpg connection arguments.

        ``timeout`` bounds connection establishment; ``command_timeout`` is
        asyncpg's per-statement limit.
        """
        return {
            "timeout": self.connect_timeout,
            "command_timeout": self.connect_timeout,
        }

    def get_engine_kwargs(self) -> dict[str, Any]:
        return {
            "echo": False,
            "pool_size": self.pool_size,
            "pool_timeout": self.connect_timeout,
            "pool_pre_ping": True,
        }

    def insert_ignore(self, table: Table) -> Insert:
        """INSERT ... ON CONFLICT DO NOTHING."""
        return pg_insert(table).on_conflict_do_nothing()

    def get_dialect_name(self) -> str:
        return "postgresql"

"""
MySQL Database Adapter

This module implements the DatabaseAdapter interface for MySQL (InnoDB)
through the aiomysql driver (``mysql+aiomysql://``).

Key characteristics:
- Server-based, pooled connections
- Row-level locking: UPDATE ... SET access_count = access_count + 1 holds
  the row lock until commit, so concurrent increments serialize
- Connections are recycled before MySQL's wait_timeout drops them
"""

from typing import Any, Optional

from sqlalchemy import Table
from sqlalchemy.dialects.mysql import insert as mysql_insert
from sqlalchemy.sql.dml import Insert

from shortlinks.db.interface import DatabaseAdapter


class MySQLAdapter(DatabaseAdapter):
    """MySQL database adapter implementation."""

    def get_pool_class(self) -> Optional[type]:
        """Use SQLAlchemy's default async queue pool."""
        return None

    def get_connect_args(self) -> dict[str, Any]:
        """
        Get aiomysql connection arguments.

        utf8mb4 is required for full Unicode in URLs and category names.
        """
        return {
            "connect_timeout": self.connect_timeout,
            "charset": "utf8mb4",
        }

    def get_engine_kwargs(self) -> dict[str, Any]:
        return {
            "echo": False,
            "pool_size": self.pool_size,
            "pool_timeout": self.connect_timeout,
            "pool_recycle": 3600,
            "pool_pre_ping": True,
        }

    def insert_ignore(self, table: Table) -> Insert:
        """INSERT IGNORE skips rows that hit a duplicate key."""
        return mysql_insert(table).prefix_with("IGNORE")

    def get_dialect_name(self) -> str:
        return "mysql"

"""
SQLite Database Adapter

This module implements the DatabaseAdapter interface for SQLite.
All SQLite-specific configuration and behavior is encapsulated here.

SQLite is used for local development and for running the relational
repository in tests without a database server.

Key characteristics:
- File-based (single .db file)
- Single writer at a time (file locking, writers queue on BEGIN IMMEDIATE
  for up to the busy timeout)
- Foreign keys are off unless enabled per connection
"""

from typing import Any

from sqlalchemy import Table, event
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.pool import NullPool, StaticPool
from sqlalchemy.sql.dml import Insert

from shortlinks.db.interface import DatabaseAdapter


class SQLiteAdapter(DatabaseAdapter):
    """
    SQLite database adapter implementation.

    File databases use NullPool (one connection per session, file locking
    serializes writers). In-memory databases (``sqlite+aiosqlite://``) need a
    single shared connection, so they use StaticPool.
    """

    def __init__(self, connect_timeout: float = 5.0, pool_size: int = 1, in_memory: bool = False):
        super().__init__(connect_timeout=connect_timeout, pool_size=pool_size)
        self.in_memory = in_memory

    def get_pool_class(self) -> type:
        """
        Get the connection pool class for SQLite.

        Returns:
            StaticPool for in-memory databases, NullPool otherwise
        """
        return StaticPool if self.in_memory else NullPool

    def get_connect_args(self) -> dict[str, Any]:
        """
        Get SQLite-specific connection arguments.

        ``timeout`` is the busy timeout: how long a writer waits for the file
        lock before failing with "database is locked".
        """
        return {
            "check_same_thread": False,
            "timeout": self.connect_timeout,
        }

    def get_engine_kwargs(self) -> dict[str, Any]:
        """
        Get SQLite-specific engine configuration.

        Returns:
            Dictionary with SQLite engine options
        """
        return {
            "echo": False  # Set to True only for SQL debugging in development
        }

    def on_engine_created(self, engine: AsyncEngine) -> None:
        """
        Per-connection setup.

        - foreign key enforcement, so ON DELETE actions fire
        - transactions start with BEGIN IMMEDIATE: the write lock is taken up
          front (waiting up to the busy timeout) instead of being upgraded
          mid-transaction, where concurrent writers fail with "database is
          locked" without waiting
        """

        @event.listens_for(engine.sync_engine, "connect")
        def _configure_connection(dbapi_connection, connection_record):
            # Let SQLAlchemy emit BEGIN itself
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(engine.sync_engine, "begin")
        def _begin_immediate(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

    def insert_ignore(self, table: Table) -> Insert:
        """INSERT ... ON CONFLICT DO NOTHING."""
        return sqlite_insert(table).on_conflict_do_nothing()

    def get_dialect_name(self) -> str:
        """
        Get the SQLAlchemy dialect name for SQLite.

        Returns:
            'sqlite'
        """
        return "sqlite"

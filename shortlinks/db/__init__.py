"""
Database module with abstraction layer.

This module provides:
- DatabaseAdapter interface: dialect-specific engine configuration
- SQLiteAdapter, MySQLAdapter, PostgreSQLAdapter: the supported dialects
- Session management: engine, session factory and schema bootstrap

To add a new database backend:
1. Create a new adapter class inheriting from DatabaseAdapter
2. Implement all abstract methods
3. Register it in get_database_adapter() in session.py
4. No other code changes needed!
"""

from shortlinks.db.interface import DatabaseAdapter
from shortlinks.db.session import (
    create_schema,
    create_session_maker,
    get_database_adapter,
)

__all__ = [
    "DatabaseAdapter",
    "create_schema",
    "create_session_maker",
    "get_database_adapter",
]

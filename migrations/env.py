"""
Alembic Environment Configuration

This file configures Alembic to work with our async SQLModel/SQLAlchemy setup.
It handles:
- Database connection from settings
- Model imports for autogenerate
- Running migrations through the same async engine (and dialect adapter)
  the application uses, so no separate sync driver is needed
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy.engine import Connection
from sqlmodel import SQLModel

from shortlinks.core.setting import StorageBackend, settings
from shortlinks.db import models  # noqa: F401  (registers tables for autogenerate)
from shortlinks.db.session import get_database_adapter

# this is the Alembic Config object
config = context.config

database_url = settings.DATABASE_URL
config.set_main_option("sqlalchemy.url", database_url.replace("%", "%%"))

# Interpret the config file for Python logging.
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Get SQLModel metadata for autogenerate
target_metadata = SQLModel.metadata


def _backend_for(url: str) -> StorageBackend:
    if url.startswith("mysql"):
        return StorageBackend.MYSQL
    if url.startswith("postgresql"):
        return StorageBackend.POSTGRES
    return StorageBackend.SQLITE


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode.

    Emits the SQL to the script output instead of executing it, so no
    database driver needs to be installed.
    """
    context.configure(
        url=database_url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    """Run migrations with a connection."""
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        render_as_batch=connection.dialect.name == "sqlite",
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    adapter = get_database_adapter(
        _backend_for(database_url),
        database_url=database_url,
        connect_timeout=settings.STORAGE_TIMEOUT_SECONDS,
        pool_size=1,
    )
    connectable = adapter.create_engine(database_url)

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""
    asyncio.run(run_async_migrations())


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()

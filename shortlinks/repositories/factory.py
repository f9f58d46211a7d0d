"""
Repository Factory

Builds the repository set for the configured backend. The backend is chosen
once at startup; services receive the repositories and never learn which
engine is behind them.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from shortlinks.core.setting import Settings, StorageBackend
from shortlinks.db.session import (
    create_schema,
    create_session_maker,
    get_database_adapter,
)
from shortlinks.repositories.base import (
    CategoryRepository,
    URLRepository,
    UserRepository,
)
from shortlinks.repositories.memory import (
    InMemoryCategoryRepository,
    InMemoryStore,
    InMemoryURLRepository,
    InMemoryUserRepository,
)
from shortlinks.repositories.sql import (
    SQLCategoryRepository,
    SQLURLRepository,
    SQLUserRepository,
)

logger = logging.getLogger(__name__)


@dataclass
class Repositories:
    """The repositories of one backend, plus the engine they share (if any)."""
    urls: URLRepository
    users: UserRepository
    categories: CategoryRepository
    engine: Optional[AsyncEngine] = None

    async def close(self) -> None:
        """Dispose of the connection pool."""
        if self.engine is not None:
            await self.engine.dispose()
            logger.info("Database engine disposed")


def create_memory_repositories(timeout: float = 5.0) -> Repositories:
    """Repositories sharing one fresh InMemoryStore."""
    store = InMemoryStore(timeout=timeout)
    return Repositories(
        urls=InMemoryURLRepository(store),
        users=InMemoryUserRepository(store),
        categories=InMemoryCategoryRepository(store),
    )


async def create_repositories(settings: Settings) -> Repositories:
    """
    Build the repositories selected by ``STORAGE_BACKEND``.

    Args:
        settings: Application settings

    Returns:
        Repositories for the configured backend
    """
    backend = settings.STORAGE_BACKEND
    timeout = settings.STORAGE_TIMEOUT_SECONDS

    if backend == StorageBackend.MEMORY:
        logger.info("Using in-memory storage backend")
        return create_memory_repositories(timeout=timeout)

    adapter = get_database_adapter(
        backend,
        database_url=settings.DATABASE_URL,
        connect_timeout=timeout,
        pool_size=settings.DB_POOL_SIZE,
    )
    engine = adapter.create_engine(settings.DATABASE_URL)
    if settings.DB_CREATE_SCHEMA:
        await create_schema(engine)

    session_maker = create_session_maker(engine)
    logger.info("Using %s storage backend", adapter.get_dialect_name())
    return Repositories(
        urls=SQLURLRepository(session_maker, adapter, timeout),
        users=SQLUserRepository(session_maker, adapter, timeout),
        categories=SQLCategoryRepository(session_maker, adapter, timeout),
        engine=engine,
    )

"""
Shared fixtures.

``repositories`` runs every test that uses it twice: against the in-memory
backend and against the relational backend on a throwaway SQLite file.
"""

from typing import Iterable

import pytest

from shortlinks.core.entities import User
from shortlinks.db.session import create_schema, create_session_maker
from shortlinks.db.sqlite_adapter import SQLiteAdapter
from shortlinks.repositories.factory import Repositories, create_memory_repositories
from shortlinks.repositories.sql import (
    SQLCategoryRepository,
    SQLURLRepository,
    SQLUserRepository,
)


class SequenceGenerator:
    """Code generator that hands out a fixed sequence of codes."""

    def __init__(self, codes: Iterable[str]):
        self._codes = iter(codes)
        self.calls = 0

    def generate(self) -> str:
        self.calls += 1
        return next(self._codes)


async def build_sqlite_repositories(path) -> Repositories:
    adapter = SQLiteAdapter(connect_timeout=5.0)
    engine = adapter.create_engine(f"sqlite+aiosqlite:///{path}")
    await create_schema(engine)
    session_maker = create_session_maker(engine)
    return Repositories(
        urls=SQLURLRepository(session_maker, adapter, timeout=5.0),
        users=SQLUserRepository(session_maker, adapter, timeout=5.0),
        categories=SQLCategoryRepository(session_maker, adapter, timeout=5.0),
        engine=engine,
    )


@pytest.fixture(params=["memory", "sqlite"])
async def repositories(request, tmp_path):
    if request.param == "memory":
        repos = create_memory_repositories()
    else:
        repos = await build_sqlite_repositories(tmp_path / "shortlinks.db")
    yield repos
    await repos.close()


@pytest.fixture
async def alice(repositories) -> User:
    return await repositories.users.create_user(
        User(email="alice@example.com", password_hash="hashed-a")
    )


@pytest.fixture
async def bob(repositories) -> User:
    return await repositories.users.create_user(
        User(email="bob@example.com", password_hash="hashed-b")
    )


@pytest.fixture
def code_sequence():
    """Factory for deterministic code generators: ``code_sequence(["a", "b"])``."""
    return SequenceGenerator

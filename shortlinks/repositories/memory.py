"""
In-Memory Repositories

Process-local implementation of the repository contracts, used for
development and tests. All three repositories share one explicitly
constructed InMemoryStore; there is no module-level state.

Concurrency:
- One asyncio.Lock per store guards every map
- Each operation holds the lock for its whole check-then-act step (e.g. the
  short code lookup and the insert), and for nothing longer
- Lock acquisition is bounded; a stuck lock surfaces as
  StorageUnavailableError like a database timeout would

Relational behavior mirrored here:
- unique short codes, emails, and (owner, category name) pairs
- foreign keys: a URL's owner and both ends of an association must exist
- ON DELETE SET NULL for URL owners, ON DELETE CASCADE for categories and
  associations
"""

import asyncio
import logging
from collections import Counter
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Optional, Sequence

from shortlinks.core.entities import (
    Category,
    CategoryWithCount,
    ShortURL,
    User,
    utc_now,
)
from shortlinks.core.exceptions import (
    DuplicateCategoryError,
    DuplicateCodeError,
    DuplicateEmailError,
    NotFoundError,
    ShortCodeNotFoundError,
    StorageUnavailableError,
)
from shortlinks.repositories.base import (
    CategoryRepository,
    URLRepository,
    UserRepository,
)

logger = logging.getLogger(__name__)


class InMemoryStore:
    """
    Shared state for the in-memory repositories.

    Maps:
    - users: user id -> User
    - urls: short code -> ShortURL
    - url_codes: url id -> short code
    - categories: category id -> Category
    - associations: (url id, category id) -> attached at
    """

    def __init__(self, timeout: float = 5.0):
        """
        Args:
            timeout: Seconds to wait for the store lock
        """
        self.timeout = timeout
        self.users: dict[str, User] = {}
        self.urls: dict[str, ShortURL] = {}
        self.url_codes: dict[str, str] = {}
        self.categories: dict[str, Category] = {}
        self.associations: dict[tuple[str, str], datetime] = {}
        self._lock = asyncio.Lock()

    @asynccontextmanager
    async def locked(self) -> AsyncIterator["InMemoryStore"]:
        """Hold the store lock for one critical section."""
        try:
            await asyncio.wait_for(self._lock.acquire(), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            logger.error("In-memory store lock timed out after %ss", self.timeout)
            raise StorageUnavailableError(
                f"in-memory store lock not acquired within {self.timeout}s",
                original_error=e,
            )
        try:
            yield self
        finally:
            self._lock.release()

    def url_by_id(self, url_id: str) -> Optional[ShortURL]:
        code = self.url_codes.get(url_id)
        return self.urls.get(code) if code is not None else None


def _newest_first(urls) -> list[ShortURL]:
    return sorted(
        (url.model_copy() for url in urls),
        key=lambda url: url.created_at,
        reverse=True,
    )


def _by_name(categories) -> list[Category]:
    return sorted((c.model_copy() for c in categories), key=lambda c: c.name)


class InMemoryURLRepository(URLRepository):
    """URL repository backed by an InMemoryStore."""

    def __init__(self, store: InMemoryStore):
        self.store = store

    async def create_url(self, url: ShortURL) -> ShortURL:
        async with self.store.locked() as store:
            if url.short_code in store.urls:
                raise DuplicateCodeError(url.short_code)
            if url.user_id is not None and url.user_id not in store.users:
                raise NotFoundError("User", url.user_id)
            stored = url.model_copy()
            store.urls[stored.short_code] = stored
            store.url_codes[stored.id] = stored.short_code
            return stored.model_copy()

    async def get_url_by_code(self, short_code: str) -> ShortURL:
        async with self.store.locked() as store:
            url = store.urls.get(short_code)
            if url is None:
                raise ShortCodeNotFoundError(short_code)
            return url.model_copy()

    async def get_url_by_id(self, url_id: str) -> ShortURL:
        async with self.store.locked() as store:
            url = store.url_by_id(url_id)
            if url is None:
                raise NotFoundError("Short URL", url_id)
            return url.model_copy()

    async def code_exists(self, short_code: str) -> bool:
        async with self.store.locked() as store:
            return short_code in store.urls

    async def update_url(self, short_code: str, new_url: str) -> ShortURL:
        async with self.store.locked() as store:
            existing = store.urls.get(short_code)
            if existing is None:
                raise ShortCodeNotFoundError(short_code)
            updated = existing.model_copy(update={"url": new_url, "updated_at": utc_now()})
            store.urls[short_code] = updated
            return updated.model_copy()

    async def delete_url(self, short_code: str) -> None:
        async with self.store.locked() as store:
            url = store.urls.pop(short_code, None)
            if url is None:
                raise ShortCodeNotFoundError(short_code)
            store.url_codes.pop(url.id, None)
            for pair in [pair for pair in store.associations if pair[0] == url.id]:
                del store.associations[pair]

    async def increment_access_count(self, short_code: str) -> int:
        async with self.store.locked() as store:
            url = store.urls.get(short_code)
            if url is None:
                raise ShortCodeNotFoundError(short_code)
            url.access_count += 1
            return url.access_count

    async def list_urls_by_owner(self, user_id: str) -> Sequence[ShortURL]:
        async with self.store.locked() as store:
            return _newest_first(u for u in store.urls.values() if u.user_id == user_id)


class InMemoryUserRepository(UserRepository):
    """User repository backed by an InMemoryStore."""

    def __init__(self, store: InMemoryStore):
        self.store = store

    async def create_user(self, user: User) -> User:
        async with self.store.locked() as store:
            if any(existing.email == user.email for existing in store.users.values()):
                raise DuplicateEmailError(user.email)
            store.users[user.id] = user.model_copy()
            return user.model_copy()

    async def find_by_email(self, email: str) -> Optional[User]:
        async with self.store.locked() as store:
            for user in store.users.values():
                if user.email == email:
                    return user.model_copy()
            return None

    async def find_by_id(self, user_id: str) -> Optional[User]:
        async with self.store.locked() as store:
            user = store.users.get(user_id)
            return user.model_copy() if user else None

    async def delete_user(self, user_id: str) -> None:
        async with self.store.locked() as store:
            if store.users.pop(user_id, None) is None:
                raise NotFoundError("User", user_id)

            # ON DELETE SET NULL on urls.user_id
            for code, url in store.urls.items():
                if url.user_id == user_id:
                    store.urls[code] = url.model_copy(update={"user_id": None})

            # ON DELETE CASCADE on categories, then on their associations
            owned = {cid for cid, c in store.categories.items() if c.user_id == user_id}
            for category_id in owned:
                del store.categories[category_id]
            for pair in [pair for pair in store.associations if pair[1] in owned]:
                del store.associations[pair]


class InMemoryCategoryRepository(CategoryRepository):
    """Category repository backed by an InMemoryStore."""

    def __init__(self, store: InMemoryStore):
        self.store = store

    @staticmethod
    def _name_taken(store: InMemoryStore, category: Category) -> bool:
        return any(
            other.user_id == category.user_id
            and other.name == category.name
            and other.id != category.id
            for other in store.categories.values()
        )

    async def create_category(self, category: Category) -> Category:
        async with self.store.locked() as store:
            if category.user_id not in store.users:
                raise NotFoundError("User", category.user_id)
            if self._name_taken(store, category):
                raise DuplicateCategoryError(category.name)
            store.categories[category.id] = category.model_copy()
            return category.model_copy()

    async def get_category(self, category_id: str) -> Category:
        async with self.store.locked() as store:
            category = store.categories.get(category_id)
            if category is None:
                raise NotFoundError("Category", category_id)
            return category.model_copy()

    async def find_category_by_name(self, user_id: str, name: str) -> Optional[Category]:
        async with self.store.locked() as store:
            for category in store.categories.values():
                if category.user_id == user_id and category.name == name:
                    return category.model_copy()
            return None

    async def update_category(self, category: Category) -> Category:
        async with self.store.locked() as store:
            existing = store.categories.get(category.id)
            if existing is None:
                raise NotFoundError("Category", category.id)
            if self._name_taken(store, category):
                raise DuplicateCategoryError(category.name)
            updated = existing.model_copy(update={
                "name": category.name,
                "description": category.description,
                "icon": category.icon,
                "color": category.color,
                "updated_at": utc_now(),
            })
            store.categories[category.id] = updated
            return updated.model_copy()

    async def delete_category(self, category_id: str) -> None:
        async with self.store.locked() as store:
            if store.categories.pop(category_id, None) is None:
                raise NotFoundError("Category", category_id)
            for pair in [pair for pair in store.associations if pair[1] == category_id]:
                del store.associations[pair]

    async def list_categories_by_owner(self, user_id: str) -> Sequence[Category]:
        async with self.store.locked() as store:
            return _by_name(c for c in store.categories.values() if c.user_id == user_id)

    async def list_categories_with_url_count(self, user_id: str) -> Sequence[CategoryWithCount]:
        async with self.store.locked() as store:
            counts = Counter(category_id for _, category_id in store.associations)
            return [
                CategoryWithCount(**category.model_dump(), url_count=counts.get(category.id, 0))
                for category in _by_name(
                    c for c in store.categories.values() if c.user_id == user_id
                )
            ]

    async def get_urls_by_category(self, category_id: str) -> Sequence[ShortURL]:
        async with self.store.locked() as store:
            urls = (
                store.url_by_id(url_id)
                for url_id, cid in store.associations
                if cid == category_id
            )
            return _newest_first(url for url in urls if url is not None)

    async def get_categories_for_url(self, url_id: str) -> Sequence[Category]:
        async with self.store.locked() as store:
            return _by_name(
                store.categories[cid]
                for uid, cid in store.associations
                if uid == url_id and cid in store.categories
            )

    async def add_url_categories(self, url_id: str, category_ids: Sequence[str]) -> None:
        async with self.store.locked() as store:
            if store.url_by_id(url_id) is None:
                raise NotFoundError("Short URL", url_id)
            missing = [cid for cid in category_ids if cid not in store.categories]
            if missing:
                raise NotFoundError("Category", missing[0])
            now = utc_now()
            for category_id in category_ids:
                store.associations.setdefault((url_id, category_id), now)

    async def remove_url_categories(self, url_id: str, category_ids: Sequence[str]) -> None:
        async with self.store.locked() as store:
            for category_id in category_ids:
                store.associations.pop((url_id, category_id), None)

"""
Repository Contracts

Defines the storage contract every backend (in-memory, MySQL, PostgreSQL)
must satisfy identically, so services stay storage-agnostic.

Conventions shared by all implementations:
- ``get_*`` methods raise NotFoundError when the entity is absent;
  ``find_*`` methods return None instead
- every backend raises the same error kinds from shortlinks.core.exceptions
  (NotFoundError, DuplicateCodeError, DuplicateEmailError,
  DuplicateCategoryError, StorageUnavailableError)
- entities handed out are copies; mutating them never changes storage
- every operation is bounded by the backend's timeout and fails with
  StorageUnavailableError when it expires
"""

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from shortlinks.core.entities import Category, CategoryWithCount, ShortURL, User


class URLRepository(ABC):
    """Persistence contract for short URLs."""

    @abstractmethod
    async def create_url(self, url: ShortURL) -> ShortURL:
        """
        Store a new short URL.

        Raises:
            DuplicateCodeError: If the short code is already stored. This
                check and the insert are one atomic step.
            NotFoundError: If ``user_id`` references a missing user
        """

    @abstractmethod
    async def get_url_by_code(self, short_code: str) -> ShortURL:
        """Return the URL for a short code or raise NotFoundError."""

    @abstractmethod
    async def get_url_by_id(self, url_id: str) -> ShortURL:
        """Return the URL with this id or raise NotFoundError."""

    @abstractmethod
    async def code_exists(self, short_code: str) -> bool:
        """Check if a short code is already stored."""

    @abstractmethod
    async def update_url(self, short_code: str, new_url: str) -> ShortURL:
        """
        Replace the target URL and refresh ``updated_at``.

        The short code, owner and access count are left untouched.
        """

    @abstractmethod
    async def delete_url(self, short_code: str) -> None:
        """Delete a URL (and its category associations) or raise NotFoundError."""

    @abstractmethod
    async def increment_access_count(self, short_code: str) -> int:
        """
        Atomically increment the access count and return the new value.

        The increment happens inside the storage layer (single UPDATE in a
        transaction, or under the store lock), never as a caller-side
        read-then-write, so concurrent increments are never lost.
        """

    @abstractmethod
    async def list_urls_by_owner(self, user_id: str) -> Sequence[ShortURL]:
        """List a user's URLs, newest first."""


class UserRepository(ABC):
    """Persistence contract for users."""

    @abstractmethod
    async def create_user(self, user: User) -> User:
        """
        Store a new user.

        Raises:
            DuplicateEmailError: If the email is already registered
        """

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional[User]:
        """Case-sensitive exact match on email."""

    @abstractmethod
    async def find_by_id(self, user_id: str) -> Optional[User]:
        """Return the user or None."""

    @abstractmethod
    async def delete_user(self, user_id: str) -> None:
        """
        Delete a user or raise NotFoundError.

        The user's URLs survive with ``user_id`` set to None; the user's
        categories (and their associations) are deleted.
        """


class CategoryRepository(ABC):
    """Persistence contract for categories and URL-category associations."""

    @abstractmethod
    async def create_category(self, category: Category) -> Category:
        """
        Store a new category.

        Raises:
            DuplicateCategoryError: If the owner already has this name
        """

    @abstractmethod
    async def get_category(self, category_id: str) -> Category:
        """Return the category or raise NotFoundError."""

    @abstractmethod
    async def find_category_by_name(self, user_id: str, name: str) -> Optional[Category]:
        """Return the owner's category with this exact name, or None."""

    @abstractmethod
    async def update_category(self, category: Category) -> Category:
        """
        Overwrite name, description, icon and color; refresh ``updated_at``.

        Raises:
            NotFoundError: If the category does not exist
            DuplicateCategoryError: If the new name clashes with another
                category of the same owner
        """

    @abstractmethod
    async def delete_category(self, category_id: str) -> None:
        """Delete a category and its associations (URLs are kept)."""

    @abstractmethod
    async def list_categories_by_owner(self, user_id: str) -> Sequence[Category]:
        """List a user's categories ordered by name."""

    @abstractmethod
    async def list_categories_with_url_count(self, user_id: str) -> Sequence[CategoryWithCount]:
        """
        List a user's categories, each with its number of distinct URLs.

        Computed in one aggregating pass, never one lookup per category.
        """

    @abstractmethod
    async def get_urls_by_category(self, category_id: str) -> Sequence[ShortURL]:
        """List URLs attached to a category, newest first."""

    @abstractmethod
    async def get_categories_for_url(self, url_id: str) -> Sequence[Category]:
        """List categories attached to a URL ordered by name."""

    @abstractmethod
    async def add_url_categories(self, url_id: str, category_ids: Sequence[str]) -> None:
        """Attach categories to a URL; pairs that already exist are skipped."""

    @abstractmethod
    async def remove_url_categories(self, url_id: str, category_ids: Sequence[str]) -> None:
        """Detach categories from a URL; absent pairs are ignored."""

"""
Category Service

Business rules for user-owned categories and their many-to-many link to
short URLs:
- category fields are validated and defaults applied (icon ``folder``,
  color ``primary``)
- a category is visible and editable only by its owner
- a URL may only be linked to categories of the user who owns the URL;
  anonymous URLs cannot be categorized
- attach is idempotent and detach of an absent pair is a no-op
"""

import logging
from typing import Optional, Sequence

from shortlinks.core.entities import Category, CategoryWithCount, ShortURL
from shortlinks.core.exceptions import ForbiddenError, ValidationFailedError
from shortlinks.core.validators import validate_category_fields
from shortlinks.repositories.base import CategoryRepository, URLRepository

logger = logging.getLogger(__name__)

DEFAULT_ICON = "folder"
DEFAULT_COLOR = "primary"


class CategoryService:
    """Category CRUD, association management and per-category counts."""

    def __init__(self, categories: CategoryRepository, urls: URLRepository):
        self.categories = categories
        self.urls = urls

    async def _owned_category(self, category_id: str, requester_id: str) -> Category:
        category = await self.categories.get_category(category_id)
        if category.user_id != requester_id:
            raise ForbiddenError("You do not have permission to access this category")
        return category

    async def _owned_url(self, short_code: str, requester_id: str) -> ShortURL:
        url = await self.urls.get_url_by_code(short_code)
        if url.user_id is None or url.user_id != requester_id:
            raise ForbiddenError("You do not have permission to categorize this URL")
        return url

    async def _check_category_ids(self, category_ids: Sequence[str], requester_id: str) -> None:
        owned = {c.id for c in await self.categories.list_categories_by_owner(requester_id)}
        foreign = [cid for cid in category_ids if cid not in owned]
        if foreign:
            logger.warning(
                "Requester %s referenced categories they do not own: %s",
                requester_id, foreign,
            )
            raise ForbiddenError("One or more categories do not belong to you")

    async def create(
        self,
        owner_id: str,
        name: str,
        description: Optional[str] = None,
        icon: Optional[str] = None,
        color: Optional[str] = None,
    ) -> Category:
        """
        Create a category for ``owner_id``.

        Raises:
            ValidationFailedError: If any field breaks a rule
            DuplicateCategoryError: If the owner already has this name
        """
        errors = validate_category_fields(name, description, icon, color)
        if errors:
            raise ValidationFailedError(errors)

        category = Category(
            name=name.strip(),
            description=description,
            icon=icon or DEFAULT_ICON,
            color=color or DEFAULT_COLOR,
            user_id=owner_id,
        )
        return await self.categories.create_category(category)

    async def get(self, category_id: str, requester_id: str) -> Category:
        return await self._owned_category(category_id, requester_id)

    async def update(
        self,
        category_id: str,
        requester_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
        icon: Optional[str] = None,
        color: Optional[str] = None,
    ) -> Category:
        """
        Change the given fields of a category; None keeps the current value
        and an empty description clears it.

        Raises:
            NotFoundError, ForbiddenError, ValidationFailedError,
            DuplicateCategoryError
        """
        category = await self._owned_category(category_id, requester_id)
        if description is None:
            description = category.description
        changed = category.model_copy(update={
            "name": name.strip() if name is not None else category.name,
            "description": description or None,
            "icon": icon or category.icon,
            "color": color or category.color,
        })
        errors = validate_category_fields(
            changed.name, changed.description, changed.icon, changed.color
        )
        if errors:
            raise ValidationFailedError(errors)
        return await self.categories.update_category(changed)

    async def delete(self, category_id: str, requester_id: str) -> None:
        """Delete a category; its URLs are kept."""
        await self._owned_category(category_id, requester_id)
        await self.categories.delete_category(category_id)
        logger.info("Deleted category %s", category_id)

    async def list_with_counts(self, owner_id: str) -> Sequence[CategoryWithCount]:
        return await self.categories.list_categories_with_url_count(owner_id)

    async def get_urls_by_category(self, category_id: str, requester_id: str) -> Sequence[ShortURL]:
        await self._owned_category(category_id, requester_id)
        return await self.categories.get_urls_by_category(category_id)

    async def categories_for_url(self, short_code: str, requester_id: str) -> Sequence[Category]:
        url = await self._owned_url(short_code, requester_id)
        return await self.categories.get_categories_for_url(url.id)

    async def attach_categories(
        self, short_code: str, category_ids: Sequence[str], requester_id: str
    ) -> Sequence[Category]:
        """
        Link a URL to categories, skipping pairs that already exist.

        Returns:
            Every category now attached to the URL

        Raises:
            NotFoundError: If the short code does not exist
            ForbiddenError: If the requester does not own the URL (or it
                is anonymous) or any of the categories
        """
        url = await self._owned_url(short_code, requester_id)
        ids = list(dict.fromkeys(category_ids))
        await self._check_category_ids(ids, requester_id)
        if ids:
            await self.categories.add_url_categories(url.id, ids)
        return await self.categories.get_categories_for_url(url.id)

    async def detach_categories(
        self, short_code: str, category_ids: Sequence[str], requester_id: str
    ) -> Sequence[Category]:
        """Unlink categories from a URL; absent pairs are ignored."""
        url = await self._owned_url(short_code, requester_id)
        ids = list(dict.fromkeys(category_ids))
        await self._check_category_ids(ids, requester_id)
        if ids:
            await self.categories.remove_url_categories(url.id, ids)
        return await self.categories.get_categories_for_url(url.id)

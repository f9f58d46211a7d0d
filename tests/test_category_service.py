"""
Tests for categories, URL-category associations and user registration.
"""

import pytest

from shortlinks.core.exceptions import (
    DuplicateCategoryError,
    DuplicateEmailError,
    ForbiddenError,
    NotFoundError,
    ValidationFailedError,
)
from shortlinks.services.category_service import CategoryService
from shortlinks.services.url_service import URLShorteningService
from shortlinks.services.user_service import UserService


@pytest.fixture
def categories(repositories) -> CategoryService:
    return CategoryService(repositories.categories, repositories.urls)


@pytest.fixture
def urls(repositories) -> URLShorteningService:
    return URLShorteningService(repositories.urls)


class TestCategoryCRUD:

    @pytest.mark.asyncio
    async def test_create_applies_defaults(self, categories, alice):
        created = await categories.create(alice.id, "  Reading  ")

        assert created.name == "Reading"
        assert created.icon == "folder"
        assert created.color == "primary"
        assert created.user_id == alice.id

    @pytest.mark.asyncio
    async def test_create_validates_every_field(self, categories, alice):
        with pytest.raises(ValidationFailedError) as exc_info:
            await categories.create(alice.id, "", description="d" * 501, icon="i" * 51)

        assert len(exc_info.value.errors) == 3

    @pytest.mark.asyncio
    async def test_name_too_long(self, categories, alice):
        await categories.create(alice.id, "n" * 100)
        with pytest.raises(ValidationFailedError):
            await categories.create(alice.id, "n" * 101)

    @pytest.mark.asyncio
    async def test_duplicate_name(self, categories, alice):
        await categories.create(alice.id, "Work")
        with pytest.raises(DuplicateCategoryError):
            await categories.create(alice.id, "Work")

    @pytest.mark.asyncio
    async def test_partial_update(self, categories, alice):
        created = await categories.create(alice.id, "Work", description="Job links")

        updated = await categories.update(created.id, alice.id, color="success")

        assert updated.name == "Work"
        assert updated.description == "Job links"
        assert updated.color == "success"
        assert updated.icon == "folder"

    @pytest.mark.asyncio
    async def test_empty_description_clears_it(self, categories, alice):
        created = await categories.create(alice.id, "Work", description="Job links")

        kept = await categories.update(created.id, alice.id, name="Jobs")
        cleared = await categories.update(created.id, alice.id, description="")

        assert kept.description == "Job links"
        assert cleared.description is None
        assert (await categories.get(created.id, alice.id)).description is None

    @pytest.mark.asyncio
    async def test_only_owner_can_touch_category(self, categories, alice, bob):
        created = await categories.create(alice.id, "Work")

        with pytest.raises(ForbiddenError):
            await categories.get(created.id, bob.id)
        with pytest.raises(ForbiddenError):
            await categories.update(created.id, bob.id, name="Mine")
        with pytest.raises(ForbiddenError):
            await categories.delete(created.id, bob.id)
        with pytest.raises(ForbiddenError):
            await categories.get_urls_by_category(created.id, bob.id)

        assert (await categories.get(created.id, alice.id)).name == "Work"

    @pytest.mark.asyncio
    async def test_delete(self, categories, alice):
        created = await categories.create(alice.id, "Work")

        await categories.delete(created.id, alice.id)

        with pytest.raises(NotFoundError):
            await categories.get(created.id, alice.id)


class TestAssociations:

    @pytest.mark.asyncio
    async def test_attach_is_idempotent(self, categories, urls, alice):
        url = await urls.shorten("https://example.com", owner_id=alice.id)
        work = await categories.create(alice.id, "Work")
        fun = await categories.create(alice.id, "Fun")

        await categories.attach_categories(url.short_code, [work.id], alice.id)
        attached = await categories.attach_categories(
            url.short_code, [work.id, fun.id], alice.id
        )

        assert [c.name for c in attached] == ["Fun", "Work"]
        counts = {c.name: c.url_count for c in await categories.list_with_counts(alice.id)}
        assert counts == {"Fun": 1, "Work": 1}

    @pytest.mark.asyncio
    async def test_detach_absent_pair_is_noop(self, categories, urls, alice):
        url = await urls.shorten("https://example.com", owner_id=alice.id)
        work = await categories.create(alice.id, "Work")
        fun = await categories.create(alice.id, "Fun")
        await categories.attach_categories(url.short_code, [work.id], alice.id)

        remaining = await categories.detach_categories(url.short_code, [fun.id], alice.id)

        assert [c.id for c in remaining] == [work.id]

    @pytest.mark.asyncio
    async def test_non_owner_cannot_attach(self, categories, urls, alice, bob):
        url = await urls.shorten("https://example.com", owner_id=alice.id)
        work = await categories.create(alice.id, "Work")

        with pytest.raises(ForbiddenError):
            await categories.attach_categories(url.short_code, [work.id], bob.id)

        assert await categories.categories_for_url(url.short_code, alice.id) == []

    @pytest.mark.asyncio
    async def test_cross_owner_category_rejected(self, categories, urls, alice, bob):
        url = await urls.shorten("https://example.com", owner_id=alice.id)
        mine = await categories.create(alice.id, "Mine")
        theirs = await categories.create(bob.id, "Theirs")

        with pytest.raises(ForbiddenError):
            await categories.attach_categories(url.short_code, [mine.id, theirs.id], alice.id)

        # Nothing was attached, not even the permitted category
        assert await categories.categories_for_url(url.short_code, alice.id) == []

    @pytest.mark.asyncio
    async def test_unknown_category_rejected(self, categories, urls, alice):
        url = await urls.shorten("https://example.com", owner_id=alice.id)

        with pytest.raises(ForbiddenError):
            await categories.attach_categories(url.short_code, ["missing"], alice.id)

    @pytest.mark.asyncio
    async def test_anonymous_url_cannot_be_categorized(self, categories, urls, alice):
        url = await urls.shorten("https://example.com")
        work = await categories.create(alice.id, "Work")

        with pytest.raises(ForbiddenError):
            await categories.attach_categories(url.short_code, [work.id], alice.id)

    @pytest.mark.asyncio
    async def test_missing_url(self, categories, alice):
        with pytest.raises(NotFoundError):
            await categories.attach_categories("nope00", [], alice.id)

    @pytest.mark.asyncio
    async def test_urls_by_category(self, categories, urls, alice):
        first = await urls.shorten("https://one.com", owner_id=alice.id)
        second = await urls.shorten("https://two.com", owner_id=alice.id)
        work = await categories.create(alice.id, "Work")
        await categories.attach_categories(first.short_code, [work.id], alice.id)

        listed = await categories.get_urls_by_category(work.id, alice.id)

        assert [u.short_code for u in listed] == [first.short_code]
        assert second.short_code not in {u.short_code for u in listed}

    @pytest.mark.asyncio
    async def test_deleted_url_leaves_category(self, categories, urls, alice):
        url = await urls.shorten("https://example.com", owner_id=alice.id)
        work = await categories.create(alice.id, "Work")
        await categories.attach_categories(url.short_code, [work.id], alice.id)

        await urls.delete(url.short_code, alice.id)

        counted = await categories.list_with_counts(alice.id)
        assert [(c.name, c.url_count) for c in counted] == [("Work", 0)]


class TestUserService:

    @pytest.mark.asyncio
    async def test_register_and_get(self, repositories):
        users = UserService(repositories.users)

        user = await users.register("  carol@example.com ", "hash")

        assert user.email == "carol@example.com"
        assert (await users.get(user.id)).email == "carol@example.com"

    @pytest.mark.asyncio
    async def test_register_rejects_bad_input(self, repositories):
        users = UserService(repositories.users)

        with pytest.raises(ValidationFailedError) as exc_info:
            await users.register("not-an-email", "")

        assert len(exc_info.value.errors) == 2

    @pytest.mark.asyncio
    async def test_duplicate_email(self, repositories, alice):
        users = UserService(repositories.users)

        with pytest.raises(DuplicateEmailError):
            await users.register("alice@example.com", "hash")

    @pytest.mark.asyncio
    async def test_delete_user_keeps_urls(self, repositories, alice):
        users = UserService(repositories.users)
        urls = URLShorteningService(repositories.urls)
        url = await urls.shorten("https://example.com", owner_id=alice.id)

        await users.delete(alice.id)

        with pytest.raises(NotFoundError):
            await users.get(alice.id)
        assert (await urls.get_url(url.short_code)).user_id is None

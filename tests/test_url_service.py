"""
Tests for the URL Shortening Service

Covers short code allocation (including forced collisions with a
deterministic generator), validation, ownership and access counting, on
both storage backends.
"""

import asyncio
import logging

import pytest

from shortlinks.core.entities import ShortURL
from shortlinks.core.exceptions import (
    CodeSpaceExhaustedError,
    ForbiddenError,
    NotFoundError,
    StorageUnavailableError,
    ValidationFailedError,
)
from shortlinks.services.short_code import BASE62_CHARS, ShortCodeGenerator
from shortlinks.services.url_service import URLShorteningService


class TestShortCodeGenerator:
    """Test candidate code generation."""

    def test_default_length_and_alphabet(self):
        generator = ShortCodeGenerator()
        for _ in range(200):
            code = generator.generate()
            assert len(code) == 6
            assert set(code) <= set(BASE62_CHARS)

    def test_configured_length(self):
        assert len(ShortCodeGenerator(length=8).generate()) == 8

    def test_codes_vary(self):
        generator = ShortCodeGenerator()
        assert len({generator.generate() for _ in range(100)}) > 95

    def test_rejects_non_positive_length(self):
        with pytest.raises(ValueError):
            ShortCodeGenerator(length=0)


class TestShorten:

    @pytest.mark.asyncio
    async def test_shorten_valid_url(self, repositories):
        service = URLShorteningService(repositories.urls)

        created = await service.shorten("https://example.com/path?q=1")

        assert len(created.short_code) == 6
        assert set(created.short_code) <= set(BASE62_CHARS)
        fetched = await service.get_url(created.short_code)
        assert fetched.url == "https://example.com/path?q=1"
        assert fetched.access_count == 0
        assert fetched.user_id is None

    @pytest.mark.asyncio
    async def test_shorten_trims_and_records_owner(self, repositories, alice):
        service = URLShorteningService(repositories.urls)

        created = await service.shorten("  https://example.com  ", owner_id=alice.id)

        assert created.url == "https://example.com"
        assert created.user_id == alice.id

    @pytest.mark.asyncio
    async def test_url_length_boundary(self, repositories):
        service = URLShorteningService(repositories.urls)
        prefix = "https://example.com/"

        accepted = prefix + "a" * (2048 - len(prefix))
        assert (await service.shorten(accepted)).url == accepted

        with pytest.raises(ValidationFailedError):
            await service.shorten(accepted + "a")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("bad_url", [
        "ftp://example.com",
        "example.com",
        "",
        "   ",
        "http://",
        "javascript:alert(1)",
        "http://example.com:abc/",
        "https://example.com/\ud800",
    ])
    async def test_invalid_urls_rejected(self, repositories, bad_url):
        service = URLShorteningService(repositories.urls)

        with pytest.raises(ValidationFailedError) as exc_info:
            await service.shorten(bad_url)

        assert exc_info.value.errors

    @pytest.mark.asyncio
    async def test_collision_is_retried(self, repositories, code_sequence, caplog):
        await repositories.urls.create_url(ShortURL(url="https://a.com", short_code="taken1"))
        generator = code_sequence(["taken1", "taken1", "fresh1"])
        service = URLShorteningService(repositories.urls, generator=generator)

        with caplog.at_level(logging.WARNING, logger="shortlinks.services.url_service"):
            created = await service.shorten("https://b.com")

        assert created.short_code == "fresh1"
        assert generator.calls == 3
        assert "collision" in caplog.text
        assert (await repositories.urls.get_url_by_code("taken1")).url == "https://a.com"

    @pytest.mark.asyncio
    async def test_exhaustion_after_max_attempts(self, repositories, code_sequence):
        await repositories.urls.create_url(ShortURL(url="https://a.com", short_code="taken1"))
        generator = code_sequence(["taken1"] * 10)
        service = URLShorteningService(repositories.urls, generator=generator)

        with pytest.raises(CodeSpaceExhaustedError) as exc_info:
            await service.shorten("https://b.com")

        assert exc_info.value.attempts == 10
        assert generator.calls == 10

    @pytest.mark.asyncio
    async def test_concurrent_shorten_never_shares_a_code(self, repositories, code_sequence):
        # The first three candidates are identical, so concurrent tasks race
        # on one code and the losers must retry
        shared = code_sequence(["same01"] * 3 + [f"u{i:05d}" for i in range(100)])
        service = URLShorteningService(repositories.urls, generator=shared)
        results = await asyncio.gather(
            *(service.shorten(f"https://example.com/{i}") for i in range(15))
        )

        codes_stored = [r.short_code for r in results]
        assert len(set(codes_stored)) == 15
        for result in results:
            stored = await repositories.urls.get_url_by_code(result.short_code)
            assert stored.url == result.url

    @pytest.mark.asyncio
    async def test_storage_failure_is_not_retried(self, code_sequence):
        class FailingURLs:
            calls = 0

            async def create_url(self, url):
                self.calls += 1
                raise StorageUnavailableError("timed out")

        urls = FailingURLs()
        service = URLShorteningService(urls, generator=code_sequence(["abc123", "def456"]))

        with pytest.raises(StorageUnavailableError):
            await service.shorten("https://example.com")

        assert urls.calls == 1


class TestUpdateAndDelete:

    @pytest.mark.asyncio
    async def test_update_by_owner(self, repositories, alice):
        service = URLShorteningService(repositories.urls)
        created = await service.shorten("https://old.com", owner_id=alice.id)
        await service.record_access(created.short_code)
        await asyncio.sleep(0.01)

        await service.update(created.short_code, "https://new.com", alice.id)

        fetched = await service.get_url(created.short_code)
        assert fetched.url == "https://new.com"
        assert fetched.short_code == created.short_code
        assert fetched.access_count == 1
        assert fetched.updated_at > created.updated_at

    @pytest.mark.asyncio
    async def test_non_owner_cannot_update_or_delete(self, repositories, alice, bob):
        service = URLShorteningService(repositories.urls)
        created = await service.shorten("https://alice.com", owner_id=alice.id)

        with pytest.raises(ForbiddenError):
            await service.update(created.short_code, "https://bob.com", bob.id)
        with pytest.raises(ForbiddenError):
            await service.update(created.short_code, "https://anon.com", None)
        with pytest.raises(ForbiddenError):
            await service.delete(created.short_code, bob.id)

        unchanged = await service.get_url(created.short_code)
        assert unchanged.url == "https://alice.com"
        assert unchanged.updated_at == created.updated_at

    @pytest.mark.asyncio
    async def test_anonymous_url_can_be_changed_by_anyone(self, repositories, bob):
        service = URLShorteningService(repositories.urls)
        created = await service.shorten("https://anon.com")

        updated = await service.update(created.short_code, "https://changed.com", bob.id)
        assert updated.url == "https://changed.com"

        await service.delete(created.short_code, None)
        with pytest.raises(NotFoundError):
            await service.get_url(created.short_code)

    @pytest.mark.asyncio
    async def test_update_validates_before_lookup(self, repositories):
        service = URLShorteningService(repositories.urls)

        with pytest.raises(ValidationFailedError):
            await service.update("nope00", "ftp://example.com", None)
        with pytest.raises(NotFoundError):
            await service.update("nope00", "https://example.com", None)

    @pytest.mark.asyncio
    async def test_delete_missing_code(self, repositories):
        service = URLShorteningService(repositories.urls)

        with pytest.raises(NotFoundError):
            await service.delete("nope00", None)


class TestAccessCounting:

    @pytest.mark.asyncio
    async def test_concurrent_record_access(self, repositories):
        service = URLShorteningService(repositories.urls)
        created = await service.shorten("https://example.com")

        await asyncio.gather(*(service.record_access(created.short_code) for _ in range(25)))

        assert (await service.get_url(created.short_code)).access_count == 25

    @pytest.mark.asyncio
    async def test_record_access_missing_code(self, repositories):
        service = URLShorteningService(repositories.urls)

        with pytest.raises(NotFoundError):
            await service.record_access("nope00")

    @pytest.mark.asyncio
    async def test_full_lifecycle(self, repositories, alice):
        service = URLShorteningService(repositories.urls)

        created = await service.shorten("https://example.com", owner_id=alice.id)
        assert (await service.get_url(created.short_code)).access_count == 0

        for expected in (1, 2, 3):
            assert await service.record_access(created.short_code) == expected
        assert (await service.get_url(created.short_code)).access_count == 3

        await service.delete(created.short_code, alice.id)
        with pytest.raises(NotFoundError):
            await service.get_url(created.short_code)

    @pytest.mark.asyncio
    async def test_list_for_owner(self, repositories, alice, bob):
        service = URLShorteningService(repositories.urls)
        first = await service.shorten("https://one.com", owner_id=alice.id)
        await asyncio.sleep(0.01)
        second = await service.shorten("https://two.com", owner_id=alice.id)
        await service.shorten("https://bob.com", owner_id=bob.id)

        listed = await service.list_for_owner(alice.id)

        assert [u.short_code for u in listed] == [second.short_code, first.short_code]

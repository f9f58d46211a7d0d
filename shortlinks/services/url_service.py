"""
URL Shortening Service

This service handles the core business logic for URL shortening:
- Validating target URLs
- Allocating unique short codes (generate, insert, retry on collision)
- Ownership checks for update and delete
- Recording accesses

Design Decisions:
- Uniqueness is enforced by storage: the repository insert is the check,
  so concurrent shorten calls can never store the same code twice
- Only confirmed collisions (DuplicateCodeError) are retried; a write whose
  outcome is unknown (StorageUnavailableError) is surfaced, never repeated
- Anonymous links (no owner) may be updated or deleted by any requester
- Storage errors pass through unchanged; this layer only adds validation
  and ownership errors
"""

import logging
from typing import Optional, Protocol, Sequence

from shortlinks.core.entities import ShortURL
from shortlinks.core.exceptions import (
    CodeSpaceExhaustedError,
    DuplicateCodeError,
    ForbiddenError,
    ValidationFailedError,
)
from shortlinks.core.validators import validate_target_url
from shortlinks.repositories.base import URLRepository
from shortlinks.services.short_code import ShortCodeGenerator

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 10


class CodeGenerator(Protocol):
    def generate(self) -> str: ...


def check_owner(url: ShortURL, requester_id: Optional[str]) -> None:
    """
    Reject requesters who do not own an owned URL.

    Raises:
        ForbiddenError: If the URL has an owner other than the requester
    """
    if url.user_id is not None and url.user_id != requester_id:
        logger.warning(
            "Requester %s denied access to short code %s", requester_id, url.short_code
        )
        raise ForbiddenError("You do not have permission to modify this URL")


class URLShorteningService:
    """
    Core business logic for URL shortening.

    Separated from the API layer and from storage so the same rules apply
    to every repository backend.
    """

    def __init__(
        self,
        urls: URLRepository,
        generator: Optional[CodeGenerator] = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ):
        """
        Initialize the URL shortening service.

        Args:
            urls: URL repository
            generator: Source of candidate codes (default: 6-char base62)
            max_attempts: Collision retries before CodeSpaceExhaustedError
        """
        self.urls = urls
        self.generator = generator or ShortCodeGenerator()
        self.max_attempts = max_attempts

    @staticmethod
    def _validated(target_url: Optional[str]) -> str:
        errors = validate_target_url(target_url)
        if errors:
            raise ValidationFailedError(errors)
        return target_url.strip()

    async def shorten(self, target_url: str, owner_id: Optional[str] = None) -> ShortURL:
        """
        Create a short URL for ``target_url``.

        Args:
            target_url: The long URL to shorten
            owner_id: Owning user, or None for an anonymous link

        Returns:
            The stored ShortURL (access count 0)

        Raises:
            ValidationFailedError: If the URL breaks any rule
            CodeSpaceExhaustedError: If every attempt collided
            NotFoundError: If ``owner_id`` is not a registered user
        """
        url = self._validated(target_url)

        for attempt in range(1, self.max_attempts + 1):
            candidate = ShortURL(url=url, short_code=self.generator.generate(), user_id=owner_id)
            try:
                return await self.urls.create_url(candidate)
            except DuplicateCodeError:
                logger.warning(
                    "Short code collision on %s (attempt %d/%d)",
                    candidate.short_code, attempt, self.max_attempts,
                )

        logger.error(
            "Short code space exhausted after %d attempts; consider a longer SHORT_CODE_LENGTH",
            self.max_attempts,
        )
        raise CodeSpaceExhaustedError(self.max_attempts)

    async def get_url(self, short_code: str) -> ShortURL:
        return await self.urls.get_url_by_code(short_code)

    async def update(
        self, short_code: str, new_target_url: str, requester_id: Optional[str]
    ) -> ShortURL:
        """
        Point an existing short code at a new target.

        Raises:
            ValidationFailedError: If the new URL breaks any rule
            NotFoundError: If the code does not exist
            ForbiddenError: If the requester does not own the URL
        """
        url = self._validated(new_target_url)
        existing = await self.urls.get_url_by_code(short_code)
        check_owner(existing, requester_id)
        return await self.urls.update_url(short_code, url)

    async def delete(self, short_code: str, requester_id: Optional[str]) -> None:
        """
        Delete a short URL.

        Raises:
            NotFoundError: If the code does not exist
            ForbiddenError: If the requester does not own the URL
        """
        existing = await self.urls.get_url_by_code(short_code)
        check_owner(existing, requester_id)
        await self.urls.delete_url(short_code)
        logger.info("Deleted short code %s", short_code)

    async def record_access(self, short_code: str) -> int:
        """Count one access and return the new total. No ownership check."""
        return await self.urls.increment_access_count(short_code)

    async def list_for_owner(self, owner_id: str) -> Sequence[ShortURL]:
        return await self.urls.list_urls_by_owner(owner_id)

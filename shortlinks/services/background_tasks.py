"""
Background Task Helpers

Work scheduled after the response is sent. Failures cannot reach the client
any more, so they are logged instead of raised.
"""

import logging

from shortlinks.core.exceptions import URLShortenerException
from shortlinks.services.url_service import URLShorteningService

logger = logging.getLogger(__name__)


async def record_access_background(service: URLShorteningService, short_code: str) -> None:
    """
    Background task to count a redirect.

    Uses the repository's atomic increment, so concurrent redirects of the
    same code are all counted.

    Args:
        service: URL service bound to the application's repositories
        short_code: The short code that was accessed
    """
    try:
        await service.record_access(short_code)
    except URLShortenerException as e:
        logger.error(
            "Failed to record access for %s: %s", short_code, e,
            exc_info=True,
        )
    except Exception:
        logger.exception("Unexpected error recording access for %s", short_code)

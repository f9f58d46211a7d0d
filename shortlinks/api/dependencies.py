"""
FastAPI Dependencies

Request-scoped wiring: services are cheap objects built per request around
the repositories created once at startup (``app.state.repositories``).
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status

from shortlinks.core.exceptions import StorageUnavailableError, ValidationFailedError
from shortlinks.core.setting import settings
from shortlinks.core.validators import sanitize_short_code
from shortlinks.repositories.factory import Repositories
from shortlinks.services.category_service import CategoryService
from shortlinks.services.short_code import ShortCodeGenerator
from shortlinks.services.url_service import URLShorteningService
from shortlinks.services.user_service import UserService


def get_repositories(request: Request) -> Repositories:
    repositories = getattr(request.app.state, "repositories", None)
    if repositories is None:
        raise StorageUnavailableError("storage backend is not initialized")
    return repositories


def get_url_service(
    request: Request,
    repositories: Repositories = Depends(get_repositories),
) -> URLShorteningService:
    generator = getattr(request.app.state, "code_generator", None)
    return URLShorteningService(
        repositories.urls,
        generator=generator or ShortCodeGenerator(settings.SHORT_CODE_LENGTH),
        max_attempts=settings.SHORT_CODE_MAX_ATTEMPTS,
    )


def get_category_service(
    repositories: Repositories = Depends(get_repositories),
) -> CategoryService:
    return CategoryService(repositories.categories, repositories.urls)


def get_user_service(
    repositories: Repositories = Depends(get_repositories),
) -> UserService:
    return UserService(repositories.users)


def get_requester_id(x_user_id: Optional[str] = Header(default=None)) -> Optional[str]:
    """
    Authenticated user id, set by the upstream authentication layer.

    Returns None for anonymous requests.
    """
    if x_user_id is None or not x_user_id.strip():
        return None
    return x_user_id.strip()


def require_requester_id(requester_id: Optional[str] = Depends(get_requester_id)) -> str:
    if requester_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    return requester_id


def valid_short_code(short_code: str) -> str:
    """Path parameter guard: only base62 codes reach the services."""
    sanitized = sanitize_short_code(short_code)
    if not sanitized:
        raise ValidationFailedError(
            ["Short codes must contain only alphanumeric characters"],
            message=f"Invalid short code format: '{short_code}'",
        )
    return sanitized

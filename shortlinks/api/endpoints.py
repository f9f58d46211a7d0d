"""
FastAPI Endpoints for URL Shortener Service

This module defines all REST API endpoints with minimal logic.
Endpoints only handle:
- Request parsing (Pydantic models) and short code sanitation
- Resolving the requester from the X-User-Id header
- Delegating to service layer

Domain errors propagate to the application's exception handler, which maps
each error kind to an HTTP status and the JSON error envelope.

Two routers:
- ``router``: the API
- ``redirect_router``: the ``GET /{short_code}`` catch-all, which must be
  registered after every other route
"""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Response, status
from fastapi.responses import RedirectResponse

from shortlinks.api.dependencies import (
    get_category_service,
    get_requester_id,
    get_url_service,
    get_user_service,
    require_requester_id,
    valid_short_code,
)
from shortlinks.api.schemas import (
    AccessResponse,
    CategoryCreateRequest,
    CategoryIdsRequest,
    CategoryResponse,
    CategoryUpdateRequest,
    CategoryWithCountResponse,
    ErrorResponse,
    ShortenRequest,
    ShortURLResponse,
    StatsResponse,
    UpdateURLRequest,
    UserCreateRequest,
    UserResponse,
)
from shortlinks.core.entities import ShortURL
from shortlinks.core.setting import settings
from shortlinks.services.background_tasks import record_access_background
from shortlinks.services.category_service import CategoryService
from shortlinks.services.url_service import URLShorteningService
from shortlinks.services.user_service import UserService

ERROR_RESPONSES = {
    status_code: {"model": ErrorResponse} for status_code in (400, 401, 403, 404, 409, 500)
}

router = APIRouter(responses=ERROR_RESPONSES)
redirect_router = APIRouter()


def to_response(url: ShortURL) -> ShortURLResponse:
    return ShortURLResponse(
        **url.model_dump(),
        short_url=f"{settings.BASE_URL.rstrip('/')}/{url.short_code}",
    )


# Users

@router.post(
    "/users",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Users"],
    summary="Register a user",
)
async def register_user(
    body: UserCreateRequest,
    users: UserService = Depends(get_user_service),
) -> UserResponse:
    user = await users.register(body.email, body.password_hash)
    return UserResponse.model_validate(user)


# Short URLs

@router.post(
    "/shorten",
    response_model=ShortURLResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["URL Shortener"],
    summary="Create a short URL",
    description="Takes a long URL and returns a shortened version with a unique code",
)
async def create_short_url(
    body: ShortenRequest,
    requester_id: Optional[str] = Depends(get_requester_id),
    urls: URLShorteningService = Depends(get_url_service),
) -> ShortURLResponse:
    """
    Create a new short URL from a long URL.

    Anonymous requests create ownerless links.
    """
    short_url = await urls.shorten(body.url, owner_id=requester_id)
    return to_response(short_url)


@router.get(
    "/shorten/{short_code}",
    response_model=ShortURLResponse,
    tags=["URL Shortener"],
    summary="Get a short URL",
)
async def get_short_url(
    short_code: str = Depends(valid_short_code),
    urls: URLShorteningService = Depends(get_url_service),
) -> ShortURLResponse:
    return to_response(await urls.get_url(short_code))


@router.put(
    "/shorten/{short_code}",
    response_model=ShortURLResponse,
    tags=["URL Shortener"],
    summary="Change the target of a short URL",
)
async def update_short_url(
    body: UpdateURLRequest,
    short_code: str = Depends(valid_short_code),
    requester_id: Optional[str] = Depends(get_requester_id),
    urls: URLShorteningService = Depends(get_url_service),
) -> ShortURLResponse:
    return to_response(await urls.update(short_code, body.url, requester_id))


@router.delete(
    "/shorten/{short_code}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["URL Shortener"],
    summary="Delete a short URL",
)
async def delete_short_url(
    short_code: str = Depends(valid_short_code),
    requester_id: Optional[str] = Depends(get_requester_id),
    urls: URLShorteningService = Depends(get_url_service),
) -> Response:
    await urls.delete(short_code, requester_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/shorten/{short_code}/stats",
    response_model=StatsResponse,
    tags=["URL Shortener"],
    summary="Get URL statistics",
    description="Returns statistics for a short URL including access count and creation date",
)
async def get_url_stats(
    short_code: str = Depends(valid_short_code),
    urls: URLShorteningService = Depends(get_url_service),
) -> StatsResponse:
    return StatsResponse.model_validate(await urls.get_url(short_code))


@router.post(
    "/shorten/{short_code}/access",
    response_model=AccessResponse,
    tags=["URL Shortener"],
    summary="Record an access",
)
async def record_access(
    short_code: str = Depends(valid_short_code),
    urls: URLShorteningService = Depends(get_url_service),
) -> AccessResponse:
    count = await urls.record_access(short_code)
    return AccessResponse(short_code=short_code, access_count=count)


@router.get(
    "/urls",
    response_model=list[ShortURLResponse],
    tags=["URL Shortener"],
    summary="List the requester's URLs, newest first",
)
async def list_user_urls(
    requester_id: str = Depends(require_requester_id),
    urls: URLShorteningService = Depends(get_url_service),
) -> list[ShortURLResponse]:
    return [to_response(url) for url in await urls.list_for_owner(requester_id)]


# URL <-> category associations

@router.get(
    "/shorten/{short_code}/categories",
    response_model=list[CategoryResponse],
    tags=["Categories"],
    summary="List the categories of a URL",
)
async def list_url_categories(
    short_code: str = Depends(valid_short_code),
    requester_id: str = Depends(require_requester_id),
    categories: CategoryService = Depends(get_category_service),
) -> list[CategoryResponse]:
    found = await categories.categories_for_url(short_code, requester_id)
    return [CategoryResponse.model_validate(c) for c in found]


@router.post(
    "/shorten/{short_code}/categories",
    response_model=list[CategoryResponse],
    tags=["Categories"],
    summary="Attach categories to a URL",
)
async def attach_url_categories(
    body: CategoryIdsRequest,
    short_code: str = Depends(valid_short_code),
    requester_id: str = Depends(require_requester_id),
    categories: CategoryService = Depends(get_category_service),
) -> list[CategoryResponse]:
    attached = await categories.attach_categories(short_code, body.category_ids, requester_id)
    return [CategoryResponse.model_validate(c) for c in attached]


@router.post(
    "/shorten/{short_code}/categories/detach",
    response_model=list[CategoryResponse],
    tags=["Categories"],
    summary="Detach categories from a URL",
)
async def detach_url_categories(
    body: CategoryIdsRequest,
    short_code: str = Depends(valid_short_code),
    requester_id: str = Depends(require_requester_id),
    categories: CategoryService = Depends(get_category_service),
) -> list[CategoryResponse]:
    remaining = await categories.detach_categories(short_code, body.category_ids, requester_id)
    return [CategoryResponse.model_validate(c) for c in remaining]


# Categories

@router.post(
    "/categories",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Categories"],
    summary="Create a category",
)
async def create_category(
    body: CategoryCreateRequest,
    requester_id: str = Depends(require_requester_id),
    categories: CategoryService = Depends(get_category_service),
) -> CategoryResponse:
    category = await categories.create(
        requester_id, body.name, body.description, body.icon, body.color
    )
    return CategoryResponse.model_validate(category)


@router.get(
    "/categories",
    response_model=list[CategoryWithCountResponse],
    tags=["Categories"],
    summary="List the requester's categories with URL counts",
)
async def list_categories(
    requester_id: str = Depends(require_requester_id),
    categories: CategoryService = Depends(get_category_service),
) -> list[CategoryWithCountResponse]:
    counted = await categories.list_with_counts(requester_id)
    return [CategoryWithCountResponse.model_validate(c) for c in counted]


@router.get(
    "/categories/{category_id}",
    response_model=CategoryResponse,
    tags=["Categories"],
    summary="Get a category",
)
async def get_category(
    category_id: str,
    requester_id: str = Depends(require_requester_id),
    categories: CategoryService = Depends(get_category_service),
) -> CategoryResponse:
    return CategoryResponse.model_validate(await categories.get(category_id, requester_id))


@router.put(
    "/categories/{category_id}",
    response_model=CategoryResponse,
    tags=["Categories"],
    summary="Update a category",
)
async def update_category(
    category_id: str,
    body: CategoryUpdateRequest,
    requester_id: str = Depends(require_requester_id),
    categories: CategoryService = Depends(get_category_service),
) -> CategoryResponse:
    category = await categories.update(
        category_id,
        requester_id,
        name=body.name,
        description=body.description,
        icon=body.icon,
        color=body.color,
    )
    return CategoryResponse.model_validate(category)


@router.delete(
    "/categories/{category_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["Categories"],
    summary="Delete a category (its URLs are kept)",
)
async def delete_category(
    category_id: str,
    requester_id: str = Depends(require_requester_id),
    categories: CategoryService = Depends(get_category_service),
) -> Response:
    await categories.delete(category_id, requester_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/categories/{category_id}/urls",
    response_model=list[ShortURLResponse],
    tags=["Categories"],
    summary="List the URLs in a category, newest first",
)
async def list_category_urls(
    category_id: str,
    requester_id: str = Depends(require_requester_id),
    categories: CategoryService = Depends(get_category_service),
) -> list[ShortURLResponse]:
    urls = await categories.get_urls_by_category(category_id, requester_id)
    return [to_response(url) for url in urls]


# Redirect (catch-all, registered last)

@redirect_router.get(
    "/{short_code}",
    status_code=status.HTTP_302_FOUND,
    tags=["Redirect"],
    summary="Redirect to original URL",
    description="Takes a short code and redirects to the original long URL",
)
async def redirect_to_url(
    background_tasks: BackgroundTasks,
    short_code: str = Depends(valid_short_code),
    urls: URLShorteningService = Depends(get_url_service),
) -> RedirectResponse:
    """
    Redirect to the original URL for a given short code.

    The access is counted in a background task after the response is sent.
    """
    short_url = await urls.get_url(short_code)
    background_tasks.add_task(record_access_background, urls, short_code)
    return RedirectResponse(url=short_url.url, status_code=status.HTTP_302_FOUND)

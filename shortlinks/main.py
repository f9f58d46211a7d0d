"""
FastAPI Application Entry Point

This module initializes the FastAPI application and configures:
- API routes
- Middleware (logging, CORS)
- Error handling: one handler maps every domain error kind to an HTTP
  status and the JSON error envelope {"error", "code", "details"}; anything
  unexpected is logged and rendered as a 500 "internal_error" envelope
- Storage backend lifecycle (created on startup, disposed on shutdown)

Design Decisions:
- Clean separation: Routes, middleware, and app config are separate
- The redirect catch-all router is included last so it never shadows the
  API routes
- Repositories already placed on ``app.state`` (e.g. by tests) are used
  as-is instead of building the configured backend
"""

import logging
import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from shortlinks.api import endpoints
from shortlinks.core.exceptions import URLShortenerException, ValidationFailedError
from shortlinks.core.logging_config import configure_logging
from shortlinks.core.setting import settings
from shortlinks.middleware.logging import add_logging_middleware
from shortlinks.repositories.factory import create_repositories

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    "validation_failed": 400,
    "forbidden": 403,
    "not_found": 404,
    "duplicate_email": 409,
    "duplicate_category": 409,
    "duplicate_code": 409,
    "code_space_exhausted": 500,
    "storage_unavailable": 500,
    "internal_error": 500,
}

HTTP_CODES = {401: "unauthorized", 404: "not_found", 405: "method_not_allowed"}


def error_response(status_code: int, message: str, kind: str, details=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": message, "code": kind, "details": list(details or [])},
    )


async def handle_domain_error(request: Request, exc: URLShortenerException) -> JSONResponse:
    status_code = STATUS_BY_KIND.get(exc.kind, 500)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    details = exc.errors if isinstance(exc, ValidationFailedError) else []
    return error_response(status_code, exc.message, exc.kind, details)


async def handle_request_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    details = [
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    ]
    return error_response(400, "Validation failed", ValidationFailedError.kind, details)


async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    response = error_response(
        exc.status_code, str(exc.detail), HTTP_CODES.get(exc.status_code, "http_error")
    )
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(500, "Internal server error", "internal_error")


def create_app() -> FastAPI:
    # Title and description are used in auto-generated API documentation
    app = FastAPI(
        title="Short Links Service",
        description="URL shortening with categories and pluggable storage, built with FastAPI",
        version="1.0.0",
        docs_url="/docs",  # Swagger UI documentation
        redoc_url="/redoc",  # ReDoc documentation
    )
    app.state.repositories = None
    app.state.owns_repositories = False
    app.state.started_at = time.monotonic()

    app.add_exception_handler(URLShortenerException, handle_domain_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    add_logging_middleware(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health endpoints defined before the redirect router so they match first
    @app.get("/", tags=["Health"])
    async def root():
        """Root endpoint for health checks."""
        return {
            "message": "Short Links Service",
            "version": "1.0.0",
            "docs": "/docs",
        }

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint for load balancers and monitoring."""
        return {
            "status": "healthy",
            "storage": settings.STORAGE_BACKEND.value,
            "uptime_seconds": round(time.monotonic() - app.state.started_at, 3),
        }

    app.include_router(endpoints.router)
    app.include_router(endpoints.redirect_router)

    @app.on_event("startup")
    async def startup_event():
        """Build the configured storage backend."""
        configure_logging(settings.LOG_LEVEL)
        if app.state.repositories is None:
            app.state.repositories = await create_repositories(settings)
            app.state.owns_repositories = True
        logger.info("Short links service started (%s)", settings.ENV_SETTING.value)

    @app.on_event("shutdown")
    async def shutdown_event():
        """Release storage connections."""
        if app.state.owns_repositories and app.state.repositories is not None:
            await app.state.repositories.close()
            app.state.repositories = None
            app.state.owns_repositories = False

    return app


app = create_app()

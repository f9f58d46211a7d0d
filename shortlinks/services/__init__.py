"""
Services module for business logic separation.

This module contains service classes that encapsulate business logic,
keeping it separate from API endpoints and storage backends.
"""

from shortlinks.services.category_service import CategoryService
from shortlinks.services.short_code import BASE62_CHARS, ShortCodeGenerator
from shortlinks.services.url_service import URLShorteningService
from shortlinks.services.user_service import UserService

__all__ = [
    "BASE62_CHARS",
    "CategoryService",
    "ShortCodeGenerator",
    "URLShorteningService",
    "UserService",
]

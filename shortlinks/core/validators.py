"""
Input Validators and Sanitizers

This module provides validation and sanitization functions for user inputs.
These functions help prevent security issues and ensure data integrity.

Validators return the full list of violated rules (empty when valid) so a
single response can report every problem at once.

Security Considerations:
- Only http/https targets are accepted (no javascript:, data:, file:)
- Short codes are restricted to the base62 alphabet
- Length limits prevent DoS attacks
"""

import re
from typing import Optional
from urllib.parse import urlsplit

MAX_URL_LENGTH = 2048  # RFC 7230 practical limit
MAX_EMAIL_LENGTH = 255
MAX_CATEGORY_NAME_LENGTH = 100
MAX_CATEGORY_DESCRIPTION_LENGTH = 500
MAX_CATEGORY_TOKEN_LENGTH = 50

ALLOWED_SCHEMES = {"http", "https"}

_SHORT_CODE_RE = re.compile(r"^[0-9a-zA-Z]+$")
_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_BAD_NETLOC_RE = re.compile(r"[\s\x00-\x1f\x7f]")


def sanitize_short_code(short_code: str) -> Optional[str]:
    """
    Sanitize and validate short code format.

    Short codes should only contain base62 characters: [0-9a-zA-Z]
    This prevents injection attacks and ensures consistency.

    Args:
        short_code: The short code to sanitize

    Returns:
        Sanitized short code if valid, None otherwise
    """
    if not short_code or not isinstance(short_code, str):
        return None

    short_code = short_code.strip()

    # Generated codes are 6 chars by default, never more than 10
    if len(short_code) > 20:
        return None

    if not _SHORT_CODE_RE.match(short_code):
        return None

    return short_code


def validate_target_url(url: Optional[str]) -> list[str]:
    """
    Validate a target URL and report every violated rule.

    Rules:
    - non-empty after trimming
    - at most 2048 characters
    - absolute URL with scheme http or https
    - non-empty host with no whitespace or control characters
    - numeric port within 0-65535 when present
    - encodable as UTF-8

    Args:
        url: The URL string to validate

    Returns:
        List of human-readable violations, empty if the URL is valid
    """
    if url is None or not isinstance(url, str):
        return ["URL is required and must be a string"]

    trimmed = url.strip()
    if not trimmed:
        return ["URL cannot be empty"]

    errors = []
    if len(trimmed) > MAX_URL_LENGTH:
        errors.append(f"URL is too long (maximum {MAX_URL_LENGTH} characters)")

    try:
        trimmed.encode("utf-8")
    except UnicodeEncodeError:
        errors.append("URL contains characters that cannot be encoded")
        return errors

    try:
        parts = urlsplit(trimmed)
        hostname = parts.hostname
        # Raises for a non-numeric or out-of-range port
        parts.port
    except ValueError:
        errors.append("URL is not valid")
        return errors

    if not parts.scheme:
        errors.append("URL must be absolute (include http:// or https://)")
    elif parts.scheme.lower() not in ALLOWED_SCHEMES:
        errors.append("URL must use HTTP or HTTPS protocol")

    if not hostname:
        errors.append("URL must have a valid hostname")
    elif _BAD_NETLOC_RE.search(parts.netloc):
        errors.append("URL host cannot contain whitespace or control characters")

    return errors


def validate_email(email: Optional[str]) -> list[str]:
    """Validate an email address, returning every violated rule."""
    if email is None or not isinstance(email, str):
        return ["Email is required and must be a string"]

    trimmed = email.strip()
    if not trimmed:
        return ["Email cannot be empty"]

    errors = []
    if len(trimmed) > MAX_EMAIL_LENGTH:
        errors.append(f"Email is too long (maximum {MAX_EMAIL_LENGTH} characters)")
    if not _EMAIL_RE.match(trimmed):
        errors.append("Email is not valid")
    return errors


def validate_category_fields(
    name: Optional[str],
    description: Optional[str] = None,
    icon: Optional[str] = None,
    color: Optional[str] = None,
) -> list[str]:
    """Validate category fields, returning every violated rule."""
    errors = []

    if name is None or not name.strip():
        errors.append("Category name cannot be empty")
    elif len(name.strip()) > MAX_CATEGORY_NAME_LENGTH:
        errors.append(
            f"Category name is too long (maximum {MAX_CATEGORY_NAME_LENGTH} characters)"
        )

    if description is not None and len(description) > MAX_CATEGORY_DESCRIPTION_LENGTH:
        errors.append(
            f"Description is too long (maximum {MAX_CATEGORY_DESCRIPTION_LENGTH} characters)"
        )

    for label, token in (("Icon", icon), ("Color", color)):
        if token is not None and len(token) > MAX_CATEGORY_TOKEN_LENGTH:
            errors.append(
                f"{label} is too long (maximum {MAX_CATEGORY_TOKEN_LENGTH} characters)"
            )

    return errors

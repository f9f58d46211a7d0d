"""
Custom Exceptions

This module defines the error taxonomy shared by every storage backend and
service. Each exception carries a machine-readable ``kind`` and a
human-readable message, so the transport layer can map errors to HTTP
responses without knowing which backend raised them.

Kinds:
- validation_failed:     bad input, lists every violated rule
- not_found:             entity absent
- duplicate_code:        short code already stored
- duplicate_email:       email already registered
- duplicate_category:    category name already used by the owner
- forbidden:             ownership mismatch
- code_space_exhausted:  collision retry budget exceeded
- storage_unavailable:   backend timeout or connection failure
"""

from typing import Optional


class URLShortenerException(Exception):
    """Base exception for URL shortener service."""

    kind = "internal_error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationFailedError(URLShortenerException):
    """Raised when input validation fails. Collects every violation."""

    kind = "validation_failed"

    def __init__(self, errors: list[str], message: str = "Validation failed"):
        self.errors = list(errors)
        super().__init__(message)

    def __str__(self) -> str:
        return f"{self.message}: {'; '.join(self.errors)}"


class NotFoundError(URLShortenerException):
    """Raised when an entity is not found in storage."""

    kind = "not_found"

    def __init__(self, entity: str, identifier: str):
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity} '{identifier}' not found")


class ShortCodeNotFoundError(NotFoundError):
    """Raised when a short code is not found in the database."""

    def __init__(self, short_code: str):
        self.short_code = short_code
        super().__init__("Short URL", short_code)


class DuplicateCodeError(URLShortenerException):
    """Raised when a short code already exists in storage."""

    kind = "duplicate_code"

    def __init__(self, short_code: str):
        self.short_code = short_code
        super().__init__(f"Short code '{short_code}' already exists")


class DuplicateEmailError(URLShortenerException):
    """Raised when an email is already registered."""

    kind = "duplicate_email"

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"Email '{email}' is already registered")


class DuplicateCategoryError(URLShortenerException):
    """Raised when the owner already has a category with the same name."""

    kind = "duplicate_category"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Category with name '{name}' already exists")


class ForbiddenError(URLShortenerException):
    """Raised when the requester does not own the resource."""

    kind = "forbidden"

    def __init__(self, message: str = "You do not have access to this resource"):
        super().__init__(message)


class CodeSpaceExhaustedError(URLShortenerException):
    """
    Raised when every generated candidate collided.

    Repeated occurrences mean the code space is too crowded for the
    configured length; operators should increase SHORT_CODE_LENGTH.
    """

    kind = "code_space_exhausted"

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(
            f"Could not allocate a unique short code after {attempts} attempts"
        )


class StorageUnavailableError(URLShortenerException):
    """Raised when the storage backend times out or cannot be reached."""

    kind = "storage_unavailable"

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.original_error = original_error
        super().__init__(f"Storage unavailable: {message}")

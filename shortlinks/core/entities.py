"""
Domain Entities

Backend-independent records returned by every repository. The in-memory
backend stores and hands out copies of these; the relational backends build
them from rows (``from_attributes=True``), so services never see ORM state.

Timestamps are always timezone-aware UTC. Engines that drop the offset
(SQLite, MySQL DATETIME) hand back naive values which are interpreted as UTC.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Opaque unique identifier (UUID4 string, fits CHAR(36))."""
    return str(uuid.uuid4())


class _Entity(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    @field_validator("created_at", "updated_at", check_fields=False)
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class User(_Entity):
    """A registered user. Email is unique and compared case-sensitively."""
    id: str = Field(default_factory=new_id)
    email: str
    password_hash: str
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class ShortURL(_Entity):
    """
    A shortened link.

    ``short_code`` and ``user_id`` never change after creation; only ``url``
    (and with it ``updated_at``) is editable. ``user_id`` is None for
    anonymous links or after the owner was deleted.
    """
    id: str = Field(default_factory=new_id)
    url: str
    short_code: str
    user_id: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    access_count: int = Field(default=0, ge=0)


class Category(_Entity):
    """A user-owned label; name is unique per owner."""
    id: str = Field(default_factory=new_id)
    name: str
    description: Optional[str] = None
    icon: str = "folder"
    color: str = "primary"
    user_id: str
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class CategoryWithCount(Category):
    """Category annotated with the number of distinct URLs attached to it."""
    url_count: int = 0

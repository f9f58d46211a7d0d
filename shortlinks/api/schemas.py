"""
API Request and Response Schemas

This module defines all Pydantic models for API requests and responses.
Separated from endpoints to keep concerns separated and enable reuse.

Design Principles:
- Request models: shape only; business validation (URL rules, category
  limits) happens in the services so every rule violation is reported at once
- Response models: built from domain entities (``from_attributes``)
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ShortenRequest(BaseModel):
    """Request model for URL shortening endpoint."""
    url: str = Field(..., description="The long URL to shorten")


class UpdateURLRequest(BaseModel):
    """Request model for changing the target of a short code."""
    url: str = Field(..., description="The new target URL")


class ShortURLResponse(BaseModel):
    """A short URL as returned by the API."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    short_code: str = Field(..., description="The generated short code")
    short_url: str = Field("", description="The complete short URL")
    url: str = Field(..., description="The target URL")
    user_id: Optional[str] = None
    access_count: int
    created_at: datetime
    updated_at: datetime


class StatsResponse(BaseModel):
    """Response model for statistics endpoint."""
    model_config = ConfigDict(from_attributes=True)

    short_code: str
    url: str
    access_count: int
    created_at: datetime
    updated_at: datetime


class AccessResponse(BaseModel):
    short_code: str
    access_count: int


class UserCreateRequest(BaseModel):
    """
    Registration payload.

    The authentication layer hashes the password before calling this API.
    """
    email: str
    password_hash: str


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    created_at: datetime


class CategoryCreateRequest(BaseModel):
    name: str
    description: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None


class CategoryUpdateRequest(BaseModel):
    """Fields left out keep their current value; an empty description clears it."""
    name: Optional[str] = None
    description: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None


class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: Optional[str] = None
    icon: str
    color: str
    user_id: str
    created_at: datetime
    updated_at: datetime


class CategoryWithCountResponse(CategoryResponse):
    url_count: int


class CategoryIdsRequest(BaseModel):
    """Categories to attach to or detach from a URL."""
    category_ids: list[str] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Error envelope shared by every failing response."""
    error: str
    code: str
    details: list[str] = Field(default_factory=list)

"""
Database Models for URL Shortener Service

This module defines the canonical relational schema as SQLModel tables:
- UserRecord: registered users
- ShortURLRecord: mapping between short codes and target URLs
- CategoryRecord: user-owned categories
- URLCategoryRecord: many-to-many junction between URLs and categories

Design Decisions:
- One schema for every relational engine; dialect differences are column
  variants (MySQL DATETIME(6) keeps microseconds), not separate schemas
- Constraints are named so integrity errors can be classified the same way
  on MySQL, PostgreSQL and SQLite
- Cascades live in the schema: deleting a user nulls urls.user_id and drops
  the user's categories; deleting a URL or category drops junction rows
- Opaque CHAR(36) UUID string ids (no sequential id enumeration)
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.dialects import mysql
from sqlmodel import Field, SQLModel

# Aware timestamps on PostgreSQL; microsecond precision on MySQL
TIMESTAMP = DateTime(timezone=True).with_variant(mysql.DATETIME(fsp=6), "mysql")


def case_sensitive_string(length: int):
    """VARCHAR compared byte-wise on MySQL, whose default collation ignores case."""
    return String(length).with_variant(
        mysql.VARCHAR(length, charset="utf8mb4", collation="utf8mb4_bin"), "mysql"
    )


UQ_SHORT_CODE = "uq_urls_short_code"
UQ_USER_EMAIL = "uq_users_email"
UQ_CATEGORY_NAME = "uq_categories_user_name"


class UserRecord(SQLModel, table=True):
    """
    Users table.

    Indexes:
    - email: unique (case-sensitive exact match lookups)
    """
    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("email", name=UQ_USER_EMAIL),)

    id: str = Field(sa_column=Column(String(36), primary_key=True))
    email: str = Field(sa_column=Column(case_sensitive_string(255), nullable=False))
    password_hash: str = Field(sa_column=Column(String(255), nullable=False))
    created_at: datetime = Field(sa_column=Column(TIMESTAMP, nullable=False))
    updated_at: datetime = Field(sa_column=Column(TIMESTAMP, nullable=False))


class ShortURLRecord(SQLModel, table=True):
    """
    Main table storing URL shortening mappings.

    Indexes:
    - short_code: unique constraint, the only cross-request invariant
    - user_id: owner listings
    - created_at: newest-first ordering
    """
    __tablename__ = "urls"
    __table_args__ = (UniqueConstraint("short_code", name=UQ_SHORT_CODE),)

    id: str = Field(sa_column=Column(String(36), primary_key=True))
    url: str = Field(sa_column=Column(String(2048), nullable=False))
    short_code: str = Field(sa_column=Column(case_sensitive_string(10), nullable=False))
    user_id: Optional[str] = Field(
        default=None,
        sa_column=Column(
            String(36),
            ForeignKey("users.id", ondelete="SET NULL", name="fk_urls_user"),
            nullable=True,
            index=True,
        ),
    )
    created_at: datetime = Field(sa_column=Column(TIMESTAMP, nullable=False, index=True))
    updated_at: datetime = Field(sa_column=Column(TIMESTAMP, nullable=False))
    access_count: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, default=0, server_default="0"),
    )


class CategoryRecord(SQLModel, table=True):
    """Categories table; (user_id, name) is unique."""
    __tablename__ = "categories"
    __table_args__ = (UniqueConstraint("user_id", "name", name=UQ_CATEGORY_NAME),)

    id: str = Field(sa_column=Column(String(36), primary_key=True))
    name: str = Field(sa_column=Column(case_sensitive_string(100), nullable=False))
    description: Optional[str] = Field(
        default=None, sa_column=Column(String(500), nullable=True)
    )
    icon: str = Field(
        default="folder",
        sa_column=Column(String(50), nullable=False, server_default="folder"),
    )
    color: str = Field(
        default="primary",
        sa_column=Column(String(50), nullable=False, server_default="primary"),
    )
    user_id: str = Field(
        sa_column=Column(
            String(36),
            ForeignKey("users.id", ondelete="CASCADE", name="fk_categories_user"),
            nullable=False,
            index=True,
        )
    )
    created_at: datetime = Field(sa_column=Column(TIMESTAMP, nullable=False))
    updated_at: datetime = Field(sa_column=Column(TIMESTAMP, nullable=False))


class URLCategoryRecord(SQLModel, table=True):
    """Junction table; the composite primary key makes each pair unique."""
    __tablename__ = "url_categories"

    url_id: str = Field(
        sa_column=Column(
            String(36),
            ForeignKey("urls.id", ondelete="CASCADE", name="fk_url_categories_url"),
            primary_key=True,
        )
    )
    category_id: str = Field(
        sa_column=Column(
            String(36),
            ForeignKey(
                "categories.id", ondelete="CASCADE", name="fk_url_categories_category"
            ),
            primary_key=True,
            index=True,
        )
    )
    created_at: datetime = Field(sa_column=Column(TIMESTAMP, nullable=False))

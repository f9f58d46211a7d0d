"""Initial schema: users, urls, categories, url_categories

Revision ID: 001_initial
Revises:
Create Date: 2026-01-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import mysql

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamp():
    return sa.DateTime(timezone=True).with_variant(mysql.DATETIME(fsp=6), 'mysql')


def _case_sensitive(length: int):
    return sa.String(length).with_variant(
        mysql.VARCHAR(length, charset='utf8mb4', collation='utf8mb4_bin'), 'mysql'
    )


def upgrade() -> None:
    """
    Create the schema:
    - users: registered users, unique email
    - urls: short code mappings, unique short code, owner nulled on user delete
    - categories: per-user labels, unique (user_id, name), cascade on user delete
    - url_categories: junction, cascade on either parent delete
    """
    op.create_table(
        'users',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('email', _case_sensitive(255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('created_at', _timestamp(), nullable=False),
        sa.Column('updated_at', _timestamp(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email', name='uq_users_email'),
    )

    op.create_table(
        'urls',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('url', sa.String(length=2048), nullable=False),
        sa.Column('short_code', _case_sensitive(10), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=True),
        sa.Column('created_at', _timestamp(), nullable=False),
        sa.Column('updated_at', _timestamp(), nullable=False),
        sa.Column('access_count', sa.Integer(), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('short_code', name='uq_urls_short_code'),
        sa.ForeignKeyConstraint(
            ['user_id'], ['users.id'], name='fk_urls_user', ondelete='SET NULL'
        ),
    )
    op.create_index('ix_urls_user_id', 'urls', ['user_id'])
    op.create_index('ix_urls_created_at', 'urls', ['created_at'])

    op.create_table(
        'categories',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', _case_sensitive(100), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=True),
        sa.Column('icon', sa.String(length=50), nullable=False, server_default='folder'),
        sa.Column('color', sa.String(length=50), nullable=False, server_default='primary'),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('created_at', _timestamp(), nullable=False),
        sa.Column('updated_at', _timestamp(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'name', name='uq_categories_user_name'),
        sa.ForeignKeyConstraint(
            ['user_id'], ['users.id'], name='fk_categories_user', ondelete='CASCADE'
        ),
    )
    op.create_index('ix_categories_user_id', 'categories', ['user_id'])

    op.create_table(
        'url_categories',
        sa.Column('url_id', sa.String(length=36), nullable=False),
        sa.Column('category_id', sa.String(length=36), nullable=False),
        sa.Column('created_at', _timestamp(), nullable=False),
        sa.PrimaryKeyConstraint('url_id', 'category_id'),
        sa.ForeignKeyConstraint(
            ['url_id'], ['urls.id'], name='fk_url_categories_url', ondelete='CASCADE'
        ),
        sa.ForeignKeyConstraint(
            ['category_id'], ['categories.id'],
            name='fk_url_categories_category', ondelete='CASCADE',
        ),
    )
    op.create_index('ix_url_categories_category_id', 'url_categories', ['category_id'])


def downgrade() -> None:
    """Drop all tables (children first)."""
    op.drop_index('ix_url_categories_category_id', table_name='url_categories')
    op.drop_table('url_categories')
    op.drop_index('ix_categories_user_id', table_name='categories')
    op.drop_table('categories')
    op.drop_index('ix_urls_created_at', table_name='urls')
    op.drop_index('ix_urls_user_id', table_name='urls')
    op.drop_table('urls')
    op.drop_table('users')

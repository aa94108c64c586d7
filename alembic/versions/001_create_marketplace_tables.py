"""Create users, seller_requests, stores, categories, products and reviews tables.

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
    ]


def upgrade() -> None:
    """Create marketplace tables."""
    # Users table, keyed by the identity-provider subject
    op.create_table(
        'users',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('name', sa.String(255), nullable=True),
        sa.Column('last_name', sa.String(255), nullable=True),
        sa.Column('phone_number', sa.String(50), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('profile_pic_url', sa.String(1000), nullable=True),
        sa.Column('is_approved_seller', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('email', sa.String(255), nullable=True, index=True),
        sa.Column('role', sa.String(20), nullable=False, server_default='buyer', index=True),
        sa.Column('email_confirmed_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )

    # Seller requests table
    op.create_table(
        'seller_requests',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(64), nullable=False, index=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending', index=True),
        sa.Column('message', sa.String(500), nullable=False, server_default=''),
        sa.Column('admin_comment', sa.String(500), nullable=False, server_default=''),
        *_timestamps(),
    )

    # At most one pending request per user
    op.create_index(
        'uq_seller_requests_user_pending',
        'seller_requests',
        ['user_id'],
        unique=True,
        postgresql_where=sa.text("status = 'pending'"),
    )

    # Stores table
    op.create_table(
        'stores',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(64), nullable=False, index=True),
        sa.Column('store_name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('logo', sa.String(1000), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='Pending', index=True),
        sa.Column('reason', sa.Text(), nullable=True),
        *_timestamps(),
    )

    # Categories table, subcategories reference their parent
    op.create_table(
        'categories',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(255), nullable=False, unique=True),
        sa.Column('description', sa.Text(), nullable=True, server_default=''),
        sa.Column('parent', sa.String(36), sa.ForeignKey('categories.id'), nullable=True, index=True),
        sa.Column('level', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        *_timestamps(),
    )

    # Products table
    op.create_table(
        'products',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(500), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('price', sa.Float(), nullable=False),
        sa.Column('stock', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('category_id', sa.String(36), nullable=False, index=True),
        sa.Column('category_name', sa.String(255), nullable=False),
        sa.Column('sub_category_id', sa.String(36), nullable=True, index=True),
        sa.Column('sub_category_name', sa.String(255), nullable=True),
        sa.Column('seller_id', sa.String(64), nullable=False, index=True),
        sa.Column('store_id', sa.String(36),
                  sa.ForeignKey('stores.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('main_image_url', sa.String(1000), nullable=False),
        sa.Column('image_urls', postgresql.JSONB(), nullable=False, server_default='[]'),
        sa.Column('status', sa.String(20), nullable=False, server_default='Active', index=True),
        *_timestamps(),
    )

    # Reviews table
    op.create_table(
        'reviews',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(64), nullable=False, index=True),
        sa.Column('commentary', sa.String(1000), nullable=False),
        sa.Column('score', sa.Integer(), nullable=False, index=True),
        *_timestamps(),
    )


def downgrade() -> None:
    """Drop marketplace tables."""
    op.drop_table('reviews')
    op.drop_table('products')
    op.drop_table('categories')
    op.drop_table('stores')
    op.drop_index('uq_seller_requests_user_pending', table_name='seller_requests')
    op.drop_table('seller_requests')
    op.drop_table('users')

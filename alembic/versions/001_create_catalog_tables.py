"""Create catalog, enquiry and idempotency tables.

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


def _taxonomy_columns() -> list[sa.Column]:
    return [
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('slug', sa.String(200), nullable=False, unique=True, index=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('level', sa.String(20), nullable=False, index=True),
        sa.Column('parent_id', sa.String(36), nullable=True, index=True),
        sa.Column('tagline', sa.String(500), nullable=False, server_default=''),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('image', sa.String(1000), nullable=False, server_default=''),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
    ]


def _json_list(name: str) -> sa.Column:
    return sa.Column(name, postgresql.JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb"))


def upgrade() -> None:
    """Create catalog, enquiry and idempotency tables."""
    # Taxonomies
    op.create_table('categories', *_taxonomy_columns())
    op.create_table('brands', *_taxonomy_columns())

    op.create_table(
        'business_types',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('slug', sa.String(200), nullable=False, unique=True, index=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('image', sa.String(1000), nullable=False, server_default=''),
        sa.Column('display_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
    )

    # Products
    op.create_table(
        'products',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('slug', sa.String(300), nullable=False, unique=True, index=True),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('brand', sa.String(200), nullable=False, server_default='', index=True),
        sa.Column('sku', sa.String(100), nullable=False, server_default=''),
        sa.Column('price', sa.Integer(), nullable=True),
        sa.Column('summary', sa.Text(), nullable=False, server_default=''),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('status', sa.String(20), nullable=False, server_default='in-stock', index=True),
        sa.Column('featured', sa.Boolean(), nullable=False, server_default='false', index=True),
        sa.Column('premium', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('hero_image', sa.String(1000), nullable=False),
        _json_list('gallery_images'),
        sa.Column('category_id', sa.String(36), nullable=True, index=True),
        _json_list('additional_category_ids'),
        sa.Column('brand_category_id', sa.String(36), nullable=True, index=True),
        _json_list('additional_brand_category_ids'),
        _json_list('business_type_slugs'),
        _json_list('specifications'),
        _json_list('filters'),
        _json_list('color_variants'),
        _json_list('related_product_ids'),
        _json_list('tags'),
        _json_list('manual_tags'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()'), index=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
    )

    # Tag lookups use containment queries
    op.create_index('ix_products_tags_gin', 'products', ['tags'], postgresql_using='gin')

    # Customers and enquiries
    op.create_table(
        'customers',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False, server_default=''),
        sa.Column('company_name', sa.String(200), nullable=False, server_default=''),
        sa.Column('email', sa.String(255), nullable=False, server_default='', index=True),
        sa.Column('phone', sa.String(50), nullable=False, index=True),
        _json_list('tags'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
    )
    op.create_unique_constraint('uq_customers_email_phone', 'customers', ['email', 'phone'])

    op.create_table(
        'enquiries',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('human_enquiry_id', sa.String(20), nullable=False, unique=True, index=True),
        sa.Column('customer_id', sa.String(36), nullable=True, index=True),
        sa.Column('name', sa.String(200), nullable=False, server_default=''),
        sa.Column('email', sa.String(255), nullable=False, server_default='', index=True),
        sa.Column('phone', sa.String(50), nullable=False),
        sa.Column('company', sa.String(200), nullable=False, server_default=''),
        sa.Column('state', sa.String(100), nullable=False, server_default=''),
        sa.Column('source', sa.String(100), nullable=False, server_default='website-form'),
        sa.Column('user_type', sa.String(20), nullable=False, server_default='unknown'),
        sa.Column('type', sa.String(30), nullable=False, server_default='enquiry-only'),
        _json_list('categories'),
        sa.Column('message', sa.Text(), nullable=False, server_default=''),
        sa.Column('priority', sa.String(10), nullable=False, server_default='normal', index=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='new', index=True),
        sa.Column('assigned_to', sa.String(200), nullable=False, server_default='', index=True),
        sa.Column('notes', sa.Text(), nullable=False, server_default=''),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()'), index=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
    )

    op.create_table(
        'enquiry_items',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('enquiry_id', sa.String(36),
                  sa.ForeignKey('enquiries.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('product_id', sa.String(36), nullable=True, index=True),
        sa.Column('product_name', sa.String(500), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('color_name', sa.String(100), nullable=True),
        sa.Column('notes', sa.Text(), nullable=False, server_default=''),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
    )

    op.create_table(
        'enquiry_messages',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('enquiry_id', sa.String(36),
                  sa.ForeignKey('enquiries.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('sender', sa.String(20), nullable=False, server_default='admin'),
        sa.Column('channel', sa.String(20), nullable=False, server_default='internal-note'),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('created_by', sa.String(200), nullable=False, server_default=''),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
    )

    # Idempotency
    op.create_table(
        'idempotency_responses',
        sa.Column('idempotency_key', sa.String(100), nullable=False),
        sa.Column('endpoint', sa.String(200), nullable=False),
        sa.Column('method', sa.String(10), nullable=False),
        sa.Column('response_status', sa.Integer(), nullable=False),
        sa.Column('response_body', postgresql.JSONB(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('request_hash', sa.String(64), nullable=True),
        sa.PrimaryKeyConstraint('idempotency_key', 'endpoint', 'method'),
    )
    op.create_index('ix_idempotency_expires_at', 'idempotency_responses', ['expires_at'])


def downgrade() -> None:
    """Drop catalog, enquiry and idempotency tables."""
    op.drop_index('ix_idempotency_expires_at', table_name='idempotency_responses')
    op.drop_table('idempotency_responses')
    op.drop_table('enquiry_messages')
    op.drop_table('enquiry_items')
    op.drop_table('enquiries')
    op.drop_constraint('uq_customers_email_phone', 'customers', type_='unique')
    op.drop_table('customers')
    op.drop_index('ix_products_tags_gin', table_name='products')
    op.drop_table('products')
    op.drop_table('business_types')
    op.drop_table('brands')
    op.drop_table('categories')

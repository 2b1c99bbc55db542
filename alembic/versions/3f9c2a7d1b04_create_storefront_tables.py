"""create_storefront_tables

Revision ID: 3f9c2a7d1b04
Revises:
Create Date: 2026-10-18 10:12:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f9c2a7d1b04'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema - Add products, users, addresses and cart lines."""

    op.create_table(
        'store_products',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('category', sa.String(length=100), nullable=False),
        sa.Column('cost', sa.Numeric(12, 2), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('image', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('cost > 0', name='ck_store_product_cost_positive'),
        sa.CheckConstraint(
            'rating >= 0 AND rating <= 5', name='ck_store_product_rating_range'
        ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_store_products_name', 'store_products', ['name'])
    op.create_index('ix_store_products_category', 'store_products', ['category'])

    op.create_table(
        'store_users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=320), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('wallet_money', sa.Numeric(12, 2), nullable=False),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('version', sa.Integer(), server_default='0', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            'wallet_money >= 0', name='ck_store_user_wallet_non_negative'
        ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_store_users_email', 'store_users', ['email'], unique=True)

    op.create_table(
        'store_user_addresses',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['store_users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(
        'ix_store_user_addresses_user_id', 'store_user_addresses', ['user_id']
    )

    op.create_table(
        'store_cart_items',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('product_id', sa.String(length=64), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('quantity > 0', name='ck_store_cart_quantity_positive'),
        sa.ForeignKeyConstraint(['user_id'], ['store_users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['product_id'], ['store_products.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'product_id', name='uq_store_cart_line')
    )
    op.create_index('ix_store_cart_items_user_id', 'store_cart_items', ['user_id'])


def downgrade() -> None:
    """Downgrade schema - Drop storefront tables."""
    op.drop_index('ix_store_cart_items_user_id', table_name='store_cart_items')
    op.drop_table('store_cart_items')
    op.drop_index(
        'ix_store_user_addresses_user_id', table_name='store_user_addresses'
    )
    op.drop_table('store_user_addresses')
    op.drop_index('ix_store_users_email', table_name='store_users')
    op.drop_table('store_users')
    op.drop_index('ix_store_products_category', table_name='store_products')
    op.drop_index('ix_store_products_name', table_name='store_products')
    op.drop_table('store_products')

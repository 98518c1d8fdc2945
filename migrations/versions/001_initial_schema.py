"""Initial schema - users, suppliers, categories, products, shipments

Revision ID: 001
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    ]


def upgrade() -> None:
    # Create users table
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=True),
        sa.Column('company_name', sa.String(length=255), nullable=True),
        sa.Column('is_admin', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_users'),
        sa.UniqueConstraint('email', name='uq_users_email')
    )
    op.create_index('ix_users_email', 'users', ['email'])

    # Create suppliers table
    op.create_table(
        'suppliers',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('company_name', sa.String(length=255), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('country', sa.String(length=100), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_suppliers_user_id_users', ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name='pk_suppliers')
    )
    op.create_index('idx_suppliers_user_id', 'suppliers', ['user_id'])

    # Create categories table
    op.create_table(
        'categories',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('color', sa.String(length=7), nullable=True),
        sa.Column('icon', sa.String(length=50), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_categories_user_id_users', ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name='pk_categories')
    )
    op.create_index('idx_categories_user_id', 'categories', ['user_id'])

    # Create products table
    op.create_table(
        'products',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('supplier_id', sa.Uuid(), nullable=True),
        sa.Column('category_id', sa.Uuid(), nullable=True),
        sa.Column('name', sa.String(length=500), nullable=False),
        sa.Column('asin', sa.String(length=20), nullable=True),
        sa.Column('merchant_sku', sa.String(length=100), nullable=True),
        sa.Column('manufacturer_code', sa.String(length=100), nullable=True),
        sa.Column('amazon_barcode', sa.String(length=50), nullable=True),
        sa.Column('product_cost', sa.DECIMAL(precision=12, scale=2), nullable=True),
        sa.Column('amazon_price', sa.DECIMAL(precision=12, scale=2), nullable=True),
        sa.Column('referral_fee_percent', sa.DECIMAL(precision=5, scale=2), nullable=True),
        sa.Column('fulfillment_fee', sa.DECIMAL(precision=12, scale=2), nullable=True),
        sa.Column('advertising_cost', sa.DECIMAL(precision=12, scale=2), nullable=True),
        sa.Column('initial_investment', sa.DECIMAL(precision=12, scale=2), nullable=True),
        sa.Column('estimated_profit', sa.DECIMAL(precision=12, scale=2), nullable=True),
        sa.Column('roi_percentage', sa.DECIMAL(precision=10, scale=2), nullable=True),
        sa.Column('profit_margin', sa.DECIMAL(precision=10, scale=2), nullable=True),
        sa.Column('image_url', sa.String(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_products_user_id_users', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['supplier_id'], ['suppliers.id'], name='fk_products_supplier_id_suppliers', ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id'], name='fk_products_category_id_categories', ondelete='SET NULL'),
        sa.CheckConstraint('asin IS NOT NULL OR merchant_sku IS NOT NULL', name='ck_products_business_key'),
        sa.PrimaryKeyConstraint('id', name='pk_products')
    )
    op.create_index('idx_products_user_id', 'products', ['user_id'])
    op.create_index('idx_products_asin', 'products', ['user_id', 'asin'])
    op.create_index('idx_products_merchant_sku', 'products', ['user_id', 'merchant_sku'])
    op.create_index('idx_products_supplier', 'products', ['supplier_id'])

    # Create shipments table
    op.create_table(
        'shipments',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('fba_shipment_id', sa.String(length=100), nullable=False),
        sa.Column('shipment_date', sa.Date(), nullable=False),
        sa.Column('carrier_company', sa.String(length=255), nullable=False),
        sa.Column('total_shipping_cost', sa.DECIMAL(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_shipments_user_id_users', ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name='pk_shipments'),
        sa.CheckConstraint(
            "status IN ('pending', 'in_transit', 'delivered', 'cancelled')",
            name='ck_shipments_status'
        )
    )
    op.create_index('idx_shipments_user_id', 'shipments', ['user_id'])
    op.create_index('idx_shipments_date', 'shipments', ['user_id', 'shipment_date'])

    # Create shipment_items table
    op.create_table(
        'shipment_items',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('shipment_id', sa.Uuid(), nullable=False),
        sa.Column('product_id', sa.Uuid(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_shipping_cost', sa.DECIMAL(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('barcode_scanned', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        *_timestamps(),
        sa.ForeignKeyConstraint(['shipment_id'], ['shipments.id'], name='fk_shipment_items_shipment_id_shipments', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], name='fk_shipment_items_product_id_products', ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name='pk_shipment_items'),
        sa.CheckConstraint('quantity > 0', name='ck_shipment_items_quantity_positive')
    )
    op.create_index('idx_shipment_items_shipment', 'shipment_items', ['shipment_id'])


def downgrade() -> None:
    op.drop_table('shipment_items')
    op.drop_table('shipments')
    op.drop_table('products')
    op.drop_table('categories')
    op.drop_table('suppliers')
    op.drop_table('users')

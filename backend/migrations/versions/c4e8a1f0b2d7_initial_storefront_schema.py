"""initial storefront schema

Revision ID: c4e8a1f0b2d7
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the storefront and back-office tables:
- categories, products: catalog with per-variant stock (variant_stock JSON)
- customers, customer_addresses, admins: accounts
- coupons: store/category/product scoped discounts
- orders: online orders with status history
- pos_transactions: in-store sales

products, orders and pos_transactions carry version_id for optimistic
locking; stock-moving writes also take row/database locks.
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'c4e8a1f0b2d7'
down_revision = None
branch_labels = None
depends_on = None


def _created_at():
    return sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                     server_default=sa.text('CURRENT_TIMESTAMP'))


def _updated_at():
    return sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                     server_default=sa.text('CURRENT_TIMESTAMP'))


def upgrade():
    # ============================================================================
    # Catalog
    # ============================================================================
    op.create_table(
        'categories',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
        sqlite_autoincrement=True
    )

    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(length=120), nullable=False),
        sa.Column('price', sa.Float(), nullable=False),
        sa.Column('sale_price', sa.Float(), nullable=True),
        sa.Column('is_on_sale', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('cost_price', sa.Float(), nullable=True),
        sa.Column('express_charge', sa.Float(), nullable=False, server_default='0'),
        sa.Column('image', sa.String(length=1024), nullable=False, server_default=''),
        sa.Column('images', sa.JSON(), nullable=False),
        sa.Column('colors', sa.JSON(), nullable=False),
        sa.Column('color_images', sa.JSON(), nullable=False),
        sa.Column('variants', sa.JSON(), nullable=False),
        sa.Column('stock', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('variant_stock', sa.JSON(), nullable=False),  # {"Size-Color": count}
        sa.Column('low_stock_threshold', sa.Integer(), nullable=False, server_default='5'),
        sa.Column('show_on_storefront', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('is_new', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('is_best_seller', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('rating', sa.Float(), nullable=False, server_default='5'),
        sa.Column('reviews', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('size_guide', sa.JSON(), nullable=False),
        sa.Column('certifications', sa.JSON(), nullable=False),
        sa.Column('product_details', sa.Text(), nullable=True),
        sa.Column('materials_and_care', sa.Text(), nullable=True),
        sa.Column('is_pre_order', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('pre_order_price', sa.Float(), nullable=True),
        sa.Column('pre_order_initial_payment', sa.Float(), nullable=True),
        sa.Column('pre_order_eta', sa.String(length=120), nullable=True),
        sa.Column('sku', sa.String(length=64), nullable=True),
        sa.Column('barcode', sa.String(length=64), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        _created_at(),
        _updated_at(),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_products_category', 'products', ['category'])
    op.create_index('ix_products_storefront', 'products', ['show_on_storefront'])

    # ============================================================================
    # Accounts
    # ============================================================================
    op.create_table(
        'customers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=64), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
        sqlite_autoincrement=True
    )

    op.create_table(
        'customer_addresses',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=False),
        sa.Column('label', sa.String(length=64), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('street_address', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('address_line_2', sa.String(length=255), nullable=True),
        sa.Column('city_island', sa.String(length=120), nullable=False, server_default=''),
        sa.Column('zip_code', sa.String(length=32), nullable=True),
        sa.Column('mobile_no', sa.String(length=64), nullable=False, server_default=''),
        sa.Column('full_address', sa.Text(), nullable=False),
        sa.Column('is_default', sa.Boolean(), nullable=False, server_default='0'),
        _created_at(),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_customer_addresses_customer_id', 'customer_addresses', ['customer_id'])

    op.create_table(
        'admins',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
        sqlite_autoincrement=True
    )

    # ============================================================================
    # Coupons
    # ============================================================================
    op.create_table(
        'coupons',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=64), nullable=False),
        sa.Column('discount', sa.Float(), nullable=False),
        sa.Column('type', sa.String(length=16), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='active'),
        sa.Column('scope', sa.String(length=16), nullable=False, server_default='store'),
        sa.Column('allowed_categories', sa.JSON(), nullable=False),
        sa.Column('allowed_products', sa.JSON(), nullable=False),
        sa.Column('allow_pre_order', sa.Boolean(), nullable=False, server_default='0'),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code'),
        sqlite_autoincrement=True
    )

    # ============================================================================
    # Orders and POS
    # ============================================================================
    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_number', sa.String(length=16), nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=True),
        sa.Column('customer_name', sa.String(length=255), nullable=False),
        sa.Column('customer_email', sa.String(length=255), nullable=False),
        sa.Column('customer_phone', sa.String(length=64), nullable=False),
        sa.Column('shipping_address', sa.Text(), nullable=False),
        sa.Column('items', sa.JSON(), nullable=False),
        sa.Column('subtotal', sa.Float(), nullable=False),
        sa.Column('discount', sa.Float(), nullable=False, server_default='0'),
        sa.Column('shipping', sa.Float(), nullable=False, server_default='0'),
        sa.Column('total', sa.Float(), nullable=False),
        sa.Column('payment_method', sa.String(length=32), nullable=False),
        sa.Column('payment_slip', sa.String(length=1024), nullable=True),
        sa.Column('coupon_code', sa.String(length=64), nullable=True),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='pending'),
        sa.Column('status_history', sa.JSON(), nullable=False),
        sa.Column('stock_restored', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        _created_at(),
        _updated_at(),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('order_number'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_orders_customer_id', 'orders', ['customer_id'])
    op.create_index('ix_orders_customer_email', 'orders', ['customer_email'])
    op.create_index('ix_orders_status', 'orders', ['status'])

    op.create_table(
        'pos_transactions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('transaction_number', sa.String(length=32), nullable=False),
        sa.Column('items', sa.JSON(), nullable=False),
        sa.Column('subtotal', sa.Float(), nullable=False, server_default='0'),
        sa.Column('discount', sa.Float(), nullable=False, server_default='0'),
        sa.Column('gst_percentage', sa.Float(), nullable=False, server_default='0'),
        sa.Column('gst_amount', sa.Float(), nullable=False, server_default='0'),
        sa.Column('tax', sa.Float(), nullable=False, server_default='0'),
        sa.Column('total', sa.Float(), nullable=False, server_default='0'),
        sa.Column('payment_method', sa.String(length=32), nullable=False, server_default='cash'),
        sa.Column('amount_received', sa.Float(), nullable=False, server_default='0'),
        sa.Column('change', sa.Float(), nullable=False, server_default='0'),
        sa.Column('customer_id', sa.Integer(), nullable=True),
        sa.Column('customer_name', sa.String(length=255), nullable=True),
        sa.Column('customer_phone', sa.String(length=64), nullable=True),
        sa.Column('cashier_id', sa.String(length=64), nullable=False, server_default='default'),
        sa.Column('cashier_name', sa.String(length=255), nullable=False, server_default='Admin'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='completed'),
        sa.Column('stock_restored', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        _created_at(),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('transaction_number'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_pos_transactions_customer_id', 'pos_transactions', ['customer_id'])
    op.create_index('ix_pos_transactions_created_at', 'pos_transactions', ['created_at'])


def downgrade():
    op.drop_index('ix_pos_transactions_created_at', table_name='pos_transactions')
    op.drop_index('ix_pos_transactions_customer_id', table_name='pos_transactions')
    op.drop_table('pos_transactions')
    op.drop_index('ix_orders_status', table_name='orders')
    op.drop_index('ix_orders_customer_email', table_name='orders')
    op.drop_index('ix_orders_customer_id', table_name='orders')
    op.drop_table('orders')
    op.drop_table('coupons')
    op.drop_table('admins')
    op.drop_index('ix_customer_addresses_customer_id', table_name='customer_addresses')
    op.drop_table('customer_addresses')
    op.drop_table('customers')
    op.drop_index('ix_products_storefront', table_name='products')
    op.drop_index('ix_products_category', table_name='products')
    op.drop_table('products')
    op.drop_table('categories')

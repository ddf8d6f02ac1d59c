"""Initial back-office schema: catalog, customers, staff, orders, audit log

Revision ID: 20261019_initial
Revises:
Create Date: 2026-10-19

This migration adds:
1. categories, suppliers, items (catalog with stock)
2. customers
3. admins (staff display names for order attribution)
4. orders and order_items (order lines cascade with their order)
5. system_logs (append-only audit trail)
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261019_initial'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
    ]


def upgrade():
    # ==========================================================================
    # 1. CATALOG
    # ==========================================================================
    op.create_table('categories',
        sa.Column('category_id', sa.Integer(), nullable=False),
        sa.Column('category_name', sa.String(length=128), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('category_id'),
        sqlite_autoincrement=True,
    )

    op.create_table('suppliers',
        sa.Column('supplier_id', sa.Integer(), nullable=False),
        sa.Column('supplier_name', sa.String(length=255), nullable=False),
        sa.Column('supplier_contact_person', sa.String(length=255), nullable=True),
        sa.Column('supplier_address', sa.String(length=512), nullable=False),
        sa.Column('supplier_email', sa.String(length=255), nullable=False),
        sa.Column('supplier_number', sa.String(length=32), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('supplier_id'),
        sqlite_autoincrement=True,
    )

    op.create_table('items',
        sa.Column('item_id', sa.Integer(), nullable=False),
        sa.Column('unit', sa.String(length=32), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=False),
        sa.Column('price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('reorder_threshold', sa.Integer(), nullable=False),
        sa.Column('category_id', sa.Integer(), nullable=False),
        sa.Column('supplier_id', sa.Integer(), nullable=False),
        sa.Column('version_id', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('quantity >= 0', name='ck_items_quantity_non_negative'),
        sa.CheckConstraint('reorder_threshold >= 0', name='ck_items_reorder_threshold_non_negative'),
        sa.CheckConstraint('price >= 0', name='ck_items_price_non_negative'),
        sa.ForeignKeyConstraint(['category_id'], ['categories.category_id']),
        sa.ForeignKeyConstraint(['supplier_id'], ['suppliers.supplier_id']),
        sa.PrimaryKeyConstraint('item_id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_items_category_id', 'items', ['category_id'])
    op.create_index('ix_items_supplier_id', 'items', ['supplier_id'])
    op.create_index('ix_items_updated_at', 'items', ['updated_at'])

    # ==========================================================================
    # 2. CUSTOMERS
    # ==========================================================================
    op.create_table('customers',
        sa.Column('customer_id', sa.Integer(), nullable=False),
        sa.Column('customer_name', sa.String(length=255), nullable=False),
        sa.Column('customer_address', sa.String(length=512), nullable=False),
        sa.Column('customer_email', sa.String(length=255), nullable=False),
        sa.Column('customer_number', sa.String(length=32), nullable=True),
        *_timestamps(),
        sa.Column('version_id', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('customer_id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_customers_updated_at', 'customers', ['updated_at'])

    # ==========================================================================
    # 3. STAFF
    # ==========================================================================
    op.create_table('admins',
        sa.Column('admin_id', sa.Integer(), nullable=False),
        sa.Column('admin_first_name', sa.String(length=128), nullable=False),
        sa.Column('admin_last_name', sa.String(length=128), nullable=False),
        sa.Column('admin_email', sa.String(length=255), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('admin_id'),
        sa.UniqueConstraint('admin_email', name='uq_admins_email'),
        sqlite_autoincrement=True,
    )

    # ==========================================================================
    # 4. ORDERS
    # ==========================================================================
    op.create_table('orders',
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=True),
        sa.Column('customer_name', sa.String(length=255), nullable=True),
        sa.Column('admin_name', sa.String(length=255), nullable=False),
        sa.Column('order_date', sa.Date(), nullable=False),
        sa.Column('order_status', sa.String(length=16), nullable=False),
        sa.Column('order_total_price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('version_id', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('order_total_price >= 0', name='ck_orders_total_non_negative'),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.customer_id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('order_id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_orders_customer_id', 'orders', ['customer_id'])
    op.create_index('ix_orders_order_date', 'orders', ['order_date'])
    op.create_index('ix_orders_status', 'orders', ['order_status'])

    op.create_table('order_items',
        sa.Column('order_item_id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('item_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('subtotal', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.Column('unit', sa.String(length=32), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('quantity > 0', name='ck_order_items_quantity_positive'),
        sa.CheckConstraint('unit_price >= 0', name='ck_order_items_unit_price_non_negative'),
        sa.CheckConstraint('subtotal >= 0', name='ck_order_items_subtotal_non_negative'),
        sa.ForeignKeyConstraint(['order_id'], ['orders.order_id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['item_id'], ['items.item_id']),
        sa.PrimaryKeyConstraint('order_item_id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_order_items_order_id', 'order_items', ['order_id'])
    op.create_index('ix_order_items_item_id', 'order_items', ['item_id'])

    # ==========================================================================
    # 5. AUDIT LOG
    # ==========================================================================
    op.create_table('system_logs',
        sa.Column('log_id', sa.Integer(), nullable=False),
        sa.Column('log_description', sa.Text(), nullable=False),
        sa.Column('log_created_by', sa.String(length=255), nullable=False),
        sa.Column('log_datetime', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('log_id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_system_logs_log_datetime', 'system_logs', ['log_datetime'])


def downgrade():
    op.drop_index('ix_system_logs_log_datetime', table_name='system_logs')
    op.drop_table('system_logs')

    op.drop_index('ix_order_items_item_id', table_name='order_items')
    op.drop_index('ix_order_items_order_id', table_name='order_items')
    op.drop_table('order_items')

    op.drop_index('ix_orders_status', table_name='orders')
    op.drop_index('ix_orders_order_date', table_name='orders')
    op.drop_index('ix_orders_customer_id', table_name='orders')
    op.drop_table('orders')

    op.drop_table('admins')

    op.drop_index('ix_customers_updated_at', table_name='customers')
    op.drop_table('customers')

    op.drop_index('ix_items_updated_at', table_name='items')
    op.drop_index('ix_items_supplier_id', table_name='items')
    op.drop_index('ix_items_category_id', table_name='items')
    op.drop_table('items')

    op.drop_table('suppliers')
    op.drop_table('categories')

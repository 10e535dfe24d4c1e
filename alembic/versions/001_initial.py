"""Initial migration

Revision ID: 001
Revises: 
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create menu_items table
    op.create_table(
        'menu_items',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('price_cents', sa.Integer(), nullable=False),
        sa.Column('category', sa.String(100), nullable=False, server_default=''),
        sa.Column('image_url', sa.String(500)),
        sa.Column('is_active', sa.Boolean(), default=True),
        sa.Column('sort_order', sa.Integer(), default=0),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now(), onupdate=sa.func.now()),
    )

    # Create menu_item_variants table
    op.create_table(
        'menu_item_variants',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('menu_item_id', sa.Integer(), sa.ForeignKey('menu_items.id', ondelete='CASCADE'), nullable=False),
        sa.Column('label', sa.String(100), nullable=False),
        sa.Column('unit_count', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('price_cents', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), default=True),
        sa.Column('sort_order', sa.Integer(), default=0),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now(), onupdate=sa.func.now()),
    )

    # Create custom_order_requests table
    op.create_table(
        'custom_order_requests',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('customer_name', sa.String(255), nullable=False),
        sa.Column('customer_email', sa.String(255), nullable=False),
        sa.Column('customer_phone', sa.String(50)),
        sa.Column('desired_items', sa.Text(), nullable=False, server_default=''),
        sa.Column('request_details', sa.Text(), nullable=False, server_default=''),
        sa.Column('fulfillment_preference', sa.String(20), nullable=False, server_default='pickup'),
        sa.Column('delivery_address', sa.String(240)),
        sa.Column('payment_token', sa.String(200), unique=True),
        sa.Column('payment_amount', sa.Numeric(10, 2)),
        sa.Column('payment_created_at', sa.DateTime()),
        sa.Column('payment_paid_at', sa.DateTime()),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now(), onupdate=sa.func.now()),
    )

    # Create orders table
    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('items_json', sa.JSON(), nullable=False),
        sa.Column('total_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('fulfillment', sa.String(20), nullable=False, server_default='pickup'),
        sa.Column('scheduled_date', sa.String(10)),
        sa.Column('scheduled_time_slot', sa.String(5)),
        sa.Column('delivery_address', sa.String(240)),
        sa.Column('stripe_session_id', sa.String(255), unique=True, nullable=False),
        sa.Column('custom_order_request_id', sa.Integer(), sa.ForeignKey('custom_order_requests.id')),
        sa.Column('status', sa.String(20), nullable=False, server_default='new'),
        sa.Column('customer_name', sa.String(255)),
        sa.Column('customer_email', sa.String(255)),
        sa.Column('customer_phone', sa.String(50)),
        sa.Column('notes', sa.Text()),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now(), onupdate=sa.func.now()),
    )

    # Create store_settings table (single row, id = 1)
    op.create_table(
        'store_settings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('stripe_account_id', sa.String(255)),
        sa.Column('fulfillment_schedule', sa.JSON()),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now(), onupdate=sa.func.now()),
    )

    # Create admin_audit_logs table
    op.create_table(
        'admin_audit_logs',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('actor_email', sa.String(255), nullable=False, server_default='system'),
        sa.Column('action', sa.String(100), nullable=False),
        sa.Column('entity_type', sa.String(50)),
        sa.Column('entity_id', sa.Integer()),
        sa.Column('details_json', sa.JSON()),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
    )

    # Create indexes
    op.create_index('ix_menu_item_variants_menu_item_id', 'menu_item_variants', ['menu_item_id'])
    op.create_index('ix_orders_status', 'orders', ['status'])
    op.create_index('ix_orders_created_at', 'orders', ['created_at'])
    op.create_index('ix_orders_custom_order_request_id', 'orders', ['custom_order_request_id'])
    op.create_index('ix_admin_audit_logs_action', 'admin_audit_logs', ['action'])


def downgrade() -> None:
    op.drop_table('admin_audit_logs')
    op.drop_table('store_settings')
    op.drop_table('orders')
    op.drop_table('custom_order_requests')
    op.drop_table('menu_item_variants')
    op.drop_table('menu_items')

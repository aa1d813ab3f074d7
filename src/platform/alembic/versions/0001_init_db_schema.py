"""init_db_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-18

Schema:
- products: Inventory ledger (quantity / quantity_reserved, pickup window)
- bookings: Reservations with per-day order numbers and idempotency keys
- payments: One payment per booking (capture + refunds)
- buyer_impact_stats / store_impact_stats: Running totals updated on pickup
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID


# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            'created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False
        ),
        sa.Column(
            'updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True
        ),
    ]


def upgrade() -> None:
    """Create all tables with final schema."""

    # ========== Products ==========
    op.create_table(
        'products',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('store_id', UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('original_price', sa.Integer(), nullable=False),
        sa.Column('discounted_price', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('quantity_reserved', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('pickup_window_start', sa.DateTime(timezone=True), nullable=False),
        sa.Column('pickup_window_end', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='DRAFT'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint(
            'quantity_reserved >= 0 AND quantity_reserved <= quantity',
            name='ck_products_reserved_within_total',
        ),
    )
    op.create_index('ix_products_store_id', 'products', ['store_id'])
    op.create_index('ix_products_status', 'products', ['status'])

    # ========== Bookings ==========
    op.create_table(
        'bookings',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('order_number', sa.String(length=32), nullable=False),
        sa.Column('user_id', UUID(as_uuid=True), nullable=False),
        sa.Column('product_id', UUID(as_uuid=True), nullable=False),
        sa.Column('store_id', UUID(as_uuid=True), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Integer(), nullable=False),
        sa.Column('total_price', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='PENDING'),
        sa.Column('qr_code_data', sa.String(length=255), nullable=True),
        sa.Column('pickup_window_start', sa.DateTime(timezone=True), nullable=False),
        sa.Column('pickup_window_end', sa.DateTime(timezone=True), nullable=False),
        sa.Column('idempotency_key', sa.String(length=255), nullable=True),
        sa.Column('cancellation_reason', sa.Text(), nullable=True),
        *_timestamps(),
        sa.Column('confirmed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('ready_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('expired_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('uq_bookings_order_number', 'bookings', ['order_number'], unique=True)
    op.create_index('uq_bookings_idempotency_key', 'bookings', ['idempotency_key'], unique=True)
    op.create_index('ix_bookings_product_id', 'bookings', ['product_id'])
    op.create_index('ix_bookings_user_id_status', 'bookings', ['user_id', 'status'])
    op.create_index('ix_bookings_store_id_status', 'bookings', ['store_id', 'status'])
    op.create_index(
        'ix_bookings_status_pickup_window_end', 'bookings', ['status', 'pickup_window_end']
    )

    # ========== Payments ==========
    op.create_table(
        'payments',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('booking_id', UUID(as_uuid=True), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False, server_default='USD'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='PENDING'),
        sa.Column('provider_tx_id', sa.String(length=255), nullable=True),
        sa.Column('provider_payment_method_id', sa.String(length=255), nullable=True),
        sa.Column('idempotency_key', sa.String(length=255), nullable=False),
        sa.Column('refunded_amount', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('refund_tx_id', sa.String(length=255), nullable=True),
        sa.Column('last4', sa.String(length=4), nullable=True),
        sa.Column('card_brand', sa.String(length=32), nullable=True),
        sa.Column('failure_reason', sa.String(length=500), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['booking_id'], ['bookings.id']),
        sa.UniqueConstraint('booking_id'),
        sa.UniqueConstraint('idempotency_key'),
    )
    op.create_index('ix_payments_status', 'payments', ['status'])
    op.create_index('ix_payments_provider_tx_id', 'payments', ['provider_tx_id'])

    # ========== Impact statistics ==========
    op.create_table(
        'buyer_impact_stats',
        sa.Column('user_id', UUID(as_uuid=True), nullable=False),
        sa.Column('meals_saved', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('co2_saved_kg', sa.Float(), nullable=False, server_default='0'),
        sa.Column('money_saved', sa.Integer(), nullable=False, server_default='0'),
        sa.Column(
            'updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False
        ),
        sa.PrimaryKeyConstraint('user_id'),
    )
    op.create_table(
        'store_impact_stats',
        sa.Column('store_id', UUID(as_uuid=True), nullable=False),
        sa.Column('items_sold', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('revenue', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('food_saved_kg', sa.Float(), nullable=False, server_default='0'),
        sa.Column(
            'updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False
        ),
        sa.PrimaryKeyConstraint('store_id'),
    )


def downgrade() -> None:
    op.drop_table('store_impact_stats')
    op.drop_table('buyer_impact_stats')
    op.drop_table('payments')
    op.drop_table('bookings')
    op.drop_table('products')

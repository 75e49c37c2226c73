"""Create billing tables

Revision ID: 0001_billing_tables
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0001_billing_tables'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    """Create users, subscriptions, add_ons and payments."""

    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('plan', sa.String(20), server_default='FREE', nullable=False),
        sa.Column('trial_end_date', sa.DateTime(timezone=True)),
        *_timestamps(),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'subscriptions',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),

        # Gateway IDs
        sa.Column('subscription_id', sa.String(255), nullable=False),
        sa.Column('subscriber_id', sa.String(255)),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),

        # Billing period
        sa.Column('starts_at', sa.DateTime(timezone=True)),
        sa.Column('ends_at', sa.DateTime(timezone=True)),
        sa.Column('status', sa.String(20), server_default='ACTIVE', nullable=False),
        sa.Column('interval_unit', sa.String(10), server_default='MONTH', nullable=False),
        sa.Column('interval_count', sa.Integer, server_default='1', nullable=False),

        # What is billed
        sa.Column('item_type', sa.String(10), server_default='PLAN', nullable=False),
        sa.Column('subscription_type', sa.String(20)),
        sa.Column('addon_type', sa.String(40)),

        # Append-only webhook audit trail
        sa.Column('raw_data', postgresql.JSONB, server_default=sa.text("'[]'::jsonb"), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_subscriptions_subscription_id', 'subscriptions', ['subscription_id'], unique=True)
    op.create_index('ix_subscriptions_user_id', 'subscriptions', ['user_id'])
    op.create_index('ix_subscriptions_status_ends_at', 'subscriptions', ['status', 'ends_at'])

    op.create_table(
        'add_ons',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id')),
        sa.Column('workspace_id', postgresql.UUID(as_uuid=True)),
        sa.Column('type', sa.String(40), nullable=False),
        sa.Column('quantity', sa.Integer, server_default='1', nullable=False),
        sa.Column('price_per_unit', sa.Float, server_default='0', nullable=False),
        sa.Column('status', sa.String(20), server_default='ACTIVE', nullable=False),
        sa.Column('billing_cycle', sa.String(10), server_default='MONTH', nullable=False),
        sa.Column('start_date', sa.DateTime(timezone=True)),
        sa.Column('end_date', sa.DateTime(timezone=True)),
        *_timestamps(),
    )
    op.create_index('ix_add_ons_workspace_id', 'add_ons', ['workspace_id'])
    op.create_index('ix_add_ons_user_id_type', 'add_ons', ['user_id', 'type'])
    op.create_index('ix_add_ons_status_end_date', 'add_ons', ['status', 'end_date'])

    op.create_table(
        'payments',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('transaction_id', sa.String(255), nullable=False),
        sa.Column('amount', sa.Float, nullable=False),
        sa.Column('currency', sa.String(10), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('item_type', sa.String(20)),
        sa.Column('addon_type', sa.String(40)),
        sa.Column('addon_quantity', sa.Integer),
        sa.Column('addon_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('add_ons.id')),
        sa.Column('payment_type', sa.String(20), nullable=False),
        sa.Column('buyer_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),

        # Commission (originating purchases only)
        sa.Column('affiliate_link_id', sa.String(255)),
        sa.Column('commission_amount', sa.Float),
        sa.Column('commission_status', sa.String(20)),

        sa.Column('raw_data', postgresql.JSONB),
        *_timestamps(),
    )
    # Unique transaction_id makes webhook processing at-most-once
    op.create_index('ix_payments_transaction_id', 'payments', ['transaction_id'], unique=True)
    op.create_index('ix_payments_buyer_id', 'payments', ['buyer_id'])


def downgrade() -> None:
    """Drop billing tables."""
    op.drop_table('payments')
    op.drop_table('add_ons')
    op.drop_table('subscriptions')
    op.drop_table('users')

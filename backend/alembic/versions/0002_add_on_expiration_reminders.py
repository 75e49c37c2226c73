"""Track add-on expiry warnings

Revision ID: 0002_add_on_expiration_reminders
Revises: 0001_billing_tables
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0002_add_on_expiration_reminders'
down_revision: Union[str, None] = '0001_billing_tables'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Add expiration_reminders to add_ons."""
    op.add_column(
        'add_ons',
        sa.Column(
            'expiration_reminders',
            postgresql.JSONB,
            server_default=sa.text("'{}'::jsonb"),
            nullable=False,
        ),
    )


def downgrade() -> None:
    """Remove expiration_reminders from add_ons."""
    op.drop_column('add_ons', 'expiration_reminders')

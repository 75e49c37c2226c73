"""
Payment Database Model

One ledger row per gateway transaction. The unique ``transaction_id``
constraint is what makes webhook processing at-most-once.
"""

from typing import Any, Optional
from uuid import UUID

from sqlmodel import Field
from sqlalchemy import Column, ForeignKey, Index
from sqlalchemy.dialects.postgresql import JSONB, UUID as PGUUID

from app.infrastructure.db.models.base import BaseModel


TRANSACTION_ID_INDEX = "ix_payments_transaction_id"


class PaymentModel(BaseModel, table=True):
    """Maps to the 'payments' table."""

    __tablename__ = "payments"
    __table_args__ = (
        Index(TRANSACTION_ID_INDEX, "transaction_id", unique=True),
    )

    transaction_id: str = Field(max_length=255)
    amount: float
    currency: str = Field(max_length=10)
    status: str = Field(max_length=20)

    # Exactly one of item_type (plans) or addon_type (add-ons) is set
    item_type: Optional[str] = Field(default=None, max_length=20)
    addon_type: Optional[str] = Field(default=None, max_length=40)
    addon_quantity: Optional[int] = Field(default=None)
    addon_id: Optional[UUID] = Field(
        default=None,
        sa_column=Column(PGUUID(as_uuid=True), ForeignKey("add_ons.id"), nullable=True),
    )
    payment_type: str = Field(max_length=20)

    buyer_id: UUID = Field(
        sa_column=Column(PGUUID(as_uuid=True), ForeignKey("users.id"), index=True, nullable=False)
    )

    # Commission is only earned on originating purchases
    affiliate_link_id: Optional[str] = Field(default=None, max_length=255)
    commission_amount: Optional[float] = Field(default=None)
    commission_status: Optional[str] = Field(default=None, max_length=20)

    raw_data: Any = Field(default=None, sa_column=Column(JSONB, nullable=True))

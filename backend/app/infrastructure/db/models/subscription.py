"""
Subscription Database Model

SQLModel table for recurring-billing agreements with the payment gateway.
"""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from sqlmodel import Field
from sqlalchemy import Column, DateTime, ForeignKey, Index, text
from sqlalchemy.dialects.postgresql import JSONB, UUID as PGUUID

from app.infrastructure.db.models.base import BaseModel


class SubscriptionModel(BaseModel, table=True):
    """
    Subscription table for plan and add-on billing agreements.

    ``raw_data`` is an append-only JSONB array of every webhook payload
    applied to this agreement, oldest first.
    """

    __tablename__ = "subscriptions"
    __table_args__ = (
        Index("ix_subscriptions_status_ends_at", "status", "ends_at"),
    )

    # Gateway IDs
    subscription_id: str = Field(unique=True, index=True, max_length=255)
    subscriber_id: Optional[str] = Field(default=None, max_length=255)

    user_id: UUID = Field(
        sa_column=Column(PGUUID(as_uuid=True), ForeignKey("users.id"), index=True, nullable=False)
    )

    # Billing period
    starts_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    ends_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    status: str = Field(default="ACTIVE", max_length=20)
    interval_unit: str = Field(default="MONTH", max_length=10)
    interval_count: int = Field(default=1)

    # What is billed
    item_type: str = Field(default="PLAN", max_length=10)
    subscription_type: Optional[str] = Field(default=None, max_length=20)
    addon_type: Optional[str] = Field(default=None, max_length=40)

    raw_data: Any = Field(
        default_factory=list,
        sa_column=Column(JSONB, nullable=False, server_default=text("'[]'::jsonb")),
    )

"""
Add-on Database Model
"""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from sqlmodel import Field
from sqlalchemy import Column, DateTime, ForeignKey, Index, text
from sqlalchemy.dialects.postgresql import JSONB, UUID as PGUUID

from app.infrastructure.db.models.base import BaseModel


class AddOnModel(BaseModel, table=True):
    """Maps to the 'add_ons' table. Owned by a user or a workspace."""

    __tablename__ = "add_ons"
    __table_args__ = (
        Index("ix_add_ons_user_id_type", "user_id", "type"),
        Index("ix_add_ons_status_end_date", "status", "end_date"),
    )

    user_id: Optional[UUID] = Field(
        default=None,
        sa_column=Column(PGUUID(as_uuid=True), ForeignKey("users.id"), nullable=True),
    )
    workspace_id: Optional[UUID] = Field(
        default=None,
        sa_column=Column(PGUUID(as_uuid=True), index=True, nullable=True),
    )

    type: str = Field(max_length=40)
    quantity: int = Field(default=1, ge=0)
    price_per_unit: float = Field(default=0.0)
    status: str = Field(default="ACTIVE", max_length=20)
    billing_cycle: str = Field(default="MONTH", max_length=10)

    start_date: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    end_date: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))

    # {"day7": true, ...} once each expiry warning has gone out
    expiration_reminders: Any = Field(
        default_factory=dict,
        sa_column=Column(JSONB, nullable=False, server_default=text("'{}'::jsonb")),
    )

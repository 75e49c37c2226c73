"""
User Database Model

Only the account fields the billing core reads or writes.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import Field

from app.infrastructure.db.models.base import BaseModel


class UserModel(BaseModel, table=True):
    """Maps to the 'users' table."""

    __tablename__ = "users"

    email: str = Field(unique=True, index=True, max_length=255)
    plan: str = Field(default="FREE", max_length=20)

    # Plan-expiry marker, extended by plan renewals
    trial_end_date: Optional[datetime] = Field(
        default=None, sa_type=DateTime(timezone=True)
    )

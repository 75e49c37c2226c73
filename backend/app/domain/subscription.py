"""
Billing Domain Models

Domain models for plan subscriptions, add-ons and payments following Clean Architecture.
Enums, DTOs, and domain entities for the billing bounded context.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field


class UserPlan(str, Enum):
    """Plan tiers, lowest first."""
    FREE = "FREE"
    BUSINESS = "BUSINESS"
    AGENCY = "AGENCY"


class SubscriptionStatus(str, Enum):
    """Subscription lifecycle status."""
    ACTIVE = "ACTIVE"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"


class AddOnStatus(str, Enum):
    """Add-on lifecycle status."""
    ACTIVE = "ACTIVE"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"
    INACTIVE = "INACTIVE"


class ItemType(str, Enum):
    """What a subscription bills for."""
    PLAN = "PLAN"
    ADDON = "ADDON"


class AddOnType(str, Enum):
    """Resource dimension an add-on augments."""
    EXTRA_WORKSPACE = "EXTRA_WORKSPACE"
    EXTRA_ADMIN = "EXTRA_ADMIN"
    EXTRA_FUNNEL = "EXTRA_FUNNEL"
    EXTRA_PAGE = "EXTRA_PAGE"
    EXTRA_SUBDOMAIN = "EXTRA_SUBDOMAIN"
    EXTRA_CUSTOM_DOMAIN = "EXTRA_CUSTOM_DOMAIN"


class PaymentType(str, Enum):
    """Payment ledger classification."""
    PLAN_PURCHASE = "PLAN_PURCHASE"
    ADDON_PURCHASE = "ADDON_PURCHASE"


class IntervalUnit(str, Enum):
    """Recurring billing interval unit."""
    DAY = "DAY"
    WEEK = "WEEK"
    MONTH = "MONTH"
    YEAR = "YEAR"


class ExpiryReminder(str, Enum):
    """Add-on expiry warnings, keyed as stored in ``expiration_reminders``."""
    DAY7 = "day7"
    DAY3 = "day3"
    DAY1 = "day1"


# Add-on statuses a renewal charge is allowed to bring back to ACTIVE
RENEWABLE_ADDON_STATUSES = (
    AddOnStatus.ACTIVE,
    AddOnStatus.EXPIRED,
    AddOnStatus.CANCELLED,
)


# =============================================================================
# Domain Entities
# =============================================================================

class User(BaseModel):
    """Account owner as seen by the billing core."""
    id: str
    email: str
    plan: UserPlan = UserPlan.FREE
    trial_end_date: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class Subscription(BaseModel):
    """One recurring-billing agreement with the payment gateway."""
    id: Optional[str] = None
    subscription_id: str  # gateway-assigned, unique
    user_id: str
    subscriber_id: Optional[str] = None
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE
    interval_unit: IntervalUnit = IntervalUnit.MONTH
    interval_count: int = 1
    item_type: ItemType = ItemType.PLAN
    subscription_type: Optional[UserPlan] = None
    addon_type: Optional[AddOnType] = None
    raw_data: list[dict[str, Any]] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AddOn(BaseModel):
    """A provisioned add-on unit grouping owned by a user or a workspace."""
    id: Optional[str] = None
    user_id: Optional[str] = None
    workspace_id: Optional[str] = None
    type: AddOnType
    quantity: int = 1
    price_per_unit: float = 0.0
    status: AddOnStatus = AddOnStatus.ACTIVE
    billing_cycle: IntervalUnit = IntervalUnit.MONTH
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    expiration_reminders: dict[str, bool] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class Payment(BaseModel):
    """One ledger row per gateway transaction."""
    id: Optional[str] = None
    transaction_id: str
    amount: float
    currency: str
    status: str
    item_type: Optional[UserPlan] = None
    addon_type: Optional[AddOnType] = None
    addon_quantity: Optional[int] = None
    addon_id: Optional[str] = None
    payment_type: PaymentType
    buyer_id: str
    affiliate_link_id: Optional[str] = None
    commission_amount: Optional[float] = None
    commission_status: Optional[str] = None
    raw_data: Any = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# Processing Results
# =============================================================================

class RenewalResult(BaseModel):
    """Outcome of a processed renewal."""
    success: bool = True
    message: str
    user_id: str
    payment_id: str
    subscription_id: str
    addon_id: Optional[str] = None

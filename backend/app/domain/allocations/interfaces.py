"""
Allocation Interfaces

Data models shared by every resource allocator.
Follows Interface Segregation: callers only depend on the input/summary contract.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Iterable, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from app.domain.subscription import AddOnStatus, AddOnType, UserPlan


class ResourceDimension(str, Enum):
    """Limited resources governed by plan tier plus add-ons."""
    USER_WORKSPACES = "user_workspaces"
    WORKSPACE_MEMBERS = "workspace_members"
    WORKSPACE_FUNNELS = "workspace_funnels"
    FUNNEL_PAGES = "funnel_pages"
    WORKSPACE_SUBDOMAINS = "workspace_subdomains"
    WORKSPACE_CUSTOM_DOMAINS = "workspace_custom_domains"


class AddOnGrant(BaseModel):
    """The slice of an add-on the calculator needs."""
    type: Union[AddOnType, str]
    quantity: int = Field(default=0, ge=0)
    status: Union[AddOnStatus, str]
    end_date: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AllocationInput(BaseModel):
    """Plan tier of the account/workspace plus the add-ons fetched by the caller."""
    tier: Union[UserPlan, str] = UserPlan.FREE
    add_ons: list[AddOnGrant] = Field(default_factory=list)

    @classmethod
    def from_add_ons(cls, tier: Union[UserPlan, str], add_ons: Iterable[Any]) -> "AllocationInput":
        """Build input from dicts or ORM/domain add-on objects."""
        grants = [
            AddOnGrant.model_validate(add_on, from_attributes=not isinstance(add_on, dict))
            for add_on in add_ons
        ]
        return cls(tier=tier, add_ons=grants)


class AllocationSummary(BaseModel):
    """Computed entitlement view for one resource dimension."""
    base_allocation: int
    extra_from_add_ons: int
    total_allocation: int
    current_usage: int
    remaining_slots: int
    can_create_more: bool

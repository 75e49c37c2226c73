"""
Allocation API Routes

Exposes the entitlement calculator so clients can render resource limits.
"""

from fastapi import APIRouter
from pydantic import BaseModel, Field

from app.domain.allocations import (
    AddOnGrant,
    AllocationInput,
    AllocationSummary,
    ResourceDimension,
    get_allocator,
)
from app.domain.subscription import UserPlan


router = APIRouter()


class AllocationSummaryRequest(BaseModel):
    """Tier, current usage and the add-ons owned by the account or workspace."""
    tier: str = UserPlan.FREE.value
    current_usage: int = 0
    add_ons: list[AddOnGrant] = Field(default_factory=list)


@router.post("/allocations/{dimension}/summary", response_model=AllocationSummary)
async def get_allocation_summary(dimension: ResourceDimension, request: AllocationSummaryRequest):
    """Compute base, add-on extra, total and remaining slots for one dimension."""
    allocator = get_allocator(dimension)
    return allocator.get_allocation_summary(
        request.current_usage,
        AllocationInput(tier=request.tier, add_ons=request.add_ons),
    )

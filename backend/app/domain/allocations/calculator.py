"""
Resource Allocator

Generic entitlement algorithm: base allocation from the plan tier plus the
stacked quantities of valid add-ons for the allocator's dimension.
"""

from datetime import datetime
from typing import Mapping, Optional, Union

from app.domain.allocations.interfaces import (
    AddOnGrant,
    AllocationInput,
    AllocationSummary,
    ResourceDimension,
)
from app.domain.subscription import AddOnType, UserPlan
from app.domain.validity import is_valid


class ResourceAllocator:
    """
    Entitlement calculator for a single resource dimension.

    Pure: no persistence or I/O. Callers fetch usage counts and add-ons
    and pass them in.

    Args:
        dimension: Resource this allocator governs
        addon_type: Add-on type that stacks onto this dimension
        base_allocations: Plan tier -> base quantity
        unit_value: Units granted per purchased add-on quantity
    """

    def __init__(
        self,
        dimension: ResourceDimension,
        addon_type: AddOnType,
        base_allocations: Mapping[UserPlan, int],
        unit_value: int = 1,
    ):
        self.dimension = dimension
        self.addon_type = addon_type
        self._base_allocations = dict(base_allocations)
        self.unit_value = unit_value

    def __repr__(self) -> str:
        return f"ResourceAllocator({self.dimension.value})"

    def get_base_allocation(self, tier: Union[UserPlan, str, None]) -> int:
        """Base quantity for a tier; unknown tiers get the FREE row."""
        try:
            plan = UserPlan(tier.value if isinstance(tier, UserPlan) else tier)
        except ValueError:
            plan = UserPlan.FREE
        return self._base_allocations.get(plan, self._base_allocations[UserPlan.FREE])

    def calculate_extra_allocation(
        self,
        add_ons: list[AddOnGrant],
        now: Optional[datetime] = None,
    ) -> int:
        """Sum of quantity x unit value over matching, still-valid add-ons."""
        extra = 0
        for add_on in add_ons:
            addon_type = add_on.type.value if isinstance(add_on.type, AddOnType) else add_on.type
            if addon_type != self.addon_type.value:
                continue
            if not is_valid(add_on, now=now):
                continue
            extra += add_on.quantity * self.unit_value
        return extra

    def calculate_total_allocation(
        self,
        input: AllocationInput,
        now: Optional[datetime] = None,
    ) -> int:
        return self.get_base_allocation(input.tier) + self.calculate_extra_allocation(
            input.add_ons, now=now
        )

    def can_create(
        self,
        current_usage: int,
        input: AllocationInput,
        now: Optional[datetime] = None,
    ) -> bool:
        """Usage equal to the allocation blocks further creation."""
        return current_usage < self.calculate_total_allocation(input, now=now)

    def get_remaining_slots(
        self,
        current_usage: int,
        input: AllocationInput,
        now: Optional[datetime] = None,
    ) -> int:
        total = self.calculate_total_allocation(input, now=now)
        return max(0, total - max(0, current_usage))

    def get_allocation_summary(
        self,
        current_usage: int,
        input: AllocationInput,
        now: Optional[datetime] = None,
    ) -> AllocationSummary:
        """
        Full entitlement record for rendering limits.

        Computed against a single reference instant so every field agrees.
        """
        base = self.get_base_allocation(input.tier)
        extra = self.calculate_extra_allocation(input.add_ons, now=now)
        total = base + extra

        return AllocationSummary(
            base_allocation=base,
            extra_from_add_ons=extra,
            total_allocation=total,
            current_usage=current_usage,
            remaining_slots=max(0, total - max(0, current_usage)),
            can_create_more=current_usage < total,
        )

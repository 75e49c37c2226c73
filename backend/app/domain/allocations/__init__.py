# Entitlement allocation module
from app.domain.allocations.interfaces import (
    AddOnGrant,
    AllocationInput,
    AllocationSummary,
    ResourceDimension,
)
from app.domain.allocations.calculator import ResourceAllocator
from app.domain.allocations.policies import (
    ALLOCATORS,
    FUNNEL_PAGE_ALLOCATIONS,
    USER_WORKSPACE_ALLOCATIONS,
    WORKSPACE_CUSTOM_DOMAIN_ALLOCATIONS,
    WORKSPACE_FUNNEL_ALLOCATIONS,
    WORKSPACE_MEMBER_ALLOCATIONS,
    WORKSPACE_SUBDOMAIN_ALLOCATIONS,
    get_allocator,
)

__all__ = [
    "AddOnGrant",
    "AllocationInput",
    "AllocationSummary",
    "ResourceDimension",
    "ResourceAllocator",
    "ALLOCATORS",
    "USER_WORKSPACE_ALLOCATIONS",
    "WORKSPACE_MEMBER_ALLOCATIONS",
    "WORKSPACE_FUNNEL_ALLOCATIONS",
    "FUNNEL_PAGE_ALLOCATIONS",
    "WORKSPACE_SUBDOMAIN_ALLOCATIONS",
    "WORKSPACE_CUSTOM_DOMAIN_ALLOCATIONS",
    "get_allocator",
]

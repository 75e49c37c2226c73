"""
Allocation Policies

Base allocation tables per resource dimension and the allocator instances
built from them. This is the single source of truth for resource limits.
"""

from app.domain.allocations.calculator import ResourceAllocator
from app.domain.allocations.interfaces import ResourceDimension
from app.domain.subscription import AddOnType, UserPlan


USER_WORKSPACE_ALLOCATIONS = ResourceAllocator(
    dimension=ResourceDimension.USER_WORKSPACES,
    addon_type=AddOnType.EXTRA_WORKSPACE,
    base_allocations={
        UserPlan.FREE: 1,
        UserPlan.BUSINESS: 1,
        UserPlan.AGENCY: 10000,  # effectively unlimited
    },
)

WORKSPACE_MEMBER_ALLOCATIONS = ResourceAllocator(
    dimension=ResourceDimension.WORKSPACE_MEMBERS,
    addon_type=AddOnType.EXTRA_ADMIN,
    base_allocations={
        UserPlan.FREE: 1,
        UserPlan.BUSINESS: 2,
        UserPlan.AGENCY: 1,
    },
)

WORKSPACE_FUNNEL_ALLOCATIONS = ResourceAllocator(
    dimension=ResourceDimension.WORKSPACE_FUNNELS,
    addon_type=AddOnType.EXTRA_FUNNEL,
    base_allocations={
        UserPlan.FREE: 1,
        UserPlan.BUSINESS: 1,
        UserPlan.AGENCY: 1,
    },
)

FUNNEL_PAGE_ALLOCATIONS = ResourceAllocator(
    dimension=ResourceDimension.FUNNEL_PAGES,
    addon_type=AddOnType.EXTRA_PAGE,
    base_allocations={
        UserPlan.FREE: 35,
        UserPlan.BUSINESS: 35,
        UserPlan.AGENCY: 35,
    },
    unit_value=5,  # pages per add-on unit
)

WORKSPACE_SUBDOMAIN_ALLOCATIONS = ResourceAllocator(
    dimension=ResourceDimension.WORKSPACE_SUBDOMAINS,
    addon_type=AddOnType.EXTRA_SUBDOMAIN,
    base_allocations={
        UserPlan.FREE: 1,
        UserPlan.BUSINESS: 1,
        UserPlan.AGENCY: 1,
    },
)

WORKSPACE_CUSTOM_DOMAIN_ALLOCATIONS = ResourceAllocator(
    dimension=ResourceDimension.WORKSPACE_CUSTOM_DOMAINS,
    addon_type=AddOnType.EXTRA_CUSTOM_DOMAIN,
    base_allocations={
        UserPlan.FREE: 0,
        UserPlan.BUSINESS: 1,
        UserPlan.AGENCY: 0,
    },
)


ALLOCATORS: dict[ResourceDimension, ResourceAllocator] = {
    allocator.dimension: allocator
    for allocator in (
        USER_WORKSPACE_ALLOCATIONS,
        WORKSPACE_MEMBER_ALLOCATIONS,
        WORKSPACE_FUNNEL_ALLOCATIONS,
        FUNNEL_PAGE_ALLOCATIONS,
        WORKSPACE_SUBDOMAIN_ALLOCATIONS,
        WORKSPACE_CUSTOM_DOMAIN_ALLOCATIONS,
    )
}


def get_allocator(dimension: ResourceDimension) -> ResourceAllocator:
    """Look up the allocator for a resource dimension."""
    return ALLOCATORS[dimension]

# API Routes Module
from app.api.routes import (
    allocations,
    webhooks,
)

__all__ = [
    "allocations",
    "webhooks",
]

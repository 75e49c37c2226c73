"""
Repository Layer for the Billing Engine

Exports all repository classes and their singleton accessors.
"""

from app.infrastructure.db.repositories.subscription_repository import (
    SubscriptionRepository,
    get_subscription_repository,
)
from app.infrastructure.db.repositories.add_on_repository import (
    AddOnRepository,
    get_add_on_repository,
)
from app.infrastructure.db.repositories.payment_repository import (
    PaymentRepository,
    get_payment_repository,
)
from app.infrastructure.db.repositories.user_repository import (
    UserRepository,
    get_user_repository,
)


__all__ = [
    "SubscriptionRepository",
    "AddOnRepository",
    "PaymentRepository",
    "UserRepository",
    "get_subscription_repository",
    "get_add_on_repository",
    "get_payment_repository",
    "get_user_repository",
]

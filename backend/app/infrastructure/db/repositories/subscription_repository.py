"""
Subscription Repository

Data access layer for subscription persistence.
Follows Repository pattern for Clean Architecture.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional, Union
from uuid import UUID

from sqlmodel import select
from sqlalchemy import func, text, type_coerce, update
from sqlalchemy.dialects.postgresql import JSONB

from app.infrastructure.db.database import get_session_context
from app.infrastructure.db.models.subscription import SubscriptionModel
from app.infrastructure.exceptions import SubscriptionNotFoundError
from app.domain.subscription import (
    AddOnType,
    IntervalUnit,
    ItemType,
    Subscription,
    SubscriptionStatus,
    UserPlan,
)


logger = logging.getLogger(__name__)


def _as_uuid(value: Union[str, UUID]) -> UUID:
    return UUID(value) if isinstance(value, str) else value


class SubscriptionRepository:
    """
    Repository for subscription data access.

    Implements queries and renewal writes with domain model mapping.
    Uses async SQLModel for database operations.
    """

    # =========================================================================
    # Query Methods
    # =========================================================================

    async def get_by_id(self, id: str) -> Optional[Subscription]:
        """Get subscription by internal ID."""
        async with get_session_context() as session:
            model = await session.get(SubscriptionModel, _as_uuid(id))
            return self._to_domain(model) if model else None

    async def get_by_subscription_id(self, subscription_id: str) -> Optional[Subscription]:
        """
        Get subscription by gateway subscription ID.

        Args:
            subscription_id: External (gateway-assigned) subscription ID

        Returns:
            Subscription domain model or None
        """
        async with get_session_context() as session:
            statement = select(SubscriptionModel).where(
                SubscriptionModel.subscription_id == subscription_id
            )
            result = await session.execute(statement)
            model = result.scalar_one_or_none()

            if model:
                return self._to_domain(model)

            return None

    async def list_lapsed(self, now: datetime) -> list[Subscription]:
        """Subscriptions past their end date that are not yet EXPIRED."""
        async with get_session_context() as session:
            statement = select(SubscriptionModel).where(
                SubscriptionModel.ends_at < now,
                SubscriptionModel.status != SubscriptionStatus.EXPIRED.value,
            )
            result = await session.execute(statement)
            return [self._to_domain(model) for model in result.scalars().all()]

    # =========================================================================
    # Command Methods
    # =========================================================================

    async def apply_renewal(
        self,
        id: str,
        ends_at: datetime,
        payload: dict[str, Any],
    ) -> Subscription:
        """
        Extend, reactivate and append a webhook payload to the audit trail.

        One UPDATE statement: ``raw_data || [payload]`` is evaluated by
        PostgreSQL, so concurrent renewals cannot drop each other's entries.
        A legacy non-array ``raw_data`` object is wrapped by ``||`` itself.

        Args:
            id: Internal subscription ID
            ends_at: New paid-through instant (replaces the old one)
            payload: Full webhook payload to append

        Returns:
            Updated subscription
        """
        appended = func.coalesce(
            SubscriptionModel.raw_data, text("'[]'::jsonb")
        ).op("||", return_type=JSONB)(type_coerce([payload], JSONB))

        statement = (
            update(SubscriptionModel)
            .where(SubscriptionModel.id == _as_uuid(id))
            .values(
                ends_at=ends_at,
                status=SubscriptionStatus.ACTIVE.value,
                raw_data=appended,
                updated_at=datetime.now(timezone.utc),
            )
            .returning(SubscriptionModel)
            .execution_options(synchronize_session=False)
        )

        async with get_session_context() as session:
            result = await session.execute(statement)
            model = result.scalar_one_or_none()

            if not model:
                raise SubscriptionNotFoundError(id, message=f"Subscription {id} disappeared during renewal")

            logger.info(
                f"Renewed subscription {model.id} until {ends_at.isoformat()} "
                f"({len(model.raw_data or [])} audit entries)"
            )
            return self._to_domain(model)

    async def set_subscriber_id(self, id: str, subscriber_id: str) -> None:
        """Store the gateway's subscriber identifier for reconciliation."""
        async with get_session_context() as session:
            await session.execute(
                update(SubscriptionModel)
                .where(SubscriptionModel.id == _as_uuid(id))
                .values(subscriber_id=subscriber_id, updated_at=datetime.now(timezone.utc))
                .execution_options(synchronize_session=False)
            )

    async def update_status(self, id: str, status: SubscriptionStatus) -> None:
        """Flip the lifecycle status of one subscription."""
        async with get_session_context() as session:
            await session.execute(
                update(SubscriptionModel)
                .where(SubscriptionModel.id == _as_uuid(id))
                .values(status=status.value, updated_at=datetime.now(timezone.utc))
                .execution_options(synchronize_session=False)
            )

    # =========================================================================
    # Mapping Methods
    # =========================================================================

    def _to_domain(self, model: SubscriptionModel) -> Subscription:
        """Convert database model to domain entity."""
        raw_data = model.raw_data or []
        if not isinstance(raw_data, list):
            raw_data = [raw_data]

        return Subscription(
            id=str(model.id),
            subscription_id=model.subscription_id,
            user_id=str(model.user_id),
            subscriber_id=model.subscriber_id,
            starts_at=model.starts_at,
            ends_at=model.ends_at,
            status=SubscriptionStatus(model.status),
            interval_unit=IntervalUnit(model.interval_unit) if model.interval_unit else IntervalUnit.MONTH,
            interval_count=model.interval_count or 1,
            item_type=ItemType(model.item_type) if model.item_type else ItemType.PLAN,
            subscription_type=UserPlan(model.subscription_type) if model.subscription_type else None,
            addon_type=AddOnType(model.addon_type) if model.addon_type else None,
            raw_data=raw_data,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )


# =============================================================================
# Singleton Instance
# =============================================================================

_subscription_repo_instance: Optional[SubscriptionRepository] = None


def get_subscription_repository() -> SubscriptionRepository:
    """Get or create subscription repository singleton."""
    global _subscription_repo_instance

    if _subscription_repo_instance is None:
        _subscription_repo_instance = SubscriptionRepository()

    return _subscription_repo_instance

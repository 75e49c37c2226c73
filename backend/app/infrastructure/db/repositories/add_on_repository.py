"""
Add-on Repository

Data access layer for add-on records.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, Union
from uuid import UUID

from sqlmodel import select
from sqlalchemy import func, text, type_coerce, update
from sqlalchemy.dialects.postgresql import JSONB

from app.infrastructure.db.database import get_session_context
from app.infrastructure.db.models.add_on import AddOnModel
from app.infrastructure.exceptions import NotFoundError
from app.domain.subscription import (
    AddOn,
    AddOnStatus,
    AddOnType,
    ExpiryReminder,
    IntervalUnit,
    RENEWABLE_ADDON_STATUSES,
)


logger = logging.getLogger(__name__)


def _as_uuid(value: Union[str, UUID]) -> UUID:
    return UUID(value) if isinstance(value, str) else value


class AddOnRepository:
    """Repository for add-on data access."""

    async def get_by_id(self, id: str) -> Optional[AddOn]:
        async with get_session_context() as session:
            model = await session.get(AddOnModel, _as_uuid(id))
            return self._to_domain(model) if model else None

    async def find_renewable(self, user_id: str, addon_type: AddOnType) -> Optional[AddOn]:
        """
        Find the add-on a renewal charge applies to.

        The most recently created add-on of this type owned by the user,
        in any status a renewal may reactivate.

        Args:
            user_id: Owning user ID
            addon_type: Add-on type carried on the subscription

        Returns:
            AddOn domain model or None
        """
        async with get_session_context() as session:
            statement = (
                select(AddOnModel)
                .where(
                    AddOnModel.user_id == _as_uuid(user_id),
                    AddOnModel.type == addon_type.value,
                    AddOnModel.status.in_([s.value for s in RENEWABLE_ADDON_STATUSES]),
                )
                .order_by(AddOnModel.created_at.desc())
                .limit(1)
            )
            result = await session.execute(statement)
            model = result.scalar_one_or_none()
            return self._to_domain(model) if model else None

    async def list_lapsed(self, now: datetime) -> list[AddOn]:
        """Add-ons past their end date that are not yet EXPIRED."""
        async with get_session_context() as session:
            statement = select(AddOnModel).where(
                AddOnModel.end_date < now,
                AddOnModel.status != AddOnStatus.EXPIRED.value,
            )
            result = await session.execute(statement)
            return [self._to_domain(model) for model in result.scalars().all()]

    async def list_expiring(self, now: datetime, until: datetime) -> list[AddOn]:
        """
        Add-ons in their grace period ending between ``now`` and ``until``.

        ACTIVE add-ons are skipped: they renew on their own.
        """
        async with get_session_context() as session:
            statement = (
                select(AddOnModel)
                .where(
                    AddOnModel.status != AddOnStatus.ACTIVE.value,
                    AddOnModel.end_date.is_not(None),
                    AddOnModel.end_date >= now,
                    AddOnModel.end_date <= until,
                )
                .order_by(AddOnModel.end_date)
            )
            result = await session.execute(statement)
            return [self._to_domain(model) for model in result.scalars().all()]

    async def renew(self, id: str, end_date: datetime) -> AddOn:
        """Set a new end date and reactivate the add-on."""
        async with get_session_context() as session:
            model = await session.get(AddOnModel, _as_uuid(id))
            if not model:
                raise NotFoundError(f"Add-on not found: {id}", operation="renew", table="add_ons")

            model.end_date = end_date
            model.status = AddOnStatus.ACTIVE.value
            model.updated_at = datetime.now(timezone.utc)
            session.add(model)
            await session.flush()
            await session.refresh(model)

            logger.info(f"Renewed add-on {model.id} until {end_date.isoformat()}")
            return self._to_domain(model)

    async def update_status(self, id: str, status: AddOnStatus) -> None:
        async with get_session_context() as session:
            await session.execute(
                update(AddOnModel)
                .where(AddOnModel.id == _as_uuid(id))
                .values(status=status.value, updated_at=datetime.now(timezone.utc))
                .execution_options(synchronize_session=False)
            )

    async def mark_reminder_sent(self, id: str, reminder: ExpiryReminder) -> None:
        """Merge ``{reminder: true}`` into expiration_reminders in one UPDATE."""
        merged = func.coalesce(
            AddOnModel.expiration_reminders, text("'{}'::jsonb")
        ).op("||", return_type=JSONB)(type_coerce({reminder.value: True}, JSONB))

        async with get_session_context() as session:
            await session.execute(
                update(AddOnModel)
                .where(AddOnModel.id == _as_uuid(id))
                .values(expiration_reminders=merged, updated_at=datetime.now(timezone.utc))
                .execution_options(synchronize_session=False)
            )

    def _to_domain(self, model: AddOnModel) -> AddOn:
        """Convert database model to domain entity."""
        return AddOn(
            id=str(model.id),
            user_id=str(model.user_id) if model.user_id else None,
            workspace_id=str(model.workspace_id) if model.workspace_id else None,
            type=AddOnType(model.type),
            quantity=model.quantity,
            price_per_unit=model.price_per_unit,
            status=AddOnStatus(model.status),
            billing_cycle=IntervalUnit(model.billing_cycle),
            start_date=model.start_date,
            end_date=model.end_date,
            expiration_reminders=dict(model.expiration_reminders or {}),
            created_at=model.created_at,
            updated_at=model.updated_at,
        )


# =============================================================================
# Singleton Instance
# =============================================================================

_add_on_repo_instance: Optional[AddOnRepository] = None


def get_add_on_repository() -> AddOnRepository:
    """Get or create add-on repository singleton."""
    global _add_on_repo_instance

    if _add_on_repo_instance is None:
        _add_on_repo_instance = AddOnRepository()

    return _add_on_repo_instance

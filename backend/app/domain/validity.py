"""
Validity Oracle

Single predicate deciding whether a subscription or add-on still grants access.
A CANCELLED item keeps granting access until its paid-through date passes.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from app.domain.subscription import AddOnStatus, SubscriptionStatus


_ACTIVE = {SubscriptionStatus.ACTIVE.value, AddOnStatus.ACTIVE.value}
_CANCELLED = {SubscriptionStatus.CANCELLED.value, AddOnStatus.CANCELLED.value}


def _status_value(status: Any) -> str:
    return status.value if hasattr(status, "value") else str(status)


def _expiry_of(entity: Any) -> Optional[datetime]:
    """Add-ons expose ``end_date``, subscriptions ``ends_at``."""
    if isinstance(entity, dict):
        return entity.get("end_date", entity.get("ends_at"))
    expiry = getattr(entity, "end_date", None)
    if expiry is None:
        expiry = getattr(entity, "ends_at", None)
    return expiry


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_valid(entity: Any, now: Optional[datetime] = None) -> bool:
    """
    Check whether an entity is still paid for.

    Valid iff ACTIVE, or CANCELLED with no expiry or an expiry strictly
    after ``now``. EXPIRED, INACTIVE and CANCELLED-past-expiry are invalid.

    Args:
        entity: Subscription, AddOn, or any object/dict with ``status`` and
            ``end_date``/``ends_at``
        now: Reference instant (defaults to current UTC time)
    """
    raw_status = entity.get("status") if isinstance(entity, dict) else getattr(entity, "status", None)
    if raw_status is None:
        return False

    status = _status_value(raw_status)
    if status in _ACTIVE:
        return True
    if status not in _CANCELLED:
        return False

    expiry = _expiry_of(entity)
    if expiry is None:
        return True

    reference = _as_utc(now) if now else datetime.now(timezone.utc)
    return _as_utc(expiry) > reference

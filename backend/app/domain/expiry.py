"""
Add-on Expiry Reminders

Decides which warning an add-on in its grace period is due. Day counts use
UTC calendar days, so an add-on ending later today is 0 days out.
"""

from datetime import datetime, timedelta, timezone
from typing import Mapping, Optional

from app.domain.subscription import ExpiryReminder


# Add-ons ending within this many days are considered for a warning
REMINDER_HORIZON = timedelta(days=8)

# Inclusive day ranges, checked in order. The ranges overlap so an add-on
# created between two cron runs still gets the nearest warning.
REMINDER_WINDOWS: tuple[tuple[ExpiryReminder, int, int], ...] = (
    (ExpiryReminder.DAY7, 6, 8),
    (ExpiryReminder.DAY3, 2, 4),
    (ExpiryReminder.DAY1, 0, 2),
)


def _utc_date(value: datetime):
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).date()


def days_until_expiration(end_date: datetime, now: datetime) -> int:
    """Whole calendar days from ``now`` to ``end_date``."""
    return (_utc_date(end_date) - _utc_date(now)).days


def select_expiry_reminder(
    days_until: int, sent: Optional[Mapping[str, bool]] = None
) -> Optional[ExpiryReminder]:
    """
    First warning whose window contains ``days_until`` and that was not sent.

    Returns:
        The reminder to send, or None when nothing is due
    """
    sent = sent or {}
    for reminder, low, high in REMINDER_WINDOWS:
        if low <= days_until <= high and not sent.get(reminder.value):
            return reminder
    return None

"""
Expiration Service

Periodic sweep that flips lapsed subscriptions and add-ons to EXPIRED, and
warns owners of add-ons in their grace period before they lapse.
Run from cron through ``scripts/mark_expired_items.py``.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from app.config.settings import settings
from app.domain.expiry import REMINDER_HORIZON, days_until_expiration, select_expiry_reminder
from app.domain.subscription import AddOn, AddOnStatus, ExpiryReminder, SubscriptionStatus
from app.infrastructure.db.repositories.add_on_repository import (
    AddOnRepository,
    get_add_on_repository,
)
from app.infrastructure.db.repositories.subscription_repository import (
    SubscriptionRepository,
    get_subscription_repository,
)
from app.infrastructure.db.repositories.user_repository import (
    UserRepository,
    get_user_repository,
)
from app.infrastructure.notifications.email_service import EmailService, get_email_service
from app.infrastructure.notifications.templates import render_addon_expiry_warning


logger = logging.getLogger(__name__)

ADDON_BILLING_PATH = "/dashboard/billing/addons"


class ExpirationService:
    """
    Marks records whose paid-through instant has passed.

    A failure on one row is recorded in the summary and the sweep continues.
    """

    def __init__(
        self,
        subscriptions: Optional[SubscriptionRepository] = None,
        add_ons: Optional[AddOnRepository] = None,
        users: Optional[UserRepository] = None,
        email: Optional[EmailService] = None,
    ):
        self._subscriptions = subscriptions or get_subscription_repository()
        self._add_ons = add_ons or get_add_on_repository()
        self._users = users or get_user_repository()
        self._email = email or get_email_service()

    async def mark_expired_items(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Sweep subscriptions and add-ons.

        Returns:
            {success, subscriptions{total_marked, results},
             addons{total_marked, results}, errors, execution_time_ms}
        """
        started = time.monotonic()
        now = now or datetime.now(timezone.utc)
        errors: List[str] = []

        logger.info(f"[EXPIRATION] Sweep started at {now.isoformat()}")

        subscription_results = await self._expire_subscriptions(now, errors)
        addon_results = await self._expire_add_ons(now, errors)

        summary = {
            "success": not errors,
            "subscriptions": {
                "total_marked": len(subscription_results),
                "results": subscription_results,
            },
            "addons": {
                "total_marked": len(addon_results),
                "results": addon_results,
            },
            "errors": errors,
            "execution_time_ms": int((time.monotonic() - started) * 1000),
        }

        logger.info(
            f"[EXPIRATION] Marked {len(subscription_results)} subscriptions and "
            f"{len(addon_results)} add-ons as expired ({len(errors)} errors)"
        )
        return summary

    async def _expire_subscriptions(self, now: datetime, errors: List[str]) -> List[Dict[str, Any]]:
        try:
            lapsed = await self._subscriptions.list_lapsed(now)
        except Exception as e:
            logger.error(f"[EXPIRATION] Could not list lapsed subscriptions: {e}")
            errors.append(f"Failed to query subscriptions: {e}")
            return []

        results = []
        for subscription in lapsed:
            try:
                await self._subscriptions.update_status(subscription.id, SubscriptionStatus.EXPIRED)
                results.append({
                    "id": subscription.id,
                    "subscription_id": subscription.subscription_id,
                    "user_id": subscription.user_id,
                    "previous_status": subscription.status.value,
                    "ends_at": subscription.ends_at.isoformat() if subscription.ends_at else None,
                })
            except Exception as e:
                logger.error(f"[EXPIRATION] Subscription {subscription.id}: {e}")
                errors.append(f"Subscription {subscription.id}: {e}")

        return results

    async def _expire_add_ons(self, now: datetime, errors: List[str]) -> List[Dict[str, Any]]:
        try:
            lapsed = await self._add_ons.list_lapsed(now)
        except Exception as e:
            logger.error(f"[EXPIRATION] Could not list lapsed add-ons: {e}")
            errors.append(f"Failed to query add-ons: {e}")
            return []

        results = []
        for add_on in lapsed:
            try:
                await self._add_ons.update_status(add_on.id, AddOnStatus.EXPIRED)
                results.append({
                    "id": add_on.id,
                    "type": add_on.type.value,
                    "user_id": add_on.user_id,
                    "workspace_id": add_on.workspace_id,
                    "previous_status": add_on.status.value,
                    "end_date": add_on.end_date.isoformat() if add_on.end_date else None,
                })
            except Exception as e:
                logger.error(f"[EXPIRATION] Add-on {add_on.id}: {e}")
                errors.append(f"Add-on {add_on.id}: {e}")

        return results

    async def send_warning_emails(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Email owners of non-ACTIVE add-ons that lapse within the reminder horizon.

        Each of the 7, 3 and 1 day warnings goes out at most once per add-on;
        a warning is recorded only after SendGrid accepted it, so a failed
        send is retried on the next run.

        Returns:
            {success, total_eligible, day7_sent, day3_sent, day1_sent,
             total_failed, results, errors, execution_time_ms}
        """
        started = time.monotonic()
        now = now or datetime.now(timezone.utc)
        errors: List[str] = []
        results: List[Dict[str, Any]] = []
        sent = {reminder: 0 for reminder in ExpiryReminder}

        logger.info(f"[EXPIRY_WARNING] Run started at {now.isoformat()}")

        try:
            expiring = await self._add_ons.list_expiring(now, now + REMINDER_HORIZON)
        except Exception as e:
            logger.error(f"[EXPIRY_WARNING] Could not list expiring add-ons: {e}")
            errors.append(f"Failed to query add-ons: {e}")
            expiring = []

        for add_on in expiring:
            days_until = days_until_expiration(add_on.end_date, now)
            reminder = select_expiry_reminder(days_until, add_on.expiration_reminders)
            if reminder is None:
                continue

            result = await self._warn(add_on, reminder, days_until, errors)
            if result is None:
                continue
            results.append(result)
            if result["email_sent"]:
                sent[reminder] += 1

        total_failed = sum(1 for result in results if not result["email_sent"])
        summary = {
            "success": not errors,
            "total_eligible": len(expiring),
            "day7_sent": sent[ExpiryReminder.DAY7],
            "day3_sent": sent[ExpiryReminder.DAY3],
            "day1_sent": sent[ExpiryReminder.DAY1],
            "total_failed": total_failed,
            "results": results,
            "errors": errors,
            "execution_time_ms": int((time.monotonic() - started) * 1000),
        }

        logger.info(
            f"[EXPIRY_WARNING] Sent {sum(sent.values())} warnings for "
            f"{len(expiring)} expiring add-ons ({total_failed} failed)"
        )
        return summary

    async def _warn(
        self,
        add_on: AddOn,
        reminder: ExpiryReminder,
        days_until: int,
        errors: List[str],
    ) -> Optional[Dict[str, Any]]:
        if not add_on.user_id:
            logger.warning(f"[EXPIRY_WARNING] Add-on {add_on.id} has no owner, skipping")
            return None

        result: Dict[str, Any] = {
            "addon_id": add_on.id,
            "addon_type": add_on.type.value,
            "user_id": add_on.user_id,
            "user_email": None,
            "reminder": reminder.value,
            "days_until_expiration": days_until,
            "email_sent": False,
        }

        try:
            user = await self._users.get_by_id(add_on.user_id)
            if not user:
                logger.warning(f"[EXPIRY_WARNING] Owner {add_on.user_id} of add-on {add_on.id} not found")
                return None
            result["user_email"] = user.email

            rendered = render_addon_expiry_warning(
                reminder,
                add_on.type,
                add_on.quantity,
                add_on.end_date,
                settings.frontend_url.rstrip("/") + ADDON_BILLING_PATH,
            )
            message = self._email.build_message(
                to=user.email,
                subject=rendered.subject,
                html=rendered.html,
                text=rendered.text,
            )
            await self._email.send(message)
            result["email_sent"] = True
            await self._add_ons.mark_reminder_sent(add_on.id, reminder)
            logger.info(f"[EXPIRY_WARNING] Sent {reminder.value} warning for add-on {add_on.id}")
        except Exception as e:
            logger.error(f"[EXPIRY_WARNING] Add-on {add_on.id}: {e}")
            errors.append(f"Add-on {add_on.id}: {e}")
            result["error"] = str(e)

        return result

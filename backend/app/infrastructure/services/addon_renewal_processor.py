"""
Add-on Renewal Processor

Applies a captured recurring charge to an add-on subscription and the
add-on it pays for. Never touches the user's plan-expiry marker.
"""

import logging
from typing import Optional

from app.domain.subscription import Payment, PaymentType, RenewalResult
from app.domain.webhook import RenewalWebhookEvent, parse_next_payment_date
from app.infrastructure.db.repositories.add_on_repository import (
    AddOnRepository,
    get_add_on_repository,
)
from app.infrastructure.exceptions import AddOnNotFoundError, RenewalProcessingError
from app.infrastructure.notifications.templates import render_addon_renewal
from app.infrastructure.services.renewal_processor_base import RenewalProcessorBase


logger = logging.getLogger(__name__)


class AddOnRenewalProcessor(RenewalProcessorBase):
    """Renew an add-on subscription and sync the add-on's end date."""

    log_prefix = "[ADDON_RENEWAL]"

    def __init__(self, add_ons: Optional[AddOnRepository] = None, **kwargs):
        super().__init__(**kwargs)
        self._add_ons = add_ons or get_add_on_repository()

    async def process(self, event: RenewalWebhookEvent) -> RenewalResult:
        logger.info(
            f"{self.log_prefix} Processing {event.transaction_id} for subscription "
            f"{event.subscription_id} (next_payment_date={event.next_payment_date})"
        )

        subscription = await self._load_subscription(
            event,
            message=f"Subscription not found: {event.subscription_id}. Cannot process addon renewal.",
        )

        if not subscription.addon_type:
            logger.error(f"{self.log_prefix} Subscription {event.subscription_id} has no addon type")
            raise RenewalProcessingError(
                f"Subscription {event.subscription_id} is not an addon subscription. "
                "Cannot process addon renewal.",
                details={"subscription_id": event.subscription_id},
            )

        add_on = await self._add_ons.find_renewable(subscription.user_id, subscription.addon_type)
        if not add_on:
            error = AddOnNotFoundError(event.subscription_id)
            logger.error(f"{self.log_prefix} {error.message}")
            raise error

        new_end_date = parse_next_payment_date(event.next_payment_date)

        payment = await self._payments.create(
            Payment(
                transaction_id=event.transaction_id,
                amount=event.amount,
                currency=event.amount_currency,
                status=event.status.value,
                item_type=None,
                addon_type=add_on.type,
                addon_quantity=add_on.quantity,
                addon_id=add_on.id,
                payment_type=PaymentType.ADDON_PURCHASE,
                buyer_id=subscription.user_id,
                raw_data=[event.raw_payload],
                affiliate_link_id=None,
                commission_amount=None,
                commission_status=None,
            )
        )

        updated = await self._subscriptions.apply_renewal(
            subscription.id, new_end_date, event.raw_payload
        )
        renewed_add_on = await self._add_ons.renew(add_on.id, new_end_date)

        await self._notify(
            subscription,
            event,
            render_addon_renewal(subscription.addon_type, updated.subscription_id, new_end_date),
        )

        return RenewalResult(
            message="Addon renewed successfully",
            user_id=subscription.user_id,
            payment_id=payment.id,
            subscription_id=updated.id,
            addon_id=renewed_add_on.id,
        )

"""
Plan Renewal Processor

Applies a captured recurring charge to a plan subscription.
"""

import logging

from app.domain.subscription import (
    Payment,
    PaymentType,
    RenewalResult,
    UserPlan,
)
from app.domain.webhook import RenewalWebhookEvent, parse_next_payment_date
from app.infrastructure.notifications.templates import render_plan_renewal
from app.infrastructure.services.renewal_processor_base import RenewalProcessorBase


logger = logging.getLogger(__name__)


class PlanRenewalProcessor(RenewalProcessorBase):
    """
    Renew a plan subscription.

    Steps:
    1. Resolve the subscription (fatal when unknown)
    2. Parse next_payment_date (fatal when missing or not a calendar date)
    3. Record the payment, without affiliate commission
    4. Extend and reactivate the subscription, appending the payload
    5. Move the user's plan-expiry marker for declared plan purchases
    6. Send the confirmation email (best-effort)
    """

    log_prefix = "[PLAN_RENEWAL]"

    async def process(self, event: RenewalWebhookEvent) -> RenewalResult:
        logger.info(
            f"{self.log_prefix} Processing {event.transaction_id} for subscription "
            f"{event.subscription_id} (next_payment_date={event.next_payment_date})"
        )

        subscription = await self._load_subscription(event)
        new_ends_at = parse_next_payment_date(event.next_payment_date)

        payment = await self._payments.create(
            Payment(
                transaction_id=event.transaction_id,
                amount=event.amount,
                currency=event.amount_currency,
                status=event.status.value,
                item_type=subscription.subscription_type or UserPlan.FREE,
                payment_type=PaymentType.PLAN_PURCHASE,
                buyer_id=subscription.user_id,
                raw_data=event.raw_payload,
                affiliate_link_id=None,
                commission_amount=None,
                commission_status=None,
            )
        )

        updated = await self._subscriptions.apply_renewal(
            subscription.id, new_ends_at, event.raw_payload
        )

        if event.payment_type == PaymentType.PLAN_PURCHASE and event.details.plan_type:
            await self._users.update_trial_end_date(subscription.user_id, new_ends_at)

        await self._notify(
            subscription,
            event,
            render_plan_renewal(subscription.subscription_type, updated.subscription_id, new_ends_at),
        )

        return RenewalResult(
            message="Subscription renewed successfully",
            user_id=subscription.user_id,
            payment_id=payment.id,
            subscription_id=updated.id,
        )

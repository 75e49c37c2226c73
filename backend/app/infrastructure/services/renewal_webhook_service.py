"""
Renewal Webhook Service

Entry point for MamoPay recurring-charge events. Filters out events that
must not move money, enforces at-most-once processing per transaction,
and dispatches to the plan or add-on renewal processor.

Ignorable events return a ``WebhookResponse`` with ``ignored=True``.
Fatal preconditions (unknown subscription, missing add-on, bad date)
propagate so the HTTP layer answers non-2xx and the gateway retries.
"""

import logging
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from app.domain.subscription import PaymentType, RenewalResult
from app.domain.webhook import (
    ChargeStatus,
    RenewalWebhookEvent,
    WebhookEventType,
    WebhookResponse,
    WebhookResultData,
)
from app.infrastructure.db.repositories.payment_repository import (
    PaymentRepository,
    get_payment_repository,
)
from app.infrastructure.db.repositories.subscription_repository import SubscriptionRepository
from app.infrastructure.exceptions import DuplicatePaymentError
from app.infrastructure.payments.mamopay_service import (
    MamoPayService,
    fetch_and_store_subscriber_id,
)
from app.infrastructure.services.addon_renewal_processor import AddOnRenewalProcessor
from app.infrastructure.services.plan_renewal_processor import PlanRenewalProcessor


logger = logging.getLogger(__name__)

ALREADY_PROCESSED = "Payment already processed"


def _first_validation_error(error: PydanticValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first['msg']}" if location else first["msg"]


class RenewalWebhookService:
    """Process one renewal webhook delivery end to end."""

    def __init__(
        self,
        payments: Optional[PaymentRepository] = None,
        plan_processor: Optional[PlanRenewalProcessor] = None,
        addon_processor: Optional[AddOnRenewalProcessor] = None,
        gateway: Optional[MamoPayService] = None,
        subscriptions: Optional[SubscriptionRepository] = None,
    ):
        self._payments = payments or get_payment_repository()
        self._plan_processor = plan_processor or PlanRenewalProcessor()
        self._addon_processor = addon_processor or AddOnRenewalProcessor()
        self._gateway = gateway
        self._subscriptions = subscriptions

    async def process(self, payload: Any) -> WebhookResponse:
        if not isinstance(payload, dict):
            logger.info("[WEBHOOK] Invalid payload format - not an object")
            return WebhookResponse.ignore("Invalid payload format")

        event_type = payload.get("event_type")
        if WebhookEventType.from_value(event_type) != WebhookEventType.SUBSCRIPTION_SUCCEEDED:
            logger.info(f"[WEBHOOK] Ignoring event type: {event_type}")
            return WebhookResponse.ignore(f"Event type not supported: {event_type}")

        status = payload.get("status")
        if ChargeStatus.from_value(status) != ChargeStatus.CAPTURED:
            logger.info(f"[WEBHOOK] Ignoring status: {status}")
            return WebhookResponse.ignore(f"Status not captured: {status}")

        transaction_id = payload.get("id")
        if not transaction_id:
            logger.info("[WEBHOOK] Missing transaction ID")
            return WebhookResponse.ignore("Missing transaction ID")

        if await self._payments.exists_by_transaction_id(str(transaction_id)):
            logger.info(f"[WEBHOOK] Payment already processed: {transaction_id}")
            return WebhookResponse.ignore(ALREADY_PROCESSED)

        try:
            event = RenewalWebhookEvent.from_payload(payload)
        except PydanticValidationError as e:
            logger.warning(f"[WEBHOOK] Schema validation failed for {transaction_id}: {e.errors()}")
            return WebhookResponse.ignore(f"Invalid webhook data: {_first_validation_error(e)}")

        payment_type = event.payment_type
        if payment_type is None:
            logger.info(f"[WEBHOOK] Unknown payment type: {event.details.payment_type}")
            return WebhookResponse.ignore(f"Unknown payment type: {event.details.payment_type}")

        try:
            result = await self._dispatch(payment_type, event)
        except DuplicatePaymentError:
            # Lost the race against a concurrent delivery of the same transaction
            logger.info(f"[WEBHOOK] Payment already processed (constraint): {transaction_id}")
            return WebhookResponse.ignore(ALREADY_PROCESSED)

        await fetch_and_store_subscriber_id(
            result.subscription_id,
            event.subscription_id,
            service=self._gateway,
            repository=self._subscriptions,
        )

        return WebhookResponse(
            message=result.message,
            data=WebhookResultData(
                user_id=result.user_id,
                payment_id=result.payment_id,
                subscription_id=result.subscription_id,
                addon_id=result.addon_id,
            ),
        )

    async def _dispatch(self, payment_type: PaymentType, event: RenewalWebhookEvent) -> RenewalResult:
        if payment_type == PaymentType.ADDON_PURCHASE:
            return await self._addon_processor.process(event)
        return await self._plan_processor.process(event)


def get_renewal_webhook_service() -> RenewalWebhookService:
    """Build the service with the default repositories and clients."""
    return RenewalWebhookService()

"""
MamoPay Webhook Handler

Receives recurring-charge notifications from MamoPay.

Ignored events are acknowledged with 200 so the gateway stops retrying.
Fatal processing errors are raised to the application exception handlers,
which answer non-2xx so the gateway redelivers.
"""

import json
import logging

from fastapi import APIRouter, Depends, Request

from app.infrastructure.services.renewal_webhook_service import (
    RenewalWebhookService,
    get_renewal_webhook_service,
)
from app.domain.webhook import WebhookResponse


logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/webhooks/mamopay/renewal")
async def mamopay_renewal_webhook(
    request: Request,
    service: RenewalWebhookService = Depends(get_renewal_webhook_service),
):
    """
    Handle a MamoPay subscription renewal event.

    Returns {received, ignored?, reason?, message?, data?}.
    """
    body = await request.body()
    try:
        payload = json.loads(body) if body else None
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.info("[WEBHOOK] Body is not valid JSON")
        return WebhookResponse.ignore("Invalid payload format").to_dict()

    response = await service.process(payload)
    return response.to_dict()

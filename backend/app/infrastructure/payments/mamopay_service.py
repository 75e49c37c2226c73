"""
MamoPay Gateway Service

Infrastructure service for the MamoPay business API.

The billing core only needs one call from the gateway: resolving the
subscriber identifier of a recurring subscription, so that later
management calls (cancel, refund) can address it.
"""

import logging
from typing import TYPE_CHECKING, Optional

import httpx

from app.config.settings import get_settings
from app.infrastructure.exceptions import GatewayError

if TYPE_CHECKING:
    from app.infrastructure.db.repositories.subscription_repository import SubscriptionRepository


logger = logging.getLogger(__name__)


class MamoPayService:
    """
    MamoPay API client.

    Uses httpx with a Bearer API key. An explicit ``transport`` can be
    injected to run against a mock gateway.
    """

    def __init__(
        self,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self._api_url = (api_url or settings.mamopay_api_url).rstrip("/")
        self._api_key = api_key if api_key is not None else settings.mamopay_api_key
        self._timeout = timeout or settings.mamopay_timeout_seconds
        self._transport = transport

        if not self._api_key:
            logger.warning("MAMOPAY_API_KEY not configured")

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._api_url,
            timeout=self._timeout,
            transport=self._transport,
            headers={
                "Authorization": f"Bearer {self._api_key}",
                "Accept": "application/json",
            },
        )

    async def get_subscriber_id(self, subscription_id: str) -> Optional[str]:
        """
        Resolve the subscriber ID of a gateway subscription.

        Args:
            subscription_id: Gateway subscription ID

        Returns:
            ID of the first subscriber, or None when the gateway lists none

        Raises:
            GatewayError: transport failure, non-2xx status or malformed body
        """
        if not self.is_configured:
            raise GatewayError("MamoPay API key is not configured")

        try:
            async with self._client() as client:
                response = await client.get(f"/subscriptions/{subscription_id}/subscribers")
                response.raise_for_status()
                subscribers = response.json()

        except httpx.HTTPStatusError as e:
            logger.error(
                f"[MAMOPAY] Subscriber lookup for {subscription_id} failed: "
                f"{e.response.status_code}"
            )
            raise GatewayError(
                f"Subscriber lookup failed for {subscription_id}",
                status_code=e.response.status_code,
                original_error=e,
            )
        except httpx.HTTPError as e:
            logger.error(f"[MAMOPAY] Subscriber lookup for {subscription_id} failed: {e}")
            raise GatewayError(
                f"Subscriber lookup failed for {subscription_id}",
                original_error=e,
            )
        except ValueError as e:
            raise GatewayError(
                f"Malformed subscriber list for {subscription_id}",
                original_error=e,
            )

        if not isinstance(subscribers, list) or not subscribers:
            logger.info(f"[MAMOPAY] No subscribers listed for {subscription_id}")
            return None

        first = subscribers[0]
        subscriber_id = first.get("id") if isinstance(first, dict) else None
        return str(subscriber_id) if subscriber_id else None


async def fetch_and_store_subscriber_id(
    internal_subscription_id: str,
    external_subscription_id: str,
    service: Optional[MamoPayService] = None,
    repository: Optional["SubscriptionRepository"] = None,
) -> Optional[str]:
    """
    Look up the gateway subscriber ID and store it on the subscription.

    Best-effort: every failure is logged and swallowed.

    Returns:
        The stored subscriber ID, or None when nothing was stored
    """
    from app.infrastructure.db.repositories.subscription_repository import (
        get_subscription_repository,
    )

    service = service or get_mamopay_service()
    repository = repository or get_subscription_repository()

    try:
        subscriber_id = await service.get_subscriber_id(external_subscription_id)
        if not subscriber_id:
            logger.warning(f"[MAMOPAY] No subscriber ID found for {external_subscription_id}")
            return None

        await repository.set_subscriber_id(internal_subscription_id, subscriber_id)
        logger.info(
            f"[MAMOPAY] Stored subscriber {subscriber_id} on subscription {internal_subscription_id}"
        )
        return subscriber_id

    except Exception as e:
        logger.warning(
            f"[MAMOPAY] Could not reconcile subscriber for {external_subscription_id}: {e}"
        )
        return None


# =============================================================================
# Singleton Instance
# =============================================================================

_mamopay_service: Optional[MamoPayService] = None


def get_mamopay_service() -> MamoPayService:
    """Get or create MamoPay service singleton."""
    global _mamopay_service

    if _mamopay_service is None:
        _mamopay_service = MamoPayService()

    return _mamopay_service

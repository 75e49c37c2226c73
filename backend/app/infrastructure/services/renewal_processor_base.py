"""
Shared steps of plan and add-on renewal processing.
"""

import logging
from typing import Optional

from app.domain.subscription import Subscription
from app.domain.webhook import RenewalWebhookEvent
from app.infrastructure.db.repositories.payment_repository import (
    PaymentRepository,
    get_payment_repository,
)
from app.infrastructure.db.repositories.subscription_repository import (
    SubscriptionRepository,
    get_subscription_repository,
)
from app.infrastructure.db.repositories.user_repository import (
    UserRepository,
    get_user_repository,
)
from app.infrastructure.exceptions import SubscriptionNotFoundError
from app.infrastructure.notifications.email_service import EmailService, get_email_service
from app.infrastructure.notifications.templates import RenderedEmail


logger = logging.getLogger(__name__)


class RenewalProcessorBase:
    """Collaborators and the steps both renewal kinds share."""

    log_prefix = "[RENEWAL]"

    def __init__(
        self,
        subscriptions: Optional[SubscriptionRepository] = None,
        payments: Optional[PaymentRepository] = None,
        users: Optional[UserRepository] = None,
        email: Optional[EmailService] = None,
    ):
        self._subscriptions = subscriptions or get_subscription_repository()
        self._payments = payments or get_payment_repository()
        self._users = users or get_user_repository()
        self._email = email or get_email_service()

    async def _load_subscription(
        self, event: RenewalWebhookEvent, message: Optional[str] = None
    ) -> Subscription:
        subscription = await self._subscriptions.get_by_subscription_id(event.subscription_id)
        if not subscription:
            error = SubscriptionNotFoundError(event.subscription_id, message=message)
            logger.error(f"{self.log_prefix} {error.message}")
            raise error

        logger.info(
            f"{self.log_prefix} Found subscription {subscription.id} "
            f"(user {subscription.user_id}, ends_at {subscription.ends_at})"
        )
        return subscription

    async def _notify(self, subscription: Subscription, event: RenewalWebhookEvent, rendered: RenderedEmail) -> None:
        """Send the confirmation; failures are logged and never raised."""
        try:
            user = await self._users.get_by_id(subscription.user_id)
            recipient = user.email if user else event.email
            if not recipient:
                logger.warning(f"{self.log_prefix} No recipient for subscription {subscription.id}")
                return

            message = self._email.build_message(
                to=recipient,
                subject=rendered.subject,
                html=rendered.html,
                text=rendered.text,
            )
            await self._email.send(message)
            logger.info(f"{self.log_prefix} Renewal confirmation sent to {recipient}")

        except Exception as e:
            logger.error(f"{self.log_prefix} Failed to send renewal confirmation: {e}")

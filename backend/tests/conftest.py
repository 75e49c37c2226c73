"""
Test configuration and fixtures for the billing backend.

Provides the FastAPI app/client plus in-memory stand-ins for the
repositories, the email sender and the MamoPay client so processors can
be exercised without PostgreSQL or network access.
"""

import copy
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

import pytest
from fastapi.testclient import TestClient

from app.domain.subscription import (
    AddOn,
    AddOnStatus,
    AddOnType,
    ExpiryReminder,
    ItemType,
    Payment,
    RENEWABLE_ADDON_STATUSES,
    Subscription,
    SubscriptionStatus,
    User,
    UserPlan,
)
from app.infrastructure.exceptions import (
    DuplicatePaymentError,
    GatewayError,
    NotFoundError,
    NotificationError,
    SubscriptionNotFoundError,
)
from app.infrastructure.notifications.email_service import EmailMessage


# =============================================================================
# App Fixtures
# =============================================================================

@pytest.fixture
def app():
    """Get the FastAPI application."""
    from app.main import app
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    """Get synchronous test client."""
    return TestClient(app)


# =============================================================================
# In-memory collaborators
# =============================================================================

class InMemorySubscriptionRepository:
    def __init__(self):
        self.rows: dict[str, Subscription] = {}
        self.subscriber_ids: dict[str, str] = {}

    def add(self, subscription: Subscription) -> Subscription:
        subscription = subscription.model_copy(update={"id": subscription.id or str(uuid.uuid4())})
        self.rows[subscription.id] = subscription
        return subscription

    async def get_by_id(self, id: str) -> Optional[Subscription]:
        return self.rows.get(id)

    async def get_by_subscription_id(self, subscription_id: str) -> Optional[Subscription]:
        for row in self.rows.values():
            if row.subscription_id == subscription_id:
                return row
        return None

    async def apply_renewal(self, id: str, ends_at: datetime, payload: dict[str, Any]) -> Subscription:
        current = self.rows.get(id)
        if current is None:
            raise SubscriptionNotFoundError(id)
        updated = current.model_copy(update={
            "ends_at": ends_at,
            "status": SubscriptionStatus.ACTIVE,
            "raw_data": [*current.raw_data, copy.deepcopy(payload)],
        })
        self.rows[id] = updated
        return updated

    async def set_subscriber_id(self, id: str, subscriber_id: str) -> None:
        self.subscriber_ids[id] = subscriber_id
        self.rows[id] = self.rows[id].model_copy(update={"subscriber_id": subscriber_id})

    async def list_lapsed(self, now: datetime) -> list[Subscription]:
        return [
            row for row in self.rows.values()
            if row.ends_at is not None and row.ends_at < now and row.status != SubscriptionStatus.EXPIRED
        ]

    async def update_status(self, id: str, status: SubscriptionStatus) -> None:
        self.rows[id] = self.rows[id].model_copy(update={"status": status})


class InMemoryAddOnRepository:
    def __init__(self):
        self.rows: dict[str, AddOn] = {}

    def add(self, add_on: AddOn) -> AddOn:
        add_on = add_on.model_copy(update={
            "id": add_on.id or str(uuid.uuid4()),
            "created_at": add_on.created_at or datetime.now(timezone.utc),
        })
        self.rows[add_on.id] = add_on
        return add_on

    async def get_by_id(self, id: str) -> Optional[AddOn]:
        return self.rows.get(id)

    async def find_renewable(self, user_id: str, addon_type: AddOnType) -> Optional[AddOn]:
        candidates = [
            row for row in self.rows.values()
            if row.user_id == user_id and row.type == addon_type and row.status in RENEWABLE_ADDON_STATUSES
        ]
        if not candidates:
            return None
        return max(candidates, key=lambda row: row.created_at)

    async def renew(self, id: str, end_date: datetime) -> AddOn:
        if id not in self.rows:
            raise NotFoundError(f"Add-on not found: {id}")
        self.rows[id] = self.rows[id].model_copy(update={"end_date": end_date, "status": AddOnStatus.ACTIVE})
        return self.rows[id]

    async def list_lapsed(self, now: datetime) -> list[AddOn]:
        return [
            row for row in self.rows.values()
            if row.end_date is not None and row.end_date < now and row.status != AddOnStatus.EXPIRED
        ]

    async def update_status(self, id: str, status: AddOnStatus) -> None:
        self.rows[id] = self.rows[id].model_copy(update={"status": status})

    async def list_expiring(self, now: datetime, until: datetime) -> list[AddOn]:
        rows = [
            row for row in self.rows.values()
            if row.status != AddOnStatus.ACTIVE and row.end_date is not None and now <= row.end_date <= until
        ]
        return sorted(rows, key=lambda row: row.end_date)

    async def mark_reminder_sent(self, id: str, reminder: ExpiryReminder) -> None:
        reminders = {**self.rows[id].expiration_reminders, reminder.value: True}
        self.rows[id] = self.rows[id].model_copy(update={"expiration_reminders": reminders})


class InMemoryPaymentRepository:
    """Enforces transaction_id uniqueness like the real table."""

    def __init__(self):
        self.rows: dict[str, Payment] = {}

    async def exists_by_transaction_id(self, transaction_id: str) -> bool:
        return transaction_id in self.rows

    async def create(self, payment: Payment) -> Payment:
        if payment.transaction_id in self.rows:
            raise DuplicatePaymentError(payment.transaction_id)
        created = payment.model_copy(update={"id": str(uuid.uuid4())})
        self.rows[payment.transaction_id] = created
        return created


class InMemoryUserRepository:
    def __init__(self):
        self.rows: dict[str, User] = {}

    def add(self, user: User) -> User:
        self.rows[user.id] = user
        return user

    async def get_by_id(self, id: str) -> Optional[User]:
        return self.rows.get(id)

    async def update_trial_end_date(self, id: str, trial_end_date: datetime) -> None:
        self.rows[id] = self.rows[id].model_copy(update={"trial_end_date": trial_end_date})


class RecordingEmailService:
    """Captures messages instead of calling SendGrid."""

    def __init__(self):
        self.sent: list[EmailMessage] = []
        self.fail = False

    def build_message(self, to: str, subject: str, html: str, text: str) -> EmailMessage:
        return EmailMessage(to=to, from_email="noreply@digitalsite.com", subject=subject, html=html, text=text)

    async def send(self, message: EmailMessage) -> None:
        if self.fail:
            raise NotificationError("SendGrid unavailable")
        self.sent.append(message)


class StubGateway:
    def __init__(self, subscriber_id: Optional[str] = "MPB-SUBSCRIBER-001"):
        self.subscriber_id = subscriber_id
        self.fail = False
        self.calls: list[str] = []

    async def get_subscriber_id(self, subscription_id: str) -> Optional[str]:
        self.calls.append(subscription_id)
        if self.fail:
            raise GatewayError("MamoPay unreachable", status_code=503)
        return self.subscriber_id


@pytest.fixture
def subscription_repo():
    return InMemorySubscriptionRepository()


@pytest.fixture
def add_on_repo():
    return InMemoryAddOnRepository()


@pytest.fixture
def payment_repo():
    return InMemoryPaymentRepository()


@pytest.fixture
def user_repo():
    return InMemoryUserRepository()


@pytest.fixture
def email_service():
    return RecordingEmailService()


@pytest.fixture
def gateway():
    return StubGateway()


@pytest.fixture
def plan_processor(subscription_repo, payment_repo, user_repo, email_service):
    from app.infrastructure.services.plan_renewal_processor import PlanRenewalProcessor

    return PlanRenewalProcessor(
        subscriptions=subscription_repo,
        payments=payment_repo,
        users=user_repo,
        email=email_service,
    )


@pytest.fixture
def addon_processor(subscription_repo, add_on_repo, payment_repo, user_repo, email_service):
    from app.infrastructure.services.addon_renewal_processor import AddOnRenewalProcessor

    return AddOnRenewalProcessor(
        add_ons=add_on_repo,
        subscriptions=subscription_repo,
        payments=payment_repo,
        users=user_repo,
        email=email_service,
    )


@pytest.fixture
def webhook_service(payment_repo, subscription_repo, plan_processor, addon_processor, gateway):
    from app.infrastructure.services.renewal_webhook_service import RenewalWebhookService

    return RenewalWebhookService(
        payments=payment_repo,
        plan_processor=plan_processor,
        addon_processor=addon_processor,
        gateway=gateway,
        subscriptions=subscription_repo,
    )


# =============================================================================
# Sample Data Fixtures
# =============================================================================

USER_ID = "00000000-0000-0000-0000-000000000001"


@pytest.fixture
def owner(user_repo):
    """Account owner on the BUSINESS plan."""
    return user_repo.add(User(id=USER_ID, email="owner@example.com", plan=UserPlan.BUSINESS))


@pytest.fixture
def plan_subscription(subscription_repo, owner):
    """EXPIRED BUSINESS plan subscription with one audit entry from the first purchase."""
    return subscription_repo.add(Subscription(
        subscription_id="MPB-SUB-PLAN-001",
        user_id=owner.id,
        status=SubscriptionStatus.EXPIRED,
        ends_at=datetime(2025, 1, 20, tzinfo=timezone.utc),
        item_type=ItemType.PLAN,
        subscription_type=UserPlan.BUSINESS,
        raw_data=[{"id": "MPB-CHRG-FIRST", "event_type": "charge.succeeded"}],
    ))


@pytest.fixture
def addon_subscription(subscription_repo, owner):
    return subscription_repo.add(Subscription(
        subscription_id="MPB-SUB-ADDON-001",
        user_id=owner.id,
        status=SubscriptionStatus.EXPIRED,
        ends_at=datetime(2025, 1, 20, tzinfo=timezone.utc),
        item_type=ItemType.ADDON,
        addon_type=AddOnType.EXTRA_FUNNEL,
        raw_data=[{"id": "MPB-CHRG-ADDON-FIRST"}],
    ))


@pytest.fixture
def expired_add_on(add_on_repo, owner):
    return add_on_repo.add(AddOn(
        user_id=owner.id,
        type=AddOnType.EXTRA_FUNNEL,
        quantity=2,
        status=AddOnStatus.EXPIRED,
        end_date=datetime(2025, 1, 20, tzinfo=timezone.utc),
    ))


@pytest.fixture
def make_payload():
    """Factory for MamoPay renewal payloads; keyword overrides replace top-level keys."""

    def _make(
        transaction_id: str = "MPB-CHRG-RENEW-001",
        subscription_id: str = "MPB-SUB-PLAN-001",
        details: Optional[dict] = None,
        **overrides: Any,
    ) -> dict:
        payload = {
            "event_type": "subscription.succeeded",
            "status": "captured",
            "id": transaction_id,
            "amount": 99.0,
            "amount_currency": "AED",
            "subscription_id": subscription_id,
            "next_payment_date": "20/02/2025",
            "custom_data": {
                "details": details if details is not None else {
                    "email": "owner@example.com",
                    "planType": "BUSINESS",
                    "paymentType": "PLAN_PURCHASE",
                },
            },
        }
        payload.update(overrides)
        return payload

    return _make


@pytest.fixture
def addon_details():
    return {
        "email": "owner@example.com",
        "addonType": "EXTRA_FUNNEL",
        "paymentType": "ADDON_PURCHASE",
    }

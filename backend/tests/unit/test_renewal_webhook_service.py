"""
Unit tests for RenewalWebhookService.

Verifies:
- Ignorable filters (shape, event type, status, transaction id)
- Idempotency (existence check and unique-constraint race)
- Routing between plan and add-on processors
- Best-effort subscriber reconciliation
"""

import pytest
from unittest.mock import AsyncMock

from app.infrastructure.exceptions import (
    DuplicatePaymentError,
    InvalidPaymentDateError,
    SubscriptionNotFoundError,
)


class TestIgnoredEvents:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [None, "text", 42, ["a", "b"]])
    async def test_non_object_payload(self, webhook_service, payload):
        response = await webhook_service.process(payload)
        assert response.to_dict() == {"received": True, "ignored": True, "reason": "Invalid payload format"}

    @pytest.mark.asyncio
    async def test_first_purchase_event_is_ignored(self, webhook_service, make_payload):
        response = await webhook_service.process(make_payload(event_type="charge.succeeded"))
        assert response.ignored is True
        assert response.reason == "Event type not supported: charge.succeeded"

    @pytest.mark.asyncio
    async def test_uncaptured_charge_is_ignored(self, webhook_service, make_payload):
        response = await webhook_service.process(make_payload(status="failed"))
        assert response.reason == "Status not captured: failed"

    @pytest.mark.asyncio
    async def test_missing_transaction_id(self, webhook_service, make_payload):
        response = await webhook_service.process(make_payload(transaction_id=""))
        assert response.reason == "Missing transaction ID"

    @pytest.mark.asyncio
    async def test_schema_failure_is_ignored(self, webhook_service, make_payload):
        payload = make_payload()
        del payload["amount"]

        response = await webhook_service.process(payload)

        assert response.ignored is True
        assert response.reason.startswith("Invalid webhook data: ")

    @pytest.mark.asyncio
    async def test_unknown_payment_type(self, webhook_service, make_payload):
        response = await webhook_service.process(
            make_payload(details={"email": "owner@example.com", "paymentType": "WORKSPACE_PURCHASE"})
        )
        assert response.reason == "Unknown payment type: WORKSPACE_PURCHASE"


class TestProcessing:

    @pytest.mark.asyncio
    async def test_plan_renewal_response(self, webhook_service, plan_subscription, payment_repo, make_payload):
        response = await webhook_service.process(make_payload())

        body = response.to_dict()
        assert body["received"] is True
        assert body["message"] == "Subscription renewed successfully"
        assert body["data"]["subscriptionId"] == plan_subscription.id
        assert body["data"]["userId"] == plan_subscription.user_id
        assert body["data"]["paymentId"] == payment_repo.rows["MPB-CHRG-RENEW-001"].id
        assert "addonId" not in body["data"]
        assert "ignored" not in body

    @pytest.mark.asyncio
    async def test_addon_renewal_is_routed(self, webhook_service, addon_subscription, expired_add_on, make_payload, addon_details):
        response = await webhook_service.process(
            make_payload(subscription_id="MPB-SUB-ADDON-001", details=addon_details)
        )
        assert response.message == "Addon renewed successfully"
        assert response.data.addon_id == expired_add_on.id

    @pytest.mark.asyncio
    async def test_same_transaction_twice(self, webhook_service, plan_subscription, subscription_repo, payment_repo, email_service, make_payload):
        first = await webhook_service.process(make_payload())
        second = await webhook_service.process(make_payload())

        assert first.ignored is None
        assert second.to_dict() == {"received": True, "ignored": True, "reason": "Payment already processed"}
        assert len(payment_repo.rows) == 1
        assert len(email_service.sent) == 1
        assert len(subscription_repo.rows[plan_subscription.id].raw_data) == 2

    @pytest.mark.asyncio
    async def test_constraint_conflict_is_ignored(self, webhook_service, plan_subscription, payment_repo, make_payload):
        # Existence check passes but the insert loses the race
        payment_repo.exists_by_transaction_id = AsyncMock(return_value=False)
        payment_repo.create = AsyncMock(side_effect=DuplicatePaymentError("MPB-CHRG-RENEW-001"))

        response = await webhook_service.process(make_payload())

        assert response.ignored is True
        assert response.reason == "Payment already processed"

    @pytest.mark.asyncio
    async def test_audit_trail_accumulates_in_order(self, webhook_service, plan_subscription, subscription_repo, make_payload):
        await webhook_service.process(make_payload(transaction_id="MPB-CHRG-2", next_payment_date="20/02/2025"))
        await webhook_service.process(make_payload(transaction_id="MPB-CHRG-3", next_payment_date="20/03/2025"))

        raw_data = subscription_repo.rows[plan_subscription.id].raw_data
        assert [entry["id"] for entry in raw_data] == ["MPB-CHRG-FIRST", "MPB-CHRG-2", "MPB-CHRG-3"]
        assert raw_data[2]["custom_data"]["details"]["planType"] == "BUSINESS"

    @pytest.mark.asyncio
    async def test_stores_subscriber_id(self, webhook_service, plan_subscription, subscription_repo, gateway, make_payload):
        await webhook_service.process(make_payload())

        assert gateway.calls == ["MPB-SUB-PLAN-001"]
        assert subscription_repo.subscriber_ids[plan_subscription.id] == "MPB-SUBSCRIBER-001"

    @pytest.mark.asyncio
    async def test_reconciliation_failure_is_tolerated(self, webhook_service, plan_subscription, subscription_repo, gateway, make_payload):
        gateway.fail = True

        response = await webhook_service.process(make_payload())

        assert response.message == "Subscription renewed successfully"
        assert plan_subscription.id not in subscription_repo.subscriber_ids


class TestFatalErrors:

    @pytest.mark.asyncio
    async def test_unknown_subscription_propagates(self, webhook_service, owner, make_payload):
        with pytest.raises(SubscriptionNotFoundError):
            await webhook_service.process(make_payload(subscription_id="MPB-SUB-GHOST"))

    @pytest.mark.asyncio
    async def test_missing_next_payment_date_propagates(self, webhook_service, plan_subscription, make_payload):
        with pytest.raises(InvalidPaymentDateError):
            await webhook_service.process(make_payload(next_payment_date=None))

    @pytest.mark.asyncio
    async def test_non_string_next_payment_date_propagates(self, webhook_service, plan_subscription, payment_repo, make_payload):
        with pytest.raises(InvalidPaymentDateError):
            await webhook_service.process(make_payload(next_payment_date=20022025))

        assert payment_repo.rows == {}

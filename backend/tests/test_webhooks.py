"""
Integration Tests for Webhooks (MamoPay)

Verifies:
- Ignored events are acknowledged with 200
- Successful renewal processing
- Idempotency (prevent double processing)
- Fatal errors surface as non-2xx so the gateway retries
"""

import pytest

from app.infrastructure.services.renewal_webhook_service import get_renewal_webhook_service


URL = "/api/webhooks/mamopay/renewal"


class TestMamoPayWebhooks:

    @pytest.fixture(autouse=True)
    def override_service(self, app, webhook_service):
        app.dependency_overrides[get_renewal_webhook_service] = lambda: webhook_service

    def test_invalid_json_is_acknowledged(self, client):
        response = client.post(URL, content=b"{not json", headers={"Content-Type": "application/json"})

        assert response.status_code == 200
        assert response.json() == {"received": True, "ignored": True, "reason": "Invalid payload format"}

    def test_unsupported_event_is_acknowledged(self, client, make_payload):
        response = client.post(URL, json=make_payload(event_type="charge.refunded"))

        assert response.status_code == 200
        assert response.json()["reason"] == "Event type not supported: charge.refunded"

    def test_plan_renewal(self, client, plan_subscription, subscription_repo, email_service, make_payload):
        response = client.post(URL, json=make_payload())

        assert response.status_code == 200
        data = response.json()
        assert data["received"] is True
        assert data["message"] == "Subscription renewed successfully"
        assert data["data"]["subscriptionId"] == plan_subscription.id

        renewed = subscription_repo.rows[plan_subscription.id]
        assert renewed.status.value == "ACTIVE"
        assert renewed.ends_at.strftime("%d/%m/%Y") == "20/02/2025"
        assert len(email_service.sent) == 1

    def test_redelivery_is_ignored(self, client, plan_subscription, payment_repo, make_payload):
        assert client.post(URL, json=make_payload()).json()["message"] == "Subscription renewed successfully"

        response = client.post(URL, json=make_payload())

        assert response.status_code == 200
        assert response.json()["reason"] == "Payment already processed"
        assert len(payment_repo.rows) == 1

    def test_addon_renewal(self, client, addon_subscription, expired_add_on, add_on_repo, make_payload, addon_details):
        response = client.post(URL, json=make_payload(subscription_id="MPB-SUB-ADDON-001", details=addon_details))

        assert response.status_code == 200
        assert response.json()["data"]["addonId"] == expired_add_on.id
        assert add_on_repo.rows[expired_add_on.id].status.value == "ACTIVE"

    def test_unknown_subscription_is_404(self, client, owner, make_payload):
        response = client.post(URL, json=make_payload(subscription_id="MPB-SUB-GHOST"))

        assert response.status_code == 404
        assert response.json()["error"] == "SubscriptionNotFoundError"

    def test_bad_next_payment_date_is_400(self, client, plan_subscription, make_payload):
        response = client.post(URL, json=make_payload(next_payment_date="31/02/2025"))

        assert response.status_code == 400
        assert response.json()["error"] == "InvalidPaymentDateError"

    def test_numeric_next_payment_date_is_400(self, client, plan_subscription, payment_repo, make_payload):
        response = client.post(URL, json=make_payload(next_payment_date=20022025))

        assert response.status_code == 400
        assert response.json()["error"] == "InvalidPaymentDateError"
        assert payment_repo.rows == {}

    def test_plan_subscription_with_addon_details_is_500(self, client, plan_subscription, make_payload, addon_details):
        response = client.post(URL, json=make_payload(details=addon_details))

        assert response.status_code == 500
        assert response.json()["error"] == "RenewalProcessingError"

"""
Tests for webhook views.

Tests cover:
- Stripe signature verification
- Envelope parsing and WebhookEvent idempotency
- Synchronous dispatch and the always-200 acknowledgement
- CORS preflight and method restrictions
"""

import hashlib
import hmac
import json
import time

import pytest

from payments.exceptions import StripeResourceNotFoundError
from payments.models import RevenueDistribution, WebhookEvent
from payments.state_machines import WebhookEventStatus
from payments.tests.stripe_mocks import make_event
from payments.webhooks.views import stripe_webhook

WEBHOOK_SECRET = "whsec_test_secret"
WEBHOOK_URL = "/api/v1/payments/webhooks/stripe/"


def make_webhook_request(rf, payload, **headers):
    """Create a POST request to the webhook endpoint."""
    body = payload if isinstance(payload, str) else json.dumps(payload)
    return rf.post(WEBHOOK_URL, data=body, content_type="application/json", **headers)


def sign(body: str, secret: str = WEBHOOK_SECRET, timestamp: int | None = None) -> str:
    """Build a Stripe-Signature header value for body."""
    timestamp = timestamp or int(time.time())
    signed = f"{timestamp}.{body}".encode()
    digest = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


# =============================================================================
# Signature Verification Tests
# =============================================================================


@pytest.mark.django_db
class TestStripeWebhookSignature:
    """Tests for signature verification when a webhook secret is configured."""

    @pytest.fixture(autouse=True)
    def webhook_secret(self, settings):
        settings.STRIPE_WEBHOOK_SECRET = WEBHOOK_SECRET

    def test_valid_signature_processed(self, rf, invoice_event, mock_stripe_adapter):
        body = json.dumps(invoice_event)
        request = make_webhook_request(rf, body, HTTP_STRIPE_SIGNATURE=sign(body))

        response = stripe_webhook(request)

        assert response.status_code == 200
        assert json.loads(response.content)["status"] == "distributed"

    def test_missing_signature_returns_400(self, rf, invoice_event, mock_stripe_adapter):
        response = stripe_webhook(make_webhook_request(rf, invoice_event))

        assert response.status_code == 400
        assert json.loads(response.content)["error"] == "Invalid signature"
        assert not WebhookEvent.objects.exists()
        assert not mock_stripe_adapter.method_calls

    def test_invalid_signature_returns_400(self, rf, invoice_event, mock_stripe_adapter):
        body = json.dumps(invoice_event)
        request = make_webhook_request(
            rf, body, HTTP_STRIPE_SIGNATURE=sign(body, secret="whsec_wrong")
        )

        response = stripe_webhook(request)

        assert response.status_code == 400
        assert json.loads(response.content)["error"] == "Invalid signature"
        assert not mock_stripe_adapter.method_calls


# =============================================================================
# Payload Tests
# =============================================================================


@pytest.mark.django_db
class TestStripeWebhookPayload:
    """Tests for envelope parsing without a webhook secret."""

    def test_invalid_json_returns_400(self, rf):
        response = stripe_webhook(make_webhook_request(rf, "{not json"))

        assert response.status_code == 400
        assert json.loads(response.content)["error"] == "Invalid JSON payload"

    def test_non_object_returns_400(self, rf):
        response = stripe_webhook(make_webhook_request(rf, "[1, 2, 3]"))

        assert response.status_code == 400
        assert json.loads(response.content)["error"] == "Invalid JSON payload"

    def test_event_without_id_still_processed(self, rf, mock_stripe_adapter):
        event = make_event(id=None)

        response = stripe_webhook(make_webhook_request(rf, event))

        assert response.status_code == 200
        assert json.loads(response.content)["status"] == "distributed"
        assert not WebhookEvent.objects.exists()
        assert RevenueDistribution.objects.filter(invoice_id="in_test123").exists()


# =============================================================================
# Processing Tests
# =============================================================================


@pytest.mark.django_db
class TestStripeWebhookProcessing:
    """Tests for dispatch and WebhookEvent bookkeeping."""

    def test_distributes_invoice(self, rf, invoice_event, mock_stripe_adapter):
        response = stripe_webhook(make_webhook_request(rf, invoice_event))

        assert response.status_code == 200
        data = json.loads(response.content)
        assert data["received"] is True
        assert data["status"] == "distributed"
        assert data["split"]["platform_fee"] == 4000
        assert [t["success"] for t in data["transfers"]] == [True, True]

        event = WebhookEvent.objects.get(stripe_event_id="evt_test123")
        assert event.status == WebhookEventStatus.PROCESSED
        assert event.event_type == "invoice.payment_succeeded"
        assert event.retry_count == 1

    def test_processed_event_is_duplicate(self, rf, invoice_event, mock_stripe_adapter):
        stripe_webhook(make_webhook_request(rf, invoice_event))

        response = stripe_webhook(make_webhook_request(rf, invoice_event))

        assert response.status_code == 200
        assert json.loads(response.content) == {"received": True, "duplicate": True}
        assert mock_stripe_adapter.create_transfer.call_count == 2
        assert WebhookEvent.objects.count() == 1

    def test_new_event_for_same_invoice(self, rf, invoice_event, mock_stripe_adapter):
        """A second event id for an already distributed invoice moves no money."""
        stripe_webhook(make_webhook_request(rf, invoice_event))
        invoice_event["id"] = "evt_other"

        response = stripe_webhook(make_webhook_request(rf, invoice_event))

        assert json.loads(response.content)["status"] == "duplicate"
        assert mock_stripe_adapter.create_transfer.call_count == 2
        assert WebhookEvent.objects.count() == 2

    def test_one_time_invoice_acknowledged(
        self, rf, one_time_invoice_event, mock_stripe_adapter
    ):
        response = stripe_webhook(make_webhook_request(rf, one_time_invoice_event))

        assert response.status_code == 200
        assert json.loads(response.content)["status"] == "skipped_one_time"
        assert not mock_stripe_adapter.method_calls

    @pytest.mark.parametrize(
        "event_type", ["invoice.payment_failed", "customer.subscription.deleted", "foo.bar"]
    )
    def test_other_event_types_ignored(self, rf, event_type, mock_stripe_adapter):
        response = stripe_webhook(make_webhook_request(rf, make_event(event_type)))

        assert response.status_code == 200
        data = json.loads(response.content)
        assert data["ignored"] is True
        assert data["event_type"] == event_type
        assert not mock_stripe_adapter.method_calls
        assert WebhookEvent.objects.get().status == WebhookEventStatus.PROCESSED

    def test_handler_failure_acknowledged(self, rf, invoice_event, mock_stripe_adapter):
        mock_stripe_adapter.retrieve_subscription.side_effect = StripeResourceNotFoundError(
            "No such subscription: 'sub_test123'"
        )

        response = stripe_webhook(make_webhook_request(rf, invoice_event))

        assert response.status_code == 200
        data = json.loads(response.content)
        assert data["received"] is True
        assert data["success"] is False
        assert "No such subscription" in data["error"]

        event = WebhookEvent.objects.get(stripe_event_id="evt_test123")
        assert event.status == WebhookEventStatus.FAILED
        assert "No such subscription" in event.error_message

    def test_failed_event_reprocessed_on_redelivery(
        self, rf, invoice_event, mock_stripe_adapter
    ):
        mock_stripe_adapter.retrieve_subscription.side_effect = StripeResourceNotFoundError(
            "No such subscription: 'sub_test123'"
        )
        stripe_webhook(make_webhook_request(rf, invoice_event))
        mock_stripe_adapter.retrieve_subscription.side_effect = None

        response = stripe_webhook(make_webhook_request(rf, invoice_event))

        assert json.loads(response.content)["status"] == "distributed"
        event = WebhookEvent.objects.get(stripe_event_id="evt_test123")
        assert event.status == WebhookEventStatus.PROCESSED
        assert event.retry_count == 2


# =============================================================================
# HTTP Method Tests
# =============================================================================


class TestStripeWebhookMethods:
    """Tests for method handling and CORS."""

    def test_get_not_allowed(self, client):
        response = client.get(WEBHOOK_URL)

        assert response.status_code == 405
        assert response["Access-Control-Allow-Origin"] == "*"

    def test_options_preflight(self, client):
        response = client.options(WEBHOOK_URL)

        assert response.status_code == 204
        assert "POST" in response["Access-Control-Allow-Methods"]

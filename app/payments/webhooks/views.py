"""
Webhook endpoint views for Stripe.

This module provides the HTTP endpoint for receiving Stripe webhooks.
The view:
1. Verifies the webhook signature (when STRIPE_WEBHOOK_SECRET is set)
2. Parses the event envelope
3. Creates/retrieves the WebhookEvent record (idempotent)
4. Dispatches the event synchronously
5. Returns 200 whatever the business outcome

Once an envelope is parsed the response is always 200: Stripe redelivers
on any other status, and redelivering a partially distributed invoice
must not be what recovers it. Failures are logged, recorded on the
WebhookEvent, and recovered with management commands.

Usage:
    # In urls.py
    from payments.webhooks.views import stripe_webhook

    urlpatterns = [
        path("webhooks/stripe/", stripe_webhook, name="stripe_webhook"),
    ]
"""

from __future__ import annotations

import json
import logging

from django.conf import settings
from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from core.decorators import cors_enabled, log_request

from payments.adapters import StripeAdapter
from payments.exceptions import StripeSignatureError
from payments.models import WebhookEvent
from payments.state_machines import WebhookEventStatus
from payments.webhooks.handlers import dispatch_webhook

logger = logging.getLogger(__name__)


def _parse_envelope(request: HttpRequest) -> dict:
    """
    Parse (and verify, when configured) the event envelope.

    Raises:
        StripeSignatureError: Signature missing or invalid
        ValueError: Body is not a JSON object
    """
    if settings.STRIPE_WEBHOOK_SECRET:
        signature = request.headers.get("Stripe-Signature", "")
        if not signature:
            raise StripeSignatureError(
                "Missing Stripe-Signature header",
                stripe_code="signature_missing",
            )
        return StripeAdapter.construct_webhook_event(request.body, signature)

    payload = json.loads(request.body)
    if not isinstance(payload, dict):
        raise ValueError("Event payload must be a JSON object")
    return payload


def _record_event(payload: dict) -> tuple[WebhookEvent, bool]:
    """Get or create the WebhookEvent for an envelope that carries an id."""
    defaults = {
        "event_type": payload.get("type") or "",
        "payload": payload,
        "status": WebhookEventStatus.PENDING,
    }
    # get_or_create re-reads the row if a concurrent delivery inserts it first
    return WebhookEvent.objects.get_or_create(
        stripe_event_id=payload["id"],
        defaults=defaults,
    )


@cors_enabled
@log_request()
@csrf_exempt
@require_POST
def stripe_webhook(request: HttpRequest) -> JsonResponse:
    """
    Receive and process Stripe webhook events.

    Returns:
        JsonResponse with status:
        - 200: Event received ({"received": true, ...outcome})
        - 400: Invalid signature or payload
        - 405: Method other than POST (204 for OPTIONS)

    Idempotency:
    - WebhookEvent.stripe_event_id is unique; an already processed event
      is acknowledged with {"duplicate": true} without dispatch
    - Revenue distribution is additionally unique per invoice
    """
    try:
        payload = _parse_envelope(request)
    except StripeSignatureError as e:
        logger.warning(
            "Webhook signature verification failed",
            extra={"error": e.message},
        )
        return JsonResponse(
            {"error": "Invalid signature", "details": e.message},
            status=400,
        )
    except (ValueError, UnicodeDecodeError) as e:
        logger.warning("Webhook payload is not valid JSON", extra={"error": str(e)})
        return JsonResponse(
            {"error": "Invalid JSON payload", "details": str(e)},
            status=400,
        )

    stripe_event_id = payload.get("id")
    event_type = payload.get("type") or ""

    logger.info(
        f"Received Stripe webhook: {event_type}",
        extra={"stripe_event_id": stripe_event_id, "event_type": event_type},
    )

    if stripe_event_id:
        webhook_event, created = _record_event(payload)

        if not created and webhook_event.is_processed:
            logger.info(
                "Webhook already processed, returning success",
                extra={"stripe_event_id": stripe_event_id},
            )
            return JsonResponse({"received": True, "duplicate": True})

        webhook_event.mark_processing()
        webhook_event.save(update_fields=["status", "retry_count", "updated_at"])
    else:
        # Nothing to deduplicate on; invoice-level idempotency still applies
        webhook_event = WebhookEvent(stripe_event_id="", event_type=event_type, payload=payload)

    result = dispatch_webhook(webhook_event)

    if result.success:
        if webhook_event.pk and stripe_event_id:
            webhook_event.mark_processed()
            webhook_event.save(
                update_fields=["status", "processed_at", "error_message", "updated_at"]
            )
        outcome = result.data if isinstance(result.data, dict) else {}
        return JsonResponse({"received": True, **outcome})

    logger.error(
        f"Webhook processing failed for {stripe_event_id or event_type}: {result.error}",
        extra={
            "stripe_event_id": stripe_event_id,
            "event_type": event_type,
            "error": result.error,
            "error_code": result.error_code,
        },
    )
    if stripe_event_id:
        webhook_event.mark_failed(result.error or "Unknown error")
        webhook_event.save(update_fields=["status", "error_message", "updated_at"])

    return JsonResponse(
        {
            "received": True,
            "success": False,
            "error": result.error,
            "error_code": result.error_code,
        }
    )

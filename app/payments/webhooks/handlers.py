"""
Webhook event handlers for Stripe events.

This module provides a handler registry and the handlers for the Stripe
events this service acts on.

The handler registry allows:
- Clean separation between event routing and handling
- Easy extension for new event types
- Centralized error handling

Dispatch matches the parsed WebhookEventType against the registry. Unknown
and unhandled kinds fall through to an explicit acknowledge-and-ignore arm;
Stripe treats any non-2xx response as a reason to redeliver.

Usage:
    from payments.webhooks.handlers import dispatch_webhook, register_handler

    # Register a handler
    @register_handler(WebhookEventType.INVOICE_PAID)
    def handle_invoice_paid(webhook_event: WebhookEvent) -> ServiceResult:
        ...

    # Dispatch an event to its handler
    result = dispatch_webhook(webhook_event)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

from core.services import ServiceResult

from payments.services import RevenueDistributionService
from payments.webhooks.events import InvoicePayment, WebhookEventType

if TYPE_CHECKING:
    from payments.models import WebhookEvent


logger = logging.getLogger(__name__)


# =============================================================================
# Handler Registry
# =============================================================================


# Maps event kinds to handler functions
WEBHOOK_HANDLERS: dict[WebhookEventType, Callable[[WebhookEvent], ServiceResult]] = {}


def register_handler(event_type: WebhookEventType) -> Callable:
    """
    Decorator to register a webhook event handler.

    Usage:
        @register_handler(WebhookEventType.INVOICE_PAYMENT_SUCCEEDED)
        def handle_invoice_payment_succeeded(webhook_event: WebhookEvent) -> ServiceResult:
            ...

    Args:
        event_type: The event kind to handle

    Returns:
        Decorator function that registers the handler
    """

    def decorator(func: Callable[[WebhookEvent], ServiceResult]) -> Callable:
        WEBHOOK_HANDLERS[event_type] = func
        logger.debug(f"Registered webhook handler for {event_type.value}")
        return func

    return decorator


def dispatch_webhook(webhook_event: WebhookEvent) -> ServiceResult:
    """
    Dispatch a webhook event to the appropriate handler.

    Args:
        webhook_event: The WebhookEvent to process (may be unsaved)

    Returns:
        ServiceResult from the handler. Ignored events succeed with
        {"ignored": True}; handler exceptions become a failed result.
    """
    event_type = WebhookEventType.parse(webhook_event.event_type)
    handler = WEBHOOK_HANDLERS.get(event_type) if event_type is not None else None

    if handler is None:
        logger.info(
            f"Ignoring webhook event type: {webhook_event.event_type}",
            extra={"stripe_event_id": webhook_event.stripe_event_id},
        )
        return ServiceResult.success({"ignored": True, "event_type": webhook_event.event_type})

    logger.info(
        f"Dispatching {event_type.value} to handler",
        extra={"stripe_event_id": webhook_event.stripe_event_id},
    )

    try:
        return handler(webhook_event)
    except Exception as e:
        logger.error(
            f"Webhook handler failed for {webhook_event.stripe_event_id}: {type(e).__name__}",
            extra={
                "stripe_event_id": webhook_event.stripe_event_id,
                "event_type": webhook_event.event_type,
            },
            exc_info=True,
        )
        return ServiceResult.from_exception(e)


# =============================================================================
# Invoice Handlers
# =============================================================================


@register_handler(WebhookEventType.INVOICE_PAYMENT_SUCCEEDED)
def handle_invoice_payment_succeeded(webhook_event: WebhookEvent) -> ServiceResult:
    """
    Distribute revenue for a paid subscription invoice.

    Called when Stripe sends invoice.payment_succeeded. Transfer failures
    are reported inside the outcome; the result only fails when the
    invoice could not be read or the subscription lookup failed.
    """
    invoice_data = webhook_event.get_object()

    try:
        invoice = InvoicePayment.from_invoice(invoice_data)
    except ValueError as e:
        logger.error(
            f"invoice.payment_succeeded: Could not extract invoice from "
            f"{webhook_event.stripe_event_id}: {e}",
            extra={"stripe_event_id": webhook_event.stripe_event_id},
        )
        return ServiceResult.failure(str(e), error_code="INVALID_WEBHOOK_PAYLOAD")

    logger.info(
        "Processing invoice.payment_succeeded",
        extra={
            "stripe_event_id": webhook_event.stripe_event_id,
            "invoice_id": invoice.invoice_id,
            "subscription_id": invoice.subscription_id,
            "amount_paid": invoice.amount_paid,
        },
    )

    result = RevenueDistributionService.distribute_invoice(
        invoice,
        stripe_event_id=webhook_event.stripe_event_id or None,
    )
    if not result.success:
        return result
    return ServiceResult.success(result.data.to_dict())

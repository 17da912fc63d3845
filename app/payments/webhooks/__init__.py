"""
Webhook handling for Stripe events.

This module provides the Stripe webhook view, the event dispatcher and
its handlers. Webhooks are verified (when a signing secret is configured),
recorded idempotently and processed synchronously.

Usage:
    # In urls.py
    from payments.webhooks.views import stripe_webhook

    urlpatterns = [
        path("webhooks/stripe/", stripe_webhook, name="stripe_webhook"),
    ]
"""

from payments.webhooks.events import InvoicePayment, WebhookEventType
from payments.webhooks.handlers import dispatch_webhook, register_handler
from payments.webhooks.views import stripe_webhook

__all__ = [
    "InvoicePayment",
    "WebhookEventType",
    "dispatch_webhook",
    "register_handler",
    "stripe_webhook",
]

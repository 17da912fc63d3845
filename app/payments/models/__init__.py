"""
Payment domain models.

This module contains the revenue distribution models:
- RevenueDistribution: One revenue split per paid invoice (idempotency key)
- RevenueTransfer: One revenue share transfer per destination
- WebhookEvent: Stripe webhook event log for idempotent processing
"""

from payments.models.revenue_distribution import RevenueDistribution
from payments.models.revenue_transfer import RevenueTransfer
from payments.models.webhook_event import WebhookEvent

__all__ = [
    "RevenueDistribution",
    "RevenueTransfer",
    "WebhookEvent",
]

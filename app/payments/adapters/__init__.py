"""
Payment adapters for external services.

All payment platform API calls go through these adapters to ensure
consistent error handling, timeouts, idempotency, and observability.

Usage:
    from payments.adapters import StripeAdapter

    subscription = StripeAdapter.retrieve_subscription("sub_123")
"""

from payments.adapters.stripe_adapter import (
    ConnectedAccountResult,
    IdempotencyKeyGenerator,
    InvoiceResult,
    PriceResult,
    ProductResult,
    StripeAdapter,
    SubscriptionItemResult,
    SubscriptionResult,
    TransferResult,
)

__all__ = [
    "ConnectedAccountResult",
    "IdempotencyKeyGenerator",
    "InvoiceResult",
    "PriceResult",
    "ProductResult",
    "StripeAdapter",
    "SubscriptionItemResult",
    "SubscriptionResult",
    "TransferResult",
]

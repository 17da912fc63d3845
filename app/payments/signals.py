"""
Django signals for payments app.

This module defines:
- revenue_transfer_failed: sent after a revenue share transfer fails

Related files:
    - services/transfer_executor.py: Sends revenue_transfer_failed
    - apps.py: Signal registration

Usage:
    from django.dispatch import receiver
    from payments.signals import revenue_transfer_failed

    @receiver(revenue_transfer_failed)
    def page_on_call(sender, transfer, error, **kwargs):
        alerting.notify(f"Transfer {transfer.id} failed: {error.message}")

Note:
    Failed transfers never change the webhook response, so receivers of this
    signal are how a failure reaches an operator.
"""

from __future__ import annotations

import logging

from django.dispatch import Signal, receiver

logger = logging.getLogger(__name__)


# Sent with transfer=RevenueTransfer, error=UpstreamError
revenue_transfer_failed = Signal()


@receiver(revenue_transfer_failed)
def log_revenue_transfer_failure(sender, transfer, error, **kwargs):
    """
    Record failed transfers on the payments.alerts logger.

    Route that logger to the alerting backend in LOGGING.
    """
    invoice_id = transfer.distribution.invoice_id
    logging.getLogger("payments.alerts").error(
        f"Revenue transfer {transfer.id} failed for invoice {invoice_id} "
        f"({transfer.account_type} -> {transfer.destination_account_id}): "
        f"{error.stripe_code or error.error_code}",
        extra={
            "revenue_transfer_id": str(transfer.id),
            "invoice_id": invoice_id,
            "account_type": transfer.account_type,
            "destination_account_id": transfer.destination_account_id,
            "amount_cents": transfer.amount_cents,
            "error_code": error.error_code,
            "stripe_code": error.stripe_code,
        },
    )


def register_signals():
    """
    Register all payment signals.

    Called from apps.py when app is ready.
    """
    # Receivers are connected by the decorators above on import
    logger.debug("Payment signals registered")

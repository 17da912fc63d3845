"""
RevenueDistribution model: one revenue split per paid invoice.

The unique invoice_id is the durable idempotency key for distribution.
The row and its transfers are created in one transaction before any money
moves, so a redelivered or concurrently processed copy of the same
invoice.payment_succeeded event finds the row (or hits the unique
constraint) and issues no further transfers.

Usage:
    from payments.models import RevenueDistribution

    if RevenueDistribution.objects.filter(invoice_id=invoice.invoice_id).exists():
        return  # already distributed or in flight
"""

from __future__ import annotations

from django.db import models

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel
from payments.state_machines import DistributionStatus, RevenueTransferState


class RevenueDistribution(UUIDPrimaryKeyMixin, BaseModel):
    """
    The computed split of one invoice payment and its aggregate outcome.

    Fields:
        invoice_id: Stripe Invoice ID (in_xxx), unique
        subscription_id: Subscription the invoice belongs to
        connected_account_id: Account resolved from product metadata
        stripe_event_id: Event that triggered the distribution, if any
        total_amount_cents: invoice.amount_paid
        platform_fee_cents: Computed platform fee (retained, not transferred)
        fixed_account_amount_cents: Fixed account share after the floor
        connected_account_amount_cents: Connected account share after the floor
        currency: Currency of the invoice and transfers
        status: Aggregate outcome derived from the transfers

    Note:
        Because of the minimum transfer floor, the two transfer amounts can
        exceed total_amount_cents for small invoices.
    """

    invoice_id = models.CharField(
        max_length=255,
        unique=True,
        help_text="Stripe Invoice ID (in_xxx) - unique constraint for idempotency",
    )

    subscription_id = models.CharField(
        max_length=255,
        db_index=True,
        help_text="Stripe Subscription ID (sub_xxx)",
    )

    connected_account_id = models.CharField(
        max_length=255,
        db_index=True,
        help_text="Connected account resolved from product metadata",
    )

    stripe_event_id = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Stripe Event ID that triggered this distribution",
    )

    total_amount_cents = models.PositiveBigIntegerField(
        help_text="Amount paid on the invoice, in minor units",
    )

    platform_fee_cents = models.PositiveBigIntegerField(
        help_text="Platform fee computed from the split (kept in platform balance)",
    )

    fixed_account_amount_cents = models.PositiveBigIntegerField(
        help_text="Amount owed to the fixed account, in minor units",
    )

    connected_account_amount_cents = models.PositiveBigIntegerField(
        help_text="Amount owed to the connected account, in minor units",
    )

    currency = models.CharField(
        max_length=3,
        default="usd",
        help_text="ISO 4217 currency code (lowercase)",
    )

    status = models.CharField(
        max_length=20,
        choices=DistributionStatus.choices,
        default=DistributionStatus.PENDING,
        db_index=True,
        help_text="Aggregate outcome of the distribution's transfers",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Revenue Distribution"
        verbose_name_plural = "Revenue Distributions"

    def __str__(self) -> str:
        return f"RevenueDistribution({self.invoice_id}, {self.status})"

    def refresh_status(self) -> str:
        """
        Recompute status from the transfers and save it.

        Transfers still in flight leave the distribution PENDING.
        """
        states = list(self.transfers.values_list("state", flat=True))
        succeeded = states.count(RevenueTransferState.SUCCEEDED)
        failed = states.count(RevenueTransferState.FAILED)

        if not states or succeeded == len(states):
            status = DistributionStatus.COMPLETED
        elif failed == len(states):
            status = DistributionStatus.FAILED
        elif succeeded + failed < len(states):
            status = DistributionStatus.PENDING
        else:
            status = DistributionStatus.PARTIALLY_FAILED

        self.status = status
        self.save(update_fields=["status", "updated_at"])
        return status

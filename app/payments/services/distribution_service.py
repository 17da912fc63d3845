"""
Revenue distribution for paid subscription invoices.

This module provides the RevenueDistributionService class, which turns one
invoice.payment_succeeded event into at most two revenue share transfers.

Distribution uses a claim-then-execute pattern:
1. Claim: in one transaction, create the RevenueDistribution (unique per
   invoice) and its RevenueTransfer rows, moving each to PROCESSING
2. Execute: outside any transaction, call Stripe once per transfer,
   fixed account first, recording each result on its own row
3. Record: derive the distribution status from the transfer states

A second delivery of the same invoice finds the existing distribution
(or loses the race on the unique invoice_id) and makes no Stripe calls.

Usage:
    from payments.services import RevenueDistributionService
    from payments.webhooks.events import InvoicePayment

    result = RevenueDistributionService.distribute_invoice(
        InvoicePayment.from_invoice(invoice_payload),
        stripe_event_id="evt_123",
    )
    if result.success:
        print(result.data.status, [t.to_dict() for t in result.data.transfers])
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from django.db import IntegrityError

from core.exceptions import NotFoundError
from core.services import BaseService, ServiceResult

from payments.adapters import StripeAdapter
from payments.models import RevenueDistribution, RevenueTransfer
from payments.services.account_resolver import resolve_connected_account
from payments.services.revenue_split import (
    RevenueSplit,
    compute_split,
    get_revenue_split_config,
)
from payments.services.transfer_executor import (
    TRANSFER_DESCRIPTIONS,
    TransferExecutor,
    TransferOutcome,
    build_transfer_metadata,
)
from payments.state_machines import RevenueAccountType, RevenueTransferState

if TYPE_CHECKING:
    from typing import Any

    from payments.services.revenue_split import RevenueSplitConfig
    from payments.webhooks.events import InvoicePayment


# =============================================================================
# Result Types
# =============================================================================


class DistributionResultStatus:
    """Outcomes of a distribution request."""

    DISTRIBUTED = "distributed"
    DUPLICATE = "duplicate"
    RETRIED = "retried"
    SKIPPED_ONE_TIME = "skipped_one_time"
    SKIPPED_NO_CONNECTED_ACCOUNT = "skipped_no_connected_account"


@dataclass
class DistributionOutcome:
    """
    Result of distributing one invoice.

    Attributes:
        status: One of DistributionResultStatus
        invoice_id: Invoice that was distributed
        subscription_id: Subscription the invoice belongs to, if any
        connected_account_id: Resolved connected account, if any
        split: Computed split, when distribution went ahead
        distribution_status: RevenueDistribution.status after execution
        transfers: Per-transfer results, fixed account first
    """

    status: str
    invoice_id: str
    subscription_id: str | None = None
    connected_account_id: str | None = None
    split: RevenueSplit | None = None
    distribution_status: str | None = None
    transfers: list[TransferOutcome] = field(default_factory=list)

    @property
    def all_transfers_succeeded(self) -> bool:
        return all(transfer.succeeded for transfer in self.transfers)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "status": self.status,
            "invoice_id": self.invoice_id,
        }
        if self.subscription_id:
            result["subscription_id"] = self.subscription_id
        if self.connected_account_id:
            result["connected_account_id"] = self.connected_account_id
        if self.split is not None:
            result["split"] = {
                "total_amount": self.split.total_amount,
                "platform_fee": self.split.platform_fee,
                "fixed_account_amount": self.split.fixed_account_amount,
                "connected_account_amount": self.split.connected_account_amount,
            }
        if self.distribution_status:
            result["distribution_status"] = self.distribution_status
        if self.transfers:
            result["transfers"] = [transfer.to_dict() for transfer in self.transfers]
        return result


# =============================================================================
# Distribution Service
# =============================================================================


class RevenueDistributionService(BaseService):
    """
    Distributes paid subscription invoices to the fixed and connected accounts.

    Skips (acknowledged, no transfers):
        - Invoices without a subscription (one-time payments)
        - Subscriptions whose products carry no connected_account_id

    Safety Guarantees:
        - RevenueDistribution.invoice_id is unique, so an invoice is claimed once
        - Transfers are claimed before Stripe is called and executed outside
          the claim transaction
        - One failing transfer never prevents the other from being attempted
        - Failed transfers are not retried automatically
    """

    # Stripe adapter - can be injected for testing
    _stripe_adapter: type | None = None

    @classmethod
    def get_stripe_adapter(cls) -> type:
        """Get the Stripe adapter class."""
        return cls._stripe_adapter or StripeAdapter

    @classmethod
    def set_stripe_adapter(cls, adapter: type | None) -> None:
        """Set the Stripe adapter class (for testing)."""
        cls._stripe_adapter = adapter

    @classmethod
    def distribute_invoice(
        cls,
        invoice: InvoicePayment,
        config: RevenueSplitConfig | None = None,
        stripe_event_id: str | None = None,
    ) -> ServiceResult[DistributionOutcome]:
        """
        Split a paid invoice and transfer the shares.

        Args:
            invoice: The paid invoice
            config: Split configuration (defaults to the process-wide config)
            stripe_event_id: Triggering event, stored on the distribution

        Returns:
            ServiceResult containing DistributionOutcome. Transfer failures
            are reported in the outcome, not as a failed result.

        Raises:
            UpstreamError: Subscription lookup failed (nothing was claimed)
        """
        logger = cls.get_logger()
        config = config or get_revenue_split_config()
        log_context = {
            "invoice_id": invoice.invoice_id,
            "subscription_id": invoice.subscription_id,
            "stripe_event_id": stripe_event_id,
        }

        # Step 1: One-time invoices have no revenue share
        if not invoice.subscription_id:
            logger.info("Invoice has no subscription, skipping distribution", extra=log_context)
            return ServiceResult.success(
                DistributionOutcome(
                    status=DistributionResultStatus.SKIPPED_ONE_TIME,
                    invoice_id=invoice.invoice_id,
                )
            )

        # Step 2: Already distributed (or in flight)
        existing = RevenueDistribution.objects.filter(invoice_id=invoice.invoice_id).first()
        if existing is not None:
            logger.info(
                "Invoice already distributed, skipping",
                extra={**log_context, "distribution_status": existing.status},
            )
            return ServiceResult.success(cls._duplicate_outcome(existing))

        # Step 3: Resolve the connected account
        subscription = cls.get_stripe_adapter().retrieve_subscription(invoice.subscription_id)
        connected_account_id = resolve_connected_account(subscription)
        if not connected_account_id:
            logger.warning(
                f"No connected_account_id in product metadata for subscription "
                f"{invoice.subscription_id} (invoice {invoice.invoice_id}), skipping",
                extra={
                    **log_context,
                    "product_ids": [item.product_id for item in subscription.items],
                },
            )
            return ServiceResult.success(
                DistributionOutcome(
                    status=DistributionResultStatus.SKIPPED_NO_CONNECTED_ACCOUNT,
                    invoice_id=invoice.invoice_id,
                    subscription_id=invoice.subscription_id,
                )
            )

        # Step 4: Compute the split
        split = compute_split(invoice.amount_paid, config)
        logger.info(
            "Computed revenue split",
            extra={
                **log_context,
                "connected_account_id": connected_account_id,
                "total_amount": split.total_amount,
                "platform_fee": split.platform_fee,
                "fixed_account_amount": split.fixed_account_amount,
                "connected_account_amount": split.connected_account_amount,
            },
        )
        if split.exceeds_total:
            logger.warning(
                f"Minimum transfer floor exceeds amount paid on invoice {invoice.invoice_id}",
                extra={**log_context, "transferred_amount": split.transferred_amount},
            )

        # Step 5: Claim
        currency = invoice.currency or config.default_currency
        try:
            distribution, transfers = cls._claim(
                invoice=invoice,
                split=split,
                connected_account_id=connected_account_id,
                fixed_account_id=config.fixed_account_id,
                currency=currency,
                stripe_event_id=stripe_event_id,
            )
        except IntegrityError:
            logger.info("Invoice claimed by a concurrent delivery, skipping", extra=log_context)
            existing = RevenueDistribution.objects.get(invoice_id=invoice.invoice_id)
            return ServiceResult.success(cls._duplicate_outcome(existing))

        # Step 6: Execute
        outcomes = [cls._execute_transfer(transfer) for transfer in transfers]

        # Step 7: Record
        distribution_status = distribution.refresh_status()
        logger.info(
            "Revenue distribution finished",
            extra={
                **log_context,
                "distribution_id": str(distribution.id),
                "distribution_status": distribution_status,
            },
        )

        return ServiceResult.success(
            DistributionOutcome(
                status=DistributionResultStatus.DISTRIBUTED,
                invoice_id=invoice.invoice_id,
                subscription_id=invoice.subscription_id,
                connected_account_id=connected_account_id,
                split=split,
                distribution_status=distribution_status,
                transfers=outcomes,
            )
        )

    @classmethod
    def retry_failed_transfers(cls, invoice_id: str) -> ServiceResult[DistributionOutcome]:
        """
        Re-attempt the failed transfers of a distribution.

        Each retried transfer goes FAILED -> PENDING -> PROCESSING, which
        bumps attempt_count and so the idempotency key.

        Raises:
            NotFoundError: No distribution for this invoice
        """
        logger = cls.get_logger()

        try:
            distribution = RevenueDistribution.objects.get(invoice_id=invoice_id)
        except RevenueDistribution.DoesNotExist:
            raise NotFoundError(
                f"No revenue distribution for invoice {invoice_id}",
                details={"invoice_id": invoice_id},
            )

        claimed: list[RevenueTransfer] = []
        with cls.atomic():
            failed = (
                RevenueTransfer.objects.select_for_update()
                .filter(distribution=distribution, state=RevenueTransferState.FAILED)
                .order_by("created_at")
            )
            for transfer in failed:
                transfer.retry()
                transfer.process()
                transfer.save()
                claimed.append(transfer)

        logger.info(
            "Retrying failed revenue transfers",
            extra={"invoice_id": invoice_id, "transfer_count": len(claimed)},
        )

        outcomes = [cls._execute_transfer(transfer) for transfer in claimed]
        distribution_status = distribution.refresh_status()

        return ServiceResult.success(
            DistributionOutcome(
                status=DistributionResultStatus.RETRIED,
                invoice_id=invoice_id,
                subscription_id=distribution.subscription_id,
                connected_account_id=distribution.connected_account_id,
                distribution_status=distribution_status,
                transfers=outcomes,
            )
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    @classmethod
    def _claim(
        cls,
        invoice: InvoicePayment,
        split: RevenueSplit,
        connected_account_id: str,
        fixed_account_id: str,
        currency: str,
        stripe_event_id: str | None,
    ) -> tuple[RevenueDistribution, list[RevenueTransfer]]:
        """
        Create the distribution and claim its transfers in one transaction.

        Raises:
            IntegrityError: The invoice was already claimed
        """
        plan = [
            (RevenueAccountType.FIXED, fixed_account_id, split.fixed_account_amount),
            (
                RevenueAccountType.CONNECTED,
                connected_account_id,
                split.connected_account_amount,
            ),
        ]

        with cls.atomic():
            distribution = RevenueDistribution.objects.create(
                invoice_id=invoice.invoice_id,
                subscription_id=invoice.subscription_id,
                connected_account_id=connected_account_id,
                stripe_event_id=stripe_event_id or "",
                total_amount_cents=split.total_amount,
                platform_fee_cents=split.platform_fee,
                fixed_account_amount_cents=split.fixed_account_amount,
                connected_account_amount_cents=split.connected_account_amount,
                currency=currency,
            )

            transfers = []
            for account_type, destination, amount in plan:
                if amount <= 0:
                    continue
                transfer = RevenueTransfer(
                    distribution=distribution,
                    account_type=account_type,
                    destination_account_id=destination,
                    amount_cents=amount,
                    currency=currency,
                    description=TRANSFER_DESCRIPTIONS[account_type],
                    metadata=build_transfer_metadata(
                        account_type=account_type,
                        total_amount=split.total_amount,
                        invoice_id=invoice.invoice_id,
                        subscription_id=invoice.subscription_id,
                    ),
                )
                transfer.process()
                transfer.save()
                transfers.append(transfer)

        return distribution, transfers

    @classmethod
    def _execute_transfer(cls, transfer: RevenueTransfer) -> TransferOutcome:
        """Execute one transfer, isolating unexpected errors from the next one."""
        try:
            return TransferExecutor.execute(transfer)
        except Exception as e:
            # Outcome unknown: the transfer stays PROCESSING for reconciliation
            cls.get_logger().error(
                f"Unexpected error executing revenue transfer {transfer.id} "
                f"({transfer.account_type}): {type(e).__name__}",
                extra={
                    "revenue_transfer_id": str(transfer.id),
                    "account_type": transfer.account_type,
                },
                exc_info=True,
            )
            outcome = TransferOutcome.from_transfer(transfer)
            outcome.error_code = "UNEXPECTED_ERROR"
            outcome.error_message = str(e)
            return outcome

    @staticmethod
    def _duplicate_outcome(distribution: RevenueDistribution) -> DistributionOutcome:
        return DistributionOutcome(
            status=DistributionResultStatus.DUPLICATE,
            invoice_id=distribution.invoice_id,
            subscription_id=distribution.subscription_id,
            connected_account_id=distribution.connected_account_id,
            distribution_status=distribution.status,
        )

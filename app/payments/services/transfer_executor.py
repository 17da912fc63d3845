"""
Transfer executor for revenue share transfers.

This module provides the TransferExecutor class, which moves one revenue
share from the platform balance to its destination account.

Each RevenueTransfer is claimed (moved to PROCESSING) before the platform
is called, and the call always carries an idempotency key derived from the
invoice, the account type and the attempt number:

    revenue_transfer:{invoice_id}:{account_type}:{attempt}:{hash}

A repeated call for the same attempt therefore returns the original Stripe
transfer instead of creating a second one. Failed transfers are never
retried automatically; an operator retries them with
``manage.py retry_revenue_transfers``, which bumps the attempt.

Usage:
    from payments.services import TransferExecutor

    outcome = TransferExecutor.execute(revenue_transfer)
    if not outcome.succeeded:
        logger.error(outcome.error_message)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from core.services import BaseService

from payments.adapters import IdempotencyKeyGenerator, StripeAdapter
from payments.exceptions import InvalidStateTransitionError, UpstreamError
from payments.signals import revenue_transfer_failed
from payments.state_machines import RevenueAccountType, RevenueTransferState

if TYPE_CHECKING:
    from typing import Any

    from payments.adapters import TransferResult
    from payments.models import RevenueTransfer


IDEMPOTENCY_OPERATION = "revenue_transfer"

TRANSFER_DESCRIPTIONS = {
    RevenueAccountType.FIXED: "Fixed account revenue share from subscription payment",
    RevenueAccountType.CONNECTED: "Connected account revenue share from subscription payment",
}


def build_transfer_metadata(
    account_type: str,
    total_amount: int,
    invoice_id: str,
    subscription_id: str,
) -> dict[str, str]:
    """Audit metadata attached to every revenue share transfer."""
    return {
        "type": "revenue_share",
        "source": "subscription_payment",
        "account_type": str(account_type),
        "total_amount": str(total_amount),
        "invoice_id": invoice_id,
        "subscription_id": subscription_id,
    }


# =============================================================================
# Result Types
# =============================================================================


@dataclass
class TransferOutcome:
    """
    Result of one transfer attempt.

    Attributes:
        account_type: "fixed" or "connected"
        destination_account_id: Destination account
        amount_cents: Amount attempted
        succeeded: Whether Stripe accepted the transfer
        stripe_transfer_id: Transfer ID when succeeded
        error_code/error_type/stripe_code/param/error_message: Failure details
    """

    account_type: str
    destination_account_id: str
    amount_cents: int
    succeeded: bool
    stripe_transfer_id: str | None = None
    error_code: str | None = None
    error_type: str | None = None
    stripe_code: str | None = None
    param: str | None = None
    error_message: str | None = None

    @classmethod
    def from_transfer(cls, transfer: RevenueTransfer) -> TransferOutcome:
        """Build an outcome from a transfer's recorded state."""
        succeeded = transfer.state == RevenueTransferState.SUCCEEDED
        return cls(
            account_type=transfer.account_type,
            destination_account_id=transfer.destination_account_id,
            amount_cents=transfer.amount_cents,
            succeeded=succeeded,
            stripe_transfer_id=transfer.stripe_transfer_id,
            error_type=transfer.error_type or None,
            stripe_code=transfer.error_code or None,
            param=transfer.error_param or None,
            error_message=transfer.error_message or None,
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "account_type": self.account_type,
            "destination": self.destination_account_id,
            "amount": self.amount_cents,
            "success": self.succeeded,
        }
        if self.succeeded:
            result["transfer_id"] = self.stripe_transfer_id
        else:
            result["error"] = {
                "message": self.error_message,
                "code": self.error_code,
                "type": self.error_type,
                "stripe_code": self.stripe_code,
                "param": self.param,
            }
        return result


# =============================================================================
# Transfer Executor
# =============================================================================


class TransferExecutor(BaseService):
    """
    Executes claimed revenue share transfers against Stripe.

    Flow (per transfer, outside any database transaction):
        1. Verify the transfer is PROCESSING (claimed by the caller)
        2. Call Stripe create_transfer with the attempt's idempotency key
        3. succeed() with the transfer ID, or fail() with the error details
        4. Send revenue_transfer_failed on failure

    Error Handling:
        - UpstreamError: recorded on the transfer, never raised
        - Anything else propagates; the transfer stays PROCESSING so a
          repeat of the same attempt reuses the same idempotency key
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
    def create_transfer(
        cls,
        amount_cents: int,
        currency: str,
        destination_account_id: str,
        description: str,
        metadata: dict[str, str],
        idempotency_key: str,
    ) -> TransferResult:
        """
        Issue a single transfer. No retry is performed.

        Raises:
            UpstreamError: Stripe rejected the transfer; carries the
                platform's type, code and param
        """
        return cls.get_stripe_adapter().create_transfer(
            amount_cents=amount_cents,
            currency=currency,
            destination_account_id=destination_account_id,
            idempotency_key=idempotency_key,
            description=description,
            metadata=metadata,
        )

    @classmethod
    def idempotency_key_for(cls, transfer: RevenueTransfer) -> str:
        return IdempotencyKeyGenerator.generate(
            IDEMPOTENCY_OPERATION,
            transfer.idempotency_entity,
            transfer.attempt_count,
        )

    @classmethod
    def execute(cls, transfer: RevenueTransfer) -> TransferOutcome:
        """
        Execute a claimed transfer and record the result on it.

        Args:
            transfer: RevenueTransfer in PROCESSING state

        Raises:
            InvalidStateTransitionError: The transfer was not claimed
        """
        logger = cls.get_logger()

        if transfer.state != RevenueTransferState.PROCESSING:
            raise InvalidStateTransitionError(
                f"Cannot execute transfer in state '{transfer.state}'",
                details={
                    "revenue_transfer_id": str(transfer.id),
                    "current_state": transfer.state,
                    "expected_state": RevenueTransferState.PROCESSING,
                },
            )

        log_context = {
            "revenue_transfer_id": str(transfer.id),
            "invoice_id": transfer.distribution.invoice_id,
            "account_type": transfer.account_type,
            "destination_account_id": transfer.destination_account_id,
            "amount_cents": transfer.amount_cents,
            "attempt": transfer.attempt_count,
        }
        logger.info("Creating revenue share transfer", extra=log_context)

        try:
            result = cls.create_transfer(
                amount_cents=transfer.amount_cents,
                currency=transfer.currency,
                destination_account_id=transfer.destination_account_id,
                description=transfer.description,
                metadata=transfer.metadata,
                idempotency_key=cls.idempotency_key_for(transfer),
            )
        except UpstreamError as e:
            transfer.fail(
                message=e.message,
                error_type=e.error_type,
                error_code=e.stripe_code,
                error_param=e.param,
            )
            transfer.save()

            logger.error(
                f"Revenue share transfer {transfer.id} to {transfer.destination_account_id} "
                f"failed: {e.stripe_code or e.error_code}",
                extra={
                    **log_context,
                    "error_code": e.error_code,
                    "error_type": e.error_type,
                    "stripe_code": e.stripe_code,
                    "stripe_param": e.param,
                    "error": e.message,
                },
                exc_info=True,
            )
            revenue_transfer_failed.send(sender=cls, transfer=transfer, error=e)

            outcome = TransferOutcome.from_transfer(transfer)
            outcome.error_code = e.error_code
            return outcome

        transfer.succeed(stripe_transfer_id=result.id)
        transfer.save()

        logger.info(
            "Revenue share transfer created",
            extra={**log_context, "stripe_transfer_id": result.id},
        )
        return TransferOutcome.from_transfer(transfer)

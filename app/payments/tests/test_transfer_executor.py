"""
Tests for TransferExecutor.

Tests cover:
- Successful transfer recording
- Idempotency key derivation per attempt
- Failure recording with the platform's type, code and param
- revenue_transfer_failed signal and alert logging
- Refusal to execute unclaimed transfers
"""

import logging
from unittest.mock import MagicMock

import pytest

from payments.adapters import IdempotencyKeyGenerator
from payments.exceptions import (
    InvalidStateTransitionError,
    StripeInsufficientFundsError,
    StripeInvalidAccountError,
)
from payments.models import RevenueTransfer
from payments.services import TransferExecutor, TransferOutcome
from payments.signals import revenue_transfer_failed
from payments.state_machines import RevenueTransferState


def insufficient_funds():
    return StripeInsufficientFundsError(
        "Insufficient funds in Stripe account.",
        error_type="invalid_request_error",
        stripe_code="balance_insufficient",
        http_status=400,
    )


# =============================================================================
# Success Path
# =============================================================================


@pytest.mark.django_db
class TestTransferExecutorSuccess:
    """Tests for successful transfer execution."""

    def test_records_stripe_transfer(self, processing_transfer, mock_stripe_adapter):
        outcome = TransferExecutor.execute(processing_transfer)

        assert outcome.succeeded is True
        assert outcome.stripe_transfer_id == "tr_test1"

        transfer = RevenueTransfer.objects.get(pk=processing_transfer.pk)
        assert transfer.state == RevenueTransferState.SUCCEEDED
        assert transfer.stripe_transfer_id == "tr_test1"
        assert transfer.completed_at is not None

    def test_sends_transfer_fields(self, processing_transfer, mock_stripe_adapter):
        TransferExecutor.execute(processing_transfer)

        invoice_id = processing_transfer.distribution.invoice_id
        mock_stripe_adapter.create_transfer.assert_called_once_with(
            amount_cents=3000,
            currency="usd",
            destination_account_id="acct_fixed_test",
            idempotency_key=IdempotencyKeyGenerator.generate(
                "revenue_transfer", f"{invoice_id}:fixed", 1
            ),
            description="Fixed account revenue share from subscription payment",
            metadata={
                "type": "revenue_share",
                "source": "subscription_payment",
                "account_type": "fixed",
                "total_amount": "10000",
                "invoice_id": invoice_id,
                "subscription_id": processing_transfer.distribution.subscription_id,
            },
        )

    def test_outcome_dict(self, processing_transfer, mock_stripe_adapter):
        outcome = TransferExecutor.execute(processing_transfer)

        assert outcome.to_dict() == {
            "account_type": "fixed",
            "destination": "acct_fixed_test",
            "amount": 3000,
            "success": True,
            "transfer_id": "tr_test1",
        }


# =============================================================================
# Failure Path
# =============================================================================


@pytest.mark.django_db
class TestTransferExecutorFailure:
    """Tests for failed transfer execution."""

    def test_records_failure_details(self, processing_transfer, mock_stripe_adapter):
        mock_stripe_adapter.create_transfer.side_effect = insufficient_funds()

        outcome = TransferExecutor.execute(processing_transfer)

        assert outcome.succeeded is False
        assert outcome.error_code == "INSUFFICIENT_FUNDS"
        assert outcome.stripe_code == "balance_insufficient"
        assert outcome.error_type == "invalid_request_error"

        transfer = RevenueTransfer.objects.get(pk=processing_transfer.pk)
        assert transfer.state == RevenueTransferState.FAILED
        assert transfer.error_code == "balance_insufficient"
        assert transfer.error_type == "invalid_request_error"
        assert transfer.error_message == "Insufficient funds in Stripe account."
        assert transfer.failed_at is not None
        assert transfer.stripe_transfer_id is None

    def test_outcome_dict_carries_error(self, processing_transfer, mock_stripe_adapter):
        mock_stripe_adapter.create_transfer.side_effect = StripeInvalidAccountError(
            "No such destination: 'acct_gone'",
            error_type="invalid_request_error",
            stripe_code="resource_missing",
            param="destination",
        )

        data = TransferExecutor.execute(processing_transfer).to_dict()

        assert data["success"] is False
        assert "transfer_id" not in data
        assert data["error"] == {
            "message": "No such destination: 'acct_gone'",
            "code": "INVALID_STRIPE_ACCOUNT",
            "type": "invalid_request_error",
            "stripe_code": "resource_missing",
            "param": "destination",
        }

    def test_sends_failure_signal(self, processing_transfer, mock_stripe_adapter):
        error = insufficient_funds()
        mock_stripe_adapter.create_transfer.side_effect = error
        handler = MagicMock()
        revenue_transfer_failed.connect(handler, weak=False)

        try:
            TransferExecutor.execute(processing_transfer)
        finally:
            revenue_transfer_failed.disconnect(handler)

        handler.assert_called_once()
        kwargs = handler.call_args.kwargs
        assert kwargs["sender"] is TransferExecutor
        assert kwargs["transfer"].pk == processing_transfer.pk
        assert kwargs["error"] is error

    def test_failure_logged_to_alerts(self, processing_transfer, mock_stripe_adapter, caplog):
        mock_stripe_adapter.create_transfer.side_effect = insufficient_funds()

        with caplog.at_level(logging.ERROR, logger="payments.alerts"):
            TransferExecutor.execute(processing_transfer)

        alerts = [record for record in caplog.records if record.name == "payments.alerts"]
        assert len(alerts) == 1
        assert alerts[0].stripe_code == "balance_insufficient"

        # The formatters print only the message, so the ids must be in it
        message = alerts[0].getMessage()
        assert str(processing_transfer.id) in message
        assert processing_transfer.distribution.invoice_id in message
        assert processing_transfer.account_type in message
        assert processing_transfer.destination_account_id in message
        assert "balance_insufficient" in message

    def test_retry_uses_new_idempotency_key(self, failed_transfer, mock_stripe_adapter):
        first_key = IdempotencyKeyGenerator.generate(
            "revenue_transfer", failed_transfer.idempotency_entity, 1
        )

        failed_transfer.retry()
        failed_transfer.process()
        failed_transfer.save()
        TransferExecutor.execute(failed_transfer)

        key = mock_stripe_adapter.create_transfer.call_args.kwargs["idempotency_key"]
        assert failed_transfer.attempt_count == 2
        assert key != first_key
        assert key == TransferExecutor.idempotency_key_for(failed_transfer)


# =============================================================================
# Guards
# =============================================================================


@pytest.mark.django_db
class TestTransferExecutorGuards:
    """Tests for state checks before calling Stripe."""

    def test_pending_transfer_rejected(self, pending_transfer, mock_stripe_adapter):
        with pytest.raises(InvalidStateTransitionError):
            TransferExecutor.execute(pending_transfer)

        mock_stripe_adapter.create_transfer.assert_not_called()

    def test_succeeded_transfer_not_resent(self, processing_transfer, mock_stripe_adapter):
        TransferExecutor.execute(processing_transfer)

        with pytest.raises(InvalidStateTransitionError):
            TransferExecutor.execute(processing_transfer)

        assert mock_stripe_adapter.create_transfer.call_count == 1

    def test_outcome_from_unexecuted_transfer(self, processing_transfer):
        outcome = TransferOutcome.from_transfer(processing_transfer)

        assert outcome.succeeded is False
        assert outcome.error_message is None

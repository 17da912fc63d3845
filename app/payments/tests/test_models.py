"""
Tests for payment domain models.

Tests model field validation, constraints, defaults, state transitions and
status aggregation for the revenue distribution models.
"""

import uuid

import pytest
from django.db import IntegrityError, transaction
from django_fsm import TransitionNotAllowed

from payments.models import RevenueDistribution, RevenueTransfer, WebhookEvent
from payments.state_machines import (
    DistributionStatus,
    RevenueAccountType,
    RevenueTransferState,
    WebhookEventStatus,
)
from payments.tests.factories import (
    RevenueDistributionFactory,
    RevenueTransferFactory,
    WebhookEventFactory,
)


# =============================================================================
# RevenueDistribution Tests
# =============================================================================


@pytest.mark.django_db
class TestRevenueDistributionModel:
    """Tests for RevenueDistribution model."""

    def test_defaults(self):
        distribution = RevenueDistribution.objects.create(
            invoice_id="in_defaults",
            subscription_id="sub_1",
            connected_account_id="acct_1",
            total_amount_cents=10000,
            platform_fee_cents=4000,
            fixed_account_amount_cents=3000,
            connected_account_amount_cents=3000,
        )

        assert isinstance(distribution.pk, uuid.UUID)
        assert distribution.status == DistributionStatus.PENDING
        assert distribution.currency == "usd"
        assert distribution.stripe_event_id == ""

    def test_invoice_id_unique(self):
        RevenueDistributionFactory(invoice_id="in_unique")

        with pytest.raises(IntegrityError), transaction.atomic():
            RevenueDistributionFactory(invoice_id="in_unique")

    def test_str(self, distribution):
        assert str(distribution).startswith(f"RevenueDistribution({distribution.invoice_id}, ")


@pytest.mark.django_db
class TestRefreshStatus:
    """Tests for RevenueDistribution.refresh_status."""

    def _transfer(self, distribution, account_type, final_state=None):
        transfer = RevenueTransferFactory(distribution=distribution, account_type=account_type)
        if final_state is None:
            return transfer
        transfer.process()
        if final_state == RevenueTransferState.SUCCEEDED:
            transfer.succeed(stripe_transfer_id=f"tr_{account_type}")
        elif final_state == RevenueTransferState.FAILED:
            transfer.fail(message="declined")
        transfer.save()
        return transfer

    def test_no_transfers_is_completed(self, distribution):
        assert distribution.refresh_status() == DistributionStatus.COMPLETED

    @pytest.mark.parametrize(
        "fixed_state,connected_state,expected",
        [
            (RevenueTransferState.SUCCEEDED, RevenueTransferState.SUCCEEDED, "completed"),
            (RevenueTransferState.FAILED, RevenueTransferState.FAILED, "failed"),
            (RevenueTransferState.SUCCEEDED, RevenueTransferState.FAILED, "partially_failed"),
            (RevenueTransferState.SUCCEEDED, RevenueTransferState.PROCESSING, "pending"),
        ],
    )
    def test_aggregates_transfer_states(
        self, distribution, fixed_state, connected_state, expected
    ):
        self._transfer(distribution, RevenueAccountType.FIXED, fixed_state)
        self._transfer(distribution, RevenueAccountType.CONNECTED, connected_state)

        status = distribution.refresh_status()

        assert status == expected
        assert RevenueDistribution.objects.get(pk=distribution.pk).status == expected


# =============================================================================
# RevenueTransfer Tests
# =============================================================================


@pytest.mark.django_db
class TestRevenueTransferModel:
    """Tests for RevenueTransfer fields and constraints."""

    def test_defaults(self, pending_transfer):
        assert pending_transfer.state == RevenueTransferState.PENDING
        assert pending_transfer.attempt_count == 0
        assert pending_transfer.stripe_transfer_id is None
        assert pending_transfer.metadata["type"] == "revenue_share"

    def test_one_transfer_per_account_type(self, pending_transfer):
        with pytest.raises(IntegrityError), transaction.atomic():
            RevenueTransferFactory(
                distribution=pending_transfer.distribution,
                account_type=RevenueAccountType.FIXED,
            )

    def test_amount_must_be_positive(self, distribution):
        with pytest.raises(IntegrityError), transaction.atomic():
            RevenueTransferFactory(distribution=distribution, amount_cents=0)

    def test_distribution_cannot_be_deleted_with_transfers(self, pending_transfer):
        from django.db.models import ProtectedError

        with pytest.raises(ProtectedError):
            pending_transfer.distribution.delete()

    def test_state_cannot_be_assigned_directly(self, pending_transfer):
        with pytest.raises(AttributeError):
            pending_transfer.state = RevenueTransferState.SUCCEEDED

    def test_idempotency_entity(self, pending_transfer):
        invoice_id = pending_transfer.distribution.invoice_id

        assert pending_transfer.idempotency_entity == f"{invoice_id}:fixed"


@pytest.mark.django_db
class TestRevenueTransferTransitions:
    """Tests for RevenueTransfer FSM transitions."""

    def test_process_counts_attempts(self, pending_transfer):
        pending_transfer.process()

        assert pending_transfer.state == RevenueTransferState.PROCESSING
        assert pending_transfer.attempt_count == 1

    def test_succeed(self, processing_transfer):
        processing_transfer.succeed(stripe_transfer_id="tr_123")
        processing_transfer.save()

        transfer = RevenueTransfer.objects.get(pk=processing_transfer.pk)
        assert transfer.state == RevenueTransferState.SUCCEEDED
        assert transfer.stripe_transfer_id == "tr_123"
        assert transfer.completed_at is not None
        assert transfer.is_succeeded is True

    def test_fail_records_error(self, failed_transfer):
        assert failed_transfer.state == RevenueTransferState.FAILED
        assert failed_transfer.error_code == "balance_insufficient"
        assert failed_transfer.failed_at is not None
        assert failed_transfer.can_retry is True

    def test_retry_then_succeed_clears_error(self, failed_transfer):
        failed_transfer.retry()
        failed_transfer.process()
        failed_transfer.succeed(stripe_transfer_id="tr_retry")

        assert failed_transfer.attempt_count == 2
        assert failed_transfer.error_code == ""
        assert failed_transfer.error_message == ""

    def test_cannot_succeed_unclaimed_transfer(self, pending_transfer):
        with pytest.raises(TransitionNotAllowed):
            pending_transfer.succeed(stripe_transfer_id="tr_123")

    def test_cannot_process_twice(self, processing_transfer):
        with pytest.raises(TransitionNotAllowed):
            processing_transfer.process()

    def test_succeeded_is_terminal(self, processing_transfer):
        processing_transfer.succeed(stripe_transfer_id="tr_123")

        with pytest.raises(TransitionNotAllowed):
            processing_transfer.fail(message="late failure")
        with pytest.raises(TransitionNotAllowed):
            processing_transfer.retry()


# =============================================================================
# WebhookEvent Tests
# =============================================================================


@pytest.mark.django_db
class TestWebhookEventModel:
    """Tests for WebhookEvent model."""

    def test_stripe_event_id_unique(self):
        WebhookEventFactory(stripe_event_id="evt_dup")

        with pytest.raises(IntegrityError), transaction.atomic():
            WebhookEventFactory(stripe_event_id="evt_dup")

    def test_lifecycle(self):
        event = WebhookEventFactory()

        event.mark_processing()
        assert event.status == WebhookEventStatus.PROCESSING
        assert event.retry_count == 1

        event.mark_failed("boom")
        assert event.is_failed is True
        assert event.error_message == "boom"

        event.mark_processing()
        event.mark_processed()
        event.save()

        event = WebhookEvent.objects.get(pk=event.pk)
        assert event.is_processed is True
        assert event.processed_at is not None
        assert event.error_message is None
        assert event.retry_count == 2

    def test_get_object(self):
        event = WebhookEventFactory()

        assert event.get_object() == {"id": "in_test123", "object": "invoice"}

    def test_get_object_missing(self):
        event = WebhookEventFactory(payload={"id": "evt_1"})

        assert event.get_object() == {}

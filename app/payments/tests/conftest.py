"""
Pytest fixtures for payment tests.

This module provides fixtures for creating payment-related test data.
Fixtures are designed to provide objects in various states for testing
state transitions and business logic.

Usage:
    def test_succeed_transfer(processing_transfer):
        processing_transfer.succeed(stripe_transfer_id="tr_123")
        processing_transfer.save()
        assert processing_transfer.state == RevenueTransferState.SUCCEEDED
"""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from payments.adapters import SubscriptionResult, TransferResult
from payments.services import (
    RevenueDistributionService,
    RevenueSplitConfig,
    TransferExecutor,
)
from payments.state_machines import RevenueAccountType
from payments.tests.factories import (
    RevenueDistributionFactory,
    RevenueTransferFactory,
)
from payments.tests.stripe_mocks import make_product, make_subscription, make_transfer


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def split_config():
    """The default 40/30/30 split with a 50 cent floor."""
    return RevenueSplitConfig(
        platform_fee_percentage=Decimal("0.40"),
        fixed_account_percentage=Decimal("0.30"),
        connected_account_percentage=Decimal("0.30"),
        minimum_transfer_amount=50,
        fixed_account_id="acct_fixed_test",
        default_currency="usd",
    )


# =============================================================================
# Distribution & Transfer Fixtures
# =============================================================================


@pytest.fixture
def distribution(db):
    """Create a $100 distribution with no transfers."""
    return RevenueDistributionFactory()


@pytest.fixture
def pending_transfer(db, distribution):
    """Create a fixed-account transfer in PENDING state."""
    return RevenueTransferFactory(distribution=distribution)


@pytest.fixture
def processing_transfer(db, pending_transfer):
    """Create a claimed transfer in PROCESSING state."""
    pending_transfer.process()
    pending_transfer.save()
    return pending_transfer


@pytest.fixture
def failed_transfer(db, processing_transfer):
    """Create a transfer in FAILED state."""
    processing_transfer.fail(
        message="Insufficient funds in Stripe account.",
        error_type="invalid_request_error",
        error_code="balance_insufficient",
    )
    processing_transfer.save()
    return processing_transfer


@pytest.fixture
def connected_processing_transfer(db, distribution):
    """Create a claimed connected-account transfer."""
    transfer = RevenueTransferFactory(
        distribution=distribution,
        account_type=RevenueAccountType.CONNECTED,
        destination_account_id=distribution.connected_account_id,
    )
    transfer.process()
    transfer.save()
    return transfer


# =============================================================================
# Mock Adapter Fixtures
# =============================================================================


def subscription_result(connected_account_id="acct_connected_test", **kwargs):
    """SubscriptionResult whose single product routes to connected_account_id."""
    metadata = {"connected_account_id": connected_account_id} if connected_account_id else {}
    return SubscriptionResult.from_stripe(
        make_subscription(products=[make_product(metadata=metadata)], **kwargs)
    )


@pytest.fixture
def mock_stripe_adapter():
    """
    Inject one mock adapter into the distribution service and the executor.

    Transfers succeed with sequential ids unless a test overrides
    create_transfer.
    """
    adapter = MagicMock()
    adapter.retrieve_subscription.return_value = subscription_result()

    counter = {"n": 0}

    def create_transfer(**kwargs):
        counter["n"] += 1
        return TransferResult.from_stripe(
            make_transfer(
                id=f"tr_test{counter['n']}",
                amount=kwargs["amount_cents"],
                destination=kwargs["destination_account_id"],
            )
        )

    adapter.create_transfer.side_effect = create_transfer

    RevenueDistributionService.set_stripe_adapter(adapter)
    TransferExecutor.set_stripe_adapter(adapter)
    yield adapter
    RevenueDistributionService.set_stripe_adapter(None)
    TransferExecutor.set_stripe_adapter(None)

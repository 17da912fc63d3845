"""
Factory Boy factories for payment test data.

This module provides factories for creating test instances of payment models.
Factories generate realistic test data while allowing easy customization.

Usage:
    from payments.tests.factories import (
        RevenueDistributionFactory,
        RevenueTransferFactory,
        WebhookEventFactory,
    )

    # A $100 distribution with a 30/30 split
    distribution = RevenueDistributionFactory()

    # A pending fixed-account transfer for that distribution
    transfer = RevenueTransferFactory(distribution=distribution)
"""

import uuid

import factory

from payments.models import RevenueDistribution, RevenueTransfer, WebhookEvent
from payments.services.transfer_executor import (
    TRANSFER_DESCRIPTIONS,
    build_transfer_metadata,
)
from payments.state_machines import RevenueAccountType, WebhookEventStatus


class RevenueDistributionFactory(factory.django.DjangoModelFactory):
    """
    Factory for creating RevenueDistribution instances.

    Default is the split of a $100 USD invoice (40% fee, 30% / 30%).
    """

    class Meta:
        model = RevenueDistribution
        skip_postgeneration_save = True

    invoice_id = factory.Sequence(lambda n: f"in_test_{n}_{uuid.uuid4().hex[:8]}")
    subscription_id = factory.Sequence(lambda n: f"sub_test_{n}")
    connected_account_id = "acct_connected_test"
    stripe_event_id = factory.Sequence(lambda n: f"evt_test_{n}")
    total_amount_cents = 10000  # $100.00
    platform_fee_cents = 4000
    fixed_account_amount_cents = 3000
    connected_account_amount_cents = 3000
    currency = "usd"


class RevenueTransferFactory(factory.django.DjangoModelFactory):
    """
    Factory for creating RevenueTransfer instances.

    Default creates a PENDING fixed-account transfer for $30 USD.

    Example:
        # Connected account share
        transfer = RevenueTransferFactory(
            account_type=RevenueAccountType.CONNECTED,
            destination_account_id="acct_123",
        )
    """

    class Meta:
        model = RevenueTransfer
        skip_postgeneration_save = True

    distribution = factory.SubFactory(RevenueDistributionFactory)
    account_type = RevenueAccountType.FIXED
    destination_account_id = "acct_fixed_test"
    amount_cents = 3000  # $30.00
    currency = "usd"
    # Note: state is managed by FSM, default is PENDING
    description = factory.LazyAttribute(lambda o: TRANSFER_DESCRIPTIONS[o.account_type])
    metadata = factory.LazyAttribute(
        lambda o: build_transfer_metadata(
            account_type=o.account_type,
            total_amount=o.distribution.total_amount_cents,
            invoice_id=o.distribution.invoice_id,
            subscription_id=o.distribution.subscription_id,
        )
    )


class WebhookEventFactory(factory.django.DjangoModelFactory):
    """
    Factory for creating WebhookEvent instances.

    Default creates a PENDING invoice.payment_succeeded webhook.

    Example:
        # Failed webhook
        event = WebhookEventFactory(
            status=WebhookEventStatus.FAILED,
            error_message="Processing error",
            retry_count=1,
        )
    """

    class Meta:
        model = WebhookEvent
        skip_postgeneration_save = True

    stripe_event_id = factory.Sequence(lambda n: f"evt_test_{n}_{uuid.uuid4().hex[:8]}")
    event_type = "invoice.payment_succeeded"
    payload = factory.LazyAttribute(
        lambda o: {
            "id": o.stripe_event_id,
            "type": o.event_type,
            "data": {"object": {"id": "in_test123", "object": "invoice"}},
        }
    )
    status = WebhookEventStatus.PENDING
    retry_count = 0

"""
Tests for the payments admin.
"""

from unittest.mock import patch

import pytest
from django.contrib import admin

from payments.models import RevenueDistribution, RevenueTransfer, WebhookEvent
from payments.state_machines import DistributionStatus, RevenueTransferState
from payments.tests.factories import RevenueDistributionFactory


@pytest.fixture
def distribution_admin():
    return admin.site._registry[RevenueDistribution]


class TestAdminRegistration:
    """All three models are registered and read-only for adds."""

    @pytest.mark.parametrize("model", [RevenueDistribution, RevenueTransfer, WebhookEvent])
    def test_registered_without_add(self, rf, model):
        model_admin = admin.site._registry[model]

        assert model_admin.has_add_permission(rf.get("/admin/")) is False
        assert model_admin.has_delete_permission(rf.get("/admin/")) is False


@pytest.mark.django_db
class TestRevenueDistributionAdmin:
    """Tests for RevenueDistributionAdmin."""

    def test_amount_display(self, distribution_admin):
        distribution = RevenueDistributionFactory(total_amount_cents=12345, currency="eur")

        assert distribution_admin.amount_display(distribution) == "123.45 EUR"

    def test_retry_action(self, rf, distribution_admin, failed_transfer, mock_stripe_adapter):
        distribution = failed_transfer.distribution
        distribution.refresh_status()

        with patch.object(distribution_admin, "message_user") as message_user:
            distribution_admin.retry_failed_transfers(
                rf.post("/admin/"), RevenueDistribution.objects.all()
            )

        message_user.assert_called_once()
        assert "Retried 1 transfers." in message_user.call_args.args
        transfer = RevenueTransfer.objects.get(pk=failed_transfer.pk)
        assert transfer.state == RevenueTransferState.SUCCEEDED
        assert (
            RevenueDistribution.objects.get(pk=distribution.pk).status
            == DistributionStatus.COMPLETED
        )

    def test_retry_action_skips_completed(self, rf, distribution_admin, mock_stripe_adapter):
        RevenueDistributionFactory(status=DistributionStatus.COMPLETED)

        with patch.object(distribution_admin, "message_user") as message_user:
            distribution_admin.retry_failed_transfers(
                rf.post("/admin/"), RevenueDistribution.objects.all()
            )

        assert "Retried 0 transfers." in message_user.call_args.args
        mock_stripe_adapter.create_transfer.assert_not_called()

"""
Tests for the apply_scheduled_prices management command.
"""

from io import StringIO

import pytest
from django.core.management import CommandError, call_command

from catalog.tests.results import price_result, product_result
from payments.exceptions import StripeAPIUnavailableError
from payments.tests.stripe_mocks import make_product


class TestApplyScheduledPricesCommand:
    """Tests for manage.py apply_scheduled_prices."""

    def test_reports_applied_changes(self, mock_stripe_adapter):
        mock_stripe_adapter.list_prices.return_value = [
            price_result(
                id="price_old",
                product=make_product(metadata={"amount_next_month": "25"}),
            )
        ]
        mock_stripe_adapter.retrieve_product.return_value = product_result()
        mock_stripe_adapter.create_price.return_value = price_result(
            id="price_new", unit_amount=2500
        )
        out = StringIO()

        call_command("apply_scheduled_prices", stdout=out)

        output = out.getvalue()
        assert "prod_test123: 1999 -> 2500 (price_new)" in output
        assert "Applied 1 price change(s)" in output

    def test_nothing_scheduled(self, mock_stripe_adapter):
        out = StringIO()

        call_command("apply_scheduled_prices", stdout=out)

        assert "Applied 0 price change(s)" in out.getvalue()

    def test_upstream_error_raises_command_error(self, mock_stripe_adapter):
        mock_stripe_adapter.list_prices.side_effect = StripeAPIUnavailableError(
            "Stripe is temporarily unavailable."
        )

        with pytest.raises(CommandError, match="Stripe error"):
            call_command("apply_scheduled_prices")

    def test_reports_failed_product_and_continues(self, mock_stripe_adapter):
        mock_stripe_adapter.list_prices.return_value = [
            price_result(
                id="price_old",
                product=make_product(metadata={"amount_next_month": "25"}),
            )
        ]
        mock_stripe_adapter.retrieve_product.return_value = product_result()
        mock_stripe_adapter.create_price.side_effect = StripeAPIUnavailableError(
            "Stripe is temporarily unavailable."
        )
        out, err = StringIO(), StringIO()

        call_command("apply_scheduled_prices", stdout=out, stderr=err)

        assert "prod_test123: failed (Stripe is temporarily unavailable.)" in err.getvalue()
        assert "Applied 0 price change(s)" in out.getvalue()

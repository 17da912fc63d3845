"""
Pytest fixtures for webhook tests.

Webhook tests post real event envelopes through the view, so they share the
mock adapter used by the service tests. Payloads are unsigned unless a test
configures STRIPE_WEBHOOK_SECRET.
"""

import pytest

from payments.tests.conftest import mock_stripe_adapter  # noqa: F401
from payments.tests.stripe_mocks import make_event, make_invoice


@pytest.fixture
def invoice_event():
    """A paid subscription invoice event."""
    return make_event("invoice.payment_succeeded", make_invoice())


@pytest.fixture
def one_time_invoice_event():
    """A paid invoice with no subscription."""
    return make_event("invoice.payment_succeeded", make_invoice(subscription=None))


@pytest.fixture(autouse=True)
def unsigned_webhooks(settings):
    """Accept unsigned payloads, as in local development with DEBUG on."""
    settings.DEBUG = True
    settings.STRIPE_WEBHOOK_SECRET = ""

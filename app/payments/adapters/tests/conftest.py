"""
Pytest fixtures for Stripe adapter tests.

Sections:
    - Mock Stripe Client Fixtures
    - Error Response Fixtures
"""

from unittest.mock import patch

import pytest
import stripe

from payments.tests.stripe_mocks import (
    make_account,
    make_price,
    make_product,
    make_subscription,
    make_transfer,
    stripe_list,
    stripe_object,
)


# =============================================================================
# Mock Stripe Client Fixtures
# =============================================================================


@pytest.fixture
def mock_stripe_product():
    """Mock stripe.Product API."""
    with patch("stripe.Product") as mock:
        mock.create.return_value = stripe_object(make_product())
        mock.retrieve.return_value = stripe_object(make_product())
        mock.modify.return_value = stripe_object(make_product(active=False))
        yield mock


@pytest.fixture
def mock_stripe_price():
    """Mock stripe.Price API."""
    with patch("stripe.Price") as mock:
        mock.create.return_value = stripe_object(make_price())
        mock.list.return_value = stripe_list([make_price()])
        mock.modify.return_value = stripe_object(make_price(active=False))
        yield mock


@pytest.fixture
def mock_stripe_subscription():
    """Mock stripe.Subscription API."""
    with patch("stripe.Subscription") as mock:
        mock.retrieve.return_value = stripe_object(make_subscription())
        yield mock


@pytest.fixture
def mock_stripe_transfer():
    """Mock stripe.Transfer API."""
    with patch("stripe.Transfer") as mock:
        mock.create.return_value = stripe_object(make_transfer())
        yield mock


@pytest.fixture
def mock_stripe_account():
    """Mock stripe.Account API."""
    with patch("stripe.Account") as mock:
        mock.list.return_value = stripe_list([make_account()])
        mock.retrieve.return_value = stripe_object(make_account(id="acct_platform"))
        yield mock


@pytest.fixture
def mock_stripe_webhook():
    """Mock stripe.Webhook API."""
    with patch("stripe.Webhook") as mock:
        mock.construct_event.return_value = stripe_object(
            {
                "id": "evt_test123",
                "type": "invoice.payment_succeeded",
                "data": {"object": {"id": "in_test123", "object": "invoice"}},
            }
        )
        yield mock


# =============================================================================
# Error Response Fixtures
# =============================================================================


@pytest.fixture
def rate_limit_error():
    """Create a Stripe RateLimitError."""
    return stripe.RateLimitError(
        message="Too many requests hit the API too quickly.",
        http_status=429,
    )


@pytest.fixture
def api_connection_error():
    """Create a Stripe APIConnectionError."""
    return stripe.APIConnectionError(
        message="Could not connect to Stripe.",
    )


@pytest.fixture
def authentication_error():
    """Create a Stripe AuthenticationError."""
    return stripe.AuthenticationError(
        message="Invalid API Key provided.",
        http_status=401,
    )


@pytest.fixture
def signature_verification_error():
    """Create a Stripe SignatureVerificationError."""
    return stripe.SignatureVerificationError(
        message="Unable to verify webhook signature.",
        sig_header="bad_signature",
    )

"""
Pytest fixtures for catalog tests.

Result builders live in catalog.tests.results so test modules can import
them directly.
"""

from unittest.mock import MagicMock

import pytest

from catalog.services import ProductLifecycleService
from catalog.tests.results import price_result, product_result


@pytest.fixture
def mock_stripe_adapter():
    """
    Inject a mock Stripe adapter into ProductLifecycleService.

    Defaults return a plausible product/price so each test only overrides
    what it asserts on.
    """
    adapter = MagicMock()
    adapter.create_product.return_value = product_result()
    adapter.retrieve_product.return_value = product_result()
    adapter.update_product.return_value = product_result()
    adapter.create_price.return_value = price_result()
    adapter.list_prices.return_value = []
    adapter.update_price.side_effect = lambda price_id, active: price_result(
        id=price_id, active=active
    )

    ProductLifecycleService.set_stripe_adapter(adapter)
    yield adapter
    ProductLifecycleService.set_stripe_adapter(None)

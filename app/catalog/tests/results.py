"""Adapter result builders for catalog tests, backed by stripe_mocks payloads."""

from payments.adapters import ConnectedAccountResult, PriceResult, ProductResult
from payments.tests.stripe_mocks import make_account, make_price, make_product


def product_result(**kwargs) -> ProductResult:
    return ProductResult.from_stripe(make_product(**kwargs))


def price_result(**kwargs) -> PriceResult:
    return PriceResult.from_stripe(make_price(**kwargs))


def account_result(**kwargs) -> ConnectedAccountResult:
    return ConnectedAccountResult.from_stripe(make_account(**kwargs))

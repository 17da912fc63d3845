"""
Connected-account resolution from subscription line items.

Products created by the catalog carry the connected account that receives
their revenue share in metadata. A subscription may mix such products with
products that have no revenue share; the first line item (in the order the
platform stores them) with a non-empty value wins.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from payments.adapters import SubscriptionResult

CONNECTED_ACCOUNT_METADATA_KEY = "connected_account_id"


def resolve_connected_account(
    subscription: SubscriptionResult,
    metadata_key: str = CONNECTED_ACCOUNT_METADATA_KEY,
) -> str | None:
    """
    Return the first non-empty connected account id, or None.

    None is a normal outcome (a subscription without revenue share); the
    caller decides whether to log it.
    """
    for item in subscription.items:
        value = (item.product_metadata.get(metadata_key) or "").strip()
        if value:
            return value
    return None

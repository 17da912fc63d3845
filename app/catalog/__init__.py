"""
Catalog app: the product and price lifecycle on Stripe.

Creates, archives and re-prices the offerings whose metadata
(connected_account_id in particular) routes revenue distribution.
"""

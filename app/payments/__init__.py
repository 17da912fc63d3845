"""
Payments app for Stripe revenue distribution.

This app handles:
- Stripe API access through StripeAdapter
- Revenue split calculation for paid subscription invoices
- Transfers to the fixed and connected accounts
- Webhook event handling

Related apps:
    - catalog: Products and prices whose metadata routes revenue

Usage:
    from payments.services import RevenueDistributionService

    # Distribute a paid invoice
    result = RevenueDistributionService.distribute_invoice(invoice)

    # Retry failed transfers
    result = RevenueDistributionService.retry_failed_transfers("in_123")
"""

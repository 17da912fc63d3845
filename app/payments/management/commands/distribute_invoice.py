"""
Django management command to distribute revenue for a paid invoice.

Recovers invoices whose webhook failed before the distribution was claimed
(for example a Stripe timeout during the subscription lookup). Invoices
that already have a distribution are reported as duplicates.

Usage:
    python manage.py distribute_invoice in_1234567890
"""

import json

from django.core.management.base import BaseCommand, CommandError

from core.exceptions import BaseApplicationError
from payments.adapters import StripeAdapter
from payments.services import RevenueDistributionService
from payments.webhooks.events import InvoicePayment


class Command(BaseCommand):
    help = "Split a paid invoice and transfer the revenue shares"

    def add_arguments(self, parser):
        parser.add_argument("invoice_id", help="Stripe Invoice ID (in_xxx)")

    def handle(self, *args, **options):
        invoice_id = options["invoice_id"]

        try:
            invoice = StripeAdapter.retrieve_invoice(invoice_id)
            result = RevenueDistributionService.distribute_invoice(
                InvoicePayment.from_invoice(invoice.raw_response)
            )
        except BaseApplicationError as e:
            raise CommandError(str(e)) from e

        if not result.success:
            raise CommandError(result.error)

        outcome = result.data
        self.stdout.write(json.dumps(outcome.to_dict(), indent=2))
        if outcome.transfers and not outcome.all_transfers_succeeded:
            raise CommandError(f"Some transfers failed for invoice {invoice_id}")
        self.stdout.write(self.style.SUCCESS(f"Invoice {invoice_id}: {outcome.status}"))

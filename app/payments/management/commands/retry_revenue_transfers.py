"""
Django management command to retry failed revenue share transfers.

Each retry uses a new attempt number, and therefore a new idempotency key.
Check the Stripe dashboard before retrying a transfer that failed with a
connection error: the original attempt may have gone through.

Usage:
    python manage.py retry_revenue_transfers in_1234567890
    python manage.py retry_revenue_transfers --all
"""

import json

from django.core.management.base import BaseCommand, CommandError

from core.exceptions import NotFoundError
from payments.models import RevenueDistribution
from payments.services import RevenueDistributionService
from payments.state_machines import DistributionStatus


class Command(BaseCommand):
    help = "Retry the failed transfers of one or all revenue distributions"

    def add_arguments(self, parser):
        parser.add_argument("invoice_ids", nargs="*", help="Stripe Invoice IDs (in_xxx)")
        parser.add_argument(
            "--all",
            action="store_true",
            help="Retry every failed or partially failed distribution",
        )

    def handle(self, *args, **options):
        invoice_ids = list(options["invoice_ids"])
        if options["all"]:
            invoice_ids += list(
                RevenueDistribution.objects.filter(
                    status__in=[DistributionStatus.FAILED, DistributionStatus.PARTIALLY_FAILED]
                ).values_list("invoice_id", flat=True)
            )
        invoice_ids = list(dict.fromkeys(invoice_ids))
        if not invoice_ids:
            raise CommandError("Pass invoice IDs or --all")

        still_failing = []
        for invoice_id in invoice_ids:
            try:
                result = RevenueDistributionService.retry_failed_transfers(invoice_id)
            except NotFoundError as e:
                raise CommandError(e.message) from e

            outcome = result.data
            self.stdout.write(json.dumps(outcome.to_dict(), indent=2))
            if not outcome.all_transfers_succeeded:
                still_failing.append(invoice_id)

        if still_failing:
            raise CommandError(f"Transfers still failing for: {', '.join(still_failing)}")
        self.stdout.write(self.style.SUCCESS(f"Retried {len(invoice_ids)} distribution(s)"))

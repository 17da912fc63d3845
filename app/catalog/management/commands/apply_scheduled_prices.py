"""
Django management command to apply scheduled monthly price changes.

Reads amount_next_month from every active product's metadata, replaces the
monthly price where the amount differs, and clears the schedule. Run it
from cron at the start of each billing month.

Usage:
    python manage.py apply_scheduled_prices
"""

from django.core.management.base import BaseCommand, CommandError

from catalog.services import ProductLifecycleService
from payments.exceptions import UpstreamError


class Command(BaseCommand):
    help = "Apply amount_next_month price changes to active products"

    def handle(self, *args, **options):
        try:
            changes = ProductLifecycleService.apply_scheduled_price_changes()
        except UpstreamError as e:
            raise CommandError(f"Stripe error: {e.message}") from e

        for change in changes:
            if change.error:
                self.stderr.write(f"{change.product_id}: failed ({change.error})")
            elif change.applied:
                self.stdout.write(
                    f"{change.product_id}: {change.previous_amount} -> "
                    f"{change.new_amount} ({change.price_id})"
                )
            else:
                self.stdout.write(f"{change.product_id}: unchanged, schedule cleared")

        applied = sum(1 for change in changes if change.applied)
        self.stdout.write(self.style.SUCCESS(f"Applied {applied} price change(s)"))

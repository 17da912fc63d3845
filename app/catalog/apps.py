"""
Catalog app configuration.

This app manages sellable offerings on Stripe:
- Offering creation (with an optional dynamic usage companion)
- Archiving products and their prices
- Scheduling and applying price changes
"""

from django.apps import AppConfig


class CatalogConfig(AppConfig):
    """Configuration for the catalog application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "catalog"
    verbose_name = "Catalog"

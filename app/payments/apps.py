"""
Payments app configuration.

This app provides the revenue distribution engine:
- Stripe adapter and error translation
- Revenue split calculation and transfer execution
- Stripe webhook handling

Startup validation:
    ready() builds the RevenueSplitConfig from settings once and refuses
    to start (ConfigurationError) when Stripe or revenue share settings
    are missing or out of range. Outside DEBUG the webhook signing secret
    is required too.
"""

from django.apps import AppConfig
from django.conf import settings

from core.exceptions import ConfigurationError


class PaymentsConfig(AppConfig):
    """Configuration for the payments application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "payments"
    verbose_name = "Payments"

    # Set in ready(); read through payments.services.get_revenue_split_config()
    revenue_split_config = None

    def ready(self):
        from payments.services.revenue_split import RevenueSplitConfig
        from payments.signals import register_signals

        if not settings.STRIPE_SECRET_KEY:
            raise ConfigurationError(
                "STRIPE_SECRET_KEY is required",
                details={"setting": "STRIPE_SECRET_KEY"},
            )

        if not settings.STRIPE_WEBHOOK_SECRET and not settings.DEBUG:
            raise ConfigurationError(
                "STRIPE_WEBHOOK_SECRET is required when DEBUG is off",
                details={"setting": "STRIPE_WEBHOOK_SECRET"},
            )

        self.revenue_split_config = RevenueSplitConfig.from_settings().validate()
        register_signals()

"""
Payment admin configuration.

Registers the revenue distribution models with the Django admin. Records
are read-mostly: state changes go through the service layer, and the
distribution admin exposes that as a "retry failed transfers" action.
"""

from django.contrib import admin

from payments.models import RevenueDistribution, RevenueTransfer, WebhookEvent
from payments.services import RevenueDistributionService
from payments.state_machines import DistributionStatus

__all__ = [
    "RevenueDistributionAdmin",
    "RevenueTransferAdmin",
    "WebhookEventAdmin",
]


# =============================================================================
# Revenue Distribution Admin
# =============================================================================


class RevenueTransferInline(admin.TabularInline):
    """Inline display of the transfers of a distribution."""

    model = RevenueTransfer
    extra = 0
    fields = [
        "account_type",
        "destination_account_id",
        "amount_cents",
        "currency",
        "state",
        "stripe_transfer_id",
        "attempt_count",
        "error_code",
        "error_message",
    ]
    readonly_fields = fields
    can_delete = False

    def has_add_permission(self, request, obj=None) -> bool:
        return False


@admin.register(RevenueDistribution)
class RevenueDistributionAdmin(admin.ModelAdmin):
    """
    Admin configuration for RevenueDistribution.

    One row per distributed invoice, with its transfers inline.
    """

    list_display = [
        "invoice_id",
        "subscription_id",
        "connected_account_id",
        "amount_display",
        "status",
        "created_at",
    ]
    list_filter = ["status", "currency", "created_at"]
    search_fields = [
        "invoice_id",
        "subscription_id",
        "connected_account_id",
        "stripe_event_id",
    ]
    readonly_fields = [
        "id",
        "invoice_id",
        "subscription_id",
        "connected_account_id",
        "stripe_event_id",
        "total_amount_cents",
        "platform_fee_cents",
        "fixed_account_amount_cents",
        "connected_account_amount_cents",
        "currency",
        "status",
        "created_at",
        "updated_at",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]
    inlines = [RevenueTransferInline]
    actions = ["retry_failed_transfers"]

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "invoice_id", "status", "stripe_event_id"),
            },
        ),
        (
            "Routing",
            {
                "fields": ("subscription_id", "connected_account_id"),
            },
        ),
        (
            "Split",
            {
                "fields": (
                    "total_amount_cents",
                    "platform_fee_cents",
                    "fixed_account_amount_cents",
                    "connected_account_amount_cents",
                    "currency",
                ),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
            },
        ),
    )

    @admin.display(description="Amount paid")
    def amount_display(self, obj: RevenueDistribution) -> str:
        return f"{obj.total_amount_cents / 100:.2f} {obj.currency.upper()}"

    @admin.action(description="Retry failed transfers")
    def retry_failed_transfers(self, request, queryset):
        """Re-attempt failed transfers of the selected distributions."""
        retried = 0
        for distribution in queryset.filter(
            status__in=[DistributionStatus.FAILED, DistributionStatus.PARTIALLY_FAILED]
        ):
            result = RevenueDistributionService.retry_failed_transfers(distribution.invoice_id)
            retried += len(result.data.transfers)
        self.message_user(request, f"Retried {retried} transfers.")

    def has_delete_permission(self, request, obj=None) -> bool:
        """Disable delete for distributions (audit trail)."""
        return False

    def has_add_permission(self, request) -> bool:
        """Distributions are only created from paid invoices."""
        return False


@admin.register(RevenueTransfer)
class RevenueTransferAdmin(admin.ModelAdmin):
    """
    Admin configuration for RevenueTransfer.

    Shows the Stripe error type, code and param of failed transfers.
    """

    list_display = [
        "id",
        "invoice_id",
        "account_type",
        "destination_account_id",
        "amount_cents",
        "state",
        "attempt_count",
        "created_at",
    ]
    list_filter = ["state", "account_type", "created_at"]
    search_fields = [
        "id",
        "stripe_transfer_id",
        "destination_account_id",
        "distribution__invoice_id",
    ]
    readonly_fields = [
        "id",
        "distribution",
        "account_type",
        "destination_account_id",
        "amount_cents",
        "currency",
        "description",
        "metadata",
        "state",
        "stripe_transfer_id",
        "attempt_count",
        "error_type",
        "error_code",
        "error_param",
        "error_message",
        "completed_at",
        "failed_at",
        "created_at",
        "updated_at",
    ]
    ordering = ["-created_at"]
    list_select_related = ["distribution"]

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "distribution", "account_type", "state"),
            },
        ),
        (
            "Transfer",
            {
                "fields": (
                    "destination_account_id",
                    "amount_cents",
                    "currency",
                    "description",
                    "stripe_transfer_id",
                    "attempt_count",
                ),
            },
        ),
        (
            "Error Info",
            {
                "fields": ("error_type", "error_code", "error_param", "error_message", "failed_at"),
                "classes": ("collapse",),
            },
        ),
        (
            "Metadata",
            {
                "fields": ("metadata",),
                "classes": ("collapse",),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("completed_at", "created_at", "updated_at"),
            },
        ),
    )

    @admin.display(description="Invoice")
    def invoice_id(self, obj: RevenueTransfer) -> str:
        return obj.distribution.invoice_id

    def has_delete_permission(self, request, obj=None) -> bool:
        """Disable delete for transfers (audit trail)."""
        return False

    def has_add_permission(self, request) -> bool:
        return False


# =============================================================================
# Webhook Admin
# =============================================================================


@admin.register(WebhookEvent)
class WebhookEventAdmin(admin.ModelAdmin):
    """
    Admin configuration for WebhookEvent.

    Provides visibility into webhook processing status.
    Webhook events are immutable once received.
    """

    list_display = [
        "id",
        "stripe_event_id",
        "event_type",
        "status",
        "retry_count",
        "processed_at",
        "created_at",
    ]
    list_filter = ["status", "event_type", "created_at"]
    search_fields = ["id", "stripe_event_id", "event_type"]
    readonly_fields = [
        "id",
        "created_at",
        "updated_at",
        "stripe_event_id",
        "event_type",
        "payload",
        "status",
        "processed_at",
        "retry_count",
        "error_message",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "stripe_event_id", "event_type", "status"),
            },
        ),
        (
            "Processing",
            {
                "fields": ("processed_at", "retry_count", "error_message"),
            },
        ),
        (
            "Payload",
            {
                "fields": ("payload",),
                "classes": ("collapse",),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
            },
        ),
    )

    def has_delete_permission(self, request, obj=None) -> bool:
        """Disable delete for webhook events (audit trail)."""
        return False

    def has_add_permission(self, request) -> bool:
        """Disable adding webhook events through admin."""
        return False

import uuid

import django.db.models.deletion
import django_fsm
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="RevenueDistribution",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "invoice_id",
                    models.CharField(
                        help_text="Stripe Invoice ID (in_xxx) - unique constraint for idempotency",
                        max_length=255,
                        unique=True,
                    ),
                ),
                (
                    "subscription_id",
                    models.CharField(
                        db_index=True,
                        help_text="Stripe Subscription ID (sub_xxx)",
                        max_length=255,
                    ),
                ),
                (
                    "connected_account_id",
                    models.CharField(
                        db_index=True,
                        help_text="Connected account resolved from product metadata",
                        max_length=255,
                    ),
                ),
                (
                    "stripe_event_id",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Stripe Event ID that triggered this distribution",
                        max_length=255,
                    ),
                ),
                (
                    "total_amount_cents",
                    models.PositiveBigIntegerField(
                        help_text="Amount paid on the invoice, in minor units"
                    ),
                ),
                (
                    "platform_fee_cents",
                    models.PositiveBigIntegerField(
                        help_text="Platform fee computed from the split (kept in platform balance)"
                    ),
                ),
                (
                    "fixed_account_amount_cents",
                    models.PositiveBigIntegerField(
                        help_text="Amount owed to the fixed account, in minor units"
                    ),
                ),
                (
                    "connected_account_amount_cents",
                    models.PositiveBigIntegerField(
                        help_text="Amount owed to the connected account, in minor units"
                    ),
                ),
                (
                    "currency",
                    models.CharField(
                        default="usd",
                        help_text="ISO 4217 currency code (lowercase)",
                        max_length=3,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("completed", "Completed"),
                            ("partially_failed", "Partially Failed"),
                            ("failed", "Failed"),
                        ],
                        db_index=True,
                        default="pending",
                        help_text="Aggregate outcome of the distribution's transfers",
                        max_length=20,
                    ),
                ),
            ],
            options={
                "verbose_name": "Revenue Distribution",
                "verbose_name_plural": "Revenue Distributions",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="WebhookEvent",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "stripe_event_id",
                    models.CharField(
                        help_text="Stripe Event ID (evt_xxx) - unique constraint for idempotency",
                        max_length=255,
                        unique=True,
                    ),
                ),
                (
                    "event_type",
                    models.CharField(
                        db_index=True,
                        help_text="Stripe event type (e.g., 'invoice.payment_succeeded')",
                        max_length=100,
                    ),
                ),
                (
                    "payload",
                    models.JSONField(help_text="Full webhook payload from Stripe (JSON)"),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("processing", "Processing"),
                            ("processed", "Processed"),
                            ("failed", "Failed"),
                        ],
                        db_index=True,
                        default="pending",
                        help_text="Current processing status",
                        max_length=20,
                    ),
                ),
                (
                    "processed_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When event was successfully processed",
                        null=True,
                    ),
                ),
                (
                    "error_message",
                    models.TextField(
                        blank=True,
                        help_text="Error message if processing failed",
                        null=True,
                    ),
                ),
                (
                    "retry_count",
                    models.PositiveSmallIntegerField(
                        default=0, help_text="Number of processing attempts"
                    ),
                ),
            ],
            options={
                "verbose_name": "Webhook Event",
                "verbose_name_plural": "Webhook Events",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["status", "created_at"],
                        name="payments_we_status_5c1f0e_idx",
                    ),
                    models.Index(
                        fields=["event_type", "created_at"],
                        name="payments_we_event_t_8a2d41_idx",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="RevenueTransfer",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "account_type",
                    models.CharField(
                        choices=[("fixed", "Fixed Account"), ("connected", "Connected Account")],
                        help_text="Which revenue share this transfer pays out",
                        max_length=20,
                    ),
                ),
                (
                    "destination_account_id",
                    models.CharField(
                        help_text="Destination Stripe Connect account ID (acct_xxx)",
                        max_length=255,
                    ),
                ),
                (
                    "amount_cents",
                    models.PositiveBigIntegerField(
                        help_text="Transfer amount in smallest currency unit (e.g., cents)"
                    ),
                ),
                (
                    "currency",
                    models.CharField(
                        default="usd",
                        help_text="ISO 4217 currency code (lowercase)",
                        max_length=3,
                    ),
                ),
                (
                    "description",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Description sent with the Stripe transfer",
                        max_length=255,
                    ),
                ),
                (
                    "metadata",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text="Metadata sent with the Stripe transfer",
                    ),
                ),
                (
                    "state",
                    django_fsm.FSMField(
                        choices=[
                            ("pending", "Pending"),
                            ("processing", "Processing"),
                            ("succeeded", "Succeeded"),
                            ("failed", "Failed"),
                        ],
                        db_index=True,
                        default="pending",
                        help_text="Current state of the transfer (managed by FSM)",
                        max_length=50,
                        protected=True,
                    ),
                ),
                (
                    "stripe_transfer_id",
                    models.CharField(
                        blank=True,
                        help_text="Stripe Transfer ID (tr_xxx)",
                        max_length=255,
                        null=True,
                        unique=True,
                    ),
                ),
                (
                    "attempt_count",
                    models.PositiveSmallIntegerField(
                        default=0,
                        help_text="Number of platform calls made for this transfer",
                    ),
                ),
                ("error_type", models.CharField(blank=True, default="", max_length=100)),
                ("error_code", models.CharField(blank=True, default="", max_length=100)),
                ("error_param", models.CharField(blank=True, default="", max_length=100)),
                ("error_message", models.TextField(blank=True, default="")),
                (
                    "completed_at",
                    models.DateTimeField(
                        blank=True, help_text="When the transfer succeeded", null=True
                    ),
                ),
                (
                    "failed_at",
                    models.DateTimeField(
                        blank=True, help_text="When the transfer last failed", null=True
                    ),
                ),
                (
                    "distribution",
                    models.ForeignKey(
                        help_text="Distribution this transfer belongs to",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transfers",
                        to="payments.revenuedistribution",
                    ),
                ),
            ],
            options={
                "verbose_name": "Revenue Transfer",
                "verbose_name_plural": "Revenue Transfers",
                "ordering": ["distribution", "created_at"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("distribution", "account_type"),
                        name="revenue_transfer_unique_per_account_type",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(amount_cents__gt=0),
                        name="revenue_transfer_amount_positive",
                    ),
                ],
            },
        ),
    ]

"""
RevenueTransfer model: one revenue share transfer to one destination.

Created once per (distribution, account_type) and driven through its
lifecycle with django-fsm transitions.

Usage:
    from payments.models import RevenueTransfer

    transfer = RevenueTransfer.objects.create(
        distribution=distribution,
        account_type=RevenueAccountType.FIXED,
        destination_account_id="acct_fixed",
        amount_cents=3000,
    )
    transfer.process()   # pending -> processing (claim)
    transfer.save()

    transfer.succeed(stripe_transfer_id="tr_123")
    transfer.save()
"""

from __future__ import annotations

from django.db import models
from django.utils import timezone

from django_fsm import FSMField, transition

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel
from payments.state_machines import RevenueAccountType, RevenueTransferState


class RevenueTransfer(UUIDPrimaryKeyMixin, BaseModel):
    """
    A transfer of one revenue share from the platform balance.

    State Flow:
        PENDING -> PROCESSING -> SUCCEEDED
        PROCESSING -> FAILED -> PENDING (retry)

    Fields:
        distribution: Parent RevenueDistribution
        account_type: FIXED or CONNECTED
        destination_account_id: Stripe Connect account ID (acct_xxx)
        amount_cents: Transfer amount in minor units
        currency: ISO 4217 currency code
        description: Description sent to Stripe
        metadata: Audit metadata sent to Stripe
        state: Current FSM state
        stripe_transfer_id: Stripe Transfer ID (tr_xxx) once created
        attempt_count: Number of platform calls made
        error_type/error_code/error_param/error_message: Last failure details
        completed_at: When the transfer succeeded
        failed_at: When the transfer last failed
    """

    distribution = models.ForeignKey(
        "payments.RevenueDistribution",
        on_delete=models.PROTECT,
        related_name="transfers",
        help_text="Distribution this transfer belongs to",
    )

    account_type = models.CharField(
        max_length=20,
        choices=RevenueAccountType.choices,
        help_text="Which revenue share this transfer pays out",
    )

    destination_account_id = models.CharField(
        max_length=255,
        help_text="Destination Stripe Connect account ID (acct_xxx)",
    )

    amount_cents = models.PositiveBigIntegerField(
        help_text="Transfer amount in smallest currency unit (e.g., cents)",
    )

    currency = models.CharField(
        max_length=3,
        default="usd",
        help_text="ISO 4217 currency code (lowercase)",
    )

    description = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Description sent with the Stripe transfer",
    )

    metadata = models.JSONField(
        default=dict,
        blank=True,
        help_text="Metadata sent with the Stripe transfer",
    )

    state = FSMField(
        default=RevenueTransferState.PENDING,
        choices=RevenueTransferState.choices,
        db_index=True,
        protected=True,
        help_text="Current state of the transfer (managed by FSM)",
    )

    stripe_transfer_id = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        unique=True,
        help_text="Stripe Transfer ID (tr_xxx)",
    )

    attempt_count = models.PositiveSmallIntegerField(
        default=0,
        help_text="Number of platform calls made for this transfer",
    )

    error_type = models.CharField(max_length=100, blank=True, default="")
    error_code = models.CharField(max_length=100, blank=True, default="")
    error_param = models.CharField(max_length=100, blank=True, default="")
    error_message = models.TextField(blank=True, default="")

    completed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the transfer succeeded",
    )

    failed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the transfer last failed",
    )

    class Meta:
        ordering = ["distribution", "created_at"]
        verbose_name = "Revenue Transfer"
        verbose_name_plural = "Revenue Transfers"
        constraints = [
            models.UniqueConstraint(
                fields=["distribution", "account_type"],
                name="revenue_transfer_unique_per_account_type",
            ),
            models.CheckConstraint(
                condition=models.Q(amount_cents__gt=0),
                name="revenue_transfer_amount_positive",
            ),
        ]

    def __str__(self) -> str:
        amount_display = f"{self.amount_cents / 100:.2f} {self.currency.upper()}"
        return f"RevenueTransfer({self.account_type}, {self.state}, {amount_display})"

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=state,
        source=RevenueTransferState.PENDING,
        target=RevenueTransferState.PROCESSING,
    )
    def process(self):
        """
        Claim the transfer for a platform call.

        Transition: PENDING -> PROCESSING
        """
        self.attempt_count += 1

    @transition(
        field=state,
        source=RevenueTransferState.PROCESSING,
        target=RevenueTransferState.SUCCEEDED,
    )
    def succeed(self, stripe_transfer_id: str):
        """
        Record the created Stripe transfer.

        Transition: PROCESSING -> SUCCEEDED
        """
        self.stripe_transfer_id = stripe_transfer_id
        self.completed_at = timezone.now()
        self.error_type = ""
        self.error_code = ""
        self.error_param = ""
        self.error_message = ""

    @transition(
        field=state,
        source=RevenueTransferState.PROCESSING,
        target=RevenueTransferState.FAILED,
    )
    def fail(
        self,
        message: str,
        error_type: str | None = None,
        error_code: str | None = None,
        error_param: str | None = None,
    ):
        """
        Record a failed platform call.

        Transition: PROCESSING -> FAILED
        """
        self.failed_at = timezone.now()
        self.error_message = message
        self.error_type = error_type or ""
        self.error_code = error_code or ""
        self.error_param = error_param or ""

    @transition(
        field=state,
        source=RevenueTransferState.FAILED,
        target=RevenueTransferState.PENDING,
    )
    def retry(self):
        """
        Make a failed transfer eligible for another attempt.

        Transition: FAILED -> PENDING

        Error details are kept until the next attempt overwrites them.
        """

    # ==========================================================================
    # Properties
    # ==========================================================================

    @property
    def is_succeeded(self) -> bool:
        return self.state == RevenueTransferState.SUCCEEDED

    @property
    def can_retry(self) -> bool:
        return self.state == RevenueTransferState.FAILED

    @property
    def idempotency_entity(self) -> str:
        """Stable entity id for idempotency keys: "{invoice_id}:{account_type}"."""
        return f"{self.distribution.invoice_id}:{self.account_type}"

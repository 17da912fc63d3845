"""
WebhookEvent model: the inbound Stripe event log.

Every event envelope that carries an id is recorded here before it is
dispatched. The unique stripe_event_id lets a redelivered event that was
already processed be acknowledged without dispatching it again, and the
stored payload lets operators inspect and replay failures.

Usage:
    from payments.models import WebhookEvent

    event, created = WebhookEvent.objects.get_or_create(
        stripe_event_id=payload["id"],
        defaults={"event_type": payload.get("type", ""), "payload": payload},
    )
    if event.is_processed:
        return JsonResponse({"received": True, "duplicate": True})
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.db import models
from django.utils import timezone

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel
from payments.state_machines import WebhookEventStatus

if TYPE_CHECKING:
    from typing import Any


class WebhookEvent(UUIDPrimaryKeyMixin, BaseModel):
    """
    A Stripe webhook delivery and its processing outcome.

    Processing Flow:
        1. Envelope parsed (and signature verified when configured)
        2. get_or_create by stripe_event_id
        3. Already PROCESSED -> acknowledge as duplicate
        4. mark_processing(), dispatch by event type
        5. mark_processed() or mark_failed(error)

    Fields:
        stripe_event_id: Unique Stripe Event ID (evt_xxx)
        event_type: Type of webhook event
        payload: Full JSON envelope from Stripe
        status: Processing status
        processed_at: When event was successfully processed
        error_message: Error details if processing failed
        retry_count: Number of processing attempts

    Note:
        Envelopes without an id are dispatched with an unsaved instance;
        invoice-level deduplication still applies through
        RevenueDistribution.invoice_id.
    """

    stripe_event_id = models.CharField(
        max_length=255,
        unique=True,
        help_text="Stripe Event ID (evt_xxx) - unique constraint for idempotency",
    )

    event_type = models.CharField(
        max_length=100,
        db_index=True,
        help_text="Stripe event type (e.g., 'invoice.payment_succeeded')",
    )

    payload = models.JSONField(
        help_text="Full webhook payload from Stripe (JSON)",
    )

    status = models.CharField(
        max_length=20,
        choices=WebhookEventStatus.choices,
        default=WebhookEventStatus.PENDING,
        db_index=True,
        help_text="Current processing status",
    )

    processed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When event was successfully processed",
    )

    error_message = models.TextField(
        null=True,
        blank=True,
        help_text="Error message if processing failed",
    )

    retry_count = models.PositiveSmallIntegerField(
        default=0,
        help_text="Number of processing attempts",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Webhook Event"
        verbose_name_plural = "Webhook Events"
        indexes = [
            models.Index(fields=["status", "created_at"], name="payments_we_status_5c1f0e_idx"),
            models.Index(
                fields=["event_type", "created_at"], name="payments_we_event_t_8a2d41_idx"
            ),
        ]

    def __str__(self) -> str:
        return f"WebhookEvent({self.stripe_event_id}, {self.event_type})"

    @property
    def is_processed(self) -> bool:
        return self.status == WebhookEventStatus.PROCESSED

    @property
    def is_failed(self) -> bool:
        return self.status == WebhookEventStatus.FAILED

    def mark_processing(self) -> None:
        """Mark event as being processed. Caller saves."""
        self.status = WebhookEventStatus.PROCESSING
        self.retry_count += 1

    def mark_processed(self) -> None:
        """Mark event as successfully processed. Caller saves."""
        self.status = WebhookEventStatus.PROCESSED
        self.processed_at = timezone.now()
        self.error_message = None

    def mark_failed(self, error_message: str) -> None:
        """Mark event as failed with error message. Caller saves."""
        self.status = WebhookEventStatus.FAILED
        self.error_message = error_message

    def get_object(self) -> dict[str, Any]:
        """Return payload.data.object, or an empty dict when absent."""
        data = self.payload.get("data") if isinstance(self.payload, dict) else None
        obj = data.get("object") if isinstance(data, dict) else None
        return obj if isinstance(obj, dict) else {}

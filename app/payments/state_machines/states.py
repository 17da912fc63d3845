"""
State enums for payment models.

This module defines all state enums used by payment models with django-fsm.
These are Django TextChoices for database storage and admin integration.

State Machines Overview:

RevenueTransfer States:
    pending → processing → succeeded
    pending → processing → failed → pending (operator retry)

RevenueDistribution Status (derived from its transfers):
    pending → completed / partially_failed / failed

WebhookEvent Status:
    pending → processing → processed
    pending → processing → failed (redelivery re-dispatches)
"""

from django.db import models


class RevenueTransferState(models.TextChoices):
    """
    States for the RevenueTransfer model lifecycle.

    Terminal states: SUCCEEDED, FAILED (but can retry from FAILED)

    State Flow:
        PENDING → PROCESSING → SUCCEEDED
        PROCESSING → FAILED → PENDING (retry)

    A transfer is claimed (moved to PROCESSING) inside the same transaction
    that creates its distribution, before the platform is called.
    """

    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    SUCCEEDED = "succeeded", "Succeeded"
    FAILED = "failed", "Failed"


class DistributionStatus(models.TextChoices):
    """
    Aggregate status of a RevenueDistribution.

    PENDING while transfers are in flight; afterwards reflects how many of
    the distribution's transfers succeeded.
    """

    PENDING = "pending", "Pending"
    COMPLETED = "completed", "Completed"
    PARTIALLY_FAILED = "partially_failed", "Partially Failed"
    FAILED = "failed", "Failed"


class RevenueAccountType(models.TextChoices):
    """
    Destination role of a revenue share transfer.

    FIXED is the statically configured beneficiary; CONNECTED is the account
    resolved from the subscription's product metadata.
    """

    FIXED = "fixed", "Fixed Account"
    CONNECTED = "connected", "Connected Account"


class WebhookEventStatus(models.TextChoices):
    """
    Processing status for WebhookEvent.

    Tracks the lifecycle of webhook event processing for idempotency.

    State Flow:
        PENDING → PROCESSING → PROCESSED
        PENDING → PROCESSING → FAILED (can retry)
    """

    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    PROCESSED = "processed", "Processed"
    FAILED = "failed", "Failed"

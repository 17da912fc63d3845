"""
Payment-specific exceptions for payment platform operations.

Exception Hierarchy:
    ExternalServiceError (core)
    └── UpstreamError - Base for all payment platform failures
        ├── StripeInvalidRequestError - Invalid request params (permanent)
        │   ├── StripeResourceNotFoundError - Referenced object missing (permanent)
        │   ├── StripeInvalidAccountError - Bad destination/connected account (permanent)
        │   └── StripeInsufficientFundsError - Platform balance too low (permanent)
        ├── StripeAuthenticationError - Bad or revoked API key (permanent)
        ├── StripeSignatureError - Webhook signature verification failed (permanent)
        ├── StripeRateLimitError - Rate limited (transient)
        ├── StripeAPIUnavailableError - API unavailable / 5xx (transient)
        ├── StripeConnectionError - Network failure or timeout (transient)
        └── OfferingCreationError - Multi-step offering creation stopped part way

    ConflictError (core)
    └── InvalidStateTransitionError - FSM transition not allowed

Every UpstreamError carries the platform's error ``type``, ``code`` and
``param`` plus the raw JSON error body, so operators can diagnose failed
transfers and catalog calls from logs and admin alone.

Usage:
    from payments.exceptions import UpstreamError

    try:
        StripeAdapter.create_transfer(...)
    except UpstreamError as e:
        transfer.error_type = e.error_type
        transfer.error_code = e.stripe_code
        transfer.error_param = e.param
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import ConflictError, ExternalServiceError

if TYPE_CHECKING:
    from typing import Any


# =============================================================================
# Upstream Platform Exceptions
# =============================================================================


class UpstreamError(ExternalServiceError):
    """
    Raised when the payment platform's API does not succeed.

    Attributes:
        error_type: Platform error category (e.g. "invalid_request_error")
        stripe_code: Platform error code (e.g. "balance_insufficient")
        param: Request parameter the platform blamed, if any
        decline_code: Card decline code, if any
        http_status: HTTP status returned by the platform
        upstream_body: Parsed JSON error body returned by the platform
        is_retryable: Whether the same call may succeed if repeated

    Note:
        is_retryable is advisory. Money movement is never retried
        automatically; see TransferExecutor.
    """

    default_error_code: str = "UPSTREAM_ERROR"
    is_retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        error_type: str | None = None,
        stripe_code: str | None = None,
        param: str | None = None,
        decline_code: str | None = None,
        http_status: int | None = None,
        upstream_body: Any = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if error_type:
            details["type"] = error_type
        if stripe_code:
            details["code"] = stripe_code
        if param:
            details["param"] = param
        if decline_code:
            details["decline_code"] = decline_code
        if upstream_body is not None:
            details["upstream_body"] = upstream_body
        super().__init__(message, error_code=error_code, details=details)
        self.error_type = error_type
        self.stripe_code = stripe_code
        self.param = param
        self.decline_code = decline_code
        self.http_status = http_status
        self.upstream_body = upstream_body


# -----------------------------------------------------------------------------
# Permanent Errors
# -----------------------------------------------------------------------------


class StripeInvalidRequestError(UpstreamError):
    """
    Invalid request parameters sent to the platform.

    The request itself is malformed and will never succeed with the same
    parameters. Check ``param`` for the offending field.
    """

    default_error_code: str = "INVALID_STRIPE_REQUEST"


class StripeResourceNotFoundError(StripeInvalidRequestError):
    """
    The referenced object (product, price, subscription, invoice) does not exist.

    Services translate this into core.exceptions.NotFoundError where a missing
    object is a caller error rather than an upstream failure.
    """

    default_error_code: str = "STRIPE_RESOURCE_MISSING"


class StripeInvalidAccountError(StripeInvalidRequestError):
    """
    Invalid connected account.

    Raised when a transfer destination is unknown, restricted, or not able
    to receive transfers. Requires fixing the account or the product's
    connected_account_id metadata.
    """

    default_error_code: str = "INVALID_STRIPE_ACCOUNT"


class StripeInsufficientFundsError(StripeInvalidRequestError):
    """
    The platform balance cannot cover the transfer.

    Stripe reports this as ``balance_insufficient``. The transfer can be
    retried by an operator once funds become available.
    """

    default_error_code: str = "INSUFFICIENT_FUNDS"


class StripeAuthenticationError(UpstreamError):
    """The API key was rejected. Treated as a configuration problem."""

    default_error_code: str = "STRIPE_AUTHENTICATION_FAILED"


class StripeSignatureError(UpstreamError):
    """
    Webhook signature verification failed.

    Raised only when STRIPE_WEBHOOK_SECRET is configured. The webhook view
    answers 400 so forged payloads are never dispatched.
    """

    default_error_code: str = "INVALID_WEBHOOK_SIGNATURE"


# -----------------------------------------------------------------------------
# Transient Errors
# -----------------------------------------------------------------------------


class StripeRateLimitError(UpstreamError):
    """Rate limited by the platform API."""

    default_error_code: str = "STRIPE_RATE_LIMITED"
    is_retryable: bool = True


class StripeAPIUnavailableError(UpstreamError):
    """
    The platform API returned a server error.

    The operation may or may not have been applied; repeat only with the
    same idempotency key.
    """

    default_error_code: str = "STRIPE_UNAVAILABLE"
    is_retryable: bool = True


class StripeConnectionError(UpstreamError):
    """
    The request could not reach the platform or timed out.

    IMPORTANT: The operation may have succeeded on the platform's side.
    A retry must reuse the original idempotency key.
    """

    default_error_code: str = "STRIPE_CONNECTION_ERROR"
    is_retryable: bool = True


# -----------------------------------------------------------------------------
# Multi-step Operations
# -----------------------------------------------------------------------------


class OfferingCreationError(UpstreamError):
    """
    Raised when creating an offering fails after some objects were created.

    The platform performs no rollback, so the error lists every object that
    already exists. Operators use it to archive the orphans or finish the
    offering by hand.

    Attributes:
        failed_step: Name of the step that failed (e.g. "dynamic_price")
        completed_steps: Steps that succeeded, in order
        created: Mapping of step name to created platform id
        partial_result: The builder's partial result objects

    Example:
        OfferingCreationError(
            "Failed to create dynamic price (step 'dynamic_price'); "
            "already created: dynamic_product=prod_123. Upstream error: ..."
        )
    """

    default_error_code: str = "OFFERING_CREATION_FAILED"

    def __init__(
        self,
        failed_step: str,
        completed_steps: list[str],
        created: dict[str, str],
        cause: UpstreamError,
        partial_result: Any = None,
    ):
        self.failed_step = failed_step
        self.completed_steps = list(completed_steps)
        self.created = dict(created)
        self.partial_result = partial_result
        self.cause = cause

        readable_step = failed_step.replace("_", " ")
        if created:
            created_text = ", ".join(f"{step}={obj_id}" for step, obj_id in created.items())
        else:
            created_text = "nothing"
        message = (
            f"Failed to create {readable_step} (step '{failed_step}'); "
            f"already created: {created_text}. Upstream error: {cause.message}"
        )

        super().__init__(
            message,
            error_type=cause.error_type,
            stripe_code=cause.stripe_code,
            param=cause.param,
            http_status=cause.http_status,
            upstream_body=cause.upstream_body,
            details={
                "failed_step": failed_step,
                "completed_steps": self.completed_steps,
                "created": self.created,
            },
        )


# =============================================================================
# State Machine Exceptions
# =============================================================================


class InvalidStateTransitionError(ConflictError):
    """
    Raised when a state machine transition is not allowed.

    Wraps django-fsm's TransitionNotAllowed to provide our standard error
    format with additional context.
    """

    default_error_code: str = "INVALID_STATE_TRANSITION"


__all__ = [
    "UpstreamError",
    "StripeInvalidRequestError",
    "StripeResourceNotFoundError",
    "StripeInvalidAccountError",
    "StripeInsufficientFundsError",
    "StripeAuthenticationError",
    "StripeSignatureError",
    "StripeRateLimitError",
    "StripeAPIUnavailableError",
    "StripeConnectionError",
    "OfferingCreationError",
    "InvalidStateTransitionError",
]

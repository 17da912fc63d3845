"""
Base exception classes for application-wide error handling.

Every domain error in the project derives from BaseApplicationError so the
API layer can translate it into a consistent JSON body and HTTP status.

Exception Hierarchy:
    BaseApplicationError (base)
    ├── ValidationError - Missing or malformed input (HTTP 400)
    ├── NotFoundError - Referenced resource does not exist (HTTP 404)
    ├── ConflictError - Operation conflicts with current state (HTTP 409)
    ├── ExternalServiceError - Upstream platform failures (HTTP 500)
    └── ConfigurationError - Missing/invalid startup configuration (fatal)

Usage:
    from core.exceptions import NotFoundError, ValidationError

    raise ValidationError("Product ID is required", details={"productId": ["required"]})

    try:
        ...
    except BaseApplicationError as e:
        return Response(e.to_dict(), status=400)

Note:
    These exceptions are for domain/business logic errors. DRF-level errors
    (parsing, serializer validation) are normalized by
    core.exception_handlers.api_exception_handler.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (field errors, upstream body, ids)
    """

    default_error_code: str = "APPLICATION_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for API response.

        Example:
            {
                "error": "Product not found",
                "error_code": "NOT_FOUND",
                "details": {"product_id": "prod_123"}
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """
    Raised when input validation fails.

    Surfaced as HTTP 400 and never retried.

    Example:
        raise ValidationError(
            "Amount for next month is required",
            details={"amountNextMonth": ["A valid number is required."]},
        )
    """

    default_error_code: str = "VALIDATION_ERROR"


class NotFoundError(BaseApplicationError):
    """
    Raised when a referenced resource does not exist.

    Covers both local records and upstream platform objects (products,
    subscriptions). Surfaced as HTTP 404.
    """

    default_error_code: str = "NOT_FOUND"


class ConflictError(BaseApplicationError):
    """
    Raised when an operation conflicts with current resource state.

    Example:
        raise ConflictError(
            "Transfer is not in a retryable state",
            error_code="INVALID_STATE_TRANSITION",
            details={"current_state": transfer.state},
        )
    """

    default_error_code: str = "CONFLICT"


class ExternalServiceError(BaseApplicationError):
    """
    Raised when an external service call fails.

    Payment platform failures use the payments.exceptions.UpstreamError
    subclass, which carries the platform's error type, code, and body.
    """

    default_error_code: str = "EXTERNAL_SERVICE_ERROR"


class ConfigurationError(BaseApplicationError):
    """
    Raised when required configuration is missing or invalid at startup.

    This error is fatal: it is raised from AppConfig.ready() so the process
    never starts serving requests with a broken configuration.

    Example:
        if not settings.STRIPE_SECRET_KEY:
            raise ConfigurationError(
                "STRIPE_SECRET_KEY is not configured",
                details={"setting": "STRIPE_SECRET_KEY"},
            )
    """

    default_error_code: str = "CONFIGURATION_ERROR"

"""
Stripe API adapter for the payment platform.

This module provides the StripeAdapter class which encapsulates all
Stripe API interactions used by revenue distribution and the product
catalog. All Stripe calls go through this adapter to ensure consistent
error handling, timeouts, idempotency, and observability.

Features:
- Configurable timeout on all API calls
- Automatic error translation to UpstreamError subclasses carrying the
  platform's error type, code, param, and JSON body
- Structured logging with timing metrics
- Idempotency keys for money movement
- Typed result dataclasses instead of raw StripeObjects

Configuration (via settings):
- STRIPE_SECRET_KEY: Stripe API secret key
- STRIPE_WEBHOOK_SECRET: Webhook signing secret (required unless DEBUG)
- STRIPE_API_VERSION: Pinned API version (optional)
- STRIPE_API_TIMEOUT_SECONDS: API call timeout (default: 10)

Usage:
    from payments.adapters import StripeAdapter

    subscription = StripeAdapter.retrieve_subscription("sub_123")
    for item in subscription.items:
        print(item.product_id, item.product_metadata)

    transfer = StripeAdapter.create_transfer(
        amount_cents=3000,
        currency="usd",
        destination_account_id="acct_123",
        description="Fixed account revenue share from subscription payment",
        metadata={"invoice_id": "in_123"},
        idempotency_key=IdempotencyKeyGenerator.generate(
            "revenue_transfer", "in_123:fixed", 1
        ),
    )
"""

from __future__ import annotations

import hashlib
import json
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import stripe
from django.conf import settings

from payments.exceptions import (
    StripeAPIUnavailableError,
    StripeAuthenticationError,
    StripeConnectionError,
    StripeInsufficientFundsError,
    StripeInvalidAccountError,
    StripeInvalidRequestError,
    StripeRateLimitError,
    StripeResourceNotFoundError,
    StripeSignatureError,
    UpstreamError,
)

if TYPE_CHECKING:
    from collections.abc import Callable

# Stripe caps list pages at 100 objects
LIST_PAGE_SIZE = 100


def _to_dict(obj: Any) -> dict[str, Any]:
    """Convert a StripeObject (or plain dict) into a plain dict."""
    if obj is None:
        return {}
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    if isinstance(obj, dict):
        return dict(obj)
    return {}


def _string_metadata(metadata: Any) -> dict[str, str]:
    return {str(key): str(value) for key, value in _to_dict(metadata).items()}


# =============================================================================
# Data Types
# =============================================================================


@dataclass
class ProductResult:
    """
    Result from Stripe Product operations.

    Attributes:
        id: Product ID (prod_xxx)
        name: Display name
        description: Optional description
        active: False once archived
        metadata: Routing metadata (connected_account_id, frequency, ...)
        raw_response: Full Stripe response dict
    """

    id: str
    name: str
    active: bool
    description: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)
    raw_response: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_stripe(cls, product: Any) -> ProductResult:
        data = _to_dict(product)
        return cls(
            id=data["id"],
            name=data.get("name") or "",
            active=bool(data.get("active", True)),
            description=data.get("description"),
            metadata=_string_metadata(data.get("metadata")),
            raw_response=data,
        )


@dataclass
class PriceResult:
    """
    Result from Stripe Price operations.

    Attributes:
        id: Price ID (price_xxx)
        product_id: Owning product ID
        unit_amount: Amount in minor currency units
        currency: Lowercase ISO currency code
        active: False once archived
        recurring_interval: "month", "year", ... or None for one-time prices
        product: Expanded product, when the list call requested it
        raw_response: Full Stripe response dict
    """

    id: str
    product_id: str
    unit_amount: int | None
    currency: str
    active: bool
    recurring_interval: str | None = None
    product: ProductResult | None = None
    raw_response: dict[str, Any] = field(default_factory=dict)

    @property
    def recurring(self) -> dict[str, Any] | None:
        return self.raw_response.get("recurring")

    @classmethod
    def from_stripe(cls, price: Any) -> PriceResult:
        data = _to_dict(price)
        product = data.get("product")
        expanded_product = None
        if isinstance(product, dict):
            expanded_product = ProductResult.from_stripe(product)
            product_id = expanded_product.id
        else:
            product_id = product or ""
        recurring = data.get("recurring") or {}
        return cls(
            id=data["id"],
            product_id=product_id,
            unit_amount=data.get("unit_amount"),
            currency=data.get("currency") or "",
            active=bool(data.get("active", True)),
            recurring_interval=recurring.get("interval"),
            product=expanded_product,
            raw_response=data,
        )


@dataclass
class SubscriptionItemResult:
    """
    One line item of a subscription, with its product flattened in.

    product_metadata is empty when the product was not expanded.
    """

    id: str
    price_id: str | None
    product_id: str | None
    product_name: str | None = None
    product_metadata: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_stripe(cls, item: Any) -> SubscriptionItemResult:
        data = _to_dict(item)
        price = data.get("price") or {}
        product = price.get("product")
        if isinstance(product, dict):
            return cls(
                id=data.get("id", ""),
                price_id=price.get("id"),
                product_id=product.get("id"),
                product_name=product.get("name"),
                product_metadata=_string_metadata(product.get("metadata")),
            )
        return cls(
            id=data.get("id", ""),
            price_id=price.get("id"),
            product_id=product,
        )


@dataclass
class SubscriptionResult:
    """
    Result from Stripe Subscription retrieval.

    Attributes:
        id: Subscription ID (sub_xxx)
        status: Subscription status
        customer_id: Customer ID (cus_xxx)
        items: Line items in the order Stripe stores them
        raw_response: Full Stripe response dict
    """

    id: str
    status: str
    customer_id: str | None
    items: list[SubscriptionItemResult] = field(default_factory=list)
    raw_response: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_stripe(cls, subscription: Any) -> SubscriptionResult:
        data = _to_dict(subscription)
        # data["items"] rather than attribute access: StripeObject.items is dict.items
        items = (data.get("items") or {}).get("data") or []
        customer = data.get("customer")
        if isinstance(customer, dict):
            customer = customer.get("id")
        return cls(
            id=data["id"],
            status=data.get("status") or "",
            customer_id=customer,
            items=[SubscriptionItemResult.from_stripe(item) for item in items],
            raw_response=data,
        )


@dataclass
class InvoiceResult:
    """Result from Stripe Invoice retrieval."""

    id: str
    amount_paid: int
    currency: str
    status: str | None = None
    raw_response: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_stripe(cls, invoice: Any) -> InvoiceResult:
        data = _to_dict(invoice)
        return cls(
            id=data["id"],
            amount_paid=int(data.get("amount_paid") or 0),
            currency=data.get("currency") or "",
            status=data.get("status"),
            raw_response=data,
        )


@dataclass
class TransferResult:
    """
    Result from Stripe Transfer operations.

    Attributes:
        id: Transfer ID (tr_xxx)
        amount_cents: Amount transferred in cents
        currency: Currency code
        destination_account: Destination Stripe account ID
        description: Transfer description
        metadata: Attached metadata
        raw_response: Full Stripe response dict
    """

    id: str
    amount_cents: int
    currency: str
    destination_account: str
    description: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)
    raw_response: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_stripe(cls, transfer: Any) -> TransferResult:
        data = _to_dict(transfer)
        return cls(
            id=data["id"],
            amount_cents=int(data.get("amount") or 0),
            currency=data.get("currency") or "",
            destination_account=data.get("destination") or "",
            description=data.get("description"),
            metadata=_string_metadata(data.get("metadata")),
            raw_response=data,
        )


@dataclass
class ConnectedAccountResult:
    """
    Result from Stripe Account retrieval.

    Attributes:
        id: Account ID (acct_xxx)
        email: Account email, if shared with the platform
        business_name: Business profile name, if set
        country: Two-letter country code
        charges_enabled: Whether the account can accept charges
        payouts_enabled: Whether the account can receive payouts
        details_submitted: Whether onboarding details were submitted
        raw_response: Full Stripe response dict
    """

    id: str
    email: str | None = None
    business_name: str | None = None
    country: str | None = None
    charges_enabled: bool = False
    payouts_enabled: bool = False
    details_submitted: bool = False
    raw_response: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_stripe(cls, account: Any) -> ConnectedAccountResult:
        data = _to_dict(account)
        business_profile = data.get("business_profile") or {}
        return cls(
            id=data["id"],
            email=data.get("email"),
            business_name=business_profile.get("name"),
            country=data.get("country"),
            charges_enabled=bool(data.get("charges_enabled")),
            payouts_enabled=bool(data.get("payouts_enabled")),
            details_submitted=bool(data.get("details_submitted")),
            raw_response=data,
        )


# =============================================================================
# Idempotency Key Generation
# =============================================================================


class IdempotencyKeyGenerator:
    """
    Generate idempotency keys for Stripe API calls.

    Format: "{operation}:{entity_id}:{attempt}:{hash}"

    Keys are deterministic: the same operation, entity and attempt always
    produce the same key, so a repeated call after a timeout returns the
    original transfer instead of creating a second one.

    Example:
        key = IdempotencyKeyGenerator.generate(
            operation="revenue_transfer",
            entity_id="in_123:fixed",
            attempt=1,
        )
        # Result: "revenue_transfer:in_123:fixed:1:a1b2c3d4"
    """

    @staticmethod
    def generate(
        operation: str,
        entity_id: uuid.UUID | str,
        attempt: int = 1,
    ) -> str:
        entity_str = str(entity_id)
        # Short hash keyed with SECRET_KEY keeps keys unguessable across environments
        hash_input = f"{operation}:{entity_str}:{attempt}:{settings.SECRET_KEY}"
        short_hash = hashlib.sha256(hash_input.encode()).hexdigest()[:8]

        return f"{operation}:{entity_str}:{attempt}:{short_hash}"


# =============================================================================
# Adapter
# =============================================================================


class StripeAdapter:
    """
    Adapter for Stripe API operations.

    All methods are classmethods - no instance state is maintained.

    Every public method builds a log context, runs the SDK call through
    _execute (timing, logging, error translation) and wraps the response
    in a result dataclass.

    Usage:
        product = StripeAdapter.create_product(name="Gold", metadata={...})
        prices = StripeAdapter.list_prices(product_id=product.id, active=True)
    """

    # =========================================================================
    # Configuration
    # =========================================================================

    @staticmethod
    def _configure_stripe() -> None:
        """Configure Stripe client with API key, version and timeout."""
        stripe.api_key = settings.STRIPE_SECRET_KEY
        api_version = getattr(settings, "STRIPE_API_VERSION", "")
        if api_version:
            stripe.api_version = api_version
        timeout = getattr(settings, "STRIPE_API_TIMEOUT_SECONDS", 10)
        stripe.default_http_client = stripe.RequestsClient(timeout=timeout)

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Get logger for this adapter."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    def _execute(cls, log_context: dict[str, Any], call: Callable[[], Any]) -> Any:
        """
        Run a single SDK call with timing, logging and error translation.

        Raises:
            UpstreamError: Any Stripe SDK failure, translated
        """
        cls._configure_stripe()
        logger = cls.get_logger()

        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        try:
            response = call()
        except stripe.StripeError as e:
            duration_ms = (time.time() - start_time) * 1000
            cls._handle_stripe_error(e, log_context, duration_ms)
            raise

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "Stripe operation completed",
            extra={**log_context, "duration_ms": duration_ms},
        )
        return response

    # =========================================================================
    # Products
    # =========================================================================

    @classmethod
    def create_product(
        cls,
        name: str,
        description: str | None = None,
        metadata: dict[str, str] | None = None,
        active: bool = True,
    ) -> ProductResult:
        """
        Create a product.

        Args:
            name: Display name
            description: Optional description (omitted when empty)
            metadata: Flat string-to-string metadata
            active: Whether the product is sellable (default: True)

        Raises:
            UpstreamError: The platform rejected the product
        """
        params: dict[str, Any] = {
            "name": name,
            "active": active,
            "metadata": metadata or {},
        }
        if description:
            params["description"] = description

        product = cls._execute(
            {"operation": "create_product", "product_name": name},
            lambda: stripe.Product.create(**params),
        )
        return ProductResult.from_stripe(product)

    @classmethod
    def retrieve_product(cls, product_id: str) -> ProductResult:
        """
        Retrieve a product, including archived ones.

        Raises:
            StripeResourceNotFoundError: No product with this ID
        """
        product = cls._execute(
            {"operation": "retrieve_product", "product_id": product_id},
            lambda: stripe.Product.retrieve(product_id),
        )
        return ProductResult.from_stripe(product)

    @classmethod
    def update_product(
        cls,
        product_id: str,
        *,
        active: bool | None = None,
        metadata: dict[str, str] | None = None,
        name: str | None = None,
        description: str | None = None,
    ) -> ProductResult:
        """
        Update a product. Only the given fields are sent.

        Note:
            Stripe merges metadata keys; keys omitted here are left untouched.
        """
        params: dict[str, Any] = {}
        if active is not None:
            params["active"] = active
        if metadata is not None:
            params["metadata"] = metadata
        if name is not None:
            params["name"] = name
        if description is not None:
            params["description"] = description

        product = cls._execute(
            {
                "operation": "update_product",
                "product_id": product_id,
                "fields": sorted(params),
            },
            lambda: stripe.Product.modify(product_id, **params),
        )
        return ProductResult.from_stripe(product)

    # =========================================================================
    # Prices
    # =========================================================================

    @classmethod
    def create_price(
        cls,
        product_id: str,
        unit_amount: int,
        currency: str,
        recurring_interval: str | None = "month",
        usage_type: str = "licensed",
    ) -> PriceResult:
        """
        Create a price for a product.

        Args:
            product_id: Owning product
            unit_amount: Amount in minor currency units
            currency: ISO currency code (lowercased before sending)
            recurring_interval: Billing interval, or None for a one-time price
            usage_type: "licensed" or "metered" (recurring prices only)
        """
        params: dict[str, Any] = {
            "product": product_id,
            "unit_amount": unit_amount,
            "currency": currency.lower(),
        }
        if recurring_interval:
            params["recurring"] = {
                "interval": recurring_interval,
                "usage_type": usage_type,
            }

        price = cls._execute(
            {
                "operation": "create_price",
                "product_id": product_id,
                "unit_amount": unit_amount,
                "currency": params["currency"],
                "recurring_interval": recurring_interval,
            },
            lambda: stripe.Price.create(**params),
        )
        return PriceResult.from_stripe(price)

    @classmethod
    def list_prices(
        cls,
        product_id: str | None = None,
        active: bool | None = None,
        expand_product: bool = False,
    ) -> list[PriceResult]:
        """
        List prices, following pagination until exhausted.

        Args:
            product_id: Restrict to one product
            active: Restrict to active (True) or archived (False) prices
            expand_product: Embed each price's product in the response
        """
        params: dict[str, Any] = {"limit": LIST_PAGE_SIZE}
        if product_id:
            params["product"] = product_id
        if active is not None:
            params["active"] = active
        if expand_product:
            params["expand"] = ["data.product"]

        prices: list[PriceResult] = []
        while True:
            page_params = dict(params)
            page = _to_dict(
                cls._execute(
                    {
                        "operation": "list_prices",
                        "product_id": product_id,
                        "starting_after": page_params.get("starting_after"),
                    },
                    lambda: stripe.Price.list(**page_params),
                )
            )
            data = page.get("data") or []
            prices.extend(PriceResult.from_stripe(price) for price in data)

            if not page.get("has_more") or not data:
                break
            params["starting_after"] = prices[-1].id

        return prices

    @classmethod
    def update_price(cls, price_id: str, *, active: bool) -> PriceResult:
        """Activate or archive a price. Prices cannot be deleted."""
        price = cls._execute(
            {"operation": "update_price", "price_id": price_id, "active": active},
            lambda: stripe.Price.modify(price_id, active=active),
        )
        return PriceResult.from_stripe(price)

    # =========================================================================
    # Subscriptions & Invoices
    # =========================================================================

    @classmethod
    def retrieve_subscription(cls, subscription_id: str) -> SubscriptionResult:
        """
        Retrieve a subscription with each line item's product expanded.

        Raises:
            StripeResourceNotFoundError: No subscription with this ID
        """
        subscription = cls._execute(
            {"operation": "retrieve_subscription", "subscription_id": subscription_id},
            lambda: stripe.Subscription.retrieve(
                subscription_id,
                expand=["items.data.price.product"],
            ),
        )
        return SubscriptionResult.from_stripe(subscription)

    @classmethod
    def retrieve_invoice(cls, invoice_id: str) -> InvoiceResult:
        """
        Retrieve an invoice.

        Raises:
            StripeResourceNotFoundError: No invoice with this ID
        """
        invoice = cls._execute(
            {"operation": "retrieve_invoice", "invoice_id": invoice_id},
            lambda: stripe.Invoice.retrieve(invoice_id),
        )
        return InvoiceResult.from_stripe(invoice)

    # =========================================================================
    # Transfers
    # =========================================================================

    @classmethod
    def create_transfer(
        cls,
        amount_cents: int,
        currency: str,
        destination_account_id: str,
        idempotency_key: str,
        description: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> TransferResult:
        """
        Create a transfer from the platform balance to a connected account.

        Args:
            amount_cents: Amount to transfer in cents
            currency: Currency code
            destination_account_id: Stripe Connect account ID (acct_xxx)
            idempotency_key: Key making repeated calls return the same transfer
            description: Human-readable description
            metadata: Audit metadata (invoice, subscription, account type)

        Raises:
            StripeInvalidAccountError: Invalid destination account
            StripeInsufficientFundsError: Insufficient platform balance
        """
        params: dict[str, Any] = {
            "amount": amount_cents,
            "currency": currency.lower(),
            "destination": destination_account_id,
            "metadata": metadata or {},
        }
        if description:
            params["description"] = description

        transfer = cls._execute(
            {
                "operation": "create_transfer",
                "amount_cents": amount_cents,
                "destination_account": destination_account_id,
                "idempotency_key": idempotency_key,
            },
            lambda: stripe.Transfer.create(idempotency_key=idempotency_key, **params),
        )
        return TransferResult.from_stripe(transfer)

    # =========================================================================
    # Connected Accounts
    # =========================================================================

    @classmethod
    def list_connected_accounts(cls, limit: int = LIST_PAGE_SIZE) -> list[ConnectedAccountResult]:
        """List connected accounts (first page only, up to ``limit``)."""
        page = _to_dict(
            cls._execute(
                {"operation": "list_connected_accounts", "limit": limit},
                lambda: stripe.Account.list(limit=limit),
            )
        )
        return [ConnectedAccountResult.from_stripe(acct) for acct in page.get("data") or []]

    @classmethod
    def retrieve_account(cls, account_id: str) -> ConnectedAccountResult:
        """Retrieve a single connected account."""
        account = cls._execute(
            {"operation": "retrieve_account", "account_id": account_id},
            lambda: stripe.Account.retrieve(account_id),
        )
        return ConnectedAccountResult.from_stripe(account)

    @classmethod
    def retrieve_platform_account(cls) -> ConnectedAccountResult:
        """Retrieve the platform's own account (the API key's owner)."""
        account = cls._execute(
            {"operation": "retrieve_platform_account"},
            lambda: stripe.Account.retrieve(),
        )
        return ConnectedAccountResult.from_stripe(account)

    # =========================================================================
    # Webhook Verification
    # =========================================================================

    @classmethod
    def construct_webhook_event(
        cls,
        payload: bytes,
        signature: str,
    ) -> dict[str, Any]:
        """
        Verify and parse a Stripe webhook event.

        Args:
            payload: Raw webhook payload bytes
            signature: Stripe-Signature header value

        Returns:
            Parsed event data dict

        Raises:
            StripeSignatureError: Missing or invalid signature
        """
        try:
            event = stripe.Webhook.construct_event(
                payload,
                signature,
                settings.STRIPE_WEBHOOK_SECRET,
            )
        except stripe.SignatureVerificationError as e:
            raise StripeSignatureError(
                "Invalid webhook signature",
                stripe_code="signature_verification_failed",
                details={"error": str(e)},
            ) from e
        return _to_dict(event)

    # =========================================================================
    # Error Handling
    # =========================================================================

    @staticmethod
    def _error_fields(error: stripe.StripeError) -> dict[str, Any]:
        """Pull type, code, param and body out of an SDK error."""
        json_body = error.json_body if isinstance(error.json_body, dict) else {}
        body_error = json_body.get("error") or {}
        return {
            "error_type": body_error.get("type"),
            "stripe_code": error.code or body_error.get("code"),
            "param": getattr(error, "param", None) or body_error.get("param"),
            "decline_code": body_error.get("decline_code"),
            "http_status": error.http_status,
            "upstream_body": json_body or error.http_body,
        }

    @staticmethod
    def _with_body(message: str, upstream_body: Any) -> str:
        """Append the upstream error body to an exception message."""
        if not upstream_body:
            return message
        if isinstance(upstream_body, dict):
            upstream_body = json.dumps(upstream_body, sort_keys=True)
        return f"{message} ({upstream_body})"

    @classmethod
    def _handle_stripe_error(
        cls,
        error: stripe.StripeError,
        log_context: dict[str, Any],
        duration_ms: float,
    ) -> None:
        """
        Translate Stripe exceptions to domain exceptions.

        The upstream error body, when Stripe sent one, is appended to the
        message and kept on ``upstream_body``.

        Raises:
            StripeInsufficientFundsError: Platform balance too low
            StripeInvalidAccountError: Invalid Connect account
            StripeResourceNotFoundError: Referenced object missing
            StripeInvalidRequestError: Invalid request parameters
            StripeAuthenticationError: API key rejected
            StripeRateLimitError: Rate limited
            StripeConnectionError: Network failure or timeout
            StripeAPIUnavailableError: Stripe server error
            UpstreamError: Anything else the SDK raised
        """
        logger = cls.get_logger()
        fields = cls._error_fields(error)
        message = str(error.user_message or error)
        detailed = cls._with_body(message, fields["upstream_body"])

        log_context = {
            **log_context,
            "duration_ms": duration_ms,
            "stripe_code": fields["stripe_code"],
            "stripe_param": fields["param"],
            "http_status": fields["http_status"],
        }

        if isinstance(error, stripe.InvalidRequestError):
            logger.error("Invalid request to Stripe", extra=log_context)

            code = fields["stripe_code"]
            if code == "balance_insufficient":
                raise StripeInsufficientFundsError(detailed, **fields) from error
            if fields["param"] == "destination":
                raise StripeInvalidAccountError(detailed, **fields) from error
            if code == "resource_missing" or fields["http_status"] == 404:
                raise StripeResourceNotFoundError(detailed, **fields) from error
            if "account" in message.lower():
                raise StripeInvalidAccountError(detailed, **fields) from error
            raise StripeInvalidRequestError(detailed, **fields) from error

        elif isinstance(error, stripe.AuthenticationError):
            logger.critical(
                "Stripe authentication failed - check API key",
                extra=log_context,
            )
            raise StripeAuthenticationError(
                cls._with_body("Stripe authentication failed", fields["upstream_body"]),
                **fields,
            ) from error

        elif isinstance(error, stripe.RateLimitError):
            logger.warning("Rate limited by Stripe", extra=log_context)
            raise StripeRateLimitError(
                cls._with_body(
                    "Stripe rate limit exceeded. Please retry.", fields["upstream_body"]
                ),
                **fields,
            ) from error

        elif isinstance(error, stripe.APIConnectionError):
            logger.error("Connection error to Stripe", extra=log_context, exc_info=True)
            raise StripeConnectionError(
                "Could not connect to Stripe. Please retry.", **fields
            ) from error

        elif isinstance(error, stripe.APIError):
            logger.error("Stripe API error", extra=log_context, exc_info=True)
            raise StripeAPIUnavailableError(
                f"Stripe service error: {detailed}", **fields
            ) from error

        logger.error(
            f"Unexpected error from Stripe: {type(error).__name__}",
            extra=log_context,
            exc_info=True,
        )
        raise UpstreamError(f"Stripe error: {detailed}", **fields) from error

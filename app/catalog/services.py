"""
Product lifecycle service for the Stripe catalog.

This module provides:
- ProductLifecycleService: Create, archive and re-price offerings
- OfferingBuilder: Step recorder for multi-object offering creation
- flatten_metadata: Nested metadata to Stripe's flat string map

Every product created here carries the metadata revenue distribution reads
later, most importantly ``connected_account_id``. Products and prices are
archived (active=False), never deleted: paid invoices keep referencing them.

Usage:
    from catalog.services import OfferingRequest, ProductLifecycleService

    offering = ProductLifecycleService.create_offering(
        OfferingRequest(
            name="Gold Plan",
            price=Decimal("19.99"),
            currency="usd",
            connected_account_id="acct_123",
            include_dynamic_charge=True,
        )
    )
    print(offering.product.id, offering.dynamic_product.id)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING

from django.conf import settings

from core.exceptions import NotFoundError
from core.services import BaseService

from payments.adapters import StripeAdapter
from payments.exceptions import (
    OfferingCreationError,
    StripeResourceNotFoundError,
    UpstreamError,
)
from payments.services.revenue_split import round_half_away_from_zero

if TYPE_CHECKING:
    from collections.abc import Callable
    from typing import Any

    from payments.adapters import ConnectedAccountResult, PriceResult, ProductResult


# =============================================================================
# Constants
# =============================================================================

DYNAMIC_PRODUCT_SUFFIX = " - Dynamic"
DYNAMIC_PRODUCT_DEFAULT_DESCRIPTION = "Dynamic usage-based pricing"

# Nominal amount for the licensed stand-in of a metered price
DYNAMIC_PRICE_UNIT_AMOUNT = 1

MONTHLY_INTERVAL = "month"
FREQUENCY_MONTHLY = "monthly"
FREQUENCY_ONE_TIME = "one-time"

AMOUNT_NEXT_MONTH_KEY = "amount_next_month"


def flatten_metadata(metadata: dict[str, Any] | None, parent_key: str = "") -> dict[str, str]:
    """
    Flatten metadata into the string-to-string map Stripe accepts.

    Nested dicts become ``parent_child`` keys, lists are joined with commas,
    booleans become "true"/"false" and None values are dropped.

    Example:
        flatten_metadata({"owner": {"id": 7}, "tags": ["a", "b"]})
        # {"owner_id": "7", "tags": "a,b"}
    """
    flat: dict[str, str] = {}
    for key, value in (metadata or {}).items():
        full_key = f"{parent_key}_{key}" if parent_key else str(key)
        if isinstance(value, dict):
            flat.update(flatten_metadata(value, full_key))
        elif value is None:
            continue
        else:
            flat[full_key] = _metadata_value(value)
    return flat


def _metadata_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(_metadata_value(item) for item in value)
    return str(value)


def to_minor_units(amount: Decimal | int | float | str) -> int:
    """Major currency units to minor units, e.g. 19.99 -> 1999."""
    return round_half_away_from_zero(Decimal(str(amount)) * 100)


def parse_scheduled_amount(value: str) -> int | None:
    """
    Parse an amount_next_month value into minor units.

    Returns None for anything that is not a finite, non-negative number,
    e.g. "abc", "NaN", "Infinity" or "-5".
    """
    try:
        amount = Decimal(value)
    except InvalidOperation:
        return None
    if not amount.is_finite() or amount < 0:
        return None
    return to_minor_units(amount)


def _price_dict(price: PriceResult) -> dict[str, Any]:
    return {
        "id": price.id,
        "unit_amount": price.unit_amount,
        "currency": price.currency,
        "recurring": price.recurring,
        "active": price.active,
    }


def product_to_dict(product: ProductResult) -> dict[str, Any]:
    return {
        "id": product.id,
        "name": product.name,
        "description": product.description,
        "metadata": product.metadata,
        "active": product.active,
    }


def _account_dict(account: ConnectedAccountResult) -> dict[str, Any]:
    return {
        "id": account.id,
        "email": account.email,
        "business_name": account.business_name,
        "country": account.country,
        "charges_enabled": account.charges_enabled,
        "payouts_enabled": account.payouts_enabled,
        "details_submitted": account.details_submitted,
    }


# =============================================================================
# Data Types
# =============================================================================


@dataclass
class OfferingRequest:
    """
    Input for create_offering.

    Attributes:
        name: Product name
        price: Monthly price in major currency units (e.g. 19.99)
        currency: ISO currency code (lowercased before use)
        description: Optional product description
        connected_account_id: Account receiving the revenue share
        account_name: Display name of that account
        metadata: Extra metadata (may be nested; flattened before sending)
        include_dynamic_charge: Also create the dynamic usage companion
        dynamic_charge_description: Description of the companion product
    """

    name: str
    price: Decimal
    currency: str = "usd"
    description: str | None = None
    connected_account_id: str | None = None
    account_name: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    include_dynamic_charge: bool = False
    dynamic_charge_description: str | None = None

    @property
    def frequency(self) -> str:
        if self.metadata.get("type") == FREQUENCY_ONE_TIME:
            return FREQUENCY_ONE_TIME
        return FREQUENCY_MONTHLY


@dataclass
class OfferingResult:
    """Objects created for an offering. Dynamic entries are None when not requested."""

    product: ProductResult | None = None
    price: PriceResult | None = None
    dynamic_product: ProductResult | None = None
    dynamic_price: PriceResult | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "product": product_to_dict(self.product) if self.product else None,
            "price": _price_dict(self.price) if self.price else None,
            "dynamicProduct": (
                {"id": self.dynamic_product.id, "name": self.dynamic_product.name}
                if self.dynamic_product
                else None
            ),
            "dynamicPrice": _price_dict(self.dynamic_price) if self.dynamic_price else None,
        }


@dataclass
class ArchiveResult:
    """Archived product and the prices archived with it."""

    product: ProductResult
    archived_prices: list[PriceResult] = field(default_factory=list)

    @property
    def message(self) -> str:
        return (
            f"Product {self.product.id} and {len(self.archived_prices)} "
            "associated prices have been archived."
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "product": product_to_dict(self.product),
            "archivedPrices": [_price_dict(price) for price in self.archived_prices],
            "message": self.message,
        }


@dataclass
class ReplacePriceResult:
    """New active price and the same-frequency prices it replaced."""

    price: PriceResult
    archived_prices: list[PriceResult] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "price": _price_dict(self.price),
            "archivedPrices": [_price_dict(price) for price in self.archived_prices],
        }


@dataclass
class ActiveOffering:
    """An active price joined with its active product."""

    price: PriceResult
    product: ProductResult | None

    def to_dict(self) -> dict[str, Any]:
        product = self.product
        return {
            "productId": product.id if product else self.price.product_id or None,
            "productName": product.name if product else None,
            "productDescription": product.description if product else None,
            "productMetadata": product.metadata if product else {},
            "priceId": self.price.id,
            "unitAmount": self.price.unit_amount,
            "currency": self.price.currency,
            "recurring": self.price.recurring,
            "connectedAccountId": (
                product.metadata.get("connected_account_id") if product else None
            ),
        }


@dataclass
class ConnectedAccountsOverview:
    """Platform account, connected accounts and their onboarding summary."""

    platform_account: ConnectedAccountResult
    accounts: list[ConnectedAccountResult] = field(default_factory=list)

    @property
    def summary(self) -> dict[str, int]:
        return {
            "total_accounts": len(self.accounts),
            "active_accounts": sum(1 for acct in self.accounts if acct.charges_enabled),
            "pending_accounts": sum(
                1
                for acct in self.accounts
                if acct.details_submitted and not acct.charges_enabled
            ),
            "incomplete_accounts": sum(
                1 for acct in self.accounts if not acct.details_submitted
            ),
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "platform_account": _account_dict(self.platform_account),
            "connected_accounts": {"data": [_account_dict(acct) for acct in self.accounts]},
            "summary": self.summary,
        }


@dataclass
class ScheduledPriceChange:
    """Result of applying one product's amount_next_month."""

    product_id: str
    previous_amount: int | None
    new_amount: int
    price_id: str | None = None
    applied: bool = False
    error: str | None = None


# =============================================================================
# Offering Builder
# =============================================================================


class OfferingBuilder:
    """
    Records each step of an offering creation.

    Stripe has no transactions, so when a step fails the objects created by
    earlier steps stay behind. The builder raises OfferingCreationError
    naming the failed step and every id already created, so an operator can
    archive the orphans or finish the offering by hand.

    Steps, in order: dynamic_product, dynamic_price, product, price.

    Usage:
        builder = OfferingBuilder()
        product = builder.run("product", lambda: adapter.create_product(...))
    """

    def __init__(self):
        self.completed_steps: list[str] = []
        self.created: dict[str, str] = {}
        self.result = OfferingResult()

    def run(self, step: str, call: Callable[[], Any]) -> Any:
        """
        Run one step and record the created object on the result.

        Raises:
            OfferingCreationError: The step failed upstream
        """
        try:
            obj = call()
        except UpstreamError as e:
            raise OfferingCreationError(
                failed_step=step,
                completed_steps=self.completed_steps,
                created=self.created,
                cause=e,
                partial_result=self.result,
            ) from e

        self.completed_steps.append(step)
        self.created[step] = obj.id
        setattr(self.result, step, obj)
        return obj


# =============================================================================
# Product Lifecycle Service
# =============================================================================


class ProductLifecycleService(BaseService):
    """
    Service for the product and price lifecycle on Stripe.

    Invariants:
        - Products and prices are archived, never deleted
        - replace_price leaves at most one active price per product and
          billing frequency
        - Metadata updates merge; keys not in the patch are preserved

    Error Handling:
        - Missing products raise NotFoundError
        - Other upstream failures raise UpstreamError (the caller may retry)
    """

    # Stripe adapter - can be injected for testing
    _stripe_adapter: type | None = None

    @classmethod
    def get_stripe_adapter(cls) -> type:
        """Get the Stripe adapter class."""
        return cls._stripe_adapter or StripeAdapter

    @classmethod
    def set_stripe_adapter(cls, adapter: type | None) -> None:
        """Set the Stripe adapter class (for testing)."""
        cls._stripe_adapter = adapter

    # =========================================================================
    # Products
    # =========================================================================

    @classmethod
    def create_product(
        cls,
        name: str,
        description: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> ProductResult:
        """
        Create an active product with flattened metadata.

        Raises:
            UpstreamError: Stripe rejected the product; the upstream error
                body is in details
        """
        flat_metadata = flatten_metadata(metadata)
        product = cls.get_stripe_adapter().create_product(
            name=name,
            description=description,
            metadata=flat_metadata,
            active=True,
        )
        cls.get_logger().info(
            "Product created",
            extra={"product_id": product.id, "metadata_keys": sorted(flat_metadata)},
        )
        return product

    @classmethod
    def create_offering(cls, request: OfferingRequest) -> OfferingResult:
        """
        Create a product and its monthly price, optionally with a dynamic companion.

        Steps:
            1. dynamic_product: "{name} - Dynamic" (if include_dynamic_charge)
            2. dynamic_price: 1 minor unit, monthly, licensed
            3. product: caller metadata plus routing and cross-references
            4. price: round(price * 100), monthly

        Raises:
            OfferingCreationError: A step failed; names the step and the
                ids created before it
        """
        logger = cls.get_logger()
        adapter = cls.get_stripe_adapter()
        builder = OfferingBuilder()
        currency = request.currency.lower()
        base_metadata = flatten_metadata(request.metadata)

        routing: dict[str, str] = {}
        if request.connected_account_id:
            routing["connected_account_id"] = request.connected_account_id

        logger.info(
            "Creating offering",
            extra={
                "product_name": request.name,
                "connected_account_id": request.connected_account_id,
                "include_dynamic_charge": request.include_dynamic_charge,
            },
        )

        if request.include_dynamic_charge:
            dynamic_product = builder.run(
                "dynamic_product",
                lambda: adapter.create_product(
                    name=f"{request.name}{DYNAMIC_PRODUCT_SUFFIX}",
                    description=(
                        request.dynamic_charge_description
                        or DYNAMIC_PRODUCT_DEFAULT_DESCRIPTION
                    ),
                    metadata={
                        **base_metadata,
                        **routing,
                        "type": "dynamic_charge",
                        "parent_product_name": request.name,
                    },
                ),
            )
            # Metered prices need a Stripe meter; licensed recurring stands in
            builder.run(
                "dynamic_price",
                lambda: adapter.create_price(
                    product_id=dynamic_product.id,
                    unit_amount=DYNAMIC_PRICE_UNIT_AMOUNT,
                    currency=currency,
                    recurring_interval=MONTHLY_INTERVAL,
                    usage_type="licensed",
                ),
            )

        product_metadata = {**base_metadata, **routing}
        if request.account_name:
            product_metadata["account_name"] = request.account_name
        if builder.result.dynamic_product:
            product_metadata["dynamic_product_id"] = builder.result.dynamic_product.id
        if builder.result.dynamic_price:
            product_metadata["dynamic_price_id"] = builder.result.dynamic_price.id
        product_metadata["frequency"] = request.frequency

        product = builder.run(
            "product",
            lambda: adapter.create_product(
                name=request.name,
                description=request.description,
                metadata=product_metadata,
            ),
        )
        builder.run(
            "price",
            lambda: adapter.create_price(
                product_id=product.id,
                unit_amount=to_minor_units(request.price),
                currency=currency,
                recurring_interval=MONTHLY_INTERVAL,
            ),
        )

        logger.info("Offering created", extra={"created_objects": builder.created})
        return builder.result

    @classmethod
    def get_product(cls, product_id: str) -> ProductResult:
        """
        Retrieve a product, archived or not.

        Raises:
            NotFoundError: No product with this ID
        """
        try:
            return cls.get_stripe_adapter().retrieve_product(product_id)
        except StripeResourceNotFoundError as e:
            raise NotFoundError(
                "Product not found",
                details={"product_id": product_id, "upstream_body": e.upstream_body},
            ) from e

    @classmethod
    def archive_product(cls, product_id: str, archive_prices: bool = True) -> ArchiveResult:
        """
        Archive a product and, by default, all of its active prices.

        The product stays retrievable with active=False.

        Raises:
            NotFoundError: No product with this ID
        """
        adapter = cls.get_stripe_adapter()

        try:
            product = adapter.update_product(product_id, active=False)
        except StripeResourceNotFoundError as e:
            raise NotFoundError(
                "Product not found",
                details={"product_id": product_id, "upstream_body": e.upstream_body},
            ) from e

        archived_prices: list[PriceResult] = []
        if archive_prices:
            for price in adapter.list_prices(product_id=product_id, active=True):
                archived_prices.append(adapter.update_price(price.id, active=False))

        cls.get_logger().info(
            "Product archived",
            extra={"product_id": product_id, "archived_price_count": len(archived_prices)},
        )
        return ArchiveResult(product=product, archived_prices=archived_prices)

    @classmethod
    def update_product_metadata(cls, product_id: str, patch: dict[str, Any]) -> ProductResult:
        """
        Merge a patch into a product's metadata.

        Existing keys not in the patch are kept. An empty string value
        removes the key on Stripe's side.

        Raises:
            NotFoundError: No product with this ID
        """
        current = cls.get_product(product_id)
        merged = {**current.metadata, **flatten_metadata(patch)}

        product = cls.get_stripe_adapter().update_product(product_id, metadata=merged)
        cls.get_logger().info(
            "Product metadata updated",
            extra={"product_id": product_id, "patched_keys": sorted(patch)},
        )
        return product

    @classmethod
    def schedule_price_change(
        cls,
        product_id: str,
        amount_next_month: Decimal | int | float | str,
    ) -> ProductResult:
        """
        Record next month's amount without touching the billed price.

        Applied later by apply_scheduled_price_changes().
        """
        return cls.update_product_metadata(
            product_id,
            {AMOUNT_NEXT_MONTH_KEY: format_amount(amount_next_month)},
        )

    # =========================================================================
    # Prices
    # =========================================================================

    @classmethod
    def replace_price(
        cls,
        product_id: str,
        unit_amount: int,
        currency: str,
        interval: str | None = MONTHLY_INTERVAL,
    ) -> ReplacePriceResult:
        """
        Create a new price and archive the other active prices of the same frequency.

        The new price is created first so the product is never left
        without an active price.

        Args:
            product_id: Product to re-price
            unit_amount: New amount in minor units
            currency: ISO currency code
            interval: "month" etc., or None for a one-time price

        Raises:
            NotFoundError: No product with this ID
        """
        adapter = cls.get_stripe_adapter()
        cls.get_product(product_id)

        new_price = adapter.create_price(
            product_id=product_id,
            unit_amount=unit_amount,
            currency=currency,
            recurring_interval=interval,
        )

        archived_prices = [
            adapter.update_price(price.id, active=False)
            for price in adapter.list_prices(product_id=product_id, active=True)
            if price.id != new_price.id and price.recurring_interval == interval
        ]

        cls.get_logger().info(
            "Price replaced",
            extra={
                "product_id": product_id,
                "price_id": new_price.id,
                "unit_amount": unit_amount,
                "archived_price_ids": [price.id for price in archived_prices],
            },
        )
        return ReplacePriceResult(price=new_price, archived_prices=archived_prices)

    @classmethod
    def list_active_offerings(cls) -> list[ActiveOffering]:
        """Active prices whose product is also active, with the product expanded."""
        offerings = []
        for price in cls.get_stripe_adapter().list_prices(active=True, expand_product=True):
            if not price.active:
                continue
            if price.product is not None and not price.product.active:
                continue
            offerings.append(ActiveOffering(price=price, product=price.product))
        return offerings

    @classmethod
    def apply_scheduled_price_changes(cls) -> list[ScheduledPriceChange]:
        """
        Replace the monthly price of every product with a scheduled amount.

        Products whose amount_next_month equals the current price only have
        the schedule cleared. Unparseable, non-finite and negative amounts
        are logged and skipped. A failure on one product is recorded on its
        change (``error``) and the remaining products still run.
        """
        logger = cls.get_logger()
        changes: list[ScheduledPriceChange] = []

        monthly_by_product: dict[str, ActiveOffering] = {}
        for offering in cls.list_active_offerings():
            if offering.product is None or offering.price.recurring_interval != MONTHLY_INTERVAL:
                continue
            monthly_by_product.setdefault(offering.product.id, offering)

        for product_id, offering in monthly_by_product.items():
            scheduled = offering.product.metadata.get(AMOUNT_NEXT_MONTH_KEY, "").strip()
            if not scheduled:
                continue

            new_amount = parse_scheduled_amount(scheduled)
            if new_amount is None:
                logger.warning(
                    f"Ignoring invalid amount_next_month {scheduled!r} on product {product_id}",
                    extra={"product_id": product_id, "amount_next_month": scheduled},
                )
                continue

            change = ScheduledPriceChange(
                product_id=product_id,
                previous_amount=offering.price.unit_amount,
                new_amount=new_amount,
            )
            changes.append(change)

            try:
                if new_amount != offering.price.unit_amount:
                    replaced = cls.replace_price(
                        product_id,
                        unit_amount=new_amount,
                        currency=(
                            offering.price.currency or settings.REVENUE_SHARE_DEFAULT_CURRENCY
                        ),
                        interval=MONTHLY_INTERVAL,
                    )
                    change.price_id = replaced.price.id
                    change.applied = True

                cls.update_product_metadata(product_id, {AMOUNT_NEXT_MONTH_KEY: ""})
            except (UpstreamError, NotFoundError) as e:
                change.error = e.message
                logger.error(
                    f"Scheduled price change failed for product {product_id}: {e.message}",
                    extra={"product_id": product_id, "error_code": e.error_code},
                )

        logger.info(
            "Scheduled price changes applied",
            extra={"applied_count": sum(1 for change in changes if change.applied)},
        )
        return changes

    # =========================================================================
    # Connected Accounts
    # =========================================================================

    @classmethod
    def list_connected_accounts(cls) -> ConnectedAccountsOverview:
        """Platform account plus the first 100 connected accounts."""
        adapter = cls.get_stripe_adapter()
        return ConnectedAccountsOverview(
            platform_account=adapter.retrieve_platform_account(),
            accounts=adapter.list_connected_accounts(limit=100),
        )


def format_amount(amount: Decimal | int | float | str) -> str:
    """
    Format an amount for metadata without exponent or trailing zeros.

    Example:
        format_amount(Decimal("25.50"))  # "25.5"
        format_amount(100)               # "100"
    """
    value = Decimal(str(amount)).normalize()
    return format(value, "f")

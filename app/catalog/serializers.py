"""
DRF serializers for catalog request bodies.

Request bodies use camelCase keys. Each serializer maps them onto the
snake_case arguments of ProductLifecycleService; validated_data is ready to
pass through.

Related files:
    - services.py: ProductLifecycleService
    - views.py: Catalog API views

Usage:
    serializer = ArchiveProductSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    ProductLifecycleService.archive_product(**serializer.validated_data)
"""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers

from .services import OfferingRequest

PRODUCT_ID_REQUIRED = "Product ID is required"
AMOUNT_NEXT_MONTH_REQUIRED = "Amount for next month is required"
NAME_AND_PRICE_REQUIRED = "Name and price/amount are required"


def _product_id_field(**kwargs) -> serializers.CharField:
    return serializers.CharField(
        source="product_id",
        error_messages={
            "required": PRODUCT_ID_REQUIRED,
            "blank": PRODUCT_ID_REQUIRED,
            "null": PRODUCT_ID_REQUIRED,
        },
        **kwargs,
    )


class CreateOfferingSerializer(serializers.Serializer):
    """
    Body of POST products/create/.

    Fields:
        name: Product name
        description: Optional product description
        price: Monthly price in major units (e.g. 19.99)
        amount: Legacy alias of price
        currency: ISO currency code (default: usd)
        accountId: Connected account receiving the revenue share
        accountName: Display name of that account
        metadata: Extra product metadata
        includeDynamicCharge: Also create the dynamic usage companion
        dynamicChargeDescription: Description of the companion product
    """

    name = serializers.CharField(required=False, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    price = serializers.DecimalField(
        max_digits=None, decimal_places=None, required=False, allow_null=True
    )
    amount = serializers.DecimalField(
        max_digits=None, decimal_places=None, required=False, allow_null=True
    )
    currency = serializers.CharField(required=False, default="usd")
    accountId = serializers.CharField(
        source="connected_account_id", required=False, allow_blank=True, allow_null=True
    )
    accountName = serializers.CharField(
        source="account_name", required=False, allow_blank=True, allow_null=True
    )
    metadata = serializers.DictField(required=False, default=dict)
    includeDynamicCharge = serializers.BooleanField(
        source="include_dynamic_charge", required=False, default=False
    )
    dynamicChargeDescription = serializers.CharField(
        source="dynamic_charge_description",
        required=False,
        allow_blank=True,
        allow_null=True,
    )

    def validate(self, attrs):
        price = attrs.get("price")
        if price is None:
            price = attrs.get("amount")
        if not attrs.get("name") or price is None:
            raise serializers.ValidationError(NAME_AND_PRICE_REQUIRED)
        attrs["price"] = price
        attrs.pop("amount", None)
        return attrs

    def to_offering_request(self) -> OfferingRequest:
        data = self.validated_data
        return OfferingRequest(
            name=data["name"],
            price=Decimal(data["price"]),
            currency=data.get("currency") or "usd",
            description=data.get("description") or None,
            connected_account_id=data.get("connected_account_id") or None,
            account_name=data.get("account_name") or None,
            metadata=data.get("metadata") or {},
            include_dynamic_charge=data.get("include_dynamic_charge", False),
            dynamic_charge_description=data.get("dynamic_charge_description") or None,
        )


class ArchiveProductSerializer(serializers.Serializer):
    """Body of POST products/archive/: productId, archivePrices (default true)."""

    productId = _product_id_field()
    archivePrices = serializers.BooleanField(
        source="archive_prices", required=False, default=True
    )


class SchedulePriceChangeSerializer(serializers.Serializer):
    """Body of POST products/update/: productId, amountNextMonth."""

    productId = _product_id_field()
    amountNextMonth = serializers.DecimalField(
        source="amount_next_month",
        max_digits=None,
        decimal_places=None,
        error_messages={
            "required": AMOUNT_NEXT_MONTH_REQUIRED,
            "null": AMOUNT_NEXT_MONTH_REQUIRED,
            "invalid": AMOUNT_NEXT_MONTH_REQUIRED,
        },
    )


class ReplacePriceSerializer(serializers.Serializer):
    """
    Body of POST products/replace-price/.

    Fields:
        productId: Product to re-price
        unitAmount: New amount in minor units
        currency: ISO currency code (default: usd)
        interval: Billing interval; null for a one-time price
    """

    INTERVAL_CHOICES = ["day", "week", "month", "year"]

    productId = _product_id_field()
    unitAmount = serializers.IntegerField(source="unit_amount", min_value=0)
    currency = serializers.CharField(required=False, default="usd")
    interval = serializers.ChoiceField(
        choices=INTERVAL_CHOICES, required=False, allow_null=True, default="month"
    )

    def validate_currency(self, value: str) -> str:
        return value.lower()

"""
Revenue split calculation.

compute_split() is a pure function over integer minor currency units. The
three percentages are applied independently to the paid amount and are not
renormalized, so the components may sum to more or less than the total:

- the platform fee is computed for logging only; the platform keeps it by
  simply not transferring it
- the minimum transfer floor applies to each transfer separately, so for
  small invoices the two transfers together can exceed the amount paid

Usage:
    from payments.services.revenue_split import RevenueSplitConfig, compute_split

    config = RevenueSplitConfig.from_settings()
    split = compute_split(10000, config)
    # RevenueSplit(total_amount=10000, platform_fee=4000,
    #              fixed_account_amount=3000, connected_account_amount=3000)
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import TYPE_CHECKING

from django.apps import apps
from django.conf import settings

from core.exceptions import ConfigurationError, ValidationError

if TYPE_CHECKING:
    from typing import Any


def _to_decimal(value: Any, name: str) -> Decimal:
    # str() first so 0.3 stays 0.3 instead of 0.29999999999999998889...
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as e:
        raise ConfigurationError(
            f"{name} must be a decimal number",
            details={"setting": name, "value": str(value)},
        ) from e


def round_half_away_from_zero(value: Decimal) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class RevenueSplitConfig:
    """
    Process-wide revenue share configuration.

    Attributes:
        platform_fee_percentage: Share the platform retains (logged only)
        fixed_account_percentage: Share transferred to the fixed account
        connected_account_percentage: Share transferred to the connected account
        minimum_transfer_amount: Floor applied to each transfer, in minor units
        fixed_account_id: Destination of the fixed share (acct_xxx)
        default_currency: Currency used when an invoice carries none
    """

    platform_fee_percentage: Decimal
    fixed_account_percentage: Decimal
    connected_account_percentage: Decimal
    minimum_transfer_amount: int
    fixed_account_id: str
    default_currency: str = "usd"

    @classmethod
    def from_settings(cls) -> RevenueSplitConfig:
        """Build the config from REVENUE_SHARE_* settings. Does not validate."""
        return cls(
            platform_fee_percentage=_to_decimal(
                settings.REVENUE_SHARE_PLATFORM_FEE_PERCENTAGE,
                "REVENUE_SHARE_PLATFORM_FEE_PERCENTAGE",
            ),
            fixed_account_percentage=_to_decimal(
                settings.REVENUE_SHARE_FIXED_ACCOUNT_PERCENTAGE,
                "REVENUE_SHARE_FIXED_ACCOUNT_PERCENTAGE",
            ),
            connected_account_percentage=_to_decimal(
                settings.REVENUE_SHARE_CONNECTED_ACCOUNT_PERCENTAGE,
                "REVENUE_SHARE_CONNECTED_ACCOUNT_PERCENTAGE",
            ),
            minimum_transfer_amount=int(settings.REVENUE_SHARE_MINIMUM_TRANSFER_AMOUNT),
            fixed_account_id=(settings.REVENUE_SHARE_FIXED_ACCOUNT_ID or "").strip(),
            default_currency=(settings.REVENUE_SHARE_DEFAULT_CURRENCY or "usd").lower(),
        )

    def validate(self) -> RevenueSplitConfig:
        """
        Check the config and return it unchanged.

        Raises:
            ConfigurationError: Empty fixed account, percentage outside
                [0, 1], or negative minimum transfer amount
        """
        if not self.fixed_account_id:
            raise ConfigurationError(
                "REVENUE_SHARE_FIXED_ACCOUNT_ID is required",
                details={"setting": "REVENUE_SHARE_FIXED_ACCOUNT_ID"},
            )

        percentages = {
            "platform_fee_percentage": self.platform_fee_percentage,
            "fixed_account_percentage": self.fixed_account_percentage,
            "connected_account_percentage": self.connected_account_percentage,
        }
        for name, value in percentages.items():
            if not Decimal("0") <= value <= Decimal("1"):
                raise ConfigurationError(
                    f"{name} must be between 0 and 1",
                    details={"field": name, "value": str(value)},
                )

        if self.minimum_transfer_amount < 0:
            raise ConfigurationError(
                "minimum_transfer_amount must not be negative",
                details={"value": self.minimum_transfer_amount},
            )
        return self


def get_revenue_split_config() -> RevenueSplitConfig:
    """Return the validated config built by PaymentsConfig.ready()."""
    return apps.get_app_config("payments").revenue_split_config


@dataclass(frozen=True)
class RevenueSplit:
    """Computed amounts for one paid invoice, all in minor currency units."""

    total_amount: int
    platform_fee: int
    fixed_account_amount: int
    connected_account_amount: int

    @property
    def transferred_amount(self) -> int:
        return self.fixed_account_amount + self.connected_account_amount

    @property
    def exceeds_total(self) -> bool:
        """True when the minimum floor made the transfers exceed the amount paid."""
        return self.transferred_amount > self.total_amount


def compute_split(total_amount: int, config: RevenueSplitConfig) -> RevenueSplit:
    """
    Split a paid amount between platform, fixed account and connected account.

    Args:
        total_amount: invoice.amount_paid in minor units
        config: Percentages, floor and fixed account

    Raises:
        ValidationError: total_amount is negative
    """
    if total_amount < 0:
        raise ValidationError(
            "Total amount must not be negative",
            details={"total_amount": total_amount},
        )

    total = Decimal(total_amount)
    minimum = config.minimum_transfer_amount

    return RevenueSplit(
        total_amount=total_amount,
        platform_fee=round_half_away_from_zero(total * config.platform_fee_percentage),
        fixed_account_amount=max(
            round_half_away_from_zero(total * config.fixed_account_percentage),
            minimum,
        ),
        connected_account_amount=max(
            round_half_away_from_zero(total * config.connected_account_percentage),
            minimum,
        ),
    )

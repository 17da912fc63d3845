"""
Payment services for revenue distribution.

This module provides:
- RevenueDistributionService: Entry point for distributing a paid invoice
- TransferExecutor: Executes claimed revenue share transfers
- compute_split / RevenueSplitConfig: Pure revenue split calculation
- resolve_connected_account: Connected account lookup from product metadata

Usage:
    from payments.services import RevenueDistributionService

    result = RevenueDistributionService.distribute_invoice(invoice)

    # Retry failed transfers for an invoice
    result = RevenueDistributionService.retry_failed_transfers("in_123")
"""

from payments.services.account_resolver import resolve_connected_account
from payments.services.distribution_service import (
    DistributionOutcome,
    DistributionResultStatus,
    RevenueDistributionService,
)
from payments.services.revenue_split import (
    RevenueSplit,
    RevenueSplitConfig,
    compute_split,
    get_revenue_split_config,
)
from payments.services.transfer_executor import TransferExecutor, TransferOutcome

__all__ = [
    "DistributionOutcome",
    "DistributionResultStatus",
    "RevenueDistributionService",
    "RevenueSplit",
    "RevenueSplitConfig",
    "TransferExecutor",
    "TransferOutcome",
    "compute_split",
    "get_revenue_split_config",
    "resolve_connected_account",
]

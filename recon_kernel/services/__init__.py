"""Flush-only kernel services."""

from recon_kernel.services.adjustment_ledger import AdjustmentLedgerService
from recon_kernel.services.base_resolver import BaseResolver
from recon_kernel.services.entry_override_service import EntryOverrideService
from recon_kernel.services.period_service import PeriodService

__all__ = [
    "AdjustmentLedgerService",
    "BaseResolver",
    "EntryOverrideService",
    "PeriodService",
]

"""ORM models for the reconciliation kernel."""

from recon_kernel.models.adjustment import AdjustmentTransfer
from recon_kernel.models.catalog import CatalogProduct
from recon_kernel.models.invoice import ExitLine
from recon_kernel.models.ledger import (
    EntryLine,
    EntryLineOverride,
    LedgerDocument,
    LedgerProduct,
    UnitConversion,
)
from recon_kernel.models.period import Period
from recon_kernel.models.source_batch import BatchType, SourceBatch
from recon_kernel.models.stock import InitialStockLine

__all__ = [
    "AdjustmentTransfer",
    "BatchType",
    "CatalogProduct",
    "EntryLine",
    "EntryLineOverride",
    "ExitLine",
    "InitialStockLine",
    "LedgerDocument",
    "LedgerProduct",
    "Period",
    "SourceBatch",
    "UnitConversion",
]

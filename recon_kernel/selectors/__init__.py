"""Read-only query selectors for the reconciliation kernel."""

from recon_kernel.selectors.adjustment_selector import AdjustmentSelector
from recon_kernel.selectors.batch_selector import BatchSelector
from recon_kernel.selectors.catalog_selector import CatalogSelector
from recon_kernel.selectors.line_selector import LineSelector

__all__ = [
    "AdjustmentSelector",
    "BatchSelector",
    "CatalogSelector",
    "LineSelector",
]

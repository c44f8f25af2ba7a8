"""
recon_services -- orchestration over the reconciliation kernel and engines.

Usage:
    from recon_services import ReconciliationService, export_final_inventory_sped
"""

from recon_services.reconciliation_service import (
    ConsolidationResult,
    ReconciliationService,
    TransferOutcome,
)
from recon_services.reports import AdjustmentsReport, FinalInventory
from recon_services.sped_export import export_final_inventory_sped
from recon_services.xlsx_export import (
    export_adjustments_xlsx,
    export_final_inventory_xlsx,
)

__all__ = [
    "AdjustmentsReport",
    "ConsolidationResult",
    "FinalInventory",
    "ReconciliationService",
    "TransferOutcome",
    "export_adjustments_xlsx",
    "export_final_inventory_sped",
    "export_final_inventory_xlsx",
]

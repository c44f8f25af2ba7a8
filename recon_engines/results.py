"""
Result types of the reconciliation engines.

Pure frozen dataclasses produced by the entry, exit and consolidation
engines and consumed by the service layer and the reports.

Architecture: recon_engines -- pure domain, zero I/O.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from uuid import UUID

from recon_kernel.domain.dtos import QtyValue, ReconciliationFinding

ZERO = Decimal("0")


# =============================================================================
# Entries
# =============================================================================


@dataclass(frozen=True)
class EntryLineResult:
    """Drill-down view of one counted entry line."""

    entry_line_id: UUID
    document_id: UUID
    document_reference: str
    partner_name: str | None
    cod_item: str
    description: str | None
    document_unit: str | None
    document_quantity: Decimal
    adjusted_quantity: Decimal | None
    effective_quantity: Decimal
    conversion_unit: str | None
    conversion_factor: Decimal | None
    stock_quantity: Decimal
    unit_cost: Decimal
    value_total: Decimal

    @property
    def is_overridden(self) -> bool:
        return self.adjusted_quantity is not None


@dataclass(frozen=True)
class EntryAggregation:
    """Entry totals per code plus the lines that produced them."""

    ledger_batch_id: UUID | None
    totals: Mapping[str, QtyValue] = field(default_factory=dict)
    lines: tuple[EntryLineResult, ...] = ()
    findings: tuple[ReconciliationFinding, ...] = ()

    def total_for(self, cod_item: str) -> QtyValue:
        return self.totals.get(cod_item, QtyValue())


# =============================================================================
# Exits
# =============================================================================


@dataclass(frozen=True)
class ExitTotals:
    qty: Decimal = ZERO
    value: Decimal = ZERO
    description: str | None = None
    unit: str | None = None


@dataclass(frozen=True)
class ExitAggregation:
    totals: Mapping[str, ExitTotals] = field(default_factory=dict)
    line_count: int = 0
    findings: tuple[ReconciliationFinding, ...] = ()

    def total_for(self, cod_item: str) -> ExitTotals:
        return self.totals.get(cod_item, ExitTotals())


# =============================================================================
# Consolidation
# =============================================================================


@dataclass(frozen=True)
class ConsolidatedRow:
    """
    The reconciled position of one item code.

    Derived on every call, never persisted.  ``weighted_avg_cost`` is None
    when initial plus entry quantity is not positive.
    """

    cod_item: str
    description: str
    unit: str
    initial_qty: Decimal
    initial_value: Decimal
    entries_qty: Decimal
    entries_value: Decimal
    exits_qty: Decimal
    exits_value: Decimal
    theoretical_qty: Decimal
    weighted_avg_cost: Decimal | None
    adjustments_received: Decimal
    adjustments_given: Decimal
    final_qty: Decimal
    final_value: Decimal
    in_stock: bool = False
    in_entries: bool = False
    in_exits: bool = False

    @property
    def net_adjustment(self) -> Decimal:
        return self.adjustments_received - self.adjustments_given

    @property
    def theoretical_value(self) -> Decimal:
        """Value of the theoretical balance, before adjustments."""
        if self.weighted_avg_cost is not None:
            return self.weighted_avg_cost * self.theoretical_qty
        return self.initial_value + self.entries_value - self.exits_value


@dataclass(frozen=True)
class ConsolidationSummary:
    item_count: int = 0
    initial_qty: Decimal = ZERO
    initial_value: Decimal = ZERO
    entries_qty: Decimal = ZERO
    entries_value: Decimal = ZERO
    exits_qty: Decimal = ZERO
    exits_value: Decimal = ZERO
    final_qty: Decimal = ZERO
    final_value: Decimal = ZERO


@dataclass(frozen=True)
class ConsolidationOutput:
    rows: tuple[ConsolidatedRow, ...]
    summary: ConsolidationSummary
    findings: tuple[ReconciliationFinding, ...] = ()

    def row_for(self, cod_item: str) -> ConsolidatedRow | None:
        for row in self.rows:
            if row.cod_item == cod_item:
                return row
        return None

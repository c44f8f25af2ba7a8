"""
recon_services.reports -- final inventory and adjustments report builders.

Responsibility:
    Shape consolidated rows and transfer records into the two reports the
    reconciliation produces: the final inventory (what the merchant
    declares) and the adjustments report (which codes covered which).

Architecture position:
    Services -- pure builders, zero I/O.  ReconciliationService fetches the
    inputs; the XLSX exporter renders the output.

Invariants enforced:
    - The final inventory lists every consolidated row, no filtering.
    - With value_negative_final_as_zero, a non-positive final balance is
      valued at zero: it cannot be counted.
    - Report totals are sums of the listed lines, nothing else.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from recon_engines.results import ConsolidatedRow
from recon_kernel.domain.dtos import TransferRecord

ZERO = Decimal("0")


# =============================================================================
# Final inventory
# =============================================================================


@dataclass(frozen=True)
class FinalInventoryRow:
    cod_item: str
    description: str
    unit: str
    initial_qty: Decimal
    entries_qty: Decimal
    exits_qty: Decimal
    theoretical_qty: Decimal
    unit_cost: Decimal | None
    adjustments_received: Decimal
    adjustments_given: Decimal
    final_qty: Decimal
    final_value: Decimal


@dataclass(frozen=True)
class FinalInventorySummary:
    item_count: int
    total_qty: Decimal
    total_value: Decimal
    negative_count: int
    positive_count: int
    zero_count: int


@dataclass(frozen=True)
class FinalInventory:
    period_id: UUID
    ledger_batch_id: UUID | None
    rows: tuple[FinalInventoryRow, ...]
    summary: FinalInventorySummary
    generated_at: datetime | None = None


def _counted_value(row: ConsolidatedRow, negative_as_zero: bool) -> Decimal:
    if not negative_as_zero:
        return row.final_value
    if row.final_qty <= 0 or row.final_value < 0:
        return ZERO
    return row.final_value


def build_final_inventory(
    rows: Iterable[ConsolidatedRow],
    *,
    period_id: UUID,
    ledger_batch_id: UUID | None,
    value_negative_final_as_zero: bool = True,
    generated_at: datetime | None = None,
) -> FinalInventory:
    items = tuple(
        FinalInventoryRow(
            cod_item=r.cod_item,
            description=r.description,
            unit=r.unit,
            initial_qty=r.initial_qty,
            entries_qty=r.entries_qty,
            exits_qty=r.exits_qty,
            theoretical_qty=r.theoretical_qty,
            unit_cost=r.weighted_avg_cost,
            adjustments_received=r.adjustments_received,
            adjustments_given=r.adjustments_given,
            final_qty=r.final_qty,
            final_value=_counted_value(r, value_negative_final_as_zero),
        )
        for r in rows
    )
    summary = FinalInventorySummary(
        item_count=len(items),
        total_qty=sum((i.final_qty for i in items), ZERO),
        total_value=sum((i.final_value for i in items if i.final_value > 0), ZERO),
        negative_count=sum(1 for i in items if i.final_qty < 0),
        positive_count=sum(1 for i in items if i.final_qty > 0),
        zero_count=sum(1 for i in items if i.final_qty == 0),
    )
    return FinalInventory(
        period_id=period_id,
        ledger_batch_id=ledger_batch_id,
        rows=items,
        summary=summary,
        generated_at=generated_at,
    )


# =============================================================================
# Adjustments report
# =============================================================================


@dataclass(frozen=True)
class AdjustmentReportLine:
    transfer_id: UUID
    cod_negativo: str
    description_negativo: str
    cod_positivo: str
    description_positivo: str
    qty_baixada: Decimal
    unit_cost: Decimal
    total_value: Decimal
    created_at: datetime


@dataclass(frozen=True)
class AdjustmentImpact:
    """Total moved into (receiver) or out of (donor) one code."""

    cod_item: str
    description: str
    qty_total: Decimal
    value_total: Decimal


@dataclass(frozen=True)
class AdjustmentsReport:
    lines: tuple[AdjustmentReportLine, ...]
    transfer_count: int
    total_qty: Decimal
    total_value: Decimal
    impact_by_receiver: tuple[AdjustmentImpact, ...]
    impact_by_donor: tuple[AdjustmentImpact, ...]


def _group(
    lines: Sequence[AdjustmentReportLine],
    key: Callable[[AdjustmentReportLine], tuple[str, str]],
) -> tuple[AdjustmentImpact, ...]:
    groups: dict[str, AdjustmentImpact] = {}
    for line in lines:
        code, description = key(line)
        current = groups.get(code)
        if current is None:
            groups[code] = AdjustmentImpact(code, description, line.qty_baixada, line.total_value)
        else:
            groups[code] = AdjustmentImpact(
                code,
                current.description,
                current.qty_total + line.qty_baixada,
                current.value_total + line.total_value,
            )
    return tuple(groups.values())


def build_adjustments_report(
    transfers: Iterable[TransferRecord],
    describe: Callable[[str], str],
) -> AdjustmentsReport:
    """
    Build the report from transfers (newest first, as listed).

    ``describe`` maps a code to its display description.
    """
    lines = tuple(
        AdjustmentReportLine(
            transfer_id=t.id,
            cod_negativo=t.cod_negativo,
            description_negativo=describe(t.cod_negativo),
            cod_positivo=t.cod_positivo,
            description_positivo=describe(t.cod_positivo),
            qty_baixada=t.qty_baixada,
            unit_cost=t.unit_cost,
            total_value=t.total_value,
            created_at=t.created_at,
        )
        for t in transfers
    )
    return AdjustmentsReport(
        lines=lines,
        transfer_count=len(lines),
        total_qty=sum((line.qty_baixada for line in lines), ZERO),
        total_value=sum((line.total_value for line in lines), ZERO),
        impact_by_receiver=_group(lines, lambda line: (line.cod_negativo, line.description_negativo)),
        impact_by_donor=_group(lines, lambda line: (line.cod_positivo, line.description_positivo)),
    )

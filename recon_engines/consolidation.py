"""
recon_engines.consolidation -- the per-item reconciled position.

Responsibility:
    Merge the initial stock snapshot, the entry and exit aggregations and
    the adjustment transfer ledger into one ConsolidatedRow per item code.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Called by
    ReconciliationService.consolidate(); rebuilt on every call.

Formulas (per code):
    theoretical_qty   = initial_qty + entries_qty - exits_qty
    weighted_avg_cost = (initial_value + entries_value)
                        / (initial_qty + entries_qty)     if denominator > 0
                        None                              otherwise
    received          = sum(qty_baixada where cod_negativo == code)
    given             = sum(qty_baixada where cod_positivo == code)
    final_qty         = theoretical_qty + received - given
    final_value       = weighted_avg_cost * final_qty     if cost is not None
                        initial_value + entries_value - exits_value otherwise

Invariants enforced:
    - Row set = codes present in stock, entries or exits; sorted by code.
    - Transfers never add rows.  A transfer naming a code outside the row
      set is reported (TRANSFER_CODE_NOT_IN_ROWS) and only its other side
      is applied.
    - Missing cost basis degrades to None, never to a division error.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from decimal import Decimal

from recon_engines.descriptions import (
    DEFAULT_MISSING_DESCRIPTION,
    DEFAULT_UNIT,
    build_default_chain,
)
from recon_engines.results import (
    ConsolidatedRow,
    ConsolidationOutput,
    ConsolidationSummary,
    EntryAggregation,
    ExitAggregation,
    ExitTotals,
)
from recon_engines.tracer import traced_engine
from recon_kernel.domain.dtos import (
    CheckSeverity,
    ProductInfo,
    QtyValue,
    ReconciliationFinding,
    StockLineRecord,
    TransferRecord,
)
from recon_kernel.logging_config import get_logger

logger = get_logger("engines.consolidation")

ZERO = Decimal("0")


def weighted_average_cost(
    initial: QtyValue,
    entries: QtyValue,
) -> Decimal | None:
    """Cost of (initial + entries); None when their quantity is not positive."""
    base_qty = initial.qty + entries.qty
    if base_qty <= 0:
        return None
    return (initial.value + entries.value) / base_qty


def _stock_by_code(
    stock_lines: Iterable[StockLineRecord],
) -> tuple[dict[str, QtyValue], dict[str, ProductInfo]]:
    totals: dict[str, QtyValue] = {}
    info: dict[str, ProductInfo] = {}
    for line in stock_lines:
        totals[line.cod_item] = (
            totals.get(line.cod_item, QtyValue()) + QtyValue(line.quantity, line.value)
        )
        current = info.get(line.cod_item)
        info[line.cod_item] = ProductInfo(
            line.cod_item,
            (current.description if current and current.description else line.description),
            (current.unit if current and current.unit else line.unit),
        )
    return totals, info


class ConsolidationEngine:
    """Builds consolidated rows from aggregated inputs."""

    @traced_engine(
        "consolidation",
        "1.0",
        fingerprint_fields=("stock_lines", "entries", "exits", "transfers"),
    )
    def consolidate(
        self,
        *,
        stock_lines: Iterable[StockLineRecord],
        entries: EntryAggregation,
        exits: ExitAggregation,
        transfers: Iterable[TransferRecord] = (),
        ledger_products: Mapping[str, ProductInfo] | None = None,
        catalog: Mapping[str, ProductInfo] | None = None,
        missing_description: str = DEFAULT_MISSING_DESCRIPTION,
        default_unit: str = DEFAULT_UNIT,
    ) -> ConsolidationOutput:
        stock, stock_info = _stock_by_code(stock_lines)

        codes = sorted(set(stock) | set(entries.totals) | set(exits.totals))
        code_set = set(codes)

        received: dict[str, Decimal] = {}
        given: dict[str, Decimal] = {}
        findings: list[ReconciliationFinding] = []
        for transfer in transfers:
            outside = [
                c for c in (transfer.cod_negativo, transfer.cod_positivo)
                if c not in code_set
            ]
            if outside:
                findings.append(ReconciliationFinding(
                    code="TRANSFER_CODE_NOT_IN_ROWS",
                    severity=CheckSeverity.WARNING,
                    message=(
                        f"Transfer {transfer.id} names code(s) {', '.join(outside)} "
                        f"with no stock, entry or exit in scope"
                    ),
                    details={"transfer_id": str(transfer.id), "cod_items": outside},
                ))
            received[transfer.cod_negativo] = (
                received.get(transfer.cod_negativo, ZERO) + transfer.qty_baixada
            )
            given[transfer.cod_positivo] = (
                given.get(transfer.cod_positivo, ZERO) + transfer.qty_baixada
            )

        exit_info = {
            code: ProductInfo(code, t.description, t.unit)
            for code, t in exits.totals.items()
        }
        resolver = build_default_chain(
            stock=stock_info,
            ledger_products=ledger_products or {},
            catalog=catalog or {},
            exits=exit_info,
            missing_description=missing_description,
            default_unit=default_unit,
        )

        rows = tuple(
            self._row(
                code,
                stock.get(code),
                entries.totals.get(code),
                exits.totals.get(code),
                received.get(code, ZERO),
                given.get(code, ZERO),
                resolver.resolve(code),
            )
            for code in codes
        )

        if findings:
            logger.warning(
                "transfers_outside_row_set",
                extra={"count": len(findings)},
            )

        return ConsolidationOutput(
            rows=rows,
            summary=summarize(rows),
            findings=tuple(findings),
        )

    @staticmethod
    def _row(
        code: str,
        stock: QtyValue | None,
        entry: QtyValue | None,
        exit_totals: ExitTotals | None,
        received: Decimal,
        given: Decimal,
        labels: tuple[str, str],
    ) -> ConsolidatedRow:
        initial = stock or QtyValue()
        entered = entry or QtyValue()
        exits_qty = exit_totals.qty if exit_totals else ZERO
        exits_value = exit_totals.value if exit_totals else ZERO

        theoretical = initial.qty + entered.qty - exits_qty
        cost = weighted_average_cost(initial, entered)
        final_qty = theoretical + received - given
        if cost is not None:
            final_value = cost * final_qty
        else:
            final_value = initial.value + entered.value - exits_value

        description, unit = labels
        return ConsolidatedRow(
            cod_item=code,
            description=description,
            unit=unit,
            initial_qty=initial.qty,
            initial_value=initial.value,
            entries_qty=entered.qty,
            entries_value=entered.value,
            exits_qty=exits_qty,
            exits_value=exits_value,
            theoretical_qty=theoretical,
            weighted_avg_cost=cost,
            adjustments_received=received,
            adjustments_given=given,
            final_qty=final_qty,
            final_value=final_value,
            in_stock=stock is not None,
            in_entries=entry is not None,
            in_exits=exit_totals is not None,
        )


def summarize(rows: Iterable[ConsolidatedRow]) -> ConsolidationSummary:
    rows = tuple(rows)
    return ConsolidationSummary(
        item_count=len(rows),
        initial_qty=sum((r.initial_qty for r in rows), ZERO),
        initial_value=sum((r.initial_value for r in rows), ZERO),
        entries_qty=sum((r.entries_qty for r in rows), ZERO),
        entries_value=sum((r.entries_value for r in rows), ZERO),
        exits_qty=sum((r.exits_qty for r in rows), ZERO),
        exits_value=sum((r.exits_value for r in rows), ZERO),
        final_qty=sum((r.final_qty for r in rows), ZERO),
        final_value=sum((r.final_value for r in rows), ZERO),
    )

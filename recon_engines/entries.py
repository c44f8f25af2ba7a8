"""
recon_engines.entries -- entry (received goods) aggregation.

Responsibility:
    Turn the entry lines of one ledger batch into stock-unit quantities and
    values per item code, applying manual overrides and unit conversions,
    and counting each source line exactly once.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Inputs are frozen records
    fetched by LineSelector; ReconciliationService drives the call.

Invariants enforced:
    - Only lines of ``ledger_batch_id`` whose owning document is a document
      of the same batch are counted.  Others are excluded and reported,
      never zero-filled.
    - Dedup by line id in a single accumulator per call: the first
      occurrence is kept.
    - effective_quantity = override if present else document quantity;
      the override is in document units and is converted the same way.
    - value = sum(value_total) as stored; never recomputed from qty * cost.

Failure modes:
    - None raised.  Orphan and duplicate lines become WARNING findings.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from decimal import Decimal
from uuid import UUID

from recon_engines.conversion import ConversionTable
from recon_engines.results import EntryAggregation, EntryLineResult
from recon_engines.tracer import traced_engine
from recon_kernel.domain.dtos import (
    CheckSeverity,
    EntryLineRecord,
    EntryOverrideRecord,
    LedgerDocumentRecord,
    QtyValue,
    ReconciliationFinding,
    UnitConversionRecord,
)
from recon_kernel.logging_config import get_logger

logger = get_logger("engines.entries")


def line_unit_cost(value_total: Decimal, document_quantity: Decimal) -> Decimal:
    """Unit cost on the document; the total itself when quantity is zero."""
    if document_quantity == 0:
        return value_total
    return value_total / document_quantity


class EntryAggregator:
    """Aggregates entry lines of a single ledger batch."""

    @traced_engine(
        "entries",
        "1.0",
        fingerprint_fields=("ledger_batch_id", "lines", "overrides", "conversions"),
    )
    def aggregate(
        self,
        *,
        ledger_batch_id: UUID | None,
        documents: Iterable[LedgerDocumentRecord],
        lines: Iterable[EntryLineRecord],
        overrides: Mapping[UUID, EntryOverrideRecord] | None = None,
        conversions: Iterable[UnitConversionRecord] = (),
    ) -> EntryAggregation:
        if ledger_batch_id is None:
            return EntryAggregation(ledger_batch_id=None)

        overrides = overrides or {}
        docs = {
            d.id: d for d in documents if d.ledger_batch_id == ledger_batch_id
        }
        table = ConversionTable(conversions)

        seen: set[UUID] = set()
        duplicates: list[str] = []
        orphans: list[str] = []
        foreign = 0
        results: list[EntryLineResult] = []
        totals: dict[str, QtyValue] = {}

        for line in lines:
            if line.ledger_batch_id != ledger_batch_id:
                foreign += 1
                continue
            if line.id in seen:
                duplicates.append(str(line.id))
                continue
            seen.add(line.id)

            document = docs.get(line.document_id) if line.document_id else None
            if document is None:
                orphans.append(str(line.id))
                continue

            override = overrides.get(line.id)
            adjusted = override.adjusted_quantity if override is not None else None
            effective = adjusted if adjusted is not None else line.quantity

            match = table.lookup(line.cod_item, line.unit)
            stock_qty = effective * match.effective_factor if match else effective

            results.append(EntryLineResult(
                entry_line_id=line.id,
                document_id=document.id,
                document_reference=f"{document.series or ''} {document.number or ''}".strip(),
                partner_name=document.partner_name or document.partner_code,
                cod_item=line.cod_item,
                description=line.description,
                document_unit=line.unit,
                document_quantity=line.quantity,
                adjusted_quantity=adjusted,
                effective_quantity=effective,
                conversion_unit=match.unit if match else None,
                conversion_factor=match.factor if match else None,
                stock_quantity=stock_qty,
                unit_cost=line_unit_cost(line.value_total, line.quantity),
                value_total=line.value_total,
            ))
            totals[line.cod_item] = (
                totals.get(line.cod_item, QtyValue()) + QtyValue(stock_qty, line.value_total)
            )

        findings: list[ReconciliationFinding] = []
        if orphans:
            findings.append(ReconciliationFinding(
                code="ENTRY_DOCUMENT_UNRESOLVED",
                severity=CheckSeverity.WARNING,
                message=(
                    f"{len(orphans)} entry line(s) reference a document outside "
                    f"the ledger batch and were not counted"
                ),
                details={"entry_line_ids": orphans},
            ))
        if duplicates:
            findings.append(ReconciliationFinding(
                code="DUPLICATE_ENTRY_LINE",
                severity=CheckSeverity.WARNING,
                message=f"{len(duplicates)} repeated entry line(s) discarded",
                details={"entry_line_ids": duplicates},
            ))

        if findings or foreign:
            logger.warning(
                "entry_aggregation_irregular",
                extra={
                    "ledger_batch_id": str(ledger_batch_id),
                    "orphan_lines": len(orphans),
                    "duplicate_lines": len(duplicates),
                    "foreign_batch_lines": foreign,
                },
            )

        return EntryAggregation(
            ledger_batch_id=ledger_batch_id,
            totals=totals,
            lines=tuple(results),
            findings=tuple(findings),
        )

"""
recon_engines.exits -- exit (sold goods) aggregation.

Responsibility:
    Sum exit quantities and values per item code across the base invoice
    batches of a period.

Invariants enforced:
    - qty = sum(abs(quantity)); returns or credit notes recorded with a
      negative sign still count as goods that left.
    - value = sum(value_total) as stored.
    - First non-empty description and unit per code are kept.
    - Dedup by line id; the whole input is consumed before returning.
"""

from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

from recon_engines.results import ExitAggregation, ExitTotals
from recon_engines.tracer import traced_engine
from recon_kernel.domain.dtos import CheckSeverity, ExitLineRecord, ReconciliationFinding
from recon_kernel.logging_config import get_logger

logger = get_logger("engines.exits")


def _first(current: str | None, candidate: str | None) -> str | None:
    if current:
        return current
    if candidate and candidate.strip():
        return candidate.strip()
    return current


class ExitAggregator:
    """Aggregates exit lines from one or more invoice batches."""

    @traced_engine("exits", "1.0", fingerprint_fields=("batch_ids",))
    def aggregate(
        self,
        *,
        lines: Iterable[ExitLineRecord],
        batch_ids: tuple[UUID, ...] = (),
    ) -> ExitAggregation:
        """
        Aggregate ``lines``.

        ``lines`` may be a lazy iterator (LineSelector.iter_exit_lines);
        it is drained completely.  ``batch_ids`` only feeds the trace
        fingerprint.
        """
        totals: dict[str, ExitTotals] = {}
        seen: set[UUID] = set()
        duplicates: list[str] = []
        count = 0

        for line in lines:
            if line.id in seen:
                duplicates.append(str(line.id))
                continue
            seen.add(line.id)
            count += 1

            current = totals.get(line.cod_item, ExitTotals())
            totals[line.cod_item] = ExitTotals(
                qty=current.qty + abs(line.quantity),
                value=current.value + line.value_total,
                description=_first(current.description, line.description),
                unit=_first(current.unit, line.unit),
            )

        findings: tuple[ReconciliationFinding, ...] = ()
        if duplicates:
            findings = (ReconciliationFinding(
                code="DUPLICATE_EXIT_LINE",
                severity=CheckSeverity.WARNING,
                message=f"{len(duplicates)} repeated exit line(s) discarded",
                details={"exit_line_ids": duplicates},
            ),)
            logger.warning(
                "duplicate_exit_lines_discarded",
                extra={"count": len(duplicates)},
            )

        return ExitAggregation(totals=totals, line_count=count, findings=findings)

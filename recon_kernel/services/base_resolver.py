"""
BaseResolver -- which batch of each source type is authoritative for a period.

Responsibility:
    Given an explicit period id, pick the base stock snapshot, the base
    ledger file, and the union of base invoice-import batches.  Optionally
    honour a caller-supplied ledger or stock batch of the same period
    (review and what-if tooling).

Architecture position:
    Kernel > Services -- read-only, but lives with the services because its
    decisions are logged and may raise for callers that need a hard stop.

Invariants enforced:
    - No implicit active period is ever read; period_id is mandatory.
    - A batch of another period never feeds this period's reconciliation:
      such caller-supplied ids are replaced and reported.
    - Configuration faults degrade only the affected dimension.

Decision table (ledger):

    base flagged | ledger batches linked | outcome
    -------------|-----------------------|--------------------------------------
    1            | any                   | that batch
    0            | 1                     | that batch, LEDGER_BASE_FALLBACK (warn)
    0 or >1      | >1                    | None, LEDGER_BASE_AMBIGUOUS (error)
    0            | 0                     | None, LEDGER_BASE_MISSING (warn)

Failure modes:
    - PeriodNotFoundError if the period does not exist.
    - Everything else is reported as findings on the BaseResolution;
      BaseResolution.require_ledger() turns a ledger fault into an exception.
"""

from uuid import UUID

from sqlalchemy.orm import Session

from recon_kernel.domain.dtos import (
    BaseResolution,
    BatchInfo,
    CheckSeverity,
    ReconciliationFinding,
)
from recon_kernel.exceptions import PeriodNotFoundError
from recon_kernel.logging_config import get_logger
from recon_kernel.models.source_batch import BatchType
from recon_kernel.selectors.batch_selector import BatchSelector

logger = get_logger("services.base_resolver")


class BaseResolver:
    """Resolves base batches for a period."""

    def __init__(self, session: Session):
        self.session = session
        self._selector = BatchSelector(session)

    def resolve_base(
        self,
        period_id: UUID,
        *,
        ledger_batch_id: UUID | None = None,
        stock_batch_id: UUID | None = None,
    ) -> BaseResolution:
        if self._selector.get_period(period_id) is None:
            raise PeriodNotFoundError(str(period_id))

        findings: list[ReconciliationFinding] = []
        degraded: list[str] = []

        stock_id = self._caller_batch(
            period_id, stock_batch_id, BatchType.STOCK, findings
        )
        if stock_id is None:
            stock_id = self._resolve_stock(period_id, findings, degraded)

        ledger_id = self._caller_batch(
            period_id, ledger_batch_id, BatchType.LEDGER, findings
        )
        if ledger_id is None:
            ledger_id = self._resolve_ledger(period_id, findings, degraded)

        invoice_ids = tuple(
            b.id for b in self._selector.base_batches(period_id, BatchType.INVOICE)
        )
        if not invoice_ids:
            findings.append(ReconciliationFinding(
                code="INVOICE_BASE_MISSING",
                severity=CheckSeverity.INFO,
                message="No base invoice batch for the period; exits are empty",
                details={"period_id": str(period_id)},
            ))

        resolution = BaseResolution(
            period_id=period_id,
            stock_batch_id=stock_id,
            ledger_batch_id=ledger_id,
            invoice_batch_ids=invoice_ids,
            findings=tuple(findings),
            degraded_dimensions=tuple(degraded),
        )

        logger.info(
            "base_resolved",
            extra={
                "period_id": str(period_id),
                "stock_batch_id": str(stock_id) if stock_id else None,
                "ledger_batch_id": str(ledger_id) if ledger_id else None,
                "invoice_batch_count": len(invoice_ids),
                "finding_codes": [f.code for f in findings],
                "degraded_dimensions": list(degraded),
            },
        )
        return resolution

    # ------------------------------------------------------------------

    def _caller_batch(
        self,
        period_id: UUID,
        batch_id: UUID | None,
        batch_type: BatchType,
        findings: list[ReconciliationFinding],
    ) -> UUID | None:
        """Validate a caller-supplied batch id; None means resolve normally."""
        if batch_id is None:
            return None

        batch = self._selector.get_batch(batch_id)
        if (
            batch is not None
            and batch.period_id == period_id
            and batch.batch_type == batch_type.value
        ):
            return batch.id

        findings.append(ReconciliationFinding(
            code="BATCH_PERIOD_MISMATCH",
            severity=CheckSeverity.WARNING,
            message=(
                f"Requested {batch_type.value} batch {batch_id} does not belong "
                f"to the period; using the period's base batch instead"
            ),
            details={
                "requested_batch_id": str(batch_id),
                "batch_type": batch_type.value,
                "batch_period_id": (
                    str(batch.period_id) if batch and batch.period_id else None
                ),
            },
        ))
        logger.warning(
            "batch_period_mismatch",
            extra={
                "requested_batch_id": str(batch_id),
                "batch_type": batch_type.value,
            },
        )
        return None

    def _resolve_stock(
        self,
        period_id: UUID,
        findings: list[ReconciliationFinding],
        degraded: list[str],
    ) -> UUID | None:
        bases = self._selector.base_batches(period_id, BatchType.STOCK)
        if len(bases) == 1:
            return bases[0].id

        if not bases:
            findings.append(ReconciliationFinding(
                code="STOCK_BASE_MISSING",
                severity=CheckSeverity.INFO,
                message="No base stock batch for the period; initial stock is empty",
                details={"period_id": str(period_id)},
            ))
            return None

        findings.append(self._ambiguous("STOCK_BASE_AMBIGUOUS", BatchType.STOCK, bases))
        degraded.append(BatchType.STOCK.value)
        return None

    def _resolve_ledger(
        self,
        period_id: UUID,
        findings: list[ReconciliationFinding],
        degraded: list[str],
    ) -> UUID | None:
        bases = self._selector.base_batches(period_id, BatchType.LEDGER)
        if len(bases) == 1:
            return bases[0].id

        if len(bases) > 1:
            findings.append(
                self._ambiguous("LEDGER_BASE_AMBIGUOUS", BatchType.LEDGER, bases)
            )
            degraded.append(BatchType.LEDGER.value)
            return None

        linked = self._selector.list_batches(period_id, BatchType.LEDGER)
        if len(linked) == 1:
            chosen = linked[0]
            findings.append(ReconciliationFinding(
                code="LEDGER_BASE_FALLBACK",
                severity=CheckSeverity.WARNING,
                message=(
                    f"No ledger batch flagged base; using the only linked "
                    f"ledger batch {chosen.label!r}"
                ),
                details={"ledger_batch_id": str(chosen.id)},
            ))
            logger.warning(
                "ledger_base_fallback",
                extra={
                    "period_id": str(period_id),
                    "chosen_batch_id": str(chosen.id),
                },
            )
            return chosen.id

        if linked:
            findings.append(
                self._ambiguous("LEDGER_BASE_AMBIGUOUS", BatchType.LEDGER, linked)
            )
        else:
            findings.append(ReconciliationFinding(
                code="LEDGER_BASE_MISSING",
                severity=CheckSeverity.WARNING,
                message="No ledger batch linked to the period; entries are empty",
                details={"period_id": str(period_id)},
            ))
        degraded.append(BatchType.LEDGER.value)
        return None

    @staticmethod
    def _ambiguous(
        code: str,
        batch_type: BatchType,
        candidates: list[BatchInfo],
    ) -> ReconciliationFinding:
        candidate_ids = [str(b.id) for b in candidates]
        logger.error(
            "base_batch_ambiguous",
            extra={"batch_type": batch_type.value, "candidate_ids": candidate_ids},
        )
        return ReconciliationFinding(
            code=code,
            severity=CheckSeverity.ERROR,
            message=(
                f"{len(candidates)} {batch_type.value} batches and no single "
                f"base batch; flag exactly one as base"
            ),
            details={"candidate_ids": candidate_ids},
        )

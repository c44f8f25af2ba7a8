"""
recon_services.reconciliation_service -- the reconciliation facade.

Responsibility:
    Orchestrates one period's reconciliation: resolves base batches, drives
    the entry and exit aggregators over batch-scoped reads, feeds the
    consolidation engine, and guards transfer creation with the overdraw
    policy.  Also builds the final inventory and the adjustments report.

Architecture position:
    Services -- orchestration over recon_kernel (I/O) and recon_engines
    (pure).  Holds no state between calls; every result is recomputed from
    the current ledger.

Invariants enforced:
    - period_id is always explicit; the active period is never read here.
    - A configuration fault degrades only its dimension: consolidation
      still returns rows and lists the fault in findings and
      degraded_dimensions.
    - Transfer input is validated before anything is read or written;
      codes must exist in the consolidated row set of the scope.
    - Flush-only; the caller commits.

Failure modes:
    - PeriodNotFoundError: unknown period.
    - AmbiguousBaseBatchError / BaseBatchNotFoundError: transfer operations
      need a ledger batch and none can be resolved.
    - InputValidationError family on transfer creation, including
      UnknownItemCodeError and DonorOverdrawError.

Usage:
    with session_scope() as session:
        service = ReconciliationService(session, config=get_active_config())
        result = service.consolidate(period_id)
        outcome = service.create_transfer(period_id, "000010", "000020", 5, "2.50")
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from recon_config.schema import ReconConfig
from recon_engines.consolidation import ConsolidationEngine
from recon_engines.entries import EntryAggregator
from recon_engines.exits import ExitAggregator
from recon_engines.results import (
    ConsolidatedRow,
    ConsolidationSummary,
    EntryAggregation,
    ExitAggregation,
)
from recon_engines.transfer_policy import TransferPolicyChecker
from recon_kernel.domain.clock import Clock, SystemClock
from recon_kernel.domain.dtos import (
    BaseResolution,
    CheckSeverity,
    ReconciliationFinding,
    TransferRecord,
    count_by_severity,
)
from recon_kernel.exceptions import UnknownItemCodeError
from recon_kernel.logging_config import LogContext, get_logger
from recon_kernel.selectors.adjustment_selector import AdjustmentSelector
from recon_kernel.selectors.catalog_selector import CatalogSelector
from recon_kernel.selectors.line_selector import LineSelector
from recon_kernel.services.adjustment_ledger import AdjustmentLedgerService
from recon_kernel.services.base_resolver import BaseResolver
from recon_services.reports import (
    AdjustmentsReport,
    FinalInventory,
    build_adjustments_report,
    build_final_inventory,
)

logger = get_logger("services.reconciliation")


@dataclass(frozen=True)
class ConsolidationResult:
    """Consolidated rows of a period plus everything that qualifies them."""

    rows: tuple[ConsolidatedRow, ...]
    summary: ConsolidationSummary
    resolution: BaseResolution
    findings: tuple[ReconciliationFinding, ...] = ()
    degraded_dimensions: tuple[str, ...] = ()

    @property
    def is_degraded(self) -> bool:
        return bool(self.degraded_dimensions)

    @property
    def error_count(self) -> int:
        return count_by_severity(self.findings, CheckSeverity.ERROR)

    @property
    def warning_count(self) -> int:
        return count_by_severity(self.findings, CheckSeverity.WARNING)

    def row_for(self, cod_item: str) -> ConsolidatedRow | None:
        for row in self.rows:
            if row.cod_item == cod_item:
                return row
        return None


@dataclass(frozen=True)
class TransferOutcome:
    transfer: TransferRecord
    findings: tuple[ReconciliationFinding, ...] = ()


class ReconciliationService:
    """Facade over resolution, aggregation, consolidation and transfers."""

    def __init__(
        self,
        session: Session,
        config: ReconConfig | None = None,
        clock: Clock | None = None,
    ):
        self.session = session
        self._config = config or ReconConfig()
        self._clock = clock or SystemClock()

        self._resolver = BaseResolver(session)
        self._lines = LineSelector(session)
        self._catalog = CatalogSelector(session)
        self._adjustments = AdjustmentSelector(session)
        self._ledger = AdjustmentLedgerService(
            session, clock=self._clock, code_width=self._config.code_width
        )

        self._entries = EntryAggregator()
        self._exits = ExitAggregator()
        self._engine = ConsolidationEngine()
        self._policy = TransferPolicyChecker(
            overdraw_policy=self._config.overdraw_policy,
            unit_mismatch_policy=self._config.unit_mismatch_overdraw_policy,
        )

    # ------------------------------------------------------------------
    # Resolution and aggregation
    # ------------------------------------------------------------------

    def resolve_base(
        self,
        period_id: UUID,
        *,
        ledger_batch_id: UUID | None = None,
        stock_batch_id: UUID | None = None,
    ) -> BaseResolution:
        return self._resolver.resolve_base(
            period_id,
            ledger_batch_id=ledger_batch_id,
            stock_batch_id=stock_batch_id,
        )

    def aggregate_entries(self, ledger_batch_id: UUID | None) -> EntryAggregation:
        """Entry totals of one ledger batch (empty when None)."""
        if ledger_batch_id is None:
            return EntryAggregation(ledger_batch_id=None)

        lines = self._lines.entry_lines(ledger_batch_id)
        return self._entries.aggregate(
            ledger_batch_id=ledger_batch_id,
            documents=self._lines.ledger_documents(ledger_batch_id),
            lines=lines,
            overrides=self._lines.entry_overrides(line.id for line in lines),
            conversions=self._lines.unit_conversions(ledger_batch_id),
        )

    def aggregate_exits(self, invoice_batch_ids: Sequence[UUID]) -> ExitAggregation:
        """Exit totals across the given invoice batches."""
        batch_ids = tuple(invoice_batch_ids)
        if not batch_ids:
            return ExitAggregation()

        return self._exits.aggregate(
            lines=self._lines.iter_exit_lines(
                batch_ids,
                chunk_size=self._config.batch_chunk_size,
                page_size=self._config.page_size,
            ),
            batch_ids=batch_ids,
        )

    # ------------------------------------------------------------------
    # Consolidation
    # ------------------------------------------------------------------

    def consolidate(
        self,
        period_id: UUID,
        ledger_batch_id: UUID | None = None,
    ) -> ConsolidationResult:
        """
        Consolidate the period.

        ``ledger_batch_id`` reviews a specific ledger batch of the same
        period instead of the base one; a batch of another period is
        replaced by the base and reported.
        """
        resolution = self.resolve_base(period_id, ledger_batch_id=ledger_batch_id)
        return self._consolidate_resolved(resolution)

    def _consolidate_resolved(self, resolution: BaseResolution) -> ConsolidationResult:
        ledger_id = resolution.ledger_batch_id
        stock_id = resolution.stock_batch_id

        with LogContext.bind(
            period_id=str(resolution.period_id),
            ledger_batch_id=str(ledger_id) if ledger_id else None,
        ):
            entries = self.aggregate_entries(ledger_id)
            exits = self.aggregate_exits(resolution.invoice_batch_ids)
            stock_lines = self._lines.stock_lines(stock_id) if stock_id else []
            transfers = (
                self._adjustments.list_transfers(resolution.period_id, ledger_id)
                if ledger_id else []
            )
            ledger_products = self._lines.ledger_products(ledger_id) if ledger_id else {}

            codes = (
                {line.cod_item for line in stock_lines}
                | set(entries.totals)
                | set(exits.totals)
            )
            catalog = self._catalog.products(codes) if codes else {}

            output = self._engine.consolidate(
                stock_lines=stock_lines,
                entries=entries,
                exits=exits,
                transfers=transfers,
                ledger_products=ledger_products,
                catalog=catalog,
                missing_description=self._config.missing_description,
                default_unit=self._config.default_unit,
            )

            findings = (
                resolution.findings
                + entries.findings
                + exits.findings
                + output.findings
            )
            result = ConsolidationResult(
                rows=output.rows,
                summary=output.summary,
                resolution=resolution,
                findings=findings,
                degraded_dimensions=resolution.degraded_dimensions,
            )

            logger.info(
                "consolidation_completed",
                extra={
                    "item_count": output.summary.item_count,
                    "transfer_count": len(transfers),
                    "finding_count": len(findings),
                    "degraded_dimensions": list(resolution.degraded_dimensions),
                    "final_value": output.summary.final_value,
                },
            )
            return result

    # ------------------------------------------------------------------
    # Transfers
    # ------------------------------------------------------------------

    def create_transfer(
        self,
        period_id: UUID,
        cod_negativo: str,
        cod_positivo: str,
        qty: Decimal | int | str,
        unit_cost: Decimal | int | str,
        *,
        ledger_batch_id: UUID | None = None,
        actor_id: UUID | None = None,
    ) -> TransferOutcome:
        """
        Record a transfer after checking it against the current consolidation.

        Raises:
            InputValidationError family: bad codes, quantity or cost;
                UnknownItemCodeError for a code with no row in scope;
                DonorOverdrawError under a reject policy.
            AmbiguousBaseBatchError / BaseBatchNotFoundError: no ledger.
        """
        receiver, donor, qty_dec, cost_dec = self._ledger.validate_transfer(
            cod_negativo, cod_positivo, qty, unit_cost
        )

        resolution = self.resolve_base(period_id, ledger_batch_id=ledger_batch_id)
        ledger_id = resolution.require_ledger()

        with LogContext.bind(
            period_id=str(period_id),
            ledger_batch_id=str(ledger_id),
            actor_id=str(actor_id) if actor_id else None,
        ):
            consolidation = self._consolidate_resolved(resolution)
            receiver_row = consolidation.row_for(receiver)
            if receiver_row is None:
                raise UnknownItemCodeError(receiver, "receiver")
            donor_row = consolidation.row_for(donor)
            if donor_row is None:
                raise UnknownItemCodeError(donor, "donor")

            findings = self._policy.check(
                donor=donor_row, receiver=receiver_row, qty=qty_dec
            )
            if findings:
                logger.warning(
                    "transfer_policy_warning",
                    extra={"finding_codes": [f.code for f in findings]},
                )

            transfer = self._ledger.create_transfer(
                receiver,
                donor,
                qty_dec,
                cost_dec,
                period_id=period_id,
                ledger_batch_id=ledger_id,
                actor_id=actor_id,
            )
            return TransferOutcome(transfer=transfer, findings=findings)

    def delete_transfer(self, transfer_id: UUID) -> None:
        self._ledger.delete_transfer(transfer_id)

    def list_transfers(
        self,
        period_id: UUID,
        ledger_batch_id: UUID | None = None,
    ) -> list[TransferRecord]:
        """Transfers of the period's ledger scope, newest first."""
        resolution = self.resolve_base(period_id, ledger_batch_id=ledger_batch_id)
        return self._ledger.list_transfers(period_id, resolution.require_ledger())

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    def final_inventory(
        self,
        period_id: UUID,
        ledger_batch_id: UUID | None = None,
    ) -> FinalInventory:
        consolidation = self.consolidate(period_id, ledger_batch_id)
        return build_final_inventory(
            consolidation.rows,
            period_id=period_id,
            ledger_batch_id=consolidation.resolution.ledger_batch_id,
            value_negative_final_as_zero=self._config.value_negative_final_as_zero,
            generated_at=self._clock.now(),
        )

    def adjustments_report(
        self,
        period_id: UUID,
        ledger_batch_id: UUID | None = None,
    ) -> AdjustmentsReport:
        resolution = self.resolve_base(period_id, ledger_batch_id=ledger_batch_id)
        ledger_id = resolution.require_ledger()
        consolidation = self._consolidate_resolved(resolution)
        descriptions = {row.cod_item: row.description for row in consolidation.rows}

        def describe(cod_item: str) -> str:
            return descriptions.get(cod_item, self._config.missing_description)

        return build_adjustments_report(
            self._ledger.list_transfers(period_id, ledger_id),
            describe,
        )

"""
DTOs -- immutable records flowing between selectors, engines and services.

Responsibility:
    Defines the frozen dataclasses that selectors return and pure engines
    consume (source line records, product registrations, transfers), the
    finding record used to report data-integrity problems, and the base
    batch resolution result.

Architecture position:
    Kernel > Domain -- pure, zero I/O.  from_model() class methods are
    boundary converters invoked by selectors only.

Invariants enforced:
    - Engines receive these records, never ORM instances.
    - Quantities and values are Decimal.
    - A ReconciliationFinding is a report, not an exception: it travels next
      to the partial result it qualifies.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any
from uuid import UUID

from recon_kernel.exceptions import AmbiguousBaseBatchError, BaseBatchNotFoundError

if TYPE_CHECKING:
    from recon_kernel.models.adjustment import AdjustmentTransfer
    from recon_kernel.models.invoice import ExitLine
    from recon_kernel.models.ledger import (
        EntryLine,
        EntryLineOverride,
        LedgerDocument,
        UnitConversion,
    )
    from recon_kernel.models.period import Period
    from recon_kernel.models.source_batch import SourceBatch
    from recon_kernel.models.stock import InitialStockLine


ZERO = Decimal("0")


# =============================================================================
# Findings
# =============================================================================


class CheckSeverity(str, Enum):
    """Severity level of a reconciliation finding."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True)
class ReconciliationFinding:
    """One data-integrity or configuration issue met while reconciling.

    ``code`` is machine-readable (e.g. DUPLICATE_ENTRY_LINE); ``details``
    identifies the lines, batches or codes involved.
    """

    code: str
    severity: CheckSeverity
    message: str
    details: Mapping[str, Any] | None = None


def count_by_severity(
    findings: tuple[ReconciliationFinding, ...],
    severity: CheckSeverity,
) -> int:
    return sum(1 for f in findings if f.severity == severity)


# =============================================================================
# Quantities
# =============================================================================


@dataclass(frozen=True)
class QtyValue:
    """A quantity and its monetary value, summed together."""

    qty: Decimal = ZERO
    value: Decimal = ZERO

    def __add__(self, other: QtyValue) -> QtyValue:
        return QtyValue(self.qty + other.qty, self.value + other.value)


# =============================================================================
# Periods and batches
# =============================================================================


@dataclass(frozen=True)
class PeriodInfo:
    id: UUID
    year: int
    month: int
    name: str
    label: str
    is_active: bool

    @classmethod
    def from_model(cls, model: Period) -> PeriodInfo:
        return cls(
            id=model.id,
            year=model.year,
            month=model.month,
            name=model.name,
            label=model.label,
            is_active=model.is_active,
        )


@dataclass(frozen=True)
class BatchInfo:
    id: UUID
    batch_type: str
    label: str
    period_id: UUID | None
    is_base: bool
    created_at: datetime | None = None

    @classmethod
    def from_model(cls, model: SourceBatch) -> BatchInfo:
        return cls(
            id=model.id,
            batch_type=model.batch_type,
            label=model.label,
            period_id=model.period_id,
            is_base=model.is_base,
            created_at=model.created_at,
        )


@dataclass(frozen=True)
class BaseResolution:
    """
    Which batch of each source type is authoritative for a period.

    Contract:
        ``stock_batch_id`` None means an empty initial stock;
        ``ledger_batch_id`` None means no entries can be aggregated;
        ``invoice_batch_ids`` is the union of base invoice batches.
        ``degraded_dimensions`` names the dimensions ("stock", "ledger")
        whose resolution hit a configuration fault.
    """

    period_id: UUID
    stock_batch_id: UUID | None
    ledger_batch_id: UUID | None
    invoice_batch_ids: tuple[UUID, ...] = ()
    findings: tuple[ReconciliationFinding, ...] = ()
    degraded_dimensions: tuple[str, ...] = ()

    def require_ledger(self) -> UUID:
        """
        Return the ledger batch id or raise the configuration fault behind it.

        Raises:
            AmbiguousBaseBatchError: Several ledger candidates, no single base.
            BaseBatchNotFoundError: No ledger batch linked to the period.
        """
        if self.ledger_batch_id is not None:
            return self.ledger_batch_id

        for finding in self.findings:
            if finding.code == "LEDGER_BASE_AMBIGUOUS":
                candidates = (finding.details or {}).get("candidate_ids", [])
                raise AmbiguousBaseBatchError(
                    str(self.period_id), "ledger", list(candidates)
                )
        raise BaseBatchNotFoundError(str(self.period_id), "ledger")


# =============================================================================
# Source line records
# =============================================================================


@dataclass(frozen=True)
class StockLineRecord:
    id: UUID
    stock_batch_id: UUID
    cod_item: str
    quantity: Decimal
    unit_cost: Decimal
    unit: str | None = None
    description: str | None = None

    @property
    def value(self) -> Decimal:
        return self.quantity * self.unit_cost

    @classmethod
    def from_model(cls, model: InitialStockLine) -> StockLineRecord:
        return cls(
            id=model.id,
            stock_batch_id=model.stock_batch_id,
            cod_item=model.cod_item,
            quantity=Decimal(model.quantity),
            unit_cost=Decimal(model.unit_cost),
            unit=model.unit,
            description=model.description,
        )


@dataclass(frozen=True)
class LedgerDocumentRecord:
    id: UUID
    ledger_batch_id: UUID
    series: str | None = None
    number: str | None = None
    issued_on: date | None = None
    partner_code: str | None = None
    partner_name: str | None = None

    @classmethod
    def from_model(cls, model: LedgerDocument) -> LedgerDocumentRecord:
        return cls(
            id=model.id,
            ledger_batch_id=model.ledger_batch_id,
            series=model.series,
            number=model.number,
            issued_on=model.issued_on,
            partner_code=model.partner_code,
            partner_name=model.partner_name,
        )


@dataclass(frozen=True)
class EntryLineRecord:
    """A received-goods line as stored; quantity is in document units."""

    id: UUID
    ledger_batch_id: UUID
    document_id: UUID | None
    cod_item: str
    quantity: Decimal
    value_total: Decimal
    unit: str | None = None
    description: str | None = None
    line_number: int | None = None

    @classmethod
    def from_model(cls, model: EntryLine) -> EntryLineRecord:
        return cls(
            id=model.id,
            ledger_batch_id=model.ledger_batch_id,
            document_id=model.document_id,
            cod_item=model.cod_item,
            quantity=Decimal(model.quantity),
            value_total=Decimal(model.value_total),
            unit=model.unit,
            description=model.description,
            line_number=model.line_number,
        )


@dataclass(frozen=True)
class EntryOverrideRecord:
    entry_line_id: UUID
    adjusted_quantity: Decimal
    reason: str | None = None

    @classmethod
    def from_model(cls, model: EntryLineOverride) -> EntryOverrideRecord:
        return cls(
            entry_line_id=model.entry_line_id,
            adjusted_quantity=Decimal(model.adjusted_quantity),
            reason=model.reason,
        )


@dataclass(frozen=True)
class UnitConversionRecord:
    cod_item: str
    unit: str
    factor: Decimal | None

    @classmethod
    def from_model(cls, model: UnitConversion) -> UnitConversionRecord:
        return cls(
            cod_item=model.cod_item,
            unit=model.unit,
            factor=Decimal(model.factor) if model.factor is not None else None,
        )


@dataclass(frozen=True)
class ProductInfo:
    """Description and unit registered for a code by one product source."""

    cod_item: str
    description: str | None = None
    unit: str | None = None


@dataclass(frozen=True)
class ExitLineRecord:
    id: UUID
    invoice_batch_id: UUID
    cod_item: str
    quantity: Decimal
    value_total: Decimal
    unit: str | None = None
    description: str | None = None

    @classmethod
    def from_model(cls, model: ExitLine) -> ExitLineRecord:
        return cls(
            id=model.id,
            invoice_batch_id=model.invoice_batch_id,
            cod_item=model.cod_item,
            quantity=Decimal(model.quantity),
            value_total=Decimal(model.value_total),
            unit=model.unit,
            description=model.description,
        )


@dataclass(frozen=True)
class TransferRecord:
    id: UUID
    ledger_batch_id: UUID
    cod_negativo: str
    cod_positivo: str
    qty_baixada: Decimal
    unit_cost: Decimal
    total_value: Decimal
    created_at: datetime
    period_id: UUID | None = None
    created_by_id: UUID | None = None

    @classmethod
    def from_model(cls, model: AdjustmentTransfer) -> TransferRecord:
        return cls(
            id=model.id,
            ledger_batch_id=model.ledger_batch_id,
            cod_negativo=model.cod_negativo,
            cod_positivo=model.cod_positivo,
            qty_baixada=Decimal(model.qty_baixada),
            unit_cost=Decimal(model.unit_cost),
            total_value=Decimal(model.total_value),
            created_at=model.created_at,
            period_id=model.period_id,
            created_by_id=model.created_by_id,
        )


"""
recon_ingestion.domain.types -- raw record and result types of the import.

ZERO I/O.  Raw records carry values as extracted: numbers may be Decimal,
int, float or text in either separator convention; codes are not yet
normalized.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Union
from uuid import UUID


RawNumber = Union[Decimal, int, float, str, None]
RawCode = Union[str, int, None]


@dataclass(frozen=True)
class RawStockRecord:
    cod_item: RawCode
    quantity: RawNumber
    unit_cost: RawNumber
    unit: str | None = None
    description: str | None = None
    row: int | None = None


@dataclass(frozen=True)
class RawLedgerDocument:
    """A received-goods document; ``key`` links it to its lines in the same import."""

    key: str
    series: str | None = None
    number: str | None = None
    issued_on: date | None = None
    partner_code: str | None = None
    partner_name: str | None = None


@dataclass(frozen=True)
class RawEntryLine:
    document_key: str | None
    cod_item: RawCode
    quantity: RawNumber
    value_total: RawNumber
    unit: str | None = None
    description: str | None = None
    line_number: int | None = None
    row: int | None = None


@dataclass(frozen=True)
class RawLedgerProduct:
    cod_item: RawCode
    description: str | None = None
    inventory_unit: str | None = None
    row: int | None = None


@dataclass(frozen=True)
class RawUnitConversion:
    cod_item: RawCode
    unit: str | None
    factor: RawNumber
    row: int | None = None


@dataclass(frozen=True)
class RawExitLine:
    cod_item: RawCode
    quantity: RawNumber
    value_total: RawNumber
    unit: str | None = None
    description: str | None = None
    invoice_key: str | None = None
    row: int | None = None


@dataclass(frozen=True)
class RawCatalogProduct:
    cod_item: RawCode
    description: str | None = None
    unit: str | None = None
    row: int | None = None


@dataclass(frozen=True)
class ImportRejection:
    """A raw record refused at the boundary."""

    record_type: str
    row: int | None
    code: str
    message: str
    field: str | None = None
    details: dict[str, Any] | None = None


@dataclass(frozen=True)
class ImportResult:
    """Outcome of one import call."""

    batch_id: UUID | None
    accepted: int
    rejected: tuple[ImportRejection, ...] = field(default_factory=tuple)

    @property
    def rejected_count(self) -> int:
        return len(self.rejected)

    @property
    def is_clean(self) -> bool:
        return not self.rejected

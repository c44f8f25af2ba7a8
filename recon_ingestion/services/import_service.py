"""
BatchImportService -- persist extracted source records as a new batch.

Responsibility:
    Each import creates one SourceBatch (stock, ledger or invoice), turns
    every raw record into a row with its item code normalized exactly once,
    and reports records it cannot use.  The product catalog is not a batch:
    it is upserted by item code.

Invariants enforced:
    - Codes are normalized here and nowhere downstream.
    - A bad record is rejected alone; the rest of the batch is kept.
    - Entry lines keep a soft link to their document: a line whose
      document key is unknown is stored unlinked and reported later by the
      entry aggregator.
    - Flush-only; the caller commits.

Uses structured logging (LogContext, get_logger("ingestion.*")).
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from typing import Any, TypeVar
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from recon_config.schema import ReconConfig
from recon_kernel.logging_config import LogContext, get_logger
from recon_kernel.models.catalog import CatalogProduct
from recon_kernel.models.invoice import ExitLine
from recon_kernel.models.ledger import (
    EntryLine,
    LedgerDocument,
    LedgerProduct,
    UnitConversion,
)
from recon_kernel.models.source_batch import BatchType
from recon_kernel.models.stock import InitialStockLine
from recon_kernel.services.period_service import PeriodService

from recon_ingestion.domain.types import (
    ImportRejection,
    ImportResult,
    RawCatalogProduct,
    RawEntryLine,
    RawExitLine,
    RawLedgerDocument,
    RawLedgerProduct,
    RawStockRecord,
    RawUnitConversion,
)
from recon_ingestion.domain.validators import (
    RecordRejected,
    clean_text,
    optional_number,
    require_code,
    require_number,
)

logger = get_logger("ingestion.import_service")

R = TypeVar("R")


class BatchImportService:
    """Imports raw records into new source batches."""

    def __init__(self, session: Session, config: ReconConfig | None = None):
        self.session = session
        self._config = config or ReconConfig()
        self._periods = PeriodService(session)

    @property
    def code_width(self) -> int:
        return self._config.code_width

    # ------------------------------------------------------------------
    # Stock snapshot
    # ------------------------------------------------------------------

    def import_stock(
        self,
        label: str,
        records: Iterable[RawStockRecord],
        *,
        period_id: UUID | None = None,
        is_base: bool = False,
    ) -> ImportResult:
        batch = self._periods.create_batch(BatchType.STOCK, label, period_id, is_base)

        def build(rec: RawStockRecord, row: int) -> InitialStockLine:
            return InitialStockLine(
                stock_batch_id=batch.id,
                cod_item=require_code(rec.cod_item, self.code_width),
                description=clean_text(rec.description),
                quantity=require_number(rec.quantity, "quantity"),
                unit=clean_text(rec.unit),
                unit_cost=require_number(rec.unit_cost, "unit_cost"),
                source_row=row,
            )

        with LogContext.bind(correlation_id=str(batch.id)):
            accepted, rejected = self._persist("stock_line", records, build)
            return self._finish(batch.id, "stock", accepted, rejected)

    # ------------------------------------------------------------------
    # Ledger file
    # ------------------------------------------------------------------

    def import_ledger(
        self,
        label: str,
        documents: Iterable[RawLedgerDocument],
        lines: Iterable[RawEntryLine],
        products: Iterable[RawLedgerProduct] = (),
        conversions: Iterable[RawUnitConversion] = (),
        *,
        period_id: UUID | None = None,
        is_base: bool = False,
    ) -> ImportResult:
        batch = self._periods.create_batch(BatchType.LEDGER, label, period_id, is_base)
        rejected: list[ImportRejection] = []
        accepted = 0

        with LogContext.bind(correlation_id=str(batch.id), ledger_batch_id=str(batch.id)):
            doc_ids: dict[str, UUID] = {}
            for row, doc in enumerate(documents, start=1):
                if doc.key in doc_ids:
                    # Lines keep linking to the first document with this key
                    rejected.append(ImportRejection(
                        record_type="ledger_document",
                        row=row,
                        code="DUPLICATE_DOCUMENT_KEY",
                        message=f"Document key {doc.key!r} already used in this import",
                        field="key",
                        details={"key": doc.key},
                    ))
                    continue
                model = LedgerDocument(
                    ledger_batch_id=batch.id,
                    series=clean_text(doc.series),
                    number=clean_text(doc.number),
                    issued_on=doc.issued_on,
                    partner_code=clean_text(doc.partner_code),
                    partner_name=clean_text(doc.partner_name),
                )
                self.session.add(model)
                self.session.flush()
                doc_ids[doc.key] = model.id

            def build_line(rec: RawEntryLine, row: int) -> EntryLine:
                return EntryLine(
                    ledger_batch_id=batch.id,
                    document_id=doc_ids.get(rec.document_key) if rec.document_key else None,
                    line_number=rec.line_number,
                    cod_item=require_code(rec.cod_item, self.code_width),
                    description=clean_text(rec.description),
                    unit=clean_text(rec.unit),
                    quantity=require_number(rec.quantity, "quantity"),
                    value_total=require_number(rec.value_total, "value_total"),
                )

            n, errs = self._persist("entry_line", lines, build_line)
            accepted += n
            rejected.extend(errs)

            n, errs = self._import_ledger_products(batch.id, products)
            accepted += n
            rejected.extend(errs)

            n, errs = self._import_conversions(batch.id, conversions)
            accepted += n
            rejected.extend(errs)

            return self._finish(batch.id, "ledger", accepted, rejected, documents=len(doc_ids))

    def _import_ledger_products(
        self,
        batch_id: UUID,
        products: Iterable[RawLedgerProduct],
    ) -> tuple[int, list[ImportRejection]]:
        seen: set[str] = set()

        def build(rec: RawLedgerProduct, row: int) -> LedgerProduct | None:
            code = require_code(rec.cod_item, self.code_width)
            if code in seen:
                return None
            seen.add(code)
            return LedgerProduct(
                ledger_batch_id=batch_id,
                cod_item=code,
                description=clean_text(rec.description),
                inventory_unit=clean_text(rec.inventory_unit),
            )

        return self._persist("ledger_product", products, build)

    def _import_conversions(
        self,
        batch_id: UUID,
        conversions: Iterable[RawUnitConversion],
    ) -> tuple[int, list[ImportRejection]]:
        # Last registration of a (code, unit) pair wins
        latest: dict[tuple[str, str], UnitConversion] = {}
        rejected: list[ImportRejection] = []

        for index, rec in enumerate(conversions, start=1):
            row = rec.row if rec.row is not None else index
            try:
                code = require_code(rec.cod_item, self.code_width)
                unit = clean_text(rec.unit)
                if unit is None:
                    raise RecordRejected("MISSING_UNIT", "unit", "Conversion without unit")
                latest[(code, unit.upper())] = UnitConversion(
                    ledger_batch_id=batch_id,
                    cod_item=code,
                    unit=unit,
                    factor=optional_number(rec.factor, "factor"),
                )
            except RecordRejected as exc:
                rejected.append(self._rejection("unit_conversion", row, exc))

        self.session.add_all(latest.values())
        self.session.flush()
        return len(latest), rejected

    # ------------------------------------------------------------------
    # Invoices
    # ------------------------------------------------------------------

    def import_invoices(
        self,
        label: str,
        records: Iterable[RawExitLine],
        *,
        period_id: UUID | None = None,
        is_base: bool = False,
    ) -> ImportResult:
        batch = self._periods.create_batch(BatchType.INVOICE, label, period_id, is_base)

        def build(rec: RawExitLine, row: int) -> ExitLine:
            return ExitLine(
                invoice_batch_id=batch.id,
                invoice_key=clean_text(rec.invoice_key),
                cod_item=require_code(rec.cod_item, self.code_width),
                description=clean_text(rec.description),
                unit=clean_text(rec.unit),
                quantity=require_number(rec.quantity, "quantity"),
                value_total=require_number(rec.value_total, "value_total"),
            )

        with LogContext.bind(correlation_id=str(batch.id)):
            accepted, rejected = self._persist("exit_line", records, build)
            return self._finish(batch.id, "invoice", accepted, rejected)

    # ------------------------------------------------------------------
    # Product catalog
    # ------------------------------------------------------------------

    def import_catalog(self, records: Iterable[RawCatalogProduct]) -> ImportResult:
        """Upsert catalog products by normalized code; later records win."""
        rejected: list[ImportRejection] = []
        incoming: dict[str, RawCatalogProduct] = {}

        for index, rec in enumerate(records, start=1):
            row = rec.row if rec.row is not None else index
            try:
                incoming[require_code(rec.cod_item, self.code_width)] = rec
            except RecordRejected as exc:
                rejected.append(self._rejection("catalog_product", row, exc))

        existing: dict[str, CatalogProduct] = {}
        codes = list(incoming)
        for i in range(0, len(codes), 500):
            chunk = codes[i:i + 500]
            for model in self.session.execute(
                select(CatalogProduct).where(CatalogProduct.cod_item.in_(chunk))
            ).scalars():
                existing[model.cod_item] = model

        created = 0
        for code, rec in incoming.items():
            model = existing.get(code)
            if model is None:
                self.session.add(CatalogProduct(
                    cod_item=code,
                    description=clean_text(rec.description),
                    unit=clean_text(rec.unit),
                ))
                created += 1
            else:
                model.description = clean_text(rec.description)
                model.unit = clean_text(rec.unit)
        self.session.flush()

        logger.info(
            "catalog_imported",
            extra={
                "accepted": len(incoming),
                "created": created,
                "updated": len(incoming) - created,
                "rejected": len(rejected),
            },
        )
        return ImportResult(batch_id=None, accepted=len(incoming), rejected=tuple(rejected))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _persist(
        self,
        record_type: str,
        records: Iterable[R],
        build: Callable[[R, int], Any],
    ) -> tuple[int, list[ImportRejection]]:
        """Build a model per record; collect rejections instead of raising."""
        models: list[Any] = []
        rejected: list[ImportRejection] = []
        for index, rec in enumerate(records, start=1):
            row = getattr(rec, "row", None)
            row = row if row is not None else index
            try:
                model = build(rec, row)
            except RecordRejected as exc:
                rejected.append(self._rejection(record_type, row, exc))
                continue
            if model is not None:
                models.append(model)

        self.session.add_all(models)
        self.session.flush()
        return len(models), rejected

    @staticmethod
    def _rejection(record_type: str, row: int, exc: RecordRejected) -> ImportRejection:
        return ImportRejection(
            record_type=record_type,
            row=row,
            code=exc.code,
            message=exc.message,
            field=exc.field,
        )

    def _finish(
        self,
        batch_id: UUID,
        kind: str,
        accepted: int,
        rejected: Sequence[ImportRejection],
        **counts: int,
    ) -> ImportResult:
        log = logger.warning if rejected else logger.info
        log(
            "batch_imported",
            extra={
                "batch_id": str(batch_id),
                "batch_type": kind,
                "accepted": accepted,
                "rejected": len(rejected),
                **counts,
            },
        )
        return ImportResult(batch_id=batch_id, accepted=accepted, rejected=tuple(rejected))

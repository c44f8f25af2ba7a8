"""
Module: recon_kernel.selectors.line_selector
Responsibility: Read-only access to the imported source lines of a batch:
    stock snapshot lines, ledger documents, entry lines and their overrides,
    unit conversions, ledger product registrations, and exit lines.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Every query is filtered by batch id; no line of another batch leaks in.
    - Exit lines are streamed: batch ids are split into chunks and each
      chunk is read in keyset pages ordered by id, so memory stays bounded
      regardless of how many invoice files a period has.

Failure modes:
    - ValueError for a non-positive chunk_size or page_size.
"""

from collections.abc import Iterable, Iterator, Sequence
from uuid import UUID

from sqlalchemy import select

from recon_kernel.domain.dtos import (
    EntryLineRecord,
    EntryOverrideRecord,
    ExitLineRecord,
    LedgerDocumentRecord,
    ProductInfo,
    StockLineRecord,
    UnitConversionRecord,
)
from recon_kernel.logging_config import get_logger
from recon_kernel.models.invoice import ExitLine
from recon_kernel.models.ledger import (
    EntryLine,
    EntryLineOverride,
    LedgerDocument,
    LedgerProduct,
    UnitConversion,
)
from recon_kernel.models.stock import InitialStockLine
from recon_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.line")

DEFAULT_BATCH_CHUNK_SIZE = 50
DEFAULT_PAGE_SIZE = 1000
_IN_CHUNK = 500


class LineSelector(BaseSelector[EntryLine]):
    """Batch-scoped line queries."""

    def stock_lines(self, stock_batch_id: UUID) -> list[StockLineRecord]:
        stmt = (
            select(InitialStockLine)
            .where(InitialStockLine.stock_batch_id == stock_batch_id)
            .order_by(InitialStockLine.cod_item, InitialStockLine.id)
        )
        return [StockLineRecord.from_model(m) for m in self.session.execute(stmt).scalars()]

    def ledger_documents(self, ledger_batch_id: UUID) -> list[LedgerDocumentRecord]:
        stmt = (
            select(LedgerDocument)
            .where(LedgerDocument.ledger_batch_id == ledger_batch_id)
            .order_by(LedgerDocument.id)
        )
        return [
            LedgerDocumentRecord.from_model(m)
            for m in self.session.execute(stmt).scalars()
        ]

    def entry_lines(self, ledger_batch_id: UUID) -> list[EntryLineRecord]:
        stmt = (
            select(EntryLine)
            .where(EntryLine.ledger_batch_id == ledger_batch_id)
            .order_by(EntryLine.id)
        )
        return [EntryLineRecord.from_model(m) for m in self.session.execute(stmt).scalars()]

    def entry_overrides(self, line_ids: Iterable[UUID]) -> dict[UUID, EntryOverrideRecord]:
        """Overrides for the given entry lines, keyed by entry_line_id."""
        ids = list(dict.fromkeys(line_ids))
        result: dict[UUID, EntryOverrideRecord] = {}
        for i in range(0, len(ids), _IN_CHUNK):
            chunk = ids[i:i + _IN_CHUNK]
            stmt = select(EntryLineOverride).where(
                EntryLineOverride.entry_line_id.in_(chunk)
            )
            for model in self.session.execute(stmt).scalars():
                result[model.entry_line_id] = EntryOverrideRecord.from_model(model)
        return result

    def unit_conversions(self, ledger_batch_id: UUID) -> list[UnitConversionRecord]:
        stmt = (
            select(UnitConversion)
            .where(UnitConversion.ledger_batch_id == ledger_batch_id)
            .order_by(UnitConversion.cod_item, UnitConversion.id)
        )
        return [
            UnitConversionRecord.from_model(m)
            for m in self.session.execute(stmt).scalars()
        ]

    def ledger_products(self, ledger_batch_id: UUID) -> dict[str, ProductInfo]:
        stmt = select(LedgerProduct).where(
            LedgerProduct.ledger_batch_id == ledger_batch_id
        )
        return {
            m.cod_item: ProductInfo(m.cod_item, m.description, m.inventory_unit)
            for m in self.session.execute(stmt).scalars()
        }

    def iter_exit_lines(
        self,
        batch_ids: Sequence[UUID],
        chunk_size: int = DEFAULT_BATCH_CHUNK_SIZE,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> Iterator[ExitLineRecord]:
        """
        Stream the exit lines of ``batch_ids``.

        Batch ids are processed ``chunk_size`` at a time; within a chunk,
        lines are read ``page_size`` rows at a time ordered by id.

        Raises:
            ValueError: If chunk_size or page_size is not positive.
        """
        if chunk_size <= 0 or page_size <= 0:
            raise ValueError("chunk_size and page_size must be positive")

        ids = list(dict.fromkeys(batch_ids))
        for i in range(0, len(ids), chunk_size):
            chunk = ids[i:i + chunk_size]
            last_id: UUID | None = None
            pages = 0
            while True:
                stmt = select(ExitLine).where(ExitLine.invoice_batch_id.in_(chunk))
                if last_id is not None:
                    stmt = stmt.where(ExitLine.id > last_id)
                stmt = stmt.order_by(ExitLine.id).limit(page_size)
                page = self.session.execute(stmt).scalars().all()
                if not page:
                    break
                pages += 1
                for model in page:
                    yield ExitLineRecord.from_model(model)
                if len(page) < page_size:
                    break
                last_id = page[-1].id

            logger.debug(
                "exit_lines_chunk_read",
                extra={"chunk_batches": len(chunk), "pages": pages},
            )

"""
Module: recon_kernel.models.ledger
Responsibility: ORM persistence for the incoming-goods side of a ledger batch:
    owning documents, entry lines, manual quantity overrides, and the ledger's
    own product registrations and unit conversions.

Invariants enforced:
    - EntryLine.id is the deduplication key of the entry aggregation.
    - EntryLine rows are immutable (db/immutability.py).  A manual correction
      is an EntryLineOverride row keyed by entry_line_id; it replaces the
      document quantity downstream but never rewrites it.
    - EntryLine.document_id is a soft reference (no FK).  Ledger files are
      loaded line-first, and a line whose document cannot be found in its
      own batch must be reported by the aggregator, not rejected by the store.
    - One LedgerProduct per (ledger_batch_id, cod_item).
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from recon_kernel.db.base import Base, TrackedBase, UUIDString


class LedgerDocument(Base):
    """A received-goods fiscal document within a ledger batch."""

    __tablename__ = "ledger_documents"

    __table_args__ = (
        Index("idx_ledger_doc_batch", "ledger_batch_id"),
    )

    ledger_batch_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("source_batches.id"),
        nullable=False,
    )

    series: Mapped[str | None] = mapped_column(String(10), nullable=True)

    number: Mapped[str | None] = mapped_column(String(20), nullable=True)

    issued_on: Mapped[date | None] = mapped_column(Date, nullable=True)

    partner_code: Mapped[str | None] = mapped_column(String(60), nullable=True)

    partner_name: Mapped[str | None] = mapped_column(String(200), nullable=True)

    @property
    def reference(self) -> str:
        return f"{self.series or ''} {self.number or ''}".strip()


class EntryLine(Base):
    """One received-goods line of a ledger document."""

    __tablename__ = "entry_lines"

    __table_args__ = (
        Index("idx_entry_line_batch", "ledger_batch_id"),
        Index("idx_entry_line_document", "document_id"),
    )

    ledger_batch_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("source_batches.id"),
        nullable=False,
    )

    document_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    line_number: Mapped[int | None] = mapped_column(Integer, nullable=True)

    cod_item: Mapped[str] = mapped_column(String(60), nullable=False)

    description: Mapped[str | None] = mapped_column(String(300), nullable=True)

    # Unit as printed on the document, matched against UnitConversion.unit
    unit: Mapped[str | None] = mapped_column(String(20), nullable=True)

    quantity: Mapped[Decimal] = mapped_column(nullable=False)

    value_total: Mapped[Decimal] = mapped_column(nullable=False)


class EntryLineOverride(TrackedBase):
    """Manually entered quantity replacing an entry line's document quantity."""

    __tablename__ = "entry_line_overrides"

    __table_args__ = (
        UniqueConstraint("entry_line_id", name="uq_override_entry_line"),
    )

    entry_line_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("entry_lines.id"),
        nullable=False,
    )

    # Expressed in document units; conversion applies on top
    adjusted_quantity: Mapped[Decimal] = mapped_column(nullable=False)

    reason: Mapped[str | None] = mapped_column(String(500), nullable=True)


class LedgerProduct(Base):
    """The ledger file's own registration of an item (description, inventory unit)."""

    __tablename__ = "ledger_products"

    __table_args__ = (
        UniqueConstraint("ledger_batch_id", "cod_item", name="uq_ledger_product"),
    )

    ledger_batch_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("source_batches.id"),
        nullable=False,
    )

    cod_item: Mapped[str] = mapped_column(String(60), nullable=False)

    description: Mapped[str | None] = mapped_column(String(300), nullable=True)

    inventory_unit: Mapped[str | None] = mapped_column(String(20), nullable=True)


class UnitConversion(Base):
    """Factor converting a document unit of an item into its stock unit."""

    __tablename__ = "unit_conversions"

    __table_args__ = (
        Index("idx_conversion_batch_code", "ledger_batch_id", "cod_item"),
    )

    ledger_batch_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("source_batches.id"),
        nullable=False,
    )

    cod_item: Mapped[str] = mapped_column(String(60), nullable=False)

    unit: Mapped[str] = mapped_column(String(20), nullable=False)

    factor: Mapped[Decimal | None] = mapped_column(nullable=True)

"""
Module: recon_kernel.models.stock
Responsibility: ORM persistence for initial stock snapshot lines.

Invariants enforced:
    - cod_item is stored already normalized (see recon_kernel.domain.item_code).
    - Lines are immutable once loaded (db/immutability.py); a corrected
      snapshot is a new stock batch.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from recon_kernel.db.base import Base, UUIDString


class InitialStockLine(Base):
    """One (item, quantity, unit cost) line of a stock snapshot."""

    __tablename__ = "initial_stock_lines"

    __table_args__ = (
        Index("idx_stock_line_batch_code", "stock_batch_id", "cod_item"),
    )

    stock_batch_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("source_batches.id"),
        nullable=False,
    )

    cod_item: Mapped[str] = mapped_column(String(60), nullable=False)

    description: Mapped[str | None] = mapped_column(String(300), nullable=True)

    quantity: Mapped[Decimal] = mapped_column(nullable=False)

    unit: Mapped[str | None] = mapped_column(String(20), nullable=True)

    unit_cost: Mapped[Decimal] = mapped_column(nullable=False)

    source_row: Mapped[int | None] = mapped_column(Integer, nullable=True)

    @property
    def value(self) -> Decimal:
        return self.quantity * self.unit_cost

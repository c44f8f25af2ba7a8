"""
Module: recon_kernel.models.adjustment
Responsibility: ORM persistence for code-offset adjustment transfers -- manual
    moves of quantity from a donor code's surplus to a receiver code's deficit.

Invariants enforced:
    - Immutable once created (db/immutability.py rejects UPDATE).  A correction
      is a new transfer; a mistake is deleted.
    - Deletion has no side effects beyond removing the row.
    - total_value == qty_baixada * unit_cost, stored for audit stability.
    - Codes are stored normalized.
    - Never auto-generated: only AdjustmentLedgerService creates rows.

Audit relevance:
    The scope (period_id, ledger_batch_id) attributes the transfer; it does not
    own it.  Consolidation always replays the full current ledger.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from recon_kernel.db.base import Base, UUIDString


class AdjustmentTransfer(Base):
    """qty_baixada units valued at unit_cost moved from cod_positivo to cod_negativo."""

    __tablename__ = "adjustment_transfers"

    __table_args__ = (
        Index("idx_transfer_scope", "ledger_batch_id", "period_id"),
    )

    period_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("periods.id"),
        nullable=True,
    )

    ledger_batch_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("source_batches.id"),
        nullable=False,
    )

    # Receiving code (theoretical deficit)
    cod_negativo: Mapped[str] = mapped_column(String(60), nullable=False)

    # Donor code (theoretical surplus)
    cod_positivo: Mapped[str] = mapped_column(String(60), nullable=False)

    qty_baixada: Mapped[Decimal] = mapped_column(nullable=False)

    unit_cost: Mapped[Decimal] = mapped_column(nullable=False)

    total_value: Mapped[Decimal] = mapped_column(nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    created_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<AdjustmentTransfer {self.cod_positivo} -> {self.cod_negativo} "
            f"qty={self.qty_baixada}>"
        )

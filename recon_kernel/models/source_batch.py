"""
Module: recon_kernel.models.source_batch
Responsibility: ORM persistence for imported source batches -- one stock
    snapshot, one ledger file or one invoice-import run.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - At most one is_base=True batch per (period, stock) and (period, ledger).
      Enforced on write by PeriodService.set_base(); BaseResolver reports a
      configuration fault if the store violates it anyway.
    - Invoice batches of a period may be jointly base (they are unioned).
    - An unlinked batch (period_id NULL) is never base.
"""

from enum import Enum
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from recon_kernel.db.base import TrackedBase, UUIDString


class BatchType(str, Enum):
    """Kind of source data held by a batch."""

    STOCK = "stock"
    LEDGER = "ledger"
    INVOICE = "invoice"


class SourceBatch(TrackedBase):
    """One imported unit of source data."""

    __tablename__ = "source_batches"

    __table_args__ = (
        Index("idx_batch_period_type_base", "period_id", "batch_type", "is_base"),
    )

    batch_type: Mapped[str] = mapped_column(String(20), nullable=False)

    label: Mapped[str] = mapped_column(String(200), nullable=False)

    period_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("periods.id"),
        nullable=True,
    )

    is_base: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    def __repr__(self) -> str:
        flag = " base" if self.is_base else ""
        return f"<SourceBatch {self.batch_type} {self.label}{flag}>"

    @property
    def type(self) -> BatchType:
        return BatchType(self.batch_type)

"""
Module: recon_kernel.models.invoice
Responsibility: ORM persistence for outgoing-goods (sales) lines extracted from
    an invoice-import batch.

Invariants enforced:
    - cod_item stored normalized.
    - Lines are immutable; exits have no override mechanism.
    - quantity keeps the sign of the source; aggregation uses its magnitude.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from recon_kernel.db.base import Base, UUIDString


class ExitLine(Base):
    """One sold-goods line of an invoice."""

    __tablename__ = "exit_lines"

    __table_args__ = (
        Index("idx_exit_line_batch", "invoice_batch_id"),
    )

    invoice_batch_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("source_batches.id"),
        nullable=False,
    )

    # Access key / number of the invoice the line came from
    invoice_key: Mapped[str | None] = mapped_column(String(60), nullable=True)

    cod_item: Mapped[str] = mapped_column(String(60), nullable=False)

    description: Mapped[str | None] = mapped_column(String(300), nullable=True)

    unit: Mapped[str | None] = mapped_column(String(20), nullable=True)

    quantity: Mapped[Decimal] = mapped_column(nullable=False)

    value_total: Mapped[Decimal] = mapped_column(nullable=False)

"""
Module: recon_kernel.models.period
Responsibility: ORM persistence for reconciliation periods -- the (year, month)
    unit of work that owns source batches.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - (year, month) is unique (uq_period_year_month).
    - At most one period has is_active=True; enforced by PeriodService.activate(),
      which clears every other flag in the same flush.

Non-goals:
    - The active flag is a UI convenience.  Resolution and consolidation take an
      explicit period id and never read it.
"""

from sqlalchemy import Boolean, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from recon_kernel.db.base import TrackedBase


class Period(TrackedBase):
    """A (year, month) reconciliation period."""

    __tablename__ = "periods"

    __table_args__ = (
        UniqueConstraint("year", "month", name="uq_period_year_month"),
        Index("idx_period_active", "is_active"),
    )

    year: Mapped[int] = mapped_column(Integer, nullable=False)

    month: Mapped[int] = mapped_column(Integer, nullable=False)

    # "January 2022"
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    # "Jan/2022"
    label: Mapped[str] = mapped_column(String(20), nullable=False)

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Period {self.label}{' (active)' if self.is_active else ''}>"

    @property
    def period_code(self) -> str:
        """Sortable code, e.g. "2022-01"."""
        return f"{self.year:04d}-{self.month:02d}"

"""
Module: recon_kernel.selectors.batch_selector
Responsibility: Read-only queries over periods and source batches -- the
    inputs of base batch resolution and of the period/batch admin surface.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Period scoping is always explicit; nothing here reads the active period
      implicitly (active_period() exists for UI collaborators).
    - Ordering is deterministic (created_at, then id).
"""

from uuid import UUID

from sqlalchemy import select

from recon_kernel.domain.dtos import BatchInfo, PeriodInfo
from recon_kernel.models.period import Period
from recon_kernel.models.source_batch import BatchType, SourceBatch
from recon_kernel.selectors.base import BaseSelector


class BatchSelector(BaseSelector[SourceBatch]):
    """Queries over Period and SourceBatch rows."""

    def get_period(self, period_id: UUID) -> PeriodInfo | None:
        model = self.session.get(Period, period_id)
        return PeriodInfo.from_model(model) if model is not None else None

    def find_period(self, year: int, month: int) -> PeriodInfo | None:
        model = self.session.execute(
            select(Period).where(Period.year == year, Period.month == month)
        ).scalar_one_or_none()
        return PeriodInfo.from_model(model) if model is not None else None

    def list_periods(self) -> list[PeriodInfo]:
        """All periods, newest first."""
        rows = self.session.execute(
            select(Period).order_by(Period.year.desc(), Period.month.desc())
        ).scalars()
        return [PeriodInfo.from_model(p) for p in rows]

    def active_period(self) -> PeriodInfo | None:
        model = self.session.execute(
            select(Period).where(Period.is_active.is_(True))
        ).scalars().first()
        return PeriodInfo.from_model(model) if model is not None else None

    def get_batch(self, batch_id: UUID) -> BatchInfo | None:
        model = self.session.get(SourceBatch, batch_id)
        return BatchInfo.from_model(model) if model is not None else None

    def list_batches(
        self,
        period_id: UUID | None = None,
        batch_type: BatchType | None = None,
    ) -> list[BatchInfo]:
        """Batches filtered by period and/or type, oldest first."""
        stmt = select(SourceBatch)
        if period_id is not None:
            stmt = stmt.where(SourceBatch.period_id == period_id)
        if batch_type is not None:
            stmt = stmt.where(SourceBatch.batch_type == BatchType(batch_type).value)
        stmt = stmt.order_by(SourceBatch.created_at, SourceBatch.id)
        return [BatchInfo.from_model(b) for b in self.session.execute(stmt).scalars()]

    def base_batches(self, period_id: UUID, batch_type: BatchType) -> list[BatchInfo]:
        """Batches of ``batch_type`` flagged base for ``period_id``."""
        stmt = (
            select(SourceBatch)
            .where(
                SourceBatch.period_id == period_id,
                SourceBatch.batch_type == BatchType(batch_type).value,
                SourceBatch.is_base.is_(True),
            )
            .order_by(SourceBatch.created_at, SourceBatch.id)
        )
        return [BatchInfo.from_model(b) for b in self.session.execute(stmt).scalars()]

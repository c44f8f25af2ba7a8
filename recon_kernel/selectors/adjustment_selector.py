"""
Module: recon_kernel.selectors.adjustment_selector
Responsibility: Read-only queries over the adjustment transfer ledger.

Invariants enforced:
    - Listing is scoped to one ledger batch and includes transfers of the
      given period plus transfers recorded without a period.
    - Newest first (created_at descending, then id for a stable order).
"""

from uuid import UUID

from sqlalchemy import or_, select

from recon_kernel.domain.dtos import TransferRecord
from recon_kernel.models.adjustment import AdjustmentTransfer
from recon_kernel.selectors.base import BaseSelector


class AdjustmentSelector(BaseSelector[AdjustmentTransfer]):
    """Queries over AdjustmentTransfer rows."""

    def get(self, transfer_id: UUID) -> TransferRecord | None:
        model = self.session.get(AdjustmentTransfer, transfer_id)
        return TransferRecord.from_model(model) if model is not None else None

    def list_transfers(
        self,
        period_id: UUID | None,
        ledger_batch_id: UUID,
    ) -> list[TransferRecord]:
        stmt = select(AdjustmentTransfer).where(
            AdjustmentTransfer.ledger_batch_id == ledger_batch_id
        )
        if period_id is not None:
            stmt = stmt.where(
                or_(
                    AdjustmentTransfer.period_id == period_id,
                    AdjustmentTransfer.period_id.is_(None),
                )
            )
        stmt = stmt.order_by(
            AdjustmentTransfer.created_at.desc(),
            AdjustmentTransfer.id.desc(),
        )
        return [
            TransferRecord.from_model(t)
            for t in self.session.execute(stmt).scalars()
        ]

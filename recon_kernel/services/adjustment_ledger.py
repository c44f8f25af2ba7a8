"""
AdjustmentLedgerService -- the code-offset transfer ledger.

Responsibility:
    Records, deletes and lists manual transfers that move quantity from a
    donor code's theoretical surplus to a receiver code's theoretical
    deficit ("this surplus code covers that deficit code").

Architecture position:
    Kernel > Services -- imperative shell, flush-only.  The business rules
    that need a consolidation (unknown codes, donor overdraw) live one level
    up in ReconciliationService.

Invariants enforced:
    - Codes are normalized here, once, before storage.
    - Receiver and donor differ; qty > 0; unit_cost >= 0.
    - total_value = qty_baixada * unit_cost is stored with the row.
    - Transfers are never edited (db/immutability.py); delete removes only
      the row.
    - Validation happens before any write.

Failure modes:
    - InvalidItemCodeError, SameItemCodeError, InvalidQuantityError,
      InvalidUnitCostError: rejected input, nothing written.
    - BatchNotFoundError: ledger batch unknown or not a ledger batch.
    - PeriodNotFoundError: period id given but unknown.
    - TransferNotFoundError: delete of an unknown id.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from recon_kernel.domain.clock import Clock, SystemClock
from recon_kernel.domain.dtos import TransferRecord
from recon_kernel.domain.item_code import DEFAULT_CODE_WIDTH, normalize_item_code
from recon_kernel.domain.values import to_decimal
from recon_kernel.exceptions import (
    BatchNotFoundError,
    InvalidQuantityError,
    InvalidUnitCostError,
    PeriodNotFoundError,
    SameItemCodeError,
    TransferNotFoundError,
)
from recon_kernel.logging_config import get_logger
from recon_kernel.models.adjustment import AdjustmentTransfer
from recon_kernel.models.period import Period
from recon_kernel.models.source_batch import BatchType, SourceBatch
from recon_kernel.selectors.adjustment_selector import AdjustmentSelector
from recon_kernel.services.base import BaseService

logger = get_logger("services.adjustment_ledger")


class AdjustmentLedgerService(BaseService[AdjustmentTransfer]):
    """Create, delete and list adjustment transfers."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        code_width: int = DEFAULT_CODE_WIDTH,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._code_width = code_width
        self._selector = AdjustmentSelector(session)

    def validate_transfer(
        self,
        cod_negativo: str,
        cod_positivo: str,
        qty: Decimal | int | str,
        unit_cost: Decimal | int | str,
    ) -> tuple[str, str, Decimal, Decimal]:
        """
        Normalize and check transfer input without touching the database.

        Returns:
            (cod_negativo, cod_positivo, qty, unit_cost) normalized.
        """
        receiver = normalize_item_code(cod_negativo, self._code_width)
        donor = normalize_item_code(cod_positivo, self._code_width)
        if receiver == donor:
            raise SameItemCodeError(receiver)

        try:
            qty_dec = to_decimal(qty)
        except ValueError:
            raise InvalidQuantityError(qty, "not a number") from None
        if qty_dec <= 0:
            raise InvalidQuantityError(qty_dec, "transfer quantity must be positive")

        try:
            cost_dec = to_decimal(unit_cost)
        except ValueError:
            raise InvalidUnitCostError(unit_cost) from None
        if cost_dec < 0:
            raise InvalidUnitCostError(cost_dec)

        return receiver, donor, qty_dec, cost_dec

    def create_transfer(
        self,
        cod_negativo: str,
        cod_positivo: str,
        qty: Decimal | int | str,
        unit_cost: Decimal | int | str,
        *,
        period_id: UUID | None,
        ledger_batch_id: UUID,
        actor_id: UUID | None = None,
    ) -> TransferRecord:
        """Persist a transfer of ``qty`` from cod_positivo to cod_negativo."""
        receiver, donor, qty_dec, cost_dec = self.validate_transfer(
            cod_negativo, cod_positivo, qty, unit_cost
        )

        batch = self.session.get(SourceBatch, ledger_batch_id)
        if batch is None or batch.batch_type != BatchType.LEDGER.value:
            raise BatchNotFoundError(str(ledger_batch_id))
        if period_id is not None and self.session.get(Period, period_id) is None:
            raise PeriodNotFoundError(str(period_id))

        transfer = AdjustmentTransfer(
            period_id=period_id,
            ledger_batch_id=ledger_batch_id,
            cod_negativo=receiver,
            cod_positivo=donor,
            qty_baixada=qty_dec,
            unit_cost=cost_dec,
            total_value=qty_dec * cost_dec,
            created_at=self._clock.now(),
            created_by_id=actor_id,
        )
        self.session.add(transfer)
        self.session.flush()

        logger.info(
            "adjustment_transfer_created",
            extra={
                "transfer_id": str(transfer.id),
                "cod_negativo": receiver,
                "cod_positivo": donor,
                "qty_baixada": qty_dec,
                "unit_cost": cost_dec,
            },
        )
        return TransferRecord.from_model(transfer)

    def delete_transfer(self, transfer_id: UUID) -> None:
        """
        Remove a transfer.

        Raises:
            TransferNotFoundError: If no transfer has this id.
        """
        transfer = self.session.get(AdjustmentTransfer, transfer_id)
        if transfer is None:
            raise TransferNotFoundError(str(transfer_id))

        self.session.delete(transfer)
        self.session.flush()

        logger.info(
            "adjustment_transfer_deleted",
            extra={
                "transfer_id": str(transfer_id),
                "cod_negativo": transfer.cod_negativo,
                "cod_positivo": transfer.cod_positivo,
            },
        )

    def list_transfers(
        self,
        period_id: UUID | None,
        ledger_batch_id: UUID,
    ) -> list[TransferRecord]:
        """Transfers of the ledger batch for the period (or with no period), newest first."""
        return self._selector.list_transfers(period_id, ledger_batch_id)

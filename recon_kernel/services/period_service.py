"""
PeriodService -- periods, batch linking and the base-batch flag.

Responsibility:
    Creates and activates (year, month) periods, registers source batches,
    links batches to periods, and flips the ``is_base`` flag that tells the
    resolver which batch is authoritative.

Architecture position:
    Kernel > Services -- imperative shell, flush-only.

Invariants enforced:
    - One period per (year, month); month in 1..12.
    - At most one active period: activation clears the flag everywhere else
      in the same flush.
    - At most one base batch per (period, stock) and (period, ledger).
      Invoice batches may be jointly base.
    - An unlinked batch cannot be base; moving or unlinking a batch clears
      its base flag.

Failure modes:
    - InvalidPeriodError: month outside 1..12 or non-positive year.
    - PeriodNotFoundError / BatchNotFoundError: unknown ids.
    - BatchNotLinkedError: base flag requested on an unlinked batch.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from recon_kernel.domain.dtos import BatchInfo, PeriodInfo
from recon_kernel.exceptions import (
    BatchNotFoundError,
    BatchNotLinkedError,
    InvalidPeriodError,
    PeriodNotFoundError,
)
from recon_kernel.logging_config import get_logger
from recon_kernel.models.period import Period
from recon_kernel.models.source_batch import BatchType, SourceBatch
from recon_kernel.selectors.batch_selector import BatchSelector
from recon_kernel.services.base import BaseService

logger = get_logger("services.period")

_MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

# Batch types limited to a single base per period
_SINGLE_BASE_TYPES = frozenset({BatchType.STOCK.value, BatchType.LEDGER.value})


def period_name(year: int, month: int) -> str:
    """Full name, e.g. January 2022."""
    return f"{_MONTH_NAMES[month - 1]} {year}"


def period_label(year: int, month: int) -> str:
    """Short label, e.g. Jan/2022."""
    return f"{_MONTH_NAMES[month - 1][:3]}/{year}"


class PeriodService(BaseService[Period]):
    """Period lifecycle and batch administration."""

    def __init__(self, session: Session):
        super().__init__(session)
        self._selector = BatchSelector(session)

    # ------------------------------------------------------------------
    # Periods
    # ------------------------------------------------------------------

    def get_or_create(self, year: int, month: int) -> PeriodInfo:
        """
        Return the (year, month) period, creating it when absent.

        Raises:
            InvalidPeriodError: If month is outside 1..12 or year < 1.
        """
        if not 1 <= month <= 12 or year < 1:
            raise InvalidPeriodError(year, month)

        existing = self._selector.find_period(year, month)
        if existing is not None:
            return existing

        period = Period(
            year=year,
            month=month,
            name=period_name(year, month),
            label=period_label(year, month),
            is_active=False,
        )
        self.session.add(period)
        self.session.flush()

        logger.info(
            "period_created",
            extra={"period_id": str(period.id), "label": period.label},
        )
        return PeriodInfo.from_model(period)

    def activate(self, period_id: UUID) -> PeriodInfo:
        """
        Make ``period_id`` the single active period.

        Raises:
            PeriodNotFoundError: If the period does not exist.
        """
        target = self.session.get(Period, period_id)
        if target is None:
            raise PeriodNotFoundError(str(period_id))

        others = self.session.execute(
            select(Period).where(Period.is_active.is_(True), Period.id != period_id)
        ).scalars()
        for other in others:
            other.is_active = False
        target.is_active = True
        self.session.flush()

        logger.info(
            "period_activated",
            extra={"period_id": str(target.id), "label": target.label},
        )
        return PeriodInfo.from_model(target)

    def get_active(self) -> PeriodInfo | None:
        """The active period, for UI collaborators choosing a default."""
        return self._selector.active_period()

    def list_periods(self) -> list[PeriodInfo]:
        return self._selector.list_periods()

    # ------------------------------------------------------------------
    # Batches
    # ------------------------------------------------------------------

    def create_batch(
        self,
        batch_type: BatchType,
        label: str,
        period_id: UUID | None = None,
        is_base: bool = False,
    ) -> BatchInfo:
        """
        Register a new source batch, optionally linked and flagged base.

        Raises:
            PeriodNotFoundError: If period_id is given but unknown.
            BatchNotLinkedError: If is_base is requested without a period.
        """
        batch_type = BatchType(batch_type)
        if period_id is not None and self.session.get(Period, period_id) is None:
            raise PeriodNotFoundError(str(period_id))

        batch = SourceBatch(
            batch_type=batch_type.value,
            label=label,
            period_id=period_id,
            is_base=False,
        )
        self.session.add(batch)
        self.session.flush()

        logger.info(
            "batch_created",
            extra={
                "batch_id": str(batch.id),
                "batch_type": batch_type.value,
                "label": label,
            },
        )

        if is_base:
            return self.set_base(batch.id, True)
        return BatchInfo.from_model(batch)

    def link_batch(self, batch_id: UUID, period_id: UUID | None) -> BatchInfo:
        """
        Link ``batch_id`` to ``period_id`` (None unlinks).

        A batch that changes period loses its base flag.
        """
        batch = self._get_batch(batch_id)
        if period_id is not None and self.session.get(Period, period_id) is None:
            raise PeriodNotFoundError(str(period_id))

        if batch.period_id != period_id:
            batch.period_id = period_id
            batch.is_base = False
            self.session.flush()

        logger.info(
            "batch_linked",
            extra={
                "batch_id": str(batch.id),
                "linked_period_id": str(period_id) if period_id else None,
            },
        )
        return BatchInfo.from_model(batch)

    def set_base(self, batch_id: UUID, is_base: bool) -> BatchInfo:
        """
        Set or clear the base flag of a batch.

        For stock and ledger batches, flagging one base clears the flag on
        every other batch of the same period and type.

        Raises:
            BatchNotFoundError: Unknown batch.
            BatchNotLinkedError: is_base=True on a batch with no period.
        """
        batch = self._get_batch(batch_id)

        if is_base and batch.period_id is None:
            raise BatchNotLinkedError(str(batch_id))

        cleared = 0
        if is_base and batch.batch_type in _SINGLE_BASE_TYPES:
            siblings = self.session.execute(
                select(SourceBatch).where(
                    SourceBatch.period_id == batch.period_id,
                    SourceBatch.batch_type == batch.batch_type,
                    SourceBatch.is_base.is_(True),
                    SourceBatch.id != batch.id,
                )
            ).scalars()
            for sibling in siblings:
                sibling.is_base = False
                cleared += 1

        batch.is_base = is_base
        self.session.flush()

        logger.info(
            "batch_base_flag_set",
            extra={
                "batch_id": str(batch.id),
                "batch_type": batch.batch_type,
                "is_base": is_base,
                "siblings_cleared": cleared,
            },
        )
        return BatchInfo.from_model(batch)

    def list_batches(
        self,
        period_id: UUID | None = None,
        batch_type: BatchType | None = None,
    ) -> list[BatchInfo]:
        return self._selector.list_batches(period_id, batch_type)

    def _get_batch(self, batch_id: UUID) -> SourceBatch:
        batch = self.session.get(SourceBatch, batch_id)
        if batch is None:
            raise BatchNotFoundError(str(batch_id))
        return batch

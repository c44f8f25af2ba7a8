"""
EntryOverrideService -- manual quantity corrections for entry lines.

Responsibility:
    Upsert, clear and read the adjusted quantity that replaces an entry
    line's document quantity in every downstream calculation.

Invariants enforced:
    - One override per entry line (upsert keyed by entry_line_id).
    - The entry line itself is never modified.
    - adjusted_quantity is in document units and >= 0.

Failure modes:
    - EntryLineNotFoundError: unknown line id.
    - InvalidQuantityError: negative or non-numeric quantity.
"""

from collections.abc import Iterable
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from recon_kernel.domain.dtos import EntryOverrideRecord
from recon_kernel.domain.values import to_decimal
from recon_kernel.exceptions import EntryLineNotFoundError, InvalidQuantityError
from recon_kernel.logging_config import get_logger
from recon_kernel.models.ledger import EntryLine, EntryLineOverride
from recon_kernel.selectors.line_selector import LineSelector
from recon_kernel.services.base import BaseService

logger = get_logger("services.entry_override")


class EntryOverrideService(BaseService[EntryLineOverride]):
    """Manage EntryLineOverride rows."""

    def __init__(self, session: Session):
        super().__init__(session)
        self._lines = LineSelector(session)

    def set_override(
        self,
        entry_line_id: UUID,
        adjusted_quantity: Decimal | int | str,
        reason: str | None = None,
        actor_id: UUID | None = None,
    ) -> EntryOverrideRecord:
        if self.session.get(EntryLine, entry_line_id) is None:
            raise EntryLineNotFoundError(str(entry_line_id))

        try:
            qty = to_decimal(adjusted_quantity)
        except ValueError:
            raise InvalidQuantityError(adjusted_quantity, "not a number") from None
        if qty < 0:
            raise InvalidQuantityError(qty, "override quantity cannot be negative")

        override = self._find(entry_line_id)
        created = override is None
        if override is None:
            override = EntryLineOverride(
                entry_line_id=entry_line_id,
                adjusted_quantity=qty,
                reason=reason,
                created_by_id=actor_id,
            )
            self.session.add(override)
        else:
            override.adjusted_quantity = qty
            override.reason = reason
        self.session.flush()

        logger.info(
            "entry_override_set",
            extra={
                "entry_line_id": str(entry_line_id),
                "adjusted_quantity": qty,
                "created": created,
            },
        )
        return EntryOverrideRecord.from_model(override)

    def clear_override(self, entry_line_id: UUID) -> bool:
        """Remove the override of a line.  Returns False when there was none."""
        override = self._find(entry_line_id)
        if override is None:
            return False

        self.session.delete(override)
        self.session.flush()
        logger.info(
            "entry_override_cleared",
            extra={"entry_line_id": str(entry_line_id)},
        )
        return True

    def get_overrides(self, line_ids: Iterable[UUID]) -> dict[UUID, EntryOverrideRecord]:
        return self._lines.entry_overrides(line_ids)

    def _find(self, entry_line_id: UUID) -> EntryLineOverride | None:
        return self.session.execute(
            select(EntryLineOverride).where(
                EntryLineOverride.entry_line_id == entry_line_id
            )
        ).scalar_one_or_none()

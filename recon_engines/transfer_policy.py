"""
recon_engines.transfer_policy -- donor overdraw check for new transfers.

Responsibility:
    Decide what happens when a transfer would take more from the donor than
    its current final balance holds.

Policies:
    reject  DonorOverdrawError, nothing is written.
    warn    the transfer proceeds with a WARNING finding.
    allow   the transfer proceeds silently.

    When donor and receiver carry different units (a box code covering a
    unit code, say) the quantities are not directly comparable, so a
    separate policy applies.  The default is reject for a plain overdraw
    and warn for a unit mismatch.

Invariants enforced:
    - Pure: reads consolidated rows, never the database.
    - Available balance is the donor's current final_qty, which already
      includes every transfer recorded so far.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum

from recon_engines.results import ConsolidatedRow
from recon_engines.tracer import traced_engine
from recon_kernel.domain.dtos import CheckSeverity, ReconciliationFinding
from recon_kernel.exceptions import DonorOverdrawError


class OverdrawPolicy(str, Enum):
    REJECT = "reject"
    WARN = "warn"
    ALLOW = "allow"


def units_differ(donor: ConsolidatedRow, receiver: ConsolidatedRow) -> bool:
    return donor.unit.strip().upper() != receiver.unit.strip().upper()


class TransferPolicyChecker:
    """Applies the overdraw policies to a proposed transfer."""

    def __init__(
        self,
        overdraw_policy: OverdrawPolicy | str = OverdrawPolicy.REJECT,
        unit_mismatch_policy: OverdrawPolicy | str = OverdrawPolicy.WARN,
    ):
        self.overdraw_policy = OverdrawPolicy(overdraw_policy)
        self.unit_mismatch_policy = OverdrawPolicy(unit_mismatch_policy)

    @traced_engine("transfer_policy", "1.0", fingerprint_fields=("qty",))
    def check(
        self,
        *,
        donor: ConsolidatedRow,
        receiver: ConsolidatedRow,
        qty: Decimal,
    ) -> tuple[ReconciliationFinding, ...]:
        """
        Return the findings for a transfer of ``qty`` from donor to receiver.

        Raises:
            DonorOverdrawError: The transfer overdraws and the applicable
                policy is reject.
        """
        available = donor.final_qty
        if available - qty >= 0:
            return ()

        mismatch = units_differ(donor, receiver)
        policy = self.unit_mismatch_policy if mismatch else self.overdraw_policy

        if policy is OverdrawPolicy.REJECT:
            raise DonorOverdrawError(donor.cod_item, available, qty, mismatch)
        if policy is OverdrawPolicy.ALLOW:
            return ()

        code = "DONOR_OVERDRAW_UNIT_MISMATCH" if mismatch else "DONOR_OVERDRAW"
        return (ReconciliationFinding(
            code=code,
            severity=CheckSeverity.WARNING,
            message=(
                f"Transfer of {qty} leaves donor {donor.cod_item} at "
                f"{available - qty} {donor.unit}"
            ),
            details={
                "cod_positivo": donor.cod_item,
                "cod_negativo": receiver.cod_item,
                "available": str(available),
                "requested": str(qty),
                "donor_unit": donor.unit,
                "receiver_unit": receiver.unit,
            },
        ),)

"""
Typed exception hierarchy for the reconciliation kernel.

Every error has a typed class, a machine-readable ``code`` class attribute
and structured attributes, so callers catch by type and API layers can
answer with ``e.code`` instead of parsing messages.

Hierarchy::

    ReconKernelError (base)
    |
    +-- ConfigurationFault
    |   +-- AmbiguousBaseBatchError
    |   +-- BaseBatchNotFoundError
    |   +-- InvalidConfigurationError
    |
    +-- InputValidationError
    |   +-- InvalidItemCodeError
    |   +-- SameItemCodeError
    |   +-- UnknownItemCodeError
    |   +-- InvalidQuantityError
    |   +-- InvalidUnitCostError
    |   +-- DonorOverdrawError
    |   +-- InvalidPeriodError
    |   +-- BatchNotLinkedError
    |
    +-- NotFoundError
    |   +-- PeriodNotFoundError
    |   +-- BatchNotFoundError
    |   +-- TransferNotFoundError
    |   +-- EntryLineNotFoundError
    |
    +-- ImmutabilityViolationError

Data-integrity problems met during aggregation (orphan lines, duplicate
line ids) and missing cost basis are NOT exceptions.  They are reported as
``ReconciliationFinding`` records next to the (partial) result; see
``recon_kernel.domain.dtos``.

Error codes
-----------

Category        | Code                        | When raised
----------------|-----------------------------|-----------------------------------------
Configuration   | AMBIGUOUS_BASE_BATCH        | Several batches, none (or many) flagged base
                | BASE_BATCH_NOT_FOUND        | Period has no batch of a required type
                | INVALID_CONFIGURATION       | Config file fails validation
----------------|-----------------------------|-----------------------------------------
Validation      | INVALID_ITEM_CODE           | Item code empty after trimming
                | SAME_ITEM_CODE              | Transfer donor == receiver
                | UNKNOWN_ITEM_CODE           | Transfer code not in consolidated rows
                | INVALID_QUANTITY            | qty <= 0 (transfer) / < 0 (override)
                | INVALID_UNIT_COST           | unit cost < 0
                | DONOR_OVERDRAW              | Transfer overdraws donor under "reject"
                | INVALID_PERIOD              | Month outside 1..12
                | BATCH_NOT_LINKED            | Base flag on a batch with no period
----------------|-----------------------------|-----------------------------------------
Not found       | PERIOD_NOT_FOUND            | Period id unknown
                | BATCH_NOT_FOUND             | Source batch id unknown
                | TRANSFER_NOT_FOUND          | Adjustment transfer id unknown
                | ENTRY_LINE_NOT_FOUND        | Entry line id unknown
----------------|-----------------------------|-----------------------------------------
Immutability    | IMMUTABILITY_VIOLATION      | UPDATE of a source line or transfer
"""

from decimal import Decimal


class ReconKernelError(Exception):
    """
    Base exception for all reconciliation kernel errors.

    All subclasses carry a ``code`` class attribute.
    """

    code: str = "RECON_KERNEL_ERROR"


# Configuration faults


class ConfigurationFault(ReconKernelError):
    """Operator attention required; never auto-resolved silently."""

    code: str = "CONFIGURATION_FAULT"


class AmbiguousBaseBatchError(ConfigurationFault):
    """More than one candidate batch and no single base flag."""

    code: str = "AMBIGUOUS_BASE_BATCH"

    def __init__(self, period_id: str, batch_type: str, candidate_ids: list[str]):
        self.period_id = period_id
        self.batch_type = batch_type
        self.candidate_ids = candidate_ids
        super().__init__(
            f"Period {period_id} has {len(candidate_ids)} {batch_type} batches "
            f"and no single base batch"
        )


class BaseBatchNotFoundError(ConfigurationFault):
    """No batch of the required type is linked to the period."""

    code: str = "BASE_BATCH_NOT_FOUND"

    def __init__(self, period_id: str, batch_type: str):
        self.period_id = period_id
        self.batch_type = batch_type
        super().__init__(f"Period {period_id} has no {batch_type} batch")


class InvalidConfigurationError(ConfigurationFault):
    """Configuration values failed validation."""

    code: str = "INVALID_CONFIGURATION"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid configuration for {field}: {reason}")


# Input validation


class InputValidationError(ReconKernelError):
    """Base for write-boundary rejections."""

    code: str = "INPUT_VALIDATION_ERROR"


class InvalidItemCodeError(InputValidationError):
    """Item code is empty after trimming."""

    code: str = "INVALID_ITEM_CODE"

    def __init__(self, raw_code: object):
        self.raw_code = raw_code
        super().__init__(f"Invalid item code: {raw_code!r}")


class SameItemCodeError(InputValidationError):
    """Transfer donor and receiver normalize to the same code."""

    code: str = "SAME_ITEM_CODE"

    def __init__(self, cod_item: str):
        self.cod_item = cod_item
        super().__init__(f"Receiver and donor codes are both {cod_item}")


class UnknownItemCodeError(InputValidationError):
    """Transfer references a code with no consolidated row in scope."""

    code: str = "UNKNOWN_ITEM_CODE"

    def __init__(self, cod_item: str, role: str):
        self.cod_item = cod_item
        self.role = role
        super().__init__(f"Unknown {role} item code: {cod_item}")


class InvalidQuantityError(InputValidationError):
    """Quantity outside the accepted range."""

    code: str = "INVALID_QUANTITY"

    def __init__(self, quantity: Decimal, reason: str):
        self.quantity = quantity
        self.reason = reason
        super().__init__(f"Invalid quantity {quantity}: {reason}")


class InvalidUnitCostError(InputValidationError):
    """Unit cost is negative."""

    code: str = "INVALID_UNIT_COST"

    def __init__(self, unit_cost: Decimal):
        self.unit_cost = unit_cost
        super().__init__(f"Unit cost cannot be negative: {unit_cost}")


class DonorOverdrawError(InputValidationError):
    """Transfer would drive the donor balance negative under a reject policy."""

    code: str = "DONOR_OVERDRAW"

    def __init__(
        self,
        cod_positivo: str,
        available: Decimal,
        requested: Decimal,
        unit_mismatch: bool,
    ):
        self.cod_positivo = cod_positivo
        self.available = available
        self.requested = requested
        self.unit_mismatch = unit_mismatch
        super().__init__(
            f"Transfer of {requested} exceeds available balance {available} "
            f"of donor {cod_positivo}"
        )


class InvalidPeriodError(InputValidationError):
    """Year/month pair is not a valid period."""

    code: str = "INVALID_PERIOD"

    def __init__(self, year: int, month: int):
        self.year = year
        self.month = month
        super().__init__(f"Invalid period {year}-{month}: month must be 1..12")


class BatchNotLinkedError(InputValidationError):
    """A batch must be linked to a period before it can be flagged base."""

    code: str = "BATCH_NOT_LINKED"

    def __init__(self, batch_id: str):
        self.batch_id = batch_id
        super().__init__(f"Batch {batch_id} is not linked to a period")


# Not found


class NotFoundError(ReconKernelError):
    """Base for unknown identifiers."""

    code: str = "NOT_FOUND"


class PeriodNotFoundError(NotFoundError):
    code: str = "PERIOD_NOT_FOUND"

    def __init__(self, period_id: str):
        self.period_id = period_id
        super().__init__(f"Period not found: {period_id}")


class BatchNotFoundError(NotFoundError):
    code: str = "BATCH_NOT_FOUND"

    def __init__(self, batch_id: str):
        self.batch_id = batch_id
        super().__init__(f"Source batch not found: {batch_id}")


class TransferNotFoundError(NotFoundError):
    code: str = "TRANSFER_NOT_FOUND"

    def __init__(self, transfer_id: str):
        self.transfer_id = transfer_id
        super().__init__(f"Adjustment transfer not found: {transfer_id}")


class EntryLineNotFoundError(NotFoundError):
    code: str = "ENTRY_LINE_NOT_FOUND"

    def __init__(self, entry_line_id: str):
        self.entry_line_id = entry_line_id
        super().__init__(f"Entry line not found: {entry_line_id}")


# Immutability


class ImmutabilityViolationError(ReconKernelError):
    """Attempt to modify a record that is append-only."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Cannot modify {entity_type} {entity_id}: {reason}"
        )

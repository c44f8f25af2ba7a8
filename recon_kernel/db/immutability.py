"""
ORM-level immutability enforcement for imported source lines and adjustment
transfers.

Imported lines are the evidence a reconciliation is computed from.  Editing
one in place would silently change every past consolidation of its batch, so
the ORM refuses UPDATE on them.  The same holds for adjustment transfers: a
wrong transfer is deleted and a new one created, never edited.

    session.flush()
         |
         v
    [before_update event] --> _reject_update() --> ImmutabilityViolationError

Protected entities
------------------

Entity              | Blocked     | Allowed
--------------------|-------------|---------------------------------------
InitialStockLine    | UPDATE      | INSERT, DELETE (batch removal)
EntryLine           | UPDATE      | INSERT; corrections via EntryLineOverride
ExitLine            | UPDATE      | INSERT, DELETE (batch removal)
AdjustmentTransfer  | UPDATE      | INSERT, DELETE

Usage:

    from recon_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # once at startup, idempotent

To temporarily disable (TESTS ONLY):

    from recon_kernel.db.immutability import unregister_immutability_listeners
    unregister_immutability_listeners()
"""

from sqlalchemy import event

from recon_kernel.exceptions import ImmutabilityViolationError
from recon_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

_REASONS = {
    "InitialStockLine": "Stock snapshot lines are immutable; import a new stock batch",
    "EntryLine": "Entry lines are immutable; record an EntryLineOverride instead",
    "ExitLine": "Exit lines are immutable; import a new invoice batch",
    "AdjustmentTransfer": "Adjustment transfers are immutable; delete and create a new one",
}


def _reject_update(mapper, connection, target):
    """Block any UPDATE of a protected entity."""
    entity_type = type(target).__name__

    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(target.id),
            "operation": "UPDATE",
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(target.id),
        reason=_REASONS.get(entity_type, "Record is immutable"),
    )


def _protected_models():
    from recon_kernel.models.adjustment import AdjustmentTransfer
    from recon_kernel.models.invoice import ExitLine
    from recon_kernel.models.ledger import EntryLine
    from recon_kernel.models.stock import InitialStockLine

    return (InitialStockLine, EntryLine, ExitLine, AdjustmentTransfer)


def register_immutability_listeners():
    """
    Register the before_update listeners on every protected model.

    Safe to call more than once; an already registered listener is skipped.
    """
    for model in _protected_models():
        if not event.contains(model, "before_update", _reject_update):
            event.listen(model, "before_update", _reject_update)


def _safe_remove_listener(target, event_name, listener_fn):
    """Remove an event listener, ignoring it if not registered."""
    if event.contains(target, event_name, listener_fn):
        event.remove(target, event_name, listener_fn)


def unregister_immutability_listeners():
    """
    Remove the immutability listeners.

    WARNING: Only use this in tests that need to violate immutability on
    purpose.
    """
    for model in _protected_models():
        _safe_remove_listener(model, "before_update", _reject_update)

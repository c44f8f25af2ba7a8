"""
Item-code normalization.

Responsibility:
    Canonicalize a raw, vendor-supplied item identifier into the comparison
    key every source is matched on.

Architecture position:
    Kernel > Domain -- pure, zero I/O.  Called at ingestion boundaries only;
    aggregation and consolidation receive codes that are already normalized.

Invariants enforced:
    - Idempotence: normalize_item_code(normalize_item_code(x)) == normalize_item_code(x).
    - No empty code is ever admitted downstream.
    - Codes at or beyond the width pass through unchanged (no truncation).

Failure modes:
    - InvalidItemCodeError when the trimmed code is empty.
"""

from __future__ import annotations

from recon_kernel.exceptions import InvalidItemCodeError

DEFAULT_CODE_WIDTH = 6


def normalize_item_code(raw: str | int | None, width: int = DEFAULT_CODE_WIDTH) -> str:
    """
    Trim and left-pad ``raw`` with zeros to ``width`` characters.

    Raises:
        InvalidItemCodeError: If the value is None or blank after trimming.
    """
    if raw is None:
        raise InvalidItemCodeError(raw)

    code = str(raw).strip()
    if not code:
        raise InvalidItemCodeError(raw)

    return code.rjust(width, "0")


def try_normalize_item_code(
    raw: str | int | None,
    width: int = DEFAULT_CODE_WIDTH,
) -> str | None:
    """Like normalize_item_code, but returns None instead of raising."""
    try:
        return normalize_item_code(raw, width)
    except InvalidItemCodeError:
        return None

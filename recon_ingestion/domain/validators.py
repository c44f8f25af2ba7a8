"""
Field validators for raw import records.

Each helper either returns the cleaned value or raises RecordRejected, which
the import service turns into an ImportRejection for that row.

Architecture: recon_ingestion/domain.  ZERO I/O.
"""

from __future__ import annotations

from decimal import Decimal

from recon_kernel.domain.item_code import try_normalize_item_code
from recon_kernel.domain.values import to_decimal

from recon_ingestion.domain.types import RawCode, RawNumber


class RecordRejected(Exception):
    """One field of one record is unusable."""

    def __init__(self, code: str, field: str, message: str):
        self.code = code
        self.field = field
        self.message = message
        super().__init__(message)


def require_code(raw: RawCode, width: int, field: str = "cod_item") -> str:
    code = try_normalize_item_code(raw, width)
    if code is None:
        raise RecordRejected("INVALID_ITEM_CODE", field, f"Empty item code: {raw!r}")
    return code


def require_number(raw: RawNumber, field: str) -> Decimal:
    if raw is None:
        raise RecordRejected("INVALID_NUMBER", field, f"Missing {field}")
    try:
        return to_decimal(raw)
    except ValueError:
        raise RecordRejected("INVALID_NUMBER", field, f"Unparseable {field}: {raw!r}") from None


def optional_number(raw: RawNumber, field: str) -> Decimal | None:
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None
    return require_number(raw, field)


def clean_text(raw: str | None) -> str | None:
    if raw is None:
        return None
    text = str(raw).strip()
    return text or None

"""
recon_services.sped_export -- SPED Block H final inventory file.

Responsibility:
    Render a FinalInventory as the Block H text the merchant declares:
    one H005 header, one H010 line per item with a positive final balance,
    and the H990 trailer.

Architecture position:
    Services -- output adapter over reports.build_final_inventory.  Pure
    formatting; the only I/O is the optional write to ``destination``.

Invariants enforced:
    - Only items with final_qty > 0 are declared; the H005 total is the sum
      of the declared items' final values.
    - VL_ITEM is the source of truth; VL_UNIT is derived as VL_ITEM / QTD.
    - QTD and VL_UNIT carry 6 decimals, VL_ITEM and VL_INV 2, with a comma
      as the decimal separator (half-up rounding).
    - H990 counts every Block H line, itself included.
"""

from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path

from recon_kernel.logging_config import get_logger
from recon_services.reports import FinalInventory, FinalInventoryRow

logger = get_logger("services.sped_export")

INVENTORY_REASON = "01"  # end of period
OWNERSHIP_INDICATOR = "0"  # owned by the declarant, in its possession
DEFAULT_ACCOUNT_CODE = "281"
DEFAULT_UNIT = "UN"

_TWO_PLACES = Decimal("0.01")
_SIX_PLACES = Decimal("0.000001")


def format_sped_number(value: Decimal, places: Decimal) -> str:
    """Fixed decimals, comma separator: 1234.5 -> "1234,50"."""
    return f"{value.quantize(places, rounding=ROUND_HALF_UP):f}".replace(".", ",")


def declared_rows(inventory: FinalInventory) -> tuple[FinalInventoryRow, ...]:
    return tuple(row for row in inventory.rows if row.final_qty > 0)


def _h010(row: FinalInventoryRow, account_code: str) -> str:
    unit_value = row.final_value / row.final_qty
    fields = (
        "H010",
        row.cod_item,
        row.unit or DEFAULT_UNIT,
        format_sped_number(row.final_qty, _SIX_PLACES),
        format_sped_number(unit_value, _SIX_PLACES),
        format_sped_number(row.final_value, _TWO_PLACES),
        OWNERSHIP_INDICATOR,
        "",  # COD_PART: no third party holds the goods
        "",  # TXT_COMPL
        account_code,
        "0,00",  # VL_ITEM_IR
    )
    return "|" + "|".join(fields) + "|"


def build_block_h(
    inventory: FinalInventory,
    *,
    inventory_date: date | None = None,
    account_code: str = DEFAULT_ACCOUNT_CODE,
) -> list[str]:
    """
    Build the Block H lines.

    ``inventory_date`` defaults to the inventory's generation date.

    Raises:
        ValueError: If no date is given and the inventory carries none.
    """
    if inventory_date is None:
        if inventory.generated_at is None:
            raise ValueError("An inventory date is required for Block H")
        inventory_date = inventory.generated_at.date()

    rows = declared_rows(inventory)
    total = sum((row.final_value for row in rows), Decimal("0"))

    lines = [
        f"|H005|{inventory_date:%Y%m%d}|{format_sped_number(total, _TWO_PLACES)}|{INVENTORY_REASON}|"
    ]
    lines.extend(_h010(row, account_code) for row in rows)
    lines.append(f"|H990|{len(lines) + 1}|")
    return lines


def export_final_inventory_sped(
    inventory: FinalInventory,
    destination: Path | str | None = None,
    *,
    inventory_date: date | None = None,
    account_code: str = DEFAULT_ACCOUNT_CODE,
) -> str:
    """
    Render ``inventory`` as SPED Block H text (lines joined by newlines).

    Also writes the text as UTF-8 to ``destination`` when given.
    """
    lines = build_block_h(
        inventory,
        inventory_date=inventory_date,
        account_code=account_code,
    )
    content = "\n".join(lines)

    if destination is not None:
        Path(destination).write_text(content, encoding="utf-8")

    logger.info(
        "sped_inventory_exported",
        extra={
            "period_id": str(inventory.period_id),
            "declared_items": len(lines) - 2,
            "skipped_items": len(inventory.rows) - (len(lines) - 2),
            "destination": str(destination) if destination is not None else None,
        },
    )
    return content

"""
recon_services.xlsx_export -- final inventory and adjustments workbooks.

Writes a FinalInventory as an XLSX workbook with two sheets:
"Final Inventory" (one line per item) and "Summary", and an AdjustmentsReport
as a single "Adjustments" sheet.  Numbers are written as floats because
spreadsheet cells have no decimal type; the values are already final and
are not computed on further.
"""

from __future__ import annotations

from decimal import Decimal
from io import BytesIO
from pathlib import Path

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from recon_kernel.logging_config import get_logger
from recon_services.reports import AdjustmentsReport, FinalInventory

logger = get_logger("services.xlsx_export")

INVENTORY_SHEET = "Final Inventory"
SUMMARY_SHEET = "Summary"

INVENTORY_HEADERS = (
    "Code",
    "Description",
    "Unit",
    "Initial Qty",
    "Entries",
    "Exits",
    "Theoretical Qty",
    "Unit Cost",
    "Adjustments Received",
    "Adjustments Given",
    "Final Qty",
    "Final Value",
)


def _num(value: Decimal | None) -> float | None:
    return float(value) if value is not None else None


def build_workbook(inventory: FinalInventory) -> Workbook:
    wb = Workbook()
    sheet = wb.active
    sheet.title = INVENTORY_SHEET

    sheet.append(INVENTORY_HEADERS)
    for cell in sheet[1]:
        cell.font = Font(bold=True)

    for row in inventory.rows:
        sheet.append((
            row.cod_item,
            row.description,
            row.unit,
            _num(row.initial_qty),
            _num(row.entries_qty),
            _num(row.exits_qty),
            _num(row.theoretical_qty),
            _num(row.unit_cost),
            _num(row.adjustments_received),
            _num(row.adjustments_given),
            _num(row.final_qty),
            _num(row.final_value),
        ))
    sheet.freeze_panes = "A2"

    summary = inventory.summary
    ws = wb.create_sheet(SUMMARY_SHEET)
    for label, value in (
        ("Items", summary.item_count),
        ("Total Quantity", _num(summary.total_qty)),
        ("Total Value", _num(summary.total_value)),
        ("Negative Items", summary.negative_count),
        ("Positive Items", summary.positive_count),
        ("Zero Items", summary.zero_count),
    ):
        ws.append((label, value))
    for cell in ws["A"]:
        cell.font = Font(bold=True)

    return wb


def export_final_inventory_xlsx(
    inventory: FinalInventory,
    destination: Path | str | None = None,
) -> bytes:
    """
    Render ``inventory`` as XLSX.

    Returns the workbook bytes; also writes them to ``destination`` when
    given.
    """
    buffer = BytesIO()
    build_workbook(inventory).save(buffer)
    content = buffer.getvalue()

    if destination is not None:
        Path(destination).write_bytes(content)

    logger.info(
        "final_inventory_exported",
        extra={
            "item_count": inventory.summary.item_count,
            "size_bytes": len(content),
            "destination": str(destination) if destination is not None else None,
        },
    )
    return content


# =============================================================================
# Adjustments workbook
# =============================================================================

ADJUSTMENTS_SHEET = "Adjustments"

ADJUSTMENT_HEADERS = (
    "Wrong Code",
    "Correct Code",
    "Correct Code Description",
    "Wrong Code Description",
    "Quantity Written Off",
    "Unit Cost",
    "Financial Impact",
)

_ADJUSTMENT_WIDTHS = (20, 20, 50, 50, 18, 18, 20)
_ADJUSTMENT_HEADER_ROW = 3


def build_adjustments_workbook(
    report: AdjustmentsReport,
    period_name: str | None = None,
) -> Workbook:
    """
    One sheet: a merged title row, a blank row, the column headers, then one
    line per transfer in report order.

    The wrong code is the receiver (cod_negativo); the correct code is the
    donor (cod_positivo).
    """
    wb = Workbook()
    sheet = wb.active
    sheet.title = ADJUSTMENTS_SHEET

    sheet.append((f"ADJUSTMENTS FOR PERIOD {period_name or 'NOT SPECIFIED'}",))
    sheet.merge_cells(
        start_row=1, start_column=1, end_row=1, end_column=len(ADJUSTMENT_HEADERS)
    )
    sheet["A1"].font = Font(bold=True)
    sheet.append(())
    sheet.append(ADJUSTMENT_HEADERS)
    for cell in sheet[_ADJUSTMENT_HEADER_ROW]:
        cell.font = Font(bold=True)

    for line in report.lines:
        sheet.append((
            line.cod_negativo,
            line.cod_positivo,
            line.description_positivo,
            line.description_negativo,
            _num(line.qty_baixada),
            _num(line.unit_cost),
            _num(line.qty_baixada * line.unit_cost),
        ))

    for index, width in enumerate(_ADJUSTMENT_WIDTHS, start=1):
        sheet.column_dimensions[get_column_letter(index)].width = width
    sheet.freeze_panes = f"A{_ADJUSTMENT_HEADER_ROW + 1}"
    return wb


def export_adjustments_xlsx(
    report: AdjustmentsReport,
    destination: Path | str | None = None,
    *,
    period_name: str | None = None,
) -> bytes:
    """Render the adjustments report as XLSX; see export_final_inventory_xlsx."""
    buffer = BytesIO()
    build_adjustments_workbook(report, period_name).save(buffer)
    content = buffer.getvalue()

    if destination is not None:
        Path(destination).write_bytes(content)

    logger.info(
        "adjustments_exported",
        extra={
            "transfer_count": report.transfer_count,
            "size_bytes": len(content),
            "destination": str(destination) if destination is not None else None,
        },
    )
    return content

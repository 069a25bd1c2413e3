"""Render report datasets to XLSX (openpyxl)."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, BinaryIO, Sequence

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

MIN_COLUMN_WIDTH = 15
# Excel caps sheet titles at 31 characters
MAX_SHEET_TITLE = 31

HEADER_FONT = Font(bold=True)
HEADER_FILL = PatternFill(fill_type="solid", start_color="C6EFCE", end_color="C6EFCE")
HEADER_ALIGNMENT = Alignment(horizontal="center", vertical="center")


@dataclass(slots=True)
class ReportDataset:
    """Rows of a time series in chronological order, plus their column labels."""
    sheet_title: str
    columns: Sequence[str]
    rows: list[Sequence[Any]] = field(default_factory=list)


def _cell_value(v: Any) -> Any:
    """Convert value for Excel (Decimal -> float, aware datetime -> naive UTC-less)."""
    if v is None:
        return None
    if isinstance(v, Decimal):
        return float(v)
    if isinstance(v, datetime) and v.tzinfo is not None:
        return v.replace(tzinfo=None)
    return v


def render_report(dataset: ReportDataset, sink: BinaryIO) -> None:
    """Write ``dataset`` as a one-sheet workbook into ``sink``.

    Row 1 holds the column labels, each record follows in dataset order.
    Raises ValueError when a row does not match the column count.
    """
    wb = Workbook()
    ws = wb.active
    ws.title = dataset.sheet_title[:MAX_SHEET_TITLE] or "Report"

    width = len(dataset.columns)
    for col, label in enumerate(dataset.columns, start=1):
        cell = ws.cell(row=1, column=col, value=label)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = HEADER_ALIGNMENT

    for row_idx, record in enumerate(dataset.rows, start=2):
        if len(record) != width:
            raise ValueError(f"row {row_idx - 1} has {len(record)} values, expected {width}")
        for col, value in enumerate(record, start=1):
            ws.cell(row=row_idx, column=col, value=_cell_value(value))

    for col in range(1, width + 1):
        letter = get_column_letter(col)
        current = ws.column_dimensions[letter].width or 0
        if current < MIN_COLUMN_WIDTH:
            ws.column_dimensions[letter].width = MIN_COLUMN_WIDTH

    ws.freeze_panes = "A2"
    wb.save(sink)


__all__ = ["ReportDataset", "render_report"]

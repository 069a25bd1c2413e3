import io
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest
from openpyxl import load_workbook

from farm_market.services.report_datasets import HARVEST_COLUMNS, PRICE_HISTORY_COLUMNS
from farm_market.services.report_renderer import ReportDataset, render_report


def _render(dataset: ReportDataset):
    buf = io.BytesIO()
    render_report(dataset, buf)
    buf.seek(0)
    return load_workbook(buf).active


def test_price_history_sheet_layout():
    dataset = ReportDataset(
        sheet_title="Price History Report",
        columns=PRICE_HISTORY_COLUMNS,
        rows=[
            (1, datetime(2023, 1, 5, 9, 0), Decimal("12000.50"), "kg", "Red Chili", "Bandung"),
            (2, datetime(2023, 1, 20, 9, 0, tzinfo=timezone.utc), Decimal("13500"), "kg", "Red Chili", "Bandung"),
        ],
    )
    ws = _render(dataset)

    assert ws.title == "Price History Report"
    assert [c.value for c in ws[1]] == ["No", "Date", "Price", "Unit", "Commodity", "Region"]
    assert ws["A1"].font.bold
    assert ws["A1"].fill.start_color.rgb.endswith("C6EFCE")
    assert ws.freeze_panes == "A2"
    assert ws["C2"].value == 12000.5
    assert ws["B3"].value == datetime(2023, 1, 20, 9, 0)
    assert ws.max_row == 3


def test_empty_dataset_still_has_header_row():
    ws = _render(ReportDataset(sheet_title="Harvest Report", columns=HARVEST_COLUMNS, rows=[]))
    assert ws.max_row == 1
    assert ws["G1"].value == "Farmer"


def test_harvest_dates_round_trip_as_dates():
    ws = _render(ReportDataset(
        sheet_title="Harvest Report",
        columns=HARVEST_COLUMNS,
        rows=[(1, date(2023, 1, 10), Decimal("250"), "kg", "Shallot", "Brebes", "Siti")],
    ))
    # openpyxl reads date cells back as datetimes at midnight
    assert ws["B2"].value == datetime(2023, 1, 10)
    assert ws["G2"].value == "Siti"


def test_long_sheet_title_truncated():
    ws = _render(ReportDataset(sheet_title="X" * 40, columns=("A",), rows=[(1,)]))
    assert ws.title == "X" * 31


def test_row_width_mismatch_raises():
    with pytest.raises(ValueError):
        render_report(
            ReportDataset(sheet_title="Bad", columns=("A", "B"), rows=[(1,)]),
            io.BytesIO(),
        )

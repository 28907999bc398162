"""
Tests for spreadsheet export.
"""

from datetime import datetime, timezone
import io

from openpyxl import load_workbook

from src.scraper.export import (
    artifact_filename,
    build_workbook,
    export_records,
    read_records,
    write_records,
)
from src.scraper.models import COLUMNS, MenuRecord

HEADER = ("Category", "Item", "Description", "Price", "Comment")


def _records():
    return [
        MenuRecord("Drinks", "Latte", "Hot espresso drink", "$4.00", "Unavailable"),
        MenuRecord("Drinks", "Mocha", "", "$4.50 - $5.50", ""),
        MenuRecord("Uncategorized", "Water"),
    ]


class TestExport:
    def test_columns_follow_field_order(self):
        assert COLUMNS == HEADER

    def test_header_and_row_count(self):
        header, rows = read_records(export_records(_records()))

        assert header == HEADER
        assert len(rows) == 3
        assert rows[0] == ("Drinks", "Latte", "Hot espresso drink", "$4.00", "Unavailable")
        assert rows[1][3] == "$4.50 - $5.50"
        assert rows[2][:2] == ("Uncategorized", "Water")

    def test_empty_input_is_header_only(self):
        header, rows = read_records(export_records([]))

        assert header == HEADER
        assert rows == []

    def test_sheet_title(self):
        wb = load_workbook(io.BytesIO(export_records(_records(), sheet_title="Lunch")))

        assert wb.sheetnames == ["Lunch"]

    def test_default_sheet_title(self):
        wb = build_workbook([])

        assert wb.active.title == "Menu"

    def test_formula_like_text_stays_text(self):
        record = MenuRecord("Deals", "Combo", "", "=5+5", "")

        wb = load_workbook(io.BytesIO(export_records([record])))

        assert wb.active.cell(row=2, column=4).value == "=5+5"
        assert wb.active.cell(row=2, column=4).data_type == "s"

    def test_illegal_characters_are_dropped(self):
        record = MenuRecord("Drinks", "Lat\x0bte")

        _, rows = read_records(export_records([record]))

        assert rows[0][1] == "Latte"

    def test_write_records_creates_file(self, tmp_path):
        path = write_records(_records(), tmp_path / "out" / "menu.xlsx")

        assert path.exists()
        header, rows = read_records(path.read_bytes())
        assert header == HEADER
        assert len(rows) == 3


class TestArtifactFilename:
    def test_timestamp_format(self):
        now = datetime(2024, 5, 1, 12, 30, 45, 123456, tzinfo=timezone.utc)

        assert artifact_filename("CloverMenu", now) == "CloverMenu_2024-05-01T12-30-45-123Z.xlsx"

    def test_default_prefix(self):
        name = artifact_filename()

        assert name.startswith("CloverMenu_")
        assert name.endswith("Z.xlsx")
        assert ":" not in name

"""
Spreadsheet export of menu records.

One worksheet, a header row in `COLUMNS` order, then one row per record in the
order given. Cell text is written as-is: prices stay display strings.
"""

from __future__ import annotations

import io
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

from openpyxl import Workbook, load_workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
import structlog

from src.scraper.models import COLUMNS, MenuRecord

logger = structlog.get_logger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
DEFAULT_SHEET_TITLE = "Menu"


def _cell_text(value: str) -> str:
    return ILLEGAL_CHARACTERS_RE.sub("", value or "")


def build_workbook(records: Iterable[MenuRecord], *, sheet_title: str = DEFAULT_SHEET_TITLE) -> Workbook:
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_title

    ws.append(list(COLUMNS))
    for record in records:
        ws.append([_cell_text(value) for value in record.as_row()])

    # openpyxl treats "=..." strings as formulas; keep them as text.
    for row in ws.iter_rows(min_row=2):
        for cell in row:
            if cell.data_type == "f":
                cell.data_type = "s"

    return wb


def export_records(records: Iterable[MenuRecord], *, sheet_title: str = DEFAULT_SHEET_TITLE) -> bytes:
    """Serialize records to xlsx bytes. An empty input gives a header-only sheet."""
    wb = build_workbook(records, sheet_title=sheet_title)
    out = io.BytesIO()
    wb.save(out)
    return out.getvalue()


def write_records(
    records: Iterable[MenuRecord],
    path: Union[str, Path],
    *,
    sheet_title: str = DEFAULT_SHEET_TITLE,
) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = export_records(records, sheet_title=sheet_title)
    path.write_bytes(data)
    logger.info("Menu export written", path=str(path), size_bytes=len(data))
    return path


def read_records(data: bytes) -> Tuple[Tuple[str, ...], List[Tuple[str, ...]]]:
    """Read an exported artifact back as (header, rows)."""
    wb = load_workbook(io.BytesIO(data))
    ws = wb.worksheets[0]
    rows = [
        tuple("" if value is None else str(value) for value in row)
        for row in ws.iter_rows(values_only=True)
    ]

    if not rows:
        return (), []
    return rows[0], rows[1:]


def artifact_filename(prefix: str = "CloverMenu", now: Optional[datetime] = None) -> str:
    """
    Timestamped artifact name, e.g. `CloverMenu_2024-05-01T12-30-45-123Z.xlsx`.
    """
    now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    stamp = now.strftime("%Y-%m-%dT%H:%M:%S") + f".{now.microsecond // 1000:03d}Z"
    stamp = stamp.replace(":", "-").replace(".", "-")
    return f"{prefix}_{stamp}.xlsx"

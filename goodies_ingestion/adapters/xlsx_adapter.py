"""
XLSX source adapter for bulk goodies spreadsheets.

Supports:
  - sheet by index (0-based) or name; default is the first sheet
  - header row auto-detection: the first row (within the first 15) that has
    an ``employee_id`` or ``office_id`` column after normalization; row 0
    when none does
  - numeric cells: integral floats become ints (Excel stores 1001 as 1001.0)
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Iterator

import openpyxl

_HEADER_KEYS = frozenset({"employee_id", "office_id"})

_MAX_HEADER_SEARCH = 15


def _header_key(value: Any) -> str:
    if value is None:
        return ""
    return re.sub(r"[\s\-]+", "_", str(value).strip().lower())


def _cell_value(row: Any, col_idx: int) -> Any:
    """Get cell value from an openpyxl row (0-based column index)."""
    try:
        cell = row[col_idx]
    except IndexError:
        return ""
    v = cell.value if cell is not None else None
    if v is None:
        return ""
    if isinstance(v, float):
        if v == int(v):
            return int(v)
        return v
    if isinstance(v, int):
        return v
    return str(v).strip()


def _detect_header_row(rows: list) -> int:
    for i, row in enumerate(rows[:_MAX_HEADER_SEARCH]):
        keys = {_header_key(_cell_value(row, c)) for c in range(len(row))}
        if keys & _HEADER_KEYS:
            return i
    return 0


class XlsxSourceAdapter:
    """
    Read .xlsx files as one dict per row.

    source options:
      sheet: 0-based sheet index (int) or sheet name (str).  Default: first sheet.
    """

    def read(self, source_path: Path, options: dict[str, Any]) -> Iterator[dict[str, Any]]:
        wb = openpyxl.load_workbook(source_path, read_only=True, data_only=True)
        try:
            sheet = self._get_sheet(wb, options)
            rows = list(sheet.iter_rows())
            if not rows:
                return

            hi = _detect_header_row(rows)
            header_row = rows[hi]
            headers: list[str] = []
            for c in range(len(header_row)):
                key = str(_cell_value(header_row, c)) or f"column_{c + 1}"
                base = key
                cnt = 0
                while key in headers:
                    cnt += 1
                    key = f"{base}_{cnt}"
                headers.append(key)

            for row in rows[hi + 1:]:
                vals = [_cell_value(row, c) for c in range(len(headers))]
                if not any(v != "" for v in vals):
                    continue
                yield dict(zip(headers, vals))
        finally:
            wb.close()

    def _get_sheet(self, wb: Any, options: dict[str, Any]) -> Any:
        sheet_ref = options.get("sheet")
        if sheet_ref is None:
            return wb.worksheets[0]
        if isinstance(sheet_ref, int):
            return wb.worksheets[sheet_ref]
        return wb[sheet_ref]

"""
Row normalization for bulk import.

Spreadsheets arrive with headers like ``Employee ID`` or ``employee-id`` and
cells that are numbers, strings or blanks.  Every row is reduced to
``dict[str, str]`` with normalized keys before any lookup happens.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

EMPLOYEE_ID = "employee_id"
OFFICE_ID = "office_id"

_SEPARATORS = re.compile(r"[\s\-]+")


def normalize_header(name: Any) -> str:
    """``" Employee ID "`` -> ``"employee_id"``."""
    return _SEPARATORS.sub("_", str(name).strip().lower())


def cell_text(value: Any) -> str:
    """Render a cell as trimmed text; integral floats lose their ``.0``."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def normalize_row(row: Mapping[Any, Any]) -> dict[str, str]:
    """
    Normalize keys and values of one source row.

    Keys that are None (csv.DictReader's bucket for surplus cells) are
    dropped.  On a key collision the first non-empty value wins.
    """
    out: dict[str, str] = {}
    for key, value in row.items():
        if key is None:
            continue
        norm_key = normalize_header(key)
        if not norm_key:
            continue
        text = cell_text(value)
        if norm_key not in out or (not out[norm_key] and text):
            out[norm_key] = text
    return out

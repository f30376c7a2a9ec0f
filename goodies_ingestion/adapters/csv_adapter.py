"""
CSV source adapter.

Uses csv.DictReader.  Configurable: delimiter, encoding.  A UTF-8 byte order
mark (Excel's "CSV UTF-8" export) is stripped by reading utf-8 as utf-8-sig.
Blank lines are skipped by DictReader; rows whose cells are all empty are
skipped here.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Any, Iterator


def _get_encoding(options: dict[str, Any]) -> str:
    enc = options.get("encoding", "utf-8")
    if enc.lower() in ("utf-8", "utf8"):
        return "utf-8-sig"
    return enc


class CsvSourceAdapter:
    """Read CSV files as one dict per row. Streams; does not load entire file."""

    def read(self, source_path: Path, options: dict[str, Any]) -> Iterator[dict[str, Any]]:
        encoding = _get_encoding(options)
        delimiter = options.get("delimiter", ",")

        with source_path.open("r", encoding=encoding, newline="") as f:
            reader = csv.DictReader(f, delimiter=delimiter)
            for row in reader:
                if not any((v or "").strip() for k, v in row.items() if k is not None):
                    continue
                yield row

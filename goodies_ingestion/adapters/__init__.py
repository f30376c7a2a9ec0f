"""Source adapters for bulk import (file I/O only, no DB)."""

from pathlib import Path

from goodies_ingestion.adapters.base import SourceAdapter
from goodies_ingestion.adapters.csv_adapter import CsvSourceAdapter
from goodies_ingestion.adapters.xlsx_adapter import XlsxSourceAdapter

ADAPTERS_BY_EXTENSION: dict[str, type] = {
    ".csv": CsvSourceAdapter,
    ".xlsx": XlsxSourceAdapter,
}


def adapter_for(path: Path) -> SourceAdapter | None:
    """Adapter for a file by extension, or None if unsupported."""
    cls = ADAPTERS_BY_EXTENSION.get(path.suffix.lower())
    return cls() if cls is not None else None


__all__ = [
    "SourceAdapter",
    "CsvSourceAdapter",
    "XlsxSourceAdapter",
    "ADAPTERS_BY_EXTENSION",
    "adapter_for",
]

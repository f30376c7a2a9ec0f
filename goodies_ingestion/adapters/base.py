"""
Source adapter protocol.

Contract:
    SourceAdapter.read() yields one dict per data row, keyed by the header
    cells as they appear in the file.  Header normalization happens later
    (goodies_ingestion.domain.rows).

Architecture: goodies_ingestion/adapters. File I/O only, no DB or kernel imports.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterator, Protocol, runtime_checkable


@runtime_checkable
class SourceAdapter(Protocol):
    """Protocol for reading tabular source files into row dicts."""

    def read(self, source_path: Path, options: dict[str, Any]) -> Iterator[dict[str, Any]]:
        """Yield one dict per source row."""
        ...

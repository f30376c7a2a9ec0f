"""Pure types and row normalization for bulk import."""

from goodies_ingestion.domain.rows import (
    EMPLOYEE_ID,
    OFFICE_ID,
    cell_text,
    normalize_header,
    normalize_row,
)
from goodies_ingestion.domain.types import (
    BulkImportContext,
    BulkImportError,
    BulkImportResult,
    FailedRecord,
    ImportedDistribution,
)

__all__ = [
    "EMPLOYEE_ID",
    "OFFICE_ID",
    "cell_text",
    "normalize_header",
    "normalize_row",
    "BulkImportContext",
    "BulkImportError",
    "BulkImportResult",
    "FailedRecord",
    "ImportedDistribution",
]

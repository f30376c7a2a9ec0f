"""
goodies_ingestion.domain.types -- Pure frozen dataclasses for bulk import.

ZERO I/O. Imports only from goodies_kernel domain and exceptions.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import Any
from uuid import UUID

from goodies_kernel.domain.dtos import Actor, ClaimInfo, DistributionInfo
from goodies_kernel.exceptions import GoodiesKernelError


class BulkImportError(GoodiesKernelError):
    """
    Whole-file problem: unsupported extension, unreadable file, too many
    rows, or an actor that cannot import at all.  Row-level problems never
    raise; they end up in BulkImportResult.failed_records.
    """

    code: str = "BULK_IMPORT_ERROR"

    def __init__(self, message: str, details: dict | None = None):
        self.details = details or {}
        super().__init__(message)


@dataclass(frozen=True)
class BulkImportContext:
    """
    What a bulk upload is about.

    goodies_type + distribution_date (+ each row's office) identify the
    distribution every row claims from.
    """

    goodies_type: str
    distribution_date: date
    actor: Actor


@dataclass(frozen=True)
class FailedRecord:
    """One row that did not produce a claim."""

    row: int  # 1-based position in the input
    data: Mapping[str, str]
    error: str
    code: str

    def to_payload(self) -> dict[str, Any]:
        return {
            "row": self.row,
            "data": dict(self.data),
            "error": self.error,
            "code": self.code,
        }


@dataclass(frozen=True)
class ImportedDistribution:
    """Distribution a batch claimed from, and whether the batch created it."""

    distribution: DistributionInfo
    created: bool


@dataclass(frozen=True)
class BulkImportResult:
    """
    Outcome of one bulk run.

    success_count + failed_count == total_processed == number of input rows.
    failed_records is in input order.
    """

    batch_id: UUID
    total_processed: int
    success_count: int
    failed_count: int
    failed_records: tuple[FailedRecord, ...] = ()
    claims: tuple[ClaimInfo, ...] = ()
    distributions: tuple[ImportedDistribution, ...] = field(default_factory=tuple)

    def to_payload(self) -> dict[str, Any]:
        return {
            "totalProcessed": self.total_processed,
            "successCount": self.success_count,
            "failedCount": self.failed_count,
            "failedRecords": [r.to_payload() for r in self.failed_records],
        }

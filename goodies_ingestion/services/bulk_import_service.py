"""
Bulk import service: spreadsheet rows -> claims.

Row-independent, best-effort.  A failing row is recorded and the run moves
on to the next one; the batch as a whole is not transactional.

Three passes over the rows:

    1. resolve   -- normalize, find the employee and the office
    2. identify  -- per office, DistributionManager.find_or_create for
                    (goodies_type, distribution_date, office) sized to the
                    office's resolvable row count
    3. claim     -- ClaimLedger.claim(via=bulk_import), SAVEPOINT per row

Invariant violations are not row failures; they propagate.
"""

from __future__ import annotations

import csv
import zipfile
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from uuid import UUID, uuid4

from openpyxl.utils.exceptions import InvalidFileException
from sqlalchemy.orm import Session

from goodies_kernel.domain.clock import Clock, SystemClock
from goodies_kernel.domain.dtos import (
    ClaimInfo,
    ClaimVia,
    DistributionInfo,
    EmployeeInfo,
    OfficeInfo,
)
from goodies_kernel.exceptions import (
    DistributionValidationError,
    GoodiesKernelError,
    InvariantViolationError,
)
from goodies_kernel.logging_config import LogContext, get_logger
from goodies_kernel.services.claim_ledger import ClaimLedger
from goodies_kernel.services.directory_service import DirectoryService
from goodies_kernel.services.distribution_manager import (
    DistributionManager,
    normalize_goodies_type,
)

from goodies_ingestion.adapters import adapter_for
from goodies_ingestion.domain.rows import EMPLOYEE_ID, OFFICE_ID, normalize_row
from goodies_ingestion.domain.types import (
    BulkImportContext,
    BulkImportError,
    BulkImportResult,
    FailedRecord,
    ImportedDistribution,
)

logger = get_logger("ingestion.bulk_import_service")

DEFAULT_MAX_ROWS = 5000
DEFAULT_EXTENSIONS = (".csv", ".xlsx")

# Unreadable file, bad encoding, not a zip, missing sheet.
_READ_ERRORS = (
    OSError,
    UnicodeDecodeError,
    csv.Error,
    zipfile.BadZipFile,
    InvalidFileException,
    KeyError,
    IndexError,
)


@dataclass(frozen=True)
class _ResolvedRow:
    row: int
    data: Mapping[str, str]
    employee: EmployeeInfo
    office: OfficeInfo


class BulkImportService:
    """Drive the kernel from a parsed table, one isolated row at a time."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        max_rows: int = DEFAULT_MAX_ROWS,
        allowed_extensions: Sequence[str] = DEFAULT_EXTENSIONS,
        sheet: int | str | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._max_rows = max_rows
        self._allowed_extensions = tuple(e.lower() for e in allowed_extensions)
        self._sheet = sheet
        self._directory = DirectoryService(session)
        self._manager = DistributionManager(session, directory=self._directory)
        self._ledger = ClaimLedger(session, self._clock, directory=self._directory)

    # -------------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------------

    def process_file(
        self,
        source_path: Path,
        context: BulkImportContext,
        options: dict[str, Any] | None = None,
    ) -> BulkImportResult:
        """
        Read a CSV/XLSX file and process its rows.

        Raises:
            BulkImportError: unsupported extension or unreadable file.
        """
        source_path = Path(source_path)
        suffix = source_path.suffix.lower()
        adapter = adapter_for(source_path)
        if suffix not in self._allowed_extensions or adapter is None:
            raise BulkImportError(
                f"unsupported file type {suffix or '(none)'}; "
                f"expected one of {', '.join(self._allowed_extensions)}",
                details={"filename": source_path.name},
            )

        opts = dict(options or {})
        if self._sheet is not None:
            opts.setdefault("sheet", self._sheet)

        try:
            rows = list(adapter.read(source_path, opts))
        except _READ_ERRORS as exc:
            raise BulkImportError(
                f"could not read {source_path.name}: {exc}",
                details={"filename": source_path.name},
            ) from exc

        logger.info(
            "bulk_file_read",
            extra={"source_file": source_path.name, "row_count": len(rows)},
        )
        return self.process_rows(rows, context)

    def process_rows(
        self,
        rows: Iterable[Mapping[Any, Any]],
        context: BulkImportContext,
    ) -> BulkImportResult:
        """
        Process already-parsed rows.

        Returns:
            BulkImportResult; failed_records keep input order and
            success_count + failed_count == len(rows).

        Raises:
            DistributionValidationError: no rows, or a bad goodies type.
            BulkImportError: too many rows, or a same-office actor with no
                office.
            InvariantViolationError: always propagated.
        """
        normalized = [normalize_row(r) for r in rows]
        if not normalized:
            raise DistributionValidationError("no rows to import", field="rows")
        if len(normalized) > self._max_rows:
            raise BulkImportError(
                f"too many rows: {len(normalized)} (maximum {self._max_rows})",
                details={"row_count": len(normalized), "max_rows": self._max_rows},
            )

        goodies_type = normalize_goodies_type(context.goodies_type)
        actor = context.actor
        batch_id = uuid4()

        with LogContext.bind(
            batch_id=str(batch_id),
            actor_id=str(actor.actor_id),
            producer="bulk_import",
        ):
            logger.info(
                "bulk_import_started",
                extra={
                    "row_count": len(normalized),
                    "goodies_type": goodies_type,
                    "distribution_date": context.distribution_date,
                    "cross_office": actor.is_cross_office,
                },
            )

            home_office = self._home_office(context)
            failures: dict[int, FailedRecord] = {}

            # Pass 1: resolve
            resolved: list[_ResolvedRow] = []
            for row_no, data in enumerate(normalized, start=1):
                try:
                    resolved.append(self._resolve_row(row_no, data, home_office))
                except GoodiesKernelError as exc:
                    failures[row_no] = self._fail(row_no, data, exc)

            # Pass 2: identify-or-create per office, in first-seen order
            per_office: dict[UUID, int] = {}
            for r in resolved:
                per_office[r.office.id] = per_office.get(r.office.id, 0) + 1

            targets: dict[UUID, ImportedDistribution] = {}
            office_errors: dict[UUID, GoodiesKernelError] = {}
            for office_id, count in per_office.items():
                savepoint = self._session.begin_nested()
                try:
                    info, created = self._manager.find_or_create(
                        goodies_type,
                        context.distribution_date,
                        office_id,
                        count,
                        actor.actor_id,
                    )
                    savepoint.commit()
                except InvariantViolationError:
                    savepoint.rollback()
                    raise
                except GoodiesKernelError as exc:
                    savepoint.rollback()
                    office_errors[office_id] = exc
                    continue
                targets[office_id] = ImportedDistribution(distribution=info, created=created)

            # Pass 3: claim, one SAVEPOINT per row
            claims: list[ClaimInfo] = []
            for r in resolved:
                if r.office.id in office_errors:
                    failures[r.row] = self._fail(r.row, r.data, office_errors[r.office.id])
                    continue
                distribution = targets[r.office.id].distribution
                savepoint = self._session.begin_nested()
                try:
                    claim = self._ledger.claim(
                        distribution.id,
                        r.employee.id,
                        ClaimVia.BULK_IMPORT,
                        actor.actor_id,
                    )
                    savepoint.commit()
                except InvariantViolationError:
                    savepoint.rollback()
                    raise
                except GoodiesKernelError as exc:
                    savepoint.rollback()
                    failures[r.row] = self._fail(r.row, r.data, exc)
                    continue
                claims.append(claim.with_employee(r.employee))
                logger.debug(
                    "bulk_row_claimed",
                    extra={"row": r.row, "claim_id": str(claim.id)},
                )

            self._session.flush()

            failed_records = tuple(failures[k] for k in sorted(failures))
            distributions = tuple(
                ImportedDistribution(
                    distribution=self._refresh(t.distribution),
                    created=t.created,
                )
                for t in targets.values()
            )
            result = BulkImportResult(
                batch_id=batch_id,
                total_processed=len(normalized),
                success_count=len(claims),
                failed_count=len(failed_records),
                failed_records=failed_records,
                claims=tuple(claims),
                distributions=distributions,
            )
            logger.info(
                "bulk_import_completed",
                extra={
                    "total_processed": result.total_processed,
                    "success_count": result.success_count,
                    "failed_count": result.failed_count,
                    "distributions_created": sum(1 for d in distributions if d.created),
                },
            )
            return result

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _home_office(self, context: BulkImportContext) -> OfficeInfo | None:
        """Office every row goes to for a same-office actor; None if cross-office."""
        actor = context.actor
        if actor.is_cross_office:
            return None
        if actor.office_id is None:
            raise BulkImportError(
                "actor has no office; only a super admin may import across offices",
                details={"actor_id": str(actor.actor_id)},
            )
        return self._directory.get_office(actor.office_id)

    def _resolve_row(
        self,
        row_no: int,
        data: Mapping[str, str],
        home_office: OfficeInfo | None,
    ) -> _ResolvedRow:
        employee_ref = data.get(EMPLOYEE_ID, "")
        if not employee_ref:
            raise DistributionValidationError("employee_id is required", field=EMPLOYEE_ID)

        if home_office is None:
            office_ref = data.get(OFFICE_ID, "")
            if not office_ref:
                raise DistributionValidationError(
                    "office_id is required for cross-office imports",
                    field=OFFICE_ID,
                )
            office = self._directory.resolve_office(office_ref)
        else:
            office = home_office

        employee = self._directory.resolve_employee(employee_ref)
        return _ResolvedRow(row=row_no, data=data, employee=employee, office=office)

    def _fail(self, row_no: int, data: Mapping[str, str], exc: GoodiesKernelError) -> FailedRecord:
        logger.warning(
            "bulk_row_failed",
            extra={"row": row_no, "error_code": exc.code, "error_msg": str(exc)},
        )
        return FailedRecord(row=row_no, data=dict(data), error=str(exc), code=exc.code)

    def _refresh(self, info: DistributionInfo) -> DistributionInfo:
        return self._manager.get(info.id)

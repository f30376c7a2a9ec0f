#!/usr/bin/env python3
"""
Bulk goodies import from a spreadsheet.

Every row claims one unit of the distribution identified by
(goodies type, date, office) for the row's employee.  The distribution is
created on the fly when it doesn't exist yet.

Usage:
    python3 scripts/run_bulk_import.py --file PATH --goodies-type T --date YYYY-MM-DD \
        --actor-id UUID [--office-id REF] [--super-admin] [--config PATH]

Examples:
    # Office admin: every row goes to their office
    python3 scripts/run_bulk_import.py --file diwali.xlsx --goodies-type "Diwali Gift Box" \
        --date 2024-11-01 --actor-id 6f1c... --office-id OFFICE001

    # Super admin: each row carries office_id
    python3 scripts/run_bulk_import.py --file all_offices.csv --goodies-type "Diwali Gift Box" \
        --date 2024-11-01 --actor-id 6f1c... --super-admin

Prints {totalProcessed, successCount, failedCount, failedRecords} as JSON.
Exit code 0 when the run completed (even with failed rows), 1 on
whole-file errors.
"""

from __future__ import annotations

import argparse
import json
import sys
from datetime import date
from pathlib import Path
from uuid import UUID

# Project root on sys.path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Import goodies claims from a CSV/XLSX file.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--file", required=True, type=Path, help="CSV or XLSX file.")
    parser.add_argument("--goodies-type", required=True, help="Goodies type label.")
    parser.add_argument(
        "--date",
        required=True,
        type=date.fromisoformat,
        help="Distribution date (YYYY-MM-DD).",
    )
    parser.add_argument("--actor-id", required=True, type=UUID, help="Acting admin's UUID.")
    parser.add_argument(
        "--office-id",
        default=None,
        help="Office id or code the admin imports into (ignored with --super-admin).",
    )
    parser.add_argument(
        "--super-admin",
        action="store_true",
        help="Import across offices; every row must carry office_id.",
    )
    parser.add_argument("--config", type=Path, default=None, help="Settings YAML.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    source_path = args.file.resolve()
    if not source_path.is_file():
        print(f"ERROR: File not found: {source_path}", file=sys.stderr)
        return 1

    # Lazy imports so we fail fast on args first
    from goodies_config import init_from_settings, load_settings
    from goodies_ingestion.domain.types import BulkImportContext
    from goodies_ingestion.services import BulkImportService
    from goodies_kernel.db.engine import session_scope
    from goodies_kernel.domain.clock import SystemClock
    from goodies_kernel.domain.dtos import Actor, EmployeeRole
    from goodies_kernel.exceptions import GoodiesKernelError, InvariantViolationError
    from goodies_kernel.services.directory_service import DirectoryService

    settings = load_settings(args.config)
    init_from_settings(settings)

    try:
        with session_scope() as session:
            if args.super_admin:
                actor = Actor(args.actor_id, EmployeeRole.SUPER_ADMIN)
            else:
                if not args.office_id:
                    print("ERROR: --office-id is required without --super-admin", file=sys.stderr)
                    return 1
                office = DirectoryService(session).resolve_office(args.office_id)
                actor = Actor(args.actor_id, EmployeeRole.ADMIN, office.id)

            service = BulkImportService(
                session,
                SystemClock(),
                max_rows=settings.bulk_import.max_rows,
                allowed_extensions=settings.bulk_import.allowed_extensions,
                sheet=settings.bulk_import.sheet,
            )
            result = service.process_file(
                source_path,
                BulkImportContext(
                    goodies_type=args.goodies_type,
                    distribution_date=args.date,
                    actor=actor,
                ),
            )
    except InvariantViolationError:
        raise
    except GoodiesKernelError as exc:
        print(f"ERROR [{exc.code}]: {exc}", file=sys.stderr)
        return 1

    print(json.dumps(result.to_payload(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())

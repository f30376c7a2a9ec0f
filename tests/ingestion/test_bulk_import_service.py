"""
Tests for BulkImportService.

Covers:
- Best-effort row processing with per-row failure records
- Identify-or-create of the target distribution per office
- Same-office versus cross-office actors
- Whole-file rejections (extension, size, unreadable, empty)
"""

from datetime import date
from uuid import uuid4

import openpyxl
import pytest

from goodies_ingestion.domain.types import BulkImportContext, BulkImportError
from goodies_ingestion.services.bulk_import_service import BulkImportService
from goodies_kernel.domain.dtos import Actor, ClaimVia, EmployeeRole
from goodies_kernel.exceptions import (
    DistributionValidationError,
    InventoryInvariantError,
)

DATE = date(2024, 11, 1)


@pytest.fixture
def service(session, deterministic_clock):
    return BulkImportService(session, deterministic_clock)


@pytest.fixture
def admin_context(admin_actor):
    return BulkImportContext(goodies_type="Diwali Gift Box", distribution_date=DATE, actor=admin_actor)


@pytest.fixture
def super_context(super_admin_actor):
    return BulkImportContext(
        goodies_type="Diwali Gift Box", distribution_date=DATE, actor=super_admin_actor
    )


def _rows(*codes):
    return [{"employee_id": c} for c in codes]


class TestSameOfficeImport:

    def test_row_three_unknown(self, service, admin_context, roster, manager):
        result = service.process_rows(
            _rows("EMP001", "EMP002", "EMP999", "EMP004", "EMP005"), admin_context
        )

        assert result.total_processed == 5
        assert result.success_count == 4
        assert result.failed_count == 1
        failed = result.failed_records[0]
        assert failed.row == 3
        assert failed.error == "employee not found: EMP999"
        assert failed.code == "EMPLOYEE_NOT_FOUND"
        assert failed.data == {"employee_id": "EMP999"}

        assert len(result.distributions) == 1
        imported = result.distributions[0]
        assert imported.created is True
        assert imported.distribution.total_quantity == 4
        assert imported.distribution.remaining_count == 0
        assert manager.get(imported.distribution.id).claimed_count == 4

    def test_claims_tagged_bulk_import(self, service, admin_context, roster, admin_actor):
        result = service.process_rows(_rows("EMP001", "EMP002"), admin_context)

        assert {c.via for c in result.claims} == {ClaimVia.BULK_IMPORT}
        assert {c.handed_over_by_id for c in result.claims} == {admin_actor.actor_id}
        assert [c.employee.employee_code for c in result.claims] == ["EMP001", "EMP002"]

    def test_office_column_ignored_for_same_office_actor(
        self, service, admin_context, roster, office
    ):
        rows = [{"employee_id": "EMP001", "office_id": "OFFICE002"}]
        result = service.process_rows(rows, admin_context)
        assert result.success_count == 1
        assert result.distributions[0].distribution.office_id == office.id

    def test_headers_normalized(self, service, admin_context, roster):
        result = service.process_rows(
            [{"Employee ID": "EMP001"}, {" employee-id ": "EMP002"}], admin_context
        )
        assert result.success_count == 2

    def test_missing_employee_id(self, service, admin_context, roster):
        result = service.process_rows([{"employee_id": ""}, {"name": "x"}], admin_context)
        assert result.failed_count == 2
        assert {r.code for r in result.failed_records} == {"VALIDATION_ERROR"}
        assert result.distributions == ()

    def test_duplicate_row_is_already_claimed(self, service, admin_context, roster):
        result = service.process_rows(_rows("EMP001", "EMP002", "EMP001"), admin_context)
        assert result.success_count == 2
        assert [(r.row, r.code) for r in result.failed_records] == [(3, "ALREADY_CLAIMED")]

    def test_admin_row_not_eligible(self, service, admin_context, roster):
        result = service.process_rows(_rows("EMP001", "ADM001"), admin_context)
        assert [(r.row, r.code) for r in result.failed_records] == [(2, "NOT_ELIGIBLE")]

    def test_reuses_existing_distribution_without_resizing(
        self, service, admin_context, roster, create_distribution
    ):
        existing = create_distribution(total_quantity=1, goodies_type="Diwali Gift Box")

        result = service.process_rows(_rows("EMP001", "EMP002", "EMP003"), admin_context)

        assert result.distributions[0].created is False
        assert result.distributions[0].distribution.id == existing.id
        assert result.success_count == 1
        assert [r.code for r in result.failed_records] == ["OUT_OF_STOCK", "OUT_OF_STOCK"]

    def test_second_import_reuses_and_rejects_duplicates(self, service, admin_context, roster):
        first = service.process_rows(_rows("EMP001", "EMP002"), admin_context)
        second = service.process_rows(_rows("EMP001"), admin_context)

        assert second.distributions[0].distribution.id == first.distributions[0].distribution.id
        assert second.failed_records[0].code == "ALREADY_CLAIMED"
        assert second.batch_id != first.batch_id

    def test_actor_without_office_rejected(self, service, roster):
        actor = Actor(actor_id=uuid4(), role=EmployeeRole.ADMIN, office_id=None)
        context = BulkImportContext(goodies_type="Mug", distribution_date=DATE, actor=actor)
        with pytest.raises(BulkImportError):
            service.process_rows(_rows("EMP001"), context)

    def test_logs_batch(self, service, admin_context, roster, captured_logs):
        result = service.process_rows(_rows("EMP001", "EMP999"), admin_context)

        logs = captured_logs()
        completed = [r for r in logs if r["message"] == "bulk_import_completed"]
        assert completed[0]["batch_id"] == str(result.batch_id)
        assert completed[0]["failed_count"] == 1
        assert any(r["message"] == "bulk_row_failed" and r["row"] == 2 for r in logs)


class TestCrossOfficeImport:

    def test_office_required_per_row(self, service, super_context, roster):
        result = service.process_rows(
            [{"employee_id": "EMP001", "office_id": "OFFICE001"}, {"employee_id": "EMP002"}],
            super_context,
        )
        assert result.success_count == 1
        failed = result.failed_records[0]
        assert failed.row == 2
        assert failed.code == "VALIDATION_ERROR"

    def test_one_distribution_per_office(
        self, service, super_context, roster, other_office, employee_factory
    ):
        employee_factory(other_office, "EMP600")
        rows = [
            {"employee_id": "EMP001", "office_id": "OFFICE001"},
            {"employee_id": "EMP600", "office_id": "OFFICE002"},
            {"employee_id": "EMP002", "office_id": "OFFICE001"},
        ]
        result = service.process_rows(rows, super_context)

        assert result.success_count == 3
        quantities = {
            d.distribution.office_id: d.distribution.total_quantity for d in result.distributions
        }
        assert quantities == {roster[0].primary_office_id: 2, other_office.id: 1}

    def test_unknown_office(self, service, super_context, roster):
        result = service.process_rows(
            [{"employee_id": "EMP001", "office_id": "OFFICE404"}], super_context
        )
        assert result.failed_records[0].code == "OFFICE_NOT_FOUND"

    def test_employee_from_wrong_office_not_eligible(
        self, service, super_context, roster, other_office
    ):
        result = service.process_rows(
            [{"employee_id": "EMP001", "office_id": "OFFICE002"}], super_context
        )
        assert result.failed_records[0].code == "NOT_ELIGIBLE"
        assert result.distributions[0].distribution.office_id == other_office.id


class TestWholeBatchRejections:

    def test_empty_input(self, service, admin_context):
        with pytest.raises(DistributionValidationError):
            service.process_rows([], admin_context)

    def test_too_many_rows(self, session, deterministic_clock, admin_context, roster):
        service = BulkImportService(session, deterministic_clock, max_rows=2)
        with pytest.raises(BulkImportError) as exc_info:
            service.process_rows(_rows("EMP001", "EMP002", "EMP003"), admin_context)
        assert exc_info.value.details == {"row_count": 3, "max_rows": 2}

    def test_bad_goodies_type(self, service, admin_actor, roster):
        context = BulkImportContext(goodies_type="X", distribution_date=DATE, actor=admin_actor)
        with pytest.raises(DistributionValidationError):
            service.process_rows(_rows("EMP001"), context)

    def test_invariant_violation_propagates(self, service, admin_context, roster, monkeypatch):
        def broken_claim(distribution_id, *args, **kwargs):
            raise InventoryInvariantError(distribution_id, "reserve", "corrupt counters")

        monkeypatch.setattr(service._ledger, "claim", broken_claim)
        with pytest.raises(InventoryInvariantError):
            service.process_rows(_rows("EMP001"), admin_context)


class TestProcessFile:

    def test_csv(self, service, admin_context, roster, tmp_path):
        path = tmp_path / "diwali.csv"
        path.write_text("Employee ID\nEMP001\nEMP002\nEMP999\n")

        result = service.process_file(path, admin_context)

        assert (result.success_count, result.failed_count) == (2, 1)
        assert result.failed_records[0].row == 3

    def test_file_read_is_logged(self, service, admin_context, roster, tmp_path, captured_logs):
        path = tmp_path / "diwali.csv"
        path.write_text("Employee ID\nEMP001\n")

        result = service.process_file(path, admin_context)

        assert result.success_count == 1
        read_events = [r for r in captured_logs() if r["message"] == "bulk_file_read"]
        assert len(read_events) == 1
        assert read_events[0]["source_file"] == "diwali.csv"
        assert read_events[0]["row_count"] == 1

    def test_xlsx_with_numeric_codes(
        self, service, admin_context, office, employee_factory, tmp_path
    ):
        employee_factory(office, "1001")
        employee_factory(office, "1002")
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.append(["Goodies upload"])
        ws.append(["employee_id"])
        ws.append([1001])
        ws.append([1002])
        path = tmp_path / "diwali.xlsx"
        wb.save(path)

        result = service.process_file(path, admin_context)

        assert result.success_count == 2
        assert result.failed_count == 0

    @pytest.mark.parametrize("name", ["diwali.txt", "diwali.xls", "diwali"])
    def test_unsupported_extension(self, service, admin_context, tmp_path, name):
        path = tmp_path / name
        path.write_text("employee_id\nEMP001\n")
        with pytest.raises(BulkImportError):
            service.process_file(path, admin_context)

    def test_extension_not_allowed_by_settings(
        self, session, deterministic_clock, admin_context, tmp_path
    ):
        service = BulkImportService(session, deterministic_clock, allowed_extensions=(".csv",))
        path = tmp_path / "diwali.xlsx"
        path.write_bytes(b"")
        with pytest.raises(BulkImportError):
            service.process_file(path, admin_context)

    def test_corrupt_xlsx(self, service, admin_context, tmp_path):
        path = tmp_path / "diwali.xlsx"
        path.write_text("this is not a workbook")
        with pytest.raises(BulkImportError) as exc_info:
            service.process_file(path, admin_context)
        assert exc_info.value.details == {"filename": "diwali.xlsx"}

    def test_missing_file(self, service, admin_context, tmp_path):
        with pytest.raises(BulkImportError):
            service.process_file(tmp_path / "absent.csv", admin_context)

    def test_header_only_file_is_empty(self, service, admin_context, tmp_path):
        path = tmp_path / "diwali.csv"
        path.write_text("employee_id\n")
        with pytest.raises(DistributionValidationError):
            service.process_file(path, admin_context)

"""
Tests for DistributionManager.

Covers:
- Creation and parameter validation
- Targeted distributions
- Identify-or-create for bulk imports
- Cascade delete
"""

from datetime import date, datetime, timezone
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from goodies_kernel.domain.dtos import ClaimVia, DistributionParams, EmployeeRole
from goodies_kernel.exceptions import (
    DistributionNotFoundError,
    DistributionValidationError,
    OfficeNotFoundError,
)
from goodies_kernel.models.claim import ClaimRecord
from goodies_kernel.models.distribution import DistributionTarget
from goodies_kernel.services.distribution_manager import (
    normalize_goodies_type,
    validate_quantity,
)

DATE = date(2024, 11, 1)


def _params(office_id, **overrides):
    values = dict(
        goodies_type="Diwali Gift Box",
        total_quantity=10,
        office_id=office_id,
        distribution_date=DATE,
    )
    values.update(overrides)
    return DistributionParams(**values)


class TestCreate:

    def test_create_for_all(self, manager, office, test_actor_id):
        info = manager.create(_params(office.id), test_actor_id)

        assert info.id is not None
        assert info.goodies_type == "Diwali Gift Box"
        assert info.office_id == office.id
        assert info.total_quantity == 10
        assert info.claimed_count == 0
        assert info.remaining_count == 10
        assert info.is_for_all_employees is True
        assert info.target_employee_ids == ()
        assert info.distributed_by_id == test_actor_id
        assert info.office is None

    def test_goodies_type_is_trimmed(self, manager, office, test_actor_id):
        info = manager.create(_params(office.id, goodies_type="  Mug  "), test_actor_id)
        assert info.goodies_type == "Mug"

    def test_zero_quantity_allowed(self, manager, office, test_actor_id):
        info = manager.create(_params(office.id, total_quantity=0), test_actor_id)
        assert info.is_exhausted

    def test_datetime_date_is_truncated(self, manager, office, test_actor_id):
        info = manager.create(
            _params(office.id, distribution_date=datetime(2024, 11, 1, 15, 30, tzinfo=timezone.utc)),
            test_actor_id,
        )
        assert info.distribution_date == DATE

    def test_unknown_office(self, manager, test_actor_id):
        with pytest.raises(OfficeNotFoundError):
            manager.create(_params(uuid4()), test_actor_id)

    def test_logs_creation(self, manager, office, test_actor_id, captured_logs):
        info = manager.create(_params(office.id), test_actor_id)
        created = [r for r in captured_logs() if r["message"] == "distribution_created"]
        assert created[0]["distribution_id"] == str(info.id)
        assert created[0]["total_quantity"] == 10


class TestValidation:

    @pytest.mark.parametrize("goodies_type", ["", "A", " B ", "x" * 101, None, 42])
    def test_bad_goodies_type(self, manager, office, test_actor_id, goodies_type):
        with pytest.raises(DistributionValidationError) as exc_info:
            manager.create(_params(office.id, goodies_type=goodies_type), test_actor_id)
        assert exc_info.value.field == "goodies_type"

    def test_boundary_lengths_accepted(self):
        assert normalize_goodies_type("ab") == "ab"
        assert normalize_goodies_type("x" * 100) == "x" * 100

    @pytest.mark.parametrize("quantity", [-1, 2.5, "10", None, True, False])
    def test_bad_quantity(self, manager, office, test_actor_id, quantity):
        with pytest.raises(DistributionValidationError) as exc_info:
            manager.create(_params(office.id, total_quantity=quantity), test_actor_id)
        assert exc_info.value.field == "total_quantity"

    def test_validate_quantity_passthrough(self):
        assert validate_quantity(0) == 0
        assert validate_quantity(5000) == 5000

    def test_bad_date(self, manager, office, test_actor_id):
        with pytest.raises(DistributionValidationError) as exc_info:
            manager.create(_params(office.id, distribution_date="2024-11-01"), test_actor_id)
        assert exc_info.value.field == "distribution_date"

    def test_nothing_persisted_on_failure(self, manager, office, test_actor_id):
        with pytest.raises(DistributionValidationError):
            manager.create(_params(office.id, total_quantity=-5), test_actor_id)
        assert manager.list_distributions(office.id) == []


class TestTargets:

    def test_targets_preserved_in_order_and_deduplicated(
        self, manager, office, roster, test_actor_id
    ):
        a, b, c = roster[2], roster[0], roster[1]
        info = manager.create(
            _params(
                office.id,
                is_for_all_employees=False,
                target_employee_ids=(a.id, b.id, a.id, c.id),
            ),
            test_actor_id,
        )
        assert info.is_for_all_employees is False
        assert info.target_employee_ids == (a.id, b.id, c.id)

    def test_targets_required(self, manager, office, test_actor_id):
        with pytest.raises(DistributionValidationError) as exc_info:
            manager.create(_params(office.id, is_for_all_employees=False), test_actor_id)
        assert exc_info.value.field == "target_employees"

    def test_targets_ignored_when_for_all(self, manager, office, roster, test_actor_id):
        info = manager.create(
            _params(office.id, is_for_all_employees=True, target_employee_ids=(roster[0].id,)),
            test_actor_id,
        )
        assert info.target_employee_ids == ()

    def test_target_from_other_office_rejected(
        self, manager, office, other_office, roster, employee_factory, test_actor_id
    ):
        outsider = employee_factory(other_office, "EMP777")
        unknown = uuid4()
        with pytest.raises(DistributionValidationError) as exc_info:
            manager.create(
                _params(
                    office.id,
                    is_for_all_employees=False,
                    target_employee_ids=(roster[0].id, outsider.id, unknown),
                ),
                test_actor_id,
            )
        assert exc_info.value.details["invalid_employee_ids"] == [str(outsider.id), str(unknown)]

    def test_admin_target_rejected(self, manager, office, employee_factory, test_actor_id):
        admin = employee_factory(office, "ADM777", role=EmployeeRole.ADMIN)
        with pytest.raises(DistributionValidationError):
            manager.create(
                _params(office.id, is_for_all_employees=False, target_employee_ids=(admin.id,)),
                test_actor_id,
            )


class TestFindOrCreate:

    def test_creates_when_absent(self, manager, office, test_actor_id):
        info, created = manager.find_or_create("Mug", DATE, office.id, 4, test_actor_id)
        assert created is True
        assert info.total_quantity == 4
        assert info.is_for_all_employees is True

    def test_reuses_existing_without_resizing(self, manager, office, test_actor_id):
        first, _ = manager.find_or_create("Mug", DATE, office.id, 4, test_actor_id)
        again, created = manager.find_or_create(" Mug ", DATE, office.id, 40, test_actor_id)

        assert created is False
        assert again.id == first.id
        assert again.total_quantity == 4

    def test_reuses_manually_created(self, manager, office, test_actor_id):
        existing = manager.create(_params(office.id, goodies_type="Mug", total_quantity=2), test_actor_id)
        info, created = manager.find_or_create("Mug", DATE, office.id, 9, test_actor_id)
        assert created is False
        assert info.id == existing.id

    @pytest.mark.parametrize(
        "goodies_type,day",
        [("Mug", date(2024, 11, 2)), ("Hoodie", DATE)],
    )
    def test_different_tuple_creates_new(self, manager, office, test_actor_id, goodies_type, day):
        first, _ = manager.find_or_create("Mug", DATE, office.id, 4, test_actor_id)
        other, created = manager.find_or_create(goodies_type, day, office.id, 4, test_actor_id)
        assert created is True
        assert other.id != first.id

    def test_office_is_part_of_identity(self, manager, office, other_office, test_actor_id):
        first, _ = manager.find_or_create("Mug", DATE, office.id, 4, test_actor_id)
        other, created = manager.find_or_create("Mug", DATE, other_office.id, 4, test_actor_id)
        assert created is True
        assert other.id != first.id

    def test_unknown_office(self, manager, test_actor_id):
        with pytest.raises(OfficeNotFoundError):
            manager.find_or_create("Mug", DATE, uuid4(), 1, test_actor_id)


class TestDelete:

    def test_cascade_delete(
        self, manager, ledger, session, create_distribution, roster, test_actor_id
    ):
        distribution = create_distribution(
            total_quantity=5, target_employee_ids=tuple(e.id for e in roster)
        )
        for employee in roster[:3]:
            ledger.claim(distribution.id, employee.id, ClaimVia.SELF_SERVICE, employee.id)

        removed = manager.delete(distribution.id, test_actor_id)

        assert removed == 3
        with pytest.raises(DistributionNotFoundError):
            manager.get(distribution.id)
        claims = session.execute(
            select(func.count(ClaimRecord.id)).where(ClaimRecord.distribution_id == distribution.id)
        ).scalar_one()
        targets = session.execute(
            select(func.count(DistributionTarget.id)).where(
                DistributionTarget.distribution_id == distribution.id
            )
        ).scalar_one()
        assert claims == 0
        assert targets == 0

    def test_delete_leaves_other_distributions(
        self, manager, ledger, create_distribution, roster, test_actor_id
    ):
        doomed = create_distribution(goodies_type="Mug")
        kept = create_distribution(goodies_type="Hoodie")
        ledger.claim(kept.id, roster[0].id, ClaimVia.SELF_SERVICE, roster[0].id)

        manager.delete(doomed.id, test_actor_id)

        assert manager.get(kept.id).claimed_count == 1
        assert len(ledger.list_claims(kept.id)) == 1

    def test_delete_unknown(self, manager, test_actor_id):
        with pytest.raises(DistributionNotFoundError):
            manager.delete(uuid4(), test_actor_id)

    def test_delete_twice(self, manager, create_distribution, test_actor_id):
        distribution = create_distribution()
        assert manager.delete(distribution.id, test_actor_id) == 0
        with pytest.raises(DistributionNotFoundError):
            manager.delete(distribution.id, test_actor_id)


class TestList:

    def test_office_filter_and_order(self, manager, office, other_office, test_actor_id):
        older = manager.create(_params(office.id, distribution_date=date(2024, 1, 1)), test_actor_id)
        newer = manager.create(_params(office.id, distribution_date=date(2024, 6, 1)), test_actor_id)
        manager.create(_params(other_office.id), test_actor_id)

        listed = manager.list_distributions(office.id)
        assert [d.id for d in listed] == [newer.id, older.id]
        assert len(manager.list_distributions()) == 3

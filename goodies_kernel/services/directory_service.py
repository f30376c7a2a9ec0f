"""
DirectoryService -- read access to the Office registry and Employee Directory.

The directory is owned by another system; the engine only resolves
references and builds office rosters from it.  References arrive either as
UUIDs or as business codes (``OFFICE001``, ``EMP001``), the latter being
what spreadsheets carry.
"""

from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import select

from goodies_kernel.domain.dtos import (
    RECIPIENT_ROLES,
    EmployeeInfo,
    EmployeeStatus,
    OfficeInfo,
)
from goodies_kernel.exceptions import EmployeeNotFoundError, OfficeNotFoundError
from goodies_kernel.models.employee import Employee
from goodies_kernel.models.office import Office
from goodies_kernel.services.base import BaseService


def _as_uuid(ref: str) -> UUID | None:
    try:
        return UUID(ref)
    except ValueError:
        return None


class DirectoryService(BaseService[Employee]):
    """
    Lookups against the directory read models.

    All public methods return DTOs.
    """

    # -- Offices ------------------------------------------------------------

    def get_office(self, office_id: UUID) -> OfficeInfo:
        """
        Get office by ID.

        Raises:
            OfficeNotFoundError: If the office doesn't exist.
        """
        office = self.session.get(Office, office_id)
        if office is None:
            raise OfficeNotFoundError(str(office_id))
        return OfficeInfo.from_model(office)

    def resolve_office(self, ref: UUID | str) -> OfficeInfo:
        """
        Resolve an office by UUID or office code.

        A string that parses as a UUID is tried as an id first and then as
        a code.

        Raises:
            OfficeNotFoundError: If nothing matches.
        """
        if isinstance(ref, UUID):
            return self.get_office(ref)

        text = str(ref).strip()
        if not text:
            raise OfficeNotFoundError(str(ref))

        as_id = _as_uuid(text)
        if as_id is not None:
            office = self.session.get(Office, as_id)
            if office is not None:
                return OfficeInfo.from_model(office)

        office = self.session.execute(
            select(Office).where(Office.office_code == text)
        ).scalar_one_or_none()
        if office is None:
            raise OfficeNotFoundError(text)
        return OfficeInfo.from_model(office)

    def get_offices(self, office_ids: Iterable[UUID]) -> dict[UUID, OfficeInfo]:
        """Batch lookup for populating denormalized views. Unknown ids are omitted."""
        ids = set(office_ids)
        if not ids:
            return {}
        rows = self.session.execute(select(Office).where(Office.id.in_(ids))).scalars()
        return {o.id: OfficeInfo.from_model(o) for o in rows}

    # -- Employees ----------------------------------------------------------

    def get_employee(self, employee_id: UUID) -> EmployeeInfo:
        """
        Get employee by ID.

        Raises:
            EmployeeNotFoundError: If the employee doesn't exist.
        """
        employee = self.session.get(Employee, employee_id)
        if employee is None:
            raise EmployeeNotFoundError(str(employee_id))
        return EmployeeInfo.from_model(employee)

    def resolve_employee(self, ref: UUID | str) -> EmployeeInfo:
        """
        Resolve an employee by UUID or employee code.

        Raises:
            EmployeeNotFoundError: If nothing matches.
        """
        if isinstance(ref, UUID):
            return self.get_employee(ref)

        text = str(ref).strip()
        if not text:
            raise EmployeeNotFoundError(str(ref))

        as_id = _as_uuid(text)
        if as_id is not None:
            employee = self.session.get(Employee, as_id)
            if employee is not None:
                return EmployeeInfo.from_model(employee)

        employee = self.session.execute(
            select(Employee).where(Employee.employee_code == text)
        ).scalar_one_or_none()
        if employee is None:
            raise EmployeeNotFoundError(text)
        return EmployeeInfo.from_model(employee)

    def get_employees(self, employee_ids: Iterable[UUID]) -> dict[UUID, EmployeeInfo]:
        """Batch lookup for populating denormalized views. Unknown ids are omitted."""
        ids = set(employee_ids)
        if not ids:
            return {}
        rows = self.session.execute(
            select(Employee).where(Employee.id.in_(ids))
        ).scalars()
        return {e.id: EmployeeInfo.from_model(e) for e in rows}

    def office_roster(
        self,
        office_id: UUID,
        employee_ids: Iterable[UUID] | None = None,
    ) -> tuple[EmployeeInfo, ...]:
        """
        Active internal/external employees of an office.

        Args:
            office_id: Office whose roster to list.
            employee_ids: If given, restrict the roster to these ids.  Used
                by the claim path to avoid loading a whole office.

        Returns:
            Employees ordered by name, then employee code.
        """
        stmt = select(Employee).where(
            Employee.primary_office_id == office_id,
            Employee.status == EmployeeStatus.ACTIVE.value,
            Employee.role.in_([r.value for r in RECIPIENT_ROLES]),
        )
        if employee_ids is not None:
            ids = set(employee_ids)
            if not ids:
                return ()
            stmt = stmt.where(Employee.id.in_(ids))

        stmt = stmt.order_by(Employee.name, Employee.employee_code)
        return tuple(
            EmployeeInfo.from_model(e) for e in self.session.execute(stmt).scalars()
        )

"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Immutable values that cross the service boundary: directory views
    (OfficeInfo, EmployeeInfo), the acting user (Actor), distribution
    creation input (DistributionParams) and the read views returned by the
    engine (DistributionInfo, ClaimInfo).

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    from_model() class methods are boundary converters invoked only from
    services and selectors.

Populated-vs-reference fields:
    DistributionInfo always carries office_id.  The optional ``office``
    field holds a separately fetched OfficeInfo and is None unless the
    caller asked for it.  ClaimInfo.user_id / ClaimInfo.employee follow the
    same rule.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from goodies_kernel.models.claim import ClaimRecord
    from goodies_kernel.models.distribution import Distribution
    from goodies_kernel.models.employee import Employee
    from goodies_kernel.models.office import Office


class EmployeeRole(str, Enum):
    """Directory role.  Administrative roles never receive goodies."""

    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    INTERNAL = "internal"
    EXTERNAL = "external"


RECIPIENT_ROLES: frozenset[EmployeeRole] = frozenset(
    {EmployeeRole.INTERNAL, EmployeeRole.EXTERNAL}
)


class EmployeeStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    INACTIVE = "inactive"


class ClaimVia(str, Enum):
    """Path through which a claim was recorded.  Audit only."""

    SELF_SERVICE = "self_service"
    ADMIN_MARKED = "admin_marked"
    BULK_IMPORT = "bulk_import"


@dataclass(frozen=True)
class Actor:
    """
    The already-authenticated caller.

    A super_admin acts across offices; everyone else acts for office_id.
    Authorization itself is the caller's concern.
    """

    actor_id: UUID
    role: EmployeeRole
    office_id: UUID | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.role, EmployeeRole):
            object.__setattr__(self, "role", EmployeeRole(self.role))

    @property
    def is_cross_office(self) -> bool:
        return self.role == EmployeeRole.SUPER_ADMIN


@dataclass(frozen=True)
class OfficeInfo:
    id: UUID
    office_code: str
    name: str
    address: str | None = None
    is_active: bool = True

    @classmethod
    def from_model(cls, model: Office) -> OfficeInfo:
        return cls(
            id=model.id,
            office_code=model.office_code,
            name=model.name,
            address=model.address,
            is_active=model.is_active,
        )


@dataclass(frozen=True)
class EmployeeInfo:
    id: UUID
    employee_code: str
    name: str
    role: EmployeeRole
    status: EmployeeStatus
    email: str | None = None
    primary_office_id: UUID | None = None
    assigned_office_id: UUID | None = None

    @property
    def can_receive_goodies(self) -> bool:
        """Active internal/external employee."""
        return self.role in RECIPIENT_ROLES and self.status == EmployeeStatus.ACTIVE

    @classmethod
    def from_model(cls, model: Employee) -> EmployeeInfo:
        return cls(
            id=model.id,
            employee_code=model.employee_code,
            name=model.name,
            role=EmployeeRole(model.role),
            status=EmployeeStatus(model.status),
            email=model.email,
            primary_office_id=model.primary_office_id,
            assigned_office_id=model.assigned_office_id,
        )


@dataclass(frozen=True)
class DistributionParams:
    """
    Input to DistributionManager.create.

    Values are taken as given; DistributionManager validates them.
    """

    goodies_type: str
    total_quantity: int
    office_id: UUID
    distribution_date: date
    is_for_all_employees: bool = True
    target_employee_ids: tuple[UUID, ...] = ()


@dataclass(frozen=True)
class DistributionInfo:
    """Read view of a Distribution."""

    id: UUID
    goodies_type: str
    office_id: UUID
    distribution_date: date
    total_quantity: int
    claimed_count: int
    remaining_count: int
    is_for_all_employees: bool
    target_employee_ids: tuple[UUID, ...]
    distributed_by_id: UUID
    created_at: datetime | None = None
    office: OfficeInfo | None = None

    @property
    def is_exhausted(self) -> bool:
        return self.remaining_count == 0

    def with_office(self, office: OfficeInfo | None) -> DistributionInfo:
        return replace(self, office=office)

    @classmethod
    def from_model(cls, model: Distribution) -> DistributionInfo:
        return cls(
            id=model.id,
            goodies_type=model.goodies_type,
            office_id=model.office_id,
            distribution_date=model.distribution_date,
            total_quantity=model.total_quantity,
            claimed_count=model.claimed_count,
            remaining_count=model.remaining_count,
            is_for_all_employees=model.is_for_all_employees,
            target_employee_ids=model.target_employee_ids,
            distributed_by_id=model.distributed_by_id,
            created_at=model.created_at,
        )


@dataclass(frozen=True)
class ClaimInfo:
    """Read view of a ClaimRecord."""

    id: UUID
    distribution_id: UUID
    user_id: UUID
    received_at: datetime
    via: ClaimVia
    received_at_office_id: UUID
    handed_over_by_id: UUID
    employee: EmployeeInfo | None = None

    def with_employee(self, employee: EmployeeInfo | None) -> ClaimInfo:
        return replace(self, employee=employee)

    @classmethod
    def from_model(cls, model: ClaimRecord) -> ClaimInfo:
        return cls(
            id=model.id,
            distribution_id=model.distribution_id,
            user_id=model.user_id,
            received_at=model.received_at,
            via=ClaimVia(model.via),
            received_at_office_id=model.received_at_office_id,
            handed_over_by_id=model.handed_over_by_id,
        )


@dataclass(frozen=True)
class EligibleSet:
    """Eligible employees of one distribution, in roster order."""

    distribution_id: UUID
    employees: tuple[EmployeeInfo, ...] = field(default_factory=tuple)

    def __contains__(self, employee_id: object) -> bool:
        return any(e.id == employee_id for e in self.employees)

    def __len__(self) -> int:
        return len(self.employees)

    @property
    def ids(self) -> tuple[UUID, ...]:
        return tuple(e.id for e in self.employees)

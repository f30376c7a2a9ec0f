"""
Eligibility Resolver -- who may claim a distribution.

Pure function of (distribution, office roster).  Nothing is cached: rosters
change between targeting time and claim time, so every call recomputes.

    is_for_all_employees = True   -> the whole roster
    is_for_all_employees = False  -> roster members listed in the targets;
                                     targets missing from the roster are
                                     dropped silently (they left the office
                                     or were deactivated)

The roster is expected to be the directory listing for the distribution's
office, already restricted to active internal/external employees.  Anyone
else that slips through is filtered here too, so an administrative role is
never eligible whatever the caller passes.
"""

from collections.abc import Iterable
from typing import Protocol
from uuid import UUID

from goodies_kernel.domain.dtos import EligibleSet, EmployeeInfo


class Targeting(Protocol):
    """The part of a distribution eligibility depends on."""

    id: UUID
    is_for_all_employees: bool
    target_employee_ids: tuple[UUID, ...]


def resolve_eligible(
    distribution: Targeting,
    roster: Iterable[EmployeeInfo],
) -> EligibleSet:
    """
    Compute the eligible set for a distribution.

    Order follows the roster; duplicate roster entries are collapsed.
    """
    seen: set[UUID] = set()
    candidates: list[EmployeeInfo] = []
    for employee in roster:
        if employee.id in seen or not employee.can_receive_goodies:
            continue
        seen.add(employee.id)
        candidates.append(employee)

    if not distribution.is_for_all_employees:
        targets = set(distribution.target_employee_ids)
        candidates = [e for e in candidates if e.id in targets]

    return EligibleSet(distribution_id=distribution.id, employees=tuple(candidates))


def is_eligible(
    distribution: Targeting,
    roster: Iterable[EmployeeInfo],
    employee_id: UUID,
) -> bool:
    return employee_id in resolve_eligible(distribution, roster)

"""Pure domain layer: DTOs, clock and the eligibility resolver."""

from goodies_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from goodies_kernel.domain.dtos import (
    RECIPIENT_ROLES,
    Actor,
    ClaimInfo,
    ClaimVia,
    DistributionInfo,
    DistributionParams,
    EligibleSet,
    EmployeeInfo,
    EmployeeRole,
    EmployeeStatus,
    OfficeInfo,
)
from goodies_kernel.domain.eligibility import is_eligible, resolve_eligible

__all__ = [
    "Clock",
    "SystemClock",
    "DeterministicClock",
    "Actor",
    "ClaimInfo",
    "ClaimVia",
    "DistributionInfo",
    "DistributionParams",
    "EligibleSet",
    "EmployeeInfo",
    "EmployeeRole",
    "EmployeeStatus",
    "OfficeInfo",
    "RECIPIENT_ROLES",
    "resolve_eligible",
    "is_eligible",
]

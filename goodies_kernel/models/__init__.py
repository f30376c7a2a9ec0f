"""ORM models for the goodies kernel."""

from goodies_kernel.models.claim import ClaimRecord
from goodies_kernel.models.distribution import Distribution, DistributionTarget
from goodies_kernel.models.employee import Employee
from goodies_kernel.models.office import Office

__all__ = [
    "Office",
    "Employee",
    "Distribution",
    "DistributionTarget",
    "ClaimRecord",
]

"""
Typed Exception Hierarchy for the Goodies Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Claim outcomes are part of the API contract. A caller needs to tell
"you already have your gift box" apart from "the gift boxes ran out"
without parsing message strings, and the bulk importer needs a stable
code to put into each failed row.

Every exception here:
  1. Is a TYPED class (catch by type, not message)
  2. Has a CODE class attribute (machine-readable, API-safe)
  3. Carries structured DATA as attributes (ids, counts)

Example:
    try:
        ledger.claim(distribution_id, user_id, ClaimVia.SELF_SERVICE, actor_id)
    except AlreadyClaimedError as e:
        return {"code": e.code, "claimId": str(e.claim_id)}
    except OutOfStockError as e:
        return {"code": e.code, "distributionId": str(e.distribution_id)}

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from GoodiesKernelError:

    GoodiesKernelError (base)
    |
    +-- DistributionValidationError
    |
    +-- NotFoundError
    |   +-- DistributionNotFoundError
    |   +-- ClaimNotFoundError
    |   +-- EmployeeNotFoundError
    |   +-- OfficeNotFoundError
    |
    +-- ClaimError
    |   +-- NotEligibleError
    |   +-- AlreadyClaimedError
    |   +-- OutOfStockError
    |
    +-- InvariantViolationError
        +-- InventoryInvariantError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                          | When Raised
-------------|-------------------------------|--------------------------------------
Validation   | VALIDATION_ERROR              | Bad creation params (quantity, targets)
-------------|-------------------------------|--------------------------------------
Not found    | DISTRIBUTION_NOT_FOUND        | Distribution id unknown (or deleted)
             | CLAIM_NOT_FOUND               | Claim id unknown (or already reversed)
             | EMPLOYEE_NOT_FOUND            | Employee reference does not resolve
             | OFFICE_NOT_FOUND              | Office reference does not resolve
-------------|-------------------------------|--------------------------------------
Claim        | NOT_ELIGIBLE                  | Employee outside the eligible set
             | ALREADY_CLAIMED               | Employee already holds a claim (OK)
             | OUT_OF_STOCK                  | remaining_count was zero
-------------|-------------------------------|--------------------------------------
Invariant    | INVENTORY_INVARIANT_VIOLATED  | release() without a matching reserve()

===============================================================================
HANDLING PATTERNS
===============================================================================

1. AlreadyClaimedError is idempotent success from the employee's point of
   view: they have their item.

2. OutOfStockError and NotEligibleError are final. Retrying cannot change
   the outcome.

3. InvariantViolationError is a bug in calling code. Never convert it into
   a user-facing payload; let it propagate and page someone.

===============================================================================
"""

from uuid import UUID


class GoodiesKernelError(Exception):
    """
    Base exception for all goodies kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "GOODIES_KERNEL_ERROR"


# Validation


class DistributionValidationError(GoodiesKernelError):
    """Distribution creation parameters are malformed."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None, details: dict | None = None):
        self.field = field
        self.details = details or {}
        super().__init__(message)


# Not found


class NotFoundError(GoodiesKernelError):
    """Base exception for unresolvable references."""

    code: str = "NOT_FOUND"


class DistributionNotFoundError(NotFoundError):
    """Distribution with given ID was not found."""

    code: str = "DISTRIBUTION_NOT_FOUND"

    def __init__(self, distribution_id: str):
        self.distribution_id = distribution_id
        super().__init__(f"Distribution not found: {distribution_id}")


class ClaimNotFoundError(NotFoundError):
    """Claim record with given ID was not found."""

    code: str = "CLAIM_NOT_FOUND"

    def __init__(self, claim_id: str):
        self.claim_id = claim_id
        super().__init__(f"Claim not found: {claim_id}")


class EmployeeNotFoundError(NotFoundError):
    """Employee reference (id or employee code) does not resolve."""

    code: str = "EMPLOYEE_NOT_FOUND"

    def __init__(self, employee_ref: str):
        self.employee_ref = employee_ref
        super().__init__(f"employee not found: {employee_ref}")


class OfficeNotFoundError(NotFoundError):
    """Office reference (id or office code) does not resolve."""

    code: str = "OFFICE_NOT_FOUND"

    def __init__(self, office_ref: str):
        self.office_ref = office_ref
        super().__init__(f"office not found: {office_ref}")


# Claim outcomes


class ClaimError(GoodiesKernelError):
    """Base exception for rejected claims."""

    code: str = "CLAIM_ERROR"


class NotEligibleError(ClaimError):
    """Employee is not in the distribution's eligible set."""

    code: str = "NOT_ELIGIBLE"

    def __init__(self, distribution_id: UUID, user_id: UUID):
        self.distribution_id = distribution_id
        self.user_id = user_id
        super().__init__(
            f"Employee {user_id} is not eligible for distribution {distribution_id}"
        )


class AlreadyClaimedError(ClaimError):
    """Employee already holds a claim on this distribution."""

    code: str = "ALREADY_CLAIMED"

    def __init__(self, distribution_id: UUID, user_id: UUID, claim_id: UUID | None = None):
        self.distribution_id = distribution_id
        self.user_id = user_id
        self.claim_id = claim_id
        super().__init__(
            f"Employee {user_id} already claimed distribution {distribution_id}"
        )


class OutOfStockError(ClaimError):
    """No remaining inventory at reservation time."""

    code: str = "OUT_OF_STOCK"

    def __init__(self, distribution_id: UUID, total_quantity: int):
        self.distribution_id = distribution_id
        self.total_quantity = total_quantity
        super().__init__(
            f"Distribution {distribution_id} is out of stock "
            f"(all {total_quantity} claimed)"
        )


# Invariant violations (fatal, never user-facing)


class InvariantViolationError(GoodiesKernelError):
    """Base exception for broken internal invariants."""

    code: str = "INVARIANT_VIOLATION"


class InventoryInvariantError(InvariantViolationError):
    """
    Inventory counters would leave their legal range.

    Raised when release() finds remaining_count already equal to
    total_quantity, i.e. a release without a matching reserve.
    """

    code: str = "INVENTORY_INVARIANT_VIOLATED"

    def __init__(self, distribution_id: UUID, operation: str, reason: str):
        self.distribution_id = distribution_id
        self.operation = operation
        self.reason = reason
        super().__init__(
            f"Inventory invariant violated on {operation} for distribution "
            f"{distribution_id}: {reason}"
        )

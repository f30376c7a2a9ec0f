"""
Kernel Invariants Contract.

These invariants are structural law for goodies distribution. They are
hardcoded in the inventory accountant, the claim ledger and the database
constraints. No configuration may switch them off.

This module exists solely to declare these invariants explicitly. The
enforcement is distributed across InventoryAccountant, ClaimLedger,
DistributionManager and the CHECK / UNIQUE constraints in models/.
"""

from enum import Enum, unique


@unique
class KernelInvariant(str, Enum):
    """Non-configurable invariants enforced by the kernel."""

    INVENTORY_BALANCE = "inventory_balance"
    """0 <= remaining_count <= total_quantity and
    remaining_count + claimed_count == total_quantity for every
    distribution. Enforced by conditional UPDATEs in InventoryAccountant
    and by CHECK constraints on goodies_distributions."""

    CLAIM_UNIQUENESS = "claim_uniqueness"
    """At most one claim per (distribution, employee). Enforced by
    ClaimLedger and the uq_claim_distribution_user constraint."""

    NO_OVERSELL = "no_oversell"
    """A reservation succeeds only while remaining_count > 0. Enforced by
    the compare-and-decrement UPDATE in InventoryAccountant.reserve."""

    ATOMIC_REVERSAL = "atomic_reversal"
    """Deleting a claim and releasing its unit happen in one transaction.
    Enforced by ClaimLedger.unclaim."""

    CASCADE_DELETE = "cascade_delete"
    """A deleted distribution leaves no claims or targets behind. Enforced
    by DistributionManager.delete and ON DELETE CASCADE."""


ALL_KERNEL_INVARIANTS: frozenset[KernelInvariant] = frozenset(KernelInvariant)

# The kernel package may not import from these packages.
# This is enforced by tests/architecture/test_goodies_kernel_boundary.py.
FORBIDDEN_KERNEL_IMPORTS: tuple[str, ...] = (
    "goodies_ingestion",
    "goodies_config",
    "goodies_services",
)

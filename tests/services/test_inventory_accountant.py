"""
Tests for InventoryAccountant.

Covers:
- Compare-and-decrement reservations, never below zero
- Release refusing to exceed total_quantity
- Counters visible to later reads in the same session
"""

from uuid import uuid4

import pytest

from goodies_kernel.exceptions import (
    DistributionNotFoundError,
    InventoryInvariantError,
    OutOfStockError,
)
from goodies_kernel.invariants import KernelInvariant


class TestReserve:

    def test_reserve_moves_one_unit(self, inventory, create_distribution):
        distribution = create_distribution(total_quantity=3)

        after = inventory.reserve(distribution.id)

        assert after.remaining_count == 2
        assert after.claimed_count == 1
        assert after.total_quantity == 3

    def test_reserve_until_exhausted(self, inventory, create_distribution):
        distribution = create_distribution(total_quantity=2)
        inventory.reserve(distribution.id)
        last = inventory.reserve(distribution.id)
        assert last.is_exhausted

        with pytest.raises(OutOfStockError) as exc_info:
            inventory.reserve(distribution.id)

        assert exc_info.value.code == "OUT_OF_STOCK"
        assert exc_info.value.distribution_id == distribution.id
        assert exc_info.value.total_quantity == 2

    def test_out_of_stock_leaves_counters_alone(self, inventory, manager, create_distribution):
        distribution = create_distribution(total_quantity=1)
        inventory.reserve(distribution.id)

        with pytest.raises(OutOfStockError):
            inventory.reserve(distribution.id)

        current = manager.get(distribution.id)
        assert current.remaining_count == 0
        assert current.claimed_count == 1

    def test_zero_quantity_is_out_of_stock(self, inventory, create_distribution):
        distribution = create_distribution(total_quantity=0)
        with pytest.raises(OutOfStockError):
            inventory.reserve(distribution.id)

    def test_unknown_distribution(self, inventory):
        with pytest.raises(DistributionNotFoundError):
            inventory.reserve(uuid4())

    def test_logs_exhaustion(self, inventory, create_distribution, captured_logs):
        distribution = create_distribution(total_quantity=0)
        with pytest.raises(OutOfStockError):
            inventory.reserve(distribution.id)

        logs = captured_logs()
        assert any(
            r["message"] == "inventory_exhausted"
            and r["distribution_id"] == str(distribution.id)
            for r in logs
        )


class TestRelease:

    def test_release_returns_unit(self, inventory, create_distribution):
        distribution = create_distribution(total_quantity=2)
        inventory.reserve(distribution.id)

        after = inventory.release(distribution.id)

        assert after.remaining_count == 2
        assert after.claimed_count == 0

    def test_release_without_reserve_is_invariant_violation(
        self, inventory, create_distribution, captured_logs
    ):
        distribution = create_distribution(total_quantity=2)

        with pytest.raises(InventoryInvariantError) as exc_info:
            inventory.release(distribution.id)

        assert exc_info.value.operation == "release"
        assert any(
            r["message"] == "inventory_invariant_violation" and r["level"] == "ERROR"
            for r in captured_logs()
        )

    def test_release_unknown_distribution(self, inventory):
        with pytest.raises(DistributionNotFoundError):
            inventory.release(uuid4())


class TestBalance:
    """remaining_count + claimed_count == total_quantity after any sequence."""

    def test_balance_through_mixed_sequence(self, inventory, manager, create_distribution):
        distribution = create_distribution(total_quantity=4)
        for op in ("r", "r", "x", "r", "r", "r", "x", "x"):
            if op == "r":
                try:
                    inventory.reserve(distribution.id)
                except OutOfStockError:
                    pass
            else:
                inventory.release(distribution.id)

            current = manager.get(distribution.id)
            assert 0 <= current.remaining_count <= current.total_quantity
            assert current.remaining_count + current.claimed_count == current.total_quantity

    def test_invariant_is_declared(self):
        assert KernelInvariant.INVENTORY_BALANCE.value == "inventory_balance"

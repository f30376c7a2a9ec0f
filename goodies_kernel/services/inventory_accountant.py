"""
InventoryAccountant -- the only writer of distribution counters.

Responsibility:
    Keeps ``remaining_count = total_quantity - claimed_count`` true at every
    committed state by moving one unit at a time with a conditional UPDATE:

        UPDATE goodies_distributions
           SET remaining_count = remaining_count - 1,
               claimed_count   = claimed_count + 1
         WHERE id = :id AND remaining_count > 0

    The database evaluates the guard and the write as one statement, so two
    callers racing for the last unit cannot both succeed: the loser's
    UPDATE matches zero rows.  No read-modify-write ever happens in Python.

Invariants enforced:
    no_oversell -- reserve() succeeds only while remaining_count > 0.
    inventory_balance -- release() refuses to exceed total_quantity; doing
        so means a release without a matching reserve, a bug in the caller.

Failure modes:
    - OutOfStockError: reserve() found remaining_count == 0.
    - DistributionNotFoundError: no such distribution.
    - InventoryInvariantError: release() with nothing claimed.  Fatal.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select, update

from goodies_kernel.domain.dtos import DistributionInfo
from goodies_kernel.exceptions import (
    DistributionNotFoundError,
    InventoryInvariantError,
    OutOfStockError,
)
from goodies_kernel.logging_config import get_logger
from goodies_kernel.models.distribution import Distribution
from goodies_kernel.services.base import BaseService

logger = get_logger("services.inventory_accountant")


class InventoryAccountant(BaseService[Distribution]):
    """Atomic reserve/release of single inventory units."""

    def reserve(self, distribution_id: UUID) -> DistributionInfo:
        """
        Take one unit from a distribution.

        Returns:
            The distribution with its post-reservation counters.

        Raises:
            OutOfStockError: remaining_count was zero.
            DistributionNotFoundError: distribution doesn't exist.
        """
        stmt = (
            update(Distribution)
            .where(
                Distribution.id == distribution_id,
                Distribution.remaining_count > 0,
            )
            .values(
                remaining_count=Distribution.remaining_count - 1,
                claimed_count=Distribution.claimed_count + 1,
            )
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        distribution = self._reload(distribution_id)

        if result.rowcount != 1:
            if distribution is None:
                raise DistributionNotFoundError(str(distribution_id))
            logger.info(
                "inventory_exhausted",
                extra={
                    "distribution_id": str(distribution_id),
                    "total_quantity": distribution.total_quantity,
                },
            )
            raise OutOfStockError(distribution_id, distribution.total_quantity)

        logger.debug(
            "inventory_reserved",
            extra={
                "distribution_id": str(distribution_id),
                "remaining_count": distribution.remaining_count,
            },
        )
        return DistributionInfo.from_model(distribution)

    def release(self, distribution_id: UUID) -> DistributionInfo:
        """
        Return one unit to a distribution.

        Raises:
            InventoryInvariantError: nothing was claimed (release without
                a prior reserve).
            DistributionNotFoundError: distribution doesn't exist.
        """
        stmt = (
            update(Distribution)
            .where(
                Distribution.id == distribution_id,
                Distribution.remaining_count < Distribution.total_quantity,
            )
            .values(
                remaining_count=Distribution.remaining_count + 1,
                claimed_count=Distribution.claimed_count - 1,
            )
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        distribution = self._reload(distribution_id)

        if result.rowcount != 1:
            if distribution is None:
                raise DistributionNotFoundError(str(distribution_id))
            error = InventoryInvariantError(
                distribution_id,
                "release",
                f"remaining_count already equals total_quantity "
                f"({distribution.total_quantity})",
            )
            logger.error(
                "inventory_invariant_violation",
                extra={"distribution_id": str(distribution_id)},
                exc_info=error,
            )
            raise error

        logger.debug(
            "inventory_released",
            extra={
                "distribution_id": str(distribution_id),
                "remaining_count": distribution.remaining_count,
            },
        )
        return DistributionInfo.from_model(distribution)

    def _reload(self, distribution_id: UUID) -> Distribution | None:
        # populate_existing: the UPDATE above bypassed the identity map.
        return self.session.execute(
            select(Distribution)
            .where(Distribution.id == distribution_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

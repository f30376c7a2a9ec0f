"""
ClaimLedger -- the only writer of ClaimRecord.

Responsibility:
    Records one claim per (distribution, employee) and reverses claims.
    Self-service, admin-marked and bulk-import claims all go through
    ``claim()``; only the ``via`` tag and the acting user differ.

Claim sequence (one atomic unit):
    1. Lock the distribution row (SELECT ... FOR UPDATE).  A concurrent
       delete either finished first (-> DistributionNotFoundError) or waits
       for this claim to commit.
    2. Eligibility check against the current office roster.
    3. Duplicate check.
    4. SAVEPOINT: reserve one unit, insert the ClaimRecord.  If the insert
       loses a race on uq_claim_distribution_user, the savepoint rollback
       undoes the reservation too.

Invariants enforced:
    claim_uniqueness -- duplicate check plus the unique constraint.
    atomic_reversal -- unclaim() deletes and releases inside one savepoint.

Failure modes:
    - DistributionNotFoundError, NotEligibleError, AlreadyClaimedError,
      OutOfStockError from claim().
    - ClaimNotFoundError from unclaim().
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from goodies_kernel.domain.clock import Clock, SystemClock
from goodies_kernel.domain.dtos import ClaimInfo, ClaimVia, DistributionInfo
from goodies_kernel.domain.eligibility import resolve_eligible
from goodies_kernel.exceptions import (
    AlreadyClaimedError,
    ClaimNotFoundError,
    DistributionNotFoundError,
    NotEligibleError,
    OutOfStockError,
)
from goodies_kernel.logging_config import LogContext, get_logger
from goodies_kernel.models.claim import ClaimRecord
from goodies_kernel.models.distribution import Distribution
from goodies_kernel.services.base import BaseService
from goodies_kernel.services.directory_service import DirectoryService
from goodies_kernel.services.inventory_accountant import InventoryAccountant

logger = get_logger("services.claim_ledger")


class ClaimLedger(BaseService[ClaimRecord]):
    """
    Claim and unclaim goodies.

    All public methods return ClaimInfo DTOs, not ORM entities.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        directory: DirectoryService | None = None,
        inventory: InventoryAccountant | None = None,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._directory = directory or DirectoryService(session)
        self._inventory = inventory or InventoryAccountant(session)

    def claim(
        self,
        distribution_id: UUID,
        user_id: UUID,
        via: ClaimVia | str,
        actor_id: UUID,
    ) -> ClaimInfo:
        """
        Record that user_id received one unit of distribution_id.

        Args:
            distribution_id: Distribution to claim from.
            user_id: Employee receiving the unit.
            via: self_service, admin_marked or bulk_import.
            actor_id: Who performed the call (the employee for self-service).

        Returns:
            The new claim.

        Raises:
            DistributionNotFoundError: distribution doesn't exist.
            NotEligibleError: user_id is outside the eligible set.
            AlreadyClaimedError: user_id already holds a claim.
            OutOfStockError: nothing left to reserve.
        """
        via = ClaimVia(via)
        with LogContext.bind(
            distribution_id=str(distribution_id),
            actor_id=str(actor_id),
        ):
            distribution = self._lock_distribution(distribution_id)

            roster = self._directory.office_roster(distribution.office_id, [user_id])
            eligible = resolve_eligible(DistributionInfo.from_model(distribution), roster)
            if user_id not in eligible:
                logger.info(
                    "claim_rejected",
                    extra={"user_id": str(user_id), "reason": NotEligibleError.code},
                )
                raise NotEligibleError(distribution_id, user_id)

            existing = self._find(distribution_id, user_id)
            if existing is not None:
                logger.info(
                    "claim_rejected",
                    extra={"user_id": str(user_id), "reason": AlreadyClaimedError.code},
                )
                raise AlreadyClaimedError(distribution_id, user_id, claim_id=existing.id)

            try:
                with self.session.begin_nested():
                    self._inventory.reserve(distribution_id)
                    record = ClaimRecord(
                        distribution_id=distribution_id,
                        user_id=user_id,
                        received_at=self._clock.now(),
                        via=via.value,
                        received_at_office_id=distribution.office_id,
                        handed_over_by_id=actor_id,
                        created_by_id=actor_id,
                    )
                    self.session.add(record)
                    self.session.flush()
            except OutOfStockError:
                logger.info(
                    "claim_rejected",
                    extra={"user_id": str(user_id), "reason": OutOfStockError.code},
                )
                raise
            except IntegrityError:
                # Lost the race on uq_claim_distribution_user; the savepoint
                # rollback already returned the reserved unit.
                winner = self._find(distribution_id, user_id)
                logger.info(
                    "claim_rejected",
                    extra={
                        "user_id": str(user_id),
                        "reason": AlreadyClaimedError.code,
                        "race": True,
                    },
                )
                raise AlreadyClaimedError(
                    distribution_id,
                    user_id,
                    claim_id=winner.id if winner is not None else None,
                ) from None

            logger.info(
                "claim_recorded",
                extra={
                    "claim_id": str(record.id),
                    "user_id": str(user_id),
                    "via": via.value,
                },
            )
            return ClaimInfo.from_model(record)

    def unclaim(self, claim_id: UUID, actor_id: UUID) -> ClaimInfo:
        """
        Reverse a claim and return its unit to the distribution.

        The claim row is deleted and the unit released in one savepoint;
        either both happen or neither does.

        Returns:
            The claim as it was before deletion.

        Raises:
            ClaimNotFoundError: claim doesn't exist (or was already reversed).
        """
        record = self.session.get(ClaimRecord, claim_id)
        if record is None:
            raise ClaimNotFoundError(str(claim_id))
        distribution_id = record.distribution_id

        with LogContext.bind(
            distribution_id=str(distribution_id),
            actor_id=str(actor_id),
        ):
            # Lock order matches claim() and delete(): distribution, then claim.
            try:
                self._lock_distribution(distribution_id)
            except DistributionNotFoundError:
                raise ClaimNotFoundError(str(claim_id)) from None

            record = self.session.execute(
                select(ClaimRecord)
                .where(ClaimRecord.id == claim_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            ).scalar_one_or_none()
            if record is None:
                raise ClaimNotFoundError(str(claim_id))

            info = ClaimInfo.from_model(record)
            with self.session.begin_nested():
                self.session.delete(record)
                self.session.flush()
                self._inventory.release(distribution_id)

            logger.info(
                "claim_reversed",
                extra={"claim_id": str(claim_id), "user_id": str(info.user_id)},
            )
            return info

    def list_claims(self, distribution_id: UUID) -> list[ClaimInfo]:
        """
        Claims of one distribution, oldest first.

        Raises:
            DistributionNotFoundError: distribution doesn't exist.
        """
        if self.session.get(Distribution, distribution_id) is None:
            raise DistributionNotFoundError(str(distribution_id))

        rows = self.session.execute(
            select(ClaimRecord)
            .where(ClaimRecord.distribution_id == distribution_id)
            .order_by(ClaimRecord.received_at, ClaimRecord.id)
        ).scalars()
        return [ClaimInfo.from_model(r) for r in rows]

    def has_claimed(self, distribution_id: UUID, user_id: UUID) -> bool:
        return self._find(distribution_id, user_id) is not None

    def _find(self, distribution_id: UUID, user_id: UUID) -> ClaimRecord | None:
        return self.session.execute(
            select(ClaimRecord).where(
                ClaimRecord.distribution_id == distribution_id,
                ClaimRecord.user_id == user_id,
            )
        ).scalar_one_or_none()

    def _lock_distribution(self, distribution_id: UUID) -> Distribution:
        distribution = self.session.execute(
            select(Distribution)
            .where(Distribution.id == distribution_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if distribution is None:
            raise DistributionNotFoundError(str(distribution_id))
        return distribution

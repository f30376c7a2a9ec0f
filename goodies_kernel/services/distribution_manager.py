"""
DistributionManager -- create, identify-or-create, list and delete
distributions.

Responsibility:
    Validates creation parameters against the directory and persists new
    distributions with ``claimed_count = 0`` and
    ``remaining_count = total_quantity``.  Deletion removes the distribution
    together with every claim and target in one savepoint.

Identify-or-create:
    ``find_or_create(goodies_type, distribution_date, office_id, ...)``
    reuses the oldest distribution with exactly that (type, date, office)
    tuple, and otherwise creates one for all employees with the requested
    quantity.  An existing distribution is never resized.  Creation is
    serialized per office by locking the office row, so two concurrent
    imports for the same tuple end up sharing one distribution.

Invariants enforced:
    cascade_delete -- delete() leaves no claims or targets behind and runs
        under the distribution row lock, so an in-flight claim either
        committed before the delete or fails with DistributionNotFoundError.

Failure modes:
    - DistributionValidationError on malformed parameters.
    - OfficeNotFoundError when the office doesn't exist.
    - DistributionNotFoundError on get()/delete() of an unknown id.
"""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from goodies_kernel.domain.dtos import DistributionInfo, DistributionParams
from goodies_kernel.exceptions import (
    DistributionNotFoundError,
    DistributionValidationError,
    OfficeNotFoundError,
)
from goodies_kernel.logging_config import LogContext, get_logger
from goodies_kernel.models.claim import ClaimRecord
from goodies_kernel.models.distribution import Distribution, DistributionTarget
from goodies_kernel.models.office import Office
from goodies_kernel.services.base import BaseService
from goodies_kernel.services.directory_service import DirectoryService

logger = get_logger("services.distribution_manager")

GOODIES_TYPE_MIN_LENGTH = 2
GOODIES_TYPE_MAX_LENGTH = 100


def normalize_goodies_type(value: object) -> str:
    """Strip and length-check a goodies type label."""
    if not isinstance(value, str):
        raise DistributionValidationError(
            "goodies type must be a string", field="goodies_type"
        )
    text = value.strip()
    if not GOODIES_TYPE_MIN_LENGTH <= len(text) <= GOODIES_TYPE_MAX_LENGTH:
        raise DistributionValidationError(
            f"goodies type must be between {GOODIES_TYPE_MIN_LENGTH} and "
            f"{GOODIES_TYPE_MAX_LENGTH} characters",
            field="goodies_type",
        )
    return text


def validate_quantity(value: object) -> int:
    # bool is an int subclass; True is not a quantity.
    if isinstance(value, bool) or not isinstance(value, int):
        raise DistributionValidationError(
            "total quantity must be an integer", field="total_quantity"
        )
    if value < 0:
        raise DistributionValidationError(
            "total quantity cannot be negative",
            field="total_quantity",
            details={"total_quantity": value},
        )
    return value


def _validate_date(value: object) -> date:
    if isinstance(value, datetime):
        return value.date()
    if not isinstance(value, date):
        raise DistributionValidationError(
            "distribution date must be a date", field="distribution_date"
        )
    return value


def _dedupe(ids: tuple[UUID, ...] | list[UUID]) -> list[UUID]:
    seen: set[UUID] = set()
    out: list[UUID] = []
    for i in ids:
        if i not in seen:
            seen.add(i)
            out.append(i)
    return out


class DistributionManager(BaseService[Distribution]):
    """
    Lifecycle of distributions.

    All public methods return DistributionInfo DTOs.
    """

    def __init__(self, session: Session, directory: DirectoryService | None = None):
        super().__init__(session)
        self._directory = directory or DirectoryService(session)

    def create(self, params: DistributionParams, actor_id: UUID) -> DistributionInfo:
        """
        Create a distribution.

        Args:
            params: Creation parameters.
            actor_id: Creator, recorded as distributed_by_id.

        Returns:
            The new distribution, with remaining_count == total_quantity.

        Raises:
            DistributionValidationError: bad type label, quantity, date, or
                targets (empty, or not active recipients of the office).
            OfficeNotFoundError: office doesn't exist.
        """
        goodies_type = normalize_goodies_type(params.goodies_type)
        total_quantity = validate_quantity(params.total_quantity)
        distribution_date = _validate_date(params.distribution_date)
        office = self._directory.get_office(params.office_id)

        targets: list[UUID] = []
        if not params.is_for_all_employees:
            targets = _dedupe(params.target_employee_ids)
            if not targets:
                raise DistributionValidationError(
                    "target employees are required when the distribution "
                    "is not for all employees",
                    field="target_employees",
                )
            roster_ids = {
                e.id for e in self._directory.office_roster(office.id, targets)
            }
            invalid = [t for t in targets if t not in roster_ids]
            if invalid:
                raise DistributionValidationError(
                    "some target employees are not active employees of the office",
                    field="target_employees",
                    details={"invalid_employee_ids": [str(i) for i in invalid]},
                )

        distribution = Distribution(
            goodies_type=goodies_type,
            office_id=office.id,
            distribution_date=distribution_date,
            total_quantity=total_quantity,
            claimed_count=0,
            remaining_count=total_quantity,
            is_for_all_employees=params.is_for_all_employees,
            distributed_by_id=actor_id,
            created_by_id=actor_id,
            targets=[
                DistributionTarget(employee_id=employee_id, position=position)
                for position, employee_id in enumerate(targets)
            ],
        )
        self.session.add(distribution)
        self.session.flush()

        logger.info(
            "distribution_created",
            extra={
                "distribution_id": str(distribution.id),
                "office_id": str(office.id),
                "goodies_type": goodies_type,
                "total_quantity": total_quantity,
                "target_count": len(targets),
            },
        )
        return DistributionInfo.from_model(distribution)

    def find_or_create(
        self,
        goodies_type: str,
        distribution_date: date,
        office_id: UUID,
        quantity: int,
        actor_id: UUID,
    ) -> tuple[DistributionInfo, bool]:
        """
        Identify the distribution for (goodies_type, date, office), creating
        it when absent.

        Returns:
            (distribution, created).  created is False when an existing
            distribution was reused; its quantity is left untouched.

        Raises:
            DistributionValidationError: bad label, quantity or date.
            OfficeNotFoundError: office doesn't exist.
        """
        goodies_type = normalize_goodies_type(goodies_type)
        distribution_date = _validate_date(distribution_date)
        validate_quantity(quantity)

        office = self.session.execute(
            select(Office).where(Office.id == office_id).with_for_update()
        ).scalar_one_or_none()
        if office is None:
            raise OfficeNotFoundError(str(office_id))

        existing = self.session.execute(
            select(Distribution)
            .where(
                Distribution.office_id == office_id,
                Distribution.goodies_type == goodies_type,
                Distribution.distribution_date == distribution_date,
            )
            .order_by(Distribution.created_at, Distribution.id)
            .limit(1)
        ).scalar_one_or_none()

        if existing is not None:
            logger.info(
                "distribution_reused",
                extra={
                    "distribution_id": str(existing.id),
                    "requested_quantity": quantity,
                    "total_quantity": existing.total_quantity,
                },
            )
            return DistributionInfo.from_model(existing), False

        info = self.create(
            DistributionParams(
                goodies_type=goodies_type,
                total_quantity=quantity,
                office_id=office_id,
                distribution_date=distribution_date,
                is_for_all_employees=True,
            ),
            actor_id,
        )
        return info, True

    def get(self, distribution_id: UUID) -> DistributionInfo:
        """
        Raises:
            DistributionNotFoundError: distribution doesn't exist.
        """
        distribution = self.session.get(
            Distribution, distribution_id, populate_existing=True
        )
        if distribution is None:
            raise DistributionNotFoundError(str(distribution_id))
        return DistributionInfo.from_model(distribution)

    def list_distributions(self, office_id: UUID | None = None) -> list[DistributionInfo]:
        """All distributions, newest date first, optionally for one office."""
        stmt = select(Distribution)
        if office_id is not None:
            stmt = stmt.where(Distribution.office_id == office_id)
        stmt = stmt.order_by(
            Distribution.distribution_date.desc(),
            Distribution.created_at.desc(),
        )
        return [DistributionInfo.from_model(d) for d in self.session.execute(stmt).scalars()]

    def delete(self, distribution_id: UUID, actor_id: UUID) -> int:
        """
        Delete a distribution with all its claims and targets.

        Returns:
            Number of claim records removed.

        Raises:
            DistributionNotFoundError: distribution doesn't exist.
        """
        with LogContext.bind(
            distribution_id=str(distribution_id),
            actor_id=str(actor_id),
        ):
            locked = self.session.execute(
                select(Distribution.id)
                .where(Distribution.id == distribution_id)
                .with_for_update()
            ).scalar_one_or_none()
            if locked is None:
                raise DistributionNotFoundError(str(distribution_id))

            with self.session.begin_nested():
                claims_removed = self.session.execute(
                    delete(ClaimRecord).where(
                        ClaimRecord.distribution_id == distribution_id
                    )
                ).rowcount
                self.session.execute(
                    delete(DistributionTarget).where(
                        DistributionTarget.distribution_id == distribution_id
                    )
                )
                self.session.execute(
                    delete(Distribution).where(Distribution.id == distribution_id)
                )

            logger.info(
                "distribution_deleted",
                extra={"claims_removed": claims_removed},
            )
            return claims_removed

"""
Module: goodies_kernel.models.distribution
Responsibility: ORM persistence for goodies distributions and their explicit
    target lists.
Architecture position: Kernel > Models.  May import from db/base.py only.
    MUST NOT import from services/, selectors/, domain/, or outer layers.

Invariants enforced:
    inventory_balance -- 0 <= remaining_count <= total_quantity and
        claimed_count + remaining_count == total_quantity.  Enforced in the
        database by CHECK constraints as a backstop for the conditional
        UPDATEs issued by InventoryAccountant.
    Immutability -- only claimed_count and remaining_count change after
        creation.  No service writes any other column.

Failure modes:
    - IntegrityError when a write would break a CHECK constraint.
    - IntegrityError on a duplicate (distribution_id, employee_id) target.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from goodies_kernel.db.base import Base, TrackedBase, UUIDString


class Distribution(TrackedBase):
    """
    A finite batch of one goodies type offered to one office on one date.

    Contract:
        total_quantity is fixed at creation.  claimed_count and
        remaining_count move in lockstep, one unit at a time, through
        InventoryAccountant only.

    Guarantees:
        - The inventory balance holds at every committed state (CHECKs).
        - targets is meaningful only when is_for_all_employees is False.

    Non-goals:
        - Eligibility is not stored here; it is computed on demand from the
          office roster.
    """

    __tablename__ = "goodies_distributions"

    __table_args__ = (
        CheckConstraint("total_quantity >= 0", name="ck_distribution_total_nonneg"),
        CheckConstraint("remaining_count >= 0", name="ck_distribution_remaining_nonneg"),
        CheckConstraint(
            "remaining_count <= total_quantity",
            name="ck_distribution_remaining_le_total",
        ),
        CheckConstraint(
            "claimed_count + remaining_count = total_quantity",
            name="ck_distribution_balance",
        ),
        Index("idx_distribution_office_date", "office_id", "distribution_date"),
        Index(
            "idx_distribution_identity",
            "office_id", "goodies_type", "distribution_date",
        ),
    )

    goodies_type: Mapped[str] = mapped_column(String(100), nullable=False)

    office_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("offices.id"),
        nullable=False,
    )

    distribution_date: Mapped[date] = mapped_column(Date, nullable=False)

    # Inventory counters
    total_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    claimed_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    remaining_count: Mapped[int] = mapped_column(Integer, nullable=False)

    # Targeting mode
    is_for_all_employees: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )

    distributed_by_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    targets: Mapped[list["DistributionTarget"]] = relationship(
        back_populates="distribution",
        order_by="DistributionTarget.position",
        passive_deletes=True,
        lazy="selectin",
    )

    @property
    def target_employee_ids(self) -> tuple[UUID, ...]:
        return tuple(t.employee_id for t in self.targets)

    def __repr__(self) -> str:
        return (
            f"<Distribution {self.goodies_type!r} office={self.office_id} "
            f"date={self.distribution_date} {self.remaining_count}/{self.total_quantity}>"
        )


class DistributionTarget(Base):
    """
    One explicitly targeted employee of a distribution.

    Rows exist only for distributions created with
    is_for_all_employees = False.  position keeps the order the targets
    were supplied in.
    """

    __tablename__ = "goodies_distribution_targets"

    __table_args__ = (
        UniqueConstraint(
            "distribution_id", "employee_id",
            name="uq_distribution_target_employee",
        ),
    )

    distribution_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("goodies_distributions.id", ondelete="CASCADE"),
        nullable=False,
    )

    employee_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    distribution: Mapped["Distribution"] = relationship(back_populates="targets")

    def __repr__(self) -> str:
        return f"<DistributionTarget {self.distribution_id} -> {self.employee_id}>"

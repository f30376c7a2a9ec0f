"""
Module: goodies_kernel.models.claim
Responsibility: ORM persistence for claim records, the ledger of who took
    which unit of which distribution, when, and via which path.
Architecture position: Kernel > Models.  May import from db/base.py only.
    MUST NOT import from services/, selectors/, domain/, or outer layers.

Invariants enforced:
    claim_uniqueness -- at most one ClaimRecord per (distribution_id, user_id)
        (uq_claim_distribution_user).  The constraint turns a lost race
        between two identical claims into an IntegrityError.
    cascade_delete -- claims vanish with their distribution
        (ON DELETE CASCADE backstop, explicit delete in the service).

Failure modes:
    - IntegrityError on duplicate (distribution_id, user_id).
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from goodies_kernel.db.base import TrackedBase, UUIDString


class ClaimRecord(TrackedBase):
    """
    One unit of a distribution handed to one employee.

    Contract:
        Written only by ClaimLedger.  Never updated; reversal deletes the
        row and releases the unit in the same transaction.

    Guarantees:
        - via is one of self_service, admin_marked, bulk_import.
        - handed_over_by_id is the acting user (the employee themself for
          self-service claims).
        - received_at_office_id is the distribution's office at claim time.
    """

    __tablename__ = "goodies_claims"

    __table_args__ = (
        UniqueConstraint("distribution_id", "user_id", name="uq_claim_distribution_user"),
        Index("idx_claim_user", "user_id"),
        Index("idx_claim_office_received", "received_at_office_id", "received_at"),
    )

    distribution_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("goodies_distributions.id", ondelete="CASCADE"),
        nullable=False,
    )

    user_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    received_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    via: Mapped[str] = mapped_column(String(20), nullable=False)

    received_at_office_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    handed_over_by_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    def __repr__(self) -> str:
        return f"<ClaimRecord {self.distribution_id} user={self.user_id} via={self.via}>"

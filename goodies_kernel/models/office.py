"""
Module: goodies_kernel.models.office
Responsibility: Read model of the Office registry.  Offices own
    distributions; a distribution belongs to exactly one office.
Architecture position: Kernel > Models.  May import from db/base.py only.
    MUST NOT import from services/, selectors/, domain/, or outer layers.

Failure modes:
    - IntegrityError on duplicate office_code (uq_office_code constraint).
"""

from sqlalchemy import Boolean, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from goodies_kernel.db.base import Base


class Office(Base):
    """
    An office known to the external Office registry.

    Guarantees:
        - office_code is globally unique (e.g. ``OFFICE001``), the business
          key spreadsheets use in their ``office_id`` column.
    """

    __tablename__ = "offices"

    __table_args__ = (
        UniqueConstraint("office_code", name="uq_office_code"),
    )

    office_code: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<Office {self.office_code}: {self.name}>"

"""
Module: goodies_kernel.models.employee
Responsibility: Read model of the Employee Directory.  The engine never
    writes employees; it reads role, status and office membership to compute
    eligibility and to resolve spreadsheet references.
Architecture position: Kernel > Models.  May import from db/base.py only.
    MUST NOT import from services/, selectors/, domain/, or outer layers.

Failure modes:
    - IntegrityError on duplicate employee_code (uq_employee_code constraint).
"""

from uuid import UUID

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from goodies_kernel.db.base import Base, UUIDString


class Employee(Base):
    """
    A person in the Employee Directory.

    Contract:
        role is one of super_admin, admin, internal, external.  Only
        internal and external employees can ever receive goodies.
        status is one of pending, active, inactive.

    Guarantees:
        - employee_code is globally unique (e.g. ``EMP001``).
        - primary_office_id is the office whose roster the employee is on.
          Admins usually have none and administer assigned_office_id instead.
    """

    __tablename__ = "employees"

    __table_args__ = (
        UniqueConstraint("employee_code", name="uq_employee_code"),
        Index("idx_employee_primary_office", "primary_office_id", "status"),
    )

    employee_code: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")

    primary_office_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("offices.id"),
        nullable=True,
    )

    assigned_office_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("offices.id"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Employee {self.employee_code}: {self.name} ({self.role}/{self.status})>"

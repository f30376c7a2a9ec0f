"""
BaseService -- abstract base for all kernel services.

Responsibility:
    Common constructor and session-handling contract.  Services receive a
    SQLAlchemy ``Session`` and use ``session.flush()`` -- never
    ``session.commit()``.

Architecture position:
    Kernel > Services -- imperative shell.

Invariants enforced:
    Transaction boundaries: services flush within the caller's transaction
    and never commit or rollback themselves.  Multi-statement units that
    must stay atomic even when the caller catches the error (claim,
    unclaim, delete) run inside ``session.begin_nested()``.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from goodies_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for all kernel services.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
        - Read-only listings belong in ``goodies_kernel/selectors/``.
    """

    def __init__(self, session: Session):
        self.session = session

"""
ClaimSelector -- read-side listing of claim records ("received goodies").
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from uuid import UUID

from sqlalchemy import select

from goodies_kernel.domain.dtos import ClaimInfo
from goodies_kernel.exceptions import ClaimNotFoundError
from goodies_kernel.models.claim import ClaimRecord
from goodies_kernel.selectors.base import BaseSelector


def _day_start(d: date) -> datetime:
    return datetime.combine(d, time.min, tzinfo=timezone.utc)


class ClaimSelector(BaseSelector[ClaimRecord]):
    """Read-only claim queries."""

    def get(self, claim_id: UUID) -> ClaimInfo:
        record = self.session.get(ClaimRecord, claim_id)
        if record is None:
            raise ClaimNotFoundError(str(claim_id))
        return ClaimInfo.from_model(record)

    def list_claims(
        self,
        distribution_id: UUID | None = None,
        user_id: UUID | None = None,
        office_id: UUID | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[ClaimInfo]:
        """
        Claims ordered by received_at descending.

        start_date and end_date are inclusive calendar days (UTC).
        office_id filters on the office the item was received at.
        """
        stmt = select(ClaimRecord)
        if distribution_id is not None:
            stmt = stmt.where(ClaimRecord.distribution_id == distribution_id)
        if user_id is not None:
            stmt = stmt.where(ClaimRecord.user_id == user_id)
        if office_id is not None:
            stmt = stmt.where(ClaimRecord.received_at_office_id == office_id)
        if start_date is not None:
            stmt = stmt.where(ClaimRecord.received_at >= _day_start(start_date))
        if end_date is not None:
            stmt = stmt.where(
                ClaimRecord.received_at < _day_start(end_date + timedelta(days=1))
            )

        stmt = stmt.order_by(ClaimRecord.received_at.desc(), ClaimRecord.id)
        return [ClaimInfo.from_model(r) for r in self.session.execute(stmt).scalars()]

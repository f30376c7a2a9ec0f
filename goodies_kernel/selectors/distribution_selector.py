"""
DistributionSelector -- read-side listing of distributions.

Filtering mirrors what the admin screens offer: office, date range and a
case-insensitive search on the goodies type.  ``claimed_distribution_ids``
backs the per-viewer "already received" flag.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from uuid import UUID

from sqlalchemy import ColumnElement, func, select

from goodies_kernel.domain.dtos import DistributionInfo
from goodies_kernel.exceptions import DistributionNotFoundError
from goodies_kernel.models.claim import ClaimRecord
from goodies_kernel.models.distribution import Distribution
from goodies_kernel.selectors.base import BaseSelector


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _filters(
    office_id: UUID | None,
    start_date: date | None,
    end_date: date | None,
    search: str | None,
) -> list[ColumnElement[bool]]:
    conditions: list[ColumnElement[bool]] = []
    if office_id is not None:
        conditions.append(Distribution.office_id == office_id)
    if start_date is not None:
        conditions.append(Distribution.distribution_date >= start_date)
    if end_date is not None:
        conditions.append(Distribution.distribution_date <= end_date)
    if search:
        pattern = f"%{_escape_like(search.strip().lower())}%"
        conditions.append(
            func.lower(Distribution.goodies_type).like(pattern, escape="\\")
        )
    return conditions


class DistributionSelector(BaseSelector[Distribution]):
    """Read-only distribution queries."""

    def get(self, distribution_id: UUID) -> DistributionInfo:
        distribution = self.session.get(Distribution, distribution_id)
        if distribution is None:
            raise DistributionNotFoundError(str(distribution_id))
        return DistributionInfo.from_model(distribution)

    def list_distributions(
        self,
        office_id: UUID | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        search: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[DistributionInfo]:
        """
        Distributions ordered by distribution_date descending.

        Args:
            office_id: Restrict to one office.
            start_date: Inclusive lower bound on distribution_date.
            end_date: Inclusive upper bound on distribution_date.
            search: Case-insensitive substring of goodies_type.
            limit: Page size; None for everything.
            offset: Rows to skip.
        """
        stmt = select(Distribution).where(
            *_filters(office_id, start_date, end_date, search)
        ).order_by(
            Distribution.distribution_date.desc(),
            Distribution.created_at.desc(),
            Distribution.id,
        )
        if offset:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)

        return [DistributionInfo.from_model(d) for d in self.session.execute(stmt).scalars()]

    def count_distributions(
        self,
        office_id: UUID | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        search: str | None = None,
    ) -> int:
        """Total matching list_distributions with the same filters, unpaged."""
        stmt = select(func.count(Distribution.id)).where(
            *_filters(office_id, start_date, end_date, search)
        )
        return self.session.execute(stmt).scalar_one()

    def claimed_distribution_ids(
        self,
        user_id: UUID,
        distribution_ids: Iterable[UUID],
    ) -> frozenset[UUID]:
        """Subset of distribution_ids the user holds a claim on."""
        ids = set(distribution_ids)
        if not ids:
            return frozenset()
        rows = self.session.execute(
            select(ClaimRecord.distribution_id).where(
                ClaimRecord.user_id == user_id,
                ClaimRecord.distribution_id.in_(ids),
            )
        ).scalars()
        return frozenset(rows)

"""
GoodiesService -- the API surface of the goodies engine.

Responsibility:
    One method per API operation.  Each method parses a request, calls the
    kernel, and returns an ``ApiResponse`` whose body is a camelCase
    payload.  User-facing engine errors become error responses with an
    HTTP-like status; invariant violations and infrastructure errors
    propagate.

Transactions:
    With ``auto_commit=True`` every successful operation commits and every
    failed one rolls back.  With ``auto_commit=False`` the caller owns the
    transaction (tests, or a web framework's unit of work).

Authorization is not checked here.  The actor passed in is trusted; it
only scopes which office a non-super-admin sees and acts on.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, TypeVar
from uuid import UUID

from sqlalchemy.orm import Session

from goodies_config.schema import BulkImportSettings
from goodies_ingestion.domain.types import BulkImportContext
from goodies_ingestion.services.bulk_import_service import BulkImportService
from goodies_kernel.domain.clock import Clock, SystemClock
from goodies_kernel.domain.dtos import (
    Actor,
    ClaimVia,
    DistributionParams,
)
from goodies_kernel.domain.eligibility import resolve_eligible
from goodies_kernel.exceptions import (
    ClaimNotFoundError,
    DistributionValidationError,
    GoodiesKernelError,
    InvariantViolationError,
)
from goodies_kernel.logging_config import LogContext, get_logger
from goodies_kernel.selectors.claim_selector import ClaimSelector
from goodies_kernel.selectors.distribution_selector import DistributionSelector
from goodies_kernel.services.claim_ledger import ClaimLedger
from goodies_kernel.services.directory_service import DirectoryService
from goodies_kernel.services.distribution_manager import DistributionManager
from goodies_services.serialization import (
    HTTP_CREATED,
    HTTP_OK,
    claim_payload,
    distribution_payload,
    employee_payload,
    error_payload,
    status_for,
)

logger = get_logger("services.goodies")

T = TypeVar("T")


@dataclass(frozen=True)
class ApiResponse:
    status: int
    body: Any
    meta: dict[str, Any] | None = None

    @property
    def ok(self) -> bool:
        return self.status < 400


def _parse_uuid(value: Any, field: str) -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value).strip())
    except (TypeError, ValueError):
        raise DistributionValidationError(
            f"{field} must be a valid id", field=field
        ) from None


def _parse_date(value: Any, field: str) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        raise DistributionValidationError(
            f"{field} must be an ISO date (YYYY-MM-DD)", field=field
        ) from None


def _require(request: Mapping[str, Any], field: str) -> Any:
    value = request.get(field)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise DistributionValidationError(f"{field} is required", field=field)
    return value


@dataclass(frozen=True)
class _Page:
    """A page of items plus the unpaged total, returned as response meta."""

    items: list[dict[str, Any]]
    total: int
    limit: int | None
    offset: int


class GoodiesService:
    """Facade over the kernel for the goodies API operations."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        auto_commit: bool = False,
        bulk_settings: BulkImportSettings | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._auto_commit = auto_commit
        self._bulk_settings = bulk_settings or BulkImportSettings()

        self._directory = DirectoryService(session)
        self._manager = DistributionManager(session, directory=self._directory)
        self._ledger = ClaimLedger(session, self._clock, directory=self._directory)
        self._distributions = DistributionSelector(session)
        self._claims = ClaimSelector(session)

    # -------------------------------------------------------------------------
    # Distributions
    # -------------------------------------------------------------------------

    def create_distribution(self, request: Mapping[str, Any], actor: Actor) -> ApiResponse:
        """
        Request: {goodiesType, totalQuantity, officeId, distributionDate,
        isForAllEmployees, targetEmployees?}.  officeId defaults to the
        actor's office.
        """

        def op() -> dict[str, Any]:
            office_ref = request.get("officeId") or actor.office_id
            if office_ref is None:
                raise DistributionValidationError("officeId is required", field="officeId")
            office = self._directory.resolve_office(office_ref)

            is_for_all = request.get("isForAllEmployees", True)
            if not isinstance(is_for_all, bool):
                raise DistributionValidationError(
                    "isForAllEmployees must be a boolean", field="isForAllEmployees"
                )
            raw_targets = request.get("targetEmployees") or []
            if isinstance(raw_targets, (str, bytes)) or not isinstance(raw_targets, Iterable):
                raise DistributionValidationError(
                    "targetEmployees must be a list", field="targetEmployees"
                )
            targets = tuple(_parse_uuid(t, "targetEmployees") for t in raw_targets)

            params = DistributionParams(
                goodies_type=_require(request, "goodiesType"),
                total_quantity=_require(request, "totalQuantity"),
                office_id=office.id,
                distribution_date=_parse_date(
                    _require(request, "distributionDate"), "distributionDate"
                ),
                is_for_all_employees=is_for_all,
                target_employee_ids=targets,
            )
            info = self._manager.create(params, actor.actor_id)
            return distribution_payload(info.with_office(office))

        return self._run("create_distribution", actor, op, success_status=HTTP_CREATED)

    def list_distributions(
        self,
        actor: Actor,
        office_id: UUID | str | None = None,
        start_date: date | str | None = None,
        end_date: date | str | None = None,
        search: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> ApiResponse:
        """
        Distributions visible to the actor, newest first, each flagged with
        ``isReceived`` for the actor.  A non-super-admin only sees their own
        office.

        The body is the requested page; ``meta`` carries
        {total, limit, offset} where total ignores paging.
        """

        def op() -> _Page:
            filters = {
                "office_id": self._office_scope(actor, office_id),
                "start_date": _parse_date(start_date, "startDate") if start_date else None,
                "end_date": _parse_date(end_date, "endDate") if end_date else None,
                "search": search,
            }
            infos = self._distributions.list_distributions(
                **filters, limit=limit, offset=offset
            )
            received = self._distributions.claimed_distribution_ids(
                actor.actor_id, [i.id for i in infos]
            )
            offices = self._directory.get_offices({i.office_id for i in infos})
            items = [
                distribution_payload(
                    i.with_office(offices.get(i.office_id)),
                    is_received=i.id in received,
                )
                for i in infos
            ]
            return _Page(
                items=items,
                total=self._distributions.count_distributions(**filters),
                limit=limit,
                offset=offset,
            )

        return self._run("list_distributions", actor, op)

    def get_distribution(self, distribution_id: UUID | str, actor: Actor) -> ApiResponse:
        def op() -> dict[str, Any]:
            info = self._distributions.get(_parse_uuid(distribution_id, "distributionId"))
            received = self._distributions.claimed_distribution_ids(actor.actor_id, [info.id])
            office = self._directory.get_offices([info.office_id]).get(info.office_id)
            return distribution_payload(info.with_office(office), is_received=info.id in received)

        return self._run("get_distribution", actor, op)

    def delete_distribution(self, distribution_id: UUID | str, actor: Actor) -> ApiResponse:
        def op() -> dict[str, Any]:
            removed = self._manager.delete(
                _parse_uuid(distribution_id, "distributionId"), actor.actor_id
            )
            return {"success": True, "claimsRemoved": removed}

        return self._run("delete_distribution", actor, op)

    def list_eligible_employees(self, distribution_id: UUID | str, actor: Actor) -> ApiResponse:
        """Eligible employees with a ``hasReceived`` flag each."""

        def op() -> list[dict[str, Any]]:
            info = self._distributions.get(_parse_uuid(distribution_id, "distributionId"))
            eligible = resolve_eligible(info, self._directory.office_roster(info.office_id))
            claimed = {c.user_id for c in self._ledger.list_claims(info.id)}
            return [
                {**employee_payload(e), "hasReceived": e.id in claimed}
                for e in eligible.employees
            ]

        return self._run("list_eligible_employees", actor, op)

    # -------------------------------------------------------------------------
    # Claims
    # -------------------------------------------------------------------------

    def self_claim(self, request: Mapping[str, Any], actor: Actor) -> ApiResponse:
        """Request: {distributionId}.  The actor claims for themself."""

        def op() -> dict[str, Any]:
            distribution_id = _parse_uuid(_require(request, "distributionId"), "distributionId")
            claim = self._ledger.claim(
                distribution_id, actor.actor_id, ClaimVia.SELF_SERVICE, actor.actor_id
            )
            return claim_payload(claim)

        return self._run("self_claim", actor, op, success_status=HTTP_CREATED)

    def mark_claim(self, request: Mapping[str, Any], actor: Actor) -> ApiResponse:
        """Request: {distributionId, employeeId}.  employeeId may be an id or code."""

        def op() -> dict[str, Any]:
            distribution_id = _parse_uuid(_require(request, "distributionId"), "distributionId")
            employee = self._directory.resolve_employee(_require(request, "employeeId"))
            claim = self._ledger.claim(
                distribution_id, employee.id, ClaimVia.ADMIN_MARKED, actor.actor_id
            )
            return claim_payload(claim.with_employee(employee))

        return self._run("mark_claim", actor, op, success_status=HTTP_CREATED)

    def delete_claim(self, claim_id: UUID | str, actor: Actor) -> ApiResponse:
        """Reverse a claim; the unit goes back to the distribution."""

        def op() -> dict[str, Any]:
            claim = self._ledger.unclaim(_parse_uuid(claim_id, "claimId"), actor.actor_id)
            info = self._manager.get(claim.distribution_id)
            return {
                "success": True,
                "claimId": str(claim.id),
                "distributionId": str(info.id),
                "remainingCount": info.remaining_count,
            }

        return self._run("delete_claim", actor, op)

    def list_claims(self, distribution_id: UUID | str, actor: Actor) -> ApiResponse:
        """Claims of one distribution with the employee populated."""

        def op() -> list[dict[str, Any]]:
            claims = self._ledger.list_claims(_parse_uuid(distribution_id, "distributionId"))
            employees = self._directory.get_employees({c.user_id for c in claims})
            return [claim_payload(c.with_employee(employees.get(c.user_id))) for c in claims]

        return self._run("list_claims", actor, op)

    def list_received(
        self,
        actor: Actor,
        distribution_id: UUID | str | None = None,
        user_id: UUID | str | None = None,
        office_id: UUID | str | None = None,
        start_date: date | str | None = None,
        end_date: date | str | None = None,
    ) -> ApiResponse:
        """Received-goodies history, newest first."""

        def op() -> list[dict[str, Any]]:
            claims = self._claims.list_claims(
                distribution_id=_parse_uuid(distribution_id, "distributionId")
                if distribution_id else None,
                user_id=_parse_uuid(user_id, "userId") if user_id else None,
                office_id=self._office_scope(actor, office_id),
                start_date=_parse_date(start_date, "startDate") if start_date else None,
                end_date=_parse_date(end_date, "endDate") if end_date else None,
            )
            employees = self._directory.get_employees({c.user_id for c in claims})
            return [claim_payload(c.with_employee(employees.get(c.user_id))) for c in claims]

        return self._run("list_received", actor, op)

    def get_received(self, claim_id: UUID | str, actor: Actor) -> ApiResponse:
        """One received-goodies record with the employee populated.

        Own claims are always visible.  Otherwise a claim from another
        office is reported as not found to a non-super-admin.
        """

        def op() -> dict[str, Any]:
            claim_uuid = _parse_uuid(claim_id, "claimId")
            claim = self._claims.get(claim_uuid)
            if claim.user_id != actor.actor_id:
                scope = self._office_scope(actor, None)
                if scope is not None and claim.received_at_office_id != scope:
                    raise ClaimNotFoundError(str(claim_uuid))
            employee = self._directory.get_employees([claim.user_id]).get(claim.user_id)
            return claim_payload(claim.with_employee(employee))

        return self._run("get_received", actor, op)

    # -------------------------------------------------------------------------
    # Bulk upload
    # -------------------------------------------------------------------------

    def bulk_upload(
        self,
        source: Path | str | Iterable[Mapping[str, Any]],
        goodies_type: str,
        distribution_date: date | str,
        actor: Actor,
    ) -> ApiResponse:
        """
        Import a spreadsheet (path) or already-parsed rows.

        Body: {totalProcessed, successCount, failedCount, failedRecords}.
        """

        def op() -> dict[str, Any]:
            service = BulkImportService(
                self._session,
                self._clock,
                max_rows=self._bulk_settings.max_rows,
                allowed_extensions=self._bulk_settings.allowed_extensions,
                sheet=self._bulk_settings.sheet,
            )
            context = BulkImportContext(
                goodies_type=goodies_type,
                distribution_date=_parse_date(distribution_date, "distributionDate"),
                actor=actor,
            )
            if isinstance(source, (str, Path)):
                result = service.process_file(Path(source), context)
            else:
                result = service.process_rows(source, context)
            return result.to_payload()

        return self._run("bulk_upload", actor, op)

    # -------------------------------------------------------------------------
    # Plumbing
    # -------------------------------------------------------------------------

    def _office_scope(self, actor: Actor, requested: UUID | str | None) -> UUID | None:
        """Office filter: any (or none) for a super admin, the own office otherwise.

        Raises:
            DistributionValidationError: a non-super-admin without an office.
        """
        if not actor.is_cross_office:
            if actor.office_id is None:
                raise DistributionValidationError(
                    "actor has no office; only a super admin may list across offices",
                    field="officeId",
                    details={"actor_id": str(actor.actor_id)},
                )
            return actor.office_id
        if requested is None or requested == "":
            return None
        return self._directory.resolve_office(requested).id

    def _run(
        self,
        operation: str,
        actor: Actor,
        fn: Callable[[], T],
        success_status: int = HTTP_OK,
    ) -> ApiResponse:
        with LogContext.bind(actor_id=str(actor.actor_id)):
            try:
                body = fn()
            except InvariantViolationError:
                self._rollback()
                logger.error("operation_failed", extra={"operation": operation}, exc_info=True)
                raise
            except GoodiesKernelError as exc:
                self._rollback()
                status = status_for(exc)
                logger.info(
                    "operation_rejected",
                    extra={"operation": operation, "status": status, "error_code": exc.code},
                )
                return ApiResponse(status=status, body=error_payload(exc))
            except Exception:
                self._rollback()
                raise

            if self._auto_commit:
                self._session.commit()
            if isinstance(body, _Page):
                return ApiResponse(
                    status=success_status,
                    body=body.items,
                    meta={"total": body.total, "limit": body.limit, "offset": body.offset},
                )
            return ApiResponse(status=success_status, body=body)

    def _rollback(self) -> None:
        if self._auto_commit:
            self._session.rollback()

"""
Payload shapes for the goodies API surface.

Kernel DTOs use snake_case; API payloads use camelCase keys with ISO dates
and string ids.  Populated views (``office``, ``employee``) appear only
when the DTO carries them.
"""

from __future__ import annotations

from typing import Any

from goodies_kernel.domain.dtos import (
    ClaimInfo,
    DistributionInfo,
    EmployeeInfo,
    OfficeInfo,
)
from goodies_kernel.exceptions import (
    AlreadyClaimedError,
    ClaimError,
    GoodiesKernelError,
    NotEligibleError,
    NotFoundError,
)

HTTP_OK = 200
HTTP_CREATED = 201
HTTP_BAD_REQUEST = 400
HTTP_FORBIDDEN = 403
HTTP_NOT_FOUND = 404
HTTP_CONFLICT = 409


def office_payload(office: OfficeInfo) -> dict[str, Any]:
    return {
        "id": str(office.id),
        "officeId": office.office_code,
        "name": office.name,
        "address": office.address,
        "isActive": office.is_active,
    }


def employee_payload(employee: EmployeeInfo) -> dict[str, Any]:
    return {
        "id": str(employee.id),
        "employeeId": employee.employee_code,
        "name": employee.name,
        "email": employee.email,
        "role": employee.role.value,
        "status": employee.status.value,
    }


def distribution_payload(
    info: DistributionInfo,
    is_received: bool | None = None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": str(info.id),
        "goodiesType": info.goodies_type,
        "officeId": str(info.office_id),
        "distributionDate": info.distribution_date.isoformat(),
        "totalQuantity": info.total_quantity,
        "claimedCount": info.claimed_count,
        "remainingCount": info.remaining_count,
        "isForAllEmployees": info.is_for_all_employees,
        "targetEmployees": [str(i) for i in info.target_employee_ids],
        "distributedBy": str(info.distributed_by_id),
        "createdAt": info.created_at.isoformat() if info.created_at else None,
    }
    if info.office is not None:
        payload["office"] = office_payload(info.office)
    if is_received is not None:
        payload["isReceived"] = is_received
    return payload


def claim_payload(info: ClaimInfo) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": str(info.id),
        "distributionId": str(info.distribution_id),
        "userId": str(info.user_id),
        "receivedAt": info.received_at.isoformat(),
        "via": info.via.value,
        "receivedAtOfficeId": str(info.received_at_office_id),
        "handedOverBy": str(info.handed_over_by_id),
    }
    if info.employee is not None:
        payload["employee"] = employee_payload(info.employee)
    return payload


def status_for(exc: GoodiesKernelError) -> int:
    """HTTP-like status for a user-facing engine error."""
    if isinstance(exc, NotFoundError):
        return HTTP_NOT_FOUND
    if isinstance(exc, NotEligibleError):
        return HTTP_FORBIDDEN
    if isinstance(exc, ClaimError):
        return HTTP_CONFLICT
    return HTTP_BAD_REQUEST


def error_payload(exc: GoodiesKernelError) -> dict[str, Any]:
    error: dict[str, Any] = {"code": exc.code, "message": str(exc)}
    field = getattr(exc, "field", None)
    if field:
        error["field"] = field
    details = getattr(exc, "details", None)
    if details:
        error["details"] = details
    if isinstance(exc, AlreadyClaimedError) and exc.claim_id is not None:
        error["claimId"] = str(exc.claim_id)
    return {"error": error}

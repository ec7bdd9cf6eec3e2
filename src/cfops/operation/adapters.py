"""Adapters from each completion wire shape to OperationStatus."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from cfops.errors import ApiError

from .status import ErrorDetail, OperationStatus

V2_JOB_PENDING = frozenset({"queued", "running"})
V3_JOB_PENDING = frozenset({"PROCESSING", "POLLING"})
PACKAGE_PENDING = frozenset({"AWAITING_UPLOAD", "PROCESSING_UPLOAD", "COPYING"})
PACKAGE_FAILED = frozenset({"FAILED", "EXPIRED"})


def from_v2_job(payload: Mapping[str, Any]) -> OperationStatus:
    """
    Map a v2 job resource to a status.

    Shape: ``{metadata: {guid}, entity: {status, error_details?}}``.
    """
    entity = payload.get("entity") or payload
    status = entity.get("status")

    if status in V2_JOB_PENDING:
        return OperationStatus.pending()
    if status == "finished":
        return OperationStatus.succeeded()
    if status == "failed":
        error = entity.get("error_details") or {}
        return OperationStatus.failed(
            ErrorDetail(
                code=_as_int(error.get("code")),
                description=str(error.get("description") or "Job failed"),
                error_code=error.get("error_code"),
            )
        )
    raise _unknown("v2 job", status)


def from_v3_job(payload: Mapping[str, Any]) -> OperationStatus:
    """
    Map a v3 job resource to a status.

    Shape: ``{guid, state, errors: [{code, title, detail}]}``.
    """
    state = payload.get("state")

    if state in V3_JOB_PENDING:
        return OperationStatus.pending()
    if state == "COMPLETE":
        return OperationStatus.succeeded()
    if state == "FAILED":
        return OperationStatus.failed(_first_v3_error(payload, "Job failed"))
    raise _unknown("v3 job", state)


def from_last_operation(payload: Mapping[str, Any]) -> OperationStatus:
    """
    Map the inline last_operation of a resource to a status.

    Accepts a v2 resource (``entity.last_operation``), a v3 resource
    (``last_operation`` at top level), or the last_operation block itself.
    A resource without a last_operation has nothing left to wait for.
    """
    entity = payload.get("entity")
    if isinstance(entity, Mapping):
        last_operation = entity.get("last_operation")
    elif "state" in payload and "last_operation" not in payload:
        last_operation = payload
    else:
        last_operation = payload.get("last_operation")

    if not last_operation:
        return OperationStatus.succeeded()

    state = last_operation.get("state")
    if state == "in progress":
        return OperationStatus.pending()
    if state == "succeeded":
        return OperationStatus.succeeded()
    if state == "failed":
        return OperationStatus.failed(
            ErrorDetail(description=str(last_operation.get("description") or "Operation failed"))
        )
    raise _unknown("last operation", state)


def from_package(payload: Mapping[str, Any]) -> OperationStatus:
    """Map a v3 package resource (``{guid, state}``) to a status."""
    state = payload.get("state")

    if state in PACKAGE_PENDING:
        return OperationStatus.pending()
    if state == "READY":
        return OperationStatus.succeeded()
    if state in PACKAGE_FAILED:
        return OperationStatus.failed(_first_v3_error(payload, f"Package {state.lower()}"))
    raise _unknown("package", state)


def _first_v3_error(payload: Mapping[str, Any], fallback: str) -> ErrorDetail:
    errors = payload.get("errors") or []
    if not errors:
        return ErrorDetail(description=fallback)
    first = errors[0]
    return ErrorDetail(
        code=_as_int(first.get("code")),
        description=str(first.get("detail") or fallback),
        error_code=first.get("title"),
    )


def _as_int(value: Any) -> Optional[int]:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def _unknown(kind: str, state: Any) -> ApiError:
    return ApiError(
        f"Unknown {kind} state: {state!r}",
        details={"kind": kind, "state": state},
    )

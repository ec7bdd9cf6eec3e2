"""Exception hierarchy and HTTP error mapping for cfops."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Union


class CFOpsError(Exception):
    """
    Base exception for cfops.

    Attributes:
        details: Optional structured information (e.g., HTTP status, CF error code).
        cause: Optional original exception that triggered this error.
    """

    def __init__(
        self,
        message: str,
        *,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.details = details or {}
        self.cause = cause


class InvalidStateError(CFOpsError):
    """Raised when the library is used in an invalid state (e.g., target not called)."""


class ValidationError(CFOpsError):
    """Raised when a request is malformed. Detected before any remote call."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}", details={"field": field})
        self.field = field
        self.message = message


# ----------------------------
# Transport errors
# ----------------------------
class TransportError(CFOpsError):
    """
    A remote call failed.

    Attributes:
        status_code: HTTP status (0 when no response was received).
        code: Cloud Controller numeric error code (v2 `code`, v3 `errors[0].code`).
        error_code: Cloud Controller error name, e.g. ``CF-ServiceBindingAppServiceTaken``.
        description: Human-readable description returned by the platform.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int = 0,
        code: Optional[int] = None,
        error_code: Optional[str] = None,
        description: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message, details=details, cause=cause)
        self.status_code = status_code
        self.code = code
        self.error_code = error_code
        self.description = description


class AuthError(TransportError):
    """Raised when OAuth authentication/refresh fails or the API answers 401."""


class PermissionError(TransportError):
    """Raised when access is denied (HTTP 403)."""


class InvalidArgumentError(TransportError):
    """Raised when request arguments are rejected (HTTP 400/422)."""


class ResourceNotFoundError(TransportError):
    """Raised when a resource addressed by id does not exist (HTTP 404)."""


class ConflictError(TransportError):
    """Raised when a conflict occurs (HTTP 409/412)."""


class RateLimitError(TransportError):
    """Raised when rate-limited (HTTP 429)."""


class NetworkError(TransportError):
    """Raised when network/timeout issues prevent the request."""


class ApiError(TransportError):
    """Raised for unclassified API errors (5xx, unknown 4xx, unexpected payloads)."""


# ----------------------------
# Name resolution errors
# ----------------------------
class LookupFailedError(CFOpsError):
    """Base for failures resolving a human-readable name to a resource."""


class NotFoundError(LookupFailedError):
    """Raised when a name resolves to no resource."""

    def __init__(self, kind: str, name: str) -> None:
        super().__init__(f"{kind} {name} does not exist", details={"kind": kind, "name": name})
        self.kind = kind
        self.name = name


class AmbiguousMatchError(LookupFailedError):
    """Raised when a name resolves to more than one resource."""

    def __init__(self, kind: str, name: str, count: int) -> None:
        super().__init__(
            f"{kind} {name} is ambiguous ({count} matches)",
            details={"kind": kind, "name": name, "count": count},
        )
        self.kind = kind
        self.name = name
        self.count = count


class NotVisibleError(LookupFailedError):
    """Raised when a non-public service plan has no visibility for the organization."""

    def __init__(self, plan_name: str) -> None:
        super().__init__(
            f"Service Plan {plan_name} is not visible to your organization",
            details={"plan_name": plan_name},
        )
        self.plan_name = plan_name


class NotUpdatableError(LookupFailedError):
    """Raised when the plan of a service instance cannot be changed."""

    def __init__(self, service_instance_name: str, reason: Optional[str] = None) -> None:
        message = reason or f"Plan for the {service_instance_name} service cannot be updated"
        super().__init__(message, details={"service_instance_name": service_instance_name})
        self.service_instance_name = service_instance_name


class NotBoundError(LookupFailedError):
    """Raised when a service instance is not bound to the application."""

    def __init__(self, service_instance_name: str, application_name: str) -> None:
        super().__init__(
            f"Service instance {service_instance_name} is not bound to application "
            f"{application_name}",
            details={
                "service_instance_name": service_instance_name,
                "application_name": application_name,
            },
        )
        self.service_instance_name = service_instance_name
        self.application_name = application_name


# ----------------------------
# Long-running operation errors
# ----------------------------
class DelayTimeoutError(CFOpsError):
    """Raised by a delay schedule once its deadline has passed."""


class OperationTimeoutError(CFOpsError):
    """Raised when an operation does not reach a terminal state before its deadline."""


class OperationFailedError(CFOpsError):
    """Raised when a polled operation ends in a failed state."""

    def __init__(
        self,
        code: Optional[int],
        description: str,
        error_code: Optional[str] = None,
        *,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        message = description
        if error_code:
            message = f"{error_code}({code}): {description}"
        merged = {"code": code, "error_code": error_code}
        if details:
            merged.update(details)
        super().__init__(message, details=merged)
        self.code = code
        self.description = description
        self.error_code = error_code


@dataclass(frozen=True)
class HttpErrorInfo:
    """Lightweight HTTP error information for mapping to cfops exceptions."""

    status_code: int
    code: int | None = None
    error_code: str | None = None
    description: str | None = None
    details: dict[str, Any] | None = None


def map_http_error(
    info: HttpErrorInfo,
    *,
    cause: Optional[BaseException] = None,
) -> TransportError:
    """
    Map an HTTP error to a cfops exception.

    Policy:
        - 400/422 -> InvalidArgumentError
        - 401 -> AuthError
        - 403 -> PermissionError
        - 404 -> ResourceNotFoundError
        - 409/412 -> ConflictError
        - 429 -> RateLimitError
        - 5xx -> ApiError
        - otherwise -> ApiError
    """
    details: dict[str, Any] = {
        "status_code": info.status_code,
        "code": info.code,
        "error_code": info.error_code,
    }
    if info.details:
        details.update(info.details)

    message = info.description or f"HTTP error {info.status_code}"
    if info.error_code:
        message = f"{info.error_code}({info.code}): {message}"

    kwargs: dict[str, Any] = {
        "status_code": info.status_code,
        "code": info.code,
        "error_code": info.error_code,
        "description": info.description,
        "details": details,
        "cause": cause,
    }

    if info.status_code in (400, 422):
        return InvalidArgumentError(message, **kwargs)
    if info.status_code == 401:
        return AuthError(message, **kwargs)
    if info.status_code == 403:
        return PermissionError(message, **kwargs)
    if info.status_code == 404:
        return ResourceNotFoundError(message, **kwargs)
    if info.status_code in (409, 412):
        return ConflictError(message, **kwargs)
    if info.status_code == 429:
        return RateLimitError(message, **kwargs)

    return ApiError(message, **kwargs)


def is_error_code(exc: BaseException, *codes: Union[int, str]) -> bool:
    """
    Return True if exc is a TransportError carrying one of codes.

    Integers are compared with the numeric CF code, strings with the CF error name.
    """
    if not isinstance(exc, TransportError):
        return False
    for c in codes:
        if isinstance(c, int) and exc.code == c:
            return True
        if isinstance(c, str) and exc.error_code == c:
            return True
    return False

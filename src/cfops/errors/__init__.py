"""Public error exports for cfops."""

from __future__ import annotations

from .exceptions import (
    AmbiguousMatchError,
    ApiError,
    AuthError,
    CFOpsError,
    ConflictError,
    DelayTimeoutError,
    HttpErrorInfo,
    InvalidArgumentError,
    InvalidStateError,
    LookupFailedError,
    NetworkError,
    NotBoundError,
    NotFoundError,
    NotUpdatableError,
    NotVisibleError,
    OperationFailedError,
    OperationTimeoutError,
    PermissionError,
    RateLimitError,
    ResourceNotFoundError,
    TransportError,
    ValidationError,
    is_error_code,
    map_http_error,
)

__all__ = [
    "CFOpsError",
    "InvalidStateError",
    "ValidationError",
    "TransportError",
    "AuthError",
    "PermissionError",
    "InvalidArgumentError",
    "ResourceNotFoundError",
    "ConflictError",
    "RateLimitError",
    "NetworkError",
    "ApiError",
    "LookupFailedError",
    "NotFoundError",
    "AmbiguousMatchError",
    "NotVisibleError",
    "NotUpdatableError",
    "NotBoundError",
    "DelayTimeoutError",
    "OperationTimeoutError",
    "OperationFailedError",
    "HttpErrorInfo",
    "is_error_code",
    "map_http_error",
]

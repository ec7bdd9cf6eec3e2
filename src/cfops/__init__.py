"""cfops public API."""

from __future__ import annotations

from cfops.applications import Applications
from cfops.auth import AuthInfo, OAuthClient
from cfops.config import ConnectionInfo, OperationTimeouts
from cfops.errors import (
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
from cfops.manager import CloudFoundryOperations
from cfops.models import (
    BindRouteServiceInstanceRequest,
    BindServiceInstanceRequest,
    CreateServiceInstanceRequest,
    CreateServiceKeyRequest,
    CreateUserProvidedServiceInstanceRequest,
    DeleteRouteRequest,
    DeleteServiceInstanceRequest,
    DeleteServiceKeyRequest,
    GetServiceInstanceRequest,
    GetServiceKeyRequest,
    ListServiceKeysRequest,
    Page,
    RenameServiceInstanceRequest,
    Resource,
    ServiceInstance,
    ServiceInstanceType,
    ServiceKey,
    ServiceOffering,
    ServicePlan,
    UnbindServiceInstanceRequest,
    UpdateServiceInstanceRequest,
    UpdateUserProvidedServiceInstanceRequest,
    UploadBitsRequest,
)
from cfops.operation import ErrorDetail, OperationState, OperationStatus, wait_for_completion
from cfops.routes import Routes
from cfops.services import Services
from cfops.upload import ArtifactFingerprint, BufferPool
from cfops.util import all_pages, exponential_backoff, fixed, instant, reorder_within_window

__all__ = [
    # High-level
    "CloudFoundryOperations",
    "Services",
    "Routes",
    "Applications",
    # Config / Auth
    "ConnectionInfo",
    "OperationTimeouts",
    "AuthInfo",
    "OAuthClient",
    # Requests
    "BindRouteServiceInstanceRequest",
    "BindServiceInstanceRequest",
    "CreateServiceInstanceRequest",
    "CreateServiceKeyRequest",
    "CreateUserProvidedServiceInstanceRequest",
    "DeleteRouteRequest",
    "DeleteServiceInstanceRequest",
    "DeleteServiceKeyRequest",
    "GetServiceInstanceRequest",
    "GetServiceKeyRequest",
    "ListServiceKeysRequest",
    "RenameServiceInstanceRequest",
    "UnbindServiceInstanceRequest",
    "UpdateServiceInstanceRequest",
    "UpdateUserProvidedServiceInstanceRequest",
    "UploadBitsRequest",
    # Models
    "Page",
    "Resource",
    "ServiceInstance",
    "ServiceInstanceType",
    "ServiceKey",
    "ServiceOffering",
    "ServicePlan",
    "ArtifactFingerprint",
    "BufferPool",
    # Long-running operations
    "ErrorDetail",
    "OperationState",
    "OperationStatus",
    "wait_for_completion",
    # Utilities
    "all_pages",
    "exponential_backoff",
    "fixed",
    "instant",
    "reorder_within_window",
    # Errors
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

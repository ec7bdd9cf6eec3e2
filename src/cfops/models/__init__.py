"""Public model exports for cfops."""

from __future__ import annotations

from .page import Page, page_from_counts, page_from_v2, page_from_v3, total_pages_from_counts
from .requests import (
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
    RenameServiceInstanceRequest,
    UnbindServiceInstanceRequest,
    UpdateServiceInstanceRequest,
    UpdateUserProvidedServiceInstanceRequest,
    UploadBitsRequest,
    check,
)
from .resource import Resource, resource_from_v2, resource_from_v3
from .views import ServiceInstance, ServiceInstanceType, ServiceKey, ServiceOffering, ServicePlan

__all__ = [
    "Page",
    "page_from_v2",
    "page_from_v3",
    "page_from_counts",
    "total_pages_from_counts",
    "Resource",
    "resource_from_v2",
    "resource_from_v3",
    "ServiceInstance",
    "ServiceInstanceType",
    "ServiceKey",
    "ServiceOffering",
    "ServicePlan",
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
    "check",
]

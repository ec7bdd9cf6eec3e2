"""Operation request models (explicit fields, validated before any remote call)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from cfops.errors import ValidationError


@dataclass(slots=True, frozen=True)
class BindServiceInstanceRequest:
    application_name: str
    service_instance_name: str
    parameters: Optional[dict[str, Any]] = None

    def validate(self) -> list[ValidationError]:
        return _require(self, "application_name", "service_instance_name")


@dataclass(slots=True, frozen=True)
class UnbindServiceInstanceRequest:
    application_name: str
    service_instance_name: str

    def validate(self) -> list[ValidationError]:
        return _require(self, "application_name", "service_instance_name")


@dataclass(slots=True, frozen=True)
class CreateServiceInstanceRequest:
    service_name: str
    plan_name: str
    service_instance_name: str
    parameters: Optional[dict[str, Any]] = None
    tags: list[str] = field(default_factory=list)
    completion_timeout: Optional[float] = None

    def validate(self) -> list[ValidationError]:
        errors = _require(self, "service_name", "plan_name", "service_instance_name")
        errors.extend(_positive_timeout(self.completion_timeout))
        return errors


@dataclass(slots=True, frozen=True)
class UpdateServiceInstanceRequest:
    """Change plan, parameters or tags of a service instance. plan_name is optional."""

    service_instance_name: str
    plan_name: Optional[str] = None
    parameters: Optional[dict[str, Any]] = None
    tags: Optional[list[str]] = None
    completion_timeout: Optional[float] = None

    def validate(self) -> list[ValidationError]:
        errors = _require(self, "service_instance_name")
        errors.extend(_positive_timeout(self.completion_timeout))
        return errors


@dataclass(slots=True, frozen=True)
class DeleteServiceInstanceRequest:
    name: str
    completion_timeout: Optional[float] = None

    def validate(self) -> list[ValidationError]:
        errors = _require(self, "name")
        errors.extend(_positive_timeout(self.completion_timeout))
        return errors


@dataclass(slots=True, frozen=True)
class RenameServiceInstanceRequest:
    name: str
    new_name: str

    def validate(self) -> list[ValidationError]:
        return _require(self, "name", "new_name")


@dataclass(slots=True, frozen=True)
class GetServiceInstanceRequest:
    name: str

    def validate(self) -> list[ValidationError]:
        return _require(self, "name")


@dataclass(slots=True, frozen=True)
class CreateServiceKeyRequest:
    service_instance_name: str
    service_key_name: str
    parameters: Optional[dict[str, Any]] = None

    def validate(self) -> list[ValidationError]:
        return _require(self, "service_instance_name", "service_key_name")


@dataclass(slots=True, frozen=True)
class DeleteServiceKeyRequest:
    service_instance_name: str
    service_key_name: str

    def validate(self) -> list[ValidationError]:
        return _require(self, "service_instance_name", "service_key_name")


@dataclass(slots=True, frozen=True)
class GetServiceKeyRequest:
    service_instance_name: str
    service_key_name: str

    def validate(self) -> list[ValidationError]:
        return _require(self, "service_instance_name", "service_key_name")


@dataclass(slots=True, frozen=True)
class ListServiceKeysRequest:
    service_instance_name: str

    def validate(self) -> list[ValidationError]:
        return _require(self, "service_instance_name")


@dataclass(slots=True, frozen=True)
class CreateUserProvidedServiceInstanceRequest:
    name: str
    credentials: Optional[dict[str, Any]] = None
    route_service_url: Optional[str] = None
    syslog_drain_url: Optional[str] = None

    def validate(self) -> list[ValidationError]:
        return _require(self, "name")


@dataclass(slots=True, frozen=True)
class UpdateUserProvidedServiceInstanceRequest:
    user_provided_service_instance_name: str
    credentials: Optional[dict[str, Any]] = None
    syslog_drain_url: Optional[str] = None

    def validate(self) -> list[ValidationError]:
        return _require(self, "user_provided_service_instance_name")


@dataclass(slots=True, frozen=True)
class BindRouteServiceInstanceRequest:
    service_instance_name: str
    domain_name: str
    hostname: Optional[str] = None
    path: Optional[str] = None
    parameters: Optional[dict[str, Any]] = None

    def validate(self) -> list[ValidationError]:
        return _require(self, "service_instance_name", "domain_name")


@dataclass(slots=True, frozen=True)
class DeleteRouteRequest:
    domain: str
    host: Optional[str] = None
    path: Optional[str] = None
    port: Optional[int] = None
    completion_timeout: Optional[float] = None

    def validate(self) -> list[ValidationError]:
        errors = _require(self, "domain")
        errors.extend(_positive_timeout(self.completion_timeout))
        return errors


@dataclass(slots=True, frozen=True)
class UploadBitsRequest:
    """Upload application bits from a directory or a zip archive."""

    application_name: str
    path: str
    completion_timeout: Optional[float] = None

    def validate(self) -> list[ValidationError]:
        errors = _require(self, "application_name", "path")
        errors.extend(_positive_timeout(self.completion_timeout))
        return errors


def check(request: Any) -> None:
    """Raise the first ValidationError reported by request.validate()."""
    errors = request.validate()
    if errors:
        raise errors[0]


def _require(request: Any, *field_names: str) -> list[ValidationError]:
    errors: list[ValidationError] = []
    for name in field_names:
        value = getattr(request, name)
        if value is None or (isinstance(value, str) and not value.strip()):
            errors.append(ValidationError(name, "is required"))
    return errors


def _positive_timeout(value: Optional[float]) -> list[ValidationError]:
    if value is not None and value <= 0:
        return [ValidationError("completion_timeout", "must be positive")]
    return []

"""Result models returned by the operation facades."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class ServiceInstanceType(str, Enum):
    """Kinds of service instance."""

    MANAGED = "managed_service_instance"
    USER_PROVIDED = "user_provided_service_instance"

    @classmethod
    def from_value(cls, value: Optional[str]) -> "ServiceInstanceType":
        if value == cls.USER_PROVIDED.value:
            return cls.USER_PROVIDED
        return cls.MANAGED


@dataclass(slots=True)
class ServiceInstance:
    """A service instance with its plan, offering and bound applications."""

    id: str
    name: str
    type: ServiceInstanceType
    applications: list[str] = field(default_factory=list)

    plan: Optional[str] = None
    service: Optional[str] = None
    description: Optional[str] = None
    documentation_url: Optional[str] = None
    dashboard_url: Optional[str] = None
    tags: list[str] = field(default_factory=list)

    last_operation: Optional[str] = None
    status: Optional[str] = None
    message: Optional[str] = None
    started_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(slots=True)
class ServiceKey:
    id: str
    name: str
    credentials: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class ServicePlan:
    id: str
    name: str
    description: Optional[str] = None
    free: Optional[bool] = None


@dataclass(slots=True)
class ServiceOffering:
    id: str
    label: str
    description: Optional[str] = None
    tags: list[str] = field(default_factory=list)
    service_plans: list[ServicePlan] = field(default_factory=list)

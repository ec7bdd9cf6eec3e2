"""Service instance, binding and key operations for one targeted space."""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Optional

from cfops.config import OperationTimeouts
from cfops.controller import CloudFoundryController
from cfops.errors import (
    NotBoundError,
    NotFoundError,
    NotUpdatableError,
    NotVisibleError,
    TransportError,
    is_error_code,
)
from cfops.models import (
    BindRouteServiceInstanceRequest,
    BindServiceInstanceRequest,
    CreateServiceInstanceRequest,
    CreateServiceKeyRequest,
    CreateUserProvidedServiceInstanceRequest,
    DeleteServiceInstanceRequest,
    DeleteServiceKeyRequest,
    GetServiceInstanceRequest,
    GetServiceKeyRequest,
    ListServiceKeysRequest,
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
    check,
    resource_from_v2,
)
from cfops.operation import wait_for_job_v2, wait_for_last_operation
from cfops.util.lookup import expect_optional, expect_single
from cfops.util.time import parse_optional_rfc3339

logger = logging.getLogger(__name__)

CF_SERVICE_ALREADY_BOUND = 90003
CF_SERVICE_ALREADY_BOUND_NAME = "CF-ServiceBindingAppServiceTaken"
CF_ROUTE_SERVICE_ALREADY_BOUND = 130008
CF_ROUTE_SERVICE_ALREADY_BOUND_NAME = "CF-ServiceInstanceAlreadyBoundToSameRoute"


class Services:
    """
    Services operations scoped to an organization and space.

    Notes:
        - Names are resolved to ids with exactly-one-match semantics.
        - Requests are validated before any remote call.
        - Each remote call is made once; only completion polling repeats.
    """

    def __init__(
        self,
        controller: CloudFoundryController,
        organization_id: str,
        space_id: str,
        *,
        timeouts: Optional[OperationTimeouts] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._controller = controller
        self._organization_id = organization_id
        self._space_id = space_id
        self._timeouts = timeouts or OperationTimeouts()
        self._sleep = sleep

    # ----------------------------
    # Bindings
    # ----------------------------
    async def bind(self, request: BindServiceInstanceRequest) -> None:
        """Bind a service instance to an application. Already bound is a no-op."""
        check(request)
        application = await self._get_application(request.application_name)
        instance = await self._get_service_instance(request.service_instance_name)

        body = _compact(
            {
                "app_guid": application.id,
                "service_instance_guid": instance.id,
                "parameters": request.parameters,
            }
        )
        try:
            await self._controller.post("/v2/service_bindings", json=body)
        except TransportError as exc:
            if not is_error_code(exc, CF_SERVICE_ALREADY_BOUND, CF_SERVICE_ALREADY_BOUND_NAME):
                raise
            logger.info(
                "Service instance %s is already bound to %s",
                request.service_instance_name,
                request.application_name,
            )

    async def unbind(self, request: UnbindServiceInstanceRequest) -> None:
        check(request)
        application = await self._get_application(request.application_name)
        instance = await self._get_service_instance(request.service_instance_name)

        binding = await expect_optional(
            self._controller.list_v2(
                f"/v2/apps/{application.id}/service_bindings",
                {"q": f"service_instance_guid:{instance.id}"},
            ),
            "Service binding",
            request.service_instance_name,
        )
        if binding is None:
            raise NotBoundError(request.service_instance_name, request.application_name)

        response = await self._controller.delete(
            f"/v2/service_bindings/{binding.id}", params={"async": "true"}
        )
        if response.payload:
            await wait_for_job_v2(
                self._controller, response.payload, timeouts=self._timeouts, sleep=self._sleep
            )

    async def bind_route(self, request: BindRouteServiceInstanceRequest) -> None:
        """Bind a route service instance to a route. Already bound is a no-op."""
        check(request)
        instance = await self._get_service_instance(request.service_instance_name)
        domain = await expect_single(
            self._controller.list_v2("/v2/domains", {"q": f"name:{request.domain_name}"}),
            "Domain",
            request.domain_name,
        )
        route_name = _route_name(request.hostname, request.domain_name, request.path)
        query = [f"domain_guid:{domain.id}", f"host:{request.hostname or ''}"]
        if request.path:
            query.append(f"path:{request.path}")
        route = await expect_single(
            self._controller.list_v2("/v2/routes", {"q": query}),
            "Route",
            route_name,
        )

        body = _compact({"parameters": request.parameters})
        try:
            await self._controller.put(
                f"/v2/service_instances/{instance.id}/routes/{route.id}", json=body or None
            )
        except TransportError as exc:
            if not is_error_code(
                exc, CF_ROUTE_SERVICE_ALREADY_BOUND, CF_ROUTE_SERVICE_ALREADY_BOUND_NAME
            ):
                raise
            logger.info(
                "Service instance %s is already bound to route %s",
                request.service_instance_name,
                route_name,
            )

    # ----------------------------
    # Service instances
    # ----------------------------
    async def create_instance(self, request: CreateServiceInstanceRequest) -> None:
        check(request)
        service = await self._get_space_service(request.service_name)
        plan = await expect_single(
            self._list_service_plans(service.id, name=request.plan_name),
            "Service plan",
            request.plan_name,
        )

        body = _compact(
            {
                "name": request.service_instance_name,
                "service_plan_guid": plan.id,
                "space_guid": self._space_id,
                "parameters": request.parameters,
                "tags": request.tags or None,
            }
        )
        response = await self._controller.post(
            "/v2/service_instances", params={"accepts_incomplete": "true"}, json=body
        )
        created = resource_from_v2(response.payload or {})
        await wait_for_last_operation(
            self._controller,
            f"/v2/service_instances/{created.id}",
            timeouts=self._timeouts.with_completion(request.completion_timeout),
            initial=response.payload,
            sleep=self._sleep,
        )

    async def update_instance(self, request: UpdateServiceInstanceRequest) -> None:
        """Change plan, parameters or tags; a new plan must be updatable and visible."""
        check(request)
        instance = await self._get_service_instance(request.service_instance_name)
        plan_id = await self._validated_plan_id(request.plan_name, instance)

        body = _compact(
            {
                "service_plan_guid": plan_id,
                "parameters": request.parameters,
                "tags": request.tags,
            }
        )
        response = await self._controller.put(
            f"/v2/service_instances/{instance.id}",
            params={"accepts_incomplete": "true"},
            json=body,
        )
        await wait_for_last_operation(
            self._controller,
            f"/v2/service_instances/{instance.id}",
            timeouts=self._timeouts.with_completion(request.completion_timeout),
            initial=response.payload,
            sleep=self._sleep,
        )

    async def delete_instance(self, request: DeleteServiceInstanceRequest) -> None:
        check(request)
        instance = await self._get_service_instance(request.name)
        timeouts = self._timeouts.with_completion(request.completion_timeout)

        if _instance_type(instance) is ServiceInstanceType.USER_PROVIDED:
            await self._controller.delete(f"/v2/user_provided_service_instances/{instance.id}")
            return

        path = f"/v2/service_instances/{instance.id}"
        response = await self._controller.delete(
            path, params={"async": "true", "accepts_incomplete": "true"}
        )
        payload = response.payload
        if not payload:
            return
        if "status" in (payload.get("entity") or {}):
            await wait_for_job_v2(self._controller, payload, timeouts=timeouts, sleep=self._sleep)
        else:
            await wait_for_last_operation(
                self._controller,
                path,
                timeouts=timeouts,
                initial=payload,
                deleting=True,
                sleep=self._sleep,
            )

    async def rename_instance(self, request: RenameServiceInstanceRequest) -> None:
        check(request)
        instance = await self._get_service_instance(request.name)
        if _instance_type(instance) is ServiceInstanceType.USER_PROVIDED:
            path = f"/v2/user_provided_service_instances/{instance.id}"
        else:
            path = f"/v2/service_instances/{instance.id}"
        await self._controller.put(path, json={"name": request.new_name})

    async def get_instance(self, request: GetServiceInstanceRequest) -> ServiceInstance:
        check(request)
        instance = await self._get_service_instance(request.name)
        return await self._to_service_instance(instance)

    async def list_instances(self) -> AsyncIterator[ServiceInstance]:
        """Every service instance of the space, user-provided ones included."""
        async for instance in self._controller.list_v2(
            f"/v2/spaces/{self._space_id}/service_instances",
            {"return_user_provided_service_instances": "true"},
        ):
            yield await self._to_service_instance(instance)

    async def list_service_offerings(
        self, service_name: Optional[str] = None
    ) -> AsyncIterator[ServiceOffering]:
        """Service offerings available in the space, optionally only service_name."""
        if service_name:
            services = [await self._get_space_service(service_name)]
        else:
            services = [
                s async for s in self._controller.list_v2(f"/v2/spaces/{self._space_id}/services")
            ]

        for service in services:
            plans = [_to_service_plan(p) async for p in self._list_service_plans(service.id)]
            yield ServiceOffering(
                id=service.id,
                label=service.get("label", service.name),
                description=service.get("description"),
                tags=list(service.get("tags") or []),
                service_plans=plans,
            )

    # ----------------------------
    # User-provided service instances
    # ----------------------------
    async def create_user_provided_instance(
        self, request: CreateUserProvidedServiceInstanceRequest
    ) -> None:
        check(request)
        body = _compact(
            {
                "name": request.name,
                "credentials": request.credentials,
                "route_service_url": request.route_service_url,
                "space_guid": self._space_id,
                "syslog_drain_url": request.syslog_drain_url,
            }
        )
        await self._controller.post("/v2/user_provided_service_instances", json=body)

    async def update_user_provided_instance(
        self, request: UpdateUserProvidedServiceInstanceRequest
    ) -> None:
        check(request)
        name = request.user_provided_service_instance_name
        instance = await expect_single(
            self._user_provided_instances(name), "User provided service instance", name
        )
        body = _compact(
            {"credentials": request.credentials, "syslog_drain_url": request.syslog_drain_url}
        )
        await self._controller.put(f"/v2/user_provided_service_instances/{instance.id}", json=body)

    # ----------------------------
    # Service keys
    # ----------------------------
    async def create_service_key(self, request: CreateServiceKeyRequest) -> None:
        check(request)
        instance = await self._get_service_instance(request.service_instance_name)
        body = _compact(
            {
                "service_instance_guid": instance.id,
                "name": request.service_key_name,
                "parameters": request.parameters,
            }
        )
        await self._controller.post("/v2/service_keys", json=body)

    async def delete_service_key(self, request: DeleteServiceKeyRequest) -> None:
        check(request)
        instance = await self._get_service_instance(request.service_instance_name)
        key = await self._get_service_key(instance.id, request.service_key_name)
        await self._controller.delete(f"/v2/service_keys/{key.id}")

    async def get_service_key(self, request: GetServiceKeyRequest) -> ServiceKey:
        check(request)
        instance = await self._get_service_instance(request.service_instance_name)
        return _to_service_key(await self._get_service_key(instance.id, request.service_key_name))

    async def list_service_keys(self, request: ListServiceKeysRequest) -> AsyncIterator[ServiceKey]:
        check(request)
        instance = await self._get_service_instance(request.service_instance_name)
        async for key in self._controller.list_v2(
            f"/v2/service_instances/{instance.id}/service_keys"
        ):
            yield _to_service_key(key)

    # ----------------------------
    # Internals
    # ----------------------------
    async def _validated_plan_id(
        self, plan_name: Optional[str], instance: Resource
    ) -> Optional[str]:
        if not plan_name:
            return None

        current_plan_id = instance.get("service_plan_guid")
        if not current_plan_id:
            raise NotUpdatableError(
                instance.name, f"Plan does not exist for the {instance.name} service"
            )

        current_plan = await self._controller.get(f"/v2/service_plans/{current_plan_id}")
        service_id = resource_from_v2(current_plan.payload or {}).get("service_guid")
        service = resource_from_v2(
            (await self._controller.get(f"/v2/services/{service_id}")).payload or {}
        )
        if not service.get("plan_updateable"):
            raise NotUpdatableError(instance.name)

        plan = await expect_optional(
            self._list_service_plans(service.id, name=plan_name), "Service plan", plan_name
        )
        if plan is None:
            raise NotFoundError("Service plan", plan_name)

        await self._check_visibility(plan)
        return plan.id

    async def _check_visibility(self, plan: Resource) -> None:
        if plan.get("public"):
            return
        visibilities = self._controller.list_v2(
            "/v2/service_plan_visibilities",
            {"q": [f"organization_guid:{self._organization_id}", f"service_plan_guid:{plan.id}"]},
        )
        async with contextlib.aclosing(visibilities):
            async for _ in visibilities:
                return
        raise NotVisibleError(plan.name)

    async def _get_application(self, name: str) -> Resource:
        return await expect_single(
            self._controller.list_v2(f"/v2/spaces/{self._space_id}/apps", {"q": f"name:{name}"}),
            "Application",
            name,
        )

    async def _get_service_instance(self, name: str) -> Resource:
        return await expect_single(
            self._controller.list_v2(
                f"/v2/spaces/{self._space_id}/service_instances",
                {"q": f"name:{name}", "return_user_provided_service_instances": "true"},
            ),
            "Service instance",
            name,
        )

    async def _user_provided_instances(self, name: str) -> AsyncIterator[Resource]:
        async for instance in self._controller.list_v2(
            f"/v2/spaces/{self._space_id}/service_instances",
            {"q": f"name:{name}", "return_user_provided_service_instances": "true"},
        ):
            if _instance_type(instance) is ServiceInstanceType.USER_PROVIDED:
                yield instance

    async def _get_space_service(self, label: str) -> Resource:
        return await expect_single(
            self._controller.list_v2(
                f"/v2/spaces/{self._space_id}/services", {"q": f"label:{label}"}
            ),
            "Service",
            label,
        )

    async def _list_service_plans(
        self, service_id: str, *, name: Optional[str] = None
    ) -> AsyncIterator[Resource]:
        async for plan in self._controller.list_v2(
            "/v2/service_plans", {"q": f"service_guid:{service_id}"}
        ):
            if name is None or plan.name == name:
                yield plan

    async def _get_service_key(self, instance_id: str, name: str) -> Resource:
        return await expect_single(
            self._controller.list_v2(
                f"/v2/service_instances/{instance_id}/service_keys", {"q": f"name:{name}"}
            ),
            "Service key",
            name,
        )

    async def _bound_applications(self, instance_id: str) -> list[str]:
        names: list[str] = []
        async for binding in self._controller.list_v2(
            "/v2/service_bindings", {"q": f"service_instance_guid:{instance_id}"}
        ):
            response = await self._controller.get(f"/v2/apps/{binding.get('app_guid')}")
            names.append(resource_from_v2(response.payload or {}).name)
        return names

    async def _to_service_instance(self, instance: Resource) -> ServiceInstance:
        plan: Optional[Resource] = None
        service: Optional[Resource] = None

        plan_id = instance.get("service_plan_guid")
        if plan_id:
            plan = resource_from_v2(
                (await self._controller.get(f"/v2/service_plans/{plan_id}")).payload or {}
            )
            service_id = plan.get("service_guid")
            if service_id:
                service = resource_from_v2(
                    (await self._controller.get(f"/v2/services/{service_id}")).payload or {}
                )

        applications = await self._bound_applications(instance.id)
        last_operation = instance.get("last_operation") or {}
        return ServiceInstance(
            id=instance.id,
            name=instance.name,
            type=_instance_type(instance),
            applications=applications,
            plan=plan.name if plan else None,
            service=service.get("label") if service else None,
            description=service.get("description") if service else None,
            documentation_url=_extra_value(service.get("extra") if service else None, "documentationUrl"),
            dashboard_url=instance.get("dashboard_url"),
            tags=list(instance.get("tags") or []),
            last_operation=last_operation.get("type"),
            status=last_operation.get("state"),
            message=last_operation.get("description"),
            started_at=parse_optional_rfc3339(last_operation.get("created_at")),
            updated_at=parse_optional_rfc3339(last_operation.get("updated_at")),
        )


def _instance_type(instance: Resource) -> ServiceInstanceType:
    return ServiceInstanceType.from_value(instance.get("type"))


def _to_service_key(resource: Resource) -> ServiceKey:
    return ServiceKey(
        id=resource.id,
        name=resource.name,
        credentials=dict(resource.get("credentials") or {}),
    )


def _to_service_plan(resource: Resource) -> ServicePlan:
    return ServicePlan(
        id=resource.id,
        name=resource.name,
        description=resource.get("description"),
        free=resource.get("free"),
    )


def _extra_value(extra: Optional[str], key: str) -> Optional[str]:
    if not extra:
        return None
    try:
        value = json.loads(extra).get(key)
    except (ValueError, AttributeError):
        return None
    return value if isinstance(value, str) else None


def _route_name(host: Optional[str], domain: str, path: Optional[str]) -> str:
    name = f"{host}.{domain}" if host else domain
    return f"{name}{path}" if path else name


def _compact(body: dict[str, Any]) -> dict[str, Any]:
    """Drop None values from a request body."""
    return {k: v for k, v in body.items() if v is not None}

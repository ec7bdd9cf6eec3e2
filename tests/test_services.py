import unittest

from cf_fakes import FakeCloudController, v2

from cfops.config import OperationTimeouts
from cfops.errors import (
    AmbiguousMatchError,
    ApiError,
    InvalidArgumentError,
    NotBoundError,
    NotFoundError,
    NotUpdatableError,
    NotVisibleError,
    OperationFailedError,
    ResourceNotFoundError,
    ValidationError,
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
    ServiceInstanceType,
    UnbindServiceInstanceRequest,
    UpdateServiceInstanceRequest,
    UpdateUserProvidedServiceInstanceRequest,
)
from cfops.services import Services

SPACE_INSTANCES = "/v2/spaces/space-1/service_instances"


def _already_bound() -> InvalidArgumentError:
    return InvalidArgumentError(
        "CF-ServiceBindingAppServiceTaken(90003): already bound",
        status_code=400,
        code=90003,
        error_code="CF-ServiceBindingAppServiceTaken",
    )


class ServicesTestCase(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.controller = FakeCloudController()
        self.sleeps: list[float] = []
        self.services = Services(
            self.controller,
            "org-1",
            "space-1",
            timeouts=OperationTimeouts(completion=60, minimum_delay=0.5, maximum_delay=2),
            sleep=self._sleep,
        )

    async def _sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)

    def add_app(self, name: str, guid: str) -> None:
        self.controller.add_listing(
            "/v2/spaces/space-1/apps", {"q": f"name:{name}"}, [v2(guid, name=name)]
        )

    def add_instance(self, name: str, *resources: dict) -> None:
        self.controller.add_listing(
            SPACE_INSTANCES,
            {"q": f"name:{name}", "return_user_provided_service_instances": "true"},
            list(resources),
        )

    def add_service(self, label: str, guid: str, plans: list[dict]) -> None:
        self.controller.add_listing(
            "/v2/spaces/space-1/services", {"q": f"label:{label}"}, [v2(guid, label=label)]
        )
        self.controller.add_listing("/v2/service_plans", {"q": f"service_guid:{guid}"}, plans)


class TestBind(ServicesTestCase):
    async def asyncSetUp(self) -> None:
        await super().asyncSetUp()
        self.add_app("web", "app-1")
        self.add_instance("db", v2("si-1", name="db"))

    async def test_bind_posts_binding(self) -> None:
        self.controller.on("POST", "/v2/service_bindings", v2("b-1"))

        await self.services.bind(BindServiceInstanceRequest("web", "db", {"role": "ro"}))

        [(_, _, kwargs)] = self.controller.requests("POST")
        self.assertEqual(
            kwargs["json"],
            {"app_guid": "app-1", "service_instance_guid": "si-1", "parameters": {"role": "ro"}},
        )

    async def test_already_bound_is_success(self) -> None:
        self.controller.on("POST", "/v2/service_bindings", _already_bound())

        await self.services.bind(BindServiceInstanceRequest("web", "db"))
        await self.services.bind(BindServiceInstanceRequest("web", "db"))

        self.assertEqual(len(self.controller.requests("POST")), 2)

    async def test_other_errors_propagate(self) -> None:
        self.controller.on(
            "POST",
            "/v2/service_bindings",
            InvalidArgumentError("bad", status_code=400, code=10001, error_code="CF-Other"),
        )

        with self.assertRaises(InvalidArgumentError):
            await self.services.bind(BindServiceInstanceRequest("web", "db"))

    async def test_missing_application_is_not_found(self) -> None:
        with self.assertRaises(NotFoundError) as ctx:
            await self.services.bind(BindServiceInstanceRequest("api", "db"))

        self.assertEqual(ctx.exception.kind, "Application")
        self.assertEqual(self.controller.requests("POST"), [])

    async def test_duplicate_instance_name_is_ambiguous(self) -> None:
        self.add_instance("db", v2("si-1", name="db"), v2("si-2", name="db"))

        with self.assertRaises(AmbiguousMatchError):
            await self.services.bind(BindServiceInstanceRequest("web", "db"))
        self.assertEqual(self.controller.requests("POST"), [])

    async def test_validation_happens_before_remote_calls(self) -> None:
        with self.assertRaises(ValidationError):
            await self.services.bind(BindServiceInstanceRequest("", "db"))
        self.assertEqual(self.controller.calls, [])


class TestUnbind(ServicesTestCase):
    async def asyncSetUp(self) -> None:
        await super().asyncSetUp()
        self.add_app("web", "app-1")
        self.add_instance("db", v2("si-1", name="db"))

    async def test_unbind_waits_for_job(self) -> None:
        self.controller.add_listing(
            "/v2/apps/app-1/service_bindings", {"q": "service_instance_guid:si-1"}, [v2("b-1")]
        )
        self.controller.on(
            "DELETE", "/v2/service_bindings/b-1", v2("job-1", status="queued")
        )
        self.controller.on(
            "GET",
            "/v2/jobs/job-1",
            v2("job-1", status="running"),
            v2("job-1", status="finished"),
        )

        await self.services.unbind(UnbindServiceInstanceRequest("web", "db"))

        [(_, _, kwargs)] = self.controller.requests("DELETE")
        self.assertEqual(kwargs["params"], {"async": "true"})
        self.assertEqual(len(self.controller.requests("GET", "/v2/jobs/job-1")), 2)
        self.assertEqual(self.sleeps, [0.5])

    async def test_unbind_not_bound(self) -> None:
        with self.assertRaises(NotBoundError) as ctx:
            await self.services.unbind(UnbindServiceInstanceRequest("web", "db"))

        self.assertEqual(ctx.exception.application_name, "web")
        self.assertEqual(self.controller.requests("DELETE"), [])

    async def test_failed_job_raises(self) -> None:
        self.controller.add_listing(
            "/v2/apps/app-1/service_bindings", {"q": "service_instance_guid:si-1"}, [v2("b-1")]
        )
        self.controller.on(
            "DELETE",
            "/v2/service_bindings/b-1",
            v2(
                "job-1",
                status="failed",
                error_details={"code": 10001, "description": "broker error", "error_code": "CF-X"},
            ),
        )

        with self.assertRaises(OperationFailedError) as ctx:
            await self.services.unbind(UnbindServiceInstanceRequest("web", "db"))
        self.assertEqual(ctx.exception.description, "broker error")


class TestBindRoute(ServicesTestCase):
    async def asyncSetUp(self) -> None:
        await super().asyncSetUp()
        self.add_instance("logger", v2("si-1", name="logger"))
        self.controller.add_listing(
            "/v2/domains", {"q": "name:example.com"}, [v2("d-1", name="example.com")]
        )
        self.controller.add_listing(
            "/v2/routes", {"q": ["domain_guid:d-1", "host:www", "path:/api"]}, [v2("r-1", host="www")]
        )

    async def test_bind_route(self) -> None:
        self.controller.on("PUT", "/v2/service_instances/si-1/routes/r-1", v2("si-1"))

        await self.services.bind_route(
            BindRouteServiceInstanceRequest("logger", "example.com", "www", "/api", {"k": "v"})
        )

        [(_, _, kwargs)] = self.controller.requests("PUT")
        self.assertEqual(kwargs["json"], {"parameters": {"k": "v"}})

    async def test_already_bound_to_route_is_success(self) -> None:
        self.controller.on(
            "PUT",
            "/v2/service_instances/si-1/routes/r-1",
            InvalidArgumentError(
                "already bound",
                status_code=400,
                code=130008,
                error_code="CF-ServiceInstanceAlreadyBoundToSameRoute",
            ),
        )

        await self.services.bind_route(
            BindRouteServiceInstanceRequest("logger", "example.com", "www", "/api")
        )

    async def test_missing_route(self) -> None:
        with self.assertRaises(NotFoundError) as ctx:
            await self.services.bind_route(
                BindRouteServiceInstanceRequest("logger", "example.com", "api")
            )
        self.assertEqual(ctx.exception.name, "api.example.com")


class TestCreateInstance(ServicesTestCase):
    async def asyncSetUp(self) -> None:
        await super().asyncSetUp()
        self.add_service(
            "mysql", "svc-1", [v2("p-small", name="small"), v2("p-large", name="large")]
        )

    async def test_create_waits_for_last_operation(self) -> None:
        self.controller.on(
            "POST",
            "/v2/service_instances",
            v2("si-9", name="db", last_operation={"type": "create", "state": "in progress"}),
        )
        self.controller.on(
            "GET",
            "/v2/service_instances/si-9",
            v2("si-9", last_operation={"state": "in progress"}),
            v2("si-9", last_operation={"state": "succeeded"}),
        )

        await self.services.create_instance(
            CreateServiceInstanceRequest("mysql", "large", "db", {"size": 1}, ["a"])
        )

        [(_, _, kwargs)] = self.controller.requests("POST")
        self.assertEqual(kwargs["params"], {"accepts_incomplete": "true"})
        self.assertEqual(
            kwargs["json"],
            {
                "name": "db",
                "service_plan_guid": "p-large",
                "space_guid": "space-1",
                "parameters": {"size": 1},
                "tags": ["a"],
            },
        )
        self.assertEqual(len(self.controller.requests("GET")), 2)

    async def test_synchronous_create_does_not_poll(self) -> None:
        self.controller.on(
            "POST",
            "/v2/service_instances",
            v2("si-9", name="db", last_operation={"type": "create", "state": "succeeded"}),
        )

        await self.services.create_instance(CreateServiceInstanceRequest("mysql", "small", "db"))

        self.assertEqual(self.controller.requests("GET"), [])
        self.assertNotIn("tags", self.controller.requests("POST")[0][2]["json"])

    async def test_failed_create_reports_description(self) -> None:
        self.controller.on(
            "POST", "/v2/service_instances", v2("si-9", last_operation={"state": "in progress"})
        )
        self.controller.on(
            "GET",
            "/v2/service_instances/si-9",
            v2("si-9", last_operation={"state": "failed", "description": "quota exceeded"}),
        )

        with self.assertRaises(OperationFailedError) as ctx:
            await self.services.create_instance(CreateServiceInstanceRequest("mysql", "small", "db"))
        self.assertEqual(str(ctx.exception), "quota exceeded")

    async def test_unknown_plan(self) -> None:
        with self.assertRaises(NotFoundError) as ctx:
            await self.services.create_instance(CreateServiceInstanceRequest("mysql", "huge", "db"))
        self.assertEqual(str(ctx.exception), "Service plan huge does not exist")
        self.assertEqual(self.controller.requests("POST"), [])


class TestUpdateInstance(ServicesTestCase):
    async def asyncSetUp(self) -> None:
        await super().asyncSetUp()
        self.add_instance("db", v2("si-1", name="db", service_plan_guid="p-small"))
        self.controller.on(
            "GET", "/v2/service_plans/p-small", v2("p-small", name="small", service_guid="svc-1")
        )

    def _service(self, *, updateable: bool, plans: list[dict]) -> None:
        self.controller.on(
            "GET", "/v2/services/svc-1", v2("svc-1", label="mysql", plan_updateable=updateable)
        )
        self.controller.add_listing("/v2/service_plans", {"q": "service_guid:svc-1"}, plans)

    def _visibilities(self, plan_id: str, resources: list[dict]) -> None:
        self.controller.add_listing(
            "/v2/service_plan_visibilities",
            {"q": ["organization_guid:org-1", f"service_plan_guid:{plan_id}"]},
            resources,
        )

    async def test_change_to_public_plan(self) -> None:
        self._service(updateable=True, plans=[v2("p-large", name="large", public=True)])
        self.controller.on(
            "PUT", "/v2/service_instances/si-1", v2("si-1", last_operation={"state": "succeeded"})
        )

        await self.services.update_instance(UpdateServiceInstanceRequest("db", "large"))

        [(_, _, kwargs)] = self.controller.requests("PUT")
        self.assertEqual(kwargs["json"], {"service_plan_guid": "p-large"})
        self.assertEqual(kwargs["params"], {"accepts_incomplete": "true"})

    async def test_private_plan_with_visibility(self) -> None:
        self._service(updateable=True, plans=[v2("p-large", name="large", public=False)])
        self._visibilities("p-large", [v2("vis-1")])
        self.controller.on(
            "PUT", "/v2/service_instances/si-1", v2("si-1", last_operation={"state": "in progress"})
        )
        self.controller.on(
            "GET", "/v2/service_instances/si-1", v2("si-1", last_operation={"state": "succeeded"})
        )

        await self.services.update_instance(UpdateServiceInstanceRequest("db", "large"))

        self.assertEqual(len(self.controller.requests("GET", "/v2/service_instances/si-1")), 1)
        self.assertEqual(self.controller.open_listings, 0)

    async def test_private_plan_not_visible(self) -> None:
        self._service(updateable=True, plans=[v2("p-large", name="large", public=False)])
        self._visibilities("p-large", [])

        with self.assertRaises(NotVisibleError) as ctx:
            await self.services.update_instance(UpdateServiceInstanceRequest("db", "large"))

        self.assertEqual(str(ctx.exception), "Service Plan large is not visible to your organization")
        self.assertEqual(self.controller.requests("PUT"), [])

    async def test_plan_not_updatable(self) -> None:
        self._service(updateable=False, plans=[v2("p-large", name="large", public=True)])

        with self.assertRaises(NotUpdatableError):
            await self.services.update_instance(UpdateServiceInstanceRequest("db", "large"))
        self.assertEqual(self.controller.requests("PUT"), [])

    async def test_unknown_plan(self) -> None:
        self._service(updateable=True, plans=[v2("p-large", name="large", public=True)])

        with self.assertRaises(NotFoundError):
            await self.services.update_instance(UpdateServiceInstanceRequest("db", "huge"))

    async def test_instance_without_plan(self) -> None:
        self.add_instance(
            "ups", v2("ups-1", name="ups", type="user_provided_service_instance")
        )

        with self.assertRaises(NotUpdatableError) as ctx:
            await self.services.update_instance(UpdateServiceInstanceRequest("ups", "large"))
        self.assertEqual(str(ctx.exception), "Plan does not exist for the ups service")

    async def test_tags_only(self) -> None:
        self.controller.on("PUT", "/v2/service_instances/si-1", v2("si-1"))

        await self.services.update_instance(UpdateServiceInstanceRequest("db", tags=["x"]))

        [(_, _, kwargs)] = self.controller.requests("PUT")
        self.assertEqual(kwargs["json"], {"tags": ["x"]})
        self.assertEqual(self.controller.requests("GET"), [])


class TestDeleteInstance(ServicesTestCase):
    async def test_managed_delete_not_found_while_polling_is_success(self) -> None:
        self.add_instance("db", v2("si-1", name="db", type="managed_service_instance"))
        self.controller.on(
            "DELETE",
            "/v2/service_instances/si-1",
            v2("si-1", last_operation={"type": "delete", "state": "in progress"}),
        )
        self.controller.on(
            "GET",
            "/v2/service_instances/si-1",
            v2("si-1", last_operation={"type": "delete", "state": "in progress"}),
            ResourceNotFoundError("gone", status_code=404),
        )

        await self.services.delete_instance(DeleteServiceInstanceRequest("db"))

        [(_, _, kwargs)] = self.controller.requests("DELETE")
        self.assertEqual(kwargs["params"], {"async": "true", "accepts_incomplete": "true"})
        self.assertEqual(len(self.controller.requests("GET")), 2)

    async def test_managed_delete_job(self) -> None:
        self.add_instance("db", v2("si-1", name="db"))
        self.controller.on("DELETE", "/v2/service_instances/si-1", v2("job-2", status="queued"))
        self.controller.on("GET", "/v2/jobs/job-2", v2("job-2", status="finished"))

        await self.services.delete_instance(DeleteServiceInstanceRequest("db"))

        self.assertEqual(len(self.controller.requests("GET", "/v2/jobs/job-2")), 1)

    async def test_server_errors_while_polling_propagate(self) -> None:
        self.add_instance("db", v2("si-1", name="db"))
        self.controller.on(
            "DELETE", "/v2/service_instances/si-1", v2("si-1", last_operation={"state": "in progress"})
        )
        self.controller.on("GET", "/v2/service_instances/si-1", ApiError("boom", status_code=500))

        with self.assertRaises(ApiError):
            await self.services.delete_instance(DeleteServiceInstanceRequest("db"))

    async def test_user_provided_delete(self) -> None:
        self.add_instance("ups", v2("ups-1", name="ups", type="user_provided_service_instance"))
        self.controller.on("DELETE", "/v2/user_provided_service_instances/ups-1", None)

        await self.services.delete_instance(DeleteServiceInstanceRequest("ups"))

        self.assertEqual(
            [c[1] for c in self.controller.requests("DELETE")],
            ["/v2/user_provided_service_instances/ups-1"],
        )


class TestInstanceQueries(ServicesTestCase):
    async def asyncSetUp(self) -> None:
        await super().asyncSetUp()
        self.instance = v2(
            "si-1",
            name="db",
            type="managed_service_instance",
            service_plan_guid="p-1",
            dashboard_url="https://dash.example.com",
            tags=["sql"],
            last_operation={
                "type": "update",
                "state": "succeeded",
                "description": "done",
                "created_at": "2024-05-01T10:00:00Z",
                "updated_at": "2024-05-01T10:05:00Z",
            },
        )
        self.add_instance("db", self.instance)
        self.controller.on("GET", "/v2/service_plans/p-1", v2("p-1", name="small", service_guid="svc-1"))
        self.controller.on(
            "GET",
            "/v2/services/svc-1",
            v2(
                "svc-1",
                label="mysql",
                description="MySQL databases",
                extra='{"documentationUrl": "https://docs.example.com/mysql"}',
            ),
        )
        self.controller.add_listing(
            "/v2/service_bindings", {"q": "service_instance_guid:si-1"}, [v2("b-1", app_guid="app-1")]
        )
        self.controller.on("GET", "/v2/apps/app-1", v2("app-1", name="web"))

    async def test_get_instance(self) -> None:
        instance = await self.services.get_instance(GetServiceInstanceRequest("db"))

        self.assertEqual(instance.id, "si-1")
        self.assertEqual(instance.type, ServiceInstanceType.MANAGED)
        self.assertEqual(instance.plan, "small")
        self.assertEqual(instance.service, "mysql")
        self.assertEqual(instance.description, "MySQL databases")
        self.assertEqual(instance.documentation_url, "https://docs.example.com/mysql")
        self.assertEqual(instance.applications, ["web"])
        self.assertEqual(instance.tags, ["sql"])
        self.assertEqual(instance.last_operation, "update")
        self.assertEqual(instance.status, "succeeded")
        self.assertEqual(instance.message, "done")
        self.assertEqual(instance.updated_at.minute, 5)

    async def test_list_instances(self) -> None:
        self.controller.add_listing(
            SPACE_INSTANCES,
            {"return_user_provided_service_instances": "true"},
            [self.instance, v2("ups-1", name="ups", type="user_provided_service_instance")],
        )
        self.controller.add_listing(
            "/v2/service_bindings", {"q": "service_instance_guid:ups-1"}, []
        )

        instances = [i async for i in self.services.list_instances()]

        self.assertEqual([i.name for i in instances], ["db", "ups"])
        self.assertEqual(instances[1].type, ServiceInstanceType.USER_PROVIDED)
        self.assertIsNone(instances[1].plan)
        self.assertEqual(instances[1].applications, [])

    async def test_rename(self) -> None:
        self.controller.on("PUT", "/v2/service_instances/si-1", v2("si-1", name="db2"))

        await self.services.rename_instance(RenameServiceInstanceRequest("db", "db2"))

        self.assertEqual(self.controller.requests("PUT")[0][2]["json"], {"name": "db2"})

    async def test_list_service_offerings(self) -> None:
        self.controller.add_listing(
            "/v2/spaces/space-1/services",
            None,
            [v2("svc-1", label="mysql", description="MySQL databases", tags=["sql"])],
        )
        self.controller.add_listing(
            "/v2/service_plans",
            {"q": "service_guid:svc-1"},
            [v2("p-1", name="small", free=True), v2("p-2", name="large", free=False)],
        )

        offerings = [o async for o in self.services.list_service_offerings()]

        self.assertEqual(len(offerings), 1)
        self.assertEqual(offerings[0].label, "mysql")
        self.assertEqual([p.name for p in offerings[0].service_plans], ["small", "large"])
        self.assertTrue(offerings[0].service_plans[0].free)


class TestUserProvided(ServicesTestCase):
    async def test_create(self) -> None:
        self.controller.on("POST", "/v2/user_provided_service_instances", v2("ups-1"))

        await self.services.create_user_provided_instance(
            CreateUserProvidedServiceInstanceRequest("ups", {"user": "u"}, syslog_drain_url="syslog://x")
        )

        self.assertEqual(
            self.controller.requests("POST")[0][2]["json"],
            {
                "name": "ups",
                "credentials": {"user": "u"},
                "space_guid": "space-1",
                "syslog_drain_url": "syslog://x",
            },
        )

    async def test_update_ignores_managed_instances(self) -> None:
        self.add_instance("db", v2("si-1", name="db", type="managed_service_instance"))

        with self.assertRaises(NotFoundError):
            await self.services.update_user_provided_instance(
                UpdateUserProvidedServiceInstanceRequest("db", {"a": "b"})
            )

    async def test_update(self) -> None:
        self.add_instance("ups", v2("ups-1", name="ups", type="user_provided_service_instance"))
        self.controller.on("PUT", "/v2/user_provided_service_instances/ups-1", v2("ups-1"))

        await self.services.update_user_provided_instance(
            UpdateUserProvidedServiceInstanceRequest("ups", {"a": "b"})
        )

        self.assertEqual(self.controller.requests("PUT")[0][2]["json"], {"credentials": {"a": "b"}})


class TestServiceKeys(ServicesTestCase):
    async def asyncSetUp(self) -> None:
        await super().asyncSetUp()
        self.add_instance("db", v2("si-1", name="db"))
        key = v2("k-1", name="ci", credentials={"password": "secret"})
        self.controller.add_listing(
            "/v2/service_instances/si-1/service_keys", {"q": "name:ci"}, [key]
        )
        self.controller.add_listing("/v2/service_instances/si-1/service_keys", None, [key])

    async def test_create(self) -> None:
        self.controller.on("POST", "/v2/service_keys", v2("k-2"))

        await self.services.create_service_key(CreateServiceKeyRequest("db", "deploy"))

        self.assertEqual(
            self.controller.requests("POST")[0][2]["json"],
            {"service_instance_guid": "si-1", "name": "deploy"},
        )

    async def test_get(self) -> None:
        key = await self.services.get_service_key(GetServiceKeyRequest("db", "ci"))
        self.assertEqual((key.id, key.name, key.credentials), ("k-1", "ci", {"password": "secret"}))

    async def test_list(self) -> None:
        keys = [k async for k in self.services.list_service_keys(ListServiceKeysRequest("db"))]
        self.assertEqual([k.name for k in keys], ["ci"])

    async def test_delete(self) -> None:
        self.controller.on("DELETE", "/v2/service_keys/k-1", None)

        await self.services.delete_service_key(DeleteServiceKeyRequest("db", "ci"))

        self.assertEqual(len(self.controller.requests("DELETE", "/v2/service_keys/k-1")), 1)

    async def test_delete_missing_key(self) -> None:
        with self.assertRaises(NotFoundError):
            await self.services.delete_service_key(DeleteServiceKeyRequest("db", "other"))
        self.assertEqual(self.controller.requests("DELETE"), [])


if __name__ == "__main__":
    unittest.main()

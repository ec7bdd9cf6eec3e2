"""Route operations (v3 API) for one targeted organization and space."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from cfops.config import OperationTimeouts
from cfops.controller import ApiResponse, CloudFoundryController
from cfops.errors import ValidationError
from cfops.models import DeleteRouteRequest, check
from cfops.operation import wait_for_job_v3
from cfops.util.lookup import expect_single

logger = logging.getLogger(__name__)


class Routes:
    """Delete routes and wait for the v3 jobs the platform runs for it."""

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

    async def delete_route(self, request: DeleteRouteRequest) -> None:
        """Delete the route host.domain[:port][/path] of the organization."""
        check(request)
        domain = await expect_single(
            self._controller.list_v3(
                "/v3/domains",
                {"names": request.domain, "organization_guids": self._organization_id},
            ),
            "Domain",
            request.domain,
        )

        params: dict[str, Any] = {
            "domain_guids": domain.id,
            "organization_guids": self._organization_id,
            "hosts": request.host or "",
            "paths": request.path or "",
        }
        if request.port is not None:
            params["ports"] = request.port
        route = await expect_single(
            self._controller.list_v3("/v3/routes", params),
            "Route",
            _route_name(request),
        )

        response = await self._controller.delete(f"/v3/routes/{route.id}")
        await self._wait(response, request.completion_timeout)

    async def delete_orphaned_routes(self, completion_timeout: Optional[float] = None) -> None:
        """Delete every route of the space that is not mapped to an application."""
        if completion_timeout is not None and completion_timeout <= 0:
            raise ValidationError("completion_timeout", "must be positive")
        response = await self._controller.delete(
            f"/v3/spaces/{self._space_id}/routes", params={"unmapped": "true"}
        )
        await self._wait(response, completion_timeout)

    async def _wait(self, response: ApiResponse, completion_timeout: Optional[float]) -> None:
        if not response.location:
            logger.debug("No job returned (status %d); nothing to wait for", response.status_code)
            return
        await wait_for_job_v3(
            self._controller,
            response.location,
            timeouts=self._timeouts.with_completion(completion_timeout),
            sleep=self._sleep,
        )


def _route_name(request: DeleteRouteRequest) -> str:
    name = f"{request.host}.{request.domain}" if request.host else request.domain
    if request.port is not None:
        name = f"{name}:{request.port}"
    return f"{name}{request.path}" if request.path else name

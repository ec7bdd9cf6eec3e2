"""CloudFoundryOperations: org/space targeting and access to the operation groups."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from cfops.applications import Applications
from cfops.auth import AuthInfo
from cfops.config import ConnectionInfo, OperationTimeouts
from cfops.controller import CloudFoundryController
from cfops.errors import InvalidStateError, ValidationError
from cfops.routes import Routes
from cfops.services import Services
from cfops.upload import BufferPool
from cfops.util.lookup import expect_single

logger = logging.getLogger(__name__)


class CloudFoundryOperations:
    """
    High-level entry point.

    Usage:
        async with CloudFoundryOperations(ConnectionInfo.from_env(), AuthInfo.from_env()) as cf:
            await cf.target("my-org", "dev")
            await cf.services.bind(BindServiceInstanceRequest("app", "db"))

    Notes:
        - services, routes and applications require target() first.
        - The buffer pool sweeper runs between __aenter__ and __aexit__.
    """

    def __init__(
        self,
        connection: ConnectionInfo,
        auth_info: Optional[AuthInfo] = None,
        *,
        timeouts: Optional[OperationTimeouts] = None,
        pool: Optional[BufferPool] = None,
    ) -> None:
        self._controller = CloudFoundryController(connection, auth_info)
        self._timeouts = timeouts or OperationTimeouts()
        self._pool = pool or BufferPool()
        self._sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
        self._organization_id: Optional[str] = None
        self._space_id: Optional[str] = None

    @classmethod
    def from_controller(
        cls,
        controller: CloudFoundryController,
        *,
        timeouts: Optional[OperationTimeouts] = None,
        pool: Optional[BufferPool] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> "CloudFoundryOperations":
        """Create operations with an injected controller (useful for tests)."""
        obj = cls.__new__(cls)
        obj._controller = controller
        obj._timeouts = timeouts or OperationTimeouts()
        obj._pool = pool or BufferPool()
        obj._sleep = sleep
        obj._organization_id = None
        obj._space_id = None
        return obj

    async def __aenter__(self) -> "CloudFoundryOperations":
        self._pool.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        self._pool.stop()
        await self._controller.aclose()

    async def target(self, organization: str, space: str) -> None:
        """
        Select the organization and space later operations run against.

        Raises:
            ValidationError: if a name is empty.
            NotFoundError / AmbiguousMatchError: if a name does not resolve to one resource.
        """
        if not organization or not organization.strip():
            raise ValidationError("organization", "is required")
        if not space or not space.strip():
            raise ValidationError("space", "is required")

        org = await expect_single(
            self._controller.list_v2("/v2/organizations", {"q": f"name:{organization}"}),
            "Organization",
            organization,
        )
        target_space = await expect_single(
            self._controller.list_v2(f"/v2/organizations/{org.id}/spaces", {"q": f"name:{space}"}),
            "Space",
            space,
        )
        self._organization_id = org.id
        self._space_id = target_space.id
        logger.info("Targeted organization %s, space %s", organization, space)

    @property
    def organization_id(self) -> str:
        if self._organization_id is None:
            raise InvalidStateError("No organization targeted. Call target() first.")
        return self._organization_id

    @property
    def space_id(self) -> str:
        if self._space_id is None:
            raise InvalidStateError("No space targeted. Call target() first.")
        return self._space_id

    @property
    def services(self) -> Services:
        return Services(
            self._controller,
            self.organization_id,
            self.space_id,
            timeouts=self._timeouts,
            sleep=self._sleep,
        )

    @property
    def routes(self) -> Routes:
        return Routes(
            self._controller,
            self.organization_id,
            self.space_id,
            timeouts=self._timeouts,
            sleep=self._sleep,
        )

    @property
    def applications(self) -> Applications:
        return Applications(
            self._controller,
            self.space_id,
            pool=self._pool,
            timeouts=self._timeouts,
            sleep=self._sleep,
        )

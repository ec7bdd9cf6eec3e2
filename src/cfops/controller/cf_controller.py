"""Cloud Controller REST transport (internal use only)."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Callable, Optional

import httpx

from cfops.auth import AuthInfo, OAuthClient
from cfops.config import ConnectionInfo
from cfops.errors import (
    ApiError,
    CFOpsError,
    DelayTimeoutError,
    HttpErrorInfo,
    NetworkError,
    RateLimitError,
    map_http_error,
)
from cfops.models.page import Page, page_from_v2, page_from_v3
from cfops.models.resource import Resource, resource_from_v2, resource_from_v3
from cfops.util.delay import ExponentialBackoff
from cfops.util.pagination import all_pages

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _RetryPolicy:
    max_retries: int = 3
    initial_delay_sec: float = 1.0
    max_delay_sec: float = 15.0
    deadline_sec: float = 120.0


@dataclass(slots=True, frozen=True)
class ApiResponse:
    """Decoded response: JSON payload (or text, or None when empty) and Location header."""

    status_code: int
    payload: Any = None
    location: Optional[str] = None


class CloudFoundryController:
    """
    Cloud Controller API controller (internal only).

    Notes:
        - GET requests are retried on 429, 5xx and network errors.
        - Mutating requests are sent exactly once.
        - A 401 triggers one forced token refresh and a resend.
    """

    def __init__(
        self,
        connection: ConnectionInfo,
        auth_info: Optional[AuthInfo] = None,
        *,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._auth = OAuthClient(auth_info) if auth_info is not None else None
        self._retry_policy = _RetryPolicy()
        self._sleep = sleep
        self._client = httpx.AsyncClient(
            base_url=connection.api_endpoint,
            verify=not connection.skip_ssl_validation,
            timeout=connection.request_timeout,
            headers={"User-Agent": connection.user_agent, "Accept": "application/json"},
        )

    @classmethod
    def from_client(
        cls,
        http_client: httpx.AsyncClient,
        *,
        auth: Any = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> "CloudFoundryController":
        """Create controller from a pre-built httpx client (useful for tests).

        auth is anything with ``authorization_header(force_refresh: bool) -> str``.
        """
        obj = cls.__new__(cls)
        obj._auth = auth
        obj._retry_policy = _RetryPolicy()
        obj._sleep = sleep
        obj._client = http_client
        return obj

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "CloudFoundryController":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # ----------------------------
    # Public API
    # ----------------------------
    async def get(self, path: str, *, params: Optional[dict[str, Any]] = None) -> ApiResponse:
        return await self.request("GET", path, params=params)

    async def post(
        self,
        path: str,
        *,
        params: Optional[dict[str, Any]] = None,
        json: Any = None,
        files: Any = None,
        data: Any = None,
    ) -> ApiResponse:
        return await self.request("POST", path, params=params, json=json, files=files, data=data)

    async def put(
        self,
        path: str,
        *,
        params: Optional[dict[str, Any]] = None,
        json: Any = None,
    ) -> ApiResponse:
        return await self.request("PUT", path, params=params, json=json)

    async def patch(
        self,
        path: str,
        *,
        params: Optional[dict[str, Any]] = None,
        json: Any = None,
    ) -> ApiResponse:
        return await self.request("PATCH", path, params=params, json=json)

    async def delete(self, path: str, *, params: Optional[dict[str, Any]] = None) -> ApiResponse:
        return await self.request("DELETE", path, params=params)

    def list_v2(
        self,
        path: str,
        params: Optional[dict[str, Any]] = None,
        *,
        parse: Callable[[dict[str, Any]], Any] = resource_from_v2,
    ) -> AsyncIterator[Resource]:
        """Every resource of a v2 listing (``page`` query parameter, ``total_pages``)."""

        async def fetch(page: int) -> Page[Any]:
            response = await self.get(path, params={**(params or {}), "page": page})
            return page_from_v2(response.payload or {}, parse)

        return all_pages(fetch)

    def list_v3(
        self,
        path: str,
        params: Optional[dict[str, Any]] = None,
        *,
        parse: Callable[[dict[str, Any]], Any] = resource_from_v3,
    ) -> AsyncIterator[Resource]:
        """Every resource of a v3 listing (``page`` query parameter, ``pagination.total_pages``)."""

        async def fetch(page: int) -> Page[Any]:
            response = await self.get(path, params={**(params or {}), "page": page})
            return page_from_v3(response.payload or {}, parse)

        return all_pages(fetch)

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict[str, Any]] = None,
        json: Any = None,
        files: Any = None,
        data: Any = None,
    ) -> ApiResponse:
        method = method.upper()
        safe = method == "GET"
        schedule = ExponentialBackoff(
            self._retry_policy.initial_delay_sec,
            self._retry_policy.max_delay_sec,
            self._retry_policy.deadline_sec,
        )
        force_refresh = False
        refreshed = False
        attempt = 0

        while True:
            try:
                response = await self._send(
                    method,
                    path,
                    params=params,
                    json=json,
                    files=files,
                    data=data,
                    force_refresh=force_refresh,
                )
            except httpx.HTTPError as exc:
                mapped: CFOpsError = NetworkError(
                    "Network error",
                    details={"method": method, "path": path},
                    cause=exc,
                )
            else:
                if response.status_code == 401 and self._auth is not None and not refreshed:
                    logger.warning("401 from %s %s; refreshing token", method, path)
                    refreshed = force_refresh = True
                    continue
                if response.is_success:
                    return _to_api_response(response)
                mapped = map_http_error(_http_error_to_info(response))

            delay = None
            if safe and self._should_retry(mapped) and attempt < self._retry_policy.max_retries:
                try:
                    delay = next(schedule)
                except DelayTimeoutError:
                    logger.warning("%s %s: retry deadline passed; giving up", method, path)

            if delay is not None:
                attempt += 1
                logger.warning(
                    "%s %s failed (%s); retry %d/%d in %.1fs",
                    method,
                    path,
                    mapped,
                    attempt,
                    self._retry_policy.max_retries,
                    delay,
                )
                await self._sleep(delay)
                continue

            if mapped.cause is not None:
                raise mapped from mapped.cause
            raise mapped

    # ----------------------------
    # Internals
    # ----------------------------
    async def _send(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict[str, Any]],
        json: Any,
        files: Any,
        data: Any,
        force_refresh: bool,
    ) -> httpx.Response:
        headers: dict[str, str] = {}
        if self._auth is not None:
            headers["Authorization"] = await asyncio.to_thread(
                self._auth.authorization_header, force_refresh
            )

        logger.debug("Request: %s %s params=%s", method, path, params)
        response = await self._client.request(
            method,
            path,
            params=params,
            json=json,
            files=files,
            data=data,
            headers=headers,
        )
        logger.debug("Response: %s %s -> %d", method, path, response.status_code)
        return response

    def _should_retry(self, exc: Exception) -> bool:
        if isinstance(exc, RateLimitError):
            return True
        if isinstance(exc, NetworkError):
            return True
        if isinstance(exc, ApiError):
            return 500 <= exc.status_code <= 599
        return False


def _to_api_response(response: httpx.Response) -> ApiResponse:
    return ApiResponse(
        status_code=response.status_code,
        payload=_decode(response),
        location=response.headers.get("Location"),
    )


def _decode(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def _http_error_to_info(response: httpx.Response) -> HttpErrorInfo:
    """Parse v2 ``{code, description, error_code}`` or v3 ``{errors: [...]}`` bodies."""
    payload = _decode(response)
    code = None
    error_code = None
    description = None
    details: dict[str, Any] = {"method": response.request.method, "url": str(response.request.url)}

    if isinstance(payload, dict):
        errors = payload.get("errors")
        if isinstance(errors, list) and errors and isinstance(errors[0], dict):
            first = errors[0]
            code = first.get("code")
            error_code = first.get("title")
            description = first.get("detail")
            if len(errors) > 1:
                details["errors"] = errors
        else:
            code = payload.get("code")
            error_code = payload.get("error_code")
            description = payload.get("description")
    elif isinstance(payload, str) and payload.strip():
        description = payload.strip()

    return HttpErrorInfo(
        status_code=response.status_code,
        code=code if isinstance(code, int) else None,
        error_code=error_code if isinstance(error_code, str) else None,
        description=description if isinstance(description, str) else response.reason_phrase,
        details=details,
    )

"""Connection and timeout configuration for cfops."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_USER_AGENT = "cfops/0.1.0"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


@dataclass(slots=True, frozen=True)
class ConnectionInfo:
    """
    Where and how to reach the Cloud Controller.

    Notes:
        - api_endpoint is the API root, e.g. ``https://api.example.com``.
        - skip_ssl_validation disables TLS certificate checks.
    """

    api_endpoint: str
    skip_ssl_validation: bool = False
    request_timeout: float = 60.0
    user_agent: str = DEFAULT_USER_AGENT

    def __post_init__(self) -> None:
        if not isinstance(self.api_endpoint, str) or not self.api_endpoint.strip():
            raise ValueError("api_endpoint must be a non-empty string")
        if not self.api_endpoint.startswith(("http://", "https://")):
            raise ValueError("api_endpoint must start with http:// or https://")
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be > 0")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ConnectionInfo":
        """Build from CFOPS_API_ENDPOINT, CFOPS_SKIP_SSL_VALIDATION and CFOPS_REQUEST_TIMEOUT."""
        env = os.environ if environ is None else environ
        timeout = env.get("CFOPS_REQUEST_TIMEOUT")
        return cls(
            api_endpoint=env.get("CFOPS_API_ENDPOINT", ""),
            skip_ssl_validation=env.get("CFOPS_SKIP_SSL_VALIDATION", "").strip().lower()
            in _TRUE_VALUES,
            request_timeout=float(timeout) if timeout else 60.0,
        )


@dataclass(slots=True, frozen=True)
class OperationTimeouts:
    """Polling parameters for long-running operations (seconds)."""

    completion: float = 300.0
    minimum_delay: float = 1.0
    maximum_delay: float = 15.0

    def __post_init__(self) -> None:
        if self.completion <= 0:
            raise ValueError("completion must be > 0")
        if self.minimum_delay <= 0:
            raise ValueError("minimum_delay must be > 0")
        if self.maximum_delay < self.minimum_delay:
            raise ValueError("maximum_delay must be >= minimum_delay")

    def with_completion(self, completion: Optional[float]) -> "OperationTimeouts":
        """Return a copy with another completion timeout (None keeps this one)."""
        if completion is None:
            return self
        return OperationTimeouts(completion, self.minimum_delay, self.maximum_delay)

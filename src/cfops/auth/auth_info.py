"""Authentication information for cfops (UAA OAuth tokens)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Mapping, Optional


@dataclass(slots=True, frozen=True)
class AuthInfo:
    """
    Authentication information.

    Only OAuth is supported:
        kind = "oauth"
        data must include:
            - token_file: authorized-user JSON with token, refresh_token,
              token_uri (the UAA ``/oauth/token`` endpoint), client_id and
              client_secret (``cf`` and an empty secret for the CLI client).
    """

    kind: str
    data: dict[str, Any]

    def __post_init__(self) -> None:
        if self.kind != "oauth":
            raise ValueError("AuthInfo.kind must be 'oauth'")

        if not isinstance(self.data, dict):
            raise TypeError("AuthInfo.data must be a dict")

        value = self.data.get("token_file")
        if not isinstance(value, str) or not value.strip():
            raise ValueError("AuthInfo.data['token_file'] must be a non-empty string")

    @property
    def token_file(self) -> str:
        """Path to the OAuth token JSON (authorized user)."""
        return str(self.data["token_file"])

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AuthInfo":
        """Build from CFOPS_TOKEN_FILE."""
        env = os.environ if environ is None else environ
        return cls(kind="oauth", data={"token_file": env.get("CFOPS_TOKEN_FILE", "")})

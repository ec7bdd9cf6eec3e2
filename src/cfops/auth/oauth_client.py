"""OAuth client utilities for cfops."""

from __future__ import annotations

import os
import threading
from typing import Optional, Sequence

from cfops.errors import AuthError, InvalidArgumentError

from .auth_info import AuthInfo


class OAuthClient:
    """Load, refresh and persist UAA OAuth credentials."""

    def __init__(self, auth_info: AuthInfo) -> None:
        if auth_info.kind != "oauth":
            raise InvalidArgumentError("OAuthClient requires AuthInfo(kind='oauth')")
        self._auth_info = auth_info
        self._creds = None
        self._lock = threading.RLock()

    def get_credentials(
        self,
        scopes: Optional[Sequence[str]] = None,
        ensure_valid: bool = True,
    ):
        """
        Return OAuth credentials from the token file.

        Args:
            scopes: Optional OAuth scopes; UAA grants the client's defaults when omitted.
            ensure_valid: If True, refresh credentials when they are expired.

        Returns:
            google.oauth2.credentials.Credentials

        Raises:
            AuthError: on load/refresh failures or a missing token file.
            InvalidArgumentError: if scopes is invalid.
        """
        if scopes is not None and not all(isinstance(s, str) and s.strip() for s in scopes):
            raise InvalidArgumentError("scopes must be a sequence of non-empty strings")

        with self._lock:
            return self._load(scopes, ensure_valid)

    def authorization_header(self, force_refresh: bool = False) -> str:
        """
        Return the ``Authorization`` header value (``bearer <token>``).

        Credentials are loaded on first use and refreshed when expired or when
        force_refresh is True. Blocking; run it off the event loop. Concurrent
        forced refreshes of the same rejected token refresh it once.
        """
        rejected = self._creds.token if force_refresh and self._creds is not None else None
        with self._lock:
            if self._creds is None:
                self._load(None, True)
                if force_refresh:
                    rejected = self._creds.token

            creds = self._creds
            if not creds.valid or (rejected is not None and creds.token == rejected):
                self._refresh(creds)

            return f"bearer {creds.token}"

    def _load(self, scopes: Optional[Sequence[str]], ensure_valid: bool):
        from google.oauth2.credentials import Credentials

        token_file = self._auth_info.token_file
        if not os.path.exists(token_file):
            raise AuthError(
                "token_file does not exist",
                details={"token_file": token_file, "hint": "Run `cf login` and export the token"},
            )

        try:
            creds = Credentials.from_authorized_user_file(
                token_file,
                scopes=list(scopes) if scopes is not None else None,
            )
        except Exception as exc:
            raise AuthError(
                "Failed to load token_file",
                details={"token_file": token_file},
                cause=exc,
            ) from exc

        if ensure_valid and not creds.valid:
            self._refresh(creds)

        self._creds = creds
        return creds

    def _refresh(self, creds) -> None:
        from google.auth.transport.requests import Request

        token_file = self._auth_info.token_file
        if not creds.refresh_token:
            raise AuthError(
                "OAuth credentials are expired and have no refresh_token",
                details={"token_file": token_file},
            )
        try:
            creds.refresh(Request())
        except Exception as exc:
            raise AuthError(
                "Failed to refresh OAuth credentials",
                details={"token_file": token_file},
                cause=exc,
            ) from exc
        self._save_credentials(creds)

    def _save_credentials(self, creds) -> None:
        token_file = self._auth_info.token_file
        token_dir = os.path.dirname(token_file)
        if token_dir:
            os.makedirs(token_dir, exist_ok=True)

        try:
            with open(token_file, "w", encoding="utf-8") as f:
                f.write(creds.to_json())
        except Exception as exc:
            raise AuthError(
                "Failed to save OAuth token file",
                details={"token_file": token_file},
                cause=exc,
            ) from exc

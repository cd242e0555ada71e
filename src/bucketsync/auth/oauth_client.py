"""OAuth credentials and Cloud Storage service construction."""

from __future__ import annotations

import os
from typing import Any, Sequence

from bucketsync.errors import AuthError, InvalidArgumentError
from bucketsync.util.logger import get_logger

from .auth_info import AuthInfo

log = get_logger(__name__)


class OAuthClient:
    """Load, refresh and persist OAuth credentials for the storage API."""

    def __init__(self, auth_info: AuthInfo) -> None:
        if auth_info.kind != "oauth":
            raise InvalidArgumentError("OAuthClient requires AuthInfo(kind='oauth')")
        self._auth_info = auth_info

    def get_credentials(self, scopes: Sequence[str], ensure_valid: bool = True):
        """
        Return OAuth credentials for the given scopes.

        A stored token is reused (and refreshed when ensure_valid is True);
        without a usable token the installed-app flow is run and its result
        saved to token_file.

        Returns:
            google.oauth2.credentials.Credentials

        Raises:
            AuthError: on load/refresh/flow failures.
            InvalidArgumentError: if scopes is invalid.
        """
        if not scopes or not all(isinstance(s, str) and s.strip() for s in scopes):
            raise InvalidArgumentError("scopes must be a non-empty sequence of strings")

        scope_list = list(scopes)
        creds = self._load_token(scope_list)
        if creds is not None:
            if not ensure_valid:
                return creds
            if not creds.valid and creds.refresh_token:
                self._refresh(creds)
            if creds.valid:
                return creds
            log.info("Stored OAuth token is not usable; starting authorization flow")

        return self._run_flow(scope_list)

    def build_storage_service(self, scopes: Sequence[str], ensure_valid: bool = True):
        """
        Build a Cloud Storage JSON API service resource.

        Returns:
            googleapiclient.discovery.Resource
        """
        try:
            from googleapiclient.discovery import build
        except Exception as exc:  # pragma: no cover
            raise AuthError(
                "google-api-python-client is not available",
                details={"hint": "Install google-api-python-client"},
                cause=exc,
            ) from exc

        creds = self.get_credentials(scopes=scopes, ensure_valid=ensure_valid)
        try:
            return build("storage", "v1", credentials=creds, cache_discovery=False)
        except Exception as exc:
            raise AuthError("Failed to build Storage service", cause=exc) from exc

    # ----------------------------
    # Internals
    # ----------------------------
    def _load_token(self, scopes: list[str]) -> Any:
        token_file = self._auth_info.token_file
        if not os.path.exists(token_file):
            return None

        try:
            from google.oauth2.credentials import Credentials
        except Exception as exc:  # pragma: no cover
            raise _missing_auth_libraries(exc) from exc

        try:
            return Credentials.from_authorized_user_file(token_file, scopes=scopes)
        except Exception as exc:
            raise AuthError(
                "Failed to load token_file",
                details={"token_file": token_file},
                cause=exc,
            ) from exc

    def _refresh(self, creds: Any) -> None:
        try:
            from google.auth.transport.requests import Request
        except Exception as exc:  # pragma: no cover
            raise _missing_auth_libraries(exc) from exc

        try:
            creds.refresh(Request())
        except Exception as exc:
            raise AuthError(
                "Failed to refresh OAuth credentials",
                details={"token_file": self._auth_info.token_file},
                cause=exc,
            ) from exc
        self._save_credentials(creds)

    def _run_flow(self, scopes: list[str]) -> Any:
        try:
            from google_auth_oauthlib.flow import InstalledAppFlow
        except Exception as exc:  # pragma: no cover
            raise _missing_auth_libraries(exc) from exc

        client_secrets = self._auth_info.client_secrets_file
        try:
            flow = InstalledAppFlow.from_client_secrets_file(client_secrets, scopes=scopes)
            creds = flow.run_local_server(port=0)
        except Exception as exc:
            raise AuthError(
                "OAuth authorization flow failed",
                details={
                    "client_secrets_file": client_secrets,
                    "token_file": self._auth_info.token_file,
                },
                cause=exc,
            ) from exc
        self._save_credentials(creds)
        return creds

    def _save_credentials(self, creds: Any) -> None:
        token_file = self._auth_info.token_file
        token_dir = os.path.dirname(token_file)
        try:
            if token_dir:
                os.makedirs(token_dir, exist_ok=True)
            with open(token_file, "w", encoding="utf-8") as f:
                f.write(creds.to_json())
        except OSError as exc:
            raise AuthError(
                "Failed to save OAuth token file",
                details={"token_file": token_file},
                cause=exc,
            ) from exc


def _missing_auth_libraries(exc: BaseException) -> AuthError:
    return AuthError(
        "Google auth libraries are not available",
        details={"hint": "Install google-auth and google-auth-oauthlib"},
        cause=exc,
    )

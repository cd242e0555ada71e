"""OAuth client and token locations for the storage API."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Mapping, Optional

ENV_CLIENT_SECRETS = "BUCKETSYNC_CLIENT_SECRETS"
ENV_TOKEN_FILE = "BUCKETSYNC_TOKEN_FILE"

_REQUIRED_KEYS: tuple[str, ...] = ("client_secrets_file", "token_file")


@dataclass(slots=True, frozen=True)
class AuthInfo:
    """
    Where the installed-app OAuth flow finds its inputs.

    kind must be "oauth"; data carries:
        - client_secrets_file: client secrets JSON downloaded from the console
        - token_file: authorized-user token JSON (created on first login)

    A leading "~" in either path is expanded on access.
    """

    kind: str
    data: dict[str, Any]

    def __post_init__(self) -> None:
        if self.kind != "oauth":
            raise ValueError("AuthInfo.kind must be 'oauth'")
        if not isinstance(self.data, dict):
            raise TypeError("AuthInfo.data must be a dict")

        missing = [
            key
            for key in _REQUIRED_KEYS
            if not isinstance(self.data.get(key), str) or not self.data[key].strip()
        ]
        if missing:
            raise ValueError(
                f"AuthInfo.data is missing non-empty path(s): {', '.join(missing)}"
            )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> AuthInfo:
        """Build from BUCKETSYNC_CLIENT_SECRETS and BUCKETSYNC_TOKEN_FILE."""
        env = os.environ if environ is None else environ
        return cls(
            kind="oauth",
            data={
                "client_secrets_file": env.get(ENV_CLIENT_SECRETS, "").strip(),
                "token_file": env.get(ENV_TOKEN_FILE, "").strip(),
            },
        )

    @property
    def client_secrets_file(self) -> str:
        return os.path.expanduser(self.data["client_secrets_file"])

    @property
    def token_file(self) -> str:
        return os.path.expanduser(self.data["token_file"])

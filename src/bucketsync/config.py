"""Storage and session configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from bucketsync.errors import InvalidArgumentError

DEFAULT_SCOPES: tuple[str, ...] = (
    "https://www.googleapis.com/auth/devstorage.read_write",
)
DEFAULT_POLL_INTERVAL_SEC: float = 0.1

ENV_BUCKET = "BUCKETSYNC_BUCKET"
ENV_SCOPES = "BUCKETSYNC_SCOPES"
ENV_POLL_INTERVAL = "BUCKETSYNC_POLL_INTERVAL"


@dataclass(slots=True, frozen=True)
class StorageConfig:
    """
    Settings injected into the manager.

    bucket: Cloud Storage bucket holding every user's namespace.
    scopes: OAuth scopes requested for the storage API.
    poll_interval: seconds between pause/cancel checks while paused.
    """

    bucket: str
    scopes: tuple[str, ...] = field(default=DEFAULT_SCOPES)
    poll_interval: float = DEFAULT_POLL_INTERVAL_SEC

    def __post_init__(self) -> None:
        if not isinstance(self.bucket, str) or not self.bucket.strip():
            raise InvalidArgumentError("StorageConfig.bucket must be a non-empty string")
        if not self.scopes or not all(isinstance(s, str) and s.strip() for s in self.scopes):
            raise InvalidArgumentError("StorageConfig.scopes must be non-empty strings")
        if self.poll_interval <= 0:
            raise InvalidArgumentError(
                "StorageConfig.poll_interval must be positive",
                details={"poll_interval": self.poll_interval},
            )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> StorageConfig:
        """
        Build config from environment variables.

        Required:
            - BUCKETSYNC_BUCKET
        Optional:
            - BUCKETSYNC_SCOPES: comma-separated scopes
            - BUCKETSYNC_POLL_INTERVAL: float seconds
        """
        env = os.environ if environ is None else environ

        bucket = env.get(ENV_BUCKET, "").strip()
        if not bucket:
            raise InvalidArgumentError(f"Missing env var: {ENV_BUCKET}")

        scopes = DEFAULT_SCOPES
        scopes_raw = env.get(ENV_SCOPES, "").strip()
        if scopes_raw:
            scopes = tuple(s.strip() for s in scopes_raw.split(",") if s.strip())

        poll_interval = DEFAULT_POLL_INTERVAL_SEC
        poll_raw = env.get(ENV_POLL_INTERVAL, "").strip()
        if poll_raw:
            try:
                poll_interval = float(poll_raw)
            except ValueError as exc:
                raise InvalidArgumentError(
                    f"{ENV_POLL_INTERVAL} must be a number",
                    details={"value": poll_raw},
                    cause=exc,
                ) from exc

        return cls(bucket=bucket, scopes=scopes, poll_interval=poll_interval)

"""Progress models for sync sessions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from bucketsync.util.time import format_duration


class SyncDirection(str, Enum):
    """Direction of a sync session."""

    LOCAL_TO_CLOUD = "LocalToCloud"
    CLOUD_TO_LOCAL = "CloudToLocal"


class SyncStatus(str, Enum):
    """Lifecycle state of a sync session."""

    IDLE = "Idle"
    SCANNING = "Scanning"
    SYNCING = "Syncing"
    PAUSED = "Paused"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    ERROR = "Error"

    @property
    def is_active(self) -> bool:
        return self in _ACTIVE_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATUSES


_ACTIVE_STATUSES = frozenset({SyncStatus.SCANNING, SyncStatus.SYNCING, SyncStatus.PAUSED})
_TERMINAL_STATUSES = frozenset(
    {SyncStatus.COMPLETED, SyncStatus.CANCELLED, SyncStatus.ERROR}
)


@dataclass(slots=True)
class SyncProgress:
    """
    Point-in-time view of a session.

    bytes_per_second and eta_seconds are derived when the snapshot is taken.
    error_message is set only when status is ERROR.
    """

    status: SyncStatus = SyncStatus.IDLE
    direction: Optional[SyncDirection] = None
    total_files: int = 0
    completed_files: int = 0
    total_bytes: int = 0
    transferred_bytes: int = 0
    current_file: Optional[str] = None
    bytes_per_second: float = 0.0
    eta_seconds: Optional[int] = None
    error_message: Optional[str] = None

    def describe(self) -> str:
        """One-line human summary, e.g. for logs or a status bar."""
        text = (
            f"{self.status.value}: {self.completed_files}/{self.total_files} files, "
            f"{self.transferred_bytes}/{self.total_bytes} bytes"
        )
        if self.status.is_active:
            text += f", ETA {format_duration(self.eta_seconds)}"
        if self.error_message:
            text += f" ({self.error_message})"
        return text

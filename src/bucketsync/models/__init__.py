"""Public model exports for bucketsync."""

from __future__ import annotations

from .file_entry import CloudFolder, FileEntry, RemoteObject
from .progress import SyncDirection, SyncProgress, SyncStatus

__all__ = [
    "FileEntry",
    "RemoteObject",
    "CloudFolder",
    "SyncDirection",
    "SyncStatus",
    "SyncProgress",
]

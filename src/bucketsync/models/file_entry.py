"""Data models for local files and remote objects."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(slots=True, frozen=True)
class FileEntry:
    """
    A file scheduled for transfer.

    Notes:
        - remote_key is relative to the user prefix (e.g. "photos/trip.jpg").
        - local_path is the source file resolved by the scanner; it is None
          for entries produced from a remote listing.
        - Directories are never emitted, so is_dir is always False.
    """

    remote_key: str
    size: int
    is_dir: bool = False
    local_path: Optional[str] = None


@dataclass(slots=True, frozen=True)
class RemoteObject:
    """An object in the user's namespace, as returned by a listing."""

    key: str
    size: int
    last_modified: Optional[datetime] = None


@dataclass(slots=True, frozen=True)
class CloudFolder:
    """Summary of a top-level folder in the user's namespace."""

    name: str
    path: str
    total_size: int
    file_count: int

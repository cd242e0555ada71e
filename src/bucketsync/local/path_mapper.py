"""Mapping between local file paths and remote object keys."""

from __future__ import annotations

import os
from typing import Iterable, Optional

from bucketsync.errors import InvalidArgumentError, SourceNotFoundError
from bucketsync.models import FileEntry

KEY_SEPARATOR = "/"
DEFAULT_FOLDER_NAME = "folder"


def root_base_name(root_dir: str) -> str:
    """Return the folder name a source root is published under."""
    name = os.path.basename(os.path.normpath(root_dir))
    if not name or name in (os.curdir, os.pardir, os.sep):
        return DEFAULT_FOLDER_NAME
    return name


def local_path_to_remote_key(root_dir: str, file_path: str) -> str:
    """
    Map a file under root_dir to its remote key.

    The key is "<basename(root_dir)>/<path relative to root_dir>" with
    forward slashes regardless of the local separator.

    Raises:
        InvalidArgumentError: if file_path is not inside root_dir.
    """
    root = os.path.abspath(root_dir)
    path = os.path.abspath(file_path)

    relative = os.path.relpath(path, root)
    parts = relative.split(os.sep)
    if relative == os.curdir or parts[0] == os.pardir or os.path.isabs(relative):
        raise InvalidArgumentError(
            "File is not inside the source root",
            details={"root_dir": root_dir, "file_path": file_path},
        )

    return KEY_SEPARATOR.join([root_base_name(root_dir), *parts])


def as_folder_prefix(cloud_folder: str) -> str:
    """Return cloud_folder as a listing prefix ending in '/' ('' stays the whole namespace)."""
    name = cloud_folder.strip(KEY_SEPARATOR)
    return f"{name}{KEY_SEPARATOR}" if name else ""


def is_directory_marker(remote_key: str) -> bool:
    """Return True for zero-content "folder" objects (keys ending in '/')."""
    return remote_key.endswith(KEY_SEPARATOR)


def remote_key_to_local_path(
    cloud_folder_prefix: str,
    remote_key: str,
    target_dir: str,
) -> Optional[str]:
    """
    Map a remote key to its download destination under target_dir.

    The cloud folder prefix is stripped (when present) along with any
    leading slashes. Directory markers map to None and are never
    materialized locally.

    Raises:
        InvalidArgumentError: if the key would escape target_dir.
    """
    if is_directory_marker(remote_key):
        return None

    relative = remote_key
    if cloud_folder_prefix and relative.startswith(cloud_folder_prefix):
        relative = relative[len(cloud_folder_prefix):]
    relative = relative.lstrip(KEY_SEPARATOR)

    segments = [s for s in relative.split(KEY_SEPARATOR) if s]
    if not segments or any(s in (os.curdir, os.pardir) for s in segments):
        raise InvalidArgumentError(
            "Remote key cannot be mapped to a local path",
            details={"remote_key": remote_key, "prefix": cloud_folder_prefix},
        )

    return os.path.join(target_dir, *segments)


class SourceIndex:
    """
    Remote key -> local source path association recorded at scan time.

    Two source roots sharing a base name produce identical keys; the entry
    from the later root wins on lookup.
    """

    def __init__(self) -> None:
        self._paths: dict[str, str] = {}

    @classmethod
    def from_entries(cls, entries: Iterable[FileEntry]) -> SourceIndex:
        index = cls()
        for entry in entries:
            if entry.local_path is not None:
                index.add(entry.remote_key, entry.local_path)
        return index

    def __len__(self) -> int:
        return len(self._paths)

    def __contains__(self, remote_key: object) -> bool:
        return remote_key in self._paths

    def add(self, remote_key: str, local_path: str) -> None:
        self._paths[remote_key] = local_path

    def resolve(self, remote_key: str) -> str:
        """
        Return the local file for remote_key.

        Raises:
            SourceNotFoundError: if the key was not scanned or the file is gone.
        """
        path = self._paths.get(remote_key)
        if path is None:
            raise SourceNotFoundError(
                f"Source file not found: {remote_key}",
                details={"remote_key": remote_key},
            )
        if not os.path.isfile(path):
            raise SourceNotFoundError(
                f"Source file not found: {remote_key}",
                details={"remote_key": remote_key, "local_path": path},
            )
        return path

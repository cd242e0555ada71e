"""Local tree scanning for uploads."""

from __future__ import annotations

import os
import stat
from typing import Sequence

from bucketsync.errors import IoFailureError
from bucketsync.models import FileEntry
from bucketsync.util.logger import get_logger

from .path_mapper import SourceIndex, local_path_to_remote_key

log = get_logger(__name__)


def scan_local_folders(roots: Sequence[str]) -> list[FileEntry]:
    """
    Walk each root (in order) and return every regular file found.

    Symbolic links are followed. The scan is all-or-nothing: any unreadable
    or vanished path aborts it.

    Raises:
        IoFailureError: on any filesystem error, a root that is not a
            directory, or a symlink loop.
    """
    entries: list[FileEntry] = []
    for root in roots:
        entries.extend(_scan_root(root))
    log.debug("Scanned %d root(s): %d file(s)", len(roots), len(entries))
    return entries


def build_source_index(entries: Sequence[FileEntry]) -> SourceIndex:
    """Build the remote key -> local path index for a scan result."""
    return SourceIndex.from_entries(entries)


def _scan_root(root: str) -> list[FileEntry]:
    root = os.path.abspath(root)
    if not os.path.isdir(root):
        raise IoFailureError(
            f"Source folder is not a directory: {root}",
            details={"path": root},
        )

    entries: list[FileEntry] = []
    # (st_dev, st_ino) of directories on the current descent path.
    ancestors: dict[str, tuple[int, int]] = {}

    def _raise(exc: OSError) -> None:
        raise IoFailureError(
            f"Cannot read {exc.filename or root}: {exc.strerror or exc}",
            details={"path": exc.filename or root},
            cause=exc,
        ) from exc

    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise, followlinks=True):
        dir_id = _stat_id(dirpath)
        parent = os.path.dirname(dirpath)
        chain = _ancestor_ids(ancestors, root, parent) if dirpath != root else set()
        if dir_id in chain:
            raise IoFailureError(
                f"Symbolic link loop detected: {dirpath}",
                details={"path": dirpath},
            )
        ancestors[dirpath] = dir_id

        dirnames.sort()
        for filename in sorted(filenames):
            path = os.path.join(dirpath, filename)
            try:
                st = os.stat(path)
            except OSError as exc:
                _raise(exc)
            if not stat.S_ISREG(st.st_mode):
                continue
            entries.append(
                FileEntry(
                    remote_key=local_path_to_remote_key(root, path),
                    size=st.st_size,
                    local_path=path,
                )
            )

    return entries


def _stat_id(path: str) -> tuple[int, int]:
    try:
        st = os.stat(path)
    except OSError as exc:
        raise IoFailureError(
            f"Cannot read {path}: {exc.strerror or exc}",
            details={"path": path},
            cause=exc,
        ) from exc
    return (st.st_dev, st.st_ino)


def _ancestor_ids(
    ancestors: dict[str, tuple[int, int]],
    root: str,
    parent: str,
) -> set[tuple[int, int]]:
    ids: set[tuple[int, int]] = set()
    cur = parent
    while True:
        if cur in ancestors:
            ids.add(ancestors[cur])
        if cur == root or cur == os.path.dirname(cur):
            break
        cur = os.path.dirname(cur)
    return ids

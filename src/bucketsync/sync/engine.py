"""SyncEngine: drives one upload or download session end-to-end."""

from __future__ import annotations

import threading
import time
from typing import Any, Callable, Sequence

from bucketsync.config import DEFAULT_POLL_INTERVAL_SEC
from bucketsync.errors import (
    BucketSyncError,
    InvalidArgumentError,
    IoFailureError,
    StorageError,
    SyncCancelledError,
)
from bucketsync.local import (
    SourceIndex,
    as_folder_prefix,
    build_source_index,
    is_directory_marker,
    remote_key_to_local_path,
    scan_local_folders,
)
from bucketsync.models import (
    CloudFolder,
    FileEntry,
    SyncDirection,
    SyncProgress,
    SyncStatus,
)
from bucketsync.util.logger import get_logger

from .progress_state import ProgressState

log = get_logger(__name__)


class SyncEngine:
    """
    Transfer orchestrator for a single storage namespace.

    A session is: reset -> SCANNING -> SYNCING (<-> PAUSED) -> COMPLETED,
    CANCELLED or ERROR. Files are transferred one at a time in scan order.
    pause()/resume()/cancel() and get_progress() may be called from any
    thread; pause and cancel are honoured before the next file starts.

    ``storage`` must provide upload_file, download_file, list_objects and
    list_folders (see GcsStorageController).
    """

    def __init__(
        self,
        storage: Any,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SEC,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if poll_interval <= 0:
            raise InvalidArgumentError("poll_interval must be positive")
        self._storage = storage
        self._poll_interval = poll_interval
        self._progress = ProgressState(clock=clock)
        self._cancel_event = threading.Event()

    # ----------------------------
    # Sessions
    # ----------------------------
    def sync_to_cloud(self, source_roots: Sequence[str]) -> SyncProgress:
        """
        Upload every file under source_roots; blocks until the session ends.

        Returns:
            The final progress snapshot (status COMPLETED).

        Raises:
            InvalidStateError: if another session is active.
            SyncCancelledError: if cancel() stopped the session.
            IoFailureError / SourceNotFoundError / StorageError: on failure.
        """
        roots = _validate_roots(source_roots)
        self._begin(SyncDirection.LOCAL_TO_CLOUD)
        return self._run(self._upload_session, roots)

    def sync_to_local(self, cloud_folder: str, target_dir: str) -> SyncProgress:
        """
        Download every object under cloud_folder into target_dir; blocks.

        Directory markers are left out of the totals and never created locally.
        """
        _validate_download_args(cloud_folder, target_dir)
        self._begin(SyncDirection.CLOUD_TO_LOCAL)
        return self._run(self._download_session, cloud_folder, target_dir)

    def start_sync_to_cloud(self, source_roots: Sequence[str]) -> threading.Thread:
        """Claim the session now and run the upload on a daemon thread."""
        roots = _validate_roots(source_roots)
        self._begin(SyncDirection.LOCAL_TO_CLOUD)
        return self._spawn("upload", self._upload_session, roots)

    def start_sync_to_local(self, cloud_folder: str, target_dir: str) -> threading.Thread:
        """Claim the session now and run the download on a daemon thread."""
        _validate_download_args(cloud_folder, target_dir)
        self._begin(SyncDirection.CLOUD_TO_LOCAL)
        return self._spawn("download", self._download_session, cloud_folder, target_dir)

    # ----------------------------
    # Control
    # ----------------------------
    def pause(self) -> bool:
        """Request a pause before the next file. Returns False if nothing to pause."""
        changed = self._progress.pause()
        if changed:
            log.info("Sync paused")
        return changed

    def resume(self) -> bool:
        changed = self._progress.resume()
        if changed:
            log.info("Sync resumed")
        return changed

    def cancel(self) -> None:
        """
        Stop the session at the next poll point.

        A paused session is released immediately; no resume() is needed.
        """
        with self._progress.condition:
            if not self._progress.status.is_active:
                return
            self._cancel_event.set()
            self._progress.condition.notify_all()
        log.info("Sync cancellation requested")

    def is_paused(self) -> bool:
        return self._progress.status is SyncStatus.PAUSED

    def get_progress(self) -> SyncProgress:
        return self._progress.snapshot()

    # ----------------------------
    # Reporting
    # ----------------------------
    def list_cloud_folders(self) -> list[CloudFolder]:
        """
        Summarize each top-level folder of the namespace.

        One full listing per folder; independent of any running session.
        Storage errors propagate to the caller.
        """
        result: list[CloudFolder] = []
        for folder in self._storage.list_folders(""):
            objects = [
                o for o in self._storage.list_objects(folder) if not is_directory_marker(o.key)
            ]
            result.append(
                CloudFolder(
                    name=folder.rstrip("/"),
                    path=folder,
                    total_size=sum(o.size for o in objects),
                    file_count=len(objects),
                )
            )
        return result

    # ----------------------------
    # Internals
    # ----------------------------
    def _begin(self, direction: SyncDirection) -> None:
        with self._progress.condition:
            self._progress.reset(direction)
            self._cancel_event.clear()
        log.info("Sync session started (%s)", direction.value)

    def _spawn(self, name: str, body: Callable[..., None], *args: Any) -> threading.Thread:
        def _target() -> None:
            try:
                self._run(body, *args)
            except Exception:
                # Outcome is recorded in the progress state and logged by _run.
                return

        thread = threading.Thread(target=_target, name=f"bucketsync-{name}", daemon=True)
        thread.start()
        return thread

    def _run(self, body: Callable[..., None], *args: Any) -> SyncProgress:
        try:
            body(*args)
        except SyncCancelledError:
            self._progress.cancelled()
            log.info("Sync session cancelled")
            raise
        except BucketSyncError as exc:
            self._progress.fail(str(exc))
            log.error("Sync session failed: %s", exc)
            raise
        except Exception as exc:
            self._progress.fail(str(exc) or exc.__class__.__name__)
            log.exception("Sync session failed unexpectedly")
            raise

        self._progress.complete()
        final = self._progress.snapshot()
        log.info("Sync session finished: %s", final.describe())
        return final

    def _upload_session(self, roots: list[str]) -> None:
        entries = scan_local_folders(roots)
        index = build_source_index(entries)
        self._transfer(entries, lambda entry: self._upload_one(entry, index))

    def _upload_one(self, entry: FileEntry, index: SourceIndex) -> None:
        source = index.resolve(entry.remote_key)
        self._storage.upload_file(source, entry.remote_key)

    def _download_session(self, cloud_folder: str, target_dir: str) -> None:
        # "photos" must not match "photos2/".
        cloud_folder = as_folder_prefix(cloud_folder)
        objects = self._storage.list_objects(cloud_folder)

        entries: list[FileEntry] = []
        for obj in objects:
            if is_directory_marker(obj.key):
                continue
            local_path = remote_key_to_local_path(cloud_folder, obj.key, target_dir)
            entries.append(FileEntry(remote_key=obj.key, size=obj.size, local_path=local_path))

        self._transfer(entries, self._download_one)

    def _download_one(self, entry: FileEntry) -> None:
        self._storage.download_file(entry.remote_key, entry.local_path)

    def _transfer(self, entries: list[FileEntry], move: Callable[[FileEntry], None]) -> None:
        total_bytes = sum(e.size for e in entries)
        self._progress.begin_transfer(len(entries), total_bytes)
        log.info("Transferring %d file(s), %d byte(s)", len(entries), total_bytes)

        for entry in entries:
            self._wait_if_paused()
            self._progress.set_current_file(entry.remote_key)
            log.debug("Transferring %s (%d bytes)", entry.remote_key, entry.size)
            try:
                move(entry)
            except OSError as exc:
                raise IoFailureError(
                    f"Local I/O failed for {entry.remote_key}: {exc.strerror or exc}",
                    details={"remote_key": entry.remote_key},
                    cause=exc,
                ) from exc
            except BucketSyncError:
                raise
            except Exception as exc:
                raise StorageError(
                    f"Transfer failed for {entry.remote_key}: {exc}",
                    details={"remote_key": entry.remote_key},
                    cause=exc,
                ) from exc
            self._progress.add_transferred(entry.size)
            self._progress.file_completed()

    def _wait_if_paused(self) -> None:
        """Poll point: block while PAUSED, raise if cancelled."""
        condition = self._progress.condition
        with condition:
            while self._progress.status is SyncStatus.PAUSED:
                if self._cancel_event.is_set():
                    break
                condition.wait(timeout=self._poll_interval)
        self._check_cancelled()

    def _check_cancelled(self) -> None:
        if self._cancel_event.is_set():
            raise SyncCancelledError("Sync cancelled")


def _validate_roots(source_roots: Sequence[str]) -> list[str]:
    if isinstance(source_roots, str):
        raise InvalidArgumentError("source_roots must be a sequence of paths, not a string")
    roots = list(source_roots)
    if not roots:
        raise InvalidArgumentError("source_roots must not be empty")
    for root in roots:
        if not isinstance(root, str) or not root.strip():
            raise InvalidArgumentError("source_roots must contain non-empty strings")
    return roots


def _validate_download_args(cloud_folder: str, target_dir: str) -> None:
    if not isinstance(cloud_folder, str):
        raise InvalidArgumentError("cloud_folder must be a string")
    if not isinstance(target_dir, str) or not target_dir.strip():
        raise InvalidArgumentError("target_dir must be a non-empty string")


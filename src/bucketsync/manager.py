"""CloudSyncManager: the caller-facing surface for one signed-in user."""

from __future__ import annotations

import threading
from typing import Any, Callable, Optional, Sequence

from bucketsync.auth import AuthInfo, UserIdentity
from bucketsync.config import DEFAULT_POLL_INTERVAL_SEC, StorageConfig
from bucketsync.controller import GcsStorageController
from bucketsync.errors import InvalidStateError
from bucketsync.models import CloudFolder, SyncProgress
from bucketsync.sync import SyncEngine
from bucketsync.util.logger import get_logger

log = get_logger(__name__)

ActivityHook = Callable[[str, Optional[str]], None]


class CloudSyncManager:
    """
    High-level manager: one user, one storage namespace, one engine.

    Uploads and downloads run in the background; callers poll
    get_progress() and steer the session with pause/resume/cancel.
    All state is in memory and ends with logout().
    """

    def __init__(
        self,
        auth_info: AuthInfo,
        identity: UserIdentity,
        config: StorageConfig,
        *,
        on_activity: Optional[ActivityHook] = None,
    ) -> None:
        storage = GcsStorageController(
            auth_info,
            config.bucket,
            identity.folder_prefix,
            scopes=config.scopes,
        )
        self._setup(storage, identity, config.poll_interval, on_activity)

    @classmethod
    def from_storage(
        cls,
        storage: Any,
        identity: UserIdentity,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SEC,
        on_activity: Optional[ActivityHook] = None,
    ) -> "CloudSyncManager":
        """Create manager with an injected storage client (useful for tests)."""
        obj = cls.__new__(cls)
        obj._setup(storage, identity, poll_interval, on_activity)
        return obj

    def _setup(
        self,
        storage: Any,
        identity: UserIdentity,
        poll_interval: float,
        on_activity: Optional[ActivityHook],
    ) -> None:
        self._storage: Optional[Any] = storage
        self._identity: Optional[UserIdentity] = identity
        self._engine: Optional[SyncEngine] = SyncEngine(storage, poll_interval=poll_interval)
        self._on_activity = on_activity
        self._worker: Optional[threading.Thread] = None

    # ----------------------------
    # Session info
    # ----------------------------
    @property
    def identity(self) -> UserIdentity:
        if self._identity is None:
            raise InvalidStateError("Not authenticated")
        return self._identity

    @property
    def engine(self) -> SyncEngine:
        """Return the sync engine. Requires an active login."""
        if self._engine is None:
            raise InvalidStateError("Not authenticated")
        return self._engine

    # ----------------------------
    # Transfers
    # ----------------------------
    def start_upload(self, source_paths: Sequence[str]) -> None:
        """Start uploading source_paths in the background."""
        self._worker = self.engine.start_sync_to_cloud(source_paths)
        self._record("upload_started", f"Folders: {', '.join(source_paths)}")

    def start_download(self, cloud_folder: str, target_dir: str) -> None:
        """Start downloading cloud_folder into target_dir in the background."""
        self._worker = self.engine.start_sync_to_local(cloud_folder, target_dir)
        self._record("download_started", f"Folder: {cloud_folder} -> {target_dir}")

    def wait(self, timeout: Optional[float] = None) -> SyncProgress:
        """Block until the background session ends (or timeout) and return progress."""
        worker = self._worker
        if worker is not None:
            worker.join(timeout)
        return self.get_progress()

    def pause(self) -> bool:
        return self.engine.pause()

    def resume(self) -> bool:
        return self.engine.resume()

    def cancel(self) -> None:
        self.engine.cancel()

    def get_progress(self) -> SyncProgress:
        """Current progress; the idle default when logged out."""
        if self._engine is None:
            return SyncProgress()
        return self._engine.get_progress()

    # ----------------------------
    # Namespace operations
    # ----------------------------
    def list_cloud_folders(self) -> list[CloudFolder]:
        return self.engine.list_cloud_folders()

    def delete_all_files(self) -> int:
        """
        Delete every object in the user's namespace.

        Raises:
            InvalidStateError: if not authenticated or a session is running.
        """
        engine = self.engine
        if engine.get_progress().status.is_active:
            raise InvalidStateError("Cannot delete files while a sync is running")
        self._record("delete_all_files", "User requested deletion of all cloud files")
        return self._storage.delete_all()

    def logout(self) -> None:
        """Cancel any running session and forget the user."""
        if self._engine is None:
            return
        self._record("logout", None)
        self._engine.cancel()
        self._engine = None
        self._storage = None
        self._identity = None
        self._worker = None
        log.info("Logged out")

    # ----------------------------
    # Internals
    # ----------------------------
    def _record(self, action: str, details: Optional[str]) -> None:
        if self._on_activity is None:
            return
        try:
            self._on_activity(action, details)
        except Exception as exc:
            # Activity logging must never block the user's action.
            log.warning("Activity hook failed for %s: %s", action, exc)

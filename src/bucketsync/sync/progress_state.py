"""Thread-safe progress record shared between a session and its readers."""

from __future__ import annotations

import threading
import time
from typing import Callable, Optional

from bucketsync.errors import InvalidStateError
from bucketsync.models import SyncDirection, SyncProgress, SyncStatus


class _ByteCounter:
    """Monotonic byte counter with its own lock (hot transfer path)."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._value = 0

    def add(self, amount: int) -> int:
        with self._lock:
            self._value += amount
            return self._value

    def reset(self) -> None:
        with self._lock:
            self._value = 0

    @property
    def value(self) -> int:
        return self._value


class ProgressState:
    """
    Mutable session progress guarded against concurrent mutation.

    Status, direction, current file and totals live under the state lock.
    Transferred bytes are kept in a separate counter so the per-file update
    does not contend with readers; a snapshot may therefore pair a fresh
    byte count with a slightly stale current_file.

    pause()/resume() change the status directly: PAUSED is the single
    source of truth for the paused state. Waiters on ``condition`` are
    notified on every status change.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._lock = threading.RLock()
        self.condition = threading.Condition(self._lock)
        self._bytes = _ByteCounter()

        self._status = SyncStatus.IDLE
        self._direction: Optional[SyncDirection] = None
        self._total_files = 0
        self._completed_files = 0
        self._total_bytes = 0
        self._current_file: Optional[str] = None
        self._error_message: Optional[str] = None
        self._started_at: Optional[float] = None
        self._finished_at: Optional[float] = None
        self._totals_published = False

    # ----------------------------
    # Read APIs
    # ----------------------------
    @property
    def status(self) -> SyncStatus:
        with self._lock:
            return self._status

    @property
    def transferred_bytes(self) -> int:
        return self._bytes.value

    def snapshot(self) -> SyncProgress:
        """Return a consistent copy with rate and ETA derived from elapsed time."""
        with self._lock:
            progress = SyncProgress(
                status=self._status,
                direction=self._direction,
                total_files=self._total_files,
                completed_files=self._completed_files,
                total_bytes=self._total_bytes,
                current_file=self._current_file,
                error_message=self._error_message,
            )
            started_at = self._started_at
            finished_at = self._finished_at

        transferred = self._bytes.value
        progress.transferred_bytes = transferred

        if started_at is None:
            return progress

        end = finished_at if finished_at is not None else self._clock()
        elapsed = end - started_at
        if elapsed > 0:
            progress.bytes_per_second = transferred / elapsed
            remaining = progress.total_bytes - transferred
            if progress.bytes_per_second > 0 and remaining > 0:
                progress.eta_seconds = int(remaining / progress.bytes_per_second)

        return progress

    # ----------------------------
    # Session lifecycle
    # ----------------------------
    def reset(self, direction: SyncDirection) -> None:
        """
        Start a new session: clear counters and enter SCANNING.

        Raises:
            InvalidStateError: if a session is already scanning, syncing or paused.
        """
        with self._lock:
            if self._status.is_active:
                raise InvalidStateError(
                    "A sync session is already running",
                    details={"status": self._status.value},
                )
            self._bytes.reset()
            self._status = SyncStatus.SCANNING
            self._direction = direction
            self._total_files = 0
            self._completed_files = 0
            self._total_bytes = 0
            self._current_file = None
            self._error_message = None
            self._started_at = self._clock()
            self._finished_at = None
            self._totals_published = False
            self.condition.notify_all()

    def begin_transfer(self, total_files: int, total_bytes: int) -> None:
        """Publish the scan totals and enter SYNCING (unless already paused)."""
        with self._lock:
            self._total_files = total_files
            self._total_bytes = total_bytes
            self._totals_published = True
            self._completed_files = 0
            if self._status is SyncStatus.SCANNING:
                self._status = SyncStatus.SYNCING
            self.condition.notify_all()

    def set_current_file(self, remote_key: Optional[str]) -> None:
        with self._lock:
            self._current_file = remote_key

    def add_transferred(self, size: int) -> None:
        self._bytes.add(size)

    def file_completed(self) -> None:
        with self._lock:
            if self._completed_files < self._total_files:
                self._completed_files += 1

    def complete(self) -> None:
        self._finish(SyncStatus.COMPLETED)

    def cancelled(self) -> None:
        self._finish(SyncStatus.CANCELLED)

    def fail(self, message: str) -> None:
        self._finish(SyncStatus.ERROR, message)

    # ----------------------------
    # Pause control
    # ----------------------------
    def pause(self) -> bool:
        """Enter PAUSED from SCANNING/SYNCING. Returns True if the status changed."""
        with self._lock:
            if self._status not in (SyncStatus.SCANNING, SyncStatus.SYNCING):
                return False
            self._status = SyncStatus.PAUSED
            self.condition.notify_all()
            return True

    def resume(self) -> bool:
        """Leave PAUSED. Returns True if the status changed."""
        with self._lock:
            if self._status is not SyncStatus.PAUSED:
                return False
            self._status = (
                SyncStatus.SYNCING if self._totals_published else SyncStatus.SCANNING
            )
            self.condition.notify_all()
            return True

    def _finish(self, status: SyncStatus, message: Optional[str] = None) -> None:
        with self._lock:
            self._status = status
            self._current_file = None
            self._error_message = message
            self._finished_at = self._clock()
            self.condition.notify_all()

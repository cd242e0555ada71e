"""Transfer orchestration for bucketsync."""

from __future__ import annotations

from .engine import SyncEngine
from .progress_state import ProgressState

__all__ = ["SyncEngine", "ProgressState"]

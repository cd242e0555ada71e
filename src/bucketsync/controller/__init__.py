"""Storage controller exports for bucketsync."""

from __future__ import annotations

from .storage_controller import GcsStorageController

__all__ = ["GcsStorageController"]

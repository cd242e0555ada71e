"""bucketsync public API."""

from __future__ import annotations

from bucketsync.auth import AuthInfo, OAuthClient, UserIdentity
from bucketsync.config import StorageConfig
from bucketsync.controller import GcsStorageController
from bucketsync.errors import (
    ApiError,
    AuthError,
    BadRequestError,
    BucketSyncError,
    ConflictError,
    HttpErrorInfo,
    InvalidArgumentError,
    InvalidStateError,
    IoFailureError,
    NetworkError,
    NotFoundError,
    PermissionError,
    QuotaExceededError,
    RateLimitError,
    SourceNotFoundError,
    StorageError,
    SyncCancelledError,
    map_http_error,
)
from bucketsync.manager import CloudSyncManager
from bucketsync.models import (
    CloudFolder,
    FileEntry,
    RemoteObject,
    SyncDirection,
    SyncProgress,
    SyncStatus,
)
from bucketsync.sync import SyncEngine
from bucketsync.util.logger import setup_logging

__all__ = [
    # High-level
    "CloudSyncManager",
    "SyncEngine",
    "GcsStorageController",
    "StorageConfig",
    "setup_logging",
    # Auth
    "AuthInfo",
    "OAuthClient",
    "UserIdentity",
    # Models
    "FileEntry",
    "RemoteObject",
    "CloudFolder",
    "SyncDirection",
    "SyncStatus",
    "SyncProgress",
    # Errors
    "BucketSyncError",
    "InvalidStateError",
    "InvalidArgumentError",
    "IoFailureError",
    "SourceNotFoundError",
    "SyncCancelledError",
    "StorageError",
    "AuthError",
    "PermissionError",
    "BadRequestError",
    "NotFoundError",
    "ConflictError",
    "RateLimitError",
    "QuotaExceededError",
    "NetworkError",
    "ApiError",
    "HttpErrorInfo",
    "map_http_error",
]

"""Public error exports for bucketsync."""

from __future__ import annotations

from .exceptions import (
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

__all__ = [
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

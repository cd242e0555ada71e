"""Exception hierarchy and HTTP error mapping for bucketsync."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


class BucketSyncError(Exception):
    """
    Base exception for bucketsync.

    Attributes:
        details: Optional structured information (e.g., HTTP status, path).
        cause: Optional original exception that triggered this error.
    """

    def __init__(
        self,
        message: str,
        *,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.details = details or {}
        self.cause = cause


class InvalidStateError(BucketSyncError):
    """Raised when the library is used in an invalid state (e.g., a session is active)."""


class InvalidArgumentError(BucketSyncError):
    """Raised when caller-supplied arguments are invalid."""


class IoFailureError(BucketSyncError):
    """Raised when the local filesystem is unreadable or unwritable."""


class SourceNotFoundError(BucketSyncError):
    """Raised when an upload item cannot be resolved back to a local file."""


class SyncCancelledError(BucketSyncError):
    """Raised when a session is aborted cooperatively by cancel()."""


class StorageError(BucketSyncError):
    """Base class for remote object store failures."""


class AuthError(StorageError):
    """Raised when OAuth authentication/refresh fails (HTTP 401)."""


class PermissionError(StorageError):
    """Raised when access is denied (HTTP 403 non-quota)."""


class BadRequestError(StorageError):
    """Raised when the store rejects a request as malformed (HTTP 400)."""


class NotFoundError(StorageError):
    """Raised when a bucket or object is not found (HTTP 404)."""


class ConflictError(StorageError):
    """Raised when a conflict occurs (HTTP 409/412)."""


class RateLimitError(StorageError):
    """Raised when rate-limited (HTTP 429)."""


class QuotaExceededError(StorageError):
    """Raised when quota is exceeded (HTTP 403 with quota-related reason)."""


class NetworkError(StorageError):
    """Raised when network/timeout issues prevent the request."""


class ApiError(StorageError):
    """Raised for unclassified API errors (5xx, unknown 4xx, etc.)."""


@dataclass(frozen=True)
class HttpErrorInfo:
    """Lightweight HTTP error information for mapping to bucketsync exceptions."""

    status_code: int
    reason: str | None = None
    message: str | None = None
    details: dict[str, Any] | None = None


_QUOTA_REASON_KEYWORDS: tuple[str, ...] = (
    "quota",
    "storageQuotaExceeded",
    "usageLimits",
    "dailyLimitExceeded",
)

_RATE_LIMIT_REASONS: frozenset[str] = frozenset(
    {"ratelimitexceeded", "userratelimitexceeded"}
)


def _is_rate_limit_reason(reason: str | None) -> bool:
    return bool(reason) and reason.lower() in _RATE_LIMIT_REASONS


def _is_quota_reason(reason: str | None) -> bool:
    if not reason:
        return False
    return any(key.lower() in reason.lower() for key in _QUOTA_REASON_KEYWORDS)


def map_http_error(
    info: HttpErrorInfo,
    *,
    cause: Optional[BaseException] = None,
) -> StorageError:
    """
    Map an HTTP error from the storage API to a bucketsync exception.

    Policy:
        - 400 -> BadRequestError
        - 401 -> AuthError
        - 403 -> RateLimitError for (user)rateLimitExceeded, QuotaExceededError if
          quota-related, PermissionError otherwise
        - 404 -> NotFoundError
        - 409/412 -> ConflictError
        - 429 -> RateLimitError
        - otherwise (5xx included) -> ApiError
    """
    details: dict[str, Any] = {
        "status_code": info.status_code,
        "reason": info.reason,
    }
    if info.details:
        details.update(info.details)

    message = info.message or f"HTTP error {info.status_code}"

    if info.status_code == 400:
        return BadRequestError(message, details=details, cause=cause)
    if info.status_code == 401:
        return AuthError(message, details=details, cause=cause)
    if info.status_code == 403:
        if _is_rate_limit_reason(info.reason):
            return RateLimitError(message, details=details, cause=cause)
        if _is_quota_reason(info.reason):
            return QuotaExceededError(message, details=details, cause=cause)
        return PermissionError(message, details=details, cause=cause)
    if info.status_code == 404:
        return NotFoundError(message, details=details, cause=cause)
    if info.status_code in (409, 412):
        return ConflictError(message, details=details, cause=cause)
    if info.status_code == 429:
        return RateLimitError(message, details=details, cause=cause)

    return ApiError(message, details=details, cause=cause)

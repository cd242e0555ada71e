"""Cloud Storage JSON API controller scoped to a per-user key prefix."""

from __future__ import annotations

import json
import mimetypes
import os
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence, TypeVar

from bucketsync.auth import AuthInfo, OAuthClient
from bucketsync.config import DEFAULT_SCOPES
from bucketsync.errors import (
    ApiError,
    AuthError,
    HttpErrorInfo,
    InvalidArgumentError,
    IoFailureError,
    NetworkError,
    RateLimitError,
    map_http_error,
)
from bucketsync.models import RemoteObject
from bucketsync.util.logger import get_logger
from bucketsync.util.time import parse_rfc3339

from .fields import LIST_FIELDS, OBJECT_FIELDS, PREFIX_FIELDS

T = TypeVar("T")

log = get_logger(__name__)

_DEFAULT_CONTENT_TYPE = "application/octet-stream"
_PART_SUFFIX = ".part"


@dataclass(frozen=True)
class _RetryPolicy:
    max_retries: int = 3
    initial_delay_sec: float = 1.0


class GcsStorageController:
    """
    Object store client for one user's namespace in a bucket.

    Notes:
        - Every key passed in or returned is relative to ``user_prefix``;
          the prefix is fixed at construction.
        - The API ``service`` object is NOT exposed.
        - Single API calls are retried on 429/5xx/network errors; a failure
          that survives the retries is raised to the caller.
    """

    DEFAULT_SCOPES: tuple[str, ...] = DEFAULT_SCOPES

    def __init__(
        self,
        auth_info: AuthInfo,
        bucket: str,
        user_prefix: str,
        *,
        scopes: Optional[Sequence[str]] = None,
    ) -> None:
        self._bucket = _validate_bucket(bucket)
        self._user_prefix = _validate_prefix(user_prefix)
        self._retry_policy = _RetryPolicy()

        use_scopes = list(scopes) if scopes is not None else list(self.DEFAULT_SCOPES)
        client = OAuthClient(auth_info)
        self._service = client.build_storage_service(use_scopes, ensure_valid=True)

    @classmethod
    def from_service(
        cls,
        service: Any,
        bucket: str,
        user_prefix: str,
        *,
        retry_policy: Optional[_RetryPolicy] = None,
    ) -> "GcsStorageController":
        """Create controller from a pre-built storage service (useful for tests)."""
        obj = cls.__new__(cls)
        obj._bucket = _validate_bucket(bucket)
        obj._user_prefix = _validate_prefix(user_prefix)
        obj._retry_policy = retry_policy or _RetryPolicy()
        obj._service = service
        return obj

    @property
    def bucket(self) -> str:
        return self._bucket

    @property
    def user_prefix(self) -> str:
        return self._user_prefix

    def full_key(self, relative_key: str) -> str:
        """Return the bucket-level object name for a user-relative key."""
        return f"{self._user_prefix}{relative_key}"

    # ----------------------------
    # Public API
    # ----------------------------
    def upload_file(self, local_path: str, remote_key: str) -> RemoteObject:
        """Upload a local file as a single (non-resumable) request."""
        if not local_path or not isinstance(local_path, str):
            raise InvalidArgumentError("local_path must be a non-empty string")
        _require_key(remote_key)

        try:
            from googleapiclient.http import MediaFileUpload
        except Exception as exc:  # pragma: no cover
            raise AuthError(
                "google-api-python-client is not available",
                cause=exc,
            ) from exc

        content_type = mimetypes.guess_type(local_path)[0] or _DEFAULT_CONTENT_TYPE
        try:
            media = MediaFileUpload(local_path, mimetype=content_type, resumable=False)
        except OSError as exc:
            raise IoFailureError(
                f"Cannot read {local_path}: {exc.strerror or exc}",
                details={"path": local_path},
                cause=exc,
            ) from exc

        req = self._service.objects().insert(
            bucket=self._bucket,
            name=self.full_key(remote_key),
            media_body=media,
            fields=OBJECT_FIELDS,
        )
        data = self._execute(req.execute)
        log.debug("Uploaded %s -> gs://%s/%s", local_path, self._bucket, self.full_key(remote_key))
        return self._object_dict_to_remote_object(data)

    def download_file(self, remote_key: str, local_path: str) -> None:
        """
        Download an object to local_path, creating parent directories.

        Data is written to a sibling ``.part`` file that replaces local_path
        only once the download finished.
        """
        _require_key(remote_key)

        try:
            from googleapiclient.http import MediaIoBaseDownload
        except Exception as exc:  # pragma: no cover
            raise AuthError(
                "google-api-python-client is not available",
                cause=exc,
            ) from exc

        req = self._service.objects().get_media(
            bucket=self._bucket,
            object=self.full_key(remote_key),
        )

        part_path = local_path + _PART_SUFFIX
        try:
            parent_dir = os.path.dirname(local_path)
            if parent_dir:
                os.makedirs(parent_dir, exist_ok=True)
            f = open(part_path, "wb")
        except OSError as exc:
            raise IoFailureError(
                f"Cannot write {local_path}: {exc.strerror or exc}",
                details={"path": local_path},
                cause=exc,
            ) from exc

        try:
            with f:
                downloader = MediaIoBaseDownload(f, req)
                done = False
                while not done:
                    _, done = self._execute(downloader.next_chunk)
            os.replace(part_path, local_path)
        except OSError as exc:
            _discard(part_path)
            raise IoFailureError(
                f"Cannot write {local_path}: {exc.strerror or exc}",
                details={"path": local_path},
                cause=exc,
            ) from exc
        except BaseException:
            _discard(part_path)
            raise

        log.debug("Downloaded gs://%s/%s -> %s", self._bucket, self.full_key(remote_key), local_path)

    def list_objects(self, prefix: str = "") -> list[RemoteObject]:
        """List every object under prefix (recursively), following pagination."""
        objects: list[RemoteObject] = []
        for page in self._list_pages(self.full_key(prefix), fields=LIST_FIELDS):
            for item in page.get("items", []) or []:
                objects.append(self._object_dict_to_remote_object(item))
        return objects

    def list_folders(self, prefix: str = "") -> list[str]:
        """List the common prefixes ("folders") directly under prefix."""
        folders: list[str] = []
        for page in self._list_pages(
            self.full_key(prefix),
            fields=PREFIX_FIELDS,
            delimiter="/",
        ):
            for p in page.get("prefixes", []) or []:
                if isinstance(p, str):
                    folders.append(self._strip_user_prefix(p))
        return folders

    def get_object_info(self, remote_key: str) -> RemoteObject:
        """Return object metadata (size, last modified) without its content."""
        _require_key(remote_key)
        req = self._service.objects().get(
            bucket=self._bucket,
            object=self.full_key(remote_key),
            fields=OBJECT_FIELDS,
        )
        data = self._execute(req.execute)
        return self._object_dict_to_remote_object(data)

    def delete_object(self, remote_key: str) -> None:
        _require_key(remote_key)
        req = self._service.objects().delete(
            bucket=self._bucket,
            object=self.full_key(remote_key),
        )
        self._execute(req.execute)

    def delete_all(self) -> int:
        """Delete every object under the user prefix. Returns the count."""
        objects = self.list_objects("")
        for obj in objects:
            self.delete_object(obj.key)
        log.info("Deleted %d object(s) under gs://%s/%s", len(objects), self._bucket, self._user_prefix)
        return len(objects)

    # ----------------------------
    # Internals
    # ----------------------------
    def _list_pages(
        self,
        full_prefix: str,
        *,
        fields: str,
        delimiter: Optional[str] = None,
    ):
        page_token: Optional[str] = None
        while True:
            kwargs: dict[str, Any] = {
                "bucket": self._bucket,
                "prefix": full_prefix,
                "fields": fields,
                "pageToken": page_token,
            }
            if delimiter is not None:
                kwargs["delimiter"] = delimiter

            req = self._service.objects().list(**kwargs)
            data = self._execute(req.execute)
            yield data

            page_token = data.get("nextPageToken")
            if not page_token:
                break

    def _strip_user_prefix(self, name: str) -> str:
        if self._user_prefix and name.startswith(self._user_prefix):
            return name[len(self._user_prefix):]
        return name

    def _object_dict_to_remote_object(self, data: dict[str, Any]) -> RemoteObject:
        name = data.get("name", "")
        key = self._strip_user_prefix(name if isinstance(name, str) else "")

        size = 0
        if isinstance(data.get("size"), str) and data["size"].isdigit():
            size = int(data["size"])
        elif isinstance(data.get("size"), int):
            size = data["size"]

        last_modified = None
        if isinstance(data.get("updated"), str):
            try:
                last_modified = parse_rfc3339(data["updated"])
            except ValueError:
                last_modified = None

        return RemoteObject(key=key, size=size, last_modified=last_modified)

    def _execute(self, func: Callable[[], T]) -> T:
        delay = self._retry_policy.initial_delay_sec
        for attempt in range(self._retry_policy.max_retries + 1):
            try:
                return func()
            except Exception as exc:
                mapped = self._map_exception(exc)
                if self._should_retry(mapped) and attempt < self._retry_policy.max_retries:
                    log.warning(
                        "Storage request failed (%s); retrying in %.1fs",
                        mapped.__class__.__name__,
                        delay,
                    )
                    time.sleep(delay)
                    delay *= 2
                    continue
                raise mapped from exc

        raise ApiError("Unexpected retry loop termination")

    def _should_retry(self, exc: Exception) -> bool:
        if isinstance(exc, RateLimitError):
            return True
        if isinstance(exc, NetworkError):
            return True
        if isinstance(exc, ApiError):
            status_code = getattr(exc, "details", {}).get("status_code")
            return isinstance(status_code, int) and 500 <= status_code <= 599
        return False

    def _map_exception(self, exc: Exception) -> Exception:
        try:
            from googleapiclient.errors import HttpError
        except Exception:  # pragma: no cover
            HttpError = None  # type: ignore[assignment]

        if HttpError is not None and isinstance(exc, HttpError):
            info = _http_error_to_info(exc)
            return map_http_error(info, cause=exc)

        if isinstance(exc, (OSError, TimeoutError)):
            return NetworkError("Network error", cause=exc)

        return ApiError("Storage API error", cause=exc)


def _validate_bucket(bucket: str) -> str:
    if not isinstance(bucket, str) or not bucket.strip():
        raise InvalidArgumentError("bucket must be a non-empty string")
    return bucket.strip()


def _validate_prefix(user_prefix: str) -> str:
    if not isinstance(user_prefix, str):
        raise InvalidArgumentError("user_prefix must be a string")
    if user_prefix and not user_prefix.endswith("/"):
        raise InvalidArgumentError(
            "user_prefix must be empty or end with '/'",
            details={"user_prefix": user_prefix},
        )
    return user_prefix


def _require_key(remote_key: str) -> None:
    if not remote_key or not isinstance(remote_key, str):
        raise InvalidArgumentError("remote_key must be a non-empty string")


def _discard(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as exc:
        log.warning("Could not remove partial download %s: %s", path, exc)


def _http_error_to_info(exc: Any) -> HttpErrorInfo:
    status_code = getattr(getattr(exc, "resp", None), "status", None)
    reason = getattr(getattr(exc, "resp", None), "reason", None)

    message = None
    details: dict[str, Any] = {}

    content = getattr(exc, "content", None)
    if isinstance(content, (bytes, bytearray)):
        try:
            payload = json.loads(content.decode("utf-8"))
        except (UnicodeDecodeError, ValueError):
            payload = None
        err = payload.get("error", {}) if isinstance(payload, dict) else {}
        if isinstance(err, dict):
            message = err.get("message") or None
            errors = err.get("errors") or []
            if errors and isinstance(errors, list) and isinstance(errors[0], dict):
                details["domain"] = errors[0].get("domain")
                details["reason_detail"] = errors[0].get("reason")
                if isinstance(errors[0].get("reason"), str):
                    reason = errors[0]["reason"]

    if not isinstance(status_code, int):
        status_code = 0

    return HttpErrorInfo(
        status_code=status_code,
        reason=reason if isinstance(reason, str) else None,
        message=message,
        details=details or None,
    )

import json
import os
import tempfile
import unittest
from datetime import datetime, timezone
from unittest.mock import Mock, patch

from bucketsync.controller.storage_controller import GcsStorageController
from bucketsync.errors import (
    ApiError,
    InvalidArgumentError,
    IoFailureError,
    NetworkError,
    NotFoundError,
    RateLimitError,
)


def _http_error(status: int, reason: str, message: str = "err"):
    from googleapiclient.errors import HttpError

    resp = Mock()
    resp.status = status
    resp.reason = reason
    body = {"error": {"message": message, "errors": [{"reason": reason}]}}
    return HttpError(resp=resp, content=json.dumps(body).encode("utf-8"))


def _service():
    service = Mock()
    objects = Mock()
    service.objects.return_value = objects
    return service, objects


class _FakeDownloader:
    """Stands in for MediaIoBaseDownload: writes the payload in two chunks."""

    payload = b"hello world"

    def __init__(self, fd, request) -> None:
        self._fd = fd
        self._chunks = [self.payload[:5], self.payload[5:]]

    def next_chunk(self):
        self._fd.write(self._chunks.pop(0))
        return None, not self._chunks


class _FailingDownloader(_FakeDownloader):
    def next_chunk(self):
        self._fd.write(b"partial")
        raise _http_error(404, "notFound")


class TestStorageControllerConstruction(unittest.TestCase):
    def test_prefix_must_end_with_separator(self) -> None:
        service, _ = _service()
        with self.assertRaises(InvalidArgumentError):
            GcsStorageController.from_service(service, "bucket", "users/u1")

    def test_bucket_must_be_set(self) -> None:
        service, _ = _service()
        with self.assertRaises(InvalidArgumentError):
            GcsStorageController.from_service(service, "  ", "users/u1/")

    def test_full_key(self) -> None:
        service, _ = _service()
        ctrl = GcsStorageController.from_service(service, "bucket", "users/u1/")
        self.assertEqual(ctrl.full_key("photos/a.jpg"), "users/u1/photos/a.jpg")
        self.assertEqual(ctrl.bucket, "bucket")
        self.assertEqual(ctrl.user_prefix, "users/u1/")


class TestStorageControllerListing(unittest.TestCase):
    def test_list_objects_follows_pages_and_strips_prefix(self) -> None:
        service, objects = _service()
        page1 = Mock()
        page1.execute.return_value = {
            "items": [
                {"name": "users/u1/photos/a.jpg", "size": "10", "updated": "2025-01-01T00:00:00Z"},
            ],
            "nextPageToken": "t2",
        }
        page2 = Mock()
        page2.execute.return_value = {
            "items": [{"name": "users/u1/photos/trip/b.jpg", "size": "20"}],
        }
        objects.list.side_effect = [page1, page2]

        ctrl = GcsStorageController.from_service(service, "bucket", "users/u1/")
        result = ctrl.list_objects("photos/")

        self.assertEqual([(o.key, o.size) for o in result], [("photos/a.jpg", 10), ("photos/trip/b.jpg", 20)])
        self.assertEqual(result[0].last_modified, datetime(2025, 1, 1, tzinfo=timezone.utc))
        first, second = objects.list.call_args_list
        self.assertEqual(first.kwargs["prefix"], "users/u1/photos/")
        self.assertIsNone(first.kwargs["pageToken"])
        self.assertNotIn("delimiter", first.kwargs)
        self.assertEqual(second.kwargs["pageToken"], "t2")

    def test_list_folders_uses_delimiter(self) -> None:
        service, objects = _service()
        req = Mock()
        req.execute.return_value = {"prefixes": ["users/u1/archive/", "users/u1/photos/"]}
        objects.list.return_value = req

        ctrl = GcsStorageController.from_service(service, "bucket", "users/u1/")

        self.assertEqual(ctrl.list_folders(), ["archive/", "photos/"])
        kwargs = objects.list.call_args.kwargs
        self.assertEqual(kwargs["delimiter"], "/")
        self.assertEqual(kwargs["prefix"], "users/u1/")

    def test_empty_listing(self) -> None:
        service, objects = _service()
        req = Mock()
        req.execute.return_value = {}
        objects.list.return_value = req

        ctrl = GcsStorageController.from_service(service, "bucket", "users/u1/")

        self.assertEqual(ctrl.list_objects(), [])
        self.assertEqual(ctrl.list_folders(), [])


class TestStorageControllerObjects(unittest.TestCase):
    def test_upload_file_inserts_under_user_prefix(self) -> None:
        service, objects = _service()
        req = Mock()
        req.execute.return_value = {"name": "users/u1/photos/a.jpg", "size": "10"}
        objects.insert.return_value = req

        ctrl = GcsStorageController.from_service(service, "bucket", "users/u1/")
        with patch("googleapiclient.http.MediaFileUpload") as media_cls:
            obj = ctrl.upload_file("/src/photos/a.jpg", "photos/a.jpg")

        self.assertEqual(obj.key, "photos/a.jpg")
        self.assertEqual(obj.size, 10)
        media_cls.assert_called_once_with("/src/photos/a.jpg", mimetype="image/jpeg", resumable=False)
        kwargs = objects.insert.call_args.kwargs
        self.assertEqual(kwargs["bucket"], "bucket")
        self.assertEqual(kwargs["name"], "users/u1/photos/a.jpg")

    def test_upload_missing_file_is_io_failure(self) -> None:
        service, _ = _service()
        ctrl = GcsStorageController.from_service(service, "bucket", "users/u1/")
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(IoFailureError):
                ctrl.upload_file(os.path.join(tmp, "missing.bin"), "x/missing.bin")

    def test_download_file_writes_and_creates_parents(self) -> None:
        service, objects = _service()
        ctrl = GcsStorageController.from_service(service, "bucket", "users/u1/")

        with tempfile.TemporaryDirectory() as tmp:
            dest = os.path.join(tmp, "2023", "r.pdf")
            with patch("googleapiclient.http.MediaIoBaseDownload", _FakeDownloader):
                ctrl.download_file("archive/2023/r.pdf", dest)

            with open(dest, "rb") as f:
                self.assertEqual(f.read(), b"hello world")
            self.assertFalse(os.path.exists(dest + ".part"))

        kwargs = objects.get_media.call_args.kwargs
        self.assertEqual(kwargs["object"], "users/u1/archive/2023/r.pdf")

    def test_failed_download_leaves_no_partial_file(self) -> None:
        service, _ = _service()
        ctrl = GcsStorageController.from_service(service, "bucket", "users/u1/")

        with tempfile.TemporaryDirectory() as tmp:
            dest = os.path.join(tmp, "r.pdf")
            with patch("googleapiclient.http.MediaIoBaseDownload", _FailingDownloader):
                with self.assertRaises(NotFoundError):
                    ctrl.download_file("archive/r.pdf", dest)

            self.assertEqual(os.listdir(tmp), [])

    def test_get_object_info_maps_404(self) -> None:
        service, objects = _service()
        req = Mock()
        req.execute.side_effect = _http_error(404, "notFound", "No such object")
        objects.get.return_value = req

        ctrl = GcsStorageController.from_service(service, "bucket", "users/u1/")

        with self.assertRaises(NotFoundError) as ctx:
            ctrl.get_object_info("photos/missing.jpg")
        self.assertEqual(ctx.exception.details["status_code"], 404)
        self.assertEqual(str(ctx.exception), "No such object")

    def test_delete_all_removes_each_object(self) -> None:
        service, objects = _service()
        listing = Mock()
        listing.execute.return_value = {
            "items": [
                {"name": "users/u1/a/1.txt", "size": "1"},
                {"name": "users/u1/b/2.txt", "size": "2"},
            ]
        }
        objects.list.return_value = listing
        objects.delete.return_value.execute.return_value = None

        ctrl = GcsStorageController.from_service(service, "bucket", "users/u1/")

        self.assertEqual(ctrl.delete_all(), 2)
        deleted = [c.kwargs["object"] for c in objects.delete.call_args_list]
        self.assertEqual(deleted, ["users/u1/a/1.txt", "users/u1/b/2.txt"])


class TestStorageControllerRetry(unittest.TestCase):
    def test_retry_on_429_then_success(self) -> None:
        service, objects = _service()
        req = Mock()
        rate = _http_error(429, "rateLimitExceeded", "rate limited")
        req.execute.side_effect = [rate, rate, {"name": "users/u1/a.txt", "size": "3"}]
        objects.get.return_value = req

        ctrl = GcsStorageController.from_service(service, "bucket", "users/u1/")
        with patch("time.sleep", return_value=None) as sleep:
            obj = ctrl.get_object_info("a.txt")

        self.assertEqual(obj.key, "a.txt")
        self.assertEqual(req.execute.call_count, 3)
        self.assertEqual([c.args[0] for c in sleep.call_args_list], [1.0, 2.0])

    def test_403_user_rate_limit_is_retried(self) -> None:
        service, objects = _service()
        req = Mock()
        req.execute.side_effect = [
            _http_error(403, "userRateLimitExceeded", "slow down"),
            {"name": "users/u1/a.txt", "size": "3"},
        ]
        objects.get.return_value = req

        ctrl = GcsStorageController.from_service(service, "bucket", "users/u1/")
        with patch("time.sleep", return_value=None):
            obj = ctrl.get_object_info("a.txt")

        self.assertEqual(obj.size, 3)
        self.assertEqual(req.execute.call_count, 2)

    def test_rate_limit_surfaces_after_retries(self) -> None:
        service, objects = _service()
        req = Mock()
        req.execute.side_effect = _http_error(429, "rateLimitExceeded")
        objects.get.return_value = req

        ctrl = GcsStorageController.from_service(service, "bucket", "users/u1/")
        with patch("time.sleep", return_value=None):
            with self.assertRaises(RateLimitError):
                ctrl.get_object_info("a.txt")
        self.assertEqual(req.execute.call_count, 4)

    def test_network_errors_are_retried(self) -> None:
        service, objects = _service()
        req = Mock()
        req.execute.side_effect = ConnectionResetError("reset")
        objects.get.return_value = req

        ctrl = GcsStorageController.from_service(service, "bucket", "users/u1/")
        with patch("time.sleep", return_value=None):
            with self.assertRaises(NetworkError):
                ctrl.get_object_info("a.txt")
        self.assertEqual(req.execute.call_count, 4)

    def test_client_errors_are_not_retried(self) -> None:
        service, objects = _service()
        req = Mock()
        req.execute.side_effect = ValueError("odd")
        objects.get.return_value = req

        ctrl = GcsStorageController.from_service(service, "bucket", "users/u1/")
        with patch("time.sleep", return_value=None) as sleep:
            with self.assertRaises(ApiError):
                ctrl.get_object_info("a.txt")
        sleep.assert_not_called()
        self.assertEqual(req.execute.call_count, 1)


if __name__ == "__main__":
    unittest.main()

import argparse
import os
import tempfile
import unittest
from pathlib import Path

from bucketsync import AuthInfo, CloudSyncManager, StorageConfig, SyncStatus, UserIdentity


def _env(name: str) -> str:
    value = os.environ.get(name, "").strip()
    if not value:
        raise unittest.SkipTest(f"Missing env var: {name}")
    return value


class TestStorageIntegration(unittest.TestCase):
    """
    Integration test with a real Cloud Storage bucket.

    Required env vars:
        - BUCKETSYNC_CLIENT_SECRETS: path to OAuth client secrets json
        - BUCKETSYNC_TOKEN_FILE: path to token json (will be created/updated)
        - BUCKETSYNC_BUCKET: bucket used as a sandbox
        - BUCKETSYNC_TEST_USER_ID: user id whose namespace may be wiped

    Optional:
        - BUCKETSYNC_SCOPES: comma-separated scopes
    """

    @classmethod
    def setUpClass(cls) -> None:
        _env("BUCKETSYNC_CLIENT_SECRETS")
        _env("BUCKETSYNC_TOKEN_FILE")
        cls.auth_info = AuthInfo.from_env()
        cls.identity = UserIdentity(
            user_id=_env("BUCKETSYNC_TEST_USER_ID"),
            display_name="integration",
        )
        _env("BUCKETSYNC_BUCKET")
        cls.config = StorageConfig.from_env()

    def test_upload_list_download_delete(self) -> None:
        mgr = CloudSyncManager(self.auth_info, self.identity, self.config)
        try:
            with tempfile.TemporaryDirectory() as tmp:
                tmp_path = Path(tmp)
                src = tmp_path / "bucketsync_it"
                (src / "nested").mkdir(parents=True)
                (src / "hello.txt").write_text("hello from bucketsync\n", encoding="utf-8")
                (src / "nested" / "data.bin").write_bytes(b"\x00" * 1024)

                # 1) upload
                mgr.start_upload([str(src)])
                final = mgr.wait(timeout=120)
                self.assertIs(final.status, SyncStatus.COMPLETED, final.describe())
                self.assertEqual(final.total_files, 2)

                # 2) list
                folders = {f.name: f for f in mgr.list_cloud_folders()}
                self.assertIn("bucketsync_it", folders)
                self.assertEqual(folders["bucketsync_it"].file_count, 2)

                # 3) download
                dst = tmp_path / "restore"
                mgr.start_download("bucketsync_it/", str(dst))
                final = mgr.wait(timeout=120)
                self.assertIs(final.status, SyncStatus.COMPLETED, final.describe())
                self.assertEqual((dst / "nested" / "data.bin").stat().st_size, 1024)
        finally:
            # 4) cleanup (the test namespace only)
            mgr.delete_all_files()
            mgr.logout()


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Verbose unittest output",
    )
    return parser.parse_args()


if __name__ == "__main__":
    args = _parse_args()
    unittest.main(verbosity=2 if args.verbose else 1)

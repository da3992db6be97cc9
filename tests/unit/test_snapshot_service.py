# tests/unit/test_snapshot_service.py
"""Unit tests for snapshot publishing."""

import pytest

from etcd2s3.errors import ConfigurationError
from etcd2s3.models import Location, RetentionPolicy
from etcd2s3.retention.names import CompressionAlgorithm
from etcd2s3.services.snapshot_service import publish_snapshot, snapshot_name, upload_missing
from etcd2s3.storage.local_provider import LocalSnapshotStore

EXPECTED_RAW = "etcd-snapshot-20240615-120000.db"


@pytest.fixture
def raw_snapshot(tmp_path):
    path = tmp_path / "etcd.db"
    path.write_bytes(b"raw etcd snapshot " * 100)
    return path


@pytest.fixture
def local_store(tmp_path):
    return LocalSnapshotStore(tmp_path / "snapshots")


class TestSnapshotName:
    """Tests for snapshot_name()."""

    def test_timestamped_default(self, now):
        assert snapshot_name(now=now) == EXPECTED_RAW

    def test_custom_name_gets_db_suffix(self):
        assert snapshot_name("nightly") == "nightly.db"
        assert snapshot_name("nightly.bak") == "nightly.bak.db"

    def test_custom_db_name_unchanged(self):
        assert snapshot_name("nightly.db") == "nightly.db"


class TestPublishSnapshot:
    """Tests for publish_snapshot()."""

    def test_compresses_and_uploads(self, raw_snapshot, local_store, memory_store, now):
        remote = memory_store(Location.REMOTE)

        result = publish_snapshot(
            raw_snapshot,
            local_store,
            remote,
            RetentionPolicy(keep_last=5),
            algorithm=CompressionAlgorithm.GZIP,
            apply_retention_after=False,
            now=now,
        )

        assert result.success
        assert result.name == EXPECTED_RAW + ".gz"
        assert result.uploaded
        assert remote.uploaded == [EXPECTED_RAW + ".gz"]
        assert (local_store.base_path / (EXPECTED_RAW + ".gz")).exists()
        assert not (local_store.base_path / EXPECTED_RAW).exists()
        assert not raw_snapshot.exists()

    def test_no_compression_keeps_raw_name(self, raw_snapshot, local_store, now):
        result = publish_snapshot(
            raw_snapshot,
            local_store,
            None,
            RetentionPolicy(keep_last=5),
            algorithm=CompressionAlgorithm.NONE,
            upload=False,
            now=now,
        )

        assert result.name == EXPECTED_RAW
        assert not result.uploaded
        assert (local_store.base_path / EXPECTED_RAW).exists()

    def test_upload_without_remote_store(self, raw_snapshot, local_store, now):
        with pytest.raises(ConfigurationError):
            publish_snapshot(raw_snapshot, local_store, None, RetentionPolicy(keep_last=5), now=now)

    def test_custom_name_cannot_escape_snapshot_dir(self, tmp_path, raw_snapshot, local_store, now):
        with pytest.raises(ConfigurationError, match="Path traversal detected"):
            publish_snapshot(
                raw_snapshot,
                local_store,
                None,
                RetentionPolicy(keep_last=5),
                name="../escape",
                upload=False,
                now=now,
            )

        assert raw_snapshot.exists()
        assert not (tmp_path / "escape.db").exists()

    def test_missing_source(self, tmp_path, local_store, memory_store, now):
        with pytest.raises(FileNotFoundError):
            publish_snapshot(tmp_path / "nope.db", local_store, memory_store(), RetentionPolicy(keep_last=5), now=now)

    def test_uploads_missing_kept_snapshots(self, raw_snapshot, local_store, memory_store, now):
        local_store.base_path.mkdir(parents=True)
        (local_store.base_path / "etcd-snapshot-older.db.zst").write_bytes(b"older")
        remote = memory_store(Location.REMOTE)

        result = publish_snapshot(
            raw_snapshot,
            local_store,
            remote,
            RetentionPolicy(keep_last=5),
            algorithm=CompressionAlgorithm.ZSTD,
            now=now,
        )

        assert result.catch_up_uploaded == ["etcd-snapshot-older.db.zst"]
        assert set(remote.records) == {EXPECTED_RAW + ".zst", "etcd-snapshot-older.db.zst"}
        assert result.retention is not None and result.retention.success

    def test_remove_local_after_upload(self, raw_snapshot, local_store, memory_store, now):
        remote = memory_store(Location.REMOTE)

        result = publish_snapshot(
            raw_snapshot,
            local_store,
            remote,
            RetentionPolicy(keep_last=5),
            remove_local=True,
            apply_retention_after=False,
            now=now,
        )

        assert result.local_removed
        assert result.local_path is None
        assert list(local_store.base_path.iterdir()) == []
        assert EXPECTED_RAW + ".zst" in remote.records

    def test_catch_up_skipped_when_remote_cannot_be_listed(self, raw_snapshot, local_store, memory_store, now):
        remote = memory_store(Location.REMOTE, fail_listing=True)

        result = publish_snapshot(
            raw_snapshot,
            local_store,
            remote,
            RetentionPolicy(keep_last=5),
            apply_retention_after=False,
            now=now,
        )

        assert result.uploaded
        assert result.catch_up_skipped
        assert result.catch_up_uploaded == []


class TestUploadMissing:
    """Tests for upload_missing()."""

    def test_deleted_snapshots_are_not_uploaded(self, tmp_path, memory_store, now):
        store = LocalSnapshotStore(tmp_path)
        (tmp_path / "a.db").write_bytes(b"a")
        (tmp_path / "b.db").write_bytes(b"b")
        remote = memory_store(Location.REMOTE)

        report, uploaded = upload_missing(store, remote, RetentionPolicy(keep_last=1), now)

        assert len(report.gaps) == 1
        assert uploaded == [report.gaps[0].name]

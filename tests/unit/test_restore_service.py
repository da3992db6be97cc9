# tests/unit/test_restore_service.py
"""Unit tests for the restore service."""

import gzip
from datetime import timedelta

import pytest

from etcd2s3.errors import ConfigurationError, SnapshotNotFoundError, StoreUnavailableError
from etcd2s3.models import Location
from etcd2s3.services.restore_service import fetch_snapshot, parse_s3_url

PAYLOAD = b"etcd bolt database"


def _remote_with(memory_store, make_record, name, blob):
    record = make_record(name, timedelta(hours=1), location=Location.REMOTE, size=max(len(blob), 1))
    return memory_store(Location.REMOTE, [record], {name: blob})


class TestParseS3Url:
    """Tests for parse_s3_url()."""

    def test_bucket_and_key(self):
        assert parse_s3_url("s3://backups/etcd/a.db.zst") == ("backups", "etcd/a.db.zst")

    def test_missing_key(self):
        with pytest.raises(ValueError):
            parse_s3_url("s3://backups")


class TestLocalSources:
    """Sources found on the local filesystem."""

    def test_raw_local_file_used_directly(self, tmp_path):
        path = tmp_path / "snap.db"
        path.write_bytes(PAYLOAD)

        assert fetch_snapshot(str(path), None, tmp_path / "out") == path

    def test_compressed_variant_is_decompressed(self, tmp_path):
        (tmp_path / "snap.db.gz").write_bytes(gzip.compress(PAYLOAD))

        result = fetch_snapshot(str(tmp_path / "snap.db"), None, tmp_path / "out")

        assert result == tmp_path / "out" / "snap.db"
        assert result.read_bytes() == PAYLOAD

    def test_empty_local_file_is_ignored(self, tmp_path):
        (tmp_path / "snap.db").write_bytes(b"")

        with pytest.raises(ConfigurationError):
            fetch_snapshot(str(tmp_path / "snap.db"), None, tmp_path / "out")


class TestRemoteSources:
    """Sources downloaded from the remote store."""

    def test_resolves_compressed_variant_remotely(self, tmp_path, memory_store, make_record):
        remote = _remote_with(memory_store, make_record, "snap.db.gz", gzip.compress(PAYLOAD))

        result = fetch_snapshot("snap.db", remote, tmp_path)

        assert result == tmp_path / "snap.db"
        assert result.read_bytes() == PAYLOAD
        assert (tmp_path / "snap.db.gz").exists()

    def test_s3_url(self, tmp_path, memory_store, make_record):
        remote = _remote_with(memory_store, make_record, "snap.db", PAYLOAD)

        result = fetch_snapshot("s3://backups/snap.db", remote, tmp_path)

        assert result.read_bytes() == PAYLOAD

    def test_not_found_anywhere(self, tmp_path, memory_store):
        with pytest.raises(SnapshotNotFoundError) as exc_info:
            fetch_snapshot("missing.db", memory_store(Location.REMOTE), tmp_path)

        assert exc_info.value.requested == "missing.db"

    def test_empty_download_is_removed(self, tmp_path, memory_store, make_record):
        remote = _remote_with(memory_store, make_record, "snap.db", b"")

        with pytest.raises(StoreUnavailableError, match="empty"):
            fetch_snapshot("snap.db", remote, tmp_path)

        assert not (tmp_path / "snap.db").exists()

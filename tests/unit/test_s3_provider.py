# tests/unit/test_s3_provider.py
"""Unit tests for S3SnapshotStore with a mocked boto3 client."""

from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from etcd2s3.errors import ConfigurationError, StoreUnavailableError
from etcd2s3.models import Location
from etcd2s3.storage.s3_provider import S3SnapshotStore


def _client_error(code: str, operation: str = "HeadObject") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


def _store(prefix: str = "etcd", client: MagicMock | None = None) -> S3SnapshotStore:
    return S3SnapshotStore(bucket="backups", prefix=prefix, client=client or MagicMock())


class TestConfiguration:
    """Tests for construction and key handling."""

    def test_bucket_required(self):
        with pytest.raises(ConfigurationError):
            S3SnapshotStore(bucket="", client=MagicMock())

    def test_prefix_is_normalized(self):
        store = _store(prefix="/etcd/prod/")

        assert store.prefix == "etcd/prod"
        assert store.full_key("a.db") == "etcd/prod/a.db"
        assert store.describe() == "s3://backups/etcd/prod"

    def test_no_prefix(self):
        store = _store(prefix="")

        assert store.full_key("a.db") == "a.db"
        assert store.relative_name("a.db") == "a.db"

    def test_relative_name_strips_prefix(self):
        assert _store().relative_name("etcd/a.db.zst") == "a.db.zst"


class TestListSnapshots:
    """Tests for list_snapshots()."""

    def test_lists_snapshot_objects_under_prefix(self):
        modified = datetime(2024, 1, 6, 15, 30, tzinfo=UTC)
        client = MagicMock()
        client.get_paginator.return_value.paginate.return_value = [
            {"Contents": [{"Key": "etcd/a.db.zst", "Size": 10, "LastModified": modified}]},
            {"Contents": [{"Key": "etcd/README.txt", "Size": 3, "LastModified": modified}]},
            {},
        ]

        records = _store(client=client).list_snapshots()

        client.get_paginator.assert_called_once_with("list_objects_v2")
        client.get_paginator.return_value.paginate.assert_called_once_with(Bucket="backups", Prefix="etcd/")
        assert len(records) == 1
        assert records[0].name == "a.db.zst"
        assert records[0].store_key == "etcd/a.db.zst"
        assert records[0].location is Location.REMOTE
        assert records[0].modified_at == modified

    def test_nested_keys_use_base_name(self):
        client = MagicMock()
        client.get_paginator.return_value.paginate.return_value = [
            {"Contents": [
                {"Key": "etcd/sub/x.db", "Size": 10},
                {"Key": "etcd/sub/", "Size": 0},
            ]},
        ]

        records = _store(client=client).list_snapshots()

        assert [(r.name, r.store_key) for r in records] == [("x.db", "etcd/sub/x.db")]

    def test_listing_failure_raises_store_unavailable(self):
        client = MagicMock()
        client.get_paginator.return_value.paginate.side_effect = _client_error("AccessDenied", "ListObjectsV2")

        with pytest.raises(StoreUnavailableError) as exc_info:
            _store(client=client).list_snapshots()

        assert exc_info.value.store == "s3"


class TestExists:
    """Tests for exists()."""

    def test_found(self):
        client = MagicMock()

        assert _store(client=client).exists("a.db.zst")
        client.head_object.assert_called_once_with(Bucket="backups", Key="etcd/a.db.zst")

    def test_not_found(self):
        client = MagicMock()
        client.head_object.side_effect = _client_error("404")

        assert not _store(client=client).exists("a.db.zst")

    def test_other_errors_raise(self):
        client = MagicMock()
        client.head_object.side_effect = _client_error("403")

        with pytest.raises(StoreUnavailableError):
            _store(client=client).exists("a.db.zst")


class TestTransfers:
    """Tests for upload() and download()."""

    def test_upload_uses_prefixed_key(self, tmp_path):
        source = tmp_path / "a.db.zst"
        source.write_bytes(b"payload")
        client = MagicMock()

        record = _store(client=client).upload(source, "a.db.zst")

        client.upload_file.assert_called_once_with(str(source), "backups", "etcd/a.db.zst")
        assert record.size == 7
        assert record.store_key == "etcd/a.db.zst"

    def test_upload_failure_raises(self, tmp_path):
        source = tmp_path / "a.db"
        source.write_bytes(b"x")
        client = MagicMock()
        client.upload_file.side_effect = _client_error("AccessDenied", "PutObject")

        with pytest.raises(StoreUnavailableError):
            _store(client=client).upload(source, "a.db")

    def test_download(self, tmp_path):
        client = MagicMock()
        destination = tmp_path / "out" / "a.db"

        _store(client=client).download("a.db", destination)

        client.download_file.assert_called_once_with("backups", "etcd/a.db", str(destination))


class TestDelete:
    """Tests for delete() and delete_many()."""

    def test_delete_single(self):
        client = MagicMock()

        assert _store(client=client).delete("etcd/a.db") is True
        client.delete_object.assert_called_once_with(Bucket="backups", Key="etcd/a.db")

    def test_delete_many_batches_by_thousand(self):
        client = MagicMock()
        client.delete_objects.side_effect = lambda **kwargs: {"Deleted": kwargs["Delete"]["Objects"]}
        keys = [f"etcd/s{i}.db" for i in range(2500)]

        deleted = _store(client=client).delete_many(keys)

        assert deleted == 2500
        assert client.delete_objects.call_count == 3
        batch_sizes = [len(c.kwargs["Delete"]["Objects"]) for c in client.delete_objects.call_args_list]
        assert batch_sizes == [1000, 1000, 500]

    def test_delete_many_counts_partial_failures(self):
        client = MagicMock()
        client.delete_objects.return_value = {
            "Deleted": [{"Key": "etcd/a.db"}],
            "Errors": [{"Key": "etcd/b.db", "Code": "AccessDenied", "Message": "denied"}],
        }

        assert _store(client=client).delete_many(["etcd/a.db", "etcd/b.db"]) == 1

# tests/conftest.py
"""
Pytest configuration and fixtures.
"""

import os
from datetime import UTC, datetime, timedelta

import pytest

from etcd2s3.errors import StoreUnavailableError
from etcd2s3.models import Location, RetentionPolicy, SnapshotRecord
from etcd2s3.storage.base import SnapshotStore

# Keep a developer's .env / shell config out of the tests
for _var in ("S3_BUCKET", "S3_PREFIX", "S3_ENDPOINT_URL", "SNAPSHOT_DIR", "COMPRESSION"):
    os.environ.pop(_var, None)

NOW = datetime(2024, 6, 15, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def now():
    """Fixed evaluation instant."""
    return NOW


@pytest.fixture
def make_record():
    """Factory for SnapshotRecords aged relative to NOW."""

    def _make(
        name: str,
        age: timedelta = timedelta(0),
        location: Location = Location.LOCAL,
        size: int = 1024,
        modified_at: datetime | None = None,
    ) -> SnapshotRecord:
        return SnapshotRecord(
            name=name,
            size=size,
            modified_at=modified_at if modified_at is not None else NOW - age,
            location=location,
            store_key=f"/snapshots/{name}" if location is Location.LOCAL else f"etcd/{name}",
        )

    return _make


@pytest.fixture
def disabled_policy():
    return RetentionPolicy()


@pytest.fixture(autouse=True)
def _reset_store_overrides():
    from etcd2s3.config import get_settings
    from etcd2s3.storage.factory import reset_stores

    yield
    reset_stores()
    get_settings.cache_clear()


class InMemoryStore(SnapshotStore):
    """Dict-backed snapshot store for service tests."""

    def __init__(self, location: Location = Location.REMOTE, records=None, blobs=None, fail_listing=False):
        self._location = location
        self.records = {r.name: r for r in (records or [])}
        self.blobs = dict(blobs or {})
        self.fail_listing = fail_listing
        self.uploaded: list[str] = []

    @property
    def name(self) -> str:
        return "local" if self._location is Location.LOCAL else "s3"

    @property
    def location(self) -> Location:
        return self._location

    def describe(self) -> str:
        return f"memory:{self.name}"

    def list_snapshots(self):
        if self.fail_listing:
            raise StoreUnavailableError(self.name, "listing failed")
        return list(self.records.values())

    def exists(self, name):
        record = self.records.get(name)
        return record is not None and record.size > 0

    def upload(self, source, name):
        data = source.read_bytes()
        record = SnapshotRecord(
            name=name,
            size=len(data),
            modified_at=datetime.now(UTC),
            location=self._location,
            store_key=f"mem/{name}",
        )
        self.records[name] = record
        self.blobs[name] = data
        self.uploaded.append(name)
        return record

    def download(self, name, destination):
        destination.write_bytes(self.blobs.get(name, b""))
        return destination

    def delete(self, store_key):
        for name, record in list(self.records.items()):
            if record.store_key == store_key:
                del self.records[name]
                return True
        return False


@pytest.fixture
def memory_store():
    """Factory for in-memory snapshot stores."""
    return InMemoryStore

# etcd2s3/storage/base.py
"""
Snapshot store interface.

Design principles:
- Two stores hold copies of the same snapshots: a local directory and an
  S3-compatible bucket
- Stores only move bytes and enumerate; keep/delete decisions belong to
  etcd2s3.retention
- Listings are filtered to snapshot-looking names before they leave the store
- Listing failures raise StoreUnavailableError; callers decide whether a
  missing listing is fatal
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from pathlib import Path

from etcd2s3.models import Location, SnapshotRecord


class SnapshotStore(ABC):
    """
    Abstract interface for a place snapshots live.

    Implementations must handle:
    - Enumeration of snapshot files/objects as SnapshotRecords
    - Existence probes by snapshot name (used by name resolution)
    - Upload from / download to a local path
    - Single and batched deletion by store key
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name (e.g., 's3', 'local')."""
        pass

    @property
    @abstractmethod
    def location(self) -> Location:
        """Which side of the reconciliation this store represents."""
        pass

    @abstractmethod
    def list_snapshots(self) -> list[SnapshotRecord]:
        """
        List every snapshot in the store.

        Raises:
            StoreUnavailableError: If the store cannot be enumerated
        """
        pass

    @abstractmethod
    def exists(self, name: str) -> bool:
        """Check whether a snapshot with this name is present."""
        pass

    @abstractmethod
    def upload(self, source: Path, name: str) -> SnapshotRecord:
        """
        Copy a local file into the store under ``name``.

        Returns:
            SnapshotRecord for the stored copy
        """
        pass

    @abstractmethod
    def download(self, name: str, destination: Path) -> Path:
        """Copy snapshot ``name`` out of the store to ``destination``."""
        pass

    @abstractmethod
    def delete(self, store_key: str) -> bool:
        """
        Delete one snapshot by store key.

        Returns:
            True if deleted, False if not found
        """
        pass

    def delete_many(self, store_keys: Iterable[str]) -> int:
        """Delete several snapshots. Returns the number actually deleted."""
        deleted = 0
        for key in store_keys:
            if self.delete(key):
                deleted += 1
        return deleted

    def describe(self) -> str:
        """Human readable identifier used in logs."""
        return self.name

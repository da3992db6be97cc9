# etcd2s3/storage/local_provider.py
"""
Local filesystem snapshot store.

Snapshots live flat in a single directory (no subdirectories). The store
key of a local snapshot is its absolute path.
"""

import logging
import os
import shutil
from datetime import UTC, datetime
from pathlib import Path

from etcd2s3.errors import StoreUnavailableError
from etcd2s3.models import Location, SnapshotRecord
from etcd2s3.retention.names import is_snapshot_name
from etcd2s3.storage.base import SnapshotStore

logger = logging.getLogger(__name__)


class LocalSnapshotStore(SnapshotStore):
    """
    Snapshot directory on the local filesystem.

    Configuration:
    - SNAPSHOT_DIR: Directory holding snapshots (see etcd2s3.config)
    """

    def __init__(self, base_path: str | Path):
        self._base_path = Path(base_path).expanduser()

    @property
    def name(self) -> str:
        return "local"

    @property
    def location(self) -> Location:
        return Location.LOCAL

    @property
    def base_path(self) -> Path:
        return self._base_path

    def describe(self) -> str:
        return f"local:{self._base_path}"

    def path_for(self, name: str) -> Path:
        """Path a snapshot called ``name`` occupies in this directory."""
        return self._get_path(name)

    def _get_path(self, name: str) -> Path:
        """Get filesystem path for a snapshot name, with path traversal protection."""
        resolved = (self._base_path / name).resolve()
        if not resolved.is_relative_to(self._base_path.resolve()):
            raise ValueError("Path traversal detected")
        return resolved

    def _record(self, path: Path, stat: os.stat_result) -> SnapshotRecord:
        return SnapshotRecord(
            name=path.name,
            size=stat.st_size,
            modified_at=datetime.fromtimestamp(stat.st_mtime, tz=UTC),
            location=Location.LOCAL,
            store_key=str(path),
        )

    def list_snapshots(self) -> list[SnapshotRecord]:
        """List snapshot files. A missing directory lists as empty."""
        if not self._base_path.exists():
            return []

        try:
            entries = sorted(self._base_path.iterdir())
        except OSError as e:
            raise StoreUnavailableError(self.name, f"failed to read {self._base_path}: {e}") from e

        records = []
        for entry in entries:
            if not is_snapshot_name(entry.name):
                continue
            try:
                if not entry.is_file():
                    continue
                stat = entry.stat()
            except OSError as e:
                # Vanished between iterdir() and stat()
                logger.debug(f"Skipping {entry}: {e}")
                continue
            records.append(self._record(entry, stat))
        return records

    def exists(self, name: str) -> bool:
        """A snapshot exists when it is a non-empty regular file."""
        path = self._get_path(name)
        try:
            return path.is_file() and path.stat().st_size > 0
        except OSError:
            return False

    def upload(self, source: Path, name: str) -> SnapshotRecord:
        """Copy a file into the snapshot directory (no-op if already there)."""
        destination = self._get_path(name)
        destination.parent.mkdir(parents=True, exist_ok=True)
        if Path(source).resolve() != destination:
            shutil.copy2(source, destination)
        logger.debug(f"Stored local snapshot: {destination}")
        return self._record(destination, destination.stat())

    def download(self, name: str, destination: Path) -> Path:
        source = self._get_path(name)
        destination = Path(destination)
        destination.parent.mkdir(parents=True, exist_ok=True)
        if source != destination.resolve():
            shutil.copy2(source, destination)
        return destination

    def delete(self, store_key: str) -> bool:
        """Delete a snapshot file by absolute path or bare name."""
        path = Path(store_key)
        if not path.is_absolute():
            path = self._get_path(store_key)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        logger.debug(f"Deleted local snapshot: {path}")
        return True

# etcd2s3/services/snapshot_service.py
"""
Snapshot publishing: take a raw etcd snapshot file and distribute it.

Pipeline:
1. Place the file in the snapshot directory under its final name
2. Compress it (the raw file is removed afterwards)
3. Upload it to the remote store
4. Upload any kept local snapshots the remote store is missing
5. Optionally remove the local copy
6. Apply retention

Steps 4-6 are best effort: their failures are recorded on the result but
do not undo a successful upload.
"""

import logging
import shutil
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from etcd2s3.constants import SnapshotNaming
from etcd2s3.errors import ConfigurationError, Etcd2S3Error, StoreUnavailableError
from etcd2s3.models import RetentionPolicy
from etcd2s3.retention import evaluate, find_gaps, reconcile
from etcd2s3.retention.gaps import GapReport
from etcd2s3.retention.names import CompressionAlgorithm
from etcd2s3.services.cleanup_service import CleanupResult, apply_retention
from etcd2s3.storage.base import SnapshotStore
from etcd2s3.storage.codecs import compress_file
from etcd2s3.storage.local_provider import LocalSnapshotStore

logger = logging.getLogger(__name__)


@dataclass
class PublishResult:
    """Result of publishing one snapshot."""

    success: bool
    name: str
    local_path: Path | None = None
    uploaded: bool = False
    local_removed: bool = False
    catch_up_uploaded: list[str] = field(default_factory=list)
    catch_up_skipped: bool = False
    retention: CleanupResult | None = None
    errors: list[str] = field(default_factory=list)


def snapshot_name(custom: str | None = None, now: datetime | None = None) -> str:
    """
    Final raw name for a new snapshot.

    ``etcd-snapshot-YYYYmmdd-HHMMSS.db`` by default; custom names always end
    in ``.db``.
    """
    if custom:
        name = custom
    else:
        now = now or datetime.now(UTC)
        name = f"{SnapshotNaming.NAME_PREFIX}{now.strftime(SnapshotNaming.TIMESTAMP_FORMAT)}"
    if Path(name).suffix != SnapshotNaming.RAW_SUFFIX:
        name = f"{name}{SnapshotNaming.RAW_SUFFIX}"
    return name


def upload_missing(
    local_store: SnapshotStore,
    remote_store: SnapshotStore,
    policy: RetentionPolicy,
    now: datetime,
    unified: bool = True,
) -> tuple[GapReport, list[str]]:
    """
    Upload kept local snapshots that the remote store lacks.

    Returns:
        (gap report, names uploaded successfully)
    """
    local = local_store.list_snapshots()
    try:
        remote = remote_store.list_snapshots()
    except StoreUnavailableError as e:
        logger.warning(f"Skipping catch-up upload: {e}")
        return find_gaps(local, None, {}), []

    verdict = reconcile(local, remote, policy, now) if unified else evaluate(local, policy, now)
    report = find_gaps(local, {record.name for record in remote}, verdict)

    if not report.has_gaps:
        logger.info("All kept local snapshots are already present remotely")
        return report, []

    logger.info(f"Found {len(report.gaps)} local snapshots to upload")
    uploaded = []
    for record in report.gaps:
        try:
            remote_store.upload(Path(record.store_key), record.name)
        except (Etcd2S3Error, OSError) as e:
            logger.warning(f"Failed to upload snapshot {record.name}: {e}")
            continue
        logger.info(f"Uploaded missing snapshot: {record.name}")
        uploaded.append(record.name)
    return report, uploaded


def publish_snapshot(
    source: Path,
    local_store: LocalSnapshotStore,
    remote_store: SnapshotStore | None,
    policy: RetentionPolicy,
    algorithm: CompressionAlgorithm = CompressionAlgorithm.ZSTD,
    name: str | None = None,
    upload: bool = True,
    remove_local: bool = False,
    apply_retention_after: bool = True,
    unified: bool = True,
    now: datetime | None = None,
) -> PublishResult:
    """
    Publish a raw snapshot file.

    Args:
        source: Raw snapshot produced by ``etcdctl snapshot save``
        local_store: Snapshot directory the file is moved into
        remote_store: Remote store (required when ``upload`` is True)
        policy: Retention thresholds for catch-up and cleanup
        algorithm: Compression for the stored copy
        name: Custom snapshot name (``.db`` appended if missing)
        upload: Upload to the remote store
        remove_local: Remove the local copy after a successful upload
        apply_retention_after: Run cleanup once the snapshot is stored
        unified: Use unified retention for catch-up and cleanup
        now: Instant used for naming and retention

    Raises:
        ConfigurationError: If upload is requested without a remote store
            or the name escapes the snapshot directory
        FileNotFoundError: If ``source`` does not exist
    """
    now = now or datetime.now(UTC)
    source = Path(source)
    algorithm = CompressionAlgorithm.parse(algorithm)

    if upload and remote_store is None:
        raise ConfigurationError("Upload requested but no remote store is configured (set S3_BUCKET)")
    if not source.is_file():
        raise FileNotFoundError(f"Snapshot source not found: {source}")

    raw_name = snapshot_name(name, now)
    try:
        raw_path = local_store.path_for(raw_name)
    except ValueError as e:
        raise ConfigurationError(f"Invalid snapshot name {raw_name!r}: {e}") from e
    local_store.base_path.mkdir(parents=True, exist_ok=True)
    if source.resolve() != raw_path.resolve():
        shutil.move(str(source), raw_path)
    logger.info(f"Snapshot saved: {raw_path}")

    final_path = raw_path
    if algorithm is not CompressionAlgorithm.NONE:
        final_path = compress_file(raw_path, algorithm=algorithm)
        logger.info(f"Snapshot compressed with {algorithm.value}: {final_path}")
        try:
            raw_path.unlink()
        except OSError as e:
            logger.error(f"Failed to remove original snapshot {raw_path}: {e}")

    result = PublishResult(success=True, name=final_path.name, local_path=final_path)

    if upload:
        remote_store.upload(final_path, final_path.name)
        result.uploaded = True
        logger.info(f"Snapshot uploaded: {remote_store.describe()}/{final_path.name}")

        try:
            report, uploaded = upload_missing(local_store, remote_store, policy, now, unified)
            result.catch_up_uploaded = uploaded
            result.catch_up_skipped = report.skipped
        except (Etcd2S3Error, OSError) as e:
            logger.warning(f"Failed to upload missing local snapshots: {e}")
            result.errors.append(f"catch-up upload failed: {e}")

        if remove_local:
            try:
                final_path.unlink()
                result.local_removed = True
                result.local_path = None
                logger.info(f"Local snapshot removed: {final_path}")
            except OSError as e:
                logger.warning(f"Failed to remove local snapshot {final_path}: {e}")

    if apply_retention_after:
        result.retention = apply_retention(
            local_store,
            remote_store if upload else None,
            policy,
            now=now,
            unified=unified,
            include_remote=upload,
        )
        if not result.retention.success:
            result.errors.extend(result.retention.errors)

    logger.info(f"Snapshot operation completed: {result.name}")
    return result

# etcd2s3/services/restore_service.py
"""
Restore service: turn a snapshot reference into a raw ``.db`` file.

Accepted sources:
- ``s3://bucket/key``: downloaded from the remote store
- a local path: used if it (or a compressed variant) exists and is non-empty
- anything else: treated as a snapshot name and looked up remotely

Running ``etcdutl snapshot restore`` on the result is left to the operator.
"""

import logging
from pathlib import Path

from etcd2s3.constants import SnapshotNaming
from etcd2s3.errors import ConfigurationError, StoreUnavailableError
from etcd2s3.retention.names import (
    DEFAULT_ALGORITHM,
    CompressionAlgorithm,
    is_compressed_name,
    resolve_candidate,
    resolve_or_raise,
    strip_compression_suffix,
)
from etcd2s3.storage.base import SnapshotStore
from etcd2s3.storage.codecs import decompress_file
from etcd2s3.storage.s3_provider import S3SnapshotStore

logger = logging.getLogger(__name__)

S3_SCHEME = "s3://"


def parse_s3_url(url: str) -> tuple[str, str]:
    """``s3://bucket/path/to/key`` -> ``("bucket", "path/to/key")``."""
    if not url.startswith(S3_SCHEME):
        raise ValueError(f"Not an s3:// URL: {url}")
    bucket, _, key = url[len(S3_SCHEME):].partition("/")
    if not bucket or not key:
        raise ValueError(f"S3 URL must include bucket and key: {url}")
    return bucket, key


def _non_empty_file(path: str) -> bool:
    candidate = Path(path)
    try:
        return candidate.is_file() and candidate.stat().st_size > 0
    except OSError:
        return False


def _download(
    remote_store: SnapshotStore | None,
    name: str,
    destination_dir: Path,
    default: CompressionAlgorithm,
) -> Path:
    if remote_store is None:
        raise ConfigurationError(f"Snapshot {name} is not local and no remote store is configured (set S3_BUCKET)")

    resolved = resolve_or_raise(name, remote_store.exists, default, where=remote_store.describe())
    destination = destination_dir / Path(resolved).name
    logger.info(f"Downloading snapshot: {remote_store.describe()}/{resolved}")

    try:
        remote_store.download(resolved, destination)
    except StoreUnavailableError:
        destination.unlink(missing_ok=True)
        raise

    if not _non_empty_file(str(destination)):
        destination.unlink(missing_ok=True)
        raise StoreUnavailableError(remote_store.name, f"downloaded snapshot {resolved} is empty or invalid")

    logger.info(f"Snapshot downloaded to: {destination}")
    return destination


def _raw_path(path: Path) -> Path:
    raw = path.with_name(strip_compression_suffix(path.name))
    if raw.suffix != SnapshotNaming.RAW_SUFFIX:
        raw = raw.with_name(raw.name + SnapshotNaming.RAW_SUFFIX)
    return raw


def fetch_snapshot(
    source: str,
    remote_store: SnapshotStore | None,
    output_dir: Path,
    default: CompressionAlgorithm = DEFAULT_ALGORITHM,
) -> Path:
    """
    Resolve ``source`` to a local, decompressed ``.db`` file.

    Args:
        source: s3:// URL, local path, or snapshot name
        remote_store: Remote store for downloads (None if not configured)
        output_dir: Where downloads and decompressed files are written
        default: Preferred compression variant when resolving raw names

    Returns:
        Path to the raw snapshot file

    Raises:
        SnapshotNotFoundError: If no candidate exists in the searched store
        ConfigurationError: If a download is needed without a remote store
        StoreUnavailableError: If the download fails or yields an empty file
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    if source.startswith(S3_SCHEME):
        bucket, key = parse_s3_url(source)
        name = key
        if isinstance(remote_store, S3SnapshotStore):
            if remote_store.bucket != bucket:
                logger.warning(f"URL bucket {bucket} differs from configured bucket {remote_store.bucket}")
            name = remote_store.relative_name(key)
        snapshot_path = _download(remote_store, name, output_dir, default)
    else:
        resolved, found = resolve_candidate(source, _non_empty_file, default)
        if found:
            snapshot_path = Path(resolved)
            logger.info(f"Using local snapshot: {snapshot_path}")
        else:
            logger.warning(f"Local file '{source}' not found or empty, attempting to download")
            snapshot_path = _download(remote_store, Path(source).name, output_dir, default)

    if not is_compressed_name(snapshot_path.name):
        return snapshot_path

    raw_path = _raw_path(output_dir / snapshot_path.name)
    decompress_file(snapshot_path, raw_path)
    logger.info(f"Snapshot decompressed: {raw_path}")
    return raw_path

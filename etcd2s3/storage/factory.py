# etcd2s3/storage/factory.py
"""
Factory functions for creating snapshot stores from settings.
"""

import logging

from etcd2s3.config import Settings
from etcd2s3.storage.base import SnapshotStore
from etcd2s3.storage.local_provider import LocalSnapshotStore

logger = logging.getLogger(__name__)

# Test overrides; when set they are returned instead of building a store
_local_override: SnapshotStore | None = None
_remote_override: SnapshotStore | None = None


def build_local_store(settings: Settings) -> SnapshotStore:
    """Local snapshot directory from SNAPSHOT_DIR."""
    if _local_override is not None:
        return _local_override
    return LocalSnapshotStore(settings.SNAPSHOT_DIR)


def build_remote_store(settings: Settings) -> SnapshotStore | None:
    """
    Remote S3 store, or None when no bucket is configured.

    Environment:
        S3_BUCKET, S3_PREFIX, S3_REGION, S3_ENDPOINT_URL, AWS_* credentials
    """
    if _remote_override is not None:
        return _remote_override
    if not settings.s3_enabled:
        logger.debug("S3_BUCKET not set; remote store disabled")
        return None

    from etcd2s3.storage.s3_provider import S3SnapshotStore

    return S3SnapshotStore(
        bucket=settings.S3_BUCKET,
        prefix=settings.S3_PREFIX,
        endpoint_url=settings.S3_ENDPOINT_URL,
        region=settings.S3_REGION,
        access_key_id=settings.AWS_ACCESS_KEY_ID,
        secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
        session_token=settings.AWS_SESSION_TOKEN,
    )


def set_stores(local: SnapshotStore | None = None, remote: SnapshotStore | None = None) -> None:
    """
    Set custom stores (useful for testing).
    """
    global _local_override, _remote_override
    _local_override = local
    _remote_override = remote


def reset_stores() -> None:
    """
    Reset store overrides (for testing).
    """
    set_stores(None, None)

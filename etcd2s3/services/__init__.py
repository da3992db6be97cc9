# etcd2s3/services/__init__.py
"""
Command-level services built on the retention engine and the stores.

Usage:
    from etcd2s3.services import apply_retention, list_snapshots
"""

from etcd2s3.services.cleanup_service import CleanupResult, StoreCleanup, apply_retention
from etcd2s3.services.listing_service import SnapshotInfo, list_snapshots, render
from etcd2s3.services.restore_service import fetch_snapshot, parse_s3_url
from etcd2s3.services.snapshot_service import PublishResult, publish_snapshot, snapshot_name, upload_missing

__all__ = [
    # Cleanup
    "apply_retention",
    "CleanupResult",
    "StoreCleanup",
    # Listing
    "list_snapshots",
    "render",
    "SnapshotInfo",
    # Publishing
    "publish_snapshot",
    "upload_missing",
    "snapshot_name",
    "PublishResult",
    # Restore
    "fetch_snapshot",
    "parse_s3_url",
]

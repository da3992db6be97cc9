# etcd2s3/storage/__init__.py
"""
Snapshot stores: a local directory and an S3-compatible bucket.

Usage:
    from etcd2s3.storage import build_local_store, build_remote_store

    local = build_local_store(settings)
    remote = build_remote_store(settings)  # None when S3_BUCKET is unset
"""

from etcd2s3.storage.base import SnapshotStore
from etcd2s3.storage.factory import (
    build_local_store,
    build_remote_store,
    reset_stores,
    set_stores,
)
from etcd2s3.storage.local_provider import LocalSnapshotStore

__all__ = [
    "SnapshotStore",
    "LocalSnapshotStore",
    "build_local_store",
    "build_remote_store",
    "set_stores",
    "reset_stores",
]

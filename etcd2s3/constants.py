# etcd2s3/constants.py
"""
Centralized constants organized by domain.

Hardcoded numbers/strings used throughout the codebase live here with a note
on what they control.
"""


class SnapshotNaming:
    """Snapshot file naming conventions."""

    RAW_SUFFIX = ".db"                              # Uncompressed etcd snapshot
    MARKER_TOKEN = "snapshot"                       # Names containing this are snapshots too
    NAME_PREFIX = "etcd-snapshot-"
    TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"              # etcd-snapshot-20240106-153000.db


class PolicyDefaults:
    """Default retention policy applied when nothing is configured."""

    KEEP_LAST = 5
    KEEP_LAST_HOURS = 24
    KEEP_LAST_DAYS = 7
    KEEP_LAST_WEEKS = 4
    KEEP_LAST_MONTHS = 3
    KEEP_LAST_YEARS = 1


class StoreDefaults:
    """Defaults for the local and remote snapshot stores."""

    SNAPSHOT_DIR = "/var/lib/etcd/snapshots"
    S3_REGION = "us-west-2"
    S3_DELETE_BATCH_SIZE = 1000                     # S3 DeleteObjects hard limit
    S3_CONNECT_TIMEOUT_SECONDS = 5
    S3_READ_TIMEOUT_SECONDS = 60
    S3_MAX_ATTEMPTS = 3                             # botocore adaptive retries
    TRANSFER_RETRY_ATTEMPTS = 3                     # tenacity retries on connection errors
    COPY_CHUNK_BYTES = 1024 * 1024                  # Codec streaming chunk size

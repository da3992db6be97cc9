# etcd2s3/storage/s3_provider.py
"""
S3 snapshot store implementation using boto3.

Supports:
- AWS S3
- S3-compatible services (MinIO, Ceph RGW, etc.)

Snapshot names are object keys relative to the configured prefix; the store
key of a remote record is the full object key.
"""

import logging
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path

import boto3
from botocore.config import Config
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectionClosedError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from etcd2s3.constants import StoreDefaults
from etcd2s3.errors import ConfigurationError, StoreUnavailableError
from etcd2s3.logging_config import log_store_operation
from etcd2s3.models import Location, SnapshotRecord
from etcd2s3.retention.names import is_snapshot_name
from etcd2s3.storage.base import SnapshotStore

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = ("404", "NoSuchKey", "NotFound")

# Connection-level failures worth another attempt after botocore's own retries
_TRANSIENT_ERRORS = (
    EndpointConnectionError,
    ConnectionClosedError,
    ConnectTimeoutError,
    ReadTimeoutError,
)

_transfer_retry = retry(
    stop=stop_after_attempt(StoreDefaults.TRANSFER_RETRY_ATTEMPTS),
    wait=wait_exponential(multiplier=1, min=1, max=8),
    retry=retry_if_exception_type(_TRANSIENT_ERRORS),
    reraise=True,
)


def _error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "")


class S3SnapshotStore(SnapshotStore):
    """
    S3/S3-compatible snapshot store.

    Configuration (see etcd2s3.config):
    - S3_BUCKET: Bucket name (required)
    - S3_PREFIX: Key prefix snapshots live under
    - S3_ENDPOINT_URL: Custom endpoint for S3-compatible services
    - S3_REGION: AWS region (default: us-west-2)
    - AWS_ACCESS_KEY_ID / AWS_SECRET_ACCESS_KEY / AWS_SESSION_TOKEN
    """

    def __init__(
        self,
        bucket: str,
        prefix: str = "",
        endpoint_url: str | None = None,
        region: str | None = None,
        access_key_id: str | None = None,
        secret_access_key: str | None = None,
        session_token: str | None = None,
        client=None,
    ):
        """
        Initialize S3 store.

        Args:
            bucket: S3 bucket name
            prefix: Key prefix, without leading/trailing slashes
            endpoint_url: Custom endpoint for S3-compatible services
            region: AWS region
            client: Pre-built boto3 S3 client (tests inject a mock here)
        """
        if not bucket:
            raise ConfigurationError("S3 bucket required. Set S3_BUCKET or pass --bucket.")

        self._bucket = bucket
        self._prefix = (prefix or "").strip("/")
        self._endpoint_url = endpoint_url
        self._region = region or StoreDefaults.S3_REGION

        if client is None:
            config = Config(
                retries={"max_attempts": StoreDefaults.S3_MAX_ATTEMPTS, "mode": "adaptive"},
                connect_timeout=StoreDefaults.S3_CONNECT_TIMEOUT_SECONDS,
                read_timeout=StoreDefaults.S3_READ_TIMEOUT_SECONDS,
            )
            client = boto3.client(
                "s3",
                endpoint_url=endpoint_url,
                region_name=self._region,
                aws_access_key_id=access_key_id,
                aws_secret_access_key=secret_access_key,
                aws_session_token=session_token,
                config=config,
            )
        self._client = client

        logger.info(f"S3 store initialized: bucket={self._bucket} prefix={self._prefix or '/'}")

    @property
    def name(self) -> str:
        return "s3"

    @property
    def location(self) -> Location:
        return Location.REMOTE

    @property
    def bucket(self) -> str:
        return self._bucket

    @property
    def prefix(self) -> str:
        return self._prefix

    def describe(self) -> str:
        if self._prefix:
            return f"s3://{self._bucket}/{self._prefix}"
        return f"s3://{self._bucket}"

    def full_key(self, name: str) -> str:
        """Apply the store prefix to a snapshot name."""
        name = name.lstrip("/")
        if not self._prefix:
            return name
        return f"{self._prefix}/{name}"

    def relative_name(self, key: str) -> str:
        """Strip the store prefix from an object key."""
        if self._prefix and key.startswith(self._prefix + "/"):
            return key[len(self._prefix) + 1:]
        if self._prefix and key == self._prefix:
            return ""
        return key

    @_transfer_retry
    def _list_objects(self) -> list[dict]:
        list_prefix = f"{self._prefix}/" if self._prefix else ""
        objects = []
        paginator = self._client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=self._bucket, Prefix=list_prefix):
            objects.extend(page.get("Contents", []))
        return objects

    def list_snapshots(self) -> list[SnapshotRecord]:
        """List snapshot objects under the prefix."""
        try:
            with log_store_operation("list", self.describe()) as metrics:
                objects = self._list_objects()
                metrics["size_bytes"] = sum(obj.get("Size", 0) for obj in objects)
        except (ClientError, BotoCoreError) as e:
            raise StoreUnavailableError(self.name, f"failed to list {self.describe()}: {e}") from e

        records = []
        for obj in objects:
            key = obj["Key"]
            name = key.rsplit("/", 1)[-1]
            if not name or not is_snapshot_name(name):
                continue
            records.append(
                SnapshotRecord(
                    name=name,
                    size=obj.get("Size", 0),
                    modified_at=obj.get("LastModified"),
                    location=Location.REMOTE,
                    store_key=key,
                )
            )
        return records

    @_transfer_retry
    def _head(self, key: str) -> dict:
        return self._client.head_object(Bucket=self._bucket, Key=key)

    def exists(self, name: str) -> bool:
        """Check if a snapshot object exists in S3."""
        key = self.full_key(name)
        try:
            self._head(key)
            return True
        except ClientError as e:
            if _error_code(e) in _NOT_FOUND_CODES:
                return False
            raise StoreUnavailableError(self.name, f"failed to check {key}: {e}") from e
        except BotoCoreError as e:
            raise StoreUnavailableError(self.name, f"failed to check {key}: {e}") from e

    @_transfer_retry
    def _upload_file(self, source: Path, key: str) -> None:
        self._client.upload_file(str(source), self._bucket, key)

    def upload(self, source: Path, name: str) -> SnapshotRecord:
        """Upload a local file to S3 under ``name``."""
        source = Path(source)
        key = self.full_key(name)
        size = source.stat().st_size
        try:
            with log_store_operation("upload", key) as metrics:
                self._upload_file(source, key)
                metrics["size_bytes"] = size
        except (ClientError, BotoCoreError) as e:
            raise StoreUnavailableError(self.name, f"failed to upload {key}: {e}") from e

        return SnapshotRecord(
            name=name,
            size=size,
            modified_at=datetime.now(UTC),
            location=Location.REMOTE,
            store_key=key,
        )

    @_transfer_retry
    def _download_file(self, key: str, destination: Path) -> None:
        self._client.download_file(self._bucket, key, str(destination))

    def download(self, name: str, destination: Path) -> Path:
        """Download a snapshot object to a local path."""
        destination = Path(destination)
        destination.parent.mkdir(parents=True, exist_ok=True)
        key = self.full_key(name)
        try:
            with log_store_operation("download", key) as metrics:
                self._download_file(key, destination)
                metrics["size_bytes"] = destination.stat().st_size if destination.exists() else 0
        except (ClientError, BotoCoreError) as e:
            raise StoreUnavailableError(self.name, f"failed to download {key}: {e}") from e
        return destination

    def delete(self, store_key: str) -> bool:
        """Delete one object by its full key."""
        try:
            self._client.delete_object(Bucket=self._bucket, Key=store_key)
        except ClientError as e:
            if _error_code(e) in _NOT_FOUND_CODES:
                return False
            raise StoreUnavailableError(self.name, f"failed to delete {store_key}: {e}") from e
        except BotoCoreError as e:
            raise StoreUnavailableError(self.name, f"failed to delete {store_key}: {e}") from e
        logger.debug(f"Deleted from S3: {store_key}")
        return True

    def delete_many(self, store_keys: Iterable[str]) -> int:
        """Delete objects in batches. Per-key failures are logged and skipped."""
        keys = list(store_keys)
        batch_size = StoreDefaults.S3_DELETE_BATCH_SIZE
        deleted = 0

        for i in range(0, len(keys), batch_size):
            batch = keys[i:i + batch_size]
            try:
                response = self._client.delete_objects(
                    Bucket=self._bucket,
                    Delete={"Objects": [{"Key": k} for k in batch], "Quiet": False},
                )
            except (ClientError, BotoCoreError) as e:
                logger.error(f"Failed to delete batch of {len(batch)} objects: {e}")
                continue

            for error in response.get("Errors", []):
                logger.error(f"Failed to delete {error.get('Key')}: {error.get('Code')} {error.get('Message', '')}")
            deleted += len(response.get("Deleted", []))

        return deleted

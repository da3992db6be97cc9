# etcd2s3/services/listing_service.py
"""
Listing service: snapshots from both stores with their retention status.

Listing is read-only, so a store that cannot be listed is logged and shown
as empty rather than failing the command.
"""

import json
import logging
from dataclasses import dataclass
from datetime import UTC, datetime

import yaml

from etcd2s3.errors import StoreUnavailableError
from etcd2s3.models import RetentionPolicy, SnapshotRecord, Verdict
from etcd2s3.retention import evaluate, reconcile
from etcd2s3.retention.evaluator import as_utc
from etcd2s3.storage.base import SnapshotStore

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ("table", "json", "yaml")


@dataclass
class SnapshotInfo:
    """One row of the listing."""

    name: str
    location: str
    size: int
    modified_at: datetime | None
    retention: str  # "keep" or "delete"

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "location": self.location,
            "size": self.size,
            "modified": self.modified_at.isoformat() if self.modified_at else None,
            "retention": self.retention,
        }


def _safe_list(store: SnapshotStore | None) -> list[SnapshotRecord]:
    if store is None:
        return []
    try:
        return store.list_snapshots()
    except StoreUnavailableError as e:
        logger.error(f"Failed to list {store.describe()}: {e}")
        return []


def _rows(records: list[SnapshotRecord], verdict: Verdict) -> list[SnapshotInfo]:
    return [
        SnapshotInfo(
            name=record.name,
            location=record.location.value,
            size=record.size,
            modified_at=record.modified_at,
            retention="keep" if verdict.get(record.name, False) else "delete",
        )
        for record in records
    ]


def list_snapshots(
    local_store: SnapshotStore | None,
    remote_store: SnapshotStore | None,
    policy: RetentionPolicy,
    now: datetime | None = None,
    unified: bool = True,
    include_local: bool = True,
    include_remote: bool = True,
) -> list[SnapshotInfo]:
    """
    List snapshots with keep/delete status, newest first.

    Args:
        local_store: Local snapshot directory (None to skip)
        remote_store: Remote store (None when not configured)
        policy: Retention policy used to compute the status column
        now: Evaluation instant (defaults to current UTC time)
        unified: Evaluate both stores together; only applies when both
            stores are included
        include_local / include_remote: Restrict the listing to one store
    """
    now = now or datetime.now(UTC)

    local = _safe_list(local_store) if include_local else []
    remote = _safe_list(remote_store) if include_remote else []

    rows: list[SnapshotInfo] = []
    if unified and include_local and include_remote:
        verdict = reconcile(local, remote, policy, now)
        rows.extend(_rows(local, verdict))
        rows.extend(_rows(remote, verdict))
    else:
        rows.extend(_rows(local, evaluate(local, policy, now)))
        rows.extend(_rows(remote, evaluate(remote, policy, now)))

    oldest = datetime.min.replace(tzinfo=UTC)
    rows.sort(key=lambda row: as_utc(row.modified_at) or oldest, reverse=True)
    return rows


def format_size(size: int) -> str:
    """Human readable byte size (1024-based)."""
    unit = 1024
    if size < unit:
        return f"{size} B"
    div, exp = unit, 0
    n = size // unit
    while n >= unit:
        div *= unit
        exp += 1
        n //= unit
    return f"{size / div:.1f} {'KMGTPE'[exp]}B"


def render_table(rows: list[SnapshotInfo]) -> str:
    headers = ("NAME", "LOCATION", "SIZE", "MODIFIED", "RETENTION")
    table = [
        (
            row.name,
            row.location,
            format_size(row.size),
            row.modified_at.strftime("%Y-%m-%d %H:%M:%S") if row.modified_at else "-",
            row.retention,
        )
        for row in rows
    ]
    widths = [len(h) for h in headers]
    for line in table:
        widths = [max(w, len(cell)) for w, cell in zip(widths, line)]

    lines = ["  ".join(cell.ljust(w) for cell, w in zip(headers, widths)).rstrip()]
    for line in table:
        lines.append("  ".join(cell.ljust(w) for cell, w in zip(line, widths)).rstrip())
    return "\n".join(lines)


def render_json(rows: list[SnapshotInfo]) -> str:
    return json.dumps([row.to_dict() for row in rows], indent=2)


def render_yaml(rows: list[SnapshotInfo]) -> str:
    return yaml.safe_dump([row.to_dict() for row in rows], sort_keys=False)


def render(rows: list[SnapshotInfo], output_format: str = "table") -> str:
    """Render rows in one of OUTPUT_FORMATS."""
    if output_format == "json":
        return render_json(rows)
    if output_format == "yaml":
        return render_yaml(rows)
    if output_format == "table":
        return render_table(rows)
    raise ValueError(f"Unknown output format: {output_format}. Available: {', '.join(OUTPUT_FORMATS)}")

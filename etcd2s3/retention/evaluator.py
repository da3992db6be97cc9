# etcd2s3/retention/evaluator.py
"""
Keep/delete evaluation for one homogeneous collection of snapshots.

Rules (OR semantics, no precedence):
- keep the newest ``keep_last`` snapshots
- keep anything younger than any enabled time window

A policy with every rule disabled deletes everything. That is intentional:
an all-zero policy means "retain nothing", not "no policy".
"""

import logging
from collections.abc import Iterable
from datetime import UTC, datetime

from etcd2s3.models import RetentionPolicy, SnapshotRecord, Verdict

logger = logging.getLogger(__name__)

# Sort key for records without a usable timestamp: older than anything real
_OLDEST = datetime.min.replace(tzinfo=UTC)


def as_utc(value: object) -> datetime | None:
    """
    Normalize a timestamp for comparison.

    Naive datetimes are read as UTC. Anything that is not a datetime is
    treated as malformed and returns None.
    """
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def sort_newest_first(records: Iterable[SnapshotRecord]) -> list[SnapshotRecord]:
    """
    Order records by modification time, most recent first.

    The sort is stable: records with equal timestamps keep their input order,
    so the earlier one in the input wins a ``keep_last`` slot. Records with
    malformed timestamps sort last.
    """
    return sorted(records, key=lambda r: as_utc(r.modified_at) or _OLDEST, reverse=True)


def evaluate(
    records: Iterable[SnapshotRecord],
    policy: RetentionPolicy,
    now: datetime,
) -> Verdict:
    """
    Classify every record as keep (True) or delete (False).

    Args:
        records: Snapshots from a single collection
        policy: Retention thresholds
        now: The evaluation instant; age = now - modified_at

    Returns:
        Verdict keyed by snapshot name. Every input name is present.
    """
    ordered = sort_newest_first(records)
    verdict: Verdict = {record.name: False for record in ordered}

    if policy.is_disabled():
        logger.debug(f"All retention rules disabled; {len(verdict)} snapshots marked for deletion")
        return verdict

    if policy.keep_last > 0:
        for record in ordered[: policy.keep_last]:
            verdict[record.name] = True

    windows = policy.windows()
    if windows:
        reference = as_utc(now)
        for record in ordered:
            modified = as_utc(record.modified_at)
            if modified is None or reference is None:
                continue
            age = reference - modified
            if any(age <= window for _, window in windows):
                verdict[record.name] = True

    return verdict

# etcd2s3/retention/reconciler.py
"""
Cross-store reconciliation.

The local directory and the remote bucket are listed independently and may
disagree. Reconciliation merges both listings by name into one logical
collection, evaluates the policy once, and applies that single verdict to
each store's own copies. A snapshot's fate therefore does not depend on
which store happened to be queried.

Merge rule: a remote record replaces the local one only when it is strictly
newer. Equal timestamps keep the local record.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime

from etcd2s3.errors import InvalidListingError
from etcd2s3.models import RetentionPolicy, SnapshotRecord, Verdict
from etcd2s3.retention.evaluator import as_utc, evaluate

logger = logging.getLogger(__name__)


def _validated(listing: Iterable[SnapshotRecord] | None, label: str) -> list[SnapshotRecord]:
    if listing is None:
        raise InvalidListingError(f"{label} listing is missing")
    records = list(listing)
    for index, record in enumerate(records):
        if not isinstance(record, SnapshotRecord):
            raise InvalidListingError(
                f"{label} listing entry {index} is {type(record).__name__}, expected SnapshotRecord"
            )
        if not record.name:
            raise InvalidListingError(f"{label} listing entry {index} has an empty name")
    return records


def _strictly_newer(candidate: SnapshotRecord, existing: SnapshotRecord) -> bool:
    candidate_ts = as_utc(candidate.modified_at)
    existing_ts = as_utc(existing.modified_at)
    if candidate_ts is None:
        return False
    if existing_ts is None:
        return True
    return candidate_ts > existing_ts


def merge_listings(
    local: Iterable[SnapshotRecord],
    remote: Iterable[SnapshotRecord],
) -> list[SnapshotRecord]:
    """
    Merge two listings into one collection with a single record per name.

    Seeded from ``local``; a ``remote`` record with the same name replaces
    the seeded one only if its timestamp is strictly more recent. Output
    order is local order followed by remote-only names in remote order.

    Raises:
        InvalidListingError: If either listing is missing or malformed
    """
    local_records = _validated(local, "local")
    remote_records = _validated(remote, "remote")

    merged: dict[str, SnapshotRecord] = {}
    for record in local_records:
        merged[record.name] = record

    for record in remote_records:
        existing = merged.get(record.name)
        if existing is None or _strictly_newer(record, existing):
            merged[record.name] = record

    return list(merged.values())


def reconcile(
    local: Iterable[SnapshotRecord],
    remote: Iterable[SnapshotRecord],
    policy: RetentionPolicy,
    now: datetime,
) -> Verdict:
    """Evaluate the policy once over the merged view of both stores."""
    merged = merge_listings(local, remote)
    verdict = evaluate(merged, policy, now)
    logger.debug(
        f"Reconciled {len(merged)} unique snapshots: "
        f"{sum(verdict.values())} keep, {len(verdict) - sum(verdict.values())} delete"
    )
    return verdict


@dataclass
class StorePlan:
    """What one store keeps and deletes under a verdict."""

    keep: list[SnapshotRecord] = field(default_factory=list)
    delete: list[SnapshotRecord] = field(default_factory=list)


@dataclass
class RetentionPlan:
    """A verdict applied independently to the local and remote listings."""

    verdict: Verdict
    local: StorePlan
    remote: StorePlan


def split_by_verdict(records: Sequence[SnapshotRecord], verdict: Verdict) -> StorePlan:
    """
    Partition one store's records by the verdict.

    Names missing from the verdict are deleted, matching the evaluator's
    "not kept means delete" rule.
    """
    plan = StorePlan()
    for record in records:
        if verdict.get(record.name, False):
            plan.keep.append(record)
        else:
            plan.delete.append(record)
    return plan


def plan_retention(
    local: Sequence[SnapshotRecord],
    remote: Sequence[SnapshotRecord],
    verdict: Verdict,
) -> RetentionPlan:
    """
    Apply one verdict to each store's original listing.

    A copy is deleted from its store when the verdict says delete, even if
    the other store's copy was the one that won the merge.
    """
    return RetentionPlan(
        verdict=verdict,
        local=split_by_verdict(local, verdict),
        remote=split_by_verdict(remote, verdict),
    )

# etcd2s3/services/cleanup_service.py
"""
Cleanup service: apply the retention policy to the stores.

Two modes:
- Unified (default): list both stores, reconcile into one verdict, apply it
  to each store. A failed listing aborts before anything is deleted.
- Separate: evaluate and clean each store on its own. A failure in one
  store is reported and the other store is still processed.

Usage:
    from etcd2s3.services.cleanup_service import apply_retention

    result = apply_retention(local_store, remote_store, policy, dry_run=True)
"""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime

from etcd2s3.errors import Etcd2S3Error, StoreUnavailableError
from etcd2s3.models import RetentionPolicy, SnapshotRecord
from etcd2s3.retention import evaluate, plan_retention, reconcile
from etcd2s3.retention.reconciler import StorePlan, split_by_verdict
from etcd2s3.storage.base import SnapshotStore

logger = logging.getLogger(__name__)


@dataclass
class StoreCleanup:
    """Outcome of cleaning one store."""

    store: str
    kept: int = 0
    deleted: int = 0
    failed: int = 0
    deleted_names: list[str] = field(default_factory=list)


@dataclass
class CleanupResult:
    """Result of a cleanup operation."""

    success: bool
    dry_run: bool = False
    unified: bool = True
    local: StoreCleanup | None = None
    remote: StoreCleanup | None = None
    errors: list[str] = field(default_factory=list)

    @property
    def total_deleted(self) -> int:
        return sum(s.deleted for s in (self.local, self.remote) if s is not None)


def _apply_plan(store: SnapshotStore, plan: StorePlan, dry_run: bool, errors: list[str]) -> StoreCleanup:
    """Delete the plan's doomed records from ``store`` (or just log them)."""
    outcome = StoreCleanup(store=store.name, kept=len(plan.keep))
    names = [record.name for record in plan.delete]

    if not plan.delete:
        return outcome

    if dry_run:
        for record in plan.delete:
            logger.warning(f"[DRY RUN] Would delete {store.name} snapshot: {record.name}")
        outcome.deleted = len(plan.delete)
        outcome.deleted_names = names
        return outcome

    for record in plan.delete:
        logger.warning(f"Deleting {store.name} snapshot: {record.name}")

    try:
        deleted = store.delete_many(record.store_key for record in plan.delete)
    except (Etcd2S3Error, OSError) as e:
        errors.append(f"Failed to delete {store.name} snapshots: {e}")
        logger.error(f"Failed to delete {store.name} snapshots: {e}")
        outcome.failed = len(plan.delete)
        return outcome

    outcome.deleted = deleted
    outcome.deleted_names = names
    outcome.failed = len(plan.delete) - deleted
    if outcome.failed:
        errors.append(f"{outcome.failed} of {len(plan.delete)} {store.name} deletions failed")
    return outcome


def _log_summary(label: str, outcome: StoreCleanup, dry_run: bool) -> None:
    if dry_run:
        logger.info(
            f"{label} retention dry run complete: {outcome.kept} would be kept, {outcome.deleted} would be deleted",
            extra={"store": outcome.store, "kept": outcome.kept, "deleted": outcome.deleted, "dry_run": True},
        )
    else:
        logger.info(
            f"{label} retention complete: {outcome.kept} kept, {outcome.deleted} deleted",
            extra={"store": outcome.store, "kept": outcome.kept, "deleted": outcome.deleted, "dry_run": False},
        )


def _apply_unified(
    local_store: SnapshotStore,
    remote_store: SnapshotStore | None,
    policy: RetentionPolicy,
    now: datetime,
    dry_run: bool,
) -> CleanupResult:
    result = CleanupResult(success=True, dry_run=dry_run, unified=True)

    if remote_store is None:
        logger.warning("Remote store unavailable, will only clean local snapshots")

    # Both listings must be complete before anything is deleted
    try:
        local: list[SnapshotRecord] = local_store.list_snapshots()
        remote: list[SnapshotRecord] = remote_store.list_snapshots() if remote_store is not None else []
    except StoreUnavailableError as e:
        logger.error(f"Unified retention aborted: {e}")
        result.success = False
        result.errors.append(str(e))
        return result

    verdict = reconcile(local, remote, policy, now)
    plan = plan_retention(local, remote, verdict)

    result.local = _apply_plan(local_store, plan.local, dry_run, result.errors)
    _log_summary("Local", result.local, dry_run)
    if remote_store is not None:
        result.remote = _apply_plan(remote_store, plan.remote, dry_run, result.errors)
        _log_summary("Remote", result.remote, dry_run)

    result.success = not result.errors
    return result


def _apply_single(
    store: SnapshotStore,
    policy: RetentionPolicy,
    now: datetime,
    dry_run: bool,
    errors: list[str],
) -> StoreCleanup | None:
    try:
        records = store.list_snapshots()
    except StoreUnavailableError as e:
        logger.error(f"Failed to clean {store.name} snapshots: {e}")
        errors.append(str(e))
        return None

    verdict = evaluate(records, policy, now)
    outcome = _apply_plan(store, split_by_verdict(records, verdict), dry_run, errors)
    _log_summary(store.name.capitalize(), outcome, dry_run)
    return outcome


def apply_retention(
    local_store: SnapshotStore,
    remote_store: SnapshotStore | None,
    policy: RetentionPolicy,
    now: datetime | None = None,
    unified: bool = True,
    include_local: bool = True,
    include_remote: bool = True,
    dry_run: bool = False,
) -> CleanupResult:
    """
    Apply retention to the local and/or remote store.

    Args:
        local_store: Local snapshot directory
        remote_store: Remote store, or None when not configured
        policy: Retention thresholds
        now: Evaluation instant (defaults to current UTC time)
        unified: Reconcile both stores into one verdict; only applies when
            both stores are in scope
        include_local / include_remote: Restrict cleanup to one store
        dry_run: Log what would be deleted without deleting

    Returns:
        CleanupResult with per-store counts and any errors
    """
    now = now or datetime.now(UTC)
    logger.info(f"Starting cleanup{' (DRY RUN)' if dry_run else ''}: {policy.describe()}")

    if unified and include_local and include_remote:
        return _apply_unified(local_store, remote_store, policy, now, dry_run)

    result = CleanupResult(success=True, dry_run=dry_run, unified=False)
    if include_local:
        result.local = _apply_single(local_store, policy, now, dry_run, result.errors)
    if include_remote:
        if remote_store is None and include_local:
            logger.warning("Remote store unavailable, will only clean local snapshots")
        elif remote_store is None:
            result.errors.append("Remote store is not configured (set S3_BUCKET)")
        else:
            result.remote = _apply_single(remote_store, policy, now, dry_run, result.errors)

    result.success = not result.errors
    return result

# etcd2s3/retention/__init__.py
"""
Retention evaluation and cross-store reconciliation engine.

Pure functions over fully materialized listings; no I/O happens here.

Modules:
- names: compression-aware candidate names and resolution
- evaluator: keep/delete verdict for one collection
- reconciler: merged verdict across local and remote listings
- gaps: kept local snapshots missing from the remote store
"""

from etcd2s3.retention.evaluator import evaluate, sort_newest_first
from etcd2s3.retention.gaps import GapReport, find_gaps
from etcd2s3.retention.names import (
    CompressionAlgorithm,
    algorithm_for_name,
    candidate_names,
    is_compressed_name,
    is_snapshot_name,
    resolve_candidate,
    resolve_or_raise,
    strip_compression_suffix,
)
from etcd2s3.retention.reconciler import (
    RetentionPlan,
    StorePlan,
    merge_listings,
    plan_retention,
    reconcile,
)

__all__ = [
    # Names
    "CompressionAlgorithm",
    "algorithm_for_name",
    "candidate_names",
    "is_compressed_name",
    "is_snapshot_name",
    "resolve_candidate",
    "resolve_or_raise",
    "strip_compression_suffix",
    # Evaluation
    "evaluate",
    "sort_newest_first",
    # Reconciliation
    "merge_listings",
    "reconcile",
    "plan_retention",
    "RetentionPlan",
    "StorePlan",
    # Gaps
    "find_gaps",
    "GapReport",
]

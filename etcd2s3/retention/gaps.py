# etcd2s3/retention/gaps.py
"""Catch-up replication: kept local snapshots that the remote store lacks."""

from collections.abc import Iterable, Set
from dataclasses import dataclass, field

from etcd2s3.models import SnapshotRecord, Verdict


@dataclass
class GapReport:
    """
    Result of gap detection.

    ``skipped`` is True when the remote listing was unavailable. In that case
    ``gaps`` is empty but must not be read as "nothing to upload".
    """

    gaps: list[SnapshotRecord] = field(default_factory=list)
    skipped: bool = False
    reason: str | None = None

    @property
    def has_gaps(self) -> bool:
        return bool(self.gaps)


def find_gaps(
    local: Iterable[SnapshotRecord],
    remote_names: Set[str] | None,
    verdict: Verdict,
) -> GapReport:
    """
    Find local snapshots that should be kept but are missing remotely.

    Args:
        local: Local listing
        remote_names: Names present in the remote store, or None if the
            remote listing could not be obtained
        verdict: Keep/delete decisions from evaluate() or reconcile()

    Returns:
        GapReport; ``skipped`` is set instead of guessing when
        ``remote_names`` is None. Order of ``gaps`` is unspecified.
    """
    if remote_names is None:
        return GapReport(skipped=True, reason="remote listing unavailable")

    gaps = [
        record
        for record in local
        if verdict.get(record.name, False) and record.name not in remote_names
    ]
    return GapReport(gaps=gaps)

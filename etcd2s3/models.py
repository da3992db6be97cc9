# etcd2s3/models.py
"""
Value types shared by the retention engine, the stores and the services.

Records and policies are immutable and owned by the caller for the duration
of one command; nothing here is persisted.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum


class Location(str, Enum):
    """Which store a snapshot observation came from."""

    LOCAL = "local"
    REMOTE = "remote"


class TimeUnit(str, Enum):
    """Retention window units with fixed (non-calendar) lengths."""

    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"

    @property
    def duration(self) -> timedelta:
        return _UNIT_DURATIONS[self]


_UNIT_DURATIONS = {
    TimeUnit.HOUR: timedelta(hours=1),
    TimeUnit.DAY: timedelta(days=1),
    TimeUnit.WEEK: timedelta(days=7),
    TimeUnit.MONTH: timedelta(days=30),
    TimeUnit.YEAR: timedelta(days=365),
}


@dataclass(frozen=True)
class SnapshotRecord:
    """One snapshot observed in one store."""

    name: str  # Filename including any compression suffix
    size: int  # Bytes, informational only
    modified_at: datetime | None
    location: Location
    store_key: str  # Path or object key used for store operations


@dataclass(frozen=True)
class RetentionPolicy:
    """
    Keep/delete thresholds. Zero or negative disables a rule.

    A snapshot is kept when it is among the newest ``keep_last`` records or
    falls inside any enabled time window.
    """

    keep_last: int = 0
    keep_hours: int = 0
    keep_days: int = 0
    keep_weeks: int = 0
    keep_months: int = 0
    keep_years: int = 0

    def window_counts(self) -> dict[TimeUnit, int]:
        return {
            TimeUnit.HOUR: self.keep_hours,
            TimeUnit.DAY: self.keep_days,
            TimeUnit.WEEK: self.keep_weeks,
            TimeUnit.MONTH: self.keep_months,
            TimeUnit.YEAR: self.keep_years,
        }

    def windows(self) -> list[tuple[TimeUnit, timedelta]]:
        """Enabled time windows as (unit, total duration) pairs."""
        return [
            (unit, unit.duration * count)
            for unit, count in self.window_counts().items()
            if count > 0
        ]

    def is_disabled(self) -> bool:
        """True when no rule is enabled, i.e. every snapshot gets deleted."""
        return self.keep_last <= 0 and not self.windows()

    def describe(self) -> str:
        parts = [f"keep_last={self.keep_last}"]
        parts.extend(f"{unit.value}s={count}" for unit, count in self.window_counts().items())
        return ", ".join(parts)


# Verdict: snapshot name -> keep (True) / delete (False)
Verdict = dict[str, bool]

# etcd2s3/errors.py
"""
Exception hierarchy for etcd2s3.

Everything raised deliberately by this package derives from Etcd2S3Error so
the CLI can report it without a traceback.
"""

from collections.abc import Sequence


class Etcd2S3Error(Exception):
    """Base class for all etcd2s3 errors."""


class ConfigurationError(Etcd2S3Error):
    """Raised when settings are missing or inconsistent."""


class InvalidListingError(Etcd2S3Error):
    """Raised when a store listing is malformed and cannot be evaluated."""


class StoreUnavailableError(Etcd2S3Error):
    """Raised when a snapshot store cannot be listed or reached."""

    def __init__(self, store: str, message: str):
        super().__init__(f"{store} store unavailable: {message}")
        self.store = store


class SnapshotNotFoundError(Etcd2S3Error):
    """
    Raised when name resolution exhausts every candidate.

    Carries the name the caller asked for and every candidate that was
    probed, so callers can report "absent" rather than a partial match.
    """

    def __init__(self, requested: str, candidates: Sequence[str], where: str = ""):
        self.requested = requested
        self.candidates = list(candidates)
        self.where = where
        location = f" in {where}" if where else ""
        super().__init__(
            f"Snapshot not found{location}: {requested} "
            f"(checked {len(self.candidates)} candidates: {', '.join(self.candidates)})"
        )

# etcd2s3/retention/names.py
"""
Compression-aware snapshot name resolution.

A logical snapshot ``etcd-snapshot-20240106-153000.db`` may be stored as
``...db.zst``, ``...db.gz``, ``...db.lz4``, ``...db.bz2`` or uncompressed.
This module generates the candidate names in preference order and probes a
store for the first one that exists.
"""

from collections.abc import Callable
from enum import Enum

from etcd2s3.constants import SnapshotNaming
from etcd2s3.errors import SnapshotNotFoundError

RAW_SUFFIX = SnapshotNaming.RAW_SUFFIX


class CompressionAlgorithm(str, Enum):
    """Supported snapshot compression algorithms."""

    NONE = "none"
    GZIP = "gzip"
    BZIP2 = "bzip2"
    LZ4 = "lz4"
    ZSTD = "zstd"

    @property
    def suffix(self) -> str:
        return COMPRESSION_SUFFIXES[self]

    @classmethod
    def parse(cls, value: "str | CompressionAlgorithm") -> "CompressionAlgorithm":
        """Parse a configured algorithm name. Raises ValueError if unknown."""
        if isinstance(value, cls):
            return value
        normalized = (value or "").strip().lower()
        try:
            return cls(normalized)
        except ValueError:
            available = ", ".join(a.value for a in cls)
            raise ValueError(f"Unsupported compression algorithm: {value!r}. Available: {available}") from None


COMPRESSION_SUFFIXES: dict[CompressionAlgorithm, str] = {
    CompressionAlgorithm.NONE: "",
    CompressionAlgorithm.GZIP: ".gz",
    CompressionAlgorithm.BZIP2: ".bz2",
    CompressionAlgorithm.LZ4: ".lz4",
    CompressionAlgorithm.ZSTD: ".zst",
}

# Probe order for compressed variants; the configured default moves to the front
VARIANT_PRIORITY: tuple[CompressionAlgorithm, ...] = (
    CompressionAlgorithm.ZSTD,
    CompressionAlgorithm.GZIP,
    CompressionAlgorithm.LZ4,
    CompressionAlgorithm.BZIP2,
)

DEFAULT_ALGORITHM = CompressionAlgorithm.ZSTD


def compressed_suffixes() -> list[str]:
    """All known compressed suffixes, in probe priority order."""
    return [algorithm.suffix for algorithm in VARIANT_PRIORITY]


def algorithm_for_name(name: str) -> CompressionAlgorithm:
    """Detect the compression algorithm from a file name suffix."""
    for algorithm in VARIANT_PRIORITY:
        if name.endswith(algorithm.suffix):
            return algorithm
    return CompressionAlgorithm.NONE


def is_compressed_name(name: str) -> bool:
    return algorithm_for_name(name) is not CompressionAlgorithm.NONE


def strip_compression_suffix(name: str) -> str:
    """``snap.db.zst`` -> ``snap.db``; names without a known suffix pass through."""
    suffix = algorithm_for_name(name).suffix
    if suffix:
        return name[: -len(suffix)]
    return name


def is_snapshot_name(name: str) -> bool:
    """
    Whether a listed file/object looks like a snapshot.

    Matches the raw suffix, any compressed suffix, or a name carrying the
    ``snapshot`` marker token.
    """
    if name.endswith(RAW_SUFFIX) or is_compressed_name(name):
        return True
    return SnapshotNaming.MARKER_TOKEN in name


def variant_order(default: CompressionAlgorithm = DEFAULT_ALGORITHM) -> list[CompressionAlgorithm]:
    """Compressed algorithms in probe order with ``default`` first."""
    default = CompressionAlgorithm.parse(default)
    ordered = [a for a in VARIANT_PRIORITY if a is not default]
    if default is not CompressionAlgorithm.NONE:
        ordered.insert(0, default)
    return ordered


def candidate_names(name: str, default: CompressionAlgorithm = DEFAULT_ALGORITHM) -> list[str]:
    """
    Every name under which ``name`` might be stored, most preferred first.

    - Already compressed: ``[name]``, nothing further to probe.
    - Raw ``.db`` name: each compressed variant (default algorithm first),
      then the uncompressed name as the final fallback.
    - Anything else is passed through untouched.
    """
    if is_compressed_name(name):
        return [name]
    if name.endswith(RAW_SUFFIX):
        return [name + algorithm.suffix for algorithm in variant_order(default)] + [name]
    return [name]


def resolve_candidate(
    name: str,
    exists: Callable[[str], bool],
    default: CompressionAlgorithm = DEFAULT_ALGORITHM,
) -> tuple[str, bool]:
    """
    Probe candidates strictly in order and return the first that exists.

    Returns ``(resolved_name, True)`` on success and ``(name, False)`` when
    every candidate was exhausted. Errors raised by ``exists`` propagate.
    """
    for candidate in candidate_names(name, default):
        if exists(candidate):
            return candidate, True
    return name, False


def resolve_or_raise(
    name: str,
    exists: Callable[[str], bool],
    default: CompressionAlgorithm = DEFAULT_ALGORITHM,
    where: str = "",
) -> str:
    """Like resolve_candidate() but raises SnapshotNotFoundError when absent."""
    resolved, found = resolve_candidate(name, exists, default)
    if not found:
        raise SnapshotNotFoundError(name, candidate_names(name, default), where=where)
    return resolved

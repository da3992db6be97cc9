# etcd2s3/storage/codecs.py
"""
Streaming file compression for snapshots.

gzip and bzip2 come from the standard library; lz4 and zstd use the
``lz4`` and ``zstandard`` packages. The algorithm for decompression is
detected from the file suffix.
"""

import bz2
import gzip
import logging
import shutil
from pathlib import Path

import lz4.frame
import zstandard

from etcd2s3.constants import StoreDefaults
from etcd2s3.retention.names import CompressionAlgorithm, algorithm_for_name, strip_compression_suffix

logger = logging.getLogger(__name__)

_CHUNK = StoreDefaults.COPY_CHUNK_BYTES


def _open_compressed(path: Path, algorithm: CompressionAlgorithm, mode: str):
    if algorithm is CompressionAlgorithm.GZIP:
        return gzip.open(path, mode)
    if algorithm is CompressionAlgorithm.BZIP2:
        return bz2.open(path, mode)
    if algorithm is CompressionAlgorithm.LZ4:
        return lz4.frame.open(path, mode)
    raise ValueError(f"No stream opener for {algorithm.value}")


def _discard_partial(path: Path) -> None:
    """Remove a half-written output file."""
    logger.error(f"Removing incomplete file {path.name}")
    path.unlink(missing_ok=True)


def compressed_path(source: Path, algorithm: CompressionAlgorithm) -> Path:
    """Where ``compress_file`` writes by default: the source plus the suffix."""
    return source.with_name(source.name + algorithm.suffix)


def compress_file(
    source: Path,
    destination: Path | None = None,
    algorithm: CompressionAlgorithm = CompressionAlgorithm.ZSTD,
) -> Path:
    """
    Compress ``source`` into ``destination``.

    With ``CompressionAlgorithm.NONE`` the file is copied as-is (or left in
    place when no destination is given).

    Returns:
        Path of the written file
    """
    source = Path(source)
    algorithm = CompressionAlgorithm.parse(algorithm)
    destination = Path(destination) if destination else compressed_path(source, algorithm)

    if algorithm is CompressionAlgorithm.NONE:
        if destination.resolve() != source.resolve():
            shutil.copyfile(source, destination)
        return destination

    try:
        with open(source, "rb") as src:
            if algorithm is CompressionAlgorithm.ZSTD:
                with open(destination, "wb") as dst:
                    zstandard.ZstdCompressor().copy_stream(src, dst, read_size=_CHUNK, write_size=_CHUNK)
            else:
                with _open_compressed(destination, algorithm, "wb") as dst:
                    shutil.copyfileobj(src, dst, _CHUNK)
    except Exception:
        _discard_partial(destination)
        raise

    logger.debug(
        f"Compressed {source.name} -> {destination.name} "
        f"({source.stat().st_size} -> {destination.stat().st_size} bytes, {algorithm.value})"
    )
    return destination


def decompress_file(source: Path, destination: Path | None = None) -> Path:
    """
    Decompress ``source`` using the algorithm implied by its suffix.

    The default destination is the source name without the compression
    suffix. An uncompressed source is copied (or returned unchanged).
    """
    source = Path(source)
    algorithm = algorithm_for_name(source.name)
    destination = Path(destination) if destination else source.with_name(strip_compression_suffix(source.name))

    if algorithm is CompressionAlgorithm.NONE:
        if destination.resolve() != source.resolve():
            shutil.copyfile(source, destination)
        return destination

    try:
        with open(destination, "wb") as dst:
            if algorithm is CompressionAlgorithm.ZSTD:
                with open(source, "rb") as src:
                    zstandard.ZstdDecompressor().copy_stream(src, dst, read_size=_CHUNK, write_size=_CHUNK)
            else:
                with _open_compressed(source, algorithm, "rb") as src:
                    shutil.copyfileobj(src, dst, _CHUNK)
    except Exception:
        _discard_partial(destination)
        raise

    logger.debug(f"Decompressed {source.name} -> {destination.name} ({algorithm.value})")
    return destination

"""
Checksum verifying copy.
"""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import AsyncIterable, BinaryIO

from dumpfetch.exceptions import StorageError
from dumpfetch.models import CopyStats
from dumpfetch.services.fetch._config import DIGEST_ALGORITHM


async def copy_verified(
    chunks: AsyncIterable[bytes],
    sink: BinaryIO,
    *,
    path: str | Path | None = None,
    algorithm: str = DIGEST_ALGORITHM,
) -> CopyStats:
    """
    Drain chunks into sink, hashing the bytes as they are written.

    Errors raised by the source propagate unchanged. Sink errors become
    StorageError naming path.

    Returns:
        CopyStats with the hex digest of everything written.
    """
    digest = hashlib.new(algorithm)
    stats = CopyStats()

    async for chunk in chunks:
        if not chunk:
            continue
        try:
            sink.write(chunk)
        except OSError as e:
            raise StorageError(f"Unable to write to file {path}", path, cause=e) from e
        digest.update(chunk)
        stats.bytes_copied += len(chunk)
        stats.chunks_count += 1

    stats.digest = digest.hexdigest()
    return stats

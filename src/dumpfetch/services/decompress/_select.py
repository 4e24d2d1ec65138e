"""
Decompression selector.

Wraps a spooled file in the decoder matching the resource's compression.
The returned stream owns the spool file: closing it closes the decoder,
then the spool handle, and deletes the file.
"""

from __future__ import annotations

import bz2
import gzip
from typing import BinaryIO, Callable

from dumpfetch.exceptions import ArchiveError
from dumpfetch.logging import get_logger
from dumpfetch.models import Compression
from dumpfetch.services._stream import ScopedStream, SpooledFile, release_all
from dumpfetch.services.decompress._sevenzip import ArchiveTool, SevenZipTool

logger = get_logger(__name__)


def _passthrough(spooled: SpooledFile, archive_tool: ArchiveTool) -> BinaryIO:
    return spooled


def _gunzip(spooled: SpooledFile, archive_tool: ArchiveTool) -> BinaryIO:
    decoder = gzip.GzipFile(fileobj=spooled.handle, mode="rb")
    return ScopedStream(decoder, lambda: release_all(decoder.close, spooled.close), name=spooled.name)


def _bunzip2(spooled: SpooledFile, archive_tool: ArchiveTool) -> BinaryIO:
    decoder = bz2.BZ2File(spooled.handle, mode="rb")
    return ScopedStream(decoder, lambda: release_all(decoder.close, spooled.close), name=spooled.name)


def _un7zip(spooled: SpooledFile, archive_tool: ArchiveTool) -> BinaryIO:
    # The tool needs a path, not a stream: hand it the file and keep only
    # the removal for close time.
    path = spooled.path
    spooled.handle.close()

    entries = archive_tool.list_entries(path)
    if len(entries) != 1:
        raise ArchiveError(
            f"Entries count differs from one - {len(entries)} - for file {path}",
            path,
        )

    reader = archive_tool.open_entry(path, entries[0])
    return ScopedStream(reader, lambda: release_all(reader.close, spooled.close), name=str(path))


_OPENERS: dict[Compression, Callable[[SpooledFile, ArchiveTool], BinaryIO]] = {
    Compression.NONE: _passthrough,
    Compression.GZIP: _gunzip,
    Compression.BZIP2: _bunzip2,
    Compression.SEVEN_ZIP: _un7zip,
}


def open_decompressed(
    spooled: SpooledFile,
    compression: Compression | str,
    archive_tool: ArchiveTool | None = None,
) -> BinaryIO:
    """
    Wrap spooled in the decoder for compression.

    Args:
        spooled: Verified spool file; ownership passes to this call.
        compression: Compression variant, or the resource URL to derive it from.
        archive_tool: Tool for 7z archives (SevenZipTool() by default).

    Returns:
        Readable binary stream; closing it deletes the spool file.

    Raises:
        ArchiveError: 7z listing/opening failed or the archive does not
            hold exactly one entry. The spool file is removed first.
    """
    if not isinstance(compression, Compression):
        compression = Compression.from_url(compression)
    opener = _OPENERS[compression]

    try:
        stream = opener(spooled, archive_tool or SevenZipTool())
    except BaseException:
        try:
            spooled.close()
        except Exception as e:
            logger.warning(f"Error while discarding {spooled.path}: {e}")
        raise

    logger.debug(f"Opened {spooled.path} as {compression.value}")
    return stream


__all__ = ["open_decompressed"]

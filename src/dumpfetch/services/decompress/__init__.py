"""
Decompression of spooled downloads.

Supported containers: plain, gzip (.gz), bzip2 (.bz2) and single-entry
7z archives (.7z, through the external 7z program).
"""

from dumpfetch.services._stream import ScopedStream, SpooledFile, release_all
from dumpfetch.services.decompress._select import open_decompressed
from dumpfetch.services.decompress._sevenzip import (
    EXIT_CODE_MEANINGS,
    ArchiveEntry,
    ArchiveTool,
    SevenZipTool,
    describe_exit_status,
    parse_slt_listing,
)

__all__ = [
    "open_decompressed",
    "ScopedStream",
    "SpooledFile",
    "release_all",
    "ArchiveEntry",
    "ArchiveTool",
    "SevenZipTool",
    "EXIT_CODE_MEANINGS",
    "describe_exit_status",
    "parse_slt_listing",
]

"""
Pipeline services: fetch, decompress and the hub that chains them.
"""

from dumpfetch.services.decompress import open_decompressed
from dumpfetch.services.fetch import RetryingFetcher, SpoolStore, copy_verified
from dumpfetch.services.hub import (
    AsyncDumpHub,
    AsyncResourceIterator,
    DumpHub,
    IteratorState,
    ResourceIterator,
)

__all__ = [
    "AsyncDumpHub",
    "AsyncResourceIterator",
    "DumpHub",
    "IteratorState",
    "ResourceIterator",
    "RetryingFetcher",
    "SpoolStore",
    "copy_verified",
    "open_decompressed",
]

"""
dumpfetch: fetch, verify and decompress large remote dump files.

Usage:
    >>> from dumpfetch import AsyncDumpHub, ResourceCatalog
    >>>
    >>> catalog = ResourceCatalog.from_file("catalog.json")
    >>> hub = AsyncDumpHub(catalog, spool_dir="/var/tmp")
    >>> async for stream in hub.open("pages-articles"):
    ...     with stream:
    ...         consume(stream)
"""

from dumpfetch.cancel import CancelToken
from dumpfetch.config import FetchSettings, configure_settings, get_settings, reset_settings
from dumpfetch.exceptions import (
    ArchiveError,
    DigestMismatchError,
    DumpFetchError,
    FetchCancelledError,
    NetworkError,
    ResourcesExhausted,
    StorageError,
    UnknownResourceError,
)
from dumpfetch.models import Compression, ResourceCatalog, ResourceDescriptor
from dumpfetch.services.hub import (
    AsyncDumpHub,
    AsyncResourceIterator,
    DumpHub,
    IteratorState,
    ResourceIterator,
)
from dumpfetch.version import __version__

__all__ = [
    "__version__",
    # Hub
    "AsyncDumpHub",
    "AsyncResourceIterator",
    "DumpHub",
    "IteratorState",
    "ResourceIterator",
    "CancelToken",
    # Models
    "Compression",
    "ResourceCatalog",
    "ResourceDescriptor",
    # Config
    "FetchSettings",
    "configure_settings",
    "get_settings",
    "reset_settings",
    # Errors
    "ArchiveError",
    "DigestMismatchError",
    "DumpFetchError",
    "FetchCancelledError",
    "NetworkError",
    "ResourcesExhausted",
    "StorageError",
    "UnknownResourceError",
]

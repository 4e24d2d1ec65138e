"""
Dump hub for dumpfetch.

Hands out per-name iterators that fetch, verify, spool and decompress
each resource in order.

Features:
- Async hub and iterator, with synchronous wrappers
- Sticky end-of-sequence and failure states
- Cooperative cancellation through CancelToken
"""

from dumpfetch.services.hub._aio import AsyncDumpHub
from dumpfetch.services.hub._iterator import AsyncResourceIterator, IteratorState
from dumpfetch.services.hub._sync import DumpHub, ResourceIterator

__all__ = [
    "AsyncDumpHub",
    "AsyncResourceIterator",
    "DumpHub",
    "IteratorState",
    "ResourceIterator",
]

"""
Fetch pipeline: verified copy, spooling store and retrying fetcher.

Features:
- Streaming SHA1 verification while writing to disk
- One fresh temp file per attempt, removed on every failure path
- Exponential backoff (1s doubling up to 1h) with cancellable waits
"""

from dumpfetch.services.fetch._copier import copy_verified
from dumpfetch.services.fetch._retry import RetryingFetcher, backoff_delays
from dumpfetch.services.fetch._spool import SpoolStore

__all__ = [
    "copy_verified",
    "RetryingFetcher",
    "SpoolStore",
    "backoff_delays",
]

"""
Synchronous dump hub.

Wrapper around AsyncDumpHub using run_sync(); each pull runs on its own
event loop, so a CancelToken fired from another thread still aborts it.
"""

from __future__ import annotations

import datetime as dt
from pathlib import Path
from typing import BinaryIO, Iterator

import httpx

from dumpfetch.cancel import CancelToken
from dumpfetch.config import FetchSettings
from dumpfetch.exceptions import ResourcesExhausted
from dumpfetch.models import ResourceCatalog
from dumpfetch.services._sync_wrapper import run_sync
from dumpfetch.services.decompress import ArchiveTool
from dumpfetch.services.hub._aio import AsyncDumpHub, CatalogLike
from dumpfetch.services.hub._iterator import AsyncResourceIterator, IteratorState


class ResourceIterator:
    """
    Blocking pull iterator over the streams of one name.

    Example:
        >>> for stream in hub.open("pages-articles"):
        ...     with stream:
        ...         consume(stream)
    """

    def __init__(self, async_iterator: AsyncResourceIterator) -> None:
        self._async_iterator = async_iterator

    @property
    def name(self) -> str:
        return self._async_iterator.name

    @property
    def state(self) -> IteratorState:
        return self._async_iterator.state

    @property
    def remaining(self) -> int:
        return self._async_iterator.remaining

    def next(self, cancel: CancelToken | None = None) -> BinaryIO:
        """Open the next resource (see AsyncResourceIterator.next)."""
        return run_sync(self._async_iterator.next(cancel))

    def __iter__(self) -> Iterator[BinaryIO]:
        return self

    def __next__(self) -> BinaryIO:
        try:
            return self.next()
        except ResourcesExhausted:
            raise StopIteration from None


class DumpHub:
    """
    Synchronous dump hub.

    Thin wrapper around AsyncDumpHub.
    """

    def __init__(
        self,
        catalog: CatalogLike,
        spool_dir: str | Path | None = None,
        date: dt.date | None = None,
        *,
        settings: FetchSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        archive_tool: ArchiveTool | None = None,
    ) -> None:
        self._async_hub = AsyncDumpHub(
            catalog,
            spool_dir,
            date,
            settings=settings,
            transport=transport,
            archive_tool=archive_tool,
        )

    @property
    def date(self) -> dt.date | None:
        return self._async_hub.date

    @property
    def spool_dir(self) -> Path:
        return self._async_hub.spool_dir

    @property
    def catalog(self) -> ResourceCatalog:
        return self._async_hub.catalog

    @property
    def names(self) -> list[str]:
        return self._async_hub.names

    def check_for(self, *names: str) -> None:
        self._async_hub.check_for(*names)

    def open(self, name: str, cancel: CancelToken | None = None) -> ResourceIterator:
        return ResourceIterator(self._async_hub.open(name, cancel))


__all__ = ["DumpHub", "ResourceIterator"]

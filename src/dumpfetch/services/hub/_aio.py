"""
Asynchronous dump hub.

Entry point of the pipeline: for a logical name it hands out an iterator
that fetches (with retry), verifies, spools and decompresses each resource
in turn.
"""

from __future__ import annotations

import asyncio
import datetime as dt
from pathlib import Path
from typing import BinaryIO, Iterable, Mapping, Union

import httpx

from dumpfetch.cancel import CancelToken
from dumpfetch.config import FetchSettings, get_settings
from dumpfetch.exceptions import UnknownResourceError
from dumpfetch.logging import get_logger
from dumpfetch.models import ResourceCatalog, ResourceDescriptor
from dumpfetch.services.decompress import ArchiveTool, SevenZipTool, open_decompressed
from dumpfetch.services.fetch import RetryingFetcher, SpoolStore
from dumpfetch.services.hub._iterator import AsyncResourceIterator

logger = get_logger(__name__)

CatalogLike = Union[ResourceCatalog, Mapping[str, Iterable[ResourceDescriptor]]]


class AsyncDumpHub:
    """
    Hub from which to request the files of one dump.

    The catalog, spool directory and date are fixed at construction.
    Nothing fetched is cached: every iterator re-downloads and re-verifies.

    Example:
        >>> hub = AsyncDumpHub(catalog, Path("/var/tmp"), dt.date(2024, 1, 1))
        >>> it = hub.open("pages-articles")
        >>> stream = await it.next()
        >>> with stream:
        ...     header = stream.read(1024)
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
        settings = settings or get_settings()
        if not isinstance(catalog, ResourceCatalog):
            catalog = ResourceCatalog.from_mapping(catalog, date=date)

        self._catalog = catalog
        self._spool_dir = Path(spool_dir) if spool_dir is not None else settings.spool_dir
        self._date = date if date is not None else catalog.date
        self._archive_tool = archive_tool or SevenZipTool(settings.sevenzip_binary)

        store = SpoolStore(
            self._spool_dir,
            chunk_size=settings.chunk_size,
            request_timeout=settings.request_timeout,
            transport=transport,
        )
        self._fetcher = RetryingFetcher(
            store,
            initial_backoff=settings.initial_backoff,
            max_backoff=settings.max_backoff,
        )

    @property
    def date(self) -> dt.date | None:
        """Date of the dump."""
        return self._date

    @property
    def spool_dir(self) -> Path:
        return self._spool_dir

    @property
    def catalog(self) -> ResourceCatalog:
        return self._catalog

    @property
    def names(self) -> list[str]:
        return self._catalog.names

    def check_for(self, *names: str) -> None:
        """Raise UnknownResourceError if any name is missing from the dump."""
        self._catalog.check_for(*names)

    def open(self, name: str, cancel: CancelToken | None = None) -> AsyncResourceIterator:
        """
        Iterator over the resources of name.

        Never raises: an unknown name yields an iterator whose every call
        raises UnknownResourceError.

        Args:
            name: Logical file name in the catalog.
            cancel: Default cancellation signal for the iterator's calls.
        """
        try:
            descriptors = self._catalog.get(name)
        except UnknownResourceError as e:
            return AsyncResourceIterator(name, None, self._open_resource, error=e, cancel=cancel)
        return AsyncResourceIterator(name, descriptors, self._open_resource, cancel=cancel)

    async def _open_resource(
        self,
        descriptor: ResourceDescriptor,
        cancel: CancelToken | None,
    ) -> BinaryIO:
        spooled = await self._fetcher.fetch(descriptor, cancel)
        # 7z extraction starts a blocking subprocess
        return await asyncio.to_thread(
            open_decompressed,
            spooled,
            descriptor.compression,
            self._archive_tool,
        )

    def __repr__(self) -> str:
        return (
            f"<AsyncDumpHub date={self._date} files={len(self._catalog)} "
            f"spool_dir={str(self._spool_dir)!r}>"
        )


__all__ = ["AsyncDumpHub"]

"""
Spooling store: download one resource into a fresh temporary file.

The file is written, verified, closed and reopened read-only. Every
failure path closes and deletes the file before the error propagates.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import BinaryIO

import httpx

from dumpfetch.exceptions import DigestMismatchError, NetworkError, StorageError
from dumpfetch.logging import get_logger
from dumpfetch.models import CopyStats, ResourceDescriptor
from dumpfetch.services._stream import SpooledFile
from dumpfetch.services.fetch._config import DEFAULT_CHUNK_SIZE, DEFAULT_REQUEST_TIMEOUT
from dumpfetch.services.fetch._copier import copy_verified

logger = get_logger(__name__)


class SpoolStore:
    """
    Materializes verified downloads in a spool directory.

    Example:
        >>> store = SpoolStore(Path("/var/tmp/dumps"))
        >>> spooled = await store.store(descriptor)
        >>> spooled.path
        PosixPath('/var/tmp/dumps/enwiki-pages.xml.bz2.k3j2_x')
    """

    def __init__(
        self,
        spool_dir: Path,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._spool_dir = Path(spool_dir)
        self._chunk_size = chunk_size
        self._request_timeout = request_timeout
        self._transport = transport

    @property
    def spool_dir(self) -> Path:
        return self._spool_dir

    async def store(self, descriptor: ResourceDescriptor) -> SpooledFile:
        """
        Download descriptor into a new spool file and verify its SHA1.

        Returns:
            SpooledFile opened read-only; closing it deletes the file.

        Raises:
            StorageError: Temp file create/write/close/reopen failed.
            NetworkError: Request failed or returned a non-success status.
            DigestMismatchError: Content does not match descriptor.sha1.
        """
        try:
            fd, name = tempfile.mkstemp(prefix=descriptor.filename + ".", dir=self._spool_dir)
        except OSError as e:
            raise StorageError(
                f"Unable to create temporary file in {self._spool_dir}", self._spool_dir, cause=e
            ) from e

        path = Path(name)
        handle: BinaryIO = os.fdopen(fd, "wb")
        try:
            stats = await self._download(descriptor, handle, path)
            if stats.digest != descriptor.sha1:
                raise DigestMismatchError(descriptor.url, descriptor.sha1, stats.digest)

            try:
                handle.close()
            except OSError as e:
                raise StorageError(f"Unable to close file {path}", path, cause=e) from e

            try:
                handle = open(path, "rb")
            except OSError as e:
                raise StorageError(f"Unable to open file {path}", path, cause=e) from e
        except BaseException:
            self._discard(handle, path)
            raise

        logger.debug(f"Spooled {stats.bytes_copied:,} bytes from {descriptor.url} to {path}")
        return SpooledFile(handle, path)

    async def _download(
        self,
        descriptor: ResourceDescriptor,
        sink: BinaryIO,
        path: Path,
    ) -> CopyStats:
        url = descriptor.url
        try:
            async with httpx.AsyncClient(
                transport=self._transport,
                timeout=self._request_timeout,
                follow_redirects=True,
            ) as client:
                async with client.stream("GET", url) as response:
                    if not response.is_success:
                        raise NetworkError(
                            f"Unexpected HTTP {response.status_code} for {url}",
                            url,
                            status_code=response.status_code,
                        )
                    return await copy_verified(
                        response.aiter_bytes(self._chunk_size),
                        sink,
                        path=path,
                    )
        except (httpx.HTTPError, httpx.InvalidURL, httpx.StreamError) as e:
            raise NetworkError(f"Unable to download {url}: {e}", url, cause=e) from e

    def _discard(self, handle: BinaryIO, path: Path) -> None:
        """Close and delete a spool file on a failure path."""
        try:
            handle.close()
        except OSError as e:
            logger.warning(f"Error while closing file {path}: {e}")
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Error while removing file {path}: {e}")

"""
Scoped streams: readers that own resources and release them exactly once.

ScopedStream wraps an inner reader together with a release action. Closing
the stream runs the action once; later closes are no-ops. SpooledFile is
the ScopedStream over a reopened spool file whose release closes the
handle and deletes the file.
"""

from __future__ import annotations

import io
from pathlib import Path
from typing import BinaryIO, Callable

from dumpfetch.exceptions import StorageError
from dumpfetch.logging import get_logger

logger = get_logger(__name__)


def release_all(*actions: Callable[[], None]) -> None:
    """Run every action in order, then raise the first error seen."""
    first: BaseException | None = None
    for action in actions:
        try:
            action()
        except Exception as e:
            if first is None:
                first = e
            else:
                logger.warning(f"Suppressed secondary release error: {e}")
    if first is not None:
        raise first


class ScopedStream(io.BufferedIOBase):
    """Read-only binary stream over an owned reader plus a release action."""

    def __init__(
        self,
        inner: BinaryIO,
        release: Callable[[], None],
        name: str | None = None,
    ) -> None:
        super().__init__()
        self._inner = inner
        self._release = release
        self._name = name

    @property
    def name(self) -> str | None:
        return self._name

    def readable(self) -> bool:
        return True

    def _ensure_open(self) -> None:
        if self.closed:
            raise ValueError("I/O operation on closed stream.")

    def read(self, size: int | None = -1) -> bytes:
        self._ensure_open()
        if size is None:
            size = -1
        return self._inner.read(size)

    def read1(self, size: int = -1) -> bytes:
        self._ensure_open()
        read1 = getattr(self._inner, "read1", None)
        if read1 is None:
            return self._inner.read(size)
        return read1(size)

    def readinto(self, buffer) -> int:
        data = self.read(len(buffer))
        n = len(data)
        buffer[:n] = data
        return n

    def close(self) -> None:
        if self.closed:
            return
        try:
            self._release()
        finally:
            super().close()

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"<{type(self).__name__} name={self._name!r} {state}>"


class SpooledFile(ScopedStream):
    """
    Verified download on local disk, opened read-only.

    Closing it closes the handle and removes the file.
    """

    def __init__(self, handle: BinaryIO, path: Path) -> None:
        self.path = Path(path)
        self.handle = handle
        super().__init__(handle, self._discard, name=str(self.path))

    def _discard(self) -> None:
        release_all(self._close_handle, self._remove_file)

    def _close_handle(self) -> None:
        try:
            self.handle.close()
        except OSError as e:
            raise StorageError(f"Unable to close spool file {self.path}", self.path, cause=e) from e

    def _remove_file(self) -> None:
        try:
            self.path.unlink()
        except OSError as e:
            raise StorageError(f"Unable to remove spool file {self.path}", self.path, cause=e) from e
        logger.debug(f"Removed spool file {self.path}")


__all__ = ["ScopedStream", "SpooledFile", "release_all"]

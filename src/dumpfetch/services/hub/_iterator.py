"""
Resource stream iterator.

Pulls the resources of one logical name, one stream per call, strictly in
order. End of sequence and failures are sticky: once reached, every later
call raises the same exception instance.
"""

from __future__ import annotations

from collections import deque
from enum import Enum
from typing import Awaitable, BinaryIO, Callable, Iterable

from dumpfetch.cancel import CancelToken
from dumpfetch.exceptions import DumpFetchError, FetchCancelledError, ResourcesExhausted
from dumpfetch.logging import get_logger
from dumpfetch.models import ResourceDescriptor

logger = get_logger(__name__)

Opener = Callable[[ResourceDescriptor, "CancelToken | None"], Awaitable[BinaryIO]]


class IteratorState(str, Enum):
    FRESH = "fresh"
    IN_PROGRESS = "in_progress"
    EXHAUSTED = "exhausted"
    FAILED = "failed"


class AsyncResourceIterator:
    """
    Async pull iterator over the decompressed streams of one name.

    The caller owns every returned stream and must close it; closing
    deletes the underlying spool file.

    Example:
        >>> it = hub.open("pages-articles")
        >>> async for stream in it:
        ...     with stream:
        ...         consume(stream)
    """

    def __init__(
        self,
        name: str,
        descriptors: Iterable[ResourceDescriptor] | None,
        opener: Opener,
        error: DumpFetchError | None = None,
        cancel: CancelToken | None = None,
    ) -> None:
        self._name = name
        self._remaining: deque[ResourceDescriptor] = deque(descriptors or ())
        self._opener = opener
        self._cancel = cancel
        self._error: BaseException | None = error
        self._state = IteratorState.FAILED if error is not None else IteratorState.FRESH

    @property
    def name(self) -> str:
        return self._name

    @property
    def state(self) -> IteratorState:
        return self._state

    @property
    def remaining(self) -> int:
        """Number of resources not yet opened."""
        return len(self._remaining)

    async def next(self, cancel: CancelToken | None = None) -> BinaryIO:
        """
        Open the next resource.

        Args:
            cancel: Cancellation signal for this call (defaults to the
                token given to hub.open()).

        Returns:
            Decompressed binary stream.

        Raises:
            ResourcesExhausted: No resources left.
            DumpFetchError: Fetch failed; repeated on every later call.
                An interrupted call is recorded as FetchCancelledError.
        """
        if self._error is not None:
            raise self._error

        if not self._remaining:
            self._state = IteratorState.EXHAUSTED
            self._error = ResourcesExhausted(self._name)
            raise self._error

        descriptor = self._remaining.popleft()
        self._state = IteratorState.IN_PROGRESS
        try:
            stream = await self._opener(descriptor, cancel or self._cancel)
        except Exception as e:
            self._state = IteratorState.FAILED
            self._error = e
            logger.error(f"Unable to open {descriptor.url} for {self._name}: {e}")
            raise
        except BaseException as e:
            # Task cancellation or an interrupt: the popped resource was
            # never delivered, so later calls must not move past it.
            self._state = IteratorState.FAILED
            self._error = FetchCancelledError(descriptor.url, cause=e)
            logger.warning(f"Interrupted while opening {descriptor.url} for {self._name}")
            raise

        logger.debug(f"Opened {descriptor.url} for {self._name} ({self.remaining} left)")
        return stream

    def __aiter__(self) -> AsyncResourceIterator:
        return self

    async def __anext__(self) -> BinaryIO:
        try:
            return await self.next()
        except ResourcesExhausted:
            raise StopAsyncIteration from None

    def __repr__(self) -> str:
        return (
            f"<AsyncResourceIterator name={self._name!r} state={self._state.value} "
            f"remaining={self.remaining}>"
        )


__all__ = ["AsyncResourceIterator", "IteratorState"]

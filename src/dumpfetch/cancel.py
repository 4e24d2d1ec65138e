"""
Cooperative cancellation for fetches.

A CancelToken may be shared by many operations, threads and event loops.
Firing it aborts in-flight downloads and backoff waits with
FetchCancelledError.
"""

from __future__ import annotations

import asyncio
import threading
from typing import Awaitable, TypeVar

from dumpfetch.exceptions import FetchCancelledError

T = TypeVar("T")


def _resolve(future: asyncio.Future) -> None:
    if not future.done():
        future.set_result(None)


class CancelToken:
    """
    Thread-safe cancellation signal.

    Example:
        >>> token = CancelToken()
        >>> stream = await iterator.next(token)   # in one task
        >>> token.cancel()                        # from anywhere
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._waiters: set[tuple[asyncio.AbstractEventLoop, asyncio.Future]] = set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        """Fire the signal. Calling it again has no effect."""
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            waiters = list(self._waiters)
        for loop, future in waiters:
            if not loop.is_closed():
                loop.call_soon_threadsafe(_resolve, future)

    def raise_if_cancelled(self, url: str | None = None) -> None:
        if self._event.is_set():
            raise FetchCancelledError(url)

    async def wait(self) -> None:
        """Block until the signal fires."""
        if self._event.is_set():
            return
        loop = asyncio.get_running_loop()
        future = loop.create_future()
        waiter = (loop, future)
        with self._lock:
            if self._event.is_set():
                return
            self._waiters.add(waiter)
        try:
            await future
        finally:
            with self._lock:
                self._waiters.discard(waiter)

    async def sleep(self, delay: float, url: str | None = None) -> None:
        """Sleep for delay seconds; raise FetchCancelledError as soon as the signal fires."""
        self.raise_if_cancelled(url)
        try:
            await asyncio.wait_for(self.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return
        raise FetchCancelledError(url)

    async def guard(self, aw: Awaitable[T], url: str | None = None) -> T:
        """
        Await aw unless the signal fires first.

        On cancellation the inner task is cancelled and awaited so its
        cleanup runs before FetchCancelledError is raised.
        """
        task = asyncio.ensure_future(aw)
        if self._event.is_set():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
            raise FetchCancelledError(url)

        waiter = asyncio.ensure_future(self.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            waiter.cancel()
            await asyncio.gather(task, waiter, return_exceptions=True)
            raise

        if task.done():
            waiter.cancel()
            await asyncio.gather(waiter, return_exceptions=True)
            return task.result()

        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        raise FetchCancelledError(url)


class _NeverCancelled(CancelToken):
    def cancel(self) -> None:
        raise RuntimeError("The default token cannot be cancelled")


NEVER = _NeverCancelled()

__all__ = ["CancelToken", "NEVER"]

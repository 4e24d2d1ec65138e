"""
Retrying fetcher with exponential backoff.
"""

from __future__ import annotations

from dumpfetch.cancel import NEVER, CancelToken
from dumpfetch.exceptions import RETRYABLE_ERRORS, DumpFetchError
from dumpfetch.logging import get_logger
from dumpfetch.models import ResourceDescriptor
from dumpfetch.services._stream import SpooledFile
from dumpfetch.services.fetch._config import INITIAL_BACKOFF, MAX_BACKOFF
from dumpfetch.services.fetch._spool import SpoolStore

logger = get_logger(__name__)


def backoff_delays(initial: float = INITIAL_BACKOFF, ceiling: float = MAX_BACKOFF) -> list[float]:
    """
    Waits between attempts: initial, doubled while below ceiling.

    With the defaults (1s, 1h) this yields 12 delays, one per attempt.
    """
    delays = []
    delay = initial
    while delay < ceiling:
        delays.append(delay)
        delay *= 2
    return delays


class RetryingFetcher:
    """
    Runs SpoolStore.store() until it succeeds or the backoff runs out.

    NetworkError, DigestMismatchError and StorageError are retried from
    scratch. Cancellation aborts immediately, including mid-wait.
    """

    def __init__(
        self,
        store: SpoolStore,
        initial_backoff: float = INITIAL_BACKOFF,
        max_backoff: float = MAX_BACKOFF,
    ) -> None:
        self._store = store
        self._delays = backoff_delays(initial_backoff, max_backoff)

    @property
    def max_attempts(self) -> int:
        return len(self._delays)

    async def fetch(
        self,
        descriptor: ResourceDescriptor,
        cancel: CancelToken | None = None,
    ) -> SpooledFile:
        """
        Fetch and spool descriptor, retrying with backoff.

        Raises:
            FetchCancelledError: cancel fired during a download or a wait.
            NetworkError | DigestMismatchError | StorageError: last error
                once every attempt failed.
        """
        cancel = cancel or NEVER
        url = descriptor.url
        last_error: DumpFetchError | None = None

        for attempt, delay in enumerate(self._delays, start=1):
            try:
                return await cancel.guard(self._store.store(descriptor), url=url)
            except RETRYABLE_ERRORS as e:
                last_error = e
                logger.warning(f"Attempt {attempt}/{self.max_attempts} failed for {url}: {e}")

            if attempt < self.max_attempts:
                await cancel.sleep(delay, url=url)

        if last_error is None:
            raise RuntimeError(f"No fetch attempt was made for {url}")
        logger.error(f"Giving up on {url} after {self.max_attempts} attempts: {last_error}")
        raise last_error

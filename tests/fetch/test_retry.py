"""Tests for the retrying fetcher."""

import asyncio
import hashlib
import time

import httpx
import pytest

from dumpfetch.cancel import CancelToken
from dumpfetch.exceptions import DigestMismatchError, FetchCancelledError, NetworkError
from dumpfetch.models import ResourceDescriptor
from dumpfetch.services.fetch import RetryingFetcher, SpoolStore, backoff_delays

URL = "https://dumps.example.org/pages.xml"


class TestBackoffDelays:
    """Backoff schedule."""

    def test_default_schedule(self):
        delays = backoff_delays()
        assert len(delays) == 12
        assert delays[0] == 1.0
        assert delays[-1] == 2048.0
        assert all(b == a * 2 for a, b in zip(delays, delays[1:]))

    def test_custom_schedule(self):
        assert backoff_delays(0.01, 0.05) == [0.01, 0.02, 0.04]

    def test_empty_when_initial_reaches_ceiling(self):
        assert backoff_delays(5.0, 5.0) == []


class TestRetryingFetcher:
    """Retry behaviour."""

    def _fetcher(self, spool_dir, handler, initial=0.01, ceiling=0.05):
        store = SpoolStore(spool_dir, transport=httpx.MockTransport(handler))
        return RetryingFetcher(store, initial_backoff=initial, max_backoff=ceiling)

    @pytest.mark.asyncio
    async def test_first_attempt_succeeds(self, spool_dir, server, descriptor_for):
        server.routes[URL] = b"data"
        fetcher = self._fetcher(spool_dir, server.handler)

        with await fetcher.fetch(descriptor_for(URL, b"data")) as spooled:
            assert spooled.read() == b"data"
        assert server.count(URL) == 1

    @pytest.mark.asyncio
    async def test_recovers_after_transient_failures(self, spool_dir, descriptor_for):
        responses = [503, 500, b"data"]
        calls = []

        def handler(request):
            body = responses[len(calls)]
            calls.append(request)
            if isinstance(body, int):
                return httpx.Response(body)
            return httpx.Response(200, content=body)

        fetcher = self._fetcher(spool_dir, handler)
        with await fetcher.fetch(descriptor_for(URL, b"data")) as spooled:
            assert spooled.read() == b"data"
        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_transient_corruption_is_retried(self, spool_dir, descriptor_for):
        bodies = [b"dat\x00", b"data"]
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, content=bodies[len(calls) - 1])

        fetcher = self._fetcher(spool_dir, handler)
        with await fetcher.fetch(descriptor_for(URL, b"data")) as spooled:
            assert spooled.read() == b"data"
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_persistent_mismatch_exhausts_attempts(self, spool_dir, server):
        server.routes[URL] = b"served"
        fetcher = self._fetcher(spool_dir, server.handler)
        descriptor = ResourceDescriptor(url=URL, sha1=hashlib.sha1(b"expected").hexdigest())

        with pytest.raises(DigestMismatchError):
            await fetcher.fetch(descriptor)

        assert server.count(URL) == fetcher.max_attempts == 3
        assert list(spool_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_last_error_is_returned(self, spool_dir, descriptor_for):
        statuses = iter([500, 502, 503])

        def handler(request):
            return httpx.Response(next(statuses))

        fetcher = self._fetcher(spool_dir, handler)
        with pytest.raises(NetworkError) as exc:
            await fetcher.fetch(descriptor_for(URL, b""))
        assert exc.value.status_code == 503

    @pytest.mark.asyncio
    async def test_non_retryable_error_propagates_immediately(self, spool_dir, descriptor_for):
        calls = []

        def handler(request):
            calls.append(request)
            raise RuntimeError("bug")

        fetcher = self._fetcher(spool_dir, handler)
        with pytest.raises(RuntimeError, match="bug"):
            await fetcher.fetch(descriptor_for(URL, b""))
        assert len(calls) == 1
        assert list(spool_dir.iterdir()) == []


class TestRetryingFetcherCancellation:
    """Cancellation during waits and downloads."""

    @pytest.mark.asyncio
    async def test_cancel_during_backoff_wait(self, spool_dir, server, descriptor_for):
        """Cancelling mid-wait returns promptly, not after the 30s backoff."""
        server.routes[URL] = 500
        store = SpoolStore(spool_dir, transport=server.transport)
        fetcher = RetryingFetcher(store, initial_backoff=30.0, max_backoff=3600.0)
        token = CancelToken()

        task = asyncio.create_task(fetcher.fetch(descriptor_for(URL, b""), token))
        while server.count(URL) < 1:
            await asyncio.sleep(0.01)
        await asyncio.sleep(0.05)

        start = time.monotonic()
        token.cancel()
        with pytest.raises(FetchCancelledError) as exc:
            await asyncio.wait_for(task, timeout=5)

        assert time.monotonic() - start < 1
        assert exc.value.url == URL
        assert server.count(URL) == 1

    @pytest.mark.asyncio
    async def test_cancel_during_download(self, spool_dir, descriptor_for):
        started = asyncio.Event()

        async def slow_body():
            yield b"first"
            started.set()
            await asyncio.sleep(60)
            yield b"never"

        def handler(request):
            return httpx.Response(200, content=slow_body())

        store = SpoolStore(spool_dir, transport=httpx.MockTransport(handler))
        fetcher = RetryingFetcher(store, initial_backoff=0.01, max_backoff=0.05)
        token = CancelToken()

        task = asyncio.create_task(fetcher.fetch(descriptor_for(URL, b"firstnever"), token))
        await asyncio.wait_for(started.wait(), timeout=5)
        token.cancel()

        with pytest.raises(FetchCancelledError):
            await asyncio.wait_for(task, timeout=5)
        assert list(spool_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_already_cancelled_token(self, spool_dir, server, descriptor_for):
        server.routes[URL] = b"x"
        fetcher = self._fetcher_for(spool_dir, server)
        token = CancelToken()
        token.cancel()

        with pytest.raises(FetchCancelledError):
            await fetcher.fetch(descriptor_for(URL, b"x"), token)
        assert server.requests == []

    def _fetcher_for(self, spool_dir, server):
        store = SpoolStore(spool_dir, transport=server.transport)
        return RetryingFetcher(store, initial_backoff=0.01, max_backoff=0.05)

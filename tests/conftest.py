"""
Pytest configuration and fixtures for dumpfetch tests.
"""

from __future__ import annotations

import bz2
import gzip
import hashlib
import io
from pathlib import Path

import httpx
import pytest

from dumpfetch.config import FetchSettings, reset_settings
from dumpfetch.models import ResourceDescriptor
from dumpfetch.services.decompress import ArchiveEntry
from dumpfetch.services._stream import SpooledFile

PLAINTEXT = (
    b"<mediawiki>\n"
    + b"".join(b"  <page><title>Page %d</title></page>\n" % i for i in range(500))
    + b"</mediawiki>\n"
)


def sha1_hex(data: bytes) -> str:
    return hashlib.sha1(data).hexdigest()


# ============================================================================
# Payload Fixtures
# ============================================================================


@pytest.fixture
def plaintext() -> bytes:
    """Known decompressed content."""
    return PLAINTEXT


@pytest.fixture
def gzip_payload(plaintext) -> bytes:
    return gzip.compress(plaintext)


@pytest.fixture
def bzip2_payload(plaintext) -> bytes:
    return bz2.compress(plaintext)


@pytest.fixture
def spool_dir(tmp_path) -> Path:
    """Empty spool directory."""
    path = tmp_path / "spool"
    path.mkdir()
    return path


@pytest.fixture
def make_spooled(tmp_path):
    """Factory writing bytes to disk and returning an open SpooledFile."""

    def _make(data: bytes, name: str = "resource.bin") -> SpooledFile:
        path = tmp_path / name
        path.write_bytes(data)
        return SpooledFile(open(path, "rb"), path)

    return _make


@pytest.fixture
def fast_settings(spool_dir) -> FetchSettings:
    """Settings with millisecond backoff: 3 attempts (0.01, 0.02, 0.04)."""
    return FetchSettings(
        spool_dir=spool_dir,
        initial_backoff=0.01,
        max_backoff=0.05,
        chunk_size=4096,
    )


@pytest.fixture
def reset_fetch_settings():
    """Reset settings before and after test."""
    reset_settings()
    yield
    reset_settings()


# ============================================================================
# HTTP Mocks
# ============================================================================


class RecordingServer:
    """Serves fixed bodies per URL through httpx.MockTransport and counts requests."""

    def __init__(self, routes: dict[str, bytes | int] | None = None) -> None:
        self.routes: dict[str, bytes | int] = dict(routes or {})
        self.requests: list[str] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        body = self.routes.get(url, 404)
        if isinstance(body, int):
            return httpx.Response(body, content=b"error")
        return httpx.Response(200, content=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def count(self, url: str) -> int:
        return self.requests.count(url)


@pytest.fixture
def server() -> RecordingServer:
    """Provide an empty recording server; tests add routes."""
    return RecordingServer()


@pytest.fixture
def descriptor_for():
    """Factory for descriptors whose digest matches data."""

    def _make(url: str, data: bytes) -> ResourceDescriptor:
        return ResourceDescriptor(url=url, sha1=sha1_hex(data))

    return _make


# ============================================================================
# Archive Tool Fake
# ============================================================================


class FakeArchiveTool:
    """In-memory ArchiveTool: serves fixed entries for any archive path."""

    def __init__(self, entries: dict[str, bytes], fail_list: Exception | None = None) -> None:
        self.entries = entries
        self.fail_list = fail_list
        self.listed: list[Path] = []
        self.opened: list[tuple[Path, str]] = []

    def list_entries(self, path: Path) -> list[ArchiveEntry]:
        self.listed.append(path)
        if self.fail_list is not None:
            raise self.fail_list
        return [ArchiveEntry(path=name, size=len(data)) for name, data in self.entries.items()]

    def open_entry(self, path: Path, entry: ArchiveEntry) -> io.BytesIO:
        self.opened.append((path, entry.path))
        return io.BytesIO(self.entries[entry.path])


@pytest.fixture
def archive_tool(plaintext) -> FakeArchiveTool:
    """Single-entry archive tool holding the plaintext."""
    return FakeArchiveTool({"pages.xml": plaintext})


@pytest.fixture
def make_archive_tool():
    """Factory for archive tools with custom entries or a listing failure."""

    def _make(entries: dict[str, bytes], fail_list: Exception | None = None) -> FakeArchiveTool:
        return FakeArchiveTool(entries, fail_list=fail_list)

    return _make

"""
Exceptions for dumpfetch.

All errors raised by the fetch pipeline derive from DumpFetchError.
NetworkError, DigestMismatchError and StorageError are retried by the
fetcher; the rest surface immediately.
"""

from __future__ import annotations

from pathlib import Path


class DumpFetchError(Exception):
    """Base error for dumpfetch."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self._original_cause = cause
        if cause is not None:
            self.__cause__ = cause
            self.__suppress_context__ = True

    def __str__(self) -> str:
        return self.message


class UnknownResourceError(DumpFetchError):
    """Requested name is not part of the catalog."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"{name} not found")


class FetchCancelledError(DumpFetchError):
    """Cancellation signal fired before the fetch completed."""

    def __init__(self, url: str | None = None, cause: BaseException | None = None) -> None:
        self.url = url
        message = "Fetch cancelled"
        if url:
            message = f"Fetch cancelled: {url}"
        super().__init__(message, cause=cause)


class NetworkError(DumpFetchError):
    """Request or transport failure while downloading."""

    def __init__(
        self,
        message: str,
        url: str,
        status_code: int | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.url = url
        self.status_code = status_code
        super().__init__(message, cause=cause)


class DigestMismatchError(DumpFetchError):
    """Downloaded bytes do not match the expected digest."""

    def __init__(self, url: str, expected: str, actual: str) -> None:
        self.url = url
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Mismatched SHA1 for the file downloaded from {url}: "
            f"expected={expected} actual={actual}"
        )


class StorageError(DumpFetchError):
    """Spool file could not be created, written, closed, reopened or removed."""

    def __init__(
        self,
        message: str,
        path: str | Path | None,
        cause: BaseException | None = None,
    ) -> None:
        self.path = str(path) if path is not None else None
        super().__init__(message, cause=cause)


class ArchiveError(DumpFetchError):
    """Solid archive could not be listed or opened."""

    def __init__(
        self,
        message: str,
        path: str | Path,
        meaning: str | None = None,
        exit_code: int | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.path = str(path)
        self.meaning = meaning
        self.exit_code = exit_code
        if meaning:
            message = f"{meaning}: {message}"
        super().__init__(message, cause=cause)


class ResourcesExhausted(DumpFetchError):
    """No resources left for the name (end of sequence, not a failure)."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"No more resources for {name}")


RETRYABLE_ERRORS = (NetworkError, DigestMismatchError, StorageError)

__all__ = [
    "DumpFetchError",
    "UnknownResourceError",
    "FetchCancelledError",
    "NetworkError",
    "DigestMismatchError",
    "StorageError",
    "ArchiveError",
    "ResourcesExhausted",
    "RETRYABLE_ERRORS",
]

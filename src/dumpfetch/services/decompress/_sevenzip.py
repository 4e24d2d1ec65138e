"""
7z archive access through the external 7z executable.

There is no in-process decoder in the stack for this format, so listing and
extraction shell out to `7z`. The ArchiveTool protocol keeps the tool
swappable (tests use an in-memory fake).
"""

from __future__ import annotations

import io
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Protocol

from dumpfetch.exceptions import ArchiveError
from dumpfetch.logging import get_logger

logger = get_logger(__name__)

# 7z exit codes
EXIT_CODE_MEANINGS = {
    1: "Warning",
    2: "Fatal error",
    3: "Change identified",
    7: "Command line error",
    8: "Not enough memory for operation",
    255: "User stopped the process",
}

DEFAULT_MEANING = "Error"

_ENTRIES_MARKER = "----------"


def describe_exit_status(exit_code: int | None) -> str:
    """Human-readable category for a 7z exit code."""
    if exit_code is None:
        return DEFAULT_MEANING
    return EXIT_CODE_MEANINGS.get(exit_code, DEFAULT_MEANING)


@dataclass(frozen=True)
class ArchiveEntry:
    """One member of an archive."""

    path: str
    size: int | None = None
    is_directory: bool = False


class ArchiveTool(Protocol):
    """Lists and opens members of a solid archive on disk."""

    def list_entries(self, path: Path) -> list[ArchiveEntry]: ...

    def open_entry(self, path: Path, entry: ArchiveEntry) -> BinaryIO: ...


def parse_slt_listing(output: str) -> list[ArchiveEntry]:
    """Parse the technical listing printed by `7z l -slt`."""
    entries: list[ArchiveEntry] = []
    lines = output.splitlines()
    try:
        start = next(i for i, line in enumerate(lines) if line.strip() == _ENTRIES_MARKER)
    except StopIteration:
        return entries

    block: dict[str, str] = {}
    for line in lines[start + 1:] + [""]:
        if not line.strip():
            if "Path" in block:
                entries.append(_entry_from_block(block))
            block = {}
            continue
        key, sep, value = line.partition(" = ")
        if sep:
            block[key.strip()] = value.strip()
    return entries


def _entry_from_block(block: dict[str, str]) -> ArchiveEntry:
    size = block.get("Size", "")
    attributes = block.get("Attributes", "")
    return ArchiveEntry(
        path=block["Path"],
        size=int(size) if size.isdigit() else None,
        is_directory=block.get("Folder") == "+" or attributes.startswith("D"),
    )


class _ProcessReader(io.RawIOBase):
    """Reads one extracted entry from the stdout of a running 7z process."""

    def __init__(self, process: subprocess.Popen, stderr: BinaryIO, path: Path) -> None:
        super().__init__()
        self._process = process
        self._stderr = stderr
        self._path = path
        self._eof = False

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        n = self._process.stdout.readinto(buffer)
        if n == 0 and not self._eof:
            self._eof = True
            self._check_exit()
        return n

    def _check_exit(self) -> None:
        exit_code = self._process.wait()
        if exit_code != 0:
            self._stderr.seek(0)
            detail = self._stderr.read().decode("utf-8", "replace").strip()
            raise ArchiveError(
                f"7z exited with {exit_code} while extracting {self._path}: {detail}",
                self._path,
                meaning=describe_exit_status(exit_code),
                exit_code=exit_code,
            )

    def close(self) -> None:
        if self.closed:
            return
        try:
            if self._process.poll() is None:
                self._process.terminate()
            self._process.stdout.close()
            self._process.wait()
            self._stderr.close()
        finally:
            super().close()


class SevenZipTool:
    """
    ArchiveTool backed by the 7z command line program.

    Example:
        >>> tool = SevenZipTool()
        >>> entries = tool.list_entries(Path("pages.xml.7z"))
        >>> reader = tool.open_entry(Path("pages.xml.7z"), entries[0])
    """

    def __init__(self, binary: str = "7z") -> None:
        self.binary = binary

    def list_entries(self, path: Path) -> list[ArchiveEntry]:
        try:
            result = subprocess.run(
                [self.binary, "l", "-slt", "-sccUTF-8", str(path)],
                capture_output=True,
                check=False,
            )
        except OSError as e:
            raise ArchiveError(
                f"Unable to run {self.binary} while listing content of file {path}",
                path,
                meaning=DEFAULT_MEANING,
                cause=e,
            ) from e

        if result.returncode != 0:
            detail = result.stderr.decode("utf-8", "replace").strip()
            raise ArchiveError(
                f"{self.binary} exited with {result.returncode} while listing content "
                f"of file {path}: {detail}",
                path,
                meaning=describe_exit_status(result.returncode),
                exit_code=result.returncode,
            )
        return parse_slt_listing(result.stdout.decode("utf-8", "replace"))

    def open_entry(self, path: Path, entry: ArchiveEntry) -> BinaryIO:
        stderr = tempfile.TemporaryFile()
        try:
            process = subprocess.Popen(
                [self.binary, "x", "-so", "-bd", "-y", str(path), entry.path],
                stdout=subprocess.PIPE,
                stderr=stderr,
            )
        except OSError as e:
            stderr.close()
            raise ArchiveError(
                f"Unable to run {self.binary} while opening file {path}",
                path,
                meaning=DEFAULT_MEANING,
                cause=e,
            ) from e

        logger.debug(f"Extracting {entry.path!r} from {path} (pid {process.pid})")
        return io.BufferedReader(_ProcessReader(process, stderr, path))


__all__ = [
    "ArchiveEntry",
    "ArchiveTool",
    "SevenZipTool",
    "EXIT_CODE_MEANINGS",
    "describe_exit_status",
    "parse_slt_listing",
]

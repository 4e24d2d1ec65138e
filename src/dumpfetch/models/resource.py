"""
Resource models: descriptors, compression variants and the catalog.
"""

from __future__ import annotations

import datetime as dt
import json
import posixpath
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Mapping
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator

from dumpfetch.exceptions import UnknownResourceError

SHA1_HEX_LENGTH = 40


class Compression(str, Enum):
    """Container format of a resource, derived from its URL suffix."""

    NONE = "none"
    GZIP = "gzip"
    BZIP2 = "bzip2"
    SEVEN_ZIP = "7z"

    @classmethod
    def from_url(cls, url: str) -> Compression:
        """Derive the compression from the URL path, ignoring query and fragment."""
        path = urlparse(url).path.lower()
        for suffix, compression in _SUFFIXES:
            if path.endswith(suffix):
                return compression
        return cls.NONE


_SUFFIXES = (
    (".7z", Compression.SEVEN_ZIP),
    (".bz2", Compression.BZIP2),
    (".gz", Compression.GZIP),
)


class ResourceDescriptor(BaseModel):
    """One network-fetchable file and its expected SHA1 digest."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(min_length=1)
    sha1: str

    @field_validator("sha1")
    @classmethod
    def _validate_sha1(cls, value: str) -> str:
        token = value.strip().lower()
        if len(token) != SHA1_HEX_LENGTH or any(c not in "0123456789abcdef" for c in token):
            raise ValueError(f"Invalid SHA1 digest: {value!r}")
        return token

    @property
    def compression(self) -> Compression:
        return Compression.from_url(self.url)

    @property
    def filename(self) -> str:
        """Basename of the URL path ("download" when the path is empty)."""
        return posixpath.basename(urlparse(self.url).path) or "download"


class ResourceCatalog(BaseModel):
    """
    Logical name -> ordered resources, plus the dump date.

    Order matters: multi-part dumps are consumed in the order given.

    Example:
        >>> catalog = ResourceCatalog.from_mapping(
        ...     {"pages": [("https://example.org/p1.xml.bz2", "0" * 40)]},
        ...     date=dt.date(2024, 1, 1),
        ... )
        >>> catalog.names
        ['pages']
    """

    model_config = ConfigDict(frozen=True)

    files: dict[str, tuple[ResourceDescriptor, ...]] = Field(default_factory=dict)
    date: dt.date | None = None

    @property
    def names(self) -> list[str]:
        return list(self.files)

    def __contains__(self, name: object) -> bool:
        return name in self.files

    def __len__(self) -> int:
        return len(self.files)

    def get(self, name: str) -> tuple[ResourceDescriptor, ...]:
        """Return the resources for name, or raise UnknownResourceError."""
        try:
            return self.files[name]
        except KeyError:
            raise UnknownResourceError(name) from None

    def check_for(self, *names: str) -> None:
        """Raise UnknownResourceError for the first name not in the catalog."""
        for name in names:
            if name not in self.files:
                raise UnknownResourceError(name)

    @classmethod
    def from_mapping(
        cls,
        files: Mapping[str, Iterable[ResourceDescriptor | Mapping[str, Any] | tuple[str, str]]],
        date: dt.date | None = None,
    ) -> ResourceCatalog:
        """Build a catalog from descriptors, dicts or (url, sha1) pairs."""
        entries: dict[str, tuple[ResourceDescriptor, ...]] = {}
        for name, items in files.items():
            descriptors = []
            for item in items:
                if isinstance(item, ResourceDescriptor):
                    descriptors.append(item)
                elif isinstance(item, Mapping):
                    descriptors.append(ResourceDescriptor(**item))
                else:
                    url, sha1 = item
                    descriptors.append(ResourceDescriptor(url=url, sha1=sha1))
            entries[name] = tuple(descriptors)
        return cls(files=entries, date=date)

    @classmethod
    def from_file(cls, path: str | Path) -> ResourceCatalog:
        """
        Load a catalog from JSON.

        Format:
            {"date": "2024-01-01",
             "files": {"pages": [{"url": "...", "sha1": "..."}]}}
        """
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        return cls.model_validate(data)


class CopyStats(BaseModel):
    """Result of a verified copy."""

    bytes_copied: int = 0
    chunks_count: int = 0
    digest: str = ""

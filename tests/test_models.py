"""
Tests for resource models.
"""

import datetime as dt
import json

import pytest
from pydantic import ValidationError

from dumpfetch.exceptions import UnknownResourceError
from dumpfetch.models import Compression, CopyStats, ResourceCatalog, ResourceDescriptor

SHA1 = "da39a3ee5e6b4b0d3255bfef95601890afd80709"


class TestCompression:
    """Suffix-derived compression variants."""

    @pytest.mark.parametrize(
        "url,expected",
        [
            ("https://dumps.example.org/enwiki-pages.xml", Compression.NONE),
            ("https://dumps.example.org/enwiki-pages.xml.gz", Compression.GZIP),
            ("https://dumps.example.org/enwiki-pages.xml.bz2", Compression.BZIP2),
            ("https://dumps.example.org/enwiki-history.xml.7z", Compression.SEVEN_ZIP),
            ("https://dumps.example.org/a.xml.BZ2", Compression.BZIP2),
            ("https://dumps.example.org/a.xml.gz?mirror=2", Compression.GZIP),
            ("https://dumps.example.org/a.gz/view", Compression.NONE),
        ],
    )
    def test_from_url(self, url, expected):
        assert Compression.from_url(url) is expected


class TestResourceDescriptor:
    """Tests for ResourceDescriptor."""

    def test_sha1_normalised(self):
        d = ResourceDescriptor(url="https://x/a.gz", sha1=SHA1.upper())
        assert d.sha1 == SHA1

    @pytest.mark.parametrize("bad", ["", "abc", "z" * 40, SHA1 + "00"])
    def test_invalid_sha1(self, bad):
        with pytest.raises(ValidationError):
            ResourceDescriptor(url="https://x/a.gz", sha1=bad)

    def test_frozen(self):
        d = ResourceDescriptor(url="https://x/a.gz", sha1=SHA1)
        with pytest.raises(ValidationError):
            d.url = "https://y/b.gz"

    def test_filename_and_compression(self):
        d = ResourceDescriptor(url="https://x/dump/20240101/pages1.xml.bz2?x=1", sha1=SHA1)
        assert d.filename == "pages1.xml.bz2"
        assert d.compression is Compression.BZIP2

    def test_filename_fallback(self):
        d = ResourceDescriptor(url="https://x/", sha1=SHA1)
        assert d.filename == "download"


class TestResourceCatalog:
    """Tests for ResourceCatalog."""

    def test_from_mapping_keeps_order(self):
        catalog = ResourceCatalog.from_mapping(
            {
                "pages": [
                    ("https://x/p1.bz2", SHA1),
                    {"url": "https://x/p2.bz2", "sha1": SHA1},
                    ResourceDescriptor(url="https://x/p3.bz2", sha1=SHA1),
                ],
                "empty": [],
            },
            date=dt.date(2024, 1, 1),
        )
        assert [d.url for d in catalog.get("pages")] == [
            "https://x/p1.bz2",
            "https://x/p2.bz2",
            "https://x/p3.bz2",
        ]
        assert catalog.get("empty") == ()
        assert catalog.names == ["pages", "empty"]
        assert "pages" in catalog
        assert len(catalog) == 2
        assert catalog.date == dt.date(2024, 1, 1)

    def test_get_unknown(self):
        catalog = ResourceCatalog.from_mapping({})
        with pytest.raises(UnknownResourceError) as exc:
            catalog.get("missing")
        assert exc.value.name == "missing"

    def test_check_for(self):
        catalog = ResourceCatalog.from_mapping({"a": [], "b": []})
        catalog.check_for("a", "b")
        with pytest.raises(UnknownResourceError, match="c not found"):
            catalog.check_for("a", "c", "d")

    def test_from_file(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps({
            "date": "2024-03-01",
            "files": {"pages": [{"url": "https://x/p.xml.gz", "sha1": SHA1}]},
        }))

        catalog = ResourceCatalog.from_file(path)

        assert catalog.date == dt.date(2024, 3, 1)
        assert catalog.get("pages")[0].compression is Compression.GZIP

    def test_from_file_invalid_digest(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps({"files": {"pages": [{"url": "https://x/p", "sha1": "nope"}]}}))
        with pytest.raises(ValidationError):
            ResourceCatalog.from_file(path)


class TestCopyStats:
    def test_default_values(self):
        stats = CopyStats()
        assert stats.bytes_copied == 0
        assert stats.chunks_count == 0
        assert stats.digest == ""

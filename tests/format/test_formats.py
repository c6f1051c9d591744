# topmark:header:start
#
#   project      : PubSniff
#   file         : test_formats.py
#   file_relpath : tests/format/test_formats.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Tests for `Format` identity and the known-format catalog."""

from __future__ import annotations

from pubsniff import mediatype as mt
from pubsniff.format import formats as fm
from pubsniff.format.base import Format
from pubsniff.format.formats import (
    KNOWN_FORMATS,
    find_known_format,
    find_known_format_by_extension,
)
from tests.conftest import parametrize


def test_format_identity_is_its_media_type() -> None:
    """It should compare and hash formats by media type only."""
    renamed = Format(name="Electronic Book", media_type=mt.EPUB, file_extension="EPUB3")
    assert renamed == fm.EPUB
    assert hash(renamed) == hash(fm.EPUB)
    assert len({renamed, fm.EPUB}) == 1
    assert fm.OPDS1_FEED != fm.OPDS1_ENTRY


def test_format_normalizes_extension_and_parses_string_media_type() -> None:
    """It should strip the dot, lowercase the extension and parse a raw media type."""
    fmt = Format(name="Custom", media_type="Application/X-Custom", file_extension=".CST")  # type: ignore[arg-type]
    assert fmt.file_extension == "cst"
    assert fmt.media_type == mt.MediaType.parse("application/x-custom")


def test_format_to_dict_and_str() -> None:
    """It should render a JSON-friendly dict and a readable label."""
    assert fm.PDF.to_dict() == {
        "name": "PDF",
        "media_type": "application/pdf",
        "file_extension": "pdf",
    }
    assert str(fm.PDF) == "PDF (application/pdf)"


def test_known_formats_have_unique_media_types() -> None:
    """It should not register two known formats under the same media type."""
    assert len({f.media_type for f in KNOWN_FORMATS}) == len(KNOWN_FORMATS)


@parametrize(
    "raw, expected",
    [
        ("application/epub+zip", fm.EPUB),
        ("APPLICATION/PDF", fm.PDF),
        ("application/atom+xml;profile=opds-catalog", fm.OPDS1_FEED),
        ("application/atom+xml;profile=opds-catalog;type=entry", fm.OPDS1_ENTRY),
        ("application/vnd.comicbook+zip", fm.CBZ),
    ],
)
def test_find_known_format(raw: str, expected: Format) -> None:
    """It should find a known format by exact media type."""
    assert find_known_format(raw) == expected


def test_find_known_format_misses() -> None:
    """It should return None for unknown or malformed media types."""
    assert find_known_format("application/x-unknown") is None
    assert find_known_format("not a media type") is None


def test_find_known_format_by_extension() -> None:
    """It should look up extensions case-insensitively, with or without a dot."""
    assert find_known_format_by_extension("epub") == fm.EPUB
    assert find_known_format_by_extension(".CBZ") == fm.CBZ
    assert find_known_format_by_extension("lcpl") == fm.LCP_LICENSE
    assert find_known_format_by_extension("exe") is None
    assert find_known_format_by_extension(None) is None

# topmark:header:start
#
#   project      : PubSniff
#   file         : test_file.py
#   file_relpath : tests/utils/test_file.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Tests for the file helpers in `pubsniff.utils.file`."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from pubsniff.utils import file as file_utils
from pubsniff.utils.file import extension_of, extension_of_uri, read_file_range
from tests.conftest import parametrize

if TYPE_CHECKING:
    from pathlib import Path


def test_read_file_range_reads_slices(tmp_path: Path) -> None:
    """It should return the requested range, truncated at end of file."""
    p: Path = tmp_path / "data.bin"
    p.write_bytes(bytes(range(100)))
    assert read_file_range(p, 0, 4) == bytes([0, 1, 2, 3])
    assert read_file_range(p, 98) == bytes([98, 99])
    assert read_file_range(p, 95, 200) == bytes(range(95, 100))
    assert read_file_range(p, 10, 10) == b""


def test_read_file_range_reads_in_chunks(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """It should assemble reads larger than one chunk."""
    monkeypatch.setattr(file_utils, "READ_CHUNK_SIZE", 7)
    p: Path = tmp_path / "data.bin"
    payload: bytes = b"0123456789" * 5
    p.write_bytes(payload)
    assert read_file_range(p) == payload
    assert read_file_range(p, 3, 40) == payload[3:40]


def test_read_file_range_propagates_os_errors(tmp_path: Path) -> None:
    """It should let the OSError of a missing file propagate."""
    with pytest.raises(OSError):
        read_file_range(tmp_path / "missing.bin")


@parametrize(
    "name, expected",
    [
        ("book.EPUB", "epub"),
        ("/a/b/archive.tar.gz", "gz"),
        ("C:\\books\\comic.cbz", "cbz"),
        ("README", None),
        ("trailing.", None),
        ("", None),
        (None, None),
    ],
)
def test_extension_of(name: str | None, expected: str | None) -> None:
    """It should return the lowercased last extension without the dot."""
    assert extension_of(name) == expected


@parametrize(
    "uri, expected",
    [
        ("https://example.com/books/alice.epub?download=1#top", "epub"),
        ("https://example.com/catalog", None),
        ("file:///tmp/My%20Book.PDF", "pdf"),
        ("data:application/pdf;base64,JVBERi0=", None),
    ],
)
def test_extension_of_uri(uri: str, expected: str | None) -> None:
    """It should use the last path segment and ignore query, fragment and data URIs."""
    assert extension_of_uri(uri) == expected

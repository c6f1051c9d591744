# topmark:header:start
#
#   project      : PubSniff
#   file         : test_publication_file.py
#   file_relpath : tests/test_publication_file.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Tests for `PublicationFile`, the lazily sniffed local publication handle."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from pubsniff.file import PublicationFile
from pubsniff.format import formats as fm
from tests.conftest import PDF_BYTES, epub_bytes

if TYPE_CHECKING:
    from pathlib import Path

    from pubsniff.format.base import Format
    from pubsniff.sniffer.context import SnifferContext


async def test_format_is_sniffed_once(tmp_path: Path) -> None:
    """It should resolve the format once, even for concurrent callers."""
    p: Path = tmp_path / "book"
    p.write_bytes(epub_bytes())
    calls: list[int] = []

    async def counting(context: SnifferContext) -> Format | None:
        calls.append(1)
        return fm.EPUB if context.content is not None else None

    pub = PublicationFile(p, sniffers=(counting,))
    results = await asyncio.gather(pub.format(), pub.format(), pub.format())
    assert results == [fm.EPUB] * 3
    assert await pub.format() == fm.EPUB
    # One light and one heavy call for a single resolution.
    assert calls == [1, 1]


async def test_known_format_skips_sniffing(tmp_path: Path) -> None:
    """It should trust an already known format."""
    p: Path = tmp_path / "blob"
    p.write_bytes(PDF_BYTES)
    assert await PublicationFile(p, format=fm.CBZ).format() == fm.CBZ


async def test_media_type_hint_is_used(tmp_path: Path) -> None:
    """It should pass the known media type as a hint."""
    p: Path = tmp_path / "blob"
    p.write_bytes(b"")
    pub = PublicationFile(p, media_type="application/epub+zip", original_url="https://x/b.epub")
    assert await pub.format() == fm.EPUB
    assert pub.original_url == "https://x/b.epub"


def test_identity_and_paths(tmp_path: Path) -> None:
    """It should make paths absolute and compare files by path."""
    p: Path = tmp_path / "pub"
    p.mkdir()
    a = PublicationFile(p)
    b = PublicationFile(str(p))
    assert a == b
    assert len({a, b}) == 1
    assert a.path.is_absolute()
    assert a.name == "pub"
    assert a.is_directory
    assert a != PublicationFile(tmp_path / "other")
    assert repr(a) == f"PublicationFile({str(p)!r})"

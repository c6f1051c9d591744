# topmark:header:start
#
#   project      : PubSniff
#   file         : test_content.py
#   file_relpath : tests/sniffer/test_content.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Tests for `SnifferContent` views and the non-raising `SnifferContext` helpers."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

from pubsniff.errors import (
    ContentNotReadable,
    MalformedEncoding,
    MalformedJSON,
    MalformedXML,
    NotAnArchive,
)
from pubsniff.sniffer.content import SnifferContent
from pubsniff.sniffer.context import SnifferContext
from tests.conftest import epub_bytes, zip_bytes

if TYPE_CHECKING:
    from pathlib import Path


async def test_views_are_computed_once() -> None:
    """It should call the byte producer once however many views are requested."""
    calls: list[int] = []

    async def producer() -> bytes:
        calls.append(1)
        await asyncio.sleep(0)
        return b'{"a": [1, 2]}'

    content = SnifferContent.from_bytes(producer)
    results = await asyncio.gather(content.as_json(), content.as_json(), content.as_string())
    assert results[0] == {"a": [1, 2]}
    assert results[1] is results[0]
    assert results[2] == '{"a": [1, 2]}'
    assert await content.length() == 13
    assert calls == [1]


async def test_views_fail_independently() -> None:
    """It should let one view fail without affecting the others."""
    content = SnifferContent.from_bytes(b"<root><child/></root>")
    with pytest.raises(MalformedJSON):
        await content.as_json()
    root = await content.as_xml()
    assert root.tag == "root"
    with pytest.raises(NotAnArchive):
        await content.as_zip_entries()
    # Failures are cached, not retried.
    with pytest.raises(MalformedJSON):
        await content.as_json()


async def test_malformed_documents_raise_typed_errors() -> None:
    """It should raise the error matching the failed view."""
    with pytest.raises(MalformedXML):
        await SnifferContent.from_bytes(b"<unclosed>").as_xml()
    with pytest.raises(MalformedEncoding):
        await SnifferContent.from_bytes(b"\xff\xfe\xfa\x00").as_string("utf-8")
    with pytest.raises(MalformedEncoding):
        await SnifferContent.from_bytes(b"abc").as_string("no-such-codec")


async def test_byte_order_mark_selects_the_codec() -> None:
    """It should decode UTF-16 content announced by its byte order mark."""
    data: bytes = "\ufeff{\"k\": \"v\"}".encode("utf-16-le")
    content = SnifferContent.from_bytes(data)
    assert await content.as_json() == {"k": "v"}


async def test_failing_producer_is_not_readable() -> None:
    """It should wrap producer failures into ContentNotReadable."""

    def producer() -> bytes:
        raise OSError("disk on fire")

    content = SnifferContent.from_bytes(producer)
    with pytest.raises(ContentNotReadable, match="disk on fire"):
        await content.read_all()


async def test_read_ranges(tmp_path: Path) -> None:
    """It should serve prefix reads and ranges from files and buffers alike."""
    payload: bytes = bytes(range(256)) * 40
    p: Path = tmp_path / "blob.bin"
    p.write_bytes(payload)
    for content in (
        SnifferContent.from_file(p, prefix_length=64),
        SnifferContent.from_bytes(payload, prefix_length=64),
    ):
        assert await content.read(0, 4) == payload[:4]
        assert await content.read(100, 120) == payload[100:120]
        assert await content.read(5, 5) == b""
        assert await content.length() == len(payload)
        with pytest.raises(ValueError):
            await content.read(10, 5)


async def test_missing_file_is_not_readable(tmp_path: Path) -> None:
    """It should raise ContentNotReadable for a missing file."""
    content = SnifferContent.from_file(tmp_path / "missing.epub")
    with pytest.raises(ContentNotReadable):
        await content.read(0, 4)


async def test_archive_views(tmp_path: Path) -> None:
    """It should list entries, test for them and read them, from bytes or a file."""
    data: bytes = epub_bytes()
    p: Path = tmp_path / "book.epub"
    p.write_bytes(data)
    for content in (SnifferContent.from_bytes(data), SnifferContent.from_file(p)):
        entries = await content.as_zip_entries()
        assert entries[0] == "mimetype"
        assert await content.contains_zip_entry("META-INF/container.xml")
        assert await content.read_zip_entry("mimetype") == b"application/epub+zip"
        with pytest.raises(NotAnArchive):
            await content.read_zip_entry("missing.xhtml")


async def test_corrupt_archive_is_not_an_archive() -> None:
    """It should refuse content with a ZIP signature but no central directory."""
    data: bytes = zip_bytes({"a.txt": "x"})[:40]
    with pytest.raises(NotAnArchive):
        await SnifferContent.from_bytes(data).as_zip_entries()


async def test_context_helpers_never_raise() -> None:
    """It should turn content failures into None in the context helpers."""
    context = SnifferContext(content=SnifferContent.from_bytes(b"\xff\xfe\x00garbage"))
    assert await context.content_as_xml() is None
    assert await context.content_as_json() is None
    assert await context.content_as_zip_entries() is None
    assert await context.read_zip_entry("mimetype") is None
    assert not await context.contains_zip_entry("mimetype")

    no_content = SnifferContext()
    assert await no_content.read(0, 4) is None
    assert await no_content.content_as_string() is None


async def test_context_reads_zip_entries_as_text_and_json() -> None:
    """It should decode archive entries and parse JSON ones."""
    data: bytes = zip_bytes({"manifest.json": '{"metadata": {}}', "bad.json": "{nope"})
    context = SnifferContext(content=SnifferContent.from_bytes(data))
    assert await context.read_zip_entry_as_json("manifest.json") == {"metadata": {}}
    assert await context.read_zip_entry_as_json("bad.json") is None


def test_context_normalizes_hints() -> None:
    """It should parse media types and lowercase extensions without dots."""
    context = SnifferContext.of(["text/html; charset=latin1"], [".HTML", "", "Htm"])
    assert context.file_extensions == ("html", "htm")
    assert context.charset == "LATIN1"
    assert context.has_media_type("text/html; charset=latin1")
    # A bare text type implies UTF-8.
    assert not context.has_media_type("text/html")
    assert context.has_file_extension(".htm")
    assert not context.has_file_extension("xhtml")

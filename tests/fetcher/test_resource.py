# topmark:header:start
#
#   project      : PubSniff
#   file         : test_resource.py
#   file_relpath : tests/fetcher/test_resource.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Tests for the `Resource` open/error/close state machine and `Link`."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from pubsniff.fetcher.errors import (
    ResourceForbidden,
    ResourceNotFound,
    ResourceOtherError,
)
from pubsniff.fetcher.file import FileFetcher
from pubsniff.fetcher.link import Link
from pubsniff.fetcher.resource import (
    BytesResource,
    FailureResource,
    FileResource,
    ResourceState,
)
from pubsniff.format import formats as fm
from pubsniff.sniffer.pipeline import of_resource
from tests.conftest import PDF_BYTES, parametrize


async def test_bytes_resource_opens_lazily() -> None:
    """It should produce its bytes on first access and then serve ranges."""
    calls: list[int] = []

    async def produce() -> bytes:
        calls.append(1)
        return b"0123456789"

    res = BytesResource(Link("/digits.txt"), produce)
    assert res.state is ResourceState.UNOPENED
    assert await res.read(2, 5) == b"234"
    assert res.state is ResourceState.AVAILABLE
    assert await res.length() == 10
    assert await res.read() == b"0123456789"
    assert await res.read(4, 4) == b""
    assert calls == [1]


def test_resource_states_are_plain_enum_members() -> None:
    """It should expose the lifecycle as plain enum values with no presentation attached."""
    assert [s.value for s in ResourceState] == ["unopened", "available", "errored"]
    assert not isinstance(ResourceState.UNOPENED, str)
    assert not hasattr(ResourceState.ERRORED, "color")


async def test_invalid_range_is_a_value_error() -> None:
    """It should reject negative or inverted ranges."""
    res = BytesResource(Link("/a"), b"abc")
    with pytest.raises(ValueError):
        await res.read(-1, 2)
    with pytest.raises(ValueError):
        await res.read(2, 1)


async def test_errored_resource_caches_its_error() -> None:
    """It should fail every later access with the same error, without reopening."""
    calls: list[int] = []

    def produce() -> bytes:
        calls.append(1)
        raise RuntimeError("producer exploded")

    res = BytesResource(Link("/boom"), produce)
    with pytest.raises(ResourceOtherError) as first:
        await res.read()
    with pytest.raises(ResourceOtherError) as second:
        await res.length()
    assert first.value is second.value
    assert res.state is ResourceState.ERRORED
    assert res.error is first.value
    assert calls == [1]


async def test_failure_resource_always_fails() -> None:
    """It should raise its error on every access."""
    res = FailureResource(Link("/x"), ResourceForbidden("/x: forbidden"))
    with pytest.raises(ResourceForbidden):
        await res.read()
    with pytest.raises(ResourceForbidden):
        await res.read_as_string()


async def test_closed_resource_refuses_access() -> None:
    """It should raise ResourceOtherError after close, and close idempotently."""
    async with BytesResource(Link("/a"), b"abc") as res:
        assert await res.read() == b"abc"
    assert res.closed
    with pytest.raises(ResourceOtherError, match="closed"):
        await res.read()
    await res.close()


async def test_typed_reads() -> None:
    """It should decode text, JSON and XML, mapping parse failures to ResourceOtherError."""
    assert await BytesResource(Link("/t"), "héllo".encode()).read_as_string() == "héllo"
    assert await BytesResource(Link("/j"), b'{"a": 1}').read_as_json() == {"a": 1}
    root = await BytesResource(Link("/x"), b"<r><c/></r>").read_as_xml()
    assert root.tag == "r"
    with pytest.raises(ResourceOtherError, match="invalid JSON"):
        await BytesResource(Link("/j"), b"{").read_as_json()
    with pytest.raises(ResourceOtherError, match="invalid XML"):
        await BytesResource(Link("/x"), b"<r>").read_as_xml()
    with pytest.raises(ResourceOtherError, match="cannot decode"):
        await BytesResource(Link("/t"), b"\xff").read_as_string("utf-8")


async def test_file_resource(tmp_path: Path) -> None:
    """It should serve regular files and report missing files and directories as not found."""
    p: Path = tmp_path / "doc.pdf"
    p.write_bytes(PDF_BYTES)
    res = FileResource(Link("/doc.pdf"), p)
    assert res.local_path == p
    assert await res.length() == len(PDF_BYTES)
    assert await res.read(0, 5) == b"%PDF-"

    with pytest.raises(ResourceNotFound):
        await FileResource(Link("/missing"), tmp_path / "missing").read()
    with pytest.raises(ResourceNotFound, match="not a regular file"):
        await FileResource(Link("/dir"), tmp_path).read()


@pytest.fixture
def fs_calls(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    """Record the names of the `Path` file system queries made during the test."""
    calls: list[str] = []

    def recording(name: str) -> Any:
        original: Any = getattr(Path, name)

        def spy(self: Path, *args: Any, **kwargs: Any) -> Any:
            calls.append(name)
            return original(self, *args, **kwargs)

        return spy

    for name in ("stat", "is_dir", "is_file", "exists", "resolve", "open"):
        monkeypatch.setattr(Path, name, recording(name))
    return calls


async def test_missing_file_is_only_touched_when_read(tmp_path: Path, fs_calls: list[str]) -> None:
    """It should do no file system I/O until a missing file is first read."""
    res = FileResource(Link("/missing"), tmp_path / "missing")
    assert res.state is ResourceState.UNOPENED
    assert fs_calls == []

    with pytest.raises(ResourceNotFound):
        await res.read()
    assert res.state is ResourceState.ERRORED
    assert "stat" in fs_calls


async def test_file_fetcher_hands_out_unopened_resources(
    tmp_path: Path, fs_calls: list[str]
) -> None:
    """It should map an href to a path without touching the file system."""
    fetcher = FileFetcher.single("/", tmp_path)
    expected: Path = tmp_path.resolve() / "missing.epub"
    fs_calls.clear()

    res = fetcher.get(Link("/sub/../missing.epub"))
    assert res.local_path == expected
    assert res.state is ResourceState.UNOPENED
    assert fs_calls == []

    with pytest.raises(ResourceNotFound):
        await res.read()
    assert "stat" in fs_calls
    await fetcher.close()


async def test_of_resource_uses_link_hints_and_content(tmp_path: Path) -> None:
    """It should sniff a resource from its link and, failing that, its bytes."""
    declared = BytesResource(Link("/item", media_type="application/epub+zip"), b"")
    assert await of_resource(declared) == fm.EPUB
    by_href = BytesResource(Link("/books/doc.pdf?x=1"), b"")
    assert await of_resource(by_href) == fm.PDF
    by_content = BytesResource(Link("/blob"), PDF_BYTES)
    assert await of_resource(by_content) == fm.PDF

    p: Path = tmp_path / "blob"
    p.write_bytes(PDF_BYTES)
    assert await of_resource(FileResource(Link("/blob"), p)) == fm.PDF


@parametrize(
    "href, params, expected",
    [
        ("/search{?q,lang}", {"q": "a b", "lang": "fr"}, "/search?q=a%20b&lang=fr"),
        ("/search{?q,lang}", {"q": "x"}, "/search?q=x"),
        ("/search{?q}", {}, "/search"),
        ("/books/{id}/cover", {"id": "a/b"}, "/books/a%2Fb/cover"),
        ("{+base}/cover", {"base": "http://x/y"}, "http://x/y/cover"),
    ],
)
def test_link_template_expansion(href: str, params: dict[str, str], expected: str) -> None:
    """It should expand simple, reserved and query template expressions."""
    assert Link(href, templated=True).expand(params) == expected


def test_link_dict_round_trip_and_template_parameters() -> None:
    """It should convert to and from the JSON link form."""
    link = Link.from_dict({"href": "/s{?q,page}", "type": "application/opds+json", "templated": True})
    assert link.media_type == "application/opds+json"
    assert link.template_parameters() == ("q", "page")
    assert Link.from_dict(link.to_dict()) == link
    assert Link("/plain{?q}").expand({"q": "x"}) == "/plain{?q}"
    with pytest.raises(ValueError):
        Link.from_dict({"type": "text/html"})

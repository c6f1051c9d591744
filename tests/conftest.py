# topmark:header:start
#
#   project      : PubSniff
#   file         : conftest.py
#   file_relpath : tests/conftest.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Pytest configuration for the PubSniff test suite.

This file sets up global fixtures, sample publication builders and the
logging configuration for test runs.

Notes:
    Asynchronous tests run under ``pytest-asyncio`` in auto mode: a plain
    ``async def test_...`` is collected and awaited on a fresh event loop.
"""

from __future__ import annotations

import io
import json
import zipfile
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any, TypeVar, cast

import pytest

from pubsniff.config import logging
from pubsniff.config.model import MutableConfig

if TYPE_CHECKING:
    from collections.abc import Mapping

    from pubsniff.config.model import Config

F = TypeVar("F", bound=Callable[..., object])

# A decorator taking a Callable (F) and returning the same Callable (F).
DecoratorType = Callable[[F], F]


def as_typed_mark(mark: Any) -> DecoratorType[Any]:
    """Wrap a pytest mark so static type checkers preserve the function type.

    Args:
        mark (Any): A pytest mark decorator such as `pytest.mark.network`.

    Returns:
        DecoratorType[Any]: A decorator that preserves the wrapped function's type.
    """

    def _decorator(func: F) -> F:
        return cast("F", mark(func))

    return _decorator


mark_network: DecoratorType[Any] = as_typed_mark(pytest.mark.network)
mark_hypothesis: DecoratorType[Any] = as_typed_mark(pytest.mark.hypothesis)


def parametrize(*args: Any, **kwargs: Any) -> Callable[[F], F]:
    """Typed wrapper for `pytest.mark.parametrize`."""
    mark: pytest.MarkDecorator = pytest.mark.parametrize(*args, **kwargs)
    return as_typed_mark(mark)


def hookimpl(*args: Any, **kwargs: Any) -> Callable[[F], F]:
    """Typed wrapper for `pytest.hookimpl`."""
    return as_typed_mark(pytest.hookimpl(*args, **kwargs))


def fixture(*args: Any, **kwargs: Any) -> Callable[[F], F]:
    """Typed wrapper for `pytest.fixture`."""
    return as_typed_mark(pytest.fixture(*args, **kwargs))


@pytest.fixture(autouse=True)
def silence_pubsniff_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure PubSniff's runtime log level is not forced via env during tests.

    Args:
        monkeypatch (pytest.MonkeyPatch): Pytest monkeypatch fixture used to manipulate
            environment variables.
    """
    monkeypatch.delenv("PUBSNIFF_LOG_LEVEL", raising=False)


@hookimpl(tryfirst=True)
def pytest_configure(config: pytest.Config) -> None:  # pylint: disable=unused-argument
    """Set the logging level to TRACE so failing tests show the classifier trail.

    Args:
        config (pytest.Config): The pytest configuration object.
    """
    logging.setup_logging(level=logging.TRACE_LEVEL)


@pytest.fixture
def isolation(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run a test in an isolated working directory marked as configuration root.

    The directory holds a ``pubsniff.toml`` with ``root = true`` so that
    configuration discovery never climbs into the developer's own files.

    Args:
        tmp_path (Path): The pytest-provided temporary directory for the test.
        monkeypatch (pytest.MonkeyPatch): Fixture to change the working directory.

    Returns:
        Path: The isolated working directory.
    """
    cwd: Path = tmp_path / "proj"
    cwd.mkdir()
    (cwd / "pubsniff.toml").write_text("root = true\n", encoding="utf-8")
    monkeypatch.chdir(cwd)
    return cwd


# --- Sample content builders ---


def zip_bytes(entries: Mapping[str, bytes | str], *, stored: tuple[str, ...] = ()) -> bytes:
    """Build an in-memory ZIP archive.

    Args:
        entries (Mapping[str, bytes | str]): Entry name to content, in archive order.
        stored (tuple[str, ...]): Entries written without compression.

    Returns:
        bytes: The archive.
    """
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, data in entries.items():
            compress: int = zipfile.ZIP_STORED if name in stored else zipfile.ZIP_DEFLATED
            zf.writestr(name, data, compress_type=compress)
    return buf.getvalue()


def epub_bytes() -> bytes:
    """A minimal EPUB: ``mimetype`` first and stored, then the container."""
    return zip_bytes(
        {
            "mimetype": "application/epub+zip",
            "META-INF/container.xml": (
                '<?xml version="1.0"?>'
                '<container xmlns="urn:oasis:names:tc:opendocument:xmlns:container"/>'
            ),
            "OEBPS/chapter1.xhtml": "<html/>",
        },
        stored=("mimetype",),
    )


def webpub_manifest(
    reading_order_type: str = "text/html", conforms_to: str | None = None
) -> dict[str, Any]:
    """A Readium Web Publication manifest with a one-item reading order."""
    metadata: dict[str, Any] = {"title": "Sample"}
    if conforms_to is not None:
        metadata["conformsTo"] = conforms_to
    return {
        "@context": "https://readium.org/webpub-manifest/context.jsonld",
        "metadata": metadata,
        "links": [{"rel": "self", "href": "manifest.json", "type": "application/webpub+json"}],
        "readingOrder": [{"href": "item", "type": reading_order_type}],
    }


def webpub_package_bytes(manifest: Mapping[str, Any], *, license_doc: bool = False) -> bytes:
    """A packaged web publication holding ``manifest`` (and optionally a license)."""
    entries: dict[str, bytes | str] = {"manifest.json": json.dumps(manifest)}
    if license_doc:
        entries["license.lcpl"] = "{}"
    return zip_bytes(entries)


PDF_BYTES: bytes = b"%PDF-1.7\n1 0 obj\n<<>>\nendobj\ntrailer\n<<>>\n%%EOF\n"
PNG_BYTES: bytes = b"\x89PNG\r\n\x1a\n" + b"\x00" * 24

OPDS1_FEED_XML: str = (
    '<?xml version="1.0" encoding="UTF-8"?>'
    '<feed xmlns="http://www.w3.org/2005/Atom"><title>Catalog</title></feed>'
)
OPDS1_ENTRY_XML: str = (
    '<?xml version="1.0" encoding="UTF-8"?>'
    '<entry xmlns="http://www.w3.org/2005/Atom"><title>Book</title></entry>'
)


@pytest.fixture
def sample_dir(tmp_path: Path) -> Path:
    """A directory holding one file of each commonly sniffed kind, without misleading names."""
    root: Path = tmp_path / "samples"
    root.mkdir()
    (root / "book.bin").write_bytes(epub_bytes())
    (root / "doc.bin").write_bytes(PDF_BYTES)
    (root / "image.bin").write_bytes(PNG_BYTES)
    (root / "feed.bin").write_text(OPDS1_FEED_XML, encoding="utf-8")
    return root


def make_config(**overrides: Any) -> Config:
    """Return a frozen `Config` built from defaults and overrides.

    Args:
        **overrides (Any): Attributes set on the mutable builder before freezing.

    Returns:
        Config: An immutable configuration snapshot.
    """
    m: MutableConfig = MutableConfig.from_defaults()
    for k, v in overrides.items():
        setattr(m, k, v)
    return m.freeze()

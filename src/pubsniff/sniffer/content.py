# topmark:header:start
#
#   project      : PubSniff
#   file         : content.py
#   file_relpath : src/pubsniff/sniffer/content.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Lazily decoded views over the bytes of an asset being sniffed.

The backend of a `SnifferContent` is one of a closed set of *sources*:

* `FileContent`: a file on the local file system;
* `BytesContent`: an in-memory buffer, produced on demand by a (sync or async)
  zero-argument callable;
* `RemoteContent`: a URI, read through a `UriResolver` (``file:``, ``data:``,
  ``http(s):``).

`SnifferContent` layers cached *views* on top of a source: raw bytes, text,
XML tree, JSON value, ZIP entry list and individual ZIP entries. Each view is
computed at most once per instance, even with concurrent callers, and a view
that failed keeps failing with the same error. Views are independent: a
failing JSON view never prevents the ZIP view from succeeding.

Short reads at offset 0 (magic numbers, markers) are served from a prefix
buffer of ``prefix_length`` bytes, so classifiers probing headers share a
single backend read.
"""

from __future__ import annotations

import asyncio
import codecs
import inspect
import io
import json
import xml.etree.ElementTree as ET
import zipfile
import zlib
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final, Union

from pubsniff.config.logging import get_logger
from pubsniff.constants import DEFAULT_PREFIX_LENGTH
from pubsniff.errors import (
    ContentNotReadable,
    MalformedEncoding,
    MalformedJSON,
    MalformedXML,
    NotAnArchive,
    SnifferContentError,
)
from pubsniff.utils.file import read_file_range
from pubsniff.utils.memo import SingleFlight

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from pubsniff.config.logging import PubsniffLogger
    from pubsniff.sniffer.resolvers import UriResolver

logger: PubsniffLogger = get_logger(__name__)

# Local file header, empty archive (end of central directory) and spanned archive markers.
ZIP_SIGNATURES: Final[tuple[bytes, ...]] = (b"PK\x03\x04", b"PK\x05\x06", b"PK\x07\x08")

_BOMS: Final[tuple[tuple[bytes, str], ...]] = (
    (codecs.BOM_UTF32_LE, "utf-32"),
    (codecs.BOM_UTF32_BE, "utf-32"),
    (codecs.BOM_UTF8, "utf-8-sig"),
    (codecs.BOM_UTF16_LE, "utf-16"),
    (codecs.BOM_UTF16_BE, "utf-16"),
)


@dataclass(frozen=True)
class FileContent:
    """Content backed by a local file."""

    path: Path

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", Path(self.path))


@dataclass(frozen=True)
class BytesContent:
    """Content backed by an on-demand byte producer.

    Attributes:
        producer (Callable[[], bytes | Awaitable[bytes]]): Zero-argument callable
            returning the full content, either directly or as an awaitable.
    """

    producer: Callable[[], bytes | Awaitable[bytes]]

    @classmethod
    def of(cls, data: bytes) -> BytesContent:
        """Wrap an existing buffer."""
        payload: bytes = bytes(data)
        return cls(lambda: payload)


@dataclass(frozen=True)
class RemoteContent:
    """Content addressed by a URI and read through a resolver."""

    uri: str
    resolver: UriResolver


ContentSource = Union[FileContent, BytesContent, RemoteContent]


def detect_charset(data: bytes, default: str = "utf-8") -> str:
    """Return the Python codec for ``data``, honoring a byte order mark if present."""
    for bom, codec in _BOMS:
        if data.startswith(bom):
            return codec
    return default


class SnifferContent:
    """Cached, independently failing views over a `ContentSource`.

    Args:
        source (ContentSource): The backend to read from.
        prefix_length (int): Size of the shared prefix buffer for short reads.
    """

    def __init__(self, source: ContentSource, *, prefix_length: int = DEFAULT_PREFIX_LENGTH) -> None:
        self._source: ContentSource = source
        self._prefix_length: int = max(0, prefix_length)
        self._cells: dict[str, SingleFlight[Any]] = {}

    @classmethod
    def from_file(cls, path: Path | str, **kwargs: Any) -> SnifferContent:
        """Shortcut for ``SnifferContent(FileContent(path))``."""
        return cls(FileContent(Path(path)), **kwargs)

    @classmethod
    def from_bytes(
        cls, producer: bytes | Callable[[], bytes | Awaitable[bytes]], **kwargs: Any
    ) -> SnifferContent:
        """Shortcut accepting either a buffer or a byte producer."""
        if isinstance(producer, (bytes, bytearray, memoryview)):
            return cls(BytesContent.of(bytes(producer)), **kwargs)
        return cls(BytesContent(producer), **kwargs)

    @classmethod
    def from_uri(cls, uri: str, resolver: UriResolver | None = None, **kwargs: Any) -> SnifferContent:
        """Shortcut for ``SnifferContent(RemoteContent(uri, resolver))``."""
        if resolver is None:
            from pubsniff.sniffer.resolvers import default_uri_resolver

            resolver = default_uri_resolver()
        return cls(RemoteContent(uri, resolver), **kwargs)

    @property
    def source(self) -> ContentSource:
        """The underlying backend."""
        return self._source

    def _cell(self, key: str) -> SingleFlight[Any]:
        cell: SingleFlight[Any] | None = self._cells.get(key)
        if cell is None:
            cell = SingleFlight(f"{self!r}:{key}")
            self._cells[key] = cell
        return cell

    # --- Backend access ---

    async def _produce_all(self) -> bytes:
        src: ContentSource = self._source
        if isinstance(src, FileContent):
            return await self._read_file(src.path, 0, None)
        if isinstance(src, RemoteContent):
            return await src.resolver.read(src.uri, 0, None)
        try:
            produced: bytes | Awaitable[bytes] = src.producer()
            if inspect.isawaitable(produced):
                produced = await produced
        except SnifferContentError:
            raise
        except Exception as exc:
            raise ContentNotReadable(f"byte producer failed: {exc}") from exc
        if not isinstance(produced, (bytes, bytearray, memoryview)):
            raise ContentNotReadable(f"byte producer returned {type(produced).__name__}")
        return bytes(produced)

    @staticmethod
    async def _read_file(path: Path, start: int, end: int | None) -> bytes:
        try:
            return await asyncio.to_thread(read_file_range, path, start, end)
        except OSError as exc:
            raise ContentNotReadable(f"{path}: {exc}") from exc

    async def _read_range(self, start: int, end: int | None) -> bytes:
        src: ContentSource = self._source
        if isinstance(src, FileContent):
            return await self._read_file(src.path, start, end)
        if isinstance(src, RemoteContent):
            return await src.resolver.read(src.uri, start, end)
        return (await self.read_all())[start:end]

    async def _prefix(self) -> bytes:
        async def compute() -> bytes:
            logger.trace("%r: reading %d-byte prefix", self, self._prefix_length)
            return await self._read_range(0, self._prefix_length)

        return await self._cell("prefix").run(compute)

    # --- Views ---

    async def read_all(self) -> bytes:
        """Return the full content.

        Raises:
            ContentNotReadable: If the backend cannot produce the bytes.
        """
        return await self._cell("bytes").run(self._produce_all)

    async def read(self, start: int = 0, end: int | None = None) -> bytes:
        """Return bytes ``[start, end)`` without loading the whole asset when possible.

        Args:
            start (int): First byte offset.
            end (int | None): Exclusive end offset, or None to read to the end.

        Returns:
            bytes: The requested range, shorter if the content ends first.

        Raises:
            ContentNotReadable: If the backend cannot produce the bytes.
        """
        if start < 0 or (end is not None and end < start):
            raise ValueError(f"invalid range [{start}, {end})")
        if end is not None and end == start:
            return b""

        full: bytes | None = self._cell("bytes").peek()
        if full is not None:
            return full[start:end]
        if start == 0 and end is not None and end <= self._prefix_length:
            return (await self._prefix())[:end]
        return await self._read_range(start, end)

    async def length(self) -> int:
        """Return the content length in bytes."""

        async def compute() -> int:
            src: ContentSource = self._source
            if isinstance(src, FileContent):
                try:
                    return (await asyncio.to_thread(src.path.stat)).st_size
                except OSError as exc:
                    raise ContentNotReadable(f"{src.path}: {exc}") from exc
            if isinstance(src, RemoteContent):
                info = await src.resolver.probe(src.uri)
                if info.length is not None:
                    return info.length
            return len(await self.read_all())

        return await self._cell("length").run(compute)

    async def as_string(self, charset: str | None = None) -> str:
        """Decode the content as text.

        Args:
            charset (str | None): Codec to use. When None, a byte order mark selects
                the UTF-8/16/32 codec, otherwise UTF-8 is assumed.

        Raises:
            MalformedEncoding: If the bytes are not valid in the charset.
        """

        async def compute() -> str:
            data: bytes = await self.read_all()
            codec: str = charset or detect_charset(data)
            try:
                return data.decode(codec)
            except LookupError as exc:
                raise MalformedEncoding(f"unknown charset {codec!r}") from exc
            except UnicodeDecodeError as exc:
                raise MalformedEncoding(f"not valid {codec}: {exc.reason}") from exc

        return await self._cell(f"string:{(charset or '').lower()}").run(compute)

    async def as_xml(self) -> ET.Element:
        """Parse the content as an XML document and return its root element.

        Raises:
            MalformedXML: If the document is not well-formed.
        """

        async def compute() -> ET.Element:
            data: bytes = await self.read_all()
            try:
                # The parser reads the XML declaration encoding itself.
                return ET.fromstring(data)
            except ET.ParseError as exc:
                raise MalformedXML(str(exc)) from exc

        return await self._cell("xml").run(compute)

    async def as_json(self) -> Any:
        """Parse the content as a JSON value.

        Raises:
            MalformedJSON: If the text is not valid JSON.
        """

        async def compute() -> Any:
            text: str = await self.as_string()
            try:
                return json.loads(text)
            except ValueError as exc:
                raise MalformedJSON(str(exc)) from exc

        return await self._cell("json").run(compute)

    async def is_zip(self) -> bool:
        """Return whether the content starts with a ZIP signature."""
        return (await self.read(0, 4)) in ZIP_SIGNATURES

    async def as_zip_entries(self) -> tuple[str, ...]:
        """Return the names of the file entries of a ZIP archive, in archive order.

        Directory entries are omitted.

        Raises:
            NotAnArchive: If the content is not a readable ZIP archive.
        """

        async def compute() -> tuple[str, ...]:
            if not await self.is_zip():
                raise NotAnArchive("missing ZIP signature")
            infos: list[zipfile.ZipInfo] = await self._with_archive(lambda zf: zf.infolist())
            return tuple(info.filename for info in infos if not info.is_dir())

        return await self._cell("zip").run(compute)

    async def contains_zip_entry(self, name: str) -> bool:
        """Return whether the archive holds an entry at ``name``."""
        return name in await self.as_zip_entries()

    async def read_zip_entry(self, name: str) -> bytes:
        """Return the decompressed bytes of one archive entry.

        Raises:
            NotAnArchive: If the content is not an archive or the entry is missing.
        """

        async def compute() -> bytes:
            if not await self.contains_zip_entry(name):
                raise NotAnArchive(f"no entry {name!r} in archive")
            return await self._with_archive(lambda zf: zf.read(name))

        return await self._cell(f"zip-entry:{name}").run(compute)

    async def _with_archive(self, fn: Callable[[zipfile.ZipFile], Any]) -> Any:
        src: ContentSource = self._source
        if isinstance(src, FileContent):
            target: Path | io.BytesIO = src.path
        else:
            target = io.BytesIO(await self.read_all())

        def run() -> Any:
            with zipfile.ZipFile(target) as zf:
                return fn(zf)

        try:
            return await asyncio.to_thread(run)
        except (
            zipfile.BadZipFile,
            zipfile.LargeZipFile,
            zlib.error,
            EOFError,
            NotImplementedError,
            RuntimeError,
        ) as exc:
            raise NotAnArchive(str(exc)) from exc
        except OSError as exc:
            raise ContentNotReadable(str(exc)) from exc

    def __repr__(self) -> str:
        return f"SnifferContent({self._source!r})"

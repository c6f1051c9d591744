# topmark:header:start
#
#   project      : PubSniff
#   file         : resource.py
#   file_relpath : src/pubsniff/fetcher/resource.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Lazily opened byte sources returned by fetchers.

A `Resource` does no I/O until it is first accessed. That first access opens
it and moves it out of `ResourceState.UNOPENED`:

* to `ResourceState.AVAILABLE` on success;
* to `ResourceState.ERRORED` on failure. The error is cached and every later
  access raises the very same exception; opening is never retried.

Closing is allowed in any state, is idempotent and makes every later access
raise `ResourceOtherError`. Reads already running are not interrupted.

Subclasses implement the `_open`, `_length`, `_read` and (optionally)
`_close` hooks; the base class owns the state machine and the decoding
helpers.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import stat
import xml.etree.ElementTree as ET
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pubsniff.config.logging import get_logger
from pubsniff.errors import ContentNotReadable
from pubsniff.fetcher.errors import (
    ResourceError,
    ResourceForbidden,
    ResourceIOError,
    ResourceNotFound,
    ResourceOtherError,
)
from pubsniff.sniffer.content import FileContent, RemoteContent, SnifferContent, detect_charset
from pubsniff.sniffer.resolvers import UriInfo
from pubsniff.utils.file import read_file_range
from pubsniff.utils.memo import SingleFlight

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from types import TracebackType

    from pubsniff.config.logging import PubsniffLogger
    from pubsniff.fetcher.link import Link

logger: PubsniffLogger = get_logger(__name__)


class ResourceState(Enum):
    """Lifecycle state of a `Resource` (closing is tracked separately)."""

    UNOPENED = "unopened"
    AVAILABLE = "available"
    ERRORED = "errored"


def map_os_error(exc: OSError, what: str) -> ResourceError:
    """Translate a file system error into the resource error taxonomy."""
    if isinstance(exc, (FileNotFoundError, NotADirectoryError)):
        return ResourceNotFound(f"{what}: not found")
    if isinstance(exc, PermissionError):
        return ResourceForbidden(f"{what}: permission denied")
    return ResourceIOError(f"{what}: {exc}", cause=exc)


class Resource:
    """Base class for lazily opened resources.

    Args:
        link (Link): The link this resource was fetched for.
    """

    def __init__(self, link: Link) -> None:
        self._link: Link = link
        self._state: ResourceState = ResourceState.UNOPENED
        self._error: ResourceError | None = None
        self._closed: bool = False
        self._opening: SingleFlight[None] = SingleFlight(f"open:{link.href}")

    # --- Introspection ---

    @property
    def link(self) -> Link:
        """The link this resource was fetched for."""
        return self._link

    @property
    def state(self) -> ResourceState:
        """Current open state."""
        return self._state

    @property
    def closed(self) -> bool:
        """Whether `close` was called."""
        return self._closed

    @property
    def error(self) -> ResourceError | None:
        """The cached error of an errored resource."""
        return self._error

    @property
    def local_path(self) -> Path | None:
        """Path of the backing file when the resource is a plain local file."""
        return None

    # --- Hooks ---

    async def _open(self) -> None:
        """Acquire the underlying data. Raise a `ResourceError` on failure."""

    async def _length(self) -> int:
        return len(await self._read(0, None))

    async def _read(self, start: int, end: int | None) -> bytes:
        raise NotImplementedError

    async def _close(self) -> None:
        """Release the underlying data."""

    # --- State machine ---

    async def _do_open(self) -> None:
        try:
            await self._open()
        except ResourceError as exc:
            self._fail(exc)
            raise
        except OSError as exc:
            err: ResourceError = map_os_error(exc, self._link.href)
            self._fail(err)
            raise err from exc
        except Exception as exc:
            err = ResourceOtherError(f"{self._link.href}: {exc}")
            self._fail(err)
            raise err from exc
        self._state = ResourceState.AVAILABLE
        logger.trace("resource %s available", self._link.href)

    def _fail(self, error: ResourceError) -> None:
        self._error = error
        self._state = ResourceState.ERRORED
        logger.debug("resource %s errored: %s", self._link.href, error)

    async def _ensure_open(self) -> None:
        if self._closed:
            raise ResourceOtherError(f"resource {self._link.href!r} is closed")
        if self._state is ResourceState.ERRORED and self._error is not None:
            raise self._error
        if self._state is ResourceState.UNOPENED:
            await self._opening.run(self._do_open)

    # --- Public API ---

    async def length(self) -> int:
        """Return the length of the resource in bytes.

        Raises:
            ResourceError: If the resource cannot be opened or was closed.
        """
        await self._ensure_open()
        return await self._length()

    async def read(self, start: int | None = None, end: int | None = None) -> bytes:
        """Read bytes ``[start, end)``; the whole resource by default.

        Args:
            start (int | None): First byte offset (0 when None).
            end (int | None): Exclusive end offset (end of resource when None).

        Returns:
            bytes: The requested bytes, shorter if the resource ends first.

        Raises:
            ResourceError: If the resource cannot be opened or read, or was closed.
            ValueError: If the range is invalid.
        """
        first: int = start or 0
        if first < 0 or (end is not None and end < first):
            raise ValueError(f"invalid range [{start}, {end})")
        await self._ensure_open()
        if end is not None and end == first:
            return b""
        return await self._read(first, end)

    async def read_as_string(self, charset: str | None = None) -> str:
        """Read and decode the whole resource (BOM or UTF-8 when ``charset`` is None).

        Raises:
            ResourceOtherError: If the bytes are not valid in the charset.
        """
        data: bytes = await self.read()
        codec: str = charset or detect_charset(data)
        try:
            return data.decode(codec)
        except (UnicodeDecodeError, LookupError) as exc:
            raise ResourceOtherError(f"{self._link.href}: cannot decode as {codec}") from exc

    async def read_as_json(self) -> Any:
        """Read the resource as a JSON value.

        Raises:
            ResourceOtherError: If the content is not valid JSON.
        """
        text: str = await self.read_as_string()
        try:
            return json.loads(text)
        except ValueError as exc:
            raise ResourceOtherError(f"{self._link.href}: invalid JSON ({exc})") from exc

    async def read_as_xml(self) -> ET.Element:
        """Read the resource as an XML document and return its root element.

        Raises:
            ResourceOtherError: If the content is not well-formed XML.
        """
        data: bytes = await self.read()
        try:
            return ET.fromstring(data)
        except ET.ParseError as exc:
            raise ResourceOtherError(f"{self._link.href}: invalid XML ({exc})") from exc

    def sniffer_content(self) -> SnifferContent:
        """Return a sniffing view over this resource.

        Local files are read directly. Other resources are read through
        `ResourceReader`, so prefix and range reads only fetch the bytes asked
        for (an HTTP resource sends a ``Range`` request).
        """
        path: Path | None = self.local_path
        if path is not None:
            return SnifferContent(FileContent(path))
        return SnifferContent(RemoteContent(self._link.href, ResourceReader(self)))

    async def close(self) -> None:
        """Release the resource. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        await self._close()
        logger.trace("resource %s closed", self._link.href)

    async def __aenter__(self) -> Resource:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    def __repr__(self) -> str:
        closed: str = ", closed" if self._closed else ""
        return f"{type(self).__name__}({self._link.href!r}, {self._state.value}{closed})"


class ResourceReader:
    """`UriResolver` reading one `Resource`, whatever URI it is asked for.

    Resource errors are reported as `ContentNotReadable`, which classifiers
    treat as "no match".
    """

    def __init__(self, resource: Resource) -> None:
        self._resource: Resource = resource

    async def probe(self, uri: str) -> UriInfo:
        try:
            length: int = await self._resource.length()
        except ResourceError as exc:
            raise ContentNotReadable(f"{uri}: {exc}") from exc
        return UriInfo(media_type=self._resource.link.media_type, length=length)

    async def read(self, uri: str, start: int = 0, end: int | None = None) -> bytes:
        try:
            return await self._resource.read(start, end)
        except ResourceError as exc:
            raise ContentNotReadable(f"{uri}: {exc}") from exc


class FailureResource(Resource):
    """A resource that always fails with ``error``."""

    def __init__(self, link: Link, error: ResourceError) -> None:
        super().__init__(link)
        self._failure: ResourceError = error

    async def _open(self) -> None:
        raise self._failure


class BytesResource(Resource):
    """A resource serving an in-memory buffer, possibly produced on first access.

    Args:
        link (Link): The link of the resource.
        data (bytes | Callable[[], bytes | Awaitable[bytes]]): The buffer, or a
            zero-argument (sync or async) callable producing it.
    """

    def __init__(self, link: Link, data: bytes | Callable[[], bytes | Awaitable[bytes]]) -> None:
        super().__init__(link)
        self._source: bytes | Callable[[], bytes | Awaitable[bytes]] = data
        self._data: bytes = b""

    async def _open(self) -> None:
        if isinstance(self._source, (bytes, bytearray)):
            self._data = bytes(self._source)
            return
        produced: bytes | Awaitable[bytes] = self._source()
        if inspect.isawaitable(produced):
            produced = await produced
        self._data = bytes(produced)

    async def _length(self) -> int:
        return len(self._data)

    async def _read(self, start: int, end: int | None) -> bytes:
        return self._data[start:end]

    async def _close(self) -> None:
        self._data = b""


class FileResource(Resource):
    """A resource backed by a regular file on the local file system."""

    def __init__(self, link: Link, path: Path) -> None:
        super().__init__(link)
        self._path: Path = Path(path)
        self._size: int = 0

    @property
    def local_path(self) -> Path | None:
        return self._path

    async def _open(self) -> None:
        try:
            st = await asyncio.to_thread(self._path.stat)
        except OSError as exc:
            raise map_os_error(exc, self._link.href) from exc
        if not stat.S_ISREG(st.st_mode):
            raise ResourceNotFound(f"{self._link.href}: not a regular file")
        self._size = st.st_size

    async def _length(self) -> int:
        return self._size

    async def _read(self, start: int, end: int | None) -> bytes:
        try:
            return await asyncio.to_thread(read_file_range, self._path, start, end)
        except OSError as exc:
            raise map_os_error(exc, self._link.href) from exc

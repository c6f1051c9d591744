# topmark:header:start
#
#   project      : PubSniff
#   file         : resolvers.py
#   file_relpath : src/pubsniff/sniffer/resolvers.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""URI resolvers backing `RemoteContent`.

A resolver turns a URI into bytes and a little metadata (declared media type,
display name, length). Three schemes are supported out of the box:

* ``file:``: plain files on the local file system;
* ``data:``: resources embedded in the URI itself (RFC 2397);
* ``http:`` / ``https:``: network resources, read with ``httpx``. Prefix
  reads are sent as ``Range`` requests; servers that ignore the header are
  handled by streaming the body and discarding everything past the prefix.

`SchemeUriResolver` dispatches on the URI scheme and is what
`default_uri_resolver` returns.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import re
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable
from urllib.parse import unquote, unquote_to_bytes, urlparse
from urllib.request import url2pathname

import httpx

from pubsniff.config.logging import get_logger
from pubsniff.constants import DEFAULT_HTTP_TIMEOUT, DEFAULT_USER_AGENT
from pubsniff.errors import ContentNotReadable
from pubsniff.utils.file import read_file_range

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Mapping

    from pubsniff.config.logging import PubsniffLogger

logger: PubsniffLogger = get_logger(__name__)

_CONTENT_RANGE_RE = re.compile(r"bytes\s+\d+-\d+/(\d+)")
_FILENAME_RE = re.compile(r"""filename\*?=(?:UTF-8'')?"?([^";]+)"?""", re.IGNORECASE)


@dataclass(frozen=True)
class UriInfo:
    """Metadata a resolver can report about a URI without reading its body.

    Attributes:
        media_type (str | None): Declared media type (e.g. the HTTP ``Content-Type``).
        display_name (str | None): Human-facing file name, if the backend has one.
        length (int | None): Total length in bytes, when known.
    """

    media_type: str | None = None
    display_name: str | None = None
    length: int | None = None


@runtime_checkable
class UriResolver(Protocol):
    """Protocol for URI-backed content access."""

    async def probe(self, uri: str) -> UriInfo:
        """Return metadata about ``uri``.

        Raises:
            ContentNotReadable: If the URI cannot be reached.
        """
        ...

    async def read(self, uri: str, start: int = 0, end: int | None = None) -> bytes:
        """Read ``[start, end)`` from ``uri`` (``end=None`` reads to the end).

        Raises:
            ContentNotReadable: If the bytes cannot be produced.
        """
        ...


def _file_uri_to_path(uri: str) -> Path:
    parsed = urlparse(uri)
    return Path(url2pathname(unquote(parsed.path)))


class FileUriResolver:
    """Resolver for ``file:`` URIs."""

    async def probe(self, uri: str) -> UriInfo:
        path: Path = _file_uri_to_path(uri)
        try:
            size: int = (await asyncio.to_thread(path.stat)).st_size
        except OSError as exc:
            raise ContentNotReadable(f"{uri}: {exc}") from exc
        return UriInfo(display_name=path.name, length=size)

    async def read(self, uri: str, start: int = 0, end: int | None = None) -> bytes:
        path: Path = _file_uri_to_path(uri)
        try:
            return await asyncio.to_thread(read_file_range, path, start, end)
        except OSError as exc:
            raise ContentNotReadable(f"{uri}: {exc}") from exc


class DataUriResolver:
    """Resolver for ``data:`` URIs (content embedded in the URI itself)."""

    @staticmethod
    def _split(uri: str) -> tuple[str | None, bytes]:
        if not uri[:5].lower() == "data:":
            raise ContentNotReadable(f"not a data URI: {uri[:32]!r}")
        header, sep, payload = uri[5:].partition(",")
        if not sep:
            raise ContentNotReadable("data URI without ',' separator")
        is_base64: bool = header.lower().endswith(";base64")
        if is_base64:
            header = header[: -len(";base64")]
            try:
                data: bytes = base64.b64decode(unquote(payload), validate=True)
            except (binascii.Error, ValueError) as exc:
                raise ContentNotReadable(f"invalid base64 payload in data URI: {exc}") from exc
        else:
            data = unquote_to_bytes(payload)
        return (header or None), data

    async def probe(self, uri: str) -> UriInfo:
        media_type, data = self._split(uri)
        return UriInfo(media_type=media_type, length=len(data))

    async def read(self, uri: str, start: int = 0, end: int | None = None) -> bytes:
        _media_type, data = self._split(uri)
        return data[start:end]


def response_length(response: httpx.Response) -> int | None:
    """Total resource length from ``Content-Range`` (ranged reply) or ``Content-Length``."""
    content_range: str | None = response.headers.get("Content-Range")
    if content_range:
        m = _CONTENT_RANGE_RE.search(content_range)
        return int(m.group(1)) if m else None
    if response.status_code == 200 and "Content-Length" in response.headers:
        try:
            return int(response.headers["Content-Length"])
        except ValueError:
            return None
    return None


def response_filename(response: httpx.Response) -> str | None:
    """File name announced by ``Content-Disposition``, if any."""
    disposition: str | None = response.headers.get("Content-Disposition")
    if not disposition:
        return None
    m = _FILENAME_RE.search(disposition)
    return unquote(m.group(1).strip()) if m else None


async def probe_http(
    client: httpx.AsyncClient, uri: str, *, ranged_requests: bool = True
) -> httpx.Response:
    """Fetch the headers of ``uri`` with ``GET`` + ``Range: bytes=0-0``, or ``HEAD``.

    The request is streamed and closed without reading the body, so a server
    that ignores ``Range`` and sends the whole resource costs one chunk at
    most. Only the status and headers of the returned response are usable.

    Raises:
        httpx.HTTPError: On transport failures.
    """
    method: str = "GET" if ranged_requests else "HEAD"
    headers: dict[str, str] = {"Range": "bytes=0-0"} if ranged_requests else {}
    async with client.stream(method, uri, headers=headers, follow_redirects=True) as response:
        return response


async def read_http_range(
    client: httpx.AsyncClient,
    uri: str,
    start: int = 0,
    end: int | None = None,
    *,
    ranged_requests: bool = True,
) -> tuple[int, bytes]:
    """Read ``[start, end)`` of ``uri``.

    A ``Range`` header is sent when ``ranged_requests`` is set and the range is
    not the whole resource. If the server answers ``200`` instead of ``206``,
    the body is streamed: bytes before ``start`` are skipped and the transfer
    stops as soon as ``end`` is reached.

    Args:
        client (httpx.AsyncClient): Client to send the request with.
        uri (str): Absolute URL.
        start (int): First byte offset.
        end (int | None): Exclusive end offset, or None for the rest of the resource.
        ranged_requests (bool): Whether to send a ``Range`` header.

    Returns:
        tuple[int, bytes]: The HTTP status and the bytes read. For error statuses
        (and ``416 Range Not Satisfiable``) the body is not read and is empty.

    Raises:
        httpx.HTTPError: On transport failures.
    """
    headers: dict[str, str] = {}
    if ranged_requests and (start > 0 or end is not None):
        last: str = "" if end is None else str(end - 1)
        headers["Range"] = f"bytes={start}-{last}"

    limit: int | None = None if end is None else end - start
    buf = bytearray()
    async with client.stream("GET", uri, headers=headers, follow_redirects=True) as response:
        status: int = response.status_code
        if status >= 400:
            return status, b""

        # A 200 means the server ignored the range: skip to `start` ourselves.
        skip: int = 0 if status == 206 else start
        if headers and skip:
            logger.debug("%s: server ignored Range header, discarding prefix", uri)
        async for chunk in response.aiter_bytes():
            if skip:
                if len(chunk) <= skip:
                    skip -= len(chunk)
                    continue
                chunk = chunk[skip:]
                skip = 0
            buf += chunk
            if limit is not None and len(buf) >= limit:
                # Leaving the stream context closes the connection.
                break
    return status, bytes(buf if limit is None else buf[:limit])


class HttpUriResolver:
    """Resolver for ``http:`` and ``https:`` URIs.

    Args:
        client (httpx.AsyncClient | None): Client to use. When None, a short-lived
            client is created for each request and closed right after.
        timeout (float): Timeout in seconds for self-created clients.
        ranged_requests (bool): Whether to ask the server for byte ranges. When
            False, or when the server ignores the header, the body is streamed and
            the bytes outside the requested range are discarded.
        headers (Mapping[str, str] | None): Extra headers for self-created clients.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        ranged_requests: bool = True,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        self._client: httpx.AsyncClient | None = client
        self._timeout: float = timeout
        self._ranged: bool = ranged_requests
        self._headers: dict[str, str] = {"User-Agent": DEFAULT_USER_AGENT, **(headers or {})}

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self._timeout, headers=self._headers) as client:
            yield client

    async def probe(self, uri: str) -> UriInfo:
        """Probe with ``GET`` + ``Range: bytes=0-0`` and keep the headers, never the body."""
        try:
            async with self._session() as client:
                response: httpx.Response = await probe_http(
                    client, uri, ranged_requests=self._ranged
                )
        except httpx.HTTPError as exc:
            raise ContentNotReadable(f"{uri}: {exc}") from exc

        if response.status_code >= 400 and response.status_code != 416:
            raise ContentNotReadable(f"{uri}: HTTP {response.status_code}")
        return UriInfo(
            media_type=response.headers.get("Content-Type"),
            display_name=response_filename(response),
            length=response_length(response),
        )

    async def read(self, uri: str, start: int = 0, end: int | None = None) -> bytes:
        if end is not None and end <= start:
            return b""
        try:
            async with self._session() as client:
                status, data = await read_http_range(
                    client, uri, start, end, ranged_requests=self._ranged
                )
        except httpx.HTTPError as exc:
            raise ContentNotReadable(f"{uri}: {exc}") from exc
        if status == 416:
            return b""
        if status >= 400:
            raise ContentNotReadable(f"{uri}: HTTP {status}")
        return data


class SchemeUriResolver:
    """Dispatch to a resolver by URI scheme.

    Args:
        resolvers (Mapping[str, UriResolver]): Resolver per lowercased scheme.
    """

    def __init__(self, resolvers: Mapping[str, UriResolver]) -> None:
        self._resolvers: dict[str, UriResolver] = {k.lower(): v for k, v in resolvers.items()}

    @property
    def schemes(self) -> tuple[str, ...]:
        """Supported schemes, sorted."""
        return tuple(sorted(self._resolvers))

    def _for(self, uri: str) -> UriResolver:
        scheme: str = urlparse(uri).scheme.lower()
        resolver: UriResolver | None = self._resolvers.get(scheme)
        if resolver is None:
            raise ContentNotReadable(f"unsupported URI scheme {scheme!r} in {uri!r}")
        return resolver

    async def probe(self, uri: str) -> UriInfo:
        return await self._for(uri).probe(uri)

    async def read(self, uri: str, start: int = 0, end: int | None = None) -> bytes:
        return await self._for(uri).read(uri, start, end)


def default_uri_resolver(
    client: httpx.AsyncClient | None = None,
    *,
    timeout: float = DEFAULT_HTTP_TIMEOUT,
    ranged_requests: bool = True,
    headers: Mapping[str, str] | None = None,
) -> SchemeUriResolver:
    """Build the standard ``file`` / ``data`` / ``http(s)`` resolver."""
    http = HttpUriResolver(
        client, timeout=timeout, ranged_requests=ranged_requests, headers=headers
    )
    return SchemeUriResolver(
        {
            "file": FileUriResolver(),
            "data": DataUriResolver(),
            "http": http,
            "https": http,
        }
    )

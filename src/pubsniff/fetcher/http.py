# topmark:header:start
#
#   project      : PubSniff
#   file         : http.py
#   file_relpath : src/pubsniff/fetcher/http.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Fetcher serving resources over HTTP with httpx.

An HTTP server has no listable content, so `HttpFetcher.links` is empty.
Hrefs are resolved against an optional base URL. Templated links are
expanded with the request parameters; parameters not consumed by the template
(or all of them, for plain links) are appended to the query string.

Opening a resource sends a one-byte ranged ``GET`` (or a ``HEAD`` when ranged
requests are disabled) and maps the status to a resource error:
``404``/``410`` to `ResourceNotFound`, ``401``/``403`` to `ResourceForbidden`,
other error statuses to `ResourceOtherError`, transport failures to
`ResourceIOError`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import urlencode, urljoin, urlsplit, urlunsplit

import httpx

from pubsniff.config.logging import get_logger
from pubsniff.constants import DEFAULT_HTTP_TIMEOUT, DEFAULT_USER_AGENT
from pubsniff.fetcher.errors import (
    ResourceError,
    ResourceForbidden,
    ResourceIOError,
    ResourceNotFound,
    ResourceOtherError,
)
from pubsniff.fetcher.fetcher import Fetcher
from pubsniff.fetcher.resource import Resource
from pubsniff.sniffer.resolvers import probe_http, read_http_range, response_length

if TYPE_CHECKING:
    from collections.abc import Mapping

    from pubsniff.config.logging import PubsniffLogger
    from pubsniff.fetcher.link import Link

logger: PubsniffLogger = get_logger(__name__)


def status_error(status: int, url: str) -> ResourceError | None:
    """Map an HTTP status to a resource error, or None for success statuses."""
    if status < 400 or status == 416:
        return None
    if status in (404, 410):
        return ResourceNotFound(f"{url}: HTTP {status}")
    if status in (401, 403):
        return ResourceForbidden(f"{url}: HTTP {status}")
    return ResourceOtherError(f"{url}: HTTP {status}")


def _with_query(url: str, parameters: Mapping[str, str]) -> str:
    if not parameters:
        return url
    parts = urlsplit(url)
    extra: str = urlencode(sorted(parameters.items()))
    query: str = f"{parts.query}&{extra}" if parts.query else extra
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


class HttpResource(Resource):
    """A resource at an absolute URL."""

    def __init__(self, link: Link, url: str, fetcher: HttpFetcher) -> None:
        super().__init__(link)
        self._url: str = url
        self._fetcher: HttpFetcher = fetcher
        self._total: int | None = None

    @property
    def url(self) -> str:
        """The absolute URL requested."""
        return self._url

    async def _open(self) -> None:
        try:
            response: httpx.Response = await probe_http(
                self._fetcher.client, self._url, ranged_requests=self._fetcher.ranged_requests
            )
        except httpx.HTTPError as exc:
            raise ResourceIOError(f"{self._url}: {exc}", cause=exc) from exc
        error: ResourceError | None = status_error(response.status_code, self._url)
        if error is not None:
            raise error
        self._total = 0 if response.status_code == 416 else response_length(response)

    async def _length(self) -> int:
        if self._total is None:
            self._total = len(await self._read(0, None))
        return self._total

    async def _read(self, start: int, end: int | None) -> bytes:
        try:
            status, data = await read_http_range(
                self._fetcher.client,
                self._url,
                start,
                end,
                ranged_requests=self._fetcher.ranged_requests,
            )
        except httpx.HTTPError as exc:
            raise ResourceIOError(f"{self._url}: {exc}", cause=exc) from exc
        error: ResourceError | None = status_error(status, self._url)
        if error is not None:
            raise error
        return data


class HttpFetcher(Fetcher):
    """Fetch resources from HTTP servers.

    Args:
        client (httpx.AsyncClient | None): Client to use. When None, the fetcher
            creates one and closes it in `close`; a caller-provided client is left open.
        base_url (str | None): URL relative hrefs are resolved against.
        timeout (float): Timeout of the self-created client, in seconds.
        headers (Mapping[str, str] | None): Default headers of the self-created client.
        ranged_requests (bool): Whether to ask for byte ranges.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        base_url: str | None = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        headers: Mapping[str, str] | None = None,
        ranged_requests: bool = True,
    ) -> None:
        super().__init__()
        self._owns_client: bool = client is None
        self._client: httpx.AsyncClient = client or httpx.AsyncClient(
            timeout=timeout,
            headers={"User-Agent": DEFAULT_USER_AGENT, **(headers or {})},
        )
        self._base_url: str | None = base_url
        self._ranged: bool = ranged_requests

    @property
    def client(self) -> httpx.AsyncClient:
        """The underlying httpx client."""
        return self._client

    @property
    def ranged_requests(self) -> bool:
        """Whether byte ranges are requested."""
        return self._ranged

    def url_for(self, link: Link, parameters: Mapping[str, str] | None = None) -> str:
        """Return the absolute URL requested for ``link`` with ``parameters``."""
        params: dict[str, str] = dict(parameters or {})
        href: str = link.expand(params)
        for used in link.template_parameters():
            params.pop(used, None)
        url: str = urljoin(self._base_url, href) if self._base_url else href
        return _with_query(url, params)

    def _get(self, link: Link, parameters: dict[str, str]) -> Resource:
        url: str = self.url_for(link, parameters)
        logger.trace("GET %s", url)
        return HttpResource(link, url, self)

    async def _close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

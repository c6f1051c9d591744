# topmark:header:start
#
#   project      : PubSniff
#   file         : fetcher.py
#   file_relpath : src/pubsniff/fetcher/fetcher.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Fetcher base class and the empty fetcher.

A fetcher gives access to the resources of a medium (a directory, a ZIP
archive, a web server) by `Link`:

* `Fetcher.links` lists the resources known up front, in the medium's own
  order if it has one, otherwise sorted by href. The list is not exhaustive.
* `Fetcher.get` always returns a `Resource` and never raises: whether the
  resource exists is only known once it is read.
* `Fetcher.close` releases the medium and closes every resource handed out.
  It is idempotent; after it, `get` returns resources failing with
  `ResourceOtherError`.
"""

from __future__ import annotations

import weakref
from typing import TYPE_CHECKING

from pubsniff.config.logging import get_logger
from pubsniff.fetcher.errors import ResourceNotFound, ResourceOtherError
from pubsniff.fetcher.resource import FailureResource, Resource

if TYPE_CHECKING:
    from collections.abc import Mapping
    from types import TracebackType

    from pubsniff.config.logging import PubsniffLogger
    from pubsniff.fetcher.link import Link

logger: PubsniffLogger = get_logger(__name__)


class Fetcher:
    """Base class for fetchers; subclasses implement `links` and `_get`."""

    def __init__(self) -> None:
        self._closed: bool = False
        self._resources: weakref.WeakSet[Resource] = weakref.WeakSet()

    @property
    def links(self) -> tuple[Link, ...]:
        """Resources known to be available in the medium."""
        return ()

    @property
    def closed(self) -> bool:
        """Whether `close` was called."""
        return self._closed

    def get(self, link: Link, parameters: Mapping[str, str] | None = None) -> Resource:
        """Return the resource at ``link``.

        Args:
            link (Link): The resource to fetch.
            parameters (Mapping[str, str] | None): Percent-decoded href parameters, used
                to expand templated links or, depending on the fetcher, as query parameters.

        Returns:
            Resource: A lazily opened resource; failures surface when it is read.
        """
        if self._closed:
            return FailureResource(link, ResourceOtherError(f"{type(self).__name__} is closed"))
        resource: Resource = self._get(link, dict(parameters or {}))
        self._resources.add(resource)
        return resource

    def _get(self, link: Link, parameters: dict[str, str]) -> Resource:
        return FailureResource(link, ResourceNotFound(f"{link.href}: not found"))

    async def close(self) -> None:
        """Close the medium and every resource handed out. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        for resource in list(self._resources):
            await resource.close()
        await self._close()
        logger.debug("%s closed", type(self).__name__)

    async def _close(self) -> None:
        """Release the medium."""

    async def __aenter__(self) -> Fetcher:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()


class EmptyFetcher(Fetcher):
    """A fetcher providing no resources at all: every `get` fails with `ResourceNotFound`."""

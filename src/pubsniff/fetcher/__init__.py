# topmark:header:start
#
#   project      : PubSniff
#   file         : __init__.py
#   file_relpath : src/pubsniff/fetcher/__init__.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Access to the resources of a publication medium by link."""

from __future__ import annotations

from pubsniff.fetcher.archive import ArchiveFetcher, ArchiveResource
from pubsniff.fetcher.errors import (
    ResourceError,
    ResourceForbidden,
    ResourceIOError,
    ResourceNotFound,
    ResourceOtherError,
)
from pubsniff.fetcher.fetcher import EmptyFetcher, Fetcher
from pubsniff.fetcher.file import FileFetcher
from pubsniff.fetcher.http import HttpFetcher, HttpResource
from pubsniff.fetcher.link import HrefParameters, Link
from pubsniff.fetcher.resource import (
    BytesResource,
    FailureResource,
    FileResource,
    Resource,
    ResourceReader,
    ResourceState,
)

__all__ = [
    "ArchiveFetcher",
    "ArchiveResource",
    "BytesResource",
    "EmptyFetcher",
    "FailureResource",
    "Fetcher",
    "FileFetcher",
    "FileResource",
    "HrefParameters",
    "HttpFetcher",
    "HttpResource",
    "Link",
    "Resource",
    "ResourceError",
    "ResourceForbidden",
    "ResourceIOError",
    "ResourceNotFound",
    "ResourceOtherError",
    "ResourceReader",
    "ResourceState",
]

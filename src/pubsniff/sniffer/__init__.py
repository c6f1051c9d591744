# topmark:header:start
#
#   project      : PubSniff
#   file         : __init__.py
#   file_relpath : src/pubsniff/sniffer/__init__.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Format sniffing: content views, classifiers, system fallback and the resolution pipeline."""

from __future__ import annotations

from pubsniff.sniffer.content import (
    BytesContent,
    ContentSource,
    FileContent,
    RemoteContent,
    SnifferContent,
)
from pubsniff.sniffer.context import SnifferContext
from pubsniff.sniffer.pipeline import of, of_bytes, of_file, of_hints, of_resource, of_uri, resolve
from pubsniff.sniffer.resolvers import UriInfo, UriResolver, default_uri_resolver
from pubsniff.sniffer.sniffers import DEFAULT_SNIFFERS, Sniffer, hint_sniffer
from pubsniff.sniffer.system import SystemRegistry, system_registry

__all__ = [
    "BytesContent",
    "ContentSource",
    "DEFAULT_SNIFFERS",
    "FileContent",
    "RemoteContent",
    "Sniffer",
    "SnifferContent",
    "SnifferContext",
    "SystemRegistry",
    "UriInfo",
    "UriResolver",
    "default_uri_resolver",
    "hint_sniffer",
    "of",
    "of_bytes",
    "of_file",
    "of_hints",
    "of_resource",
    "of_uri",
    "resolve",
    "system_registry",
]

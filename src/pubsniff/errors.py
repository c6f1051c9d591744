# topmark:header:start
#
#   project      : PubSniff
#   file         : errors.py
#   file_relpath : src/pubsniff/errors.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Library exceptions for media types and sniffed content.

Two families live here:

* `InvalidMediaType` signals a malformed media type string. It is a programmer
  error (a bad hint passed by the caller) and is always surfaced.
* `SnifferContentError` and its subclasses signal that a content backend could
  not produce a given *view* of the asset (bytes, text, XML, JSON, archive).
  The sniffing pipeline treats these as "this classifier found nothing".

Resource errors are defined separately in `pubsniff.fetcher.errors`.
"""

from __future__ import annotations


class PubsniffLibraryError(Exception):
    """Base class for all PubSniff library errors."""


class InvalidMediaType(PubsniffLibraryError, ValueError):
    """Raised when a string cannot be parsed as a media type.

    Attributes:
        raw (str): The offending input string.
        reason (str): Human-readable explanation.
    """

    def __init__(self, raw: str, reason: str) -> None:
        super().__init__(f"Invalid media type {raw!r}: {reason}")
        self.raw: str = raw
        self.reason: str = reason


class SnifferContentError(PubsniffLibraryError):
    """Base class for failures of a `SnifferContent` view."""


class ContentNotReadable(SnifferContentError):
    """The backend could not produce bytes (missing file, network failure, permissions)."""


# The two names describe the same condition from the caller's and the backend's side.
ContentUnavailable = ContentNotReadable


class MalformedEncoding(SnifferContentError):
    """The bytes could not be decoded as text in the expected charset."""


class MalformedXML(SnifferContentError):
    """The content is not well-formed XML."""


class MalformedJSON(SnifferContentError):
    """The content is not well-formed JSON."""


class NotAnArchive(SnifferContentError):
    """The content is not a readable ZIP archive (or the requested entry is missing)."""


class ConfigError(PubsniffLibraryError):
    """A configuration file holds an invalid value.

    Attributes:
        source (str | None): The file the value came from, if known.
    """

    def __init__(self, message: str, source: str | None = None) -> None:
        super().__init__(f"{source}: {message}" if source else message)
        self.source: str | None = source

# topmark:header:start
#
#   project      : PubSniff
#   file         : mediatype.py
#   file_relpath : src/pubsniff/mediatype.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Immutable, normalized media types.

A `MediaType` is the parsed form of a ``type/subtype;key=value`` string
(RFC 6838). Parsing lowercases the type, subtype and parameter keys and
uppercases the ``charset`` value, so that textual casing and parameter order
never affect equality.

Structural predicates (``is_zip``, ``is_json``, ...) are answered from lookup
tables keyed by base type, structured syntax suffix and top-level type. Adding
a new format to a structure family means adding a row to one of the tables
below; the comparison logic does not change.

Well-known media types are exposed as module-level constants (``EPUB``,
``ZIP``, ...).
"""

from __future__ import annotations

import re
from types import MappingProxyType
from typing import TYPE_CHECKING, Final

from pubsniff.errors import InvalidMediaType

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

# RFC 7230 token characters
_TOKEN_RE: Final[re.Pattern[str]] = re.compile(r"^[A-Za-z0-9!#$%&'*+.^_`|~-]+$")

_CHARSET: Final[str] = "charset"
_DEFAULT_TEXT_CHARSET: Final[str] = "UTF-8"

# --- Structure tables ---

# Structured syntax suffixes (RFC 6839) and the structure family they imply.
_SUFFIX_STRUCTURES: Final[Mapping[str, frozenset[str]]] = MappingProxyType(
    {
        "+zip": frozenset({"zip"}),
        "+json": frozenset({"json"}),
        "+xml": frozenset({"xml"}),
    }
)

# Top-level types which imply a structure family on their own.
_TYPE_STRUCTURES: Final[Mapping[str, frozenset[str]]] = MappingProxyType(
    {
        "audio": frozenset({"audio"}),
        "video": frozenset({"video"}),
    }
)

# Base types (``type/subtype``) and the structure families they belong to.
_STRUCTURE_TABLE: Final[Mapping[str, frozenset[str]]] = MappingProxyType(
    {
        "application/zip": frozenset({"zip"}),
        "application/x-zip-compressed": frozenset({"zip"}),
        "application/vnd.comicbook+zip": frozenset({"publication"}),
        "application/x-cbz": frozenset({"zip", "publication"}),
        "application/x-cbr": frozenset({"publication"}),
        "application/epub+zip": frozenset({"publication"}),
        "application/lpf+zip": frozenset({"publication"}),
        "application/x.readium.zab+zip": frozenset({"publication"}),
        "application/audiobook+zip": frozenset({"publication"}),
        "application/divina+zip": frozenset({"publication"}),
        "application/webpub+zip": frozenset({"publication"}),
        "application/audiobook+lcp": frozenset({"zip", "publication"}),
        "application/pdf+lcp": frozenset({"zip", "publication"}),
        "application/pdf": frozenset({"publication"}),
        "application/audiobook+json": frozenset({"rwpm"}),
        "application/divina+json": frozenset({"rwpm"}),
        "application/webpub+json": frozenset({"rwpm"}),
        "application/json": frozenset({"json"}),
        "text/json": frozenset({"json"}),
        "application/xml": frozenset({"xml"}),
        "text/xml": frozenset({"xml"}),
        "text/html": frozenset({"html"}),
        "application/xhtml+xml": frozenset({"html"}),
        "application/atom+xml": frozenset({"opds"}),
        "application/opds+json": frozenset({"opds"}),
        "application/opds-publication+json": frozenset({"opds"}),
        "application/opds-authentication+json": frozenset({"opds"}),
        "application/vnd.opds.authentication.v1.0+json": frozenset({"opds"}),
        "image/bmp": frozenset({"bitmap"}),
        "image/gif": frozenset({"bitmap"}),
        "image/jpeg": frozenset({"bitmap"}),
        "image/png": frozenset({"bitmap"}),
        "image/tiff": frozenset({"bitmap"}),
        "image/webp": frozenset({"bitmap"}),
        "image/avif": frozenset({"bitmap"}),
    }
)


def _is_token(value: str) -> bool:
    return bool(_TOKEN_RE.match(value))


def _split_parameters(raw: str, params: str) -> Iterator[tuple[str, str]]:
    """Yield ``(key, value)`` pairs from the parameter section of a media type.

    Handles quoted values (with backslash escapes) so that ``;`` inside quotes
    does not split a parameter.

    Raises:
        InvalidMediaType: If a parameter is missing ``=``, has an empty key, or an
            unterminated quoted value.
    """
    i: int = 0
    n: int = len(params)
    while i < n:
        # Skip separators and surrounding whitespace.
        while i < n and params[i] in "; \t":
            i += 1
        if i >= n:
            return

        eq: int = params.find("=", i)
        semi: int = params.find(";", i)
        if eq == -1 or (semi != -1 and semi < eq):
            raise InvalidMediaType(raw, f"parameter without '=' at {params[i:]!r}")
        key: str = params[i:eq].strip()
        if not key or not _is_token(key):
            raise InvalidMediaType(raw, f"invalid parameter name {key!r}")
        i = eq + 1

        if i < n and params[i] == '"':
            i += 1
            chars: list[str] = []
            while True:
                if i >= n:
                    raise InvalidMediaType(raw, f"unterminated quoted value for {key!r}")
                ch: str = params[i]
                if ch == "\\" and i + 1 < n:
                    chars.append(params[i + 1])
                    i += 2
                    continue
                if ch == '"':
                    i += 1
                    break
                chars.append(ch)
                i += 1
            value: str = "".join(chars)
            # Anything up to the next ';' after a closing quote is ignored.
            nxt: int = params.find(";", i)
            i = n if nxt == -1 else nxt
        else:
            nxt = params.find(";", i)
            end: int = n if nxt == -1 else nxt
            value = params[i:end].strip()
            i = end
        yield key, value


def _quote(value: str) -> str:
    if value and _is_token(value):
        return value
    escaped: str = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


class MediaType:
    """Immutable, normalized representation of a ``type/subtype;parameters`` string.

    Two media types are equal when their type, subtype and parameter set are
    equal. Parameter keys are case-insensitive, as is the ``charset`` value.
    Use `MediaType.parse` to build one from a raw string.

    Attributes:
        type (str): Lowercased top-level type (e.g. ``"application"``).
        subtype (str): Lowercased subtype (e.g. ``"epub+zip"``).
        parameters (Mapping[str, str]): Read-only parameters with lowercased keys.
    """

    __slots__ = ("_type", "_subtype", "_parameters", "_key")

    def __init__(
        self,
        type: str,
        subtype: str,
        parameters: Mapping[str, str] | None = None,
    ) -> None:
        raw: str = f"{type}/{subtype}"
        type = type.strip().lower()
        subtype = subtype.strip().lower()
        if not type or not _is_token(type):
            raise InvalidMediaType(raw, "invalid or empty type")
        if not subtype or not _is_token(subtype):
            raise InvalidMediaType(raw, "invalid or empty subtype")

        normalized: dict[str, str] = {}
        for key, value in (parameters or {}).items():
            k: str = key.strip().lower()
            if not k or not _is_token(k):
                raise InvalidMediaType(raw, f"invalid parameter name {key!r}")
            v: str = value.strip()
            if k == _CHARSET:
                v = v.upper()
            normalized[k] = v

        self._type: str = type
        self._subtype: str = subtype
        self._parameters: Mapping[str, str] = MappingProxyType(
            dict(sorted(normalized.items()))
        )
        self._key: tuple[str, str, frozenset[tuple[str, str]]] = (
            type,
            subtype,
            frozenset(normalized.items()),
        )

    # --- Construction ---

    @classmethod
    def parse(cls, raw: str) -> MediaType:
        """Parse a raw media type string.

        Args:
            raw (str): A string such as ``"text/html; charset=utf-8"``.

        Returns:
            MediaType: The parsed, normalized media type.

        Raises:
            InvalidMediaType: If the string lacks a ``/``-separated type and
                subtype, or carries malformed parameters.
        """
        if not isinstance(raw, str):  # pyright: ignore[reportUnnecessaryIsInstance]
            raise InvalidMediaType(repr(raw), "not a string")
        head, _sep, params = raw.partition(";")
        base: str = head.strip()
        if "/" not in base:
            raise InvalidMediaType(raw, "missing '/' between type and subtype")
        type_, _slash, subtype = base.partition("/")
        if "/" in subtype:
            raise InvalidMediaType(raw, "more than one '/' in base type")
        parameters: dict[str, str] = dict(_split_parameters(raw, params))
        try:
            return cls(type_, subtype, parameters)
        except InvalidMediaType as exc:
            raise InvalidMediaType(raw, exc.reason) from None

    @classmethod
    def parse_or_none(cls, raw: str | MediaType | None) -> MediaType | None:
        """Lenient counterpart of `parse`, returning None instead of raising."""
        if raw is None or isinstance(raw, MediaType):
            return raw
        try:
            return cls.parse(raw)
        except InvalidMediaType:
            return None

    def with_parameters(self, **parameters: str) -> MediaType:
        """Return a copy with the given parameters added or replaced."""
        merged: dict[str, str] = dict(self._parameters)
        merged.update({k.lower(): v for k, v in parameters.items()})
        return MediaType(self._type, self._subtype, merged)

    def without_parameters(self) -> MediaType:
        """Return the base type (``type/subtype``) as a new media type."""
        return MediaType(self._type, self._subtype)

    # --- Accessors ---

    @property
    def type(self) -> str:
        """Lowercased top-level type."""
        return self._type

    @property
    def subtype(self) -> str:
        """Lowercased subtype."""
        return self._subtype

    @property
    def parameters(self) -> Mapping[str, str]:
        """Read-only parameter mapping (keys lowercased, sorted)."""
        return self._parameters

    @property
    def base_type(self) -> str:
        """``type/subtype`` without parameters."""
        return f"{self._type}/{self._subtype}"

    @property
    def charset(self) -> str | None:
        """Uppercased ``charset`` parameter, if declared."""
        return self._parameters.get(_CHARSET)

    @property
    def structured_syntax_suffix(self) -> str | None:
        """Structured syntax suffix such as ``"+zip"``, or None."""
        plus: int = self._subtype.rfind("+")
        if plus <= 0:
            return None
        return self._subtype[plus:]

    # --- Comparison ---

    def _effective_charset(self) -> str | None:
        if self.charset is not None:
            return self.charset
        if self._type == "text":
            return _DEFAULT_TEXT_CHARSET
        return None

    def matches(self, other: MediaType | str | None) -> bool:
        """Return whether ``other`` designates the same kind of content.

        Type and subtype must be equal (``*`` is a wildcard on either side).
        Parameters present on only one side are ignored, except ``charset``
        which defaults to UTF-8 on ``text/*`` types.

        Args:
            other (MediaType | str | None): The media type to compare against. An
                unparsable string never matches.

        Returns:
            bool: True if both media types match.
        """
        other_mt: MediaType | None = MediaType.parse_or_none(other)
        if other_mt is None:
            return False

        if not (self._type == other_mt._type or "*" in (self._type, other_mt._type)):
            return False
        if not (self._subtype == other_mt._subtype or "*" in (self._subtype, other_mt._subtype)):
            return False

        mine: str | None = self._effective_charset()
        theirs: str | None = other_mt._effective_charset()
        if mine is not None and theirs is not None and mine != theirs:
            return False

        for key, value in self._parameters.items():
            if key == _CHARSET:
                continue
            if key in other_mt._parameters and other_mt._parameters[key] != value:
                return False
        return True

    def matches_any(self, *others: MediaType | str | None) -> bool:
        """Return whether this media type matches at least one of ``others``."""
        return any(self.matches(o) for o in others)

    def contains(self, other: MediaType | str | None) -> bool:
        """Return whether this (possibly wildcard) media type contains ``other``.

        Unlike `matches`, wildcards are only honored on this side, and every
        parameter of this media type must be present on ``other``.
        """
        other_mt: MediaType | None = MediaType.parse_or_none(other)
        if other_mt is None:
            return False
        if self._type not in ("*", other_mt._type):
            return False
        if self._subtype not in ("*", other_mt._subtype):
            return False
        return all(other_mt._parameters.get(k) == v for k, v in self._parameters.items())

    # --- Structural predicates (table-driven) ---

    @property
    def structures(self) -> frozenset[str]:
        """Names of the structure families this media type belongs to."""
        found: set[str] = set(_STRUCTURE_TABLE.get(self.base_type, frozenset()))
        suffix: str | None = self.structured_syntax_suffix
        if suffix is not None:
            found |= _SUFFIX_STRUCTURES.get(suffix, frozenset())
        found |= _TYPE_STRUCTURES.get(self._type, frozenset())
        return frozenset(found)

    def has_structure(self, name: str) -> bool:
        """Return whether this media type belongs to the structure family ``name``."""
        return name in self.structures

    @property
    def is_zip(self) -> bool:
        """ZIP-based container (plain ZIP or a ``+zip`` package)."""
        return self.has_structure("zip")

    @property
    def is_json(self) -> bool:
        """JSON-based document."""
        return self.has_structure("json")

    @property
    def is_xml(self) -> bool:
        """XML-based document."""
        return self.has_structure("xml")

    @property
    def is_html(self) -> bool:
        """HTML or XHTML document."""
        return self.has_structure("html")

    @property
    def is_bitmap(self) -> bool:
        """Raster image format."""
        return self.has_structure("bitmap")

    @property
    def is_audio(self) -> bool:
        """Audio media."""
        return self.has_structure("audio")

    @property
    def is_video(self) -> bool:
        """Video media."""
        return self.has_structure("video")

    @property
    def is_opds(self) -> bool:
        """OPDS catalog, publication or authentication document."""
        return self.has_structure("opds")

    @property
    def is_rwpm(self) -> bool:
        """Readium Web Publication Manifest family."""
        return self.has_structure("rwpm")

    @property
    def is_publication(self) -> bool:
        """Packaged publication format."""
        return self.has_structure("publication")

    # --- Dunder ---

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MediaType):
            return NotImplemented
        return self._key == other._key

    def __hash__(self) -> int:
        return hash(self._key)

    def __str__(self) -> str:
        params: str = "".join(f";{k}={_quote(v)}" for k, v in self._parameters.items())
        return f"{self.base_type}{params}"

    def __repr__(self) -> str:
        return f"MediaType({str(self)!r})"


# --- Well-known media types ---

AAC: Final[MediaType] = MediaType.parse("audio/aac")
ACSM: Final[MediaType] = MediaType.parse("application/vnd.adobe.adept+xml")
AIFF: Final[MediaType] = MediaType.parse("audio/aiff")
AVI: Final[MediaType] = MediaType.parse("video/x-msvideo")
AVIF: Final[MediaType] = MediaType.parse("image/avif")
BINARY: Final[MediaType] = MediaType.parse("application/octet-stream")
BMP: Final[MediaType] = MediaType.parse("image/bmp")
CBZ: Final[MediaType] = MediaType.parse("application/vnd.comicbook+zip")
CSS: Final[MediaType] = MediaType.parse("text/css")
DIVINA: Final[MediaType] = MediaType.parse("application/divina+zip")
DIVINA_MANIFEST: Final[MediaType] = MediaType.parse("application/divina+json")
EPUB: Final[MediaType] = MediaType.parse("application/epub+zip")
FLAC: Final[MediaType] = MediaType.parse("audio/flac")
GIF: Final[MediaType] = MediaType.parse("image/gif")
GZ: Final[MediaType] = MediaType.parse("application/gzip")
HTML: Final[MediaType] = MediaType.parse("text/html")
JAVASCRIPT: Final[MediaType] = MediaType.parse("text/javascript")
JPEG: Final[MediaType] = MediaType.parse("image/jpeg")
JSON: Final[MediaType] = MediaType.parse("application/json")
LCP_LICENSE_DOCUMENT: Final[MediaType] = MediaType.parse(
    "application/vnd.readium.lcp.license.v1.0+json"
)
LCP_PROTECTED_AUDIOBOOK: Final[MediaType] = MediaType.parse("application/audiobook+lcp")
LCP_PROTECTED_PDF: Final[MediaType] = MediaType.parse("application/pdf+lcp")
LCP_STATUS_DOCUMENT: Final[MediaType] = MediaType.parse(
    "application/vnd.readium.license.status.v1.0+json"
)
LPF: Final[MediaType] = MediaType.parse("application/lpf+zip")
MP3: Final[MediaType] = MediaType.parse("audio/mpeg")
MPEG: Final[MediaType] = MediaType.parse("video/mpeg")
NCX: Final[MediaType] = MediaType.parse("application/x-dtbncx+xml")
OGG: Final[MediaType] = MediaType.parse("audio/ogg")
OGV: Final[MediaType] = MediaType.parse("video/ogg")
OPDS1: Final[MediaType] = MediaType.parse("application/atom+xml;profile=opds-catalog")
OPDS1_ENTRY: Final[MediaType] = MediaType.parse(
    "application/atom+xml;type=entry;profile=opds-catalog"
)
OPDS2: Final[MediaType] = MediaType.parse("application/opds+json")
OPDS2_PUBLICATION: Final[MediaType] = MediaType.parse("application/opds-publication+json")
OPDS_AUTHENTICATION: Final[MediaType] = MediaType.parse("application/opds-authentication+json")
OPUS: Final[MediaType] = MediaType.parse("audio/opus")
OTF: Final[MediaType] = MediaType.parse("font/otf")
PDF: Final[MediaType] = MediaType.parse("application/pdf")
PNG: Final[MediaType] = MediaType.parse("image/png")
READIUM_AUDIOBOOK: Final[MediaType] = MediaType.parse("application/audiobook+zip")
READIUM_AUDIOBOOK_MANIFEST: Final[MediaType] = MediaType.parse("application/audiobook+json")
READIUM_WEBPUB: Final[MediaType] = MediaType.parse("application/webpub+zip")
READIUM_WEBPUB_MANIFEST: Final[MediaType] = MediaType.parse("application/webpub+json")
SMIL: Final[MediaType] = MediaType.parse("application/smil+xml")
SVG: Final[MediaType] = MediaType.parse("image/svg+xml")
TEXT: Final[MediaType] = MediaType.parse("text/plain")
TIFF: Final[MediaType] = MediaType.parse("image/tiff")
TTF: Final[MediaType] = MediaType.parse("font/ttf")
W3C_WPUB_MANIFEST: Final[MediaType] = MediaType.parse("application/x.readium.w3c.wpub+json")
WAV: Final[MediaType] = MediaType.parse("audio/wav")
WEBM_AUDIO: Final[MediaType] = MediaType.parse("audio/webm")
WEBM_VIDEO: Final[MediaType] = MediaType.parse("video/webm")
WEBP: Final[MediaType] = MediaType.parse("image/webp")
WOFF: Final[MediaType] = MediaType.parse("font/woff")
WOFF2: Final[MediaType] = MediaType.parse("font/woff2")
XHTML: Final[MediaType] = MediaType.parse("application/xhtml+xml")
XML: Final[MediaType] = MediaType.parse("application/xml")
ZAB: Final[MediaType] = MediaType.parse("application/x.readium.zab+zip")
ZIP: Final[MediaType] = MediaType.parse("application/zip")

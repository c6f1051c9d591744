# topmark:header:start
#
#   project      : PubSniff
#   file         : context.py
#   file_relpath : src/pubsniff/sniffer/context.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""The immutable input handed to every classifier.

A `SnifferContext` bundles the caller's hints (declared media types and file
extensions, most specific first) with an optional `SnifferContent`. Hints are
normalized once at construction; content views are reached through the
non-raising helpers below, which turn any `SnifferContentError` into None so
classifiers can stay branch-free.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pubsniff.config.logging import get_logger
from pubsniff.errors import SnifferContentError
from pubsniff.mediatype import MediaType
from pubsniff.sniffer.content import detect_charset

if TYPE_CHECKING:
    import xml.etree.ElementTree as ET
    from collections.abc import Iterable

    from pubsniff.config.logging import PubsniffLogger
    from pubsniff.sniffer.content import SnifferContent

logger: PubsniffLogger = get_logger(__name__)


def _normalize_extension(ext: str) -> str:
    return ext.strip().lstrip(".").lower()


@dataclass(frozen=True)
class SnifferContext:
    """Hints and optional content for one classification round.

    Attributes:
        media_types (tuple[MediaType, ...]): Declared media types, most specific first.
        file_extensions (tuple[str, ...]): Lowercased extensions without the dot.
        content (SnifferContent | None): Content to inspect; None in the light round.

    Raises:
        InvalidMediaType: If a media type hint cannot be parsed.
    """

    media_types: tuple[MediaType, ...] = ()
    file_extensions: tuple[str, ...] = ()
    content: SnifferContent | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        parsed: list[MediaType] = [
            mt if isinstance(mt, MediaType) else MediaType.parse(mt)
            for mt in self.media_types  # type: ignore[union-attr]
        ]
        exts: list[str] = [
            e for e in (_normalize_extension(x) for x in self.file_extensions if x) if e
        ]
        object.__setattr__(self, "media_types", tuple(parsed))
        object.__setattr__(self, "file_extensions", tuple(exts))

    @classmethod
    def of(
        cls,
        media_types: Iterable[MediaType | str] = (),
        file_extensions: Iterable[str] = (),
        content: SnifferContent | None = None,
    ) -> SnifferContext:
        """Build a context from any iterables of hints."""
        return cls(tuple(media_types), tuple(file_extensions), content)  # type: ignore[arg-type]

    def with_content(self, content: SnifferContent | None) -> SnifferContext:
        """Return a copy of this context carrying ``content``."""
        return SnifferContext(self.media_types, self.file_extensions, content)

    # --- Hints ---

    def has_media_type(self, *media_types: MediaType | str) -> bool:
        """Return whether any declared media type matches any of ``media_types``."""
        return any(declared.matches_any(*media_types) for declared in self.media_types)

    def has_file_extension(self, *extensions: str) -> bool:
        """Return whether any declared extension is one of ``extensions`` (case-insensitive)."""
        wanted: set[str] = {_normalize_extension(e) for e in extensions}
        return any(ext in wanted for ext in self.file_extensions)

    @property
    def charset(self) -> str | None:
        """Charset declared by the first media type carrying one."""
        for mt in self.media_types:
            if mt.charset is not None:
                return mt.charset
        return None

    # --- Content (non-raising) ---

    def _missed(self, view: str, exc: SnifferContentError) -> None:
        logger.debug("%s view unavailable for %r: %s", view, self.content, exc)

    async def read(self, start: int = 0, end: int | None = None) -> bytes | None:
        """Return bytes ``[start, end)`` of the content, or None."""
        if self.content is None:
            return None
        try:
            return await self.content.read(start, end)
        except SnifferContentError as exc:
            self._missed("bytes", exc)
            return None

    async def content_as_string(self) -> str | None:
        """Return the content decoded with the declared charset (or BOM / UTF-8), or None."""
        if self.content is None:
            return None
        try:
            return await self.content.as_string(self.charset)
        except SnifferContentError as exc:
            self._missed("string", exc)
            return None

    async def content_as_xml(self) -> ET.Element | None:
        """Return the XML root element of the content, or None."""
        if self.content is None:
            return None
        try:
            return await self.content.as_xml()
        except SnifferContentError as exc:
            self._missed("xml", exc)
            return None

    async def content_as_json(self) -> Any | None:
        """Return the content parsed as JSON, or None."""
        if self.content is None:
            return None
        try:
            return await self.content.as_json()
        except SnifferContentError as exc:
            self._missed("json", exc)
            return None

    async def content_as_zip_entries(self) -> tuple[str, ...] | None:
        """Return the archive entry names, or None if the content is not an archive."""
        if self.content is None:
            return None
        try:
            return await self.content.as_zip_entries()
        except SnifferContentError as exc:
            self._missed("zip", exc)
            return None

    async def contains_zip_entry(self, name: str) -> bool:
        """Return whether the content is an archive holding ``name``."""
        entries: tuple[str, ...] | None = await self.content_as_zip_entries()
        return entries is not None and name in entries

    async def read_zip_entry(self, name: str) -> bytes | None:
        """Return the bytes of archive entry ``name``, or None."""
        if self.content is None:
            return None
        try:
            return await self.content.read_zip_entry(name)
        except SnifferContentError as exc:
            self._missed(f"zip entry {name!r}", exc)
            return None

    async def read_zip_entry_as_string(self, name: str) -> str | None:
        """Return archive entry ``name`` decoded as text, or None."""
        data: bytes | None = await self.read_zip_entry(name)
        if data is None:
            return None
        try:
            return data.decode(detect_charset(data))
        except UnicodeDecodeError:
            logger.debug("zip entry %r is not valid text", name)
            return None

    async def read_zip_entry_as_json(self, name: str) -> Any | None:
        """Return archive entry ``name`` parsed as JSON, or None."""
        text: str | None = await self.read_zip_entry_as_string(name)
        if text is None:
            return None
        try:
            return json.loads(text)
        except ValueError:
            logger.debug("zip entry %r is not valid JSON", name)
            return None

# topmark:header:start
#
#   project      : PubSniff
#   file         : system.py
#   file_relpath : src/pubsniff/sniffer/system.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Last-resort format resolution from a generic media type registry.

When no classifier recognized the asset, `SystemRegistry` tries, in order:

1. if content is available, a generic container check: ZIP signature, PDF
   header, well-formed JSON, well-formed XML;
2. declared media types, in order, to their preferred extension;
3. declared extensions, in order, to their media type, through a
   `mimetypes.MimeTypes` table.

The bytes outrank the hints: a ZIP declared as ``text/plain`` is a ZIP.

By default only the interpreter's built-in table is used, so results do not
depend on the host. Platform ``mime.types`` files can be layered on top.

The pipeline calls it after the heavy round only, since it answers "ZIP" or
"JSON" for any such container.
"""

from __future__ import annotations

import functools
import mimetypes
import os
from typing import TYPE_CHECKING

from pubsniff import mediatype as mt
from pubsniff.config.logging import get_logger
from pubsniff.format.base import Format
from pubsniff.format.formats import find_known_format, find_known_format_by_extension
from pubsniff.mediatype import MediaType
from pubsniff.sniffer.content import ZIP_SIGNATURES

if TYPE_CHECKING:
    from collections.abc import Iterable

    from pubsniff.config.logging import PubsniffLogger
    from pubsniff.sniffer.context import SnifferContext

logger: PubsniffLogger = get_logger(__name__)


def _format_for(media_type: MediaType, extension: str) -> Format:
    known: Format | None = find_known_format(media_type)
    if known is not None:
        return known
    return Format(name=extension.upper(), media_type=media_type, file_extension=extension)


class SystemRegistry:
    """Generic media type / extension registry backed by `mimetypes`.

    Args:
        platform_files (bool): Also load the host's ``mime.types`` files.
        files (Iterable[str]): Additional ``mime.types`` files to load.
    """

    def __init__(self, *, platform_files: bool = False, files: Iterable[str] = ()) -> None:
        paths: list[str] = (
            [f for f in mimetypes.knownfiles if os.path.isfile(f)] if platform_files else []
        )
        paths.extend(files)
        # MimeTypes() starts from the built-in table and then reads ``paths``.
        self._table: mimetypes.MimeTypes = mimetypes.MimeTypes(filenames=paths)

    def extension_for(self, media_type: MediaType) -> str | None:
        """Return the preferred extension (without dot) for ``media_type``, or None."""
        known: Format | None = find_known_format(media_type)
        if known is not None:
            return known.file_extension
        ext: str | None = self._table.guess_extension(media_type.base_type, strict=False)
        return ext[1:] if ext else None

    def media_type_for(self, extension: str) -> MediaType | None:
        """Return the media type registered for ``extension``, or None."""
        guessed, _encoding = self._table.guess_type(f"file.{extension}", strict=False)
        return MediaType.parse_or_none(guessed)

    async def __call__(self, context: SnifferContext) -> Format | None:
        """Resolve a format from the content, if present, and then from the hints."""
        if context.content is not None:
            sniffed: Format | None = await self._sniff_content(context)
            if sniffed is not None:
                return sniffed

        for declared in context.media_types:
            ext: str | None = self.extension_for(declared)
            if ext is not None:
                logger.trace("system fallback: %s -> .%s", declared, ext)
                return _format_for(declared.without_parameters(), ext)

        for ext in context.file_extensions:
            guessed: MediaType | None = self.media_type_for(ext)
            if guessed is not None:
                logger.trace("system fallback: .%s -> %s", ext, guessed)
                return _format_for(guessed, ext)

        return None

    async def _sniff_content(self, context: SnifferContext) -> Format | None:
        head: bytes | None = await context.read(0, 5)
        if head is not None and head[:4] in ZIP_SIGNATURES:
            return _format_for(mt.ZIP, "zip")
        if head == b"%PDF-":
            return _format_for(mt.PDF, "pdf")
        if await context.content_as_json() is not None:
            return _format_for(mt.JSON, "json")
        if await context.content_as_xml() is not None:
            return _format_for(mt.XML, "xml")
        return None


@functools.cache
def system_registry() -> SystemRegistry:
    """Return the shared built-in-table registry, created on first use."""
    return SystemRegistry()


def media_type_for_extension(extension: str | None) -> MediaType | None:
    """Best-effort media type for a file extension, without any classifier or I/O.

    The generic registry answers first, so generic extensions such as ``json``
    map to generic types; known publication formats fill the gaps (``epub``,
    ``cbz``, ...).
    """
    if not extension:
        return None
    ext: str = extension.lstrip(".").lower()
    guessed: MediaType | None = system_registry().media_type_for(ext)
    if guessed is not None:
        return guessed
    known: Format | None = find_known_format_by_extension(ext)
    return known.media_type if known is not None else None

# topmark:header:start
#
#   project      : PubSniff
#   file         : formats.py
#   file_relpath : src/pubsniff/format/formats.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Well-known publication formats.

These constants are plain, read-only data. Applications needing more formats
construct their own `Format` values and pass matching classifiers to the
resolution entry points; nothing here is meant to be mutated.
"""

from __future__ import annotations

from typing import Final

from pubsniff import mediatype as mt
from pubsniff.format.base import Format

BMP: Final[Format] = Format(name="BMP", media_type=mt.BMP, file_extension="bmp")
CBZ: Final[Format] = Format(name="Comic Book Archive", media_type=mt.CBZ, file_extension="cbz")
DIVINA: Final[Format] = Format(
    name="Digital Visual Narratives", media_type=mt.DIVINA, file_extension="divina"
)
DIVINA_MANIFEST: Final[Format] = Format(
    name="Digital Visual Narratives", media_type=mt.DIVINA_MANIFEST, file_extension="json"
)
EPUB: Final[Format] = Format(name="EPUB", media_type=mt.EPUB, file_extension="epub")
GIF: Final[Format] = Format(name="GIF", media_type=mt.GIF, file_extension="gif")
HTML: Final[Format] = Format(name="HTML", media_type=mt.HTML, file_extension="html")
XHTML: Final[Format] = Format(name="XHTML", media_type=mt.XHTML, file_extension="xhtml")
JPEG: Final[Format] = Format(name="JPEG", media_type=mt.JPEG, file_extension="jpg")
OPDS1_FEED: Final[Format] = Format(name="OPDS", media_type=mt.OPDS1, file_extension="atom")
OPDS1_ENTRY: Final[Format] = Format(name="OPDS", media_type=mt.OPDS1_ENTRY, file_extension="atom")
OPDS2_FEED: Final[Format] = Format(name="OPDS", media_type=mt.OPDS2, file_extension="json")
OPDS2_PUBLICATION: Final[Format] = Format(
    name="OPDS", media_type=mt.OPDS2_PUBLICATION, file_extension="json"
)
OPDS_AUTHENTICATION: Final[Format] = Format(
    name="OPDS Authentication Document",
    media_type=mt.OPDS_AUTHENTICATION,
    file_extension="json",
)
LCP_PROTECTED_AUDIOBOOK: Final[Format] = Format(
    name="LCP Protected Audiobook", media_type=mt.LCP_PROTECTED_AUDIOBOOK, file_extension="lcpa"
)
LCP_PROTECTED_PDF: Final[Format] = Format(
    name="LCP Protected PDF", media_type=mt.LCP_PROTECTED_PDF, file_extension="lcpdf"
)
LCP_LICENSE: Final[Format] = Format(
    name="LCP License", media_type=mt.LCP_LICENSE_DOCUMENT, file_extension="lcpl"
)
LPF: Final[Format] = Format(
    name="Lightweight Packaging Format", media_type=mt.LPF, file_extension="lpf"
)
PDF: Final[Format] = Format(name="PDF", media_type=mt.PDF, file_extension="pdf")
PNG: Final[Format] = Format(name="PNG", media_type=mt.PNG, file_extension="png")
READIUM_AUDIOBOOK: Final[Format] = Format(
    name="Readium Audiobook", media_type=mt.READIUM_AUDIOBOOK, file_extension="audiobook"
)
READIUM_AUDIOBOOK_MANIFEST: Final[Format] = Format(
    name="Readium Audiobook", media_type=mt.READIUM_AUDIOBOOK_MANIFEST, file_extension="json"
)
READIUM_WEBPUB: Final[Format] = Format(
    name="Readium Web Publication", media_type=mt.READIUM_WEBPUB, file_extension="webpub"
)
READIUM_WEBPUB_MANIFEST: Final[Format] = Format(
    name="Readium Web Publication", media_type=mt.READIUM_WEBPUB_MANIFEST, file_extension="json"
)
TIFF: Final[Format] = Format(name="TIFF", media_type=mt.TIFF, file_extension="tiff")
W3C_WPUB_MANIFEST: Final[Format] = Format(
    name="W3C Web Publication", media_type=mt.W3C_WPUB_MANIFEST, file_extension="json"
)
WEBP: Final[Format] = Format(name="WebP", media_type=mt.WEBP, file_extension="webp")
ZAB: Final[Format] = Format(name="Zipped Audio Book", media_type=mt.ZAB, file_extension="zab")

KNOWN_FORMATS: Final[tuple[Format, ...]] = (
    BMP,
    CBZ,
    DIVINA,
    DIVINA_MANIFEST,
    EPUB,
    GIF,
    HTML,
    XHTML,
    JPEG,
    OPDS1_FEED,
    OPDS1_ENTRY,
    OPDS2_FEED,
    OPDS2_PUBLICATION,
    OPDS_AUTHENTICATION,
    LCP_PROTECTED_AUDIOBOOK,
    LCP_PROTECTED_PDF,
    LCP_LICENSE,
    LPF,
    PDF,
    PNG,
    READIUM_AUDIOBOOK,
    READIUM_AUDIOBOOK_MANIFEST,
    READIUM_WEBPUB,
    READIUM_WEBPUB_MANIFEST,
    TIFF,
    W3C_WPUB_MANIFEST,
    WEBP,
    ZAB,
)


def find_known_format(media_type: mt.MediaType | str) -> Format | None:
    """Return the known format whose canonical media type equals ``media_type``."""
    parsed: mt.MediaType | None = mt.MediaType.parse_or_none(media_type)
    if parsed is None:
        return None
    for fmt in KNOWN_FORMATS:
        if fmt.media_type == parsed:
            return fmt
    return None


def find_known_format_by_extension(extension: str | None) -> Format | None:
    """Return the first known format whose default extension is ``extension``."""
    if not extension:
        return None
    ext: str = extension.lstrip(".").lower()
    for fmt in KNOWN_FORMATS:
        if fmt.file_extension == ext:
            return fmt
    return None

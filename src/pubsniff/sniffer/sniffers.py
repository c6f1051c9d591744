# topmark:header:start
#
#   project      : PubSniff
#   file         : sniffers.py
#   file_relpath : src/pubsniff/sniffer/sniffers.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Default format classifiers.

A classifier (a *sniffer*) is an ``async`` callable taking a `SnifferContext`
and returning a `Format`, or None when it cannot tell. Each classifier below
handles one family of formats and works in both rounds of the pipeline:

* from the hints alone (declared media types and file extensions), which is
  all it gets in the light round;
* from the content, when the context carries one (heavy round).

Content checks are intentionally shallow: root element names, a few JSON
keys, archive marker entries and magic numbers. They never validate.

Order matters because some formats are subsets of others (an EPUB is a ZIP,
an OPDS 2 feed is a JSON manifest). `DEFAULT_SNIFFERS` lists the classifiers
from the most to the least specific; callers prepend their own classifiers to
take precedence.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, Any, Final, Union

from pubsniff import mediatype as mt
from pubsniff.config.logging import get_logger
from pubsniff.format import formats as fm
from pubsniff.format.base import Format
from pubsniff.sniffer.context import SnifferContext

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from pubsniff.config.logging import PubsniffLogger

logger: PubsniffLogger = get_logger(__name__)

Sniffer = Callable[[SnifferContext], Awaitable[Union[Format, None]]]

XHTML_NS: Final[str] = "http://www.w3.org/1999/xhtml"
ATOM_NS: Final[str] = "http://www.w3.org/2005/Atom"
W3C_WPUB_CONTEXT: Final[str] = "https://www.w3.org/ns/wp-context"
OPDS_ACQUISITION_REL: Final[str] = "http://opds-spec.org/acquisition"

PROFILE_AUDIOBOOK: Final[str] = "https://readium.org/webpub-manifest/profiles/audiobook"
PROFILE_DIVINA: Final[str] = "https://readium.org/webpub-manifest/profiles/divina"
PROFILE_PDF: Final[str] = "https://readium.org/webpub-manifest/profiles/pdf"

BITMAP_EXTENSIONS: Final[Mapping[str, Format]] = {
    "bmp": fm.BMP,
    "dib": fm.BMP,
    "gif": fm.GIF,
    "jpg": fm.JPEG,
    "jpeg": fm.JPEG,
    "jpe": fm.JPEG,
    "jif": fm.JPEG,
    "jfif": fm.JPEG,
    "jfi": fm.JPEG,
    "png": fm.PNG,
    "tif": fm.TIFF,
    "tiff": fm.TIFF,
    "webp": fm.WEBP,
}

AUDIO_EXTENSIONS: Final[frozenset[str]] = frozenset(
    {"aac", "aiff", "alac", "flac", "m4a", "m4b", "mp3", "ogg", "oga", "mogg", "opus", "wav", "webm"}
)

# Playlists and side files allowed next to the tracks of a zipped audio book.
AUDIO_SIDE_EXTENSIONS: Final[frozenset[str]] = frozenset(
    {"asx", "bio", "m3u", "m3u8", "pla", "pls", "smil", "txt", "vlc", "wpl", "xspf", "zpl"}
)

# Archive entries ignored when deciding whether an archive is a comic or audio book.
IGNORED_ARCHIVE_ENTRIES: Final[frozenset[str]] = frozenset({"comicinfo.xml", "thumbs.db"})


def _declares(context: SnifferContext, media_type: mt.MediaType) -> bool:
    """Return whether a hint carries ``media_type`` with at least all its parameters."""
    return any(media_type.contains(declared) for declared in context.media_types)


def _local_name(tag: str) -> tuple[str | None, str]:
    if tag.startswith("{"):
        ns, _, name = tag[1:].partition("}")
        return ns, name
    return None, tag


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    return value if isinstance(value, list) else [value]


def _extension(name: str) -> str:
    return PurePosixPath(name).suffix[1:].lower()


def _link_types(links: Any) -> list[str]:
    return [
        str(link.get("type", ""))
        for link in _as_list(links)
        if isinstance(link, dict)
    ]


# --- HTML ---


async def sniff_html(context: SnifferContext) -> Format | None:
    """HTML and XHTML documents."""
    if context.has_file_extension("htm", "html") or context.has_media_type(mt.HTML):
        return fm.HTML
    if context.has_file_extension("xht", "xhtml") or context.has_media_type(mt.XHTML):
        return fm.XHTML

    if context.content is None:
        return None
    root = await context.content_as_xml()
    if root is not None:
        ns, name = _local_name(root.tag)
        if name.lower() == "html":
            return fm.XHTML if ns == XHTML_NS else fm.HTML
        return None
    head: bytes | None = await context.read(0, 64)
    if head is not None and head.lstrip().lower().startswith(b"<!doctype html"):
        return fm.HTML
    return None


# --- OPDS ---


async def sniff_opds(context: SnifferContext) -> Format | None:
    """OPDS 1 feeds and entries, OPDS 2 feeds and publications, OPDS authentication."""
    # Entries first: an entry hint also carries the catalog profile of a feed.
    if _declares(context, mt.OPDS1_ENTRY):
        return fm.OPDS1_ENTRY
    if _declares(context, mt.OPDS1):
        return fm.OPDS1_FEED
    if context.has_media_type(mt.OPDS2):
        return fm.OPDS2_FEED
    if context.has_media_type(mt.OPDS2_PUBLICATION):
        return fm.OPDS2_PUBLICATION
    if context.has_media_type(
        mt.OPDS_AUTHENTICATION, "application/vnd.opds.authentication.v1.0+json"
    ):
        return fm.OPDS_AUTHENTICATION

    if context.content is None:
        return None

    root = await context.content_as_xml()
    if root is not None:
        ns, name = _local_name(root.tag)
        if ns == ATOM_NS and name == "entry":
            return fm.OPDS1_ENTRY
        if ns == ATOM_NS and name == "feed":
            return fm.OPDS1_FEED
        return None

    doc: Any = await context.content_as_json()
    if not isinstance(doc, dict):
        return None
    if {"id", "title", "authentication"} <= doc.keys():
        return fm.OPDS_AUTHENTICATION
    if "metadata" not in doc:
        return None
    for link in _as_list(doc.get("links")):
        if not isinstance(link, dict):
            continue
        rels: list[Any] = _as_list(link.get("rel"))
        if "self" in rels and mt.OPDS2.matches(str(link.get("type", ""))):
            return fm.OPDS2_FEED
        if any(str(rel).startswith(OPDS_ACQUISITION_REL) for rel in rels):
            return fm.OPDS2_PUBLICATION
    if any(key in doc for key in ("publications", "navigation", "groups", "facets")):
        return fm.OPDS2_FEED
    return None


# --- LCP ---


async def sniff_lcp_license(context: SnifferContext) -> Format | None:
    """LCP license documents."""
    if context.has_file_extension("lcpl") or context.has_media_type(mt.LCP_LICENSE_DOCUMENT):
        return fm.LCP_LICENSE
    doc: Any = await context.content_as_json()
    if isinstance(doc, dict) and {"id", "issued", "provider", "encryption"} <= doc.keys():
        return fm.LCP_LICENSE
    return None


# --- Bitmaps ---


async def sniff_bitmap(context: SnifferContext) -> Format | None:
    """Raster images, by extension, declared type, then magic number."""
    for ext in context.file_extensions:
        if ext in BITMAP_EXTENSIONS:
            return BITMAP_EXTENSIONS[ext]
    for fmt in (fm.BMP, fm.GIF, fm.JPEG, fm.PNG, fm.TIFF, fm.WEBP):
        if context.has_media_type(fmt.media_type):
            return fmt

    head: bytes | None = await context.read(0, 12)
    if not head:
        return None
    if head.startswith(b"BM"):
        return fm.BMP
    if head.startswith((b"GIF87a", b"GIF89a")):
        return fm.GIF
    if head.startswith(b"\xff\xd8\xff"):
        return fm.JPEG
    if head.startswith(b"\x89PNG\r\n\x1a\n"):
        return fm.PNG
    if head.startswith((b"II*\x00", b"MM\x00*")):
        return fm.TIFF
    if head[:4] == b"RIFF" and head[8:12] == b"WEBP":
        return fm.WEBP
    return None


# --- Readium Web Publications ---


def _conforms_to(manifest: Mapping[str, Any]) -> set[str]:
    metadata: Any = manifest.get("metadata")
    if not isinstance(metadata, dict):
        return set()
    return {str(p) for p in _as_list(metadata.get("conformsTo"))} | {
        str(p) for p in _as_list(metadata.get("@type"))
    }


def _reading_order_types(manifest: Mapping[str, Any]) -> list[str]:
    return _link_types(manifest.get("readingOrder", manifest.get("spine")))


def _manifest_kind(manifest: Mapping[str, Any]) -> str:
    """Classify a Readium manifest as ``audiobook``, ``divina``, ``pdf`` or ``webpub``."""
    profiles: set[str] = _conforms_to(manifest)
    if PROFILE_AUDIOBOOK in profiles or "http://schema.org/Audiobook" in profiles:
        return "audiobook"
    if PROFILE_DIVINA in profiles:
        return "divina"
    if PROFILE_PDF in profiles:
        return "pdf"

    types: list[mt.MediaType | None] = [
        mt.MediaType.parse_or_none(t) for t in _reading_order_types(manifest)
    ]
    if types and all(t is not None for t in types):
        if all(t.is_audio for t in types):  # type: ignore[union-attr]
            return "audiobook"
        if all(t.is_bitmap for t in types):  # type: ignore[union-attr]
            return "divina"
        if all(t.matches(mt.PDF) for t in types):  # type: ignore[union-attr]
            return "pdf"
    return "webpub"


def _is_manifest(doc: Any) -> bool:
    return isinstance(doc, dict) and "metadata" in doc and (
        "readingOrder" in doc or "spine" in doc
    )


async def sniff_webpub(context: SnifferContext) -> Format | None:
    """Readium Web Publication packages and manifests, including LCP-protected ones."""
    if context.has_file_extension("audiobook") or context.has_media_type(mt.READIUM_AUDIOBOOK):
        return fm.READIUM_AUDIOBOOK
    if context.has_media_type(mt.READIUM_AUDIOBOOK_MANIFEST):
        return fm.READIUM_AUDIOBOOK_MANIFEST
    if context.has_file_extension("divina") or context.has_media_type(mt.DIVINA):
        return fm.DIVINA
    if context.has_media_type(mt.DIVINA_MANIFEST):
        return fm.DIVINA_MANIFEST
    if context.has_file_extension("webpub") or context.has_media_type(mt.READIUM_WEBPUB):
        return fm.READIUM_WEBPUB
    if context.has_media_type(mt.READIUM_WEBPUB_MANIFEST):
        return fm.READIUM_WEBPUB_MANIFEST
    if context.has_file_extension("lcpa") or context.has_media_type(mt.LCP_PROTECTED_AUDIOBOOK):
        return fm.LCP_PROTECTED_AUDIOBOOK
    if context.has_file_extension("lcpdf") or context.has_media_type(mt.LCP_PROTECTED_PDF):
        return fm.LCP_PROTECTED_PDF

    if context.content is None:
        return None

    # Exploded manifest.
    doc: Any = await context.content_as_json()
    if _is_manifest(doc):
        kind: str = _manifest_kind(doc)
        if kind == "audiobook":
            return fm.READIUM_AUDIOBOOK_MANIFEST
        if kind == "divina":
            return fm.DIVINA_MANIFEST
        return fm.READIUM_WEBPUB_MANIFEST

    # Packaged publication.
    if not await context.contains_zip_entry("manifest.json"):
        return None
    manifest: Any = await context.read_zip_entry_as_json("manifest.json")
    if not _is_manifest(manifest):
        return None
    protected: bool = await context.contains_zip_entry("license.lcpl")
    kind = _manifest_kind(manifest)
    if kind == "audiobook":
        return fm.LCP_PROTECTED_AUDIOBOOK if protected else fm.READIUM_AUDIOBOOK
    if kind == "divina":
        return fm.DIVINA
    if kind == "pdf" and protected:
        return fm.LCP_PROTECTED_PDF
    return fm.READIUM_WEBPUB


# --- W3C Web Publications ---


def _has_wpub_context(doc: Any) -> bool:
    return isinstance(doc, dict) and W3C_WPUB_CONTEXT in _as_list(doc.get("@context"))


async def sniff_w3c_wpub(context: SnifferContext) -> Format | None:
    """W3C Web Publication manifests."""
    if context.has_media_type(mt.W3C_WPUB_MANIFEST):
        return fm.W3C_WPUB_MANIFEST
    if _has_wpub_context(await context.content_as_json()):
        return fm.W3C_WPUB_MANIFEST
    return None


# --- EPUB ---


async def sniff_epub(context: SnifferContext) -> Format | None:
    """EPUB packages, recognized by their ``mimetype`` marker entry."""
    if context.has_file_extension("epub") or context.has_media_type(mt.EPUB):
        return fm.EPUB
    marker: str | None = await context.read_zip_entry_as_string("mimetype")
    if marker is not None and marker.strip() == str(mt.EPUB):
        return fm.EPUB
    return None


# --- LPF ---


async def sniff_lpf(context: SnifferContext) -> Format | None:
    """Lightweight Packaging Format (W3C Web Publications in a ZIP)."""
    if context.has_file_extension("lpf") or context.has_media_type(mt.LPF):
        return fm.LPF
    if await context.contains_zip_entry("index.html"):
        return fm.LPF
    if _has_wpub_context(await context.read_zip_entry_as_json("publication.json")):
        return fm.LPF
    return None


# --- Archives of images or audio ---


def _significant_entries(entries: Iterable[str]) -> list[str]:
    kept: list[str] = []
    for entry in entries:
        path = PurePosixPath(entry)
        if any(part.startswith(".") for part in path.parts):
            continue
        if path.name.lower() in IGNORED_ARCHIVE_ENTRIES:
            continue
        kept.append(entry)
    return kept


async def sniff_archive(context: SnifferContext) -> Format | None:
    """Comic book archives (only images) and zipped audio books (only audio)."""
    if context.has_file_extension("cbz") or context.has_media_type(
        mt.CBZ, "application/x-cbz", "application/x-cbr"
    ):
        return fm.CBZ
    if context.has_file_extension("zab") or context.has_media_type(mt.ZAB):
        return fm.ZAB

    entries: tuple[str, ...] | None = await context.content_as_zip_entries()
    if not entries:
        return None
    exts: list[str] = [_extension(e) for e in _significant_entries(entries)]
    if not exts:
        return None
    if all(ext in BITMAP_EXTENSIONS for ext in exts):
        return fm.CBZ
    if all(ext in AUDIO_EXTENSIONS or ext in AUDIO_SIDE_EXTENSIONS for ext in exts) and any(
        ext in AUDIO_EXTENSIONS for ext in exts
    ):
        return fm.ZAB
    return None


# --- PDF ---


async def sniff_pdf(context: SnifferContext) -> Format | None:
    """PDF documents."""
    if context.has_file_extension("pdf") or context.has_media_type(mt.PDF):
        return fm.PDF
    head: bytes | None = await context.read(0, 5)
    if head == b"%PDF-":
        return fm.PDF
    return None


DEFAULT_SNIFFERS: Final[tuple[Sniffer, ...]] = (
    sniff_html,
    sniff_opds,
    sniff_lcp_license,
    sniff_bitmap,
    sniff_webpub,
    sniff_w3c_wpub,
    sniff_epub,
    sniff_lpf,
    sniff_archive,
    sniff_pdf,
)


def hint_sniffer(fmt: Format, *, extensions: Iterable[str] = ()) -> Sniffer:
    """Return a classifier recognizing ``fmt`` from hints only.

    Used for formats declared in the configuration: they match when a declared
    media type matches the format's, or when a declared extension is the
    format's extension (or one of ``extensions``).

    Args:
        fmt (Format): The format to return on a match.
        extensions (Iterable[str]): Additional extensions mapping to ``fmt``.

    Returns:
        Sniffer: The classifier.
    """
    exts: tuple[str, ...] = (fmt.file_extension, *extensions)

    async def sniff(context: SnifferContext) -> Format | None:
        if context.has_media_type(fmt.media_type) or context.has_file_extension(*exts):
            return fmt
        return None

    sniff.__name__ = sniff.__qualname__ = f"sniff_{fmt.file_extension or 'custom'}"
    return sniff

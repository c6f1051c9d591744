# topmark:header:start
#
#   project      : PubSniff
#   file         : pipeline.py
#   file_relpath : src/pubsniff/sniffer/pipeline.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Format resolution pipeline.

`resolve` runs an ordered tuple of classifiers in up to two rounds, then asks
a generic registry as a last resort:

1. **Light round**: the context holds the hints only. Classifiers answer from
   declared media types and file extensions, without any I/O.
2. **Heavy round**: only when content is available. The same classifiers run
   again, from the first one, with the content attached.
3. **System fallback**: `SystemRegistry` maps the hints (and, if present, the
   content) to a generic format.

In each round the first classifier returning a format wins. A classifier that
raises is logged and treated as "no match", with the exception of
`InvalidMediaType`, which reports a malformed caller hint and propagates.

The entry points below (`of`, `of_file`, `of_bytes`, `of_uri`, `of_resource`)
gather hints from their input before delegating to `resolve`.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING

from pubsniff.config.logging import get_logger
from pubsniff.constants import DEFAULT_PREFIX_LENGTH
from pubsniff.errors import InvalidMediaType, SnifferContentError
from pubsniff.mediatype import BINARY, MediaType
from pubsniff.sniffer.content import SnifferContent
from pubsniff.sniffer.context import SnifferContext
from pubsniff.sniffer.resolvers import UriInfo, default_uri_resolver
from pubsniff.sniffer.sniffers import DEFAULT_SNIFFERS
from pubsniff.sniffer.system import system_registry
from pubsniff.utils.file import extension_of, extension_of_uri

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable, Sequence

    from pubsniff.config.logging import PubsniffLogger
    from pubsniff.fetcher.resource import Resource
    from pubsniff.format.base import Format
    from pubsniff.sniffer.resolvers import UriResolver
    from pubsniff.sniffer.sniffers import Sniffer

logger: PubsniffLogger = get_logger(__name__)


async def _call(sniffer: Sniffer, context: SnifferContext) -> Format | None:
    name: str = getattr(sniffer, "__name__", repr(sniffer))
    try:
        fmt: Format | None = await sniffer(context)
    except InvalidMediaType:
        raise
    except Exception as exc:
        logger.debug("classifier %s failed, skipping: %s", name, exc, exc_info=True)
        return None
    logger.trace("classifier %s -> %s", name, fmt)
    return fmt


async def _run_round(
    label: str, sniffers: Sequence[Sniffer], context: SnifferContext
) -> Format | None:
    logger.trace(
        "%s round: media_types=%s extensions=%s",
        label,
        [str(m) for m in context.media_types],
        context.file_extensions,
    )
    for sniffer in sniffers:
        fmt: Format | None = await _call(sniffer, context)
        if fmt is not None:
            logger.debug("%s round resolved %s", label, fmt)
            return fmt
    return None


async def resolve(
    media_types: Iterable[MediaType | str] = (),
    file_extensions: Iterable[str] = (),
    content: SnifferContent | None = None,
    *,
    sniffers: Sequence[Sniffer] = DEFAULT_SNIFFERS,
    fallback: Sniffer | None = None,
    light_only: bool = False,
) -> Format | None:
    """Resolve the format of an asset from hints and optional content.

    Args:
        media_types (Iterable[MediaType | str]): Declared media types, most specific first.
        file_extensions (Iterable[str]): Declared file extensions, most specific first.
        content (SnifferContent | None): Content to inspect in the heavy round.
        sniffers (Sequence[Sniffer]): Ordered classifiers.
        fallback (Sniffer | None): Last-resort classifier; the shared
            `SystemRegistry` when None.
        light_only (bool): Skip the heavy round even when content is available.

    Returns:
        Format | None: The resolved format, or None when nothing matched.

    Raises:
        InvalidMediaType: If a media type hint is malformed.
    """
    context: SnifferContext = SnifferContext.of(media_types, file_extensions)

    fmt: Format | None = await _run_round("light", sniffers, context)
    if fmt is not None:
        return fmt

    if content is not None and not light_only:
        context = context.with_content(content)
        fmt = await _run_round("heavy", sniffers, context)
        if fmt is not None:
            return fmt

    registry: Sniffer = fallback if fallback is not None else system_registry()
    fmt = await _call(registry, context)
    logger.debug("system fallback resolved %s", fmt)
    return fmt


async def of_hints(
    media_type: str | None = None,
    file_extension: str | None = None,
    *,
    media_types: Iterable[MediaType | str] = (),
    file_extensions: Iterable[str] = (),
    sniffers: Sequence[Sniffer] = DEFAULT_SNIFFERS,
    fallback: Sniffer | None = None,
) -> Format | None:
    """Resolve a format from hints only (no content)."""
    if media_type is not None and media_type.startswith("/"):
        raise ValueError(
            f"{media_type!r} looks like a file path, not a media type; use of_file() instead"
        )
    all_types: list[MediaType | str] = [m for m in (media_type,) if m] + list(media_types)
    all_exts: list[str] = [e for e in (file_extension,) if e] + list(file_extensions)
    return await resolve(all_types, all_exts, None, sniffers=sniffers, fallback=fallback)


def of(
    media_type: str | None = None,
    file_extension: str | None = None,
    *,
    media_types: Iterable[MediaType | str] = (),
    file_extensions: Iterable[str] = (),
    sniffers: Sequence[Sniffer] = DEFAULT_SNIFFERS,
    fallback: Sniffer | None = None,
) -> Format | None:
    """Blocking variant of `of_hints`.

    Raises:
        RuntimeError: If called from a running event loop (await `of_hints` there).
        ValueError: If ``media_type`` looks like a file path.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        pass
    else:
        raise RuntimeError("of() cannot be called from a running event loop; use of_hints()")
    return asyncio.run(
        of_hints(
            media_type,
            file_extension,
            media_types=media_types,
            file_extensions=file_extensions,
            sniffers=sniffers,
            fallback=fallback,
        )
    )


async def of_file(
    path: Path | str,
    media_types: Iterable[MediaType | str] = (),
    file_extensions: Iterable[str] = (),
    *,
    sniffers: Sequence[Sniffer] = DEFAULT_SNIFFERS,
    fallback: Sniffer | None = None,
    light_only: bool = False,
    prefix_length: int = DEFAULT_PREFIX_LENGTH,
) -> Format | None:
    """Resolve the format of a local file.

    The file's own extension is prepended to the extension hints.
    """
    path = Path(path)
    exts: list[str] = [e for e in (extension_of(path.name),) if e] + list(file_extensions)
    content = SnifferContent.from_file(path, prefix_length=prefix_length)
    return await resolve(
        media_types, exts, content, sniffers=sniffers, fallback=fallback, light_only=light_only
    )


async def of_bytes(
    producer: bytes | Callable[[], bytes | Awaitable[bytes]],
    media_types: Iterable[MediaType | str] = (),
    file_extensions: Iterable[str] = (),
    *,
    sniffers: Sequence[Sniffer] = DEFAULT_SNIFFERS,
    fallback: Sniffer | None = None,
    light_only: bool = False,
    prefix_length: int = DEFAULT_PREFIX_LENGTH,
) -> Format | None:
    """Resolve the format of an in-memory buffer, or of a byte producer called on demand."""
    content = SnifferContent.from_bytes(producer, prefix_length=prefix_length)
    return await resolve(
        media_types,
        file_extensions,
        content,
        sniffers=sniffers,
        fallback=fallback,
        light_only=light_only,
    )


async def of_uri(
    uri: str,
    resolver: UriResolver | None = None,
    media_types: Iterable[MediaType | str] = (),
    file_extensions: Iterable[str] = (),
    *,
    sniffers: Sequence[Sniffer] = DEFAULT_SNIFFERS,
    fallback: Sniffer | None = None,
    light_only: bool = False,
    prefix_length: int = DEFAULT_PREFIX_LENGTH,
) -> Format | None:
    """Resolve the format of a resource addressed by URI.

    Hints are gathered, most specific first, from the resolver (declared media
    type unless it is the generic ``application/octet-stream``, extension of the
    display name) and from the URI path extension.

    Args:
        uri (str): ``file:``, ``data:`` or ``http(s):`` URI (any scheme ``resolver`` supports).
        resolver (UriResolver | None): Backend; `default_uri_resolver()` when None.
        media_types (Iterable[MediaType | str]): Additional media type hints.
        file_extensions (Iterable[str]): Additional extension hints.
        sniffers (Sequence[Sniffer]): Ordered classifiers.
        fallback (Sniffer | None): Last-resort classifier.
        light_only (bool): Skip the heavy round.
        prefix_length (int): Size of the shared prefix read.

    Returns:
        Format | None: The resolved format, or None.
    """
    if resolver is None:
        resolver = default_uri_resolver()

    all_types: list[MediaType | str] = list(media_types)
    all_exts: list[str] = list(file_extensions)

    uri_ext: str | None = extension_of_uri(uri)
    if uri_ext:
        all_exts.insert(0, uri_ext)

    try:
        info: UriInfo = await resolver.probe(uri)
    except SnifferContentError as exc:
        logger.debug("could not probe %s: %s", uri, exc)
        info = UriInfo()

    declared: MediaType | None = MediaType.parse_or_none(info.media_type)
    if declared is not None and not declared.matches(BINARY):
        all_types.insert(0, declared)
    name_ext: str | None = extension_of(info.display_name)
    if name_ext:
        all_exts.insert(0, name_ext)

    content = SnifferContent.from_uri(uri, resolver, prefix_length=prefix_length)
    return await resolve(
        all_types, all_exts, content, sniffers=sniffers, fallback=fallback, light_only=light_only
    )


async def of_resource(
    resource: Resource,
    media_types: Iterable[MediaType | str] = (),
    file_extensions: Iterable[str] = (),
    *,
    sniffers: Sequence[Sniffer] = DEFAULT_SNIFFERS,
    fallback: Sniffer | None = None,
    light_only: bool = False,
) -> Format | None:
    """Resolve the format of a fetcher resource.

    The link's declared media type and the extension of its href are used as
    hints; the resource supplies the content.
    """
    all_types: list[MediaType | str] = list(media_types)
    declared: MediaType | None = MediaType.parse_or_none(resource.link.media_type)
    if declared is not None:
        all_types.insert(0, declared)
    all_exts: list[str] = [e for e in (extension_of_uri(resource.link.href),) if e] + list(
        file_extensions
    )
    return await resolve(
        all_types,
        all_exts,
        resource.sniffer_content(),
        sniffers=sniffers,
        fallback=fallback,
        light_only=light_only,
    )

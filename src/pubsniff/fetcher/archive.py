# topmark:header:start
#
#   project      : PubSniff
#   file         : archive.py
#   file_relpath : src/pubsniff/fetcher/archive.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Fetcher serving the entries of a ZIP archive.

The archive's central directory is read once, when the fetcher is opened with
`ArchiveFetcher.open`. Entry reads run in a worker thread; compressed entries
cannot be seeked, so a range read decompresses from the start of the entry
and stops at the end of the range.
"""

from __future__ import annotations

import asyncio
import zipfile
import zlib
from pathlib import Path
from typing import TYPE_CHECKING

from pubsniff.config.logging import get_logger
from pubsniff.fetcher.errors import (
    ResourceIOError,
    ResourceNotFound,
    ResourceOtherError,
)
from pubsniff.fetcher.fetcher import Fetcher
from pubsniff.fetcher.link import Link
from pubsniff.fetcher.resource import FailureResource, Resource, map_os_error
from pubsniff.sniffer.system import media_type_for_extension
from pubsniff.utils.file import READ_CHUNK_SIZE, extension_of

if TYPE_CHECKING:
    from pubsniff.config.logging import PubsniffLogger

logger: PubsniffLogger = get_logger(__name__)

_ZIP_ERRORS = (zipfile.BadZipFile, zipfile.LargeZipFile, zlib.error, EOFError, NotImplementedError)


def _read_entry(archive: zipfile.ZipFile, info: zipfile.ZipInfo, start: int, end: int | None) -> bytes:
    remaining: int | None = None if end is None else end - start
    chunks: list[bytes] = []
    with archive.open(info) as fh:
        skip: int = start
        while skip > 0:
            skipped: bytes = fh.read(min(READ_CHUNK_SIZE, skip))
            if not skipped:
                return b""
            skip -= len(skipped)
        while remaining is None or remaining > 0:
            size: int = READ_CHUNK_SIZE if remaining is None else min(READ_CHUNK_SIZE, remaining)
            chunk: bytes = fh.read(size)
            if not chunk:
                break
            chunks.append(chunk)
            if remaining is not None:
                remaining -= len(chunk)
    return b"".join(chunks)


class ArchiveResource(Resource):
    """One entry of an open archive."""

    def __init__(self, link: Link, fetcher: ArchiveFetcher, info: zipfile.ZipInfo) -> None:
        super().__init__(link)
        self._fetcher: ArchiveFetcher = fetcher
        self._info: zipfile.ZipInfo = info

    async def _open(self) -> None:
        if self._fetcher.closed:
            raise ResourceOtherError(f"{self._link.href}: archive is closed")

    async def _length(self) -> int:
        return self._info.file_size

    async def _read(self, start: int, end: int | None) -> bytes:
        archive: zipfile.ZipFile = self._fetcher.archive
        try:
            return await asyncio.to_thread(_read_entry, archive, self._info, start, end)
        except _ZIP_ERRORS as exc:
            raise ResourceIOError(f"{self._link.href}: {exc}", cause=exc) from exc
        except (OSError, ValueError) as exc:
            # ValueError: the archive was closed under us.
            raise ResourceIOError(f"{self._link.href}: {exc}", cause=exc) from exc


class ArchiveFetcher(Fetcher):
    """Serve the file entries of a ZIP archive, links in archive order.

    Use `ArchiveFetcher.open` to create one.
    """

    def __init__(self, path: Path, archive: zipfile.ZipFile) -> None:
        super().__init__()
        self._path: Path = path
        self._archive: zipfile.ZipFile = archive
        self._entries: dict[str, zipfile.ZipInfo] = {}
        links: list[Link] = []
        for info in archive.infolist():
            if info.is_dir():
                continue
            href: str = "/" + info.filename.lstrip("/")
            self._entries[href] = info
            media_type = media_type_for_extension(extension_of(info.filename))
            links.append(Link(href=href, media_type=str(media_type) if media_type else None))
        self._links: tuple[Link, ...] = tuple(links)

    @classmethod
    async def open(cls, path: Path | str) -> ArchiveFetcher:
        """Open the archive at ``path`` and read its central directory.

        Raises:
            ResourceNotFound: If the file does not exist.
            ResourceForbidden: If it cannot be read.
            ResourceOtherError: If it is not a ZIP archive.
        """
        p = Path(path)
        try:
            archive: zipfile.ZipFile = await asyncio.to_thread(zipfile.ZipFile, p)
        except _ZIP_ERRORS as exc:
            raise ResourceOtherError(f"{p}: not a ZIP archive ({exc})") from exc
        except OSError as exc:
            raise map_os_error(exc, str(p)) from exc
        logger.debug("opened archive %s (%d entries)", p, len(archive.infolist()))
        return cls(p, archive)

    @property
    def path(self) -> Path:
        """Path of the archive file."""
        return self._path

    @property
    def archive(self) -> zipfile.ZipFile:
        """The open `zipfile.ZipFile`."""
        return self._archive

    @property
    def links(self) -> tuple[Link, ...]:
        return self._links

    def _get(self, link: Link, parameters: dict[str, str]) -> Resource:
        href: str = "/" + link.href.split("#", 1)[0].lstrip("/")
        info: zipfile.ZipInfo | None = self._entries.get(href)
        if info is None:
            return FailureResource(link, ResourceNotFound(f"{link.href}: no such archive entry"))
        return ArchiveResource(link, self, info)

    async def _close(self) -> None:
        await asyncio.to_thread(self._archive.close)

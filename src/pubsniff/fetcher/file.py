# topmark:header:start
#
#   project      : PubSniff
#   file         : file.py
#   file_relpath : src/pubsniff/fetcher/file.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Fetcher serving files and directory trees from the local file system."""

from __future__ import annotations

import os
import posixpath
from pathlib import Path
from typing import TYPE_CHECKING

from pubsniff.config.logging import get_logger
from pubsniff.fetcher.errors import ResourceNotFound
from pubsniff.fetcher.fetcher import Fetcher
from pubsniff.fetcher.link import Link
from pubsniff.fetcher.resource import FailureResource, FileResource, Resource
from pubsniff.sniffer.system import media_type_for_extension
from pubsniff.utils.file import extension_of

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

    from pubsniff.config.logging import PubsniffLogger

logger: PubsniffLogger = get_logger(__name__)


def _normalize_href(href: str) -> str:
    return "/" + href.strip("/") if href.strip("/") else "/"


def _link_for(href: str, path: Path) -> Link:
    media_type = media_type_for_extension(extension_of(path.name))
    return Link(href=href, media_type=str(media_type) if media_type is not None else None)


class FileFetcher(Fetcher):
    """Map hrefs to local files or directories.

    Each entry of ``paths`` binds an href to a file (exact match) or to a
    directory (the href is a prefix, the rest of the requested href is a path
    below that directory). Requests escaping a mapped directory are refused.

    Args:
        paths (Mapping[str, Path | str]): Href to file system path mapping.
    """

    def __init__(self, paths: Mapping[str, Path | str]) -> None:
        super().__init__()
        self._paths: dict[str, Path] = {
            _normalize_href(href): Path(path).resolve() for href, path in paths.items()
        }
        self._links: tuple[Link, ...] | None = None

    @classmethod
    def single(cls, href: str, path: Path | str) -> FileFetcher:
        """Shortcut for a fetcher with one mapping."""
        return cls({href: path})

    @property
    def links(self) -> tuple[Link, ...]:
        """All files below the mapped paths, sorted by href (computed once)."""
        if self._links is None:
            found: list[Link] = [
                _link_for(href, path) for href, path in self._walk_all()
            ]
            self._links = tuple(sorted(found, key=lambda link: link.href))
        return self._links

    def _walk_all(self) -> Iterator[tuple[str, Path]]:
        for href, root in self._paths.items():
            if root.is_file():
                yield href, root
                continue
            if not root.is_dir():
                continue
            for dirpath, _dirnames, filenames in os.walk(root):
                for name in filenames:
                    path = Path(dirpath, name)
                    rel: str = path.relative_to(root).as_posix()
                    yield f"{href.rstrip('/')}/{rel}", path

    def _get(self, link: Link, parameters: dict[str, str]) -> Resource:
        # Paths only: the file system is first touched when the resource opens.
        href: str = _normalize_href(link.href.split("#", 1)[0].split("?", 1)[0])
        for prefix, root in self._paths.items():
            if href == prefix:
                return FileResource(link, root)
            base: str = prefix.rstrip("/") + "/"
            if href.startswith(base):
                rel: str = posixpath.normpath(href[len(base):])
                if rel == ".." or rel.startswith("../"):
                    logger.debug("refusing %s: outside of %s", link.href, root)
                    continue
                return FileResource(link, root.joinpath(*rel.split("/")))
        return FailureResource(link, ResourceNotFound(f"{link.href}: not found"))

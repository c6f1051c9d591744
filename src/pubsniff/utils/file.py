# topmark:header:start
#
#   project      : PubSniff
#   file         : file.py
#   file_relpath : src/pubsniff/utils/file.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Blocking file helpers, meant to be run in a worker thread (`asyncio.to_thread`)."""

from __future__ import annotations

from pathlib import Path, PurePosixPath
from typing import Final
from urllib.parse import unquote, urlparse

from pubsniff.config.logging import get_logger

logger = get_logger(__name__)

READ_CHUNK_SIZE: Final[int] = 64 * 1024


def read_file_range(path: Path, start: int = 0, end: int | None = None) -> bytes:
    """Read ``[start, end)`` from a file in bounded chunks.

    Args:
        path (Path): File to read.
        start (int): First byte offset.
        end (int | None): Exclusive end offset, or None to read to EOF.

    Returns:
        bytes: The bytes read; shorter than requested when EOF is reached first.

    Raises:
        OSError: If the file cannot be opened or read.
    """
    remaining: int | None = None if end is None else max(0, end - start)
    chunks: list[bytes] = []
    with path.open("rb") as fh:
        if start:
            fh.seek(start)
        while remaining is None or remaining > 0:
            size: int = READ_CHUNK_SIZE if remaining is None else min(READ_CHUNK_SIZE, remaining)
            chunk: bytes = fh.read(size)
            if not chunk:
                break
            chunks.append(chunk)
            if remaining is not None:
                remaining -= len(chunk)
    return b"".join(chunks)


def extension_of(name: str | None) -> str | None:
    """Return the lowercased extension of a file name or path, without the dot."""
    if not name:
        return None
    suffix: str = PurePosixPath(name.replace("\\", "/")).suffix
    return suffix[1:].lower() if len(suffix) > 1 else None


def extension_of_uri(uri: str) -> str | None:
    """Return the extension of the last path segment of a hierarchical URI."""
    parsed = urlparse(uri)
    if parsed.scheme.lower() == "data":
        return None
    return extension_of(unquote(parsed.path))

# topmark:header:start
#
#   project      : PubSniff
#   file         : file.py
#   file_relpath : src/pubsniff/file.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""A path on the file system with a lazily resolved, cached format."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from pubsniff.config.logging import get_logger
from pubsniff.sniffer.pipeline import of_file
from pubsniff.sniffer.sniffers import DEFAULT_SNIFFERS
from pubsniff.utils.memo import SingleFlight

if TYPE_CHECKING:
    from collections.abc import Sequence

    from pubsniff.config.logging import PubsniffLogger
    from pubsniff.format.base import Format
    from pubsniff.sniffer.sniffers import Sniffer

logger: PubsniffLogger = get_logger(__name__)


class PublicationFile:
    """A file or directory holding a publication.

    The format is resolved on first call to `format` and then cached, so the
    file is sniffed at most once even when several tasks ask at the same time.

    Args:
        path (Path | str): Path to the file or directory (made absolute).
        media_type (str | None): Known media type, used as a hint.
        original_url (str | None): URL the file was downloaded from, if any.
        format (Format | None): Already resolved format; skips sniffing entirely.
        sniffers (Sequence[Sniffer]): Classifiers used to resolve the format.
    """

    def __init__(
        self,
        path: Path | str,
        media_type: str | None = None,
        original_url: str | None = None,
        format: Format | None = None,
        *,
        sniffers: Sequence[Sniffer] = DEFAULT_SNIFFERS,
    ) -> None:
        self._path: Path = Path(path).absolute()
        self._media_type: str | None = media_type
        self._known_format: Format | None = format
        self._sniffers: Sequence[Sniffer] = sniffers
        self._format: SingleFlight[Format | None] = SingleFlight(f"format:{self._path}")
        self.original_url: str | None = original_url

    @property
    def path(self) -> Path:
        """Absolute path."""
        return self._path

    @property
    def name(self) -> str:
        """Last path component."""
        return self._path.name

    @property
    def is_directory(self) -> bool:
        """Whether the path is a directory (an exploded publication)."""
        return self._path.is_dir()

    async def format(self) -> Format | None:
        """Return the format of the file, resolving it on first call.

        Returns:
            Format | None: The format, or None if it could not be determined.
        """
        return await self._format.run(self._resolve)

    async def _resolve(self) -> Format | None:
        if self._known_format is not None:
            return self._known_format
        hints: tuple[str, ...] = (self._media_type,) if self._media_type else ()
        fmt: Format | None = await of_file(self._path, media_types=hints, sniffers=self._sniffers)
        logger.debug("%s: format %s", self._path, fmt)
        return fmt

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PublicationFile):
            return NotImplemented
        return self._path == other._path

    def __hash__(self) -> int:
        return hash(self._path)

    def __repr__(self) -> str:
        return f"PublicationFile({str(self._path)!r})"

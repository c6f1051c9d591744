# topmark:header:start
#
#   project      : PubSniff
#   file         : base.py
#   file_relpath : src/pubsniff/format/base.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""The `Format` value type.

A *format* is a resolved, named classification of an asset: a human-readable
name, a canonical `MediaType` and a default file extension. Formats are
identified by their media type alone: two formats with different names or
extensions but the same canonical media type are the same format.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from pubsniff.mediatype import MediaType


@dataclass(frozen=True)
class Format:
    """A known file format, uniquely identified by a media type.

    Attributes:
        name (str): Human-readable name, suitable for display.
        media_type (MediaType): The canonical media type identifying the format.
        file_extension (str): Default file extension, without the leading dot.
    """

    name: str = field(compare=False)
    media_type: MediaType
    file_extension: str = field(compare=False)

    def __post_init__(self) -> None:
        # Accept a raw string for convenience; store the parsed media type.
        if isinstance(self.media_type, str):
            object.__setattr__(self, "media_type", MediaType.parse(self.media_type))
        object.__setattr__(self, "file_extension", self.file_extension.lstrip(".").lower())

    def matches(self, other: Format | MediaType | str | None) -> bool:
        """Return whether ``other`` designates this format's media type."""
        if isinstance(other, Format):
            other = other.media_type
        return self.media_type.matches(other)

    def to_dict(self) -> dict[str, str]:
        """Return a JSON-friendly representation."""
        return {
            "name": self.name,
            "media_type": str(self.media_type),
            "file_extension": self.file_extension,
        }

    def __str__(self) -> str:
        return f"{self.name} ({self.media_type})"

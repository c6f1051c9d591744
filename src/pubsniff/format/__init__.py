# topmark:header:start
#
#   project      : PubSniff
#   file         : __init__.py
#   file_relpath : src/pubsniff/format/__init__.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Format value type and the read-only table of well-known formats."""

from __future__ import annotations

from pubsniff.format.base import Format
from pubsniff.format.formats import (
    KNOWN_FORMATS,
    find_known_format,
    find_known_format_by_extension,
)

__all__ = ["Format", "KNOWN_FORMATS", "find_known_format", "find_known_format_by_extension"]

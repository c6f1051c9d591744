# topmark:header:start
#
#   project      : PubSniff
#   file         : __init__.py
#   file_relpath : src/pubsniff/__init__.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""PubSniff package.

PubSniff identifies the format of digital publications and their resources
(EPUB, Readium Web Publications, audiobooks, comics, PDF, OPDS feeds and
more) from media type and extension hints and, when needed, from the content
itself. It exposes an asyncio API (`pubsniff.sniffer`, `pubsniff.fetcher`)
and a CLI.
"""

from __future__ import annotations

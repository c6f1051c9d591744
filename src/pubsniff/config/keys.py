# topmark:header:start
#
#   project      : PubSniff
#   file         : keys.py
#   file_relpath : src/pubsniff/config/keys.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Canonical TOML section and key names for PubSniff configuration.

These strings are the external configuration API, as written in
``pubsniff.toml`` and under ``[tool.pubsniff]`` in ``pyproject.toml``.
Renaming or removing one is a breaking change.
"""

from __future__ import annotations

from typing import Final


class Toml:
    """TOML section names and keys used by PubSniff configuration."""

    # Root / discovery
    KEY_ROOT: Final[str] = "root"

    # [sniffing]
    SECTION_SNIFFING: Final[str] = "sniffing"

    KEY_LIGHT_ONLY: Final[str] = "light_only"
    KEY_PREFIX_LENGTH: Final[str] = "prefix_length"

    # [remote]
    SECTION_REMOTE: Final[str] = "remote"

    KEY_TIMEOUT: Final[str] = "timeout"
    KEY_RANGED_REQUESTS: Final[str] = "ranged_requests"
    KEY_USER_AGENT: Final[str] = "user_agent"

    # [registry]
    SECTION_REGISTRY: Final[str] = "registry"

    KEY_PLATFORM_FILES: Final[str] = "platform_files"
    KEY_MIME_FILES: Final[str] = "mime_files"

    # [[formats]]
    SECTION_FORMATS: Final[str] = "formats"

    KEY_NAME: Final[str] = "name"
    KEY_MEDIA_TYPE: Final[str] = "media_type"
    KEY_EXTENSION: Final[str] = "extension"
    KEY_EXTENSIONS: Final[str] = "extensions"

    # ---------------------------- Schema helpers ----------------------------

    ALLOWED_TOP_LEVEL_KEYS: Final[frozenset[str]] = frozenset(
        {KEY_ROOT, SECTION_SNIFFING, SECTION_REMOTE, SECTION_REGISTRY, SECTION_FORMATS}
    )

    ALLOWED_SECTION_KEYS: Final[dict[str, frozenset[str]]] = {
        SECTION_SNIFFING: frozenset({KEY_LIGHT_ONLY, KEY_PREFIX_LENGTH}),
        SECTION_REMOTE: frozenset({KEY_TIMEOUT, KEY_RANGED_REQUESTS, KEY_USER_AGENT}),
        SECTION_REGISTRY: frozenset({KEY_PLATFORM_FILES, KEY_MIME_FILES}),
        SECTION_FORMATS: frozenset({KEY_NAME, KEY_MEDIA_TYPE, KEY_EXTENSION, KEY_EXTENSIONS}),
    }

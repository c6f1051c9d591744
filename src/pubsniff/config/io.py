# topmark:header:start
#
#   project      : PubSniff
#   file         : io.py
#   file_relpath : src/pubsniff/config/io.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""TOML I/O helpers for PubSniff configuration.

Parsing and rendering are done with `tomlkit`. Parsed documents are returned as
plain `dict` structures; the typed getters below read values out of them and
raise `ConfigError` on a type mismatch.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, cast

import tomlkit
from tomlkit.exceptions import ParseError as TomlkitParseError

from pubsniff.config.logging import get_logger
from pubsniff.constants import PYPROJECT_FILE_NAME, PYPROJECT_TOOL_TABLE
from pubsniff.errors import ConfigError

if TYPE_CHECKING:
    from pathlib import Path

    from pubsniff.config.logging import PubsniffLogger
    from pubsniff.config.types import TomlTable, TomlTableList

logger: PubsniffLogger = get_logger(__name__)


# --- Loading ---


def load_toml_dict(path: Path) -> TomlTable:
    """Load and parse a TOML file from the filesystem.

    Args:
        path (Path): Path to a TOML document (``pubsniff.toml`` or ``pyproject.toml``).

    Returns:
        TomlTable: The parsed TOML content.

    Notes:
        - Errors are logged and an empty dict is returned on failure.
        - Encoding is assumed to be UTF-8.
    """
    try:
        text: str = path.read_text(encoding="utf-8")
        doc: tomlkit.TOMLDocument = tomlkit.parse(text)
        data_any: Any = doc.unwrap()
        return cast("TomlTable", data_any) if isinstance(data_any, dict) else {}
    except OSError as e:
        logger.error("Error loading TOML from %s: %s", path, e)
        return {}
    except TomlkitParseError as e:
        logger.error("Error decoding TOML from %s: %s", path, e)
        return {}
    except (TypeError, ValueError) as e:
        logger.error("Unknown error while reading TOML from %s: %s", path, e)
        return {}


def extract_tool_table(path: Path, data: TomlTable) -> TomlTable | None:
    """Return the PubSniff table of a parsed config file.

    For ``pyproject.toml`` this is ``[tool.pubsniff]`` (None when absent);
    any other file is a PubSniff file in its entirety.
    """
    if path.name != PYPROJECT_FILE_NAME:
        return data
    tool: Any = data.get("tool", {})
    section: Any = tool.get(PYPROJECT_TOOL_TABLE) if isinstance(tool, dict) else None
    if not isinstance(section, dict):
        return None
    return cast("TomlTable", section)


# --- Typed getters ---


def get_table(table: TomlTable, key: str, *, source: str | None = None) -> TomlTable:
    """Return the sub-table ``key`` of ``table`` (empty when missing)."""
    value: Any = table.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"[{key}] must be a table, got {type(value).__name__}", source)
    return cast("TomlTable", value)


def get_table_list(table: TomlTable, key: str, *, source: str | None = None) -> TomlTableList:
    """Return the array of tables ``key`` of ``table`` (empty when missing)."""
    value: Any = table.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, dict) for v in value):
        raise ConfigError(f"[[{key}]] must be an array of tables", source)
    return cast("TomlTableList", value)


def get_bool_or_none(table: TomlTable, key: str, *, source: str | None = None) -> bool | None:
    """Return the boolean ``key`` of ``table``, or None when unset."""
    value: Any = table.get(key)
    if value is None or isinstance(value, bool):
        return value
    raise ConfigError(f"{key!r} must be a boolean, got {value!r}", source)


def get_int_or_none(table: TomlTable, key: str, *, source: str | None = None) -> int | None:
    """Return the integer ``key`` of ``table``, or None when unset."""
    value: Any = table.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{key!r} must be an integer, got {value!r}", source)
    return value


def get_float_or_none(table: TomlTable, key: str, *, source: str | None = None) -> float | None:
    """Return the number ``key`` of ``table`` as a float, or None when unset."""
    value: Any = table.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{key!r} must be a number, got {value!r}", source)
    return float(value)


def get_string_or_none(table: TomlTable, key: str, *, source: str | None = None) -> str | None:
    """Return the string ``key`` of ``table``, or None when unset."""
    value: Any = table.get(key)
    if value is None or isinstance(value, str):
        return value
    raise ConfigError(f"{key!r} must be a string, got {value!r}", source)


def get_string_list(table: TomlTable, key: str, *, source: str | None = None) -> list[str]:
    """Return the string array ``key`` of ``table``; a lone string counts as one item."""
    value: Any = table.get(key)
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return list(cast("list[str]", value))
    raise ConfigError(f"{key!r} must be a string or an array of strings", source)


# --- Rendering ---


def _strip_none_for_toml(value: object) -> object:
    """Remove `None` from mappings and lists; TOML has no null."""
    if isinstance(value, Mapping):
        m: Mapping[object, object] = cast("Mapping[object, object]", value)
        return {str(k): _strip_none_for_toml(v) for k, v in m.items() if v is not None}
    if isinstance(value, list):
        seq: list[object] = cast("list[object]", value)
        return [_strip_none_for_toml(v) for v in seq if v is not None]
    return value


def to_toml(toml_dict: TomlTable) -> str:
    """Serialize a TOML mapping to a string.

    Args:
        toml_dict (TomlTable): TOML mapping to render; None values are omitted.

    Returns:
        str: The rendered TOML document.
    """
    cleaned: Any = _strip_none_for_toml(toml_dict)
    return cast("str", cast("Any", tomlkit).dumps(cast("Mapping[str, Any]", cleaned)))

# topmark:header:start
#
#   project      : PubSniff
#   file         : test_discovery.py
#   file_relpath : tests/config/test_discovery.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Tests for upward config discovery and layered loading."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from pubsniff.config.model import Config, MutableConfig
from pubsniff.errors import ConfigError

if TYPE_CHECKING:
    from pathlib import Path


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_discovery_orders_root_most_first(tmp_path: Path) -> None:
    """It should list outer directories first and pyproject before pubsniff.toml."""
    top: Path = tmp_path.resolve() / "top"
    outer = _write(top / "pubsniff.toml", "root = true\n[sniffing]\nprefix_length = 100\n")
    pyproject = _write(
        top / "inner" / "pyproject.toml",
        "[tool.pubsniff.sniffing]\nlight_only = true\n",
    )
    inner = _write(top / "inner" / "pubsniff.toml", "[sniffing]\nprefix_length = 200\n")
    start: Path = top / "inner" / "deeper"
    start.mkdir()

    assert MutableConfig.discover_local_config_files(start) == [outer, pyproject, inner]

    config: Config = MutableConfig.load_merged(start=start).freeze()
    assert config.prefix_length == 200
    assert config.light_only is True
    assert config.config_files == (outer, pyproject, inner)


def test_root_true_stops_the_walk(tmp_path: Path) -> None:
    """It should not look above a directory whose config sets root = true."""
    top: Path = tmp_path.resolve()
    _write(top / "pubsniff.toml", "[sniffing]\nprefix_length = 100\n")
    stop = _write(top / "proj" / "pubsniff.toml", "root = true\n")
    assert MutableConfig.discover_local_config_files(top / "proj") == [stop]


def test_pyproject_without_tool_table_is_skipped(tmp_path: Path) -> None:
    """It should ignore a pyproject.toml that has no [tool.pubsniff] table."""
    proj: Path = tmp_path.resolve() / "proj"
    _write(proj / "pyproject.toml", '[project]\nname = "x"\n')
    own = _write(proj / "pubsniff.toml", "root = true\n")
    assert MutableConfig.discover_local_config_files(proj) == [own]


def test_discovery_from_a_file_starts_at_its_directory(tmp_path: Path) -> None:
    """It should start from the parent directory when given a file."""
    proj: Path = tmp_path.resolve() / "proj"
    own = _write(proj / "pubsniff.toml", "root = true\n")
    book = _write(proj / "book.epub", "")
    assert MutableConfig.discover_local_config_files(book) == [own]


def test_extra_files_win_and_must_exist(tmp_path: Path) -> None:
    """It should merge explicit files last and reject missing ones."""
    proj: Path = tmp_path.resolve() / "proj"
    _write(proj / "pubsniff.toml", "root = true\n[remote]\ntimeout = 5\n")
    extra = _write(tmp_path / "extra.toml", "[remote]\ntimeout = 9\n")
    config: Config = MutableConfig.load_merged(start=proj, extra_config_files=[extra]).freeze()
    assert config.timeout == 9.0

    with pytest.raises(ConfigError, match="not found"):
        MutableConfig.load_merged(start=proj, extra_config_files=[tmp_path / "nope.toml"])


def test_no_config_skips_discovery(tmp_path: Path) -> None:
    """It should only use the defaults and explicit files when discovery is off."""
    proj: Path = tmp_path.resolve() / "proj"
    _write(proj / "pubsniff.toml", "root = true\n[remote]\ntimeout = 5\n")
    assert MutableConfig.load_merged(start=proj, no_config=True).freeze() == Config()


def test_invalid_file_raises_config_error(tmp_path: Path) -> None:
    """It should surface a type mismatch in a discovered file."""
    proj: Path = tmp_path.resolve() / "proj"
    _write(proj / "pubsniff.toml", 'root = true\n[sniffing]\nprefix_length = "big"\n')
    with pytest.raises(ConfigError):
        MutableConfig.load_merged(start=proj)

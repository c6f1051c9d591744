# topmark:header:start
#
#   project      : PubSniff
#   file         : test_cli_commands.py
#   file_relpath : tests/cli/test_cli_commands.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Tests for the `formats`, `links`, `dump-config` and `version` commands and group options."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import tomlkit

from pubsniff.constants import DEFAULT_HTTP_TIMEOUT, PUBSNIFF_VERSION
from pubsniff.format.formats import KNOWN_FORMATS
from tests.cli.conftest import (
    assert_CONFIG_ERROR,
    assert_SUCCESS,
    assert_USAGE_ERROR,
    run_cli,
    run_cli_in,
)
from tests.conftest import PDF_BYTES, PNG_BYTES, epub_bytes

if TYPE_CHECKING:
    from pathlib import Path

    from click.testing import Result


def test_bare_group_prints_help() -> None:
    """It should print a hint and the help text when no command is given."""
    result: Result = run_cli([])
    assert_SUCCESS(result)
    assert "pubsniff sniff TARGET" in result.output
    assert "Commands:" in result.output


def test_verbose_and_quiet_are_exclusive() -> None:
    """It should refuse -v together with -q."""
    assert_USAGE_ERROR(run_cli(["-v", "-q", "version"]))


def test_version() -> None:
    """It should print the installed version, plainly or as JSON."""
    plain: Result = run_cli(["--no-color", "version"])
    assert_SUCCESS(plain)
    assert plain.output.strip() == PUBSNIFF_VERSION
    machine: Result = run_cli(["version", "--format", "json"])
    assert json.loads(machine.output) == {"version": PUBSNIFF_VERSION}


def test_formats_lists_builtin_and_configured(isolation: Path) -> None:
    """It should list well-known formats first, then the configured ones."""
    (isolation / "pubsniff.toml").write_text(
        "root = true\n"
        "[[formats]]\n"
        'name = "Mobipocket"\n'
        'media_type = "application/x-mobipocket-ebook"\n'
        'extension = "mobi"\n',
        encoding="utf-8",
    )
    result: Result = run_cli_in(isolation, ["formats", "--format", "json"])
    assert_SUCCESS(result)
    items: list[dict[str, Any]] = json.loads(result.output)
    assert len(items) == len(KNOWN_FORMATS) + 1
    assert {item["source"] for item in items[:-1]} == {"builtin"}
    assert items[-1] == {
        "name": "Mobipocket",
        "media_type": "application/x-mobipocket-ebook",
        "file_extension": "mobi",
        "source": "config",
    }

    text: Result = run_cli_in(isolation, ["--no-color", "formats"])
    assert_SUCCESS(text)
    assert len(text.output.splitlines()) == len(KNOWN_FORMATS) + 1


def test_formats_reports_invalid_config(isolation: Path) -> None:
    """It should exit with CONFIG_ERROR when a config file is invalid."""
    (isolation / "pubsniff.toml").write_text(
        'root = true\n[sniffing]\nprefix_length = "big"\n', encoding="utf-8"
    )
    assert_CONFIG_ERROR(run_cli_in(isolation, ["formats"]))


def test_links_in_a_directory(isolation: Path) -> None:
    """It should list the files of a directory, sorted, with guessed media types."""
    pub: Path = isolation / "pub"
    (pub / "images").mkdir(parents=True)
    (pub / "images" / "cover.png").write_bytes(PNG_BYTES)
    (pub / "doc.pdf").write_bytes(PDF_BYTES)
    result: Result = run_cli_in(isolation, ["links", "--format", "json", "pub"])
    assert_SUCCESS(result)
    assert json.loads(result.output) == [
        {"href": "/doc.pdf", "type": "application/pdf"},
        {"href": "/images/cover.png", "type": "image/png"},
    ]


def test_links_in_an_archive_with_sniffing(isolation: Path) -> None:
    """It should list archive entries in order and sniff each one on request."""
    (isolation / "book.epub").write_bytes(epub_bytes())
    result: Result = run_cli_in(isolation, ["links", "--sniff", "--format", "ndjson", "book.epub"])
    assert_SUCCESS(result)
    items: list[dict[str, Any]] = [json.loads(line) for line in result.output.splitlines()]
    assert [item["href"] for item in items] == [
        "/mimetype",
        "/META-INF/container.xml",
        "/OEBPS/chapter1.xhtml",
    ]
    assert all("format" in item for item in items)
    assert items[2]["format"]["name"] == "XHTML"


def test_links_refuses_plain_files(isolation: Path) -> None:
    """It should only accept directories and ZIP archives."""
    (isolation / "doc.pdf").write_bytes(PDF_BYTES)
    assert_USAGE_ERROR(run_cli_in(isolation, ["links", "doc.pdf"]))


def test_dump_config(isolation: Path) -> None:
    """It should dump the merged configuration between markers."""
    (isolation / "pubsniff.toml").write_text(
        "root = true\n[sniffing]\nprefix_length = 512\n", encoding="utf-8"
    )
    result: Result = run_cli_in(isolation, ["dump-config"])
    assert_SUCCESS(result)
    lines: list[str] = result.output.splitlines()
    begin: int = lines.index("# === BEGIN ===")
    end: int = lines.index("# === END ===")
    dumped: Any = tomlkit.parse("\n".join(lines[begin + 1 : end])).unwrap()
    assert dumped["sniffing"]["prefix_length"] == 512

    verbose: Result = run_cli_in(isolation, ["--no-color", "-v", "dump-config"])
    assert_SUCCESS(verbose)
    assert f"# merged: {isolation.resolve() / 'pubsniff.toml'}" in verbose.output


def test_dump_config_with_explicit_files(isolation: Path, tmp_path: Path) -> None:
    """It should merge --config files after discovered ones and honor --no-config."""
    (isolation / "pubsniff.toml").write_text(
        "root = true\n[remote]\ntimeout = 5\n", encoding="utf-8"
    )
    extra: Path = tmp_path / "extra.toml"
    extra.write_text("[remote]\ntimeout = 7\n", encoding="utf-8")

    def timeout_of(result: Result) -> float:
        assert_SUCCESS(result)
        lines: list[str] = result.output.splitlines()
        begin: int = lines.index("# === BEGIN ===")
        body: str = "\n".join(lines[begin + 1 : lines.index("# === END ===")])
        return float(tomlkit.parse(body).unwrap()["remote"]["timeout"])

    assert timeout_of(run_cli_in(isolation, ["dump-config"])) == 5.0
    assert timeout_of(run_cli_in(isolation, ["-c", str(extra), "dump-config"])) == 7.0
    assert timeout_of(run_cli_in(isolation, ["--no-config", "dump-config"])) == DEFAULT_HTTP_TIMEOUT
    assert_CONFIG_ERROR(run_cli_in(isolation, ["-c", "missing.toml", "dump-config"]))

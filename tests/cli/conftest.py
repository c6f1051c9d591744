# topmark:header:start
#
#   project      : PubSniff
#   file         : conftest.py
#   file_relpath : tests/cli/conftest.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""CLI test helpers for running PubSniff in a controlled working directory.

`run_cli_in()` changes the process working directory to the given path before
invoking the Click CLI, so relative targets and config discovery resolve
against the temporary test directory.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Iterator, Sequence

import pytest
from click.testing import CliRunner, Result

from pubsniff.cli.exit_codes import ExitCode
from pubsniff.cli.main import cli
from pubsniff.config import logging

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture(autouse=True)
def restore_test_logging() -> Iterator[None]:
    """Reinstall the test logging setup after the CLI reconfigured the root logger."""
    yield
    logging.setup_logging(level=logging.TRACE_LEVEL)


def run_cli_in(tmp_path: Path, argv: str | Sequence[str] | None) -> Result:
    """Invoke the CLI with `tmp_path` as the working directory.

    Args:
        tmp_path (Path): Directory used as the CWD for the command invocation.
        argv (str | Sequence[str] | None): CLI argument vector, e.g. ``["sniff", "book.epub"]``.

    Returns:
        Result: The `click.testing.Result` produced by `click.testing.CliRunner.invoke`.
    """
    runner = CliRunner()
    cwd: str = os.getcwd()
    try:
        os.chdir(tmp_path)
        return runner.invoke(cli, argv, obj={})
    finally:
        os.chdir(cwd)


def run_cli(argv: str | Sequence[str] | None) -> Result:
    """Invoke the CLI without changing the working directory.

    Use this helper when the test does not depend on files created in a
    temporary directory, or when all provided paths are absolute.

    Args:
        argv (str | Sequence[str] | None): CLI argument vector, e.g. ``["--help"]``.

    Returns:
        Result: The `click.testing.Result` produced by `click.testing.CliRunner.invoke`.
    """
    return CliRunner().invoke(cli, argv, obj={})


def assert_SUCCESS(result: Result) -> None:
    """Assert that the command exited successfully (code 0)."""
    assert result.exit_code == ExitCode.SUCCESS, result.output


def assert_USAGE_ERROR(result: Result) -> None:
    """Assert that the command exited with USAGE_ERROR (code 2)."""
    assert result.exit_code == ExitCode.USAGE_ERROR, result.output


def assert_CONFIG_ERROR(result: Result) -> None:
    """Assert that the command exited with CONFIG_ERROR (code 3)."""
    assert result.exit_code == ExitCode.CONFIG_ERROR, result.output


def assert_UNRESOLVED(result: Result) -> None:
    """Assert that the command exited with UNRESOLVED (code 4).

    UNRESOLVED is a normal outcome, reported through ``ctx.exit``.
    """
    assert result.exit_code == ExitCode.UNRESOLVED, result.output

# topmark:header:start
#
#   project      : PubSniff
#   file         : options.py
#   file_relpath : src/pubsniff/cli/options.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Common CLI option utilities.

This module centralizes reusable options (verbosity, color, config, output
format) and their resolution logic, so the group and commands stay thin.
"""

from __future__ import annotations

import logging
import os
import sys
from enum import Enum
from typing import Callable, TypeVar

import click

from pubsniff.cli.cli_types import EnumChoiceParam, OutputFormat
from pubsniff.cli.errors import PubsniffUsageError
from pubsniff.config.logging import TRACE_LEVEL, get_logger

F = TypeVar("F", bound=Callable[..., object])

logger = get_logger(__name__)


def resolve_verbosity(verbose_count: int, quiet_count: int) -> int:
    """Resolve the logging level requested with ``-v`` / ``-q``.

    Three or more ``-v`` select TRACE, two DEBUG, one INFO; any ``-q`` selects
    ERROR. The default is WARNING.

    Args:
        verbose_count (int): Number of ``-v`` flags.
        quiet_count (int): Number of ``-q`` flags.

    Returns:
        int: The logging level.

    Raises:
        PubsniffUsageError: If both flags are used.
    """
    if verbose_count > 0 and quiet_count > 0:
        raise PubsniffUsageError("The '--verbose' and '--quiet' options are mutually exclusive.")
    if verbose_count >= 3:
        return TRACE_LEVEL
    if verbose_count == 2:
        return logging.DEBUG
    if verbose_count == 1:
        return logging.INFO
    if quiet_count >= 1:
        return logging.ERROR
    return logging.WARNING


class ColorMode(str, Enum):
    """User intent for colorized terminal output."""

    AUTO = "auto"
    ALWAYS = "always"
    NEVER = "never"


def resolve_color_mode(
    *,
    cli_mode: ColorMode | None,
    output_format: OutputFormat | None = None,
    stdout_isatty: bool | None = None,
) -> bool:
    """Determine whether color output should be enabled.

    Machine output formats never get color. Otherwise an explicit ``--color``
    wins, then ``FORCE_COLOR`` and ``NO_COLOR``, then whether stdout is a TTY.

    Args:
        cli_mode (ColorMode | None): Explicit color mode from the CLI.
        output_format (OutputFormat | None): Output format of the command.
        stdout_isatty (bool | None): Whether stdout is a TTY; auto-detected if None.

    Returns:
        bool: True if color output should be enabled.
    """
    if output_format is not None and output_format.is_machine:
        return False
    if cli_mode == ColorMode.ALWAYS:
        return True
    if cli_mode == ColorMode.NEVER:
        return False
    force_color: str | None = os.getenv("FORCE_COLOR")
    if force_color and force_color != "0":
        return True
    if os.getenv("NO_COLOR") is not None:
        return False
    if stdout_isatty is None:
        try:
            stdout_isatty = sys.stdout.isatty()
        except (AttributeError, ValueError):
            stdout_isatty = False
    return bool(stdout_isatty)


def common_verbose_options(f: F) -> F:
    """Add the counting ``-v/--verbose`` and ``-q/--quiet`` options."""
    f = click.option(
        "-v",
        "--verbose",
        count=True,
        help="Increase log verbosity (-v info, -vv debug, -vvv trace).",
    )(f)
    f = click.option(
        "-q",
        "--quiet",
        count=True,
        help="Only log errors.",
    )(f)
    return f


def common_color_options(f: F) -> F:
    """Add ``--color`` (auto, always, never) and ``--no-color``."""
    f = click.option(
        "--color",
        "color_mode",
        type=EnumChoiceParam(ColorMode),
        default=None,
        help="Color output: auto (default), always, or never.",
    )(f)
    f = click.option(
        "--no-color",
        "no_color",
        is_flag=True,
        help="Disable color output (equivalent to --color=never).",
    )(f)
    return f


def common_config_options(f: F) -> F:
    """Add ``--config`` (repeatable) and ``--no-config``."""
    f = click.option(
        "--config",
        "-c",
        "config_paths",
        multiple=True,
        type=click.Path(dir_okay=False, path_type=str),
        help="Additional config file(s) merged after discovered ones (repeatable).",
    )(f)
    f = click.option(
        "--no-config",
        "no_config",
        is_flag=True,
        help="Do not discover pubsniff.toml / pyproject.toml from the working directory.",
    )(f)
    return f


def output_format_option(f: F) -> F:
    """Add ``--format`` selecting an `OutputFormat`."""
    return click.option(
        "--format",
        "output_format",
        type=EnumChoiceParam(OutputFormat),
        default=None,
        help=f"Output format ({', '.join(v.value for v in OutputFormat)}).",
    )(f)

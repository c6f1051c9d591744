# topmark:header:start
#
#   project      : PubSniff
#   file         : version.py
#   file_relpath : src/pubsniff/cli/commands/version.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""PubSniff `version` command.

Prints the PubSniff version as installed in the active Python environment.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import click

from pubsniff.cli.cli_types import OutputFormat
from pubsniff.cli.cmd_common import get_console, get_effective_verbosity
from pubsniff.cli.options import output_format_option
from pubsniff.constants import PUBSNIFF_VERSION

if TYPE_CHECKING:
    from pubsniff.cli.console import ClickConsole


@click.command(
    name="version",
    help="Show the current version of PubSniff.",
)
@output_format_option
@click.pass_context
def version_command(ctx: click.Context, *, output_format: OutputFormat | None = None) -> None:
    """Show the current version of PubSniff."""
    console: ClickConsole = get_console(ctx)
    fmt: OutputFormat = output_format or OutputFormat.DEFAULT

    if fmt.is_machine:
        console.print(json.dumps({"version": PUBSNIFF_VERSION}))
    elif fmt is OutputFormat.MARKDOWN:
        console.print("# PubSniff Version\n")
        console.print(f"**PubSniff version: {PUBSNIFF_VERSION}**")
    elif get_effective_verbosity(ctx) > 0:
        console.print(console.styled("PubSniff version:\n", bold=True, underline=True))
        console.print(f"    {console.styled(PUBSNIFF_VERSION, bold=True)}")
    else:
        console.print(console.styled(PUBSNIFF_VERSION, bold=True))

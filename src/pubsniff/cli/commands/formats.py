# topmark:header:start
#
#   project      : PubSniff
#   file         : formats.py
#   file_relpath : src/pubsniff/cli/commands/formats.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""PubSniff `formats` command.

Lists the well-known formats, followed by the custom formats declared in the
effective configuration.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import click

from pubsniff.cli.cli_types import OutputFormat
from pubsniff.cli.cmd_common import get_console, get_effective_verbosity, resolve_config
from pubsniff.cli.options import output_format_option
from pubsniff.format.formats import KNOWN_FORMATS

if TYPE_CHECKING:
    from pubsniff.cli.console import ClickConsole
    from pubsniff.config.model import Config
    from pubsniff.format.base import Format


@click.command(
    name="formats",
    help="List the formats PubSniff recognizes.",
)
@output_format_option
@click.pass_context
def formats_command(ctx: click.Context, *, output_format: OutputFormat | None) -> None:
    """List the formats PubSniff recognizes."""
    console: ClickConsole = get_console(ctx)
    config: Config = resolve_config(ctx)

    rows: list[tuple[Format, str]] = [(f, "builtin") for f in KNOWN_FORMATS]
    rows.extend((cf.format, "config") for cf in config.formats)

    fmt: OutputFormat = output_format or OutputFormat.DEFAULT
    if fmt.is_machine:
        items: list[dict[str, Any]] = [{**f.to_dict(), "source": src} for f, src in rows]
        if fmt is OutputFormat.JSON:
            console.print(json.dumps(items, indent=2))
        else:
            for item in items:
                console.print(json.dumps(item))
        return

    if fmt is OutputFormat.MARKDOWN:
        console.print("# Formats\n")
        console.print("| Name | Media type | Extension | Source |")
        console.print("|---|---|---|---|")
        for f, src in rows:
            console.print(f"| {f.name} | `{f.media_type}` | `{f.file_extension}` | {src} |")
        return

    verbose: bool = get_effective_verbosity(ctx) > 0
    width: int = max(len(f.name) for f, _ in rows)
    for f, src in rows:
        line: str = f"{console.styled(f.name.ljust(width), bold=True)}  {f.media_type}"
        if verbose:
            line += f"  .{f.file_extension}  [{src}]"
        console.print(line)

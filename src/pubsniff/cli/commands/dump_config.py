# topmark:header:start
#
#   project      : PubSniff
#   file         : dump_config.py
#   file_relpath : src/pubsniff/cli/commands/dump_config.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""PubSniff `dump-config` command.

Emits the effective configuration as TOML after applying defaults and config
files. The output is wrapped between ``# === BEGIN ===`` and ``# === END ===``
markers for easy parsing in tests or tooling.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from pubsniff.cli.cmd_common import get_console, get_effective_verbosity, resolve_config
from pubsniff.config.io import to_toml

if TYPE_CHECKING:
    from pubsniff.cli.console import ClickConsole
    from pubsniff.config.model import Config


@click.command(
    name="dump-config",
    help="Dump the final merged configuration as TOML.",
)
@click.pass_context
def dump_config_command(ctx: click.Context) -> None:
    """Dump the final merged configuration as TOML."""
    console: ClickConsole = get_console(ctx)
    config: Config = resolve_config(ctx)
    if get_effective_verbosity(ctx) > 0:
        for path in config.config_files:
            console.print(console.styled(f"# merged: {path}", dim=True))
    console.print("# === BEGIN ===")
    console.print(to_toml(config.to_toml_dict()).rstrip("\n"))
    console.print("# === END ===")

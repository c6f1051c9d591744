# topmark:header:start
#
#   project      : PubSniff
#   file         : main.py
#   file_relpath : src/pubsniff/cli/main.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""PubSniff command line entry point.

Group-level options (verbosity, color, configuration files) are resolved once
and stored in ``ctx.obj`` for the subcommands.
"""

from __future__ import annotations

import click

from pubsniff.cli.commands.dump_config import dump_config_command
from pubsniff.cli.commands.formats import formats_command
from pubsniff.cli.commands.links import links_command
from pubsniff.cli.commands.sniff import sniff_command
from pubsniff.cli.commands.version import version_command
from pubsniff.cli.console import ClickConsole
from pubsniff.cli.options import (
    ColorMode,
    common_color_options,
    common_config_options,
    common_verbose_options,
    resolve_color_mode,
    resolve_verbosity,
)
from pubsniff.config.logging import get_logger, resolve_env_log_level, setup_logging

logger = get_logger(__name__)


def init_common_state(
    ctx: click.Context,
    *,
    verbose: int,
    quiet: int,
    color_mode: ColorMode | None,
    no_color: bool,
    config_paths: tuple[str, ...],
    no_config: bool,
) -> None:
    """Initialize shared state (logging, color, config sources) on the Click context.

    ``PUBSNIFF_LOG_LEVEL`` takes precedence over ``-v`` / ``-q`` for the log level.

    Args:
        ctx (click.Context): Current Click context; will have ``obj`` and ``color`` set.
        verbose (int): Count of ``-v`` flags.
        quiet (int): Count of ``-q`` flags.
        color_mode (ColorMode | None): Explicit color mode from ``--color``.
        no_color (bool): Whether ``--no-color`` was passed; forces color off.
        config_paths (tuple[str, ...]): Extra config files from ``--config``.
        no_config (bool): Whether ``--no-config`` was passed.
    """
    ctx.ensure_object(dict)

    cli_level: int = resolve_verbosity(verbose, quiet)
    env_level: int | None = resolve_env_log_level()
    log_level: int | None = env_level
    if log_level is None and (verbose or quiet):
        log_level = cli_level
    setup_logging(level=log_level)
    ctx.obj["log_level"] = log_level
    ctx.obj["verbosity_level"] = verbose

    effective_mode: ColorMode = ColorMode.NEVER if no_color else (color_mode or ColorMode.AUTO)
    enable_color: bool = resolve_color_mode(cli_mode=effective_mode)
    ctx.obj["color_enabled"] = enable_color
    ctx.color = enable_color
    ctx.obj["console"] = ClickConsole(enable_color=enable_color)

    ctx.obj["config_paths"] = tuple(config_paths)
    ctx.obj["no_config"] = no_config


@click.group(
    cls=click.Group,
    context_settings={"help_option_names": ["-h", "--help"]},
    invoke_without_command=True,
    help="Identify the format of publications and their resources.",
)
@common_verbose_options
@common_color_options
@common_config_options
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: int,
    quiet: int,
    color_mode: ColorMode | None,
    no_color: bool,
    config_paths: tuple[str, ...],
    no_config: bool,
) -> None:
    """Entry point for the PubSniff CLI."""
    init_common_state(
        ctx,
        verbose=verbose,
        quiet=quiet,
        color_mode=color_mode,
        no_color=no_color,
        config_paths=config_paths,
        no_config=no_config,
    )
    if ctx.invoked_subcommand is None:
        console: ClickConsole = ctx.obj["console"]
        console.print("Hint: use 'pubsniff sniff TARGET...' to identify files or URLs.")
        console.print()
        console.print(ctx.get_help())


cli.add_command(sniff_command)

cli.add_command(formats_command)

cli.add_command(links_command)

cli.add_command(dump_config_command)

cli.add_command(version_command)

if __name__ == "__main__":
    cli()

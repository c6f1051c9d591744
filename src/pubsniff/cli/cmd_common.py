# topmark:header:start
#
#   project      : PubSniff
#   file         : cmd_common.py
#   file_relpath : src/pubsniff/cli/cmd_common.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Common command utilities for Click-based commands.

Small helpers shared by several commands: fetching the console and the
verbosity from the Click context, resolving the effective configuration, and
running a coroutine from a synchronous command body.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING, Any, TypeVar

import click

from pubsniff.cli.console import ClickConsole
from pubsniff.cli.errors import PubsniffConfigError
from pubsniff.config.logging import get_logger
from pubsniff.config.model import MutableConfig
from pubsniff.errors import ConfigError

if TYPE_CHECKING:
    from collections.abc import Coroutine, Mapping

    from pubsniff.config.logging import PubsniffLogger
    from pubsniff.config.model import Config

T = TypeVar("T")

logger: PubsniffLogger = get_logger(__name__)


def get_console(ctx: click.Context) -> ClickConsole:
    """Return the console stored on the context, creating a plain one if missing."""
    ctx.ensure_object(dict)
    console: ClickConsole | None = ctx.obj.get("console")
    if console is None:
        console = ClickConsole(enable_color=False)
        ctx.obj["console"] = console
    return console


def get_effective_verbosity(ctx: click.Context) -> int:
    """Return the program-output verbosity (number of ``-v`` flags, 0 when terse)."""
    ctx.ensure_object(dict)
    return int(ctx.obj.get("verbosity_level", 0))


def resolve_config(ctx: click.Context, overrides: Mapping[str, Any] | None = None) -> Config:
    """Build the effective configuration for a command.

    Layers: runtime defaults, discovered config files (unless ``--no-config``),
    ``--config`` files, then ``overrides`` from command options.

    Raises:
        PubsniffConfigError: If a config file is invalid or missing.
    """
    ctx.ensure_object(dict)
    try:
        draft: MutableConfig = MutableConfig.load_merged(
            extra_config_files=[Path(p) for p in ctx.obj.get("config_paths", ())],
            no_config=bool(ctx.obj.get("no_config", False)),
        )
        draft.apply_overrides(overrides or {})
        config: Config = draft.freeze()
    except ConfigError as exc:
        raise PubsniffConfigError(str(exc)) from exc
    logger.debug("Effective config: %s", config)
    return config


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Run ``coro`` to completion on a fresh event loop."""
    return asyncio.run(coro)

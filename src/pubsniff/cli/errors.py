# topmark:header:start
#
#   project      : PubSniff
#   file         : errors.py
#   file_relpath : src/pubsniff/cli/errors.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Exceptions for the PubSniff CLI.

Raise these in commands to stop with a standardized message and exit code.
They print through the project console when one is present in the Click
context, and fall back to Click's default display otherwise.
"""

from __future__ import annotations

from typing import IO, Any

import click

from pubsniff.cli.exit_codes import ExitCode


class PubsniffError(click.ClickException):
    """Base class for all PubSniff CLI errors."""

    exit_code = ExitCode.FAILURE

    def format_message(self) -> str:
        """Return the plain error message text (colorized in `show`)."""
        return str(getattr(self, "message", ""))

    def show(self, file: IO[Any] | None = None) -> None:
        """Display the error using the project console if available."""
        ctx: click.Context | None = click.get_current_context(silent=True)
        if ctx is not None and isinstance(ctx.obj, dict):
            console = ctx.obj.get("console")
            if console is not None:
                console.error(self.format_message())
                return
        super().show(file)


class PubsniffUsageError(PubsniffError):
    """Error for command-line invocation errors (invalid flags/args)."""

    exit_code = ExitCode.USAGE_ERROR


class PubsniffConfigError(PubsniffError):
    """Error for configuration errors (missing/invalid/malformed config)."""

    exit_code = ExitCode.CONFIG_ERROR

# topmark:header:start
#
#   project      : PubSniff
#   file         : sniff.py
#   file_relpath : src/pubsniff/cli/commands/sniff.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""PubSniff `sniff` command.

Resolves the format of each TARGET, which is either a local path or a URI
(``file:``, ``data:``, ``http:`` or ``https:``). Targets are sniffed
concurrently and reported in the order given. The command exits with
`ExitCode.UNRESOLVED` when at least one target could not be identified.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit

import click

from pubsniff.cli.cli_types import OutputFormat
from pubsniff.cli.cmd_common import get_console, resolve_config, run_async
from pubsniff.cli.errors import PubsniffUsageError
from pubsniff.cli.exit_codes import ExitCode
from pubsniff.cli.options import output_format_option
from pubsniff.config.logging import get_logger
from pubsniff.errors import InvalidMediaType
from pubsniff.mediatype import MediaType
from pubsniff.sniffer.pipeline import of_file, of_uri

if TYPE_CHECKING:
    from collections.abc import Sequence

    from pubsniff.cli.console import ClickConsole
    from pubsniff.config.logging import PubsniffLogger
    from pubsniff.config.model import Config
    from pubsniff.format.base import Format
    from pubsniff.sniffer.resolvers import SchemeUriResolver

logger: PubsniffLogger = get_logger(__name__)


@dataclass(frozen=True)
class SniffResult:
    """Outcome of sniffing one target."""

    target: str
    format: Format | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly representation."""
        data: dict[str, Any] = {"target": self.target}
        data.update(self.format.to_dict() if self.format else {"name": None, "media_type": None})
        if self.error:
            data["error"] = self.error
        return data


def is_uri(target: str, schemes: Sequence[str]) -> bool:
    """Whether ``target`` is a URI with one of ``schemes`` (not a drive-letter path)."""
    scheme: str = urlsplit(target).scheme.lower()
    return len(scheme) > 1 and scheme in schemes


async def _sniff_one(
    target: str,
    config: Config,
    resolver: SchemeUriResolver,
    media_types: Sequence[MediaType],
    extensions: Sequence[str],
) -> SniffResult:
    sniffers = config.build_sniffers()
    fallback = config.build_registry()
    if is_uri(target, resolver.schemes):
        fmt: Format | None = await of_uri(
            target,
            resolver,
            media_types,
            extensions,
            sniffers=sniffers,
            fallback=fallback,
            light_only=config.light_only,
            prefix_length=config.prefix_length,
        )
        return SniffResult(target, fmt)

    path = Path(target)
    if not path.exists():
        return SniffResult(target, error="no such file or directory")
    if path.is_dir():
        return SniffResult(target, error="is a directory")
    fmt = await of_file(
        path,
        media_types,
        extensions,
        sniffers=sniffers,
        fallback=fallback,
        light_only=config.light_only,
        prefix_length=config.prefix_length,
    )
    return SniffResult(target, fmt)


async def sniff_targets(
    targets: Sequence[str],
    config: Config,
    media_types: Sequence[MediaType] = (),
    extensions: Sequence[str] = (),
) -> list[SniffResult]:
    """Sniff ``targets`` concurrently over one shared HTTP client.

    Args:
        targets (Sequence[str]): Paths or URIs.
        config (Config): Effective configuration.
        media_types (Sequence[MediaType]): Media type hints applied to every target.
        extensions (Sequence[str]): Extension hints applied to every target.

    Returns:
        list[SniffResult]: One result per target, in order.
    """
    async with config.build_http_client() as client:
        resolver: SchemeUriResolver = config.build_uri_resolver(client)
        return list(
            await asyncio.gather(
                *(_sniff_one(t, config, resolver, media_types, extensions) for t in targets)
            )
        )


def _render(console: ClickConsole, results: list[SniffResult], fmt: OutputFormat) -> None:
    if fmt is OutputFormat.JSON:
        console.print(json.dumps([r.to_dict() for r in results], indent=2))
    elif fmt is OutputFormat.NDJSON:
        for r in results:
            console.print(json.dumps(r.to_dict()))
    elif fmt is OutputFormat.MARKDOWN:
        console.print("| Target | Format | Media type |")
        console.print("|---|---|---|")
        for r in results:
            name: str = r.format.name if r.format else f"*{r.error or 'unknown'}*"
            media_type: str = f"`{r.format.media_type}`" if r.format else ""
            console.print(f"| `{r.target}` | {name} | {media_type} |")
    else:
        for r in results:
            if r.format is not None:
                console.print(
                    f"{r.target}: {console.styled(r.format.name, fg='green', bold=True)} "
                    f"({r.format.media_type})"
                )
            else:
                reason: str = r.error or "unknown format"
                console.print(f"{r.target}: {console.styled(reason, fg='red')}")


@click.command(
    name="sniff",
    help="Identify the format of files and URLs.",
)
@click.argument("targets", nargs=-1, required=True)
@click.option(
    "-t",
    "--media-type",
    "media_types",
    multiple=True,
    help="Media type hint, most specific first (repeatable).",
)
@click.option(
    "-e",
    "--extension",
    "extensions",
    multiple=True,
    help="File extension hint, most specific first (repeatable).",
)
@click.option(
    "--light/--no-light",
    "light_only",
    default=None,
    help="Only use hints and cheap checks; never inspect content in depth.",
)
@output_format_option
@click.pass_context
def sniff_command(
    ctx: click.Context,
    *,
    targets: tuple[str, ...],
    media_types: tuple[str, ...],
    extensions: tuple[str, ...],
    light_only: bool | None,
    output_format: OutputFormat | None,
) -> None:
    """Identify the format of files and URLs."""
    console: ClickConsole = get_console(ctx)
    try:
        parsed: list[MediaType] = [MediaType.parse(m) for m in media_types]
    except InvalidMediaType as exc:
        raise PubsniffUsageError(f"--media-type: {exc}") from exc

    config: Config = resolve_config(ctx, {"light_only": light_only})
    results: list[SniffResult] = run_async(
        sniff_targets(targets, config, parsed, [e.lstrip(".") for e in extensions])
    )
    fmt: OutputFormat = output_format or OutputFormat.DEFAULT
    if fmt.is_machine:
        console.enable_color = False
    _render(console, results, fmt)

    unresolved: int = sum(1 for r in results if r.format is None)
    if unresolved:
        logger.info("%d of %d target(s) unresolved", unresolved, len(results))
        ctx.exit(ExitCode.UNRESOLVED)

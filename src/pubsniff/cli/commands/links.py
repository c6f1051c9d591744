# topmark:header:start
#
#   project      : PubSniff
#   file         : links.py
#   file_relpath : src/pubsniff/cli/commands/links.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""PubSniff `links` command.

Lists the links a fetcher exposes for a ZIP archive or a directory. With
``--sniff``, every resource is also opened and its format resolved.
"""

from __future__ import annotations

import json
import zipfile
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

from pubsniff.cli.cli_types import OutputFormat
from pubsniff.cli.cmd_common import get_console, resolve_config, run_async
from pubsniff.cli.errors import PubsniffError, PubsniffUsageError
from pubsniff.cli.options import output_format_option
from pubsniff.fetcher.archive import ArchiveFetcher
from pubsniff.fetcher.errors import ResourceError
from pubsniff.fetcher.file import FileFetcher
from pubsniff.sniffer.pipeline import of_resource

if TYPE_CHECKING:
    from pubsniff.cli.console import ClickConsole
    from pubsniff.config.model import Config
    from pubsniff.fetcher.fetcher import Fetcher
    from pubsniff.fetcher.link import Link
    from pubsniff.format.base import Format


async def open_fetcher(path: Path) -> Fetcher:
    """Return an archive fetcher for a ZIP file, a file fetcher for a directory.

    Raises:
        PubsniffUsageError: If ``path`` is neither.
    """
    if path.is_dir():
        return FileFetcher.single("/", path)
    if path.is_file() and zipfile.is_zipfile(path):
        try:
            return await ArchiveFetcher.open(path)
        except ResourceError as exc:
            raise PubsniffError(str(exc)) from exc
    raise PubsniffUsageError(f"{path}: not a directory or a ZIP archive")


async def collect_links(
    path: Path, config: Config, *, sniff: bool
) -> list[tuple[Link, Format | None]]:
    """List the links under ``path``, with their sniffed format when ``sniff`` is set."""
    async with await open_fetcher(path) as fetcher:
        rows: list[tuple[Link, Format | None]] = []
        for link in fetcher.links:
            fmt: Format | None = None
            if sniff:
                async with fetcher.get(link) as resource:
                    fmt = await of_resource(
                        resource,
                        sniffers=config.build_sniffers(),
                        fallback=config.build_registry(),
                        light_only=config.light_only,
                    )
            rows.append((link, fmt))
        return rows


@click.command(
    name="links",
    help="List the resources of a ZIP archive or a directory.",
)
@click.argument(
    "path",
    type=click.Path(exists=True, file_okay=True, dir_okay=True, path_type=Path),
)
@click.option("--sniff", is_flag=True, help="Also resolve the format of each resource.")
@output_format_option
@click.pass_context
def links_command(
    ctx: click.Context,
    *,
    path: Path,
    sniff: bool,
    output_format: OutputFormat | None,
) -> None:
    """List the resources of a ZIP archive or a directory."""
    console: ClickConsole = get_console(ctx)
    config: Config = resolve_config(ctx)
    rows: list[tuple[Link, Format | None]] = run_async(collect_links(path, config, sniff=sniff))

    fmt: OutputFormat = output_format or OutputFormat.DEFAULT
    if fmt.is_machine:
        items: list[dict[str, Any]] = []
        for link, found in rows:
            item: dict[str, Any] = link.to_dict()
            if sniff:
                item["format"] = found.to_dict() if found else None
            items.append(item)
        if fmt is OutputFormat.JSON:
            console.print(json.dumps(items, indent=2))
        else:
            for item in items:
                console.print(json.dumps(item))
        return

    if fmt is OutputFormat.MARKDOWN:
        console.print("| Href | Media type |" + (" Format |" if sniff else ""))
        console.print("|---|---|" + ("---|" if sniff else ""))
        for link, found in rows:
            cell: str = f" {found.name if found else ''} |" if sniff else ""
            console.print(f"| `{link.href}` | {link.media_type or ''} |{cell}")
        return

    for link, found in rows:
        line: str = f"{link.href}  {console.styled(link.media_type or '-', fg='cyan')}"
        if sniff:
            line += f"  {found.name if found else console.styled('unknown', fg='red')}"
        console.print(line)

# topmark:header:start
#
#   project      : PubSniff
#   file         : cli_types.py
#   file_relpath : src/pubsniff/cli/cli_types.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Shared CLI parameter types for PubSniff commands."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Generic, NoReturn, Protocol, TypeVar, cast

import click

if TYPE_CHECKING:
    from collections.abc import Iterable

    from click.shell_completion import CompletionItem as ClickCompletionItem

    class ParamTypeBase(Protocol):
        """Typed base to avoid subclassing Any when Click lacks stubs."""

        name: str

else:
    ParamTypeBase = click.ParamType  # type: ignore[assignment]

E = TypeVar("E", bound=Enum)


class OutputFormat(str, Enum):
    """Output format for CLI rendering.

    Members:
      DEFAULT: Human-friendly text output; may include ANSI color if enabled.
      JSON: A single JSON document (machine-readable).
      NDJSON: One JSON object per line (machine-readable).
      MARKDOWN: A Markdown table or document.

    Machine formats (``JSON`` and ``NDJSON``) never include ANSI color.
    """

    DEFAULT = "default"
    JSON = "json"
    NDJSON = "ndjson"
    MARKDOWN = "markdown"

    @property
    def is_machine(self) -> bool:
        """Whether the format is meant for programs rather than people."""
        return self in (OutputFormat.JSON, OutputFormat.NDJSON)


class EnumChoiceParam(ParamTypeBase, Generic[E]):
    """A Click parameter type that converts a string to a member of a given Enum."""

    enum_cls: type[E]
    name: str
    choices: list[str]

    def __init__(self, enum_cls: type[E]) -> None:
        self.enum_cls = enum_cls
        self.name = self.enum_cls.__name__.lower()
        self.choices = [cast("str", getattr(e, "value", str(e))) for e in self.enum_cls]

    def _fail_noreturn(
        self,
        message: str,
        param: click.Parameter | None,
        ctx: click.Context | None,
    ) -> NoReturn:
        raise click.BadParameter(message, param=param, ctx=ctx)

    def convert(
        self,
        value: str | E | None,
        param: click.Parameter | None,
        ctx: click.Context | None,
    ) -> E | None:
        """Convert a string (case-insensitively) to a member of the Enum."""
        if value is None or isinstance(value, self.enum_cls):
            return value
        lookup: dict[str, E] = {
            cast("str", getattr(choice, "value", str(choice))).lower(): choice
            for choice in cast("Iterable[E]", self.enum_cls)
        }
        key: str = str(value).lower()
        if key in lookup:
            return lookup[key]
        self._fail_noreturn(
            f"Invalid value '{value}'. Must be one of: {', '.join(self.choices)}",
            param,
            ctx,
        )

    def shell_complete(
        self,
        ctx: click.Context,
        param: click.Parameter,
        incomplete: str,
    ) -> list[ClickCompletionItem]:
        """Tab completion for Click.

        Bash: `eval "$(_PUBSNIFF_COMPLETE=bash_source pubsniff)"`
        """
        from click.shell_completion import CompletionItem

        return [CompletionItem(c) for c in self.choices if c.startswith(incomplete.lower())]

# topmark:header:start
#
#   project      : PubSniff
#   file         : link.py
#   file_relpath : src/pubsniff/fetcher/link.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""`Link`: the address of a resource inside a publication.

Only the parts the fetchers need are modelled: the href, the declared media
type and whether the href is a URI template. Templates support the simple
(``{var}``), reserved (``{+var}``) and query (``{?a,b}``) expressions of
RFC 6570 level 1 and 3, which is what publication feeds use in practice.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final
from urllib.parse import quote

if TYPE_CHECKING:
    from collections.abc import Mapping

HrefParameters = dict[str, str]

_EXPRESSION_RE: Final[re.Pattern[str]] = re.compile(r"\{([+?]?)([^{}]*)\}")


def _expand_expression(operator: str, names: str, parameters: Mapping[str, str]) -> str:
    variables: list[str] = [n.strip() for n in names.split(",") if n.strip()]
    if operator == "?":
        pairs: list[str] = [
            f"{quote(name, safe='')}={quote(parameters[name], safe='')}"
            for name in variables
            if name in parameters
        ]
        return "?" + "&".join(pairs) if pairs else ""
    safe: str = ":/?#[]@!$&'()*+,;=" if operator == "+" else ""
    return ",".join(quote(parameters[name], safe=safe) for name in variables if name in parameters)


@dataclass(frozen=True)
class Link:
    """Address of a resource, as found in a manifest or listed by a fetcher.

    Attributes:
        href (str): Relative or absolute reference; possibly a URI template.
        media_type (str | None): Declared media type, if any.
        templated (bool): Whether ``href`` is a URI template.
        title (str | None): Optional human-readable title.
    """

    href: str
    media_type: str | None = None
    templated: bool = False
    title: str | None = None

    def expand(self, parameters: Mapping[str, str] | None = None) -> str:
        """Return ``href`` with its template expressions expanded.

        Undefined variables expand to nothing. A non-templated link returns
        ``href`` unchanged.

        Args:
            parameters (Mapping[str, str] | None): Percent-decoded variable values.

        Returns:
            str: The expanded href.
        """
        if not self.templated:
            return self.href
        params: Mapping[str, str] = parameters or {}
        return _EXPRESSION_RE.sub(
            lambda m: _expand_expression(m.group(1), m.group(2), params), self.href
        )

    def template_parameters(self) -> tuple[str, ...]:
        """Names of the variables used by the template, in order of appearance."""
        if not self.templated:
            return ()
        names: list[str] = []
        for m in _EXPRESSION_RE.finditer(self.href):
            for name in m.group(2).split(","):
                name = name.strip()
                if name and name not in names:
                    names.append(name)
        return tuple(names)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly representation, omitting unset fields."""
        data: dict[str, Any] = {"href": self.href}
        if self.media_type is not None:
            data["type"] = self.media_type
        if self.templated:
            data["templated"] = True
        if self.title is not None:
            data["title"] = self.title
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Link:
        """Build a link from its JSON form (``href``, ``type``, ``templated``, ``title``).

        Raises:
            ValueError: If ``href`` is missing or not a string.
        """
        href: Any = data.get("href")
        if not isinstance(href, str):
            raise ValueError("link has no 'href'")
        media_type: Any = data.get("type")
        title: Any = data.get("title")
        return cls(
            href=href,
            media_type=media_type if isinstance(media_type, str) else None,
            templated=bool(data.get("templated", False)),
            title=title if isinstance(title, str) else None,
        )

# topmark:header:start
#
#   project      : PubSniff
#   file         : model.py
#   file_relpath : src/pubsniff/config/model.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Configuration model: a mutable builder and the immutable runtime `Config`.

`MutableConfig` collects values from runtime defaults, discovered config files,
explicit ``--config`` files and CLI overrides, in that order of precedence
(last wins). `MutableConfig.freeze` produces the immutable `Config` the rest of
PubSniff consumes. `Config` also knows how to build the runtime objects the
settings describe: the classifier tuple, the system fallback registry, the
HTTP client and the URI resolver.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

import httpx

from pubsniff.config.io import (
    extract_tool_table,
    get_bool_or_none,
    get_float_or_none,
    get_int_or_none,
    get_string_list,
    get_string_or_none,
    get_table,
    get_table_list,
    load_toml_dict,
)
from pubsniff.config.keys import Toml
from pubsniff.config.logging import get_logger
from pubsniff.constants import (
    CONFIG_FILE_NAME,
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_PREFIX_LENGTH,
    DEFAULT_USER_AGENT,
    PYPROJECT_FILE_NAME,
)
from pubsniff.errors import ConfigError, InvalidMediaType
from pubsniff.format.base import Format
from pubsniff.sniffer.resolvers import default_uri_resolver
from pubsniff.sniffer.sniffers import DEFAULT_SNIFFERS, hint_sniffer
from pubsniff.sniffer.system import SystemRegistry, system_registry

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from pubsniff.config.logging import PubsniffLogger
    from pubsniff.config.types import TomlTable
    from pubsniff.sniffer.resolvers import SchemeUriResolver
    from pubsniff.sniffer.sniffers import Sniffer

logger: PubsniffLogger = get_logger(__name__)


@dataclass(frozen=True)
class CustomFormat:
    """A format declared in configuration, recognized from hints only.

    Attributes:
        format (Format): The format returned on a match.
        extensions (tuple[str, ...]): Extra extensions mapping to the format.
    """

    format: Format
    extensions: tuple[str, ...] = ()

    def to_toml_dict(self) -> TomlTable:
        """Return the ``[[formats]]`` entry describing this format."""
        entry: TomlTable = {
            Toml.KEY_NAME: self.format.name,
            Toml.KEY_MEDIA_TYPE: str(self.format.media_type),
            Toml.KEY_EXTENSION: self.format.file_extension,
        }
        if self.extensions:
            entry[Toml.KEY_EXTENSIONS] = list(self.extensions)
        return entry


def _custom_format_from_toml(entry: TomlTable, source: str | None) -> CustomFormat:
    name: str | None = get_string_or_none(entry, Toml.KEY_NAME, source=source)
    raw_media_type: str | None = get_string_or_none(entry, Toml.KEY_MEDIA_TYPE, source=source)
    if not name or not raw_media_type:
        raise ConfigError(
            f"[[{Toml.SECTION_FORMATS}]] entries need a {Toml.KEY_NAME!r} "
            f"and a {Toml.KEY_MEDIA_TYPE!r}",
            source,
        )
    extension: str = get_string_or_none(entry, Toml.KEY_EXTENSION, source=source) or ""
    extras: list[str] = get_string_list(entry, Toml.KEY_EXTENSIONS, source=source)
    try:
        fmt = Format(name=name, media_type=raw_media_type, file_extension=extension)  # type: ignore[arg-type]
    except InvalidMediaType as exc:
        raise ConfigError(f"format {name!r}: {exc}", source) from exc
    return CustomFormat(fmt, tuple(e.lstrip(".").lower() for e in extras))


# ------------------ Immutable runtime config ------------------


@dataclass(frozen=True)
class Config:
    """Immutable runtime configuration.

    Produced by `MutableConfig.freeze`; every setting has a concrete value.

    Attributes:
        light_only (bool): Skip the heavy (content) round.
        prefix_length (int): Bytes read for magic-number and marker checks.
        timeout (float): HTTP timeout in seconds.
        ranged_requests (bool): Whether to request byte ranges over HTTP.
        user_agent (str): ``User-Agent`` header sent over HTTP.
        platform_files (bool): Also read the host's ``mime.types`` files.
        mime_files (tuple[Path, ...]): Additional ``mime.types`` files.
        formats (tuple[CustomFormat, ...]): Formats declared in configuration.
        config_files (tuple[Path, ...]): Config files merged into this snapshot.
    """

    light_only: bool = False
    prefix_length: int = DEFAULT_PREFIX_LENGTH
    timeout: float = DEFAULT_HTTP_TIMEOUT
    ranged_requests: bool = True
    user_agent: str = DEFAULT_USER_AGENT
    platform_files: bool = False
    mime_files: tuple[Path, ...] = ()
    formats: tuple[CustomFormat, ...] = ()
    config_files: tuple[Path, ...] = ()

    def build_sniffers(self) -> tuple[Sniffer, ...]:
        """Return the classifiers to use: configured formats first, then the defaults."""
        custom: tuple[Sniffer, ...] = tuple(
            hint_sniffer(cf.format, extensions=cf.extensions) for cf in self.formats
        )
        return custom + DEFAULT_SNIFFERS

    def build_registry(self) -> SystemRegistry:
        """Return the system fallback registry described by ``[registry]``."""
        if not self.platform_files and not self.mime_files:
            return system_registry()
        return SystemRegistry(
            platform_files=self.platform_files,
            files=[str(p) for p in self.mime_files],
        )

    def build_http_client(self) -> httpx.AsyncClient:
        """Return a new HTTP client; the caller closes it."""
        return httpx.AsyncClient(
            timeout=self.timeout,
            headers={"User-Agent": self.user_agent},
            follow_redirects=True,
        )

    def build_uri_resolver(self, client: httpx.AsyncClient | None = None) -> SchemeUriResolver:
        """Return the ``file`` / ``data`` / ``http(s)`` resolver.

        Args:
            client (httpx.AsyncClient | None): Shared client; without one, each HTTP
                operation uses a short-lived client configured from this snapshot.
        """
        return default_uri_resolver(
            client,
            timeout=self.timeout,
            ranged_requests=self.ranged_requests,
            headers={"User-Agent": self.user_agent},
        )

    def to_toml_dict(self, *, include_files: bool = False) -> TomlTable:
        """Convert this snapshot into a TOML-serializable dict.

        Args:
            include_files (bool): Also list the merged config files under a top-level
                ``config_files`` key.
        """
        toml_dict: TomlTable = {
            Toml.SECTION_SNIFFING: {
                Toml.KEY_LIGHT_ONLY: self.light_only,
                Toml.KEY_PREFIX_LENGTH: self.prefix_length,
            },
            Toml.SECTION_REMOTE: {
                Toml.KEY_TIMEOUT: self.timeout,
                Toml.KEY_RANGED_REQUESTS: self.ranged_requests,
                Toml.KEY_USER_AGENT: self.user_agent,
            },
            Toml.SECTION_REGISTRY: {
                Toml.KEY_PLATFORM_FILES: self.platform_files,
                Toml.KEY_MIME_FILES: [str(p) for p in self.mime_files],
            },
        }
        if self.formats:
            toml_dict[Toml.SECTION_FORMATS] = [cf.to_toml_dict() for cf in self.formats]
        if include_files:
            toml_dict["config_files"] = [str(p) for p in self.config_files]
        return toml_dict

    def thaw(self) -> MutableConfig:
        """Return a mutable copy of this snapshot."""
        return MutableConfig(
            light_only=self.light_only,
            prefix_length=self.prefix_length,
            timeout=self.timeout,
            ranged_requests=self.ranged_requests,
            user_agent=self.user_agent,
            platform_files=self.platform_files,
            mime_files=list(self.mime_files),
            formats=list(self.formats),
            config_files=list(self.config_files),
        )


# -------------------------- Mutable builder --------------------------


@dataclass
class MutableConfig:
    """Mutable configuration used during discovery and merging.

    Scalar settings are tri-state: None means "inherit from the layer below".
    Formats and mime files of later layers are appended to earlier ones.
    """

    light_only: bool | None = None
    prefix_length: int | None = None
    timeout: float | None = None
    ranged_requests: bool | None = None
    user_agent: str | None = None
    platform_files: bool | None = None
    mime_files: list[Path] = field(default_factory=lambda: [])
    formats: list[CustomFormat] = field(default_factory=lambda: [])
    config_files: list[Path] = field(default_factory=lambda: [])

    # ---------------------------- Build/freeze ----------------------------

    def freeze(self) -> Config:
        """Freeze this builder into a `Config`, filling unset values with defaults.

        Raises:
            ConfigError: If a numeric setting is out of range.
        """
        defaults = Config()
        prefix_length: int = (
            self.prefix_length if self.prefix_length is not None else defaults.prefix_length
        )
        if prefix_length <= 0:
            raise ConfigError(f"{Toml.KEY_PREFIX_LENGTH!r} must be positive, got {prefix_length}")
        timeout: float = self.timeout if self.timeout is not None else defaults.timeout
        if timeout <= 0:
            raise ConfigError(f"{Toml.KEY_TIMEOUT!r} must be positive, got {timeout}")

        # Later declarations of the same media type replace earlier ones.
        by_media_type: dict[Format, CustomFormat] = {}
        for cf in self.formats:
            by_media_type.pop(cf.format, None)
            by_media_type[cf.format] = cf

        return Config(
            light_only=self.light_only if self.light_only is not None else defaults.light_only,
            prefix_length=prefix_length,
            timeout=timeout,
            ranged_requests=(
                self.ranged_requests
                if self.ranged_requests is not None
                else defaults.ranged_requests
            ),
            user_agent=self.user_agent or defaults.user_agent,
            platform_files=(
                self.platform_files if self.platform_files is not None else defaults.platform_files
            ),
            mime_files=tuple(dict.fromkeys(self.mime_files)),
            formats=tuple(by_media_type.values()),
            config_files=tuple(self.config_files),
        )

    # --------------------------- Loaders/parsers --------------------------

    @classmethod
    def from_defaults(cls) -> MutableConfig:
        """Return a draft holding the runtime defaults."""
        return Config().thaw()

    @classmethod
    def from_toml_dict(cls, data: TomlTable, config_file: Path | None = None) -> MutableConfig:
        """Create a draft from a parsed PubSniff TOML table.

        Relative ``mime_files`` entries are resolved against the config file's
        directory (or the working directory when there is no file).

        Args:
            data (TomlTable): The PubSniff table.
            config_file (Path | None): The file ``data`` was read from.

        Returns:
            MutableConfig: The draft.

        Raises:
            ConfigError: If a value has the wrong type or a format is invalid.
        """
        source: str | None = str(config_file) if config_file else None

        for key in data:
            if key not in Toml.ALLOWED_TOP_LEVEL_KEYS:
                logger.warning("Ignoring unknown config key %r in %s", key, source or "<dict>")

        sniffing_tbl: TomlTable = get_table(data, Toml.SECTION_SNIFFING, source=source)
        logger.trace("TOML [sniffing]: %s", sniffing_tbl)
        remote_tbl: TomlTable = get_table(data, Toml.SECTION_REMOTE, source=source)
        logger.trace("TOML [remote]: %s", remote_tbl)
        registry_tbl: TomlTable = get_table(data, Toml.SECTION_REGISTRY, source=source)
        logger.trace("TOML [registry]: %s", registry_tbl)

        for section, tbl in (
            (Toml.SECTION_SNIFFING, sniffing_tbl),
            (Toml.SECTION_REMOTE, remote_tbl),
            (Toml.SECTION_REGISTRY, registry_tbl),
        ):
            unknown: set[str] = set(tbl) - Toml.ALLOWED_SECTION_KEYS[section]
            if unknown:
                logger.warning(
                    "Ignoring unknown keys in [%s]: %s", section, ", ".join(sorted(unknown))
                )

        base_dir: Path = config_file.parent.resolve() if config_file else Path.cwd()
        draft = cls(
            light_only=get_bool_or_none(sniffing_tbl, Toml.KEY_LIGHT_ONLY, source=source),
            prefix_length=get_int_or_none(sniffing_tbl, Toml.KEY_PREFIX_LENGTH, source=source),
            timeout=get_float_or_none(remote_tbl, Toml.KEY_TIMEOUT, source=source),
            ranged_requests=get_bool_or_none(
                remote_tbl, Toml.KEY_RANGED_REQUESTS, source=source
            ),
            user_agent=get_string_or_none(remote_tbl, Toml.KEY_USER_AGENT, source=source),
            platform_files=get_bool_or_none(
                registry_tbl, Toml.KEY_PLATFORM_FILES, source=source
            ),
            mime_files=[
                base_dir / p
                for p in get_string_list(registry_tbl, Toml.KEY_MIME_FILES, source=source)
            ],
            formats=[
                _custom_format_from_toml(entry, source)
                for entry in get_table_list(data, Toml.SECTION_FORMATS, source=source)
            ],
            config_files=[config_file] if config_file else [],
        )
        logger.debug("Generated MutableConfig: %s", draft)
        return draft

    @classmethod
    def from_toml_file(cls, path: Path) -> MutableConfig | None:
        """Load a draft from ``pubsniff.toml`` or the ``[tool.pubsniff]`` table of ``pyproject.toml``.

        Returns:
            MutableConfig | None: The draft, or None if ``pyproject.toml`` has no
                PubSniff table.

        Raises:
            ConfigError: If a value has the wrong type.
        """
        logger.debug("Creating MutableConfig from TOML config: %s", path)
        data: TomlTable | None = extract_tool_table(path, load_toml_dict(path))
        if data is None:
            logger.debug("No [tool.pubsniff] table in %s", path)
            return None
        return cls.from_toml_dict(data, config_file=path)

    @classmethod
    def discover_local_config_files(cls, start: Path) -> list[Path]:
        """Return config files found walking upward from ``start``.

        Files are ordered root-most first, nearest last. Within one directory
        ``pyproject.toml`` comes before ``pubsniff.toml``, so the latter wins
        when merged last. A config setting ``root = true`` stops the walk after
        its directory.

        Args:
            start (Path): Directory (or file) where discovery starts.

        Returns:
            list[Path]: Discovered config files, in merge order.
        """
        per_dir: list[list[Path]] = []
        cur: Path = start.resolve()
        if cur.is_file():
            cur = cur.parent

        while True:
            stop_here = False
            dir_entries: list[Path] = []
            for name in (PYPROJECT_FILE_NAME, CONFIG_FILE_NAME):
                p: Path = cur / name
                if not p.is_file():
                    continue
                table: TomlTable | None = extract_tool_table(p, load_toml_dict(p))
                if table is None:
                    continue
                dir_entries.append(p)
                logger.debug("Discovered config file: %s", p)
                if table.get(Toml.KEY_ROOT) is True:
                    stop_here = True
            if dir_entries:
                per_dir.append(dir_entries)

            parent: Path = cur.parent
            if stop_here:
                logger.debug("Stopping upward config discovery at %s due to root=true", cur)
                break
            if parent == cur:
                break
            cur = parent

        ordered: list[Path] = []
        for dir_list in reversed(per_dir):
            ordered.extend(dir_list)
        return ordered

    @classmethod
    def load_merged(
        cls,
        *,
        start: Path | None = None,
        extra_config_files: Iterable[Path] | None = None,
        no_config: bool = False,
    ) -> MutableConfig:
        """Discover and merge configuration layers into a draft.

        Merge order (lowest to highest precedence):
            1) runtime defaults
            2) config files discovered upward from ``start`` (root-most first)
            3) ``extra_config_files``, in the given order

        Args:
            start (Path | None): Discovery anchor; the working directory when None.
            extra_config_files (Iterable[Path] | None): Explicit config files.
            no_config (bool): Skip discovery.

        Returns:
            MutableConfig: The merged draft.

        Raises:
            ConfigError: If a config file holds an invalid value, or an explicit
                config file does not exist.
        """
        draft: MutableConfig = cls.from_defaults()

        if not no_config:
            for cfg_path in cls.discover_local_config_files(start or Path.cwd()):
                mc: MutableConfig | None = cls.from_toml_file(cfg_path)
                if mc is not None:
                    draft = draft.merge_with(mc)

        for extra in extra_config_files or ():
            extra_path = Path(extra)
            if not extra_path.is_file():
                raise ConfigError("config file not found", str(extra_path))
            mc = cls.from_toml_file(extra_path)
            if mc is not None:
                draft = draft.merge_with(mc)

        return draft

    # ------------------------------- Merging -------------------------------

    def merge_with(self, other: MutableConfig) -> MutableConfig:
        """Return a new draft where values set in ``other`` override this draft."""

        def pick(mine: Any, theirs: Any) -> Any:
            return theirs if theirs is not None else mine

        return MutableConfig(
            light_only=pick(self.light_only, other.light_only),
            prefix_length=pick(self.prefix_length, other.prefix_length),
            timeout=pick(self.timeout, other.timeout),
            ranged_requests=pick(self.ranged_requests, other.ranged_requests),
            user_agent=pick(self.user_agent, other.user_agent),
            platform_files=pick(self.platform_files, other.platform_files),
            mime_files=self.mime_files + other.mime_files,
            formats=self.formats + other.formats,
            config_files=self.config_files + other.config_files,
        )

    def apply_overrides(self, overrides: Mapping[str, Any]) -> MutableConfig:
        """Apply CLI overrides in place; None values are ignored.

        Args:
            overrides (Mapping[str, Any]): Setting name to value, for example
                ``{"light_only": True}``.

        Returns:
            MutableConfig: This draft, for chaining.
        """
        for name, value in overrides.items():
            if value is None:
                continue
            if name not in _OVERRIDABLE:
                raise ValueError(f"unknown config setting {name!r}")
            setattr(self, name, value)
        return self


_OVERRIDABLE: frozenset[str] = frozenset(
    {
        "light_only",
        "prefix_length",
        "timeout",
        "ranged_requests",
        "user_agent",
        "platform_files",
    }
)

"""Unified settings — CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs  — CLI flags passed by Click
  2. Env vars     — ``INDICATE_*`` prefix, ``__`` for nested sections
  3. TOML file    — ``indicate.toml`` discovered via walk-up
  4. Code defaults — baked into the section models

Relative paths in the TOML file are resolved against the directory that
holds it, so a checked-in config works from any subdirectory.
"""

from __future__ import annotations

import threading
import tomllib
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from indicate.config.discovery import find_config
from indicate.config.models import (
    AdvisoryConfig,
    GeigerConfig,
    GitHubConfig,
    MetadataConfig,
    QueryConfig,
)
from indicate.errors import ConfigurationError

# (section, key) pairs holding filesystem paths.
_PATH_KEYS: tuple[tuple[str | None, str], ...] = (
    (None, "manifest_path"),
    (None, "metadata_path"),
    ("advisory", "db_path"),
    ("geiger", "report_path"),
)


def _anchor_paths(data: dict[str, Any], base: Path) -> dict[str, Any]:
    for section, key in _PATH_KEYS:
        table = data if section is None else data.get(section)
        if not isinstance(table, dict) or not isinstance(table.get(key), str):
            continue
        path = Path(table[key]).expanduser()
        if not path.is_absolute():
            table[key] = str(base / path)
    return data


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from an ``indicate.toml`` file discovered via walk-up."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            raw = toml_path.read_text(encoding="utf-8")
            try:
                data = tomllib.loads(raw)
            except tomllib.TOMLDecodeError as exc:
                raise ConfigurationError(f"Invalid TOML in {toml_path}: {exc}") from exc
            self._data = _anchor_paths(data, toml_path.parent)

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return self._data


# Thread-local storage for TOML path during construction.
_tls = threading.local()


class IndicateSettings(BaseSettings):
    """Unified settings for the indicate CLI.

    Merges CLI flags, environment variables, TOML config sections,
    and code-baked defaults into a single frozen object.

    Attributes:
        config_path: The TOML file in effect, or None when none was found.
        manifest_path: Cargo.toml to run ``cargo metadata`` (and
            cargo-geiger) against.
        metadata_path: Saved ``cargo metadata`` JSON; when set, cargo is
            not run for the dependency graph.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "INDICATE_",
        "env_nested_delimiter": "__",
    }

    config_path: Path | None = None
    manifest_path: Path = Field(default_factory=lambda: Path("Cargo.toml"))
    metadata_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    verbose: bool = False
    log_json: bool = False

    # --- TOML sections ---
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    advisory: AdvisoryConfig = Field(default_factory=AdvisoryConfig)
    geiger: GeigerConfig = Field(default_factory=GeigerConfig)
    metadata: MetadataConfig = Field(default_factory=MetadataConfig)
    query: QueryConfig = Field(default_factory=QueryConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        cwd: Path | None = None,
        **cli_flags: Any,
    ) -> IndicateSettings:
        """Construct settings from a CLI invocation.

        Discovers ``indicate.toml`` via walk-up from *cwd* (or uses the
        explicit *config_path*) and merges CLI flags as highest-priority
        overrides. Flags left at ``None`` are dropped so they do not mask
        lower-priority sources.

        Raises:
            ConfigurationError: An explicit *config_path* does not exist, or
                the TOML file is malformed.
        """
        toml_path: Path | None = None
        if config_path:
            toml_path = Path(config_path)
            if not toml_path.is_file():
                raise ConfigurationError(f"Config file not found: {config_path}")
        else:
            toml_path = find_config(cwd)

        flags = {key: value for key, value in cli_flags.items() if value is not None}
        _tls.toml_path = toml_path
        try:
            return cls(config_path=toml_path, **flags)
        finally:
            _tls.toml_path = None

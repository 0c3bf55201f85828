"""User configuration for phpinictl.

Configuration is stored in ~/.config/phpinictl/config.toml and selects
the framework preset plus per-user overrides. The resolved extension
list and settings map are handed to the transformer as plain input.
"""

import logging
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated, Any

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from phpinictl.catalog import Catalog, SettingValue, load_catalog
from phpinictl.core.paths import get_config_path
from phpinictl.errors import ConfigError, ConfigParseError, ConfigValidationError

logger = logging.getLogger(__name__)


class PhpIniConfig(BaseModel):
    """Validated contents of config.toml.

    Attributes:
        preset: Name of the bundled framework preset to start from.
        extensions: Extra extensions enabled on top of the preset.
        exclude_extensions: Preset extensions that should be skipped.
        settings: php.ini settings overriding the preset values.
        allow_elevation: Permit sudo-backed file access on Unix.
        probe_timeout: Seconds allowed for each PHP executable probe.
        deep_scan: Walk filesystem roots for stray PHP executables.
        backup_keep: Number of most recent backups always retained.
        backup_max_age_days: Age after which excess backups are removed.
    """

    model_config = ConfigDict(extra="forbid")

    preset: Annotated[str, Field(description="Framework preset name")] = "laravel"
    extensions: Annotated[list[str], Field(default_factory=list)]
    exclude_extensions: Annotated[list[str], Field(default_factory=list)]
    settings: Annotated[dict[str, SettingValue], Field(default_factory=dict)]
    allow_elevation: bool = False
    probe_timeout: Annotated[float, Field(ge=1.0, le=30.0)] = 5.0
    deep_scan: bool = True
    backup_keep: Annotated[int, Field(ge=0)] = 10
    backup_max_age_days: Annotated[int, Field(ge=0)] = 30

    @field_validator("extensions", "exclude_extensions")
    @classmethod
    def normalize_names(cls, v: list[str]) -> list[str]:
        """Strip and lowercase extension names, dropping blanks."""
        return [name.strip().lower() for name in v if name.strip()]


@dataclass(frozen=True, slots=True)
class Profile:
    """Effective extensions and settings for one configure run."""

    preset: str
    extensions: tuple[str, ...]
    settings: dict[str, SettingValue]


def load_config(path: Path | None = None) -> PhpIniConfig:
    """Load configuration, falling back to defaults when absent.

    Args:
        path: Path to the config file. If None, uses the default path.

    Returns:
        Validated PhpIniConfig.

    Raises:
        ConfigParseError: If the TOML syntax is invalid.
        ConfigValidationError: If the content doesn't match the schema.
        ConfigError: If the file cannot be read.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        logger.debug("No config at %s, using defaults", config_path)
        return PhpIniConfig()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax in {config_path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config {config_path}: {e}") from e

    try:
        return PhpIniConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigValidationError(f"Invalid config content in {config_path}: {e}") from e


def save_config(config: PhpIniConfig, path: Path | None = None) -> Path:
    """Save configuration atomically.

    Args:
        config: The configuration to save.
        path: Destination. If None, uses the default path.

    Returns:
        Path where the config was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    config_path = path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data: dict[str, Any] = config.model_dump()

    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.replace(str(tmp_path), str(config_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigError(f"Failed to write config: {e}") from e

    return config_path


def resolve_profile(
    config: PhpIniConfig,
    *,
    preset: str | None = None,
    catalog: Catalog | None = None,
) -> Profile:
    """Merge a preset with the user's overrides.

    Preset extensions come first in their declared order, followed by
    user-added ones; excluded names are dropped. User settings override
    preset settings key by key.

    Args:
        config: Loaded configuration.
        preset: Preset name overriding config.preset.
        catalog: Catalog to read presets from (defaults to bundled).

    Returns:
        The effective Profile.

    Raises:
        ConfigValidationError: If the preset name is unknown.
    """
    catalog = catalog or load_catalog()
    name = preset or config.preset
    try:
        chosen = catalog.preset(name)
    except KeyError as e:
        raise ConfigValidationError(str(e.args[0])) from e

    excluded = set(config.exclude_extensions)
    names = [n for n in (*chosen.extensions, *config.extensions) if n not in excluded]

    return Profile(
        preset=name,
        extensions=tuple(dict.fromkeys(names)),
        settings={**chosen.settings, **config.settings},
    )

"""Extension metadata and framework presets.

The catalog is an immutable lookup table loaded from the bundled
data/catalog.toml. It is presentation data for the CLI; discovery and
transformation never read it.
"""

import logging
import tomllib
from functools import cache
from importlib import resources
from types import MappingProxyType
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

SettingValue = str | int


class ExtensionInfo(BaseModel):
    """Descriptive metadata for one PHP extension."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    display_name: str
    category: str
    description: str
    zend: bool = False
    dependencies: tuple[str, ...] = ()
    conflicts: tuple[str, ...] = ()


class FrameworkPreset(BaseModel):
    """A named set of extensions and php.ini settings."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    description: str
    extensions: tuple[str, ...] = ()
    settings: Annotated[dict[str, SettingValue], Field(default_factory=dict)]


class Catalog(BaseModel):
    """Extension metadata table plus framework presets."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    extensions: Annotated[dict[str, ExtensionInfo], Field(default_factory=dict)]
    presets: Annotated[dict[str, FrameworkPreset], Field(default_factory=dict)]

    def describe(self, name: str) -> ExtensionInfo | None:
        """Look up metadata for an extension (case-insensitive)."""
        return self.extensions.get(name.lower())

    def preset(self, name: str) -> FrameworkPreset:
        """Return a preset by name.

        Raises:
            KeyError: If no preset has this name.
        """
        try:
            return self.presets[name.lower()]
        except KeyError:
            available = ", ".join(sorted(self.presets))
            msg = f"Unknown preset '{name}' (available: {available})"
            raise KeyError(msg) from None

    def preset_settings(self, name: str) -> MappingProxyType[str, SettingValue]:
        """Read-only view of a preset's settings."""
        return MappingProxyType(self.preset(name).settings)


@cache
def load_catalog() -> Catalog:
    """Load and validate the bundled catalog.

    Returns:
        The catalog, cached for the lifetime of the process.

    Raises:
        RuntimeError: If the bundled data is missing or invalid, which
            means the installation is corrupted.
    """
    source = resources.files("phpinictl.data").joinpath("catalog.toml")
    try:
        data = tomllib.loads(source.read_text(encoding="utf-8"))
        return Catalog.model_validate(data)
    except (OSError, tomllib.TOMLDecodeError, ValidationError) as e:
        logger.error("Failed to load bundled catalog: %s", e)
        msg = f"Bundled extension catalog is unreadable: {e}"
        raise RuntimeError(msg) from e

"""Console colors for phpinictl.

The bundled data/theme.toml provides the palette; a theme.toml in the
config directory may override any subset of it under [colors].
"""

import logging
import tomllib
from functools import cache
from importlib import resources
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from rich.theme import Theme

from phpinictl.core.paths import get_config_dir

logger = logging.getLogger(__name__)

# Styles rendered in bold on top of their color
BOLD_STYLES = frozenset({"error", "active"})


def _check_hex(field: str, value: object) -> str:
    if not isinstance(value, str):
        msg = f"{field}: color must be a string"
        raise ValueError(msg)
    color = value.strip()
    if not color.startswith("#"):
        msg = f"{field}: color must start with '#'"
        raise ValueError(msg)
    digits = color[1:]
    if len(digits) not in (3, 6):
        msg = f"{field}: color must be #RGB or #RRGGBB format"
        raise ValueError(msg)
    if any(ch not in "0123456789abcdefABCDEF" for ch in digits):
        msg = f"{field}: invalid hex color '{color}'"
        raise ValueError(msg)
    return color


class ThemeColors(BaseModel):
    """Palette for console output, one hex color per style."""

    model_config = ConfigDict(extra="forbid")

    text: str = "#ffffff"
    muted: str = "#b2bec3"
    header: str = "#69B9A1"
    border: str = "#29526d"

    success: str = "#03b971"
    warning: str = "#f5b332"
    error: str = "#f53263"
    info: str = "#0ec1c8"

    # configure report statuses
    enabled: str = "#c1ff62"
    missing: str = "#f53263"
    unchanged: str = "#0e8ac8"

    # installation list markers
    active: str = "#69B9A1"
    inactive: str = "#226666"

    @field_validator("*", mode="before")
    @classmethod
    def validate_hex_color(cls, v: object, info: Any) -> str:
        """Accept only #RGB or #RRGGBB values."""
        return _check_hex(info.field_name, v)


def get_user_theme_path() -> Path:
    """Path of the optional user theme override."""
    return get_config_dir() / "theme.toml"


def _load_toml_colors(path: Path) -> dict[str, str] | None:
    """Read string values from the [colors] table of a theme file.

    Returns:
        Color name to hex value, or None if the file is absent or broken.
    """
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning("Ignoring theme file %s: %s", path, e)
        return None

    table = data.get("colors", {})
    if not isinstance(table, dict):
        logger.warning("Invalid 'colors' section in %s", path)
        return None
    return {name: value for name, value in table.items() if isinstance(value, str)}


def load_theme() -> ThemeColors:
    """Merge the user's overrides onto the bundled palette.

    An invalid merged palette falls back to the built-in defaults as a
    whole.
    """
    bundled = resources.files("phpinictl.data").joinpath("theme.toml")
    colors = _load_toml_colors(Path(str(bundled)))
    if colors is None:
        logger.error("Bundled theme is unreadable, installation may be corrupted")
        colors = {}

    user_path = get_user_theme_path()
    overrides = _load_toml_colors(user_path)
    if overrides:
        logger.debug("Applying %d theme override(s) from %s", len(overrides), user_path)
        colors.update(overrides)

    try:
        return ThemeColors(**colors)
    except ValidationError as e:
        logger.warning("Theme validation failed, using defaults: %s", e)
        return ThemeColors()


def get_rich_theme(colors: ThemeColors | None = None) -> Theme:
    """Build the Rich theme: one style per palette entry plus derived styles."""
    colors = colors or load_theme()
    styles = {
        name: f"bold {value}" if name in BOLD_STYLES else value
        for name, value in colors.model_dump().items()
    }
    styles["bold_header"] = f"bold {colors.header}"
    styles["dim"] = colors.muted
    return Theme(styles)


@cache
def get_theme() -> Theme:
    """The Rich theme shared by all consoles, loaded once per process."""
    return get_rich_theme()

"""Rich console formatting utilities.

Provides consistent formatting for CLI output using Rich.
"""

import sys

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from phpinictl.core.theme import get_theme
from phpinictl.models.installation import Installation


def _detect_color_system() -> str | None:
    """Return "truecolor" for interactive terminals, None to let Rich decide."""
    if sys.stdout.isatty():
        return "truecolor"
    return None


# Shared console instances (theme loaded once at import)
console = Console(theme=get_theme(), color_system=_detect_color_system())
err_console = Console(theme=get_theme(), stderr=True, color_system=_detect_color_system())


def create_installation_table(title: str = "PHP Installations") -> Table:
    """Create a pre-configured table for displaying installations.

    Args:
        title: Table title.

    Returns:
        Rich Table configured for installation display.
    """
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
        row_styles=["", "on grey7"],
    )
    # Active marker column: icon only, no header text
    table.add_column("", width=2, justify="center")
    table.add_column("Version", no_wrap=True)
    table.add_column("Environment", style="info")
    table.add_column("php.ini", style="text", overflow="fold")
    table.add_column("Extension dir", style="muted", overflow="fold")
    return table


def format_installation_row(installation: Installation) -> tuple[str, str, str, str, str]:
    """Format an installation as a table row.

    The active installation gets a filled circle and bold styling.

    Returns:
        Tuple of (icon, version, environment, ini path, extension dir).
    """
    if installation.is_active:
        icon = "[active]●[/]"
        version = f"[active]{installation.version}[/]"
    else:
        icon = "[inactive]○[/]"
        version = f"[inactive]{installation.version}[/]"
    return (
        icon,
        version,
        escape(installation.environment_label),
        escape(installation.ini_path or "-"),
        escape(installation.extension_dir or "-"),
    )


def format_size(size_bytes: int) -> str:
    """Format a byte count as a short human-readable string."""
    size = float(size_bytes)
    for unit in ("B", "KB", "MB"):
        if size < 1024:
            return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} GB"


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{message}[/]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    err_console.print(f"[warning]Warning:[/] {message}")


def print_error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[error]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{message}[/]")

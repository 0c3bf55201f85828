"""Config commands for phpinictl's own settings file.

Provides `phpinictl config init` to write a starter config.toml and
`phpinictl config show` to print the effective configuration.
"""

from typing import Annotated

import tomli_w
import typer

from phpinictl.cli.common import exit_with_error, load_user_config
from phpinictl.core.config import PhpIniConfig, resolve_profile, save_config
from phpinictl.core.paths import get_config_path
from phpinictl.errors import PhpIniError
from phpinictl.utils.formatting import console, print_info, print_success, print_warning

app = typer.Typer(
    help="Manage phpinictl configuration.",
    no_args_is_help=True,
)


@app.command()
def init(
    preset: Annotated[
        str,
        typer.Option("--preset", "-p", help="Framework preset to start from."),
    ] = "laravel",
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Overwrite an existing config."),
    ] = False,
) -> None:
    """Create config.toml with default values."""
    path = get_config_path()
    if path.exists() and not force:
        print_warning(f"Config already exists: {path}")
        print_info("Use --force to overwrite it.")
        raise typer.Exit(code=1)

    config = PhpIniConfig(preset=preset)
    try:
        # Fails early on an unknown preset
        resolve_profile(config)
        saved = save_config(config, path)
    except PhpIniError as e:
        exit_with_error(e)
    print_success(f"Config written to {saved}")


@app.command()
def show(
    resolved: Annotated[
        bool,
        typer.Option("--resolved", "-r", help="Show the merged extension list and settings."),
    ] = False,
) -> None:
    """Print the effective configuration."""
    path = get_config_path()
    config = load_user_config()
    source = str(path) if path.exists() else f"{path} (not found, showing defaults)"
    print_info(f"# {source}")
    console.print(tomli_w.dumps(config.model_dump()), markup=False, highlight=False)

    if not resolved:
        return
    try:
        profile = resolve_profile(config)
    except PhpIniError as e:
        exit_with_error(e)
    console.print(f"[bold_header]Extensions ({profile.preset})[/]")
    console.print(", ".join(profile.extensions) or "-", markup=False)
    console.print("[bold_header]Settings[/]")
    console.print(tomli_w.dumps(profile.settings), markup=False, highlight=False)

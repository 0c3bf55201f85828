"""Main CLI application entry point.

Defines the Typer application and global options.
"""

import logging
from typing import Annotated

import typer
from rich.logging import RichHandler

from phpinictl import __version__
from phpinictl.cli.commands import (
    backup,
    config,
    configure,
    extensions,
    info,
    installations,
    validate,
)
from phpinictl.utils.formatting import err_console

# Create main Typer app
app = typer.Typer(
    name="phpinictl",
    help="Find PHP installations and configure their php.ini files.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"phpinictl version {__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool, quiet: bool) -> None:
    """Route library logging through Rich on stderr."""
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=verbose, rich_tracebacks=verbose)],
        force=True,
    )


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress non-essential output.",
        ),
    ] = False,
) -> None:
    """phpinictl - Find PHP installations and configure their php.ini files.

    Enables extensions and applies framework presets to Laragon, XAMPP,
    WAMP, PVM, Homebrew, APT and custom PHP builds, backing up every
    file before it is changed.
    """
    configure_logging(verbose, quiet)
    # Store options in context for subcommands
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet


# Register commands
app.command("list")(installations.list_installations)
app.command("configure")(configure.configure)
app.command("info")(info.info)
app.command("validate")(validate.validate)
app.command("extensions")(extensions.extensions)
app.add_typer(backup.app, name="backup")
app.add_typer(config.app, name="config")


if __name__ == "__main__":
    app()

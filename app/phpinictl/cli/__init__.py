"""CLI package for phpinictl.

This package contains the Typer application and all subcommands.
"""

from phpinictl.cli.main import app

__all__ = ["app"]

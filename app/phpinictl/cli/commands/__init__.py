"""CLI commands for phpinictl.

This package contains all subcommand implementations.
"""

from phpinictl.cli.commands import (
    backup,
    config,
    configure,
    extensions,
    info,
    installations,
    validate,
)

__all__ = ["backup", "config", "configure", "extensions", "info", "installations", "validate"]

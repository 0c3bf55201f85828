"""List command implementation.

Discovers PHP installations and prints them as a table or JSON.
"""

import json
from typing import Annotated

import typer

from phpinictl.cli.common import build_locator, discover_or_exit, load_user_config
from phpinictl.cli.display import print_installations
from phpinictl.utils.formatting import console


def list_installations(
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output as JSON.",
        ),
    ] = False,
) -> None:
    """List discovered PHP installations.

    The active installation, the one `php` on PATH runs, is marked with
    a filled circle.

    Examples:
        phpinictl list
        phpinictl list --json
    """
    config = load_user_config()
    installations = discover_or_exit(build_locator(config))

    if json_output:
        console.print_json(json.dumps([i.to_dict() for i in installations]))
        return

    print_installations(installations)

"""Validate command implementation.

Checks a php.ini for syntax problems without changing it.
"""

import json
from pathlib import Path
from typing import Annotated

import typer

from phpinictl.cli.common import (
    build_locator,
    discover_or_exit,
    exit_with_error,
    load_user_config,
    pick_installation,
    require_ini,
)
from phpinictl.cli.display import print_validation
from phpinictl.errors import PhpIniError
from phpinictl.ini.validator import validate_source_file
from phpinictl.utils.formatting import console, print_info


def validate(
    path: Annotated[
        Path | None,
        typer.Argument(help="php.ini to check. Defaults to the selected installation's."),
    ] = None,
    version: Annotated[
        str | None,
        typer.Option("--php", help="PHP version selecting the installation."),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON."),
    ] = False,
) -> None:
    """Validate php.ini syntax.

    Exits with code 1 if errors are found; warnings alone do not fail.

    Examples:
        phpinictl validate
        phpinictl validate /etc/php/8.3/cli/php.ini
        phpinictl validate --php 8.2 --json
    """
    if path is None:
        config = load_user_config()
        path = require_ini(pick_installation(discover_or_exit(build_locator(config)), version))

    try:
        result = validate_source_file(path)
    except PhpIniError as e:
        exit_with_error(e)

    if json_output:
        console.print_json(json.dumps({"path": str(path), **result.to_dict()}))
    else:
        print_info(f"Checked {path}")
        print_validation(result)

    if not result.is_valid:
        raise typer.Exit(code=1)

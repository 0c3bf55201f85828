"""Info command implementation.

Shows one installation's details and the extensions its php.ini enables.
"""

import json
from typing import Annotated

import typer
from rich.table import Table

from phpinictl.catalog import load_catalog
from phpinictl.cli.common import (
    build_locator,
    discover_or_exit,
    exit_with_error,
    load_user_config,
    pick_installation,
    require_ini,
)
from phpinictl.cli.display import create_detail_table
from phpinictl.core.fileaccess import DirectFileAccess
from phpinictl.errors import PhpIniError
from phpinictl.ini.document import IniDocument, LineKind
from phpinictl.utils.formatting import console


def info(
    version: Annotated[
        str | None,
        typer.Argument(help="PHP version or path fragment selecting the installation."),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON."),
    ] = False,
) -> None:
    """Show details about a PHP installation.

    Examples:
        phpinictl info
        phpinictl info 8.2 --json
    """
    config = load_user_config()
    installation = pick_installation(discover_or_exit(build_locator(config)), version)
    ini_path = require_ini(installation)

    try:
        doc = IniDocument(DirectFileAccess().read_text(ini_path))
    except PhpIniError as e:
        exit_with_error(e)

    enabled = [
        (entry.extension_name, entry.kind == LineKind.ZEND_EXTENSION)
        for entry in doc.entries
        if entry.is_extension_directive and not entry.commented and entry.extension_name
    ]

    if json_output:
        data = installation.to_dict()
        data["enabled_extensions"] = [name for name, _ in enabled]
        console.print_json(json.dumps(data))
        return

    console.print(create_detail_table(installation))
    if not enabled:
        console.print("[dim]No extensions are enabled in php.ini.[/dim]")
        return

    catalog = load_catalog()
    table = Table(
        title="Enabled Extensions",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Extension", no_wrap=True)
    table.add_column("Category", style="info")
    table.add_column("Description", style="muted")
    for name, zend in enabled:
        described = catalog.describe(name)
        label = f"{name} [dim](zend)[/dim]" if zend else name
        table.add_row(
            label,
            described.category if described else "-",
            described.description if described else "-",
        )
    console.print(table)

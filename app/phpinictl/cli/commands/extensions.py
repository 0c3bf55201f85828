"""Extensions command implementation.

Browses the bundled extension catalog and framework presets.
"""

import json
from typing import Annotated

import typer
from rich.table import Table

from phpinictl.catalog import load_catalog
from phpinictl.utils.formatting import console, print_error, print_info


def extensions(
    category: Annotated[
        str | None,
        typer.Option("--category", "-c", help="Only show extensions in this category."),
    ] = None,
    preset: Annotated[
        str | None,
        typer.Option("--preset", "-p", help="Show the extensions and settings of a preset."),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON."),
    ] = False,
) -> None:
    """List known PHP extensions and framework presets.

    Examples:
        phpinictl extensions
        phpinictl extensions -c Database
        phpinictl extensions --preset laravel
    """
    catalog = load_catalog()

    if preset is not None:
        try:
            chosen = catalog.preset(preset)
        except KeyError as e:
            print_error(str(e.args[0]))
            raise typer.Exit(code=1) from e
        if json_output:
            console.print_json(chosen.model_dump_json())
            return
        print_info(f"{preset}: {chosen.description}")
        _print_table(list(chosen.extensions), f"Preset '{preset}' Extensions")
        settings = Table(title="Settings", header_style="bold_header", border_style="border")
        settings.add_column("Key", no_wrap=True)
        settings.add_column("Value", style="info")
        for key, value in chosen.settings.items():
            settings.add_row(key, str(value))
        console.print(settings)
        return

    names = sorted(
        name
        for name, ext in catalog.extensions.items()
        if category is None or ext.category.lower() == category.lower()
    )
    if json_output:
        data = {name: catalog.extensions[name].model_dump() for name in names}
        console.print_json(json.dumps(data))
        return
    if not names:
        print_info(f"No extensions in category '{category}'.")
        return
    _print_table(names, "Known Extensions")
    console.print(f"\n[dim]Presets: {', '.join(sorted(catalog.presets))}[/dim]")


def _print_table(names: list[str], title: str) -> None:
    """Print extensions with their catalog metadata."""
    catalog = load_catalog()
    table = Table(title=title, show_header=True, header_style="bold_header", border_style="border")
    table.add_column("Extension", no_wrap=True)
    table.add_column("Name")
    table.add_column("Category", style="info")
    table.add_column("Description", style="muted")
    table.add_column("Relations", style="warning")
    for name in names:
        ext = catalog.describe(name)
        if ext is None:
            table.add_row(name, "-", "-", "-", "")
            continue
        loader = " [dim](zend)[/dim]" if ext.zend else ""
        relations = []
        if ext.dependencies:
            relations.append(f"requires {', '.join(ext.dependencies)}")
        if ext.conflicts:
            relations.append(f"conflicts with {', '.join(ext.conflicts)}")
        table.add_row(
            f"{name}{loader}",
            ext.display_name,
            ext.category,
            ext.description,
            "\n".join(relations),
        )
    console.print(table)

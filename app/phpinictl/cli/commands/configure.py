"""Configure command implementation.

Enables the preset's extensions and writes its settings into the
selected installation's php.ini, after backing the file up.
"""

from typing import Annotated

import typer

from phpinictl.catalog import load_catalog
from phpinictl.cli.common import (
    build_locator,
    discover_or_exit,
    exit_with_error,
    load_user_config,
    missing_extension_hints,
    pick_installation,
    require_ini,
)
from phpinictl.cli.display import (
    create_detail_table,
    create_report_table,
    print_installations,
    print_repair_report,
    print_report_summary,
    print_validation,
)
from phpinictl.core.config import resolve_profile
from phpinictl.core.fileaccess import select_file_access
from phpinictl.core.platform import PlatformContext
from phpinictl.discovery.probe import PhpProbe
from phpinictl.errors import PhpIniError
from phpinictl.ini.availability import default_availability
from phpinictl.ini.transformer import IniTransformer
from phpinictl.ini.validator import validate_ini
from phpinictl.utils.formatting import console, print_info, print_success, print_warning


def configure(
    version: Annotated[
        str | None,
        typer.Argument(help="PHP version or path fragment selecting the installation."),
    ] = None,
    list_only: Annotated[
        bool,
        typer.Option("--list", "-l", help="List installations and exit."),
    ] = False,
    show_info: Annotated[
        bool,
        typer.Option("--info", "-i", help="Show details of the selected installation and exit."),
    ] = False,
    preset: Annotated[
        str | None,
        typer.Option("--preset", "-p", help="Framework preset (overrides config)."),
    ] = None,
    extra: Annotated[
        list[str] | None,
        typer.Option("--extension", "-e", help="Additional extension to enable (repeatable)."),
    ] = None,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Show what would change without writing."),
    ] = False,
    sudo: Annotated[
        bool,
        typer.Option("--sudo", help="Use sudo when the php.ini is not writable."),
    ] = False,
    force: Annotated[
        bool,
        typer.Option("--force", help="Write even if the result fails validation."),
    ] = False,
    repair: Annotated[
        bool,
        typer.Option("--repair", help="Also fix directives PHP fails to load."),
    ] = False,
) -> None:
    """Configure php.ini for a PHP installation.

    Without VERSION the active installation is used. Every write is
    preceded by a timestamped backup next to the php.ini.

    Examples:
        phpinictl configure                 # Active installation, config preset
        phpinictl configure 8.3 --dry-run   # Preview changes for PHP 8.3
        phpinictl configure -p symfony -y   # Symfony preset, no prompt
        phpinictl configure -e redis --sudo # Extra extension, system php.ini
    """
    config = load_user_config()
    ctx = PlatformContext.current()
    installations = discover_or_exit(build_locator(config, ctx))

    if list_only:
        print_installations(installations)
        return

    installation = pick_installation(installations, version)
    if show_info:
        console.print(create_detail_table(installation))
        return

    ini_path = require_ini(installation)
    try:
        profile = resolve_profile(config, preset=preset)
    except PhpIniError as e:
        exit_with_error(e)
    extensions = [*profile.extensions, *(extra or [])]

    file_access = select_file_access(ini_path, allow_elevation=sudo or config.allow_elevation)
    transformer = IniTransformer(
        file_access=file_access,
        availability=default_availability(ctx, installation.version),
        probe=PhpProbe(timeout=config.probe_timeout),
    )

    print_info(f"PHP {installation.version} ({installation.environment_label}): {ini_path}")
    try:
        new_text, report = transformer.preview(
            ini_path,
            installation.extension_dir,
            extensions,
            profile.settings,
            php_executable=installation.executable_path,
        )
    except PhpIniError as e:
        exit_with_error(e)

    console.print(create_report_table(report, load_catalog(), dry_run=dry_run))
    print_report_summary(report)

    validation = validate_ini(new_text)
    if not validation.is_valid:
        print_validation(validation)
        if not force:
            print_warning("The result has errors; re-run with --force to write anyway.")
            raise typer.Exit(code=1)

    if dry_run:
        print_info("\nDry-run mode: No changes were made.")
        return

    if not report.changed and not repair:
        print_success("php.ini is already configured. Nothing to do.")
        return

    if not yes and not typer.confirm(f"\nWrite changes to {ini_path}?", default=False):
        print_info("Aborted.")
        raise typer.Exit(code=0)

    try:
        if report.changed:
            report = transformer.customize(
                ini_path,
                installation.extension_dir,
                extensions,
                profile.settings,
                php_executable=installation.executable_path,
            )
            print_success(f"Updated {ini_path}")
            print_info(f"Backup: {report.backup_path}")
        if repair:
            print_repair_report(transformer.repair(ini_path, installation.executable_path))
    except PhpIniError as e:
        exit_with_error(e)

    for hint in missing_extension_hints(ctx, installation, report.missing):
        print_warning(hint)

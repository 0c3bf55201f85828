"""Shared Rich display functions for reports and installations.

Provides reusable table builders and summary printers used by the
configure, info, validate and list commands.
"""

from rich.markup import escape
from rich.table import Table

from phpinictl.catalog import Catalog
from phpinictl.models.installation import Installation
from phpinictl.models.report import RepairReport, TransformReport, ValidationResult
from phpinictl.utils.formatting import (
    console,
    create_installation_table,
    format_installation_row,
    print_success,
)


def print_installations(installations: list[Installation]) -> None:
    """Print discovered installations as a table."""
    table = create_installation_table()
    for installation in installations:
        table.add_row(*format_installation_row(installation))
    console.print(table)


def create_report_table(
    report: TransformReport, catalog: Catalog | None = None, dry_run: bool = False
) -> Table:
    """Create a Rich table listing every extension and setting outcome.

    Args:
        report: The transformation report.
        catalog: Optional catalog used to show extension descriptions.
        dry_run: Whether this is a preview (changes table title).

    Returns:
        Rich Table with one row per extension and setting.
    """
    title = "Planned Changes (Dry Run)" if dry_run else "Changes"
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Status", width=10)
    table.add_column("Item", no_wrap=True)
    table.add_column("Details", style="muted")

    def describe(name: str) -> str:
        info = catalog.describe(name) if catalog else None
        return info.description if info else ""

    rows: list[tuple[str, list[str]]] = [
        ("[enabled]enabled[/]", report.enabled),
        ("[unchanged]active[/]", report.already_enabled),
        ("[unchanged]loaded[/]", report.already_loaded),
        ("[missing]missing[/]", report.missing),
    ]
    for status, names in rows:
        for name in names:
            table.add_row(status, name, describe(name))
    for key in report.updated:
        table.add_row("[info]updated[/]", key, "setting")
    for key in report.added:
        table.add_row("[enabled]added[/]", key, "setting")
    if report.extension_dir:
        table.add_row("[info]set[/]", "extension_dir", escape(report.extension_dir))
    return table


def print_report_summary(report: TransformReport) -> None:
    """Print a one-line summary of a transformation."""
    console.print(
        f"\n[dim]{len(report.enabled)} enabled, "
        f"{len(report.already_enabled) + len(report.already_loaded)} already active, "
        f"{len(report.missing)} missing, {report.settings_count} setting(s)[/dim]"
    )
    if report.backup_path:
        console.print(f"[dim]Backup: {escape(report.backup_path)}[/dim]")


def print_repair_report(report: RepairReport) -> None:
    """Print what a repair changed."""
    if not report.changed:
        print_success("No extension loading problems found.")
        return
    for name in report.converted:
        console.print(f"[enabled]converted[/] {name} to zend_extension")
    for name in report.disabled:
        console.print(f"[warning]disabled[/] {name} ({report.reasons.get(name, '')})")
    if report.backup_path:
        console.print(f"[dim]Backup: {escape(report.backup_path)}[/dim]")


def print_validation(result: ValidationResult) -> None:
    """Print validation errors and warnings."""
    for error in result.errors:
        console.print(f"[error]error[/] {escape(error)}")
    for warning in result.warnings:
        console.print(f"[warning]warning[/] {escape(warning)}")
    if result.is_valid and not result.warnings:
        print_success("No problems found.")


def create_detail_table(installation: Installation) -> Table:
    """Create a two-column table describing one installation."""
    table = Table(show_header=False, border_style="border", title=f"PHP {installation.version}")
    table.add_column("Field", style="bold_header")
    table.add_column("Value", style="text", overflow="fold")
    fields = [
        ("Environment", installation.environment_label),
        ("Active", "yes" if installation.is_active else "no"),
        ("Executable", installation.executable_path),
        ("php.ini", installation.ini_path),
        ("Extension dir", installation.extension_dir),
        ("Base path", installation.base_path),
        ("Architecture", installation.architecture or ""),
        ("Thread safety", installation.thread_safety_label),
        ("Build date", installation.build_date or ""),
    ]
    for label, value in fields:
        table.add_row(label, escape(value or "-"))
    return table

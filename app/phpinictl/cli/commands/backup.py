"""Backup commands for php.ini files.

Create, list, restore, delete and prune the timestamped backups kept
next to an installation's php.ini.
"""

import json
from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape
from rich.table import Table

from phpinictl.backups.archive import BackupArchive
from phpinictl.cli.common import (
    build_locator,
    discover_or_exit,
    exit_with_error,
    load_user_config,
    pick_installation,
    require_ini,
)
from phpinictl.core.fileaccess import select_file_access
from phpinictl.errors import PhpIniError
from phpinictl.models.backup import BackupInfo
from phpinictl.utils.formatting import (
    console,
    format_size,
    print_error,
    print_info,
    print_success,
)

app = typer.Typer(
    help="Manage php.ini backups.",
    no_args_is_help=True,
)

PhpOption = Annotated[
    str | None,
    typer.Option("--php", help="PHP version selecting the installation."),
]
IniOption = Annotated[
    Path | None,
    typer.Option("--ini", help="Operate on this php.ini instead of a discovered one."),
]
SudoOption = Annotated[
    bool,
    typer.Option("--sudo", help="Use sudo when the directory is not writable."),
]


def _target(php: str | None, ini: Path | None) -> tuple[Path, str | None]:
    """Resolve the php.ini to operate on and its PHP version."""
    if ini is not None:
        return ini, None
    config = load_user_config()
    installation = pick_installation(discover_or_exit(build_locator(config)), php)
    return require_ini(installation), installation.version


def _archive(ini_path: Path, sudo: bool) -> BackupArchive:
    allow = sudo or load_user_config().allow_elevation
    return BackupArchive(select_file_access(ini_path, allow_elevation=allow))


@app.command()
def create(
    description: Annotated[
        str | None,
        typer.Option("--description", "-d", help="Note stored with the backup."),
    ] = None,
    php: PhpOption = None,
    ini: IniOption = None,
    sudo: SudoOption = False,
) -> None:
    """Create a backup of php.ini."""
    ini_path, version = _target(php, ini)
    try:
        backup_path = _archive(ini_path, sudo).create_backup(
            ini_path, strict=False, description=description, version=version
        )
    except PhpIniError as e:
        exit_with_error(e)
    if not backup_path:
        print_error(f"Could not back up {ini_path}.")
        raise typer.Exit(code=1)
    print_success(f"Backup created: {backup_path}")


@app.command("list")
def list_backups(
    php: PhpOption = None,
    ini: IniOption = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON."),
    ] = False,
) -> None:
    """List backups, newest first."""
    ini_path, _ = _target(php, ini)
    infos = BackupArchive().list_backup_info(ini_path)

    if json_output:
        console.print_json(json.dumps([_info_to_dict(i) for i in infos]))
        return
    if not infos:
        print_info(f"No backups found for {ini_path}.")
        return
    _print_table(infos)


@app.command()
def restore(
    backup: Annotated[
        Path | None,
        typer.Argument(help="Backup file to restore. Defaults to the newest."),
    ] = None,
    php: PhpOption = None,
    ini: IniOption = None,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
    sudo: SudoOption = False,
) -> None:
    """Restore php.ini from a backup.

    The current php.ini is backed up first, so a restore can be undone.
    """
    ini_path, _ = _target(php, ini)
    archive = _archive(ini_path, sudo)
    if backup is None:
        backups = archive.list_backups(ini_path)
        if not backups:
            print_error(f"No backups found for {ini_path}.")
            raise typer.Exit(code=1)
        backup = Path(backups[0])

    if not yes and not typer.confirm(f"Overwrite {ini_path} with {backup.name}?", default=False):
        print_info("Aborted.")
        raise typer.Exit(code=0)

    try:
        safety = archive.restore_backup(backup, ini_path, backup_current=True)
    except PhpIniError as e:
        exit_with_error(e)
    print_success(f"Restored {ini_path} from {backup}")
    if safety:
        print_info(f"Previous version saved as {safety}")


@app.command()
def delete(
    backup: Annotated[Path, typer.Argument(help="Backup file to delete.")],
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt."),
    ] = False,
    sudo: SudoOption = False,
) -> None:
    """Delete a backup and its metadata."""
    if not yes and not typer.confirm(f"Delete {backup}?", default=False):
        print_info("Aborted.")
        raise typer.Exit(code=0)
    try:
        _archive(backup, sudo).delete_backup(backup)
    except PhpIniError as e:
        exit_with_error(e)
    print_success(f"Deleted {backup}")


@app.command()
def cleanup(
    keep: Annotated[
        int | None,
        typer.Option("--keep", "-k", min=0, help="Most recent backups always kept."),
    ] = None,
    days: Annotated[
        int | None,
        typer.Option("--days", min=0, help="Only delete backups older than this."),
    ] = None,
    php: PhpOption = None,
    ini: IniOption = None,
    sudo: SudoOption = False,
) -> None:
    """Delete old backups beyond the most recent ones.

    A backup is removed only when it is outside the newest --keep backups
    and older than --days. Defaults come from config.toml.
    """
    config = load_user_config()
    ini_path, _ = _target(php, ini)
    keep_count = config.backup_keep if keep is None else keep
    max_age = config.backup_max_age_days if days is None else days
    try:
        deleted = _archive(ini_path, sudo).cleanup(ini_path, keep_count, max_age)
    except PhpIniError as e:
        exit_with_error(e)

    if not deleted:
        print_info("No backups to remove.")
        return
    for path in deleted:
        console.print(f"[dim]removed {escape(path)}[/dim]")
    print_success(f"Removed {len(deleted)} backup(s).")


def _info_to_dict(info: BackupInfo) -> dict[str, object]:
    return {
        "path": info.path,
        "size_bytes": info.size_bytes,
        "modified": info.modified_iso,
        "description": info.metadata.description if info.metadata else None,
    }


def _print_table(infos: list[BackupInfo]) -> None:
    """Display backups as a Rich table."""
    table = Table(title="Backups", header_style="bold_header", border_style="border")
    table.add_column("#", style="dim", justify="right")
    table.add_column("File", no_wrap=True)
    table.add_column("Modified", style="info")
    table.add_column("Size", justify="right")
    table.add_column("Description", style="muted")
    for index, info in enumerate(infos, start=1):
        table.add_row(
            str(index),
            escape(info.filename),
            info.modified_iso,
            format_size(info.size_bytes),
            escape(info.metadata.description) if info.metadata else "-",
        )
    console.print(table)

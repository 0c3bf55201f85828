"""Shared helpers for CLI commands.

Loading configuration, picking the target installation and turning
library errors into exit codes live here so every command reports
failures the same way.
"""

from pathlib import Path
from typing import NoReturn

import typer

from phpinictl.core.config import PhpIniConfig, load_config
from phpinictl.core.platform import PlatformContext
from phpinictl.discovery.locator import InstallationLocator, select_installation
from phpinictl.discovery.probe import PhpProbe
from phpinictl.errors import (
    ConfigError,
    IniPermissionError,
    InstallationNotFoundError,
    PhpIniError,
)
from phpinictl.models.installation import Installation
from phpinictl.utils.formatting import print_error, print_info


def exit_with_error(error: PhpIniError, hints: list[str] | None = None) -> NoReturn:
    """Print an error with remediation hints and exit with code 1."""
    print_error(str(error))
    if isinstance(error, IniPermissionError):
        print_info(error.hint)
    for hint in hints or []:
        print_info(hint)
    raise typer.Exit(code=1) from error


def load_user_config() -> PhpIniConfig:
    """Load config.toml, exiting with code 1 if it is broken."""
    try:
        return load_config()
    except ConfigError as e:
        exit_with_error(e, ["Fix the file or run 'phpinictl config init --force'."])


def build_locator(config: PhpIniConfig, ctx: PlatformContext | None = None) -> InstallationLocator:
    """Create a locator honoring the configured probe timeout and scan mode."""
    return InstallationLocator(
        ctx,
        probe=PhpProbe(timeout=config.probe_timeout),
        deep_scan=config.deep_scan,
    )


def discover_or_exit(locator: InstallationLocator) -> list[Installation]:
    """Discover installations, exiting with code 1 if there are none."""
    installations = locator.discover_installations()
    if not installations:
        exit_with_error(InstallationNotFoundError())
    return installations


def pick_installation(installations: list[Installation], version_hint: str | None) -> Installation:
    """Select the installation a command operates on."""
    try:
        return select_installation(installations, version_hint)
    except PhpIniError as e:
        exit_with_error(e)


def require_ini(installation: Installation) -> Path:
    """Return the installation's php.ini path, exiting if it has none."""
    if not installation.ini_path:
        print_error(f"PHP {installation.version} has no php.ini file.")
        raise typer.Exit(code=1)
    return Path(installation.ini_path)


def missing_extension_hints(
    ctx: PlatformContext, installation: Installation, missing: list[str]
) -> list[str]:
    """Suggest how to install extensions that could not be enabled."""
    if not missing:
        return []
    if ctx.uses_package_manager:
        major_minor = ".".join(installation.version.split(".")[:2])
        if installation.version_tuple:
            packages = " ".join(f"php{major_minor}-{name}" for name in missing)
        else:
            packages = " ".join(f"php-{name}" for name in missing)
        return [f"Install missing extensions with: sudo apt install {packages}"]
    if ctx.is_windows:
        build = " ".join(
            part
            for part in (installation.thread_safety_label, installation.architecture)
            if part
        )
        target = installation.extension_dir or "the extension directory"
        return [
            f"Download php_{name}.dll for PHP {installation.version} {build}".rstrip()
            + f" into {target}"
            for name in missing
        ]
    return [f"Install missing extensions with: pecl install {name}" for name in missing]

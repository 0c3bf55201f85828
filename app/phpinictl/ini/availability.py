"""Strategies deciding whether an extension can be enabled.

A strategy answers one question: if an `extension=name` line were added,
would PHP find something to load? Windows and self-contained builds
answer by looking for the shared library in extension_dir; Debian-like
systems ship extensions as packages, so dpkg is asked instead.
"""

import logging
import subprocess
from pathlib import Path
from typing import Protocol, runtime_checkable

from phpinictl.core.platform import PlatformContext
from phpinictl.utils.shell import command_exists, run_command

logger = logging.getLogger(__name__)

# Commonly compiled into distribution builds; never enabled via packages
BUILTIN_EXTENSIONS: frozenset[str] = frozenset(
    {
        "ctype",
        "date",
        "exif",
        "fileinfo",
        "filter",
        "ftp",
        "hash",
        "json",
        "openssl",
        "pcre",
        "reflection",
        "session",
        "spl",
        "standard",
        "tokenizer",
        "xml",
    }
)

DPKG_TIMEOUT = 3.0


@runtime_checkable
class ExtensionAvailability(Protocol):
    """Decides whether an extension binary is installed."""

    def is_available(self, name: str, extension_dir: str) -> bool:
        """Return True if `name` can be loaded from this installation."""
        ...


class ExtensionFileAvailability:
    """Looks for the extension's shared library inside extension_dir.

    Args:
        ctx: Platform whose file naming rules apply.
    """

    def __init__(self, ctx: PlatformContext) -> None:
        self._ctx = ctx

    def is_available(self, name: str, extension_dir: str) -> bool:
        if not extension_dir:
            return False
        directory = Path(extension_dir)
        try:
            return any((directory / f).is_file() for f in self._ctx.extension_filenames(name))
        except OSError as e:
            logger.debug("Cannot inspect %s: %s", directory, e)
            return False


class DpkgAvailability:
    """Asks dpkg whether the php-<name> package is installed.

    Args:
        php_version: 'major.minor' used for versioned package names
            (php8.3-redis) tried before the unversioned alias.
    """

    def __init__(self, php_version: str | None = None) -> None:
        self._php_version = php_version

    def package_names(self, name: str) -> list[str]:
        """Candidate Debian package names for an extension."""
        names: list[str] = []
        if self._php_version:
            names.append(f"php{self._php_version}-{name}")
        names.append(f"php-{name}")
        return names

    def is_available(self, name: str, extension_dir: str) -> bool:
        if name in BUILTIN_EXTENSIONS:
            return False
        if not command_exists("dpkg-query"):
            return False
        for package in self.package_names(name):
            try:
                result = run_command(
                    ["dpkg-query", "-W", "-f=${Status}", package],
                    timeout=DPKG_TIMEOUT,
                    discard_stderr=True,
                )
            except (OSError, subprocess.SubprocessError) as e:
                logger.debug("dpkg-query for %s failed: %s", package, e)
                continue
            if result.success and "install ok installed" in result.stdout:
                return True
        return False


class ChainedAvailability:
    """Available if any wrapped strategy says so."""

    def __init__(self, *strategies: ExtensionAvailability) -> None:
        self._strategies = strategies

    def is_available(self, name: str, extension_dir: str) -> bool:
        return any(s.is_available(name, extension_dir) for s in self._strategies)


def default_availability(
    ctx: PlatformContext, php_version: str | None = None
) -> ExtensionAvailability:
    """Pick the availability strategy for a platform.

    Args:
        ctx: Platform description.
        php_version: Installation version, used for package names.

    Returns:
        File lookup, chained with dpkg on package-manager platforms.
    """
    files = ExtensionFileAvailability(ctx)
    if not ctx.uses_package_manager:
        return files
    major_minor = None
    if php_version and php_version[:1].isdigit():
        major_minor = ".".join(php_version.split(".")[:2])
    return ChainedAvailability(files, DpkgAvailability(major_minor))

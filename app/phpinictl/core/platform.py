"""Platform description passed into discovery and transformation.

A PlatformContext captures everything that differs between operating
systems (executable names, extension file naming, environment snapshot)
so the locator can run against a fake context in tests.
"""

import os
import sys
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType


class OSFamily(str, Enum):
    """Operating system families with distinct PHP layouts."""

    WINDOWS = "windows"
    LINUX = "linux"
    MACOS = "macos"


# Environment variables captured into the snapshot
TRACKED_ENV_VARS: tuple[str, ...] = (
    "PATH",
    "PVM_PATH",
    "LARAGON_PATH",
    "XAMPP_PATH",
    "WAMP_PATH",
    "DEFAULT_PATH",
    "HOMEBREW_PREFIX",
    "PHPINICTL_EXTRA_PATHS",
    "SYSTEMDRIVE",
    "PROGRAMFILES",
    "PROGRAMFILES(X86)",
)


def _freeze(env: Mapping[str, str]) -> Mapping[str, str]:
    return MappingProxyType({k: v for k, v in env.items() if v})


@dataclass(frozen=True, slots=True)
class PlatformContext:
    """Immutable snapshot of platform conventions.

    Attributes:
        os_family: Operating system family.
        environ: Snapshot of the relevant environment variables.
        path_separator: Separator used in PATH-like variables.
        drive_roots: Filesystem roots considered for the deep scan.
    """

    os_family: OSFamily
    environ: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    path_separator: str = os.pathsep
    drive_roots: tuple[str, ...] = ()

    @classmethod
    def current(cls) -> "PlatformContext":
        """Build a context for the running interpreter."""
        if sys.platform.startswith("win"):
            family = OSFamily.WINDOWS
            system_drive = os.environ.get("SYSTEMDRIVE", "C:")
            roots: tuple[str, ...] = (f"{system_drive}/",)
        elif sys.platform == "darwin":
            family = OSFamily.MACOS
            roots = ()
        else:
            family = OSFamily.LINUX
            roots = ()
        env = {name: os.environ.get(name, "") for name in TRACKED_ENV_VARS}
        return cls(
            os_family=family,
            environ=_freeze(env),
            path_separator=os.pathsep,
            drive_roots=roots,
        )

    @classmethod
    def for_linux(cls, environ: Mapping[str, str] | None = None) -> "PlatformContext":
        """Build a Linux context with an explicit environment."""
        return cls(OSFamily.LINUX, _freeze(environ or {}), ":", ())

    @classmethod
    def for_macos(cls, environ: Mapping[str, str] | None = None) -> "PlatformContext":
        """Build a macOS context with an explicit environment."""
        return cls(OSFamily.MACOS, _freeze(environ or {}), ":", ())

    @classmethod
    def for_windows(
        cls,
        environ: Mapping[str, str] | None = None,
        drive_roots: tuple[str, ...] = (),
    ) -> "PlatformContext":
        """Build a Windows context with an explicit environment."""
        return cls(OSFamily.WINDOWS, _freeze(environ or {}), ";", drive_roots)

    @property
    def is_windows(self) -> bool:
        """True on Windows."""
        return self.os_family == OSFamily.WINDOWS

    @property
    def uses_package_manager(self) -> bool:
        """True where PHP extensions normally arrive as system packages."""
        return self.os_family == OSFamily.LINUX

    @property
    def executable_name(self) -> str:
        """File name of the PHP CLI binary."""
        return "php.exe" if self.is_windows else "php"

    @property
    def extension_suffixes(self) -> tuple[str, ...]:
        """Shared-library suffixes used by PHP extensions."""
        if self.is_windows:
            return (".dll",)
        if self.os_family == OSFamily.MACOS:
            return (".so", ".dylib")
        return (".so",)

    def extension_filenames(self, name: str) -> tuple[str, ...]:
        """Candidate file names for an extension inside extension_dir.

        Args:
            name: Extension name (e.g. 'curl').

        Returns:
            File names in lookup order.
        """
        if self.is_windows:
            return (f"php_{name}.dll", f"{name}.dll")
        names: list[str] = []
        for suffix in self.extension_suffixes:
            names.append(f"{name}{suffix}")
            names.append(f"php_{name}{suffix}")
        names.append(f"lib{name}.so")
        return tuple(dict.fromkeys(names))

    def env(self, name: str) -> str:
        """Return an environment variable from the snapshot ('' if unset)."""
        return self.environ.get(name, "")

    def env_paths(self, name: str) -> list[str]:
        """Split a PATH-like environment variable from the snapshot."""
        raw = self.env(name)
        return [p for p in raw.split(self.path_separator) if p]

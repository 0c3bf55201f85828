"""Installation models for PHP discovery.

This module defines the structures produced by the locator and the
declarative vendor layout templates it consumes.
"""

from dataclasses import dataclass, field, replace
from typing import Any

UNKNOWN_VERSION = "unknown"


@dataclass(frozen=True, slots=True)
class EnvironmentTemplate:
    """Declarative description of one vendor's on-disk layout.

    Path templates are tuples of path segments relative to a base path.
    A segment may contain the '{version}' placeholder, which is replaced
    by the version directory name found via version_pattern.

    Attributes:
        name: Vendor label shown to the user (e.g. 'Laragon').
        base_paths: Candidate roots; environment-sourced entries first.
        ini_pattern: Segments leading to php.ini.
        ext_pattern: Segments leading to the extension directory.
        exe_patterns: Alternative segment paths to the directory holding
            the PHP binary, tried in order. An empty tuple means the base
            directory itself; absolute segments are allowed.
        exe_names: Binary names with an optional {version} placeholder.
            Empty means the platform default (php or php.exe).
        version_pattern: Segments whose last element is a glob selecting
            version directories (e.g. ('php', '*')). None for single-version
            layouts.
        priority: Rank used for ordering results, lower is preferred.
        deep_scan_depth: If set, the base path is additionally walked this
            many levels deep for PHP executables.
    """

    name: str
    base_paths: tuple[str, ...]
    ini_pattern: tuple[str, ...]
    ext_pattern: tuple[str, ...]
    exe_patterns: tuple[tuple[str, ...], ...] = ((),)
    exe_names: tuple[str, ...] = ()
    version_pattern: tuple[str, ...] | None = None
    priority: int = 50
    deep_scan_depth: int | None = None

    def __post_init__(self) -> None:
        """Validate template data after initialization."""
        if not self.name:
            msg = "Template name cannot be empty"
            raise ValueError(msg)
        if self.deep_scan_depth is not None and self.deep_scan_depth < 1:
            msg = f"deep_scan_depth must be positive, got {self.deep_scan_depth}"
            raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class Installation:
    """A discovered PHP runtime.

    Attributes:
        version: Reported version ('8.3.4') or 'unknown'.
        base_path: Installation root the candidate was found under.
        ini_path: Loaded php.ini path ('' if none).
        extension_dir: Extension directory ('' if unknown).
        executable_path: PHP CLI binary ('' if none was found).
        environment_label: Vendor or heuristic that found it.
        is_active: True if this is what bare `php` on PATH resolves to.
        priority: Rank used for ordering, lower is preferred.
        architecture: 'x64', 'x86', 'arm64'... when reported.
        thread_safety: True for ZTS builds, False for NTS, None if unknown.
        build_date: Build date string reported by the executable.
    """

    version: str
    base_path: str
    ini_path: str
    extension_dir: str
    executable_path: str
    environment_label: str
    is_active: bool = False
    priority: int = 50
    architecture: str | None = field(default=None)
    thread_safety: bool | None = field(default=None)
    build_date: str | None = field(default=None)

    @property
    def dedup_key(self) -> tuple[str, str]:
        """Identity used to suppress duplicates within one discovery run."""
        return (self.base_path, self.executable_path)

    @property
    def version_tuple(self) -> tuple[int, ...]:
        """Numeric version components for ordering; () when unknown."""
        parts: list[int] = []
        for chunk in self.version.split("."):
            digits = ""
            for ch in chunk:
                if not ch.isdigit():
                    break
                digits += ch
            if not digits:
                break
            parts.append(int(digits))
        return tuple(parts)

    @property
    def thread_safety_label(self) -> str:
        """'TS', 'NTS' or '' when unknown."""
        if self.thread_safety is None:
            return ""
        return "TS" if self.thread_safety else "NTS"

    def activated(self) -> "Installation":
        """Return a copy marked as the active installation."""
        return replace(self, is_active=True)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dictionary."""
        return {
            "version": self.version,
            "base_path": self.base_path,
            "ini_path": self.ini_path,
            "extension_dir": self.extension_dir,
            "executable_path": self.executable_path,
            "environment": self.environment_label,
            "is_active": self.is_active,
            "priority": self.priority,
            "architecture": self.architecture,
            "thread_safety": self.thread_safety_label or None,
            "build_date": self.build_date,
        }


@dataclass(frozen=True, slots=True)
class PhpPaths:
    """The pair of paths the transformer needs."""

    ini_path: str
    extension_dir: str
    executable_path: str = ""

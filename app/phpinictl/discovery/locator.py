"""PHP installation locator.

Discovery runs four methods in decreasing order of trust:

1. PATH resolution (the first hit is the active installation)
2. Windows registry InstallDir values
3. Vendor layout templates (Laragon, XAMPP, WAMP, PVM, Homebrew, APT...)
4. A shallow walk of common filesystem roots

Candidates are deduplicated across methods, so a later method never
re-adds an executable an earlier one already reported. Any failure while
probing one candidate drops that candidate only.
"""

import fnmatch
import logging
import os
import re
import subprocess
from collections.abc import Iterable, Iterator
from pathlib import Path

from phpinictl.core.platform import PlatformContext
from phpinictl.discovery.probe import PhpProbe, ProbeResult
from phpinictl.discovery.templates import (
    PRIORITY_DEEP_SCAN,
    PRIORITY_PATH,
    PRIORITY_REGISTRY,
    default_templates,
)
from phpinictl.discovery.walker import walk_for
from phpinictl.errors import InstallationNotFoundError
from phpinictl.models.installation import (
    UNKNOWN_VERSION,
    EnvironmentTemplate,
    Installation,
    PhpPaths,
)
from phpinictl.utils.shell import run_command

logger = logging.getLogger(__name__)

# Registry subtrees where PHP installers record InstallDir
REGISTRY_KEYS: tuple[str, ...] = (
    r"HKLM\SOFTWARE\PHP",
    r"HKLM\SOFTWARE\WOW6432Node\PHP",
    r"HKCU\SOFTWARE\PHP",
)

_REG_VALUE_RE = re.compile(r"^\s*InstallDir\s+REG_\w+\s+(.+?)\s*$", re.IGNORECASE)
_VERSION_IN_NAME_RE = re.compile(r"(\d+\.\d+(?:\.\d+)?)")
_VERSION_DIR_RE = re.compile(r"^\D{0,8}\d+(\.\d+)+")

# Conventional php.ini locations relative to an installation directory
_INI_FALLBACKS: tuple[tuple[str, ...], ...] = (
    ("php.ini",),
    ("conf", "php.ini"),
    ("etc", "php.ini"),
    ("lib", "php.ini"),
    ("php.ini-development",),
)

_UNIX_SYSTEM_INIS: tuple[str, ...] = (
    "/etc/php.ini",
    "/usr/local/etc/php.ini",
    "/usr/local/lib/php.ini",
)

_EXT_FALLBACKS: tuple[tuple[str, ...], ...] = (
    ("ext",),
    ("lib", "php", "extensions"),
)

_DEFAULT_SCAN_DEPTH = 2

REGISTRY_TIMEOUT = 5.0


def _segments(pattern: Iterable[str], version: str) -> list[str]:
    return [part.replace("{version}", version) for part in pattern]


def _join(base: Path, pattern: Iterable[str], version: str) -> Path:
    return base.joinpath(*_segments(pattern, version))


def _is_file(path: Path) -> bool:
    try:
        return path.is_file()
    except OSError:
        return False


def _is_dir(path: Path) -> bool:
    try:
        return path.is_dir()
    except OSError:
        return False


def _looks_like_version_dir(name: str) -> bool:
    """Accept '8.3', 'php-8.3.4-Win32-vs16-x64', 'php8.2.0' and the like."""
    return bool(_VERSION_DIR_RE.match(name)) or "php" in name.lower()


def _version_from_name(name: str) -> str | None:
    match = _VERSION_IN_NAME_RE.search(name)
    return match.group(1) if match else None


class InstallationLocator:
    """Finds PHP installations on the host.

    The locator's behaviour depends only on its inputs: a PlatformContext,
    the template list, the probe and the filesystem. Swap in a fake context
    and probe to make discovery deterministic in tests.

    Args:
        ctx: Platform conventions and environment snapshot.
        templates: Vendor templates; defaults to default_templates(ctx).
        probe: Executable introspection helper.
        scan_roots: Roots for the final deep scan. Defaults to the
            context's drive roots on Windows and /opt on other systems.
        deep_scan: Disable to skip step 4 entirely.
        scan_depth: Depth for the root scan.
    """

    def __init__(
        self,
        ctx: PlatformContext | None = None,
        *,
        templates: Iterable[EnvironmentTemplate] | None = None,
        probe: PhpProbe | None = None,
        scan_roots: Iterable[str] | None = None,
        deep_scan: bool = True,
        scan_depth: int = _DEFAULT_SCAN_DEPTH,
    ) -> None:
        self._ctx = ctx or PlatformContext.current()
        self._templates = (
            tuple(templates) if templates is not None else default_templates(self._ctx)
        )
        self._probe = probe or PhpProbe()
        if scan_roots is not None:
            self._scan_roots = tuple(scan_roots)
        elif self._ctx.is_windows:
            self._scan_roots = self._ctx.drive_roots
        else:
            self._scan_roots = ("/opt",)
        self._deep_scan = deep_scan
        self._scan_depth = scan_depth

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def discover_installations(self) -> list[Installation]:
        """Run every discovery method and return ordered results.

        Results are sorted by priority (ascending) then version
        (descending). If PATH yielded nothing, the best result is
        promoted to active.

        Returns:
            Installations, possibly empty.
        """
        run = _DiscoveryRun()

        for method in (
            self._from_path,
            self._from_registry,
            self._from_templates,
            self._from_root_scan,
        ):
            try:
                for installation in method():
                    run.add(installation)
            except (OSError, ValueError) as e:
                logger.debug("Discovery method %s aborted: %s", method.__name__, e)

        results = run.results
        results.sort(key=lambda i: i.version_tuple, reverse=True)
        results.sort(key=lambda i: i.priority)

        if results and not any(i.is_active for i in results):
            results[0] = results[0].activated()

        logger.debug("Discovered %d PHP installation(s)", len(results))
        return results

    def find_installation(self, version_hint: str | None = None) -> Installation:
        """Pick one installation, optionally matching a version hint.

        Matching order: exact version, version prefix, version substring,
        then substring of the base or ini path. Without a hint (or
        without a match) the active installation is returned.

        Raises:
            InstallationNotFoundError: If discovery found nothing.
        """
        installations = self.discover_installations()
        return select_installation(installations, version_hint)

    def resolve_paths(self, version_hint: str | None = None) -> PhpPaths:
        """Return the ini path and extension directory to operate on.

        Raises:
            InstallationNotFoundError: If discovery found nothing.
        """
        chosen = self.find_installation(version_hint)
        return PhpPaths(
            ini_path=chosen.ini_path,
            extension_dir=chosen.extension_dir,
            executable_path=chosen.executable_path,
        )

    # ------------------------------------------------------------------
    # Discovery methods
    # ------------------------------------------------------------------

    def _from_path(self) -> Iterator[Installation]:
        exe_name = self._ctx.executable_name
        first = True
        for directory in self._ctx.env_paths("PATH"):
            candidate = Path(directory) / exe_name
            if not self._is_executable(candidate):
                continue
            installation = self._build(
                base=candidate.parent,
                executable=candidate,
                label="System PATH",
                priority=PRIORITY_PATH,
                is_active=first,
            )
            if installation is not None:
                first = False
                yield installation

    def _from_registry(self) -> Iterator[Installation]:
        if not self._ctx.is_windows:
            return
        for install_dir in self._registry_install_dirs():
            base = Path(install_dir)
            if not _is_dir(base):
                continue
            executable = self._find_executable_in(base)
            installation = self._build(
                base=base,
                executable=executable,
                label="Registry",
                priority=PRIORITY_REGISTRY,
            )
            if installation is not None:
                yield installation

    def _from_templates(self) -> Iterator[Installation]:
        for template in self._templates:
            for raw_base in template.base_paths:
                base = Path(raw_base)
                if not _is_dir(base):
                    continue
                try:
                    yield from self._from_template_base(template, base)
                except OSError as e:
                    logger.debug("Skipping %s base %s: %s", template.name, base, e)

    def _from_template_base(
        self, template: EnvironmentTemplate, base: Path
    ) -> Iterator[Installation]:
        if template.version_pattern:
            for version_dir in self._version_directories(base, template):
                installation = self._build_from_template(template, base, version_dir.name)
                if installation is not None:
                    yield installation
        else:
            installation = self._build_from_template(template, base, "")
            if installation is not None:
                yield installation

        if template.deep_scan_depth:
            for directory in walk_for(base, self._holds_executable, template.deep_scan_depth):
                installation = self._build(
                    base=directory,
                    executable=directory / self._ctx.executable_name,
                    label=template.name,
                    priority=template.priority,
                )
                if installation is not None:
                    yield installation

    def _from_root_scan(self) -> Iterator[Installation]:
        if not self._deep_scan:
            return
        for root in self._scan_roots:
            root_path = Path(root)
            if not _is_dir(root_path):
                continue
            for directory in walk_for(root_path, self._holds_executable, self._scan_depth):
                installation = self._build(
                    base=directory,
                    executable=directory / self._ctx.executable_name,
                    label="Filesystem Scan",
                    priority=PRIORITY_DEEP_SCAN,
                )
                if installation is not None:
                    yield installation

    # ------------------------------------------------------------------
    # Candidate construction
    # ------------------------------------------------------------------

    def _version_directories(self, base: Path, template: EnvironmentTemplate) -> list[Path]:
        """List version directories matching the template's glob.

        A directory qualifies if its name looks like a version and an
        executable is reachable for it, either through the template's
        executable patterns or somewhere beneath it.
        """
        if not template.version_pattern:
            return []
        *parents, glob = template.version_pattern
        parent = base.joinpath(*parents)
        if not _is_dir(parent):
            return []

        matches: list[Path] = []
        for entry in sorted(parent.iterdir()):
            if not entry.is_dir() or not fnmatch.fnmatch(entry.name, glob):
                continue
            if not _looks_like_version_dir(entry.name):
                continue
            if self._template_executable(template, base, entry.name) is None and not any(
                walk_for(entry, self._holds_executable, 2)
            ):
                logger.debug("Ignoring %s: no PHP executable inside", entry)
                continue
            matches.append(entry)
        return matches

    def _build_from_template(
        self, template: EnvironmentTemplate, base: Path, version: str
    ) -> Installation | None:
        if template.version_pattern and version:
            root = base.joinpath(*template.version_pattern[:-1]) / version
        else:
            root = base
        executable = self._template_executable(template, base, version)
        if executable is None and version:
            executable = next(
                (d / self._ctx.executable_name for d in walk_for(root, self._holds_executable, 2)),
                None,
            )

        ini_hint = _join(base, template.ini_pattern, version) if template.ini_pattern else None
        ext_hint = _join(base, template.ext_pattern, version) if template.ext_pattern else None

        return self._build(
            base=root,
            executable=executable,
            label=template.name,
            priority=template.priority,
            ini_hint=ini_hint,
            ext_hint=ext_hint,
            dir_version=_version_from_name(version) if version else None,
        )

    def _template_executable(
        self, template: EnvironmentTemplate, base: Path, version: str
    ) -> Path | None:
        names = template.exe_names or (self._ctx.executable_name,)
        short_version = _version_from_name(version) or version
        for pattern in template.exe_patterns:
            directory = _join(base, pattern, version)
            for name in names:
                for candidate_version in dict.fromkeys((version, short_version)):
                    candidate = directory / name.replace("{version}", candidate_version)
                    if self._is_executable(candidate):
                        return candidate
        return None

    def _build(
        self,
        *,
        base: Path,
        executable: Path | None,
        label: str,
        priority: int,
        is_active: bool = False,
        ini_hint: Path | None = None,
        ext_hint: Path | None = None,
        dir_version: str | None = None,
    ) -> Installation | None:
        """Assemble an Installation, or None if no php.ini can be found."""
        exe_path = None
        if executable is not None and self._is_executable(executable):
            exe_path = executable
        probe: ProbeResult | None = None
        if exe_path is not None:
            probe = self._probe.inspect(str(exe_path))

        version = (probe.version if probe else None) or dir_version or UNKNOWN_VERSION
        ini_path = self._locate_ini(base, exe_path, probe, ini_hint, version)
        if ini_path is None:
            logger.debug("Discarding %s candidate at %s: no php.ini", label, base)
            return None

        ext_dir = self._locate_extension_dir(base, exe_path, probe, ext_hint)

        return Installation(
            version=version,
            base_path=str(base),
            ini_path=str(ini_path),
            extension_dir=str(ext_dir) if ext_dir else "",
            executable_path=str(exe_path) if exe_path else "",
            environment_label=label,
            is_active=is_active,
            priority=priority,
            architecture=probe.architecture if probe else None,
            thread_safety=probe.thread_safety if probe else None,
            build_date=probe.build_date if probe else None,
        )

    def _locate_ini(
        self,
        base: Path,
        executable: Path | None,
        probe: ProbeResult | None,
        hint: Path | None,
        version: str,
    ) -> Path | None:
        candidates: list[Path] = []
        if hint is not None:
            candidates.append(hint)
        if probe and probe.loaded_ini:
            candidates.append(Path(probe.loaded_ini))
        roots = [base]
        if executable is not None and executable.parent != base:
            roots.append(executable.parent)
        for root in roots:
            candidates.extend(root.joinpath(*parts) for parts in _INI_FALLBACKS)
        if not self._ctx.is_windows:
            major_minor = ".".join(version.split(".")[:2])
            if major_minor and version != UNKNOWN_VERSION:
                candidates.append(Path("/etc/php") / major_minor / "cli" / "php.ini")
            candidates.extend(Path(p) for p in _UNIX_SYSTEM_INIS)

        return next((c for c in candidates if _is_file(c)), None)

    def _locate_extension_dir(
        self,
        base: Path,
        executable: Path | None,
        probe: ProbeResult | None,
        hint: Path | None,
    ) -> Path | None:
        candidates: list[Path] = []
        if hint is not None:
            candidates.append(hint)
        if probe and probe.extension_dir:
            ext = Path(probe.extension_dir)
            if not ext.is_absolute() and executable is not None:
                ext = executable.parent / ext
            candidates.append(ext)
        roots = [base]
        if executable is not None and executable.parent != base:
            roots.append(executable.parent)
        for root in roots:
            candidates.extend(root.joinpath(*parts) for parts in _EXT_FALLBACKS)
        return next((c for c in candidates if _is_dir(c)), None)

    # ------------------------------------------------------------------
    # Filesystem and OS helpers
    # ------------------------------------------------------------------

    def _is_executable(self, path: Path) -> bool:
        if not _is_file(path):
            return False
        return self._ctx.is_windows or os.access(path, os.X_OK)

    def _holds_executable(self, directory: Path) -> bool:
        return self._is_executable(directory / self._ctx.executable_name)

    def _find_executable_in(self, base: Path) -> Path | None:
        for parts in ((), ("bin",)):
            candidate = base.joinpath(*parts) / self._ctx.executable_name
            if self._is_executable(candidate):
                return candidate
        return None

    def _registry_install_dirs(self) -> list[str]:
        dirs: list[str] = []
        for key in REGISTRY_KEYS:
            try:
                result = run_command(
                    ["reg", "query", key, "/s", "/v", "InstallDir"],
                    timeout=REGISTRY_TIMEOUT,
                    discard_stderr=True,
                )
            except (OSError, subprocess.SubprocessError, ValueError) as e:
                logger.debug("Registry query %s failed: %s", key, e)
                continue
            if not result.success:
                continue
            for line in result.stdout.splitlines():
                match = _REG_VALUE_RE.match(line)
                if match:
                    dirs.append(match.group(1).rstrip("\\/"))
        return list(dict.fromkeys(dirs))


class _DiscoveryRun:
    """Accumulates candidates for one discovery call, dropping duplicates."""

    def __init__(self) -> None:
        self.results: list[Installation] = []
        self._keys: set[tuple[str, str]] = set()
        self._executables: set[str] = set()

    @staticmethod
    def _real(path: str) -> str:
        try:
            return os.path.realpath(path)
        except OSError:
            return path

    def add(self, installation: Installation) -> bool:
        if installation.dedup_key in self._keys:
            return False
        if installation.executable_path:
            real = self._real(installation.executable_path)
            if real in self._executables:
                logger.debug("Skipping duplicate executable %s", installation.executable_path)
                return False
            self._executables.add(real)
        self._keys.add(installation.dedup_key)
        self.results.append(installation)
        return True


def select_installation(
    installations: list[Installation], version_hint: str | None = None
) -> Installation:
    """Choose an installation from a discovery result.

    Args:
        installations: Ordered discovery result.
        version_hint: Optional version or path fragment.

    Returns:
        The matching installation, else the active one, else the first.

    Raises:
        InstallationNotFoundError: If installations is empty.
    """
    if not installations:
        raise InstallationNotFoundError()

    if version_hint:
        hint = version_hint.strip()
        matchers = (
            lambda i: i.version == hint,
            lambda i: i.version.startswith(hint),
            lambda i: hint in i.version,
            lambda i: hint in i.base_path or hint in i.ini_path,
        )
        for matcher in matchers:
            match = next((i for i in installations if matcher(i)), None)
            if match is not None:
                return match
        logger.info("No installation matches '%s', using the active one", hint)

    return next((i for i in installations if i.is_active), installations[0])


def discover_installations(ctx: PlatformContext | None = None) -> list[Installation]:
    """Discover installations with the default locator."""
    return InstallationLocator(ctx).discover_installations()


def resolve_paths(version_hint: str | None = None, ctx: PlatformContext | None = None) -> PhpPaths:
    """Resolve ini path and extension directory with the default locator."""
    return InstallationLocator(ctx).resolve_paths(version_hint)

"""Introspection of PHP executables.

Runs a discovered binary with -v, -i and -m to learn its version, build
details and loaded modules. Every probe is bounded by a timeout and
discards the child's stderr; a probe that fails in any way yields None
instead of raising.
"""

import logging
import re
import subprocess
from dataclasses import dataclass

from phpinictl.utils.shell import run_command

logger = logging.getLogger(__name__)

DEFAULT_PROBE_TIMEOUT = 5.0

_VERSION_RE = re.compile(r"PHP (\d+\.\d+\.\d+(?:[-.][0-9A-Za-z]+)*)")
_INFO_LINE_RE = re.compile(r"^\s*([^=>]+?)\s*=>\s*(.*?)\s*$")
_UNLOADABLE_RE = re.compile(r"Unable to load dynamic library '([^']+)'")
_DUPLICATE_RE = re.compile(r'Module "([^"]+)" is already loaded')


@dataclass(frozen=True, slots=True)
class ProbeResult:
    """What a PHP executable reports about itself.

    Attributes:
        version: Version string from `php -v`.
        architecture: Value of the 'Architecture' line of `php -i`.
        thread_safety: True for 'Thread Safety => enabled'.
        build_date: Value of the 'Build Date' line.
        extension_dir: Configured extension_dir (local value).
        loaded_ini: 'Loaded Configuration File', None when '(none)'.
        ini_scan_dir: 'Configuration File (php.ini) Path'.
    """

    version: str
    architecture: str | None = None
    thread_safety: bool | None = None
    build_date: str | None = None
    extension_dir: str | None = None
    loaded_ini: str | None = None
    ini_scan_dir: str | None = None


@dataclass(frozen=True, slots=True)
class StartupProblems:
    """Extensions PHP complained about while starting up.

    Attributes:
        unloadable: Names from "Unable to load dynamic library 'x'".
        duplicates: Names from 'Module "x" is already loaded'.
    """

    unloadable: tuple[str, ...] = ()
    duplicates: tuple[str, ...] = ()

    @property
    def all(self) -> tuple[str, ...]:
        """Unloadable then duplicate names, without repeats."""
        return tuple(dict.fromkeys((*self.unloadable, *self.duplicates)))


def _library_to_extension(library: str) -> str:
    """Turn 'php_redis.dll' or '/usr/lib/php/x/redis.so' into 'redis'."""
    name = re.split(r"[\\/]", library)[-1]
    name = re.sub(r"\.(dll|so|dylib)$", "", name)
    for prefix in ("php_", "lib"):
        if name.startswith(prefix) and len(name) > len(prefix):
            name = name[len(prefix) :]
            break
    return name.lower()


def parse_version(output: str) -> str | None:
    """Extract the version from `php -v` output."""
    match = _VERSION_RE.search(output)
    return match.group(1) if match else None


def parse_info(output: str) -> dict[str, str]:
    """Parse `php -i` text output into a key -> first value mapping.

    Lines look like 'Architecture => x64' or, for ini directives,
    'extension_dir => /a => /b' (local value first).
    """
    info: dict[str, str] = {}
    for line in output.splitlines():
        match = _INFO_LINE_RE.match(line)
        if not match:
            continue
        key, rest = match.group(1), match.group(2)
        value = rest.split(" => ", 1)[0].strip()
        info.setdefault(key, value)
    return info


class PhpProbe:
    """Runs bounded introspection commands against PHP binaries.

    Results are cached per executable path for the lifetime of the
    probe, so one discovery run never invokes the same binary twice.
    """

    def __init__(self, timeout: float = DEFAULT_PROBE_TIMEOUT) -> None:
        self._timeout = timeout
        self._cache: dict[str, ProbeResult | None] = {}

    def _run(self, executable: str, *args: str) -> str | None:
        try:
            result = run_command(
                [executable, *args],
                timeout=self._timeout,
                discard_stderr=True,
            )
        except (OSError, subprocess.SubprocessError, ValueError) as e:
            logger.debug("Probe %s %s failed: %s", executable, " ".join(args), e)
            return None
        if not result.success:
            logger.debug(
                "Probe %s %s exited with %d", executable, " ".join(args), result.returncode
            )
            return None
        return result.stdout

    def inspect(self, executable: str) -> ProbeResult | None:
        """Ask an executable for its version and build details.

        Args:
            executable: Path to a PHP CLI binary.

        Returns:
            ProbeResult, or None if the binary is broken, hangs, or does
            not identify itself as PHP.
        """
        if executable in self._cache:
            return self._cache[executable]

        result: ProbeResult | None = None
        version_out = self._run(executable, "-v")
        version = parse_version(version_out) if version_out else None
        if version is not None:
            info_out = self._run(executable, "-i") or ""
            info = parse_info(info_out)
            loaded_ini = info.get("Loaded Configuration File")
            thread_safety = info.get("Thread Safety")
            result = ProbeResult(
                version=version,
                architecture=info.get("Architecture") or None,
                thread_safety=None if thread_safety is None else thread_safety == "enabled",
                build_date=info.get("Build Date") or None,
                extension_dir=info.get("extension_dir") or None,
                loaded_ini=None if loaded_ini in (None, "", "(none)") else loaded_ini,
                ini_scan_dir=info.get("Configuration File (php.ini) Path") or None,
            )

        self._cache[executable] = result
        return result

    def loaded_modules(self, executable: str) -> frozenset[str]:
        """Return lowercase module names reported by `php -m`.

        Section headers such as '[Zend Modules]' are skipped. An empty set
        is returned when the probe fails.
        """
        output = self._run(executable, "-m")
        if not output:
            return frozenset()
        modules = {
            line.strip().lower()
            for line in output.splitlines()
            if line.strip() and not line.strip().startswith("[")
        }
        # OPcache lists itself under its display name
        if "zend opcache" in modules:
            modules.add("opcache")
        return frozenset(modules)

    def startup_problems(self, executable: str) -> StartupProblems:
        """Collect extensions PHP fails to load or loads twice.

        Startup warnings are printed to either stream depending on
        display_startup_errors, so both are read here.
        """
        try:
            result = run_command([executable, "-v"], timeout=self._timeout)
        except (OSError, subprocess.SubprocessError, ValueError) as e:
            logger.debug("Startup check of %s failed: %s", executable, e)
            return StartupProblems()

        text = f"{result.stdout}\n{result.stderr}"
        unloadable = [_library_to_extension(m) for m in _UNLOADABLE_RE.findall(text)]
        duplicates = [m.lower() for m in _DUPLICATE_RE.findall(text)]
        return StartupProblems(
            unloadable=tuple(dict.fromkeys(unloadable)),
            duplicates=tuple(dict.fromkeys(duplicates)),
        )

"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

from collections.abc import Callable
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from phpinictl.core.platform import PlatformContext
from phpinictl.discovery.probe import PhpProbe, StartupProblems

SAMPLE_INI = """[PHP]
engine = On
memory_limit = 128M
;max_execution_time = 30

; Dynamic Extensions
;extension=curl
;extension=mbstring
extension=openssl
;extension=opcache

[Date]
;date.timezone =
"""


@pytest.fixture
def sample_ini_text() -> str:
    """A small php.ini with commented and active extensions."""
    return SAMPLE_INI


@pytest.fixture
def ini_file(tmp_path: Path) -> Path:
    """SAMPLE_INI written to a temporary php.ini."""
    path = tmp_path / "php.ini"
    path.write_text(SAMPLE_INI, encoding="utf-8")
    return path


@pytest.fixture
def windows_ctx() -> PlatformContext:
    """Windows context: no executable bit checks, no system ini fallbacks."""
    return PlatformContext.for_windows({})


@pytest.fixture
def linux_ctx() -> PlatformContext:
    """Linux context with an empty environment."""
    return PlatformContext.for_linux({})


@pytest.fixture
def fake_probe() -> MagicMock:
    """Probe that reports nothing unless a test configures it."""
    probe = MagicMock(spec=PhpProbe)
    probe.inspect.return_value = None
    probe.loaded_modules.return_value = frozenset()
    probe.startup_problems.return_value = StartupProblems()
    return probe


@pytest.fixture
def make_php() -> Callable[..., Path]:
    """Factory creating a fake PHP directory with a binary and php.ini."""

    def _make(directory: Path, name: str = "php.exe", with_ini: bool = True) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        executable = directory / name
        executable.write_text("")
        executable.chmod(0o755)
        if with_ini:
            (directory / "php.ini").write_text("[PHP]\n")
        return executable

    return _make


@pytest.fixture
def mock_php_info_output() -> str:
    """Sample `php -i` output."""
    return """phpinfo()
PHP Version => 8.3.4

System => Windows NT HOST 10.0 build 22631 (Windows 11) AMD64
Build Date => Mar 12 2024 23:27:12
Architecture => x64
Configuration File (php.ini) Path =>
Loaded Configuration File => C:\\laragon\\bin\\php\\php-8.3.4\\php.ini
Thread Safety => enabled
extension_dir => C:\\laragon\\bin\\php\\php-8.3.4\\ext => C:\\laragon\\bin\\php\\php-8.3.4\\ext
"""


@pytest.fixture
def mock_php_version_output() -> str:
    """Sample `php -v` output."""
    return """PHP 8.3.4 (cli) (built: Mar 12 2024 23:27:12) (ZTS Visual C++ 2019 x64)
Copyright (c) The PHP Group
Zend Engine v4.3.4, Copyright (c) Zend Technologies
"""

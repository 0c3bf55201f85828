"""Fixtures shared by the CLI tests."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest
from phpinictl.discovery.locator import InstallationLocator
from phpinictl.models.installation import Installation


@pytest.fixture
def installation(ini_file: Path) -> Installation:
    """Active installation whose php.ini is the sample file."""
    return Installation(
        version="8.3.4",
        base_path=str(ini_file.parent),
        ini_path=str(ini_file),
        extension_dir="",
        executable_path="",
        environment_label="Laragon",
        is_active=True,
        priority=20,
        architecture="x64",
        thread_safety=True,
    )


@pytest.fixture
def locator(installation: Installation) -> MagicMock:
    """Locator returning the single sample installation."""
    mock = MagicMock(spec=InstallationLocator)
    mock.discover_installations.return_value = [installation]
    return mock

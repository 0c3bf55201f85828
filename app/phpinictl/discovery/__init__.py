"""PHP installation discovery.

This module exports the locator and its building blocks.
"""

from phpinictl.discovery.locator import (
    InstallationLocator,
    discover_installations,
    resolve_paths,
    select_installation,
)
from phpinictl.discovery.probe import PhpProbe, ProbeResult, StartupProblems
from phpinictl.discovery.templates import default_templates
from phpinictl.discovery.walker import walk_for

__all__ = [
    "InstallationLocator",
    "PhpProbe",
    "ProbeResult",
    "StartupProblems",
    "default_templates",
    "discover_installations",
    "resolve_paths",
    "select_installation",
    "walk_for",
]

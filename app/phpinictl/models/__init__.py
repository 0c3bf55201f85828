"""Data models for phpinictl.

This module exports the installation, report and backup models.
"""

from phpinictl.models.backup import BackupInfo, BackupMetadata
from phpinictl.models.installation import EnvironmentTemplate, Installation, PhpPaths
from phpinictl.models.report import RepairReport, TransformReport, ValidationResult

__all__ = [
    "BackupInfo",
    "BackupMetadata",
    "EnvironmentTemplate",
    "Installation",
    "PhpPaths",
    "RepairReport",
    "TransformReport",
    "ValidationResult",
]

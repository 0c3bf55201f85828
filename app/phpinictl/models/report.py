"""Report models returned by transformation and validation."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True)
class TransformReport:
    """Structured diff of one php.ini transformation.

    Attributes:
        enabled: Extensions switched on by this run.
        already_enabled: Extensions that were already active in the file.
        already_loaded: Extensions the executable reports as loaded
            (compiled in or configured elsewhere); left untouched.
        missing: Extensions with no commented line and no available binary.
        added: Setting keys appended because no line existed.
        updated: Setting keys whose existing line was rewritten.
        extension_dir: Normalized extension_dir written, if any.
        backup_path: Backup taken before writing ('' for previews).
        changed: True if the output text differs from the input.
    """

    enabled: list[str] = field(default_factory=list)
    already_enabled: list[str] = field(default_factory=list)
    already_loaded: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    added: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    extension_dir: str | None = None
    backup_path: str = ""
    changed: bool = False

    @property
    def settings_count(self) -> int:
        """Number of settings written."""
        return len(self.added) + len(self.updated)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dictionary."""
        return {
            "enabled": list(self.enabled),
            "already_enabled": list(self.already_enabled),
            "already_loaded": list(self.already_loaded),
            "missing": list(self.missing),
            "added": list(self.added),
            "updated": list(self.updated),
            "extension_dir": self.extension_dir,
            "backup_path": self.backup_path,
            "changed": self.changed,
        }


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Outcome of a syntax check of php.ini text.

    Attributes:
        errors: Problems that make the file malformed.
        warnings: Lines that look suspicious but are tolerated by PHP.
    """

    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        """True if no errors were found."""
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dictionary."""
        return {
            "is_valid": self.is_valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }


@dataclass(slots=True)
class RepairReport:
    """Outcome of repairing a php.ini against PHP's startup complaints.

    Attributes:
        converted: Extensions moved from extension= to zend_extension=.
        disabled: Extensions whose directive was commented out.
        reasons: Why each disabled extension was commented out.
        backup_path: Backup taken before writing ('' if nothing changed).
        changed: True if the file was rewritten.
    """

    converted: list[str] = field(default_factory=list)
    disabled: list[str] = field(default_factory=list)
    reasons: dict[str, str] = field(default_factory=dict)
    backup_path: str = ""
    changed: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dictionary."""
        return {
            "converted": list(self.converted),
            "disabled": list(self.disabled),
            "reasons": dict(self.reasons),
            "backup_path": self.backup_path,
            "changed": self.changed,
        }

"""Exception hierarchy for phpinictl.

Discovery failures for a single candidate never surface as exceptions;
everything here is raised only for conditions the caller must handle.
"""

from pathlib import Path


class PhpIniError(Exception):
    """Base exception for all phpinictl errors."""


class InstallationNotFoundError(PhpIniError):
    """Raised when discovery yields no PHP installation at all."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message
            or "No PHP installation found. Install PHP or point LARAGON_PATH, "
            "XAMPP_PATH, WAMP_PATH, PVM_PATH or DEFAULT_PATH at an installation."
        )


class IniFileNotFoundError(PhpIniError):
    """Raised when a php.ini file does not exist at a resolved path."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        super().__init__(f"php.ini file not found at: {self.path}")


class IniPermissionError(PhpIniError):
    """Raised when a php.ini file cannot be read or written.

    Attributes:
        path: The file that could not be accessed.
        needs_elevation: True if retrying through an elevated file access
            would be expected to succeed on this platform.
        hint: Human-readable remediation suggestion.
    """

    def __init__(self, path: Path | str, operation: str, *, needs_elevation: bool) -> None:
        self.path = Path(path)
        self.operation = operation
        self.needs_elevation = needs_elevation
        if needs_elevation:
            self.hint = "Re-run with --sudo to use elevated file access."
        else:
            self.hint = "Run the command from an administrator shell."
        super().__init__(f"Permission denied while trying to {operation} {self.path}")


class BackupError(PhpIniError):
    """Raised when a backup copy cannot be written."""


class BackupNotFoundError(PhpIniError):
    """Raised when a backup file to restore or delete does not exist."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        super().__init__(f"Backup file not found: {self.path}")


class TransformError(PhpIniError):
    """Raised when a php.ini transformation is aborted before writing."""


class ConfigError(PhpIniError):
    """Base exception for phpinictl configuration errors."""


class ConfigParseError(ConfigError):
    """Raised when the config file is not valid TOML."""


class ConfigValidationError(ConfigError):
    """Raised when the config file content does not match the schema."""

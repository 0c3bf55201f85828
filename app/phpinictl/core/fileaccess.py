"""File access for php.ini files and their backups.

The transformer and backup archive never decide on elevation themselves.
The caller picks one implementation up front with select_file_access():
DirectFileAccess for files the current user may write, or
ElevatedFileAccess, which routes every operation through sudo.
"""

import logging
import os
import shutil
import subprocess
import sys
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Protocol, runtime_checkable

from phpinictl.errors import IniFileNotFoundError, IniPermissionError, PhpIniError
from phpinictl.utils.shell import command_exists, run_binary_command

logger = logging.getLogger(__name__)

SUDO_TIMEOUT = 120.0

# Byte-preserving text I/O: unknown bytes round-trip unchanged
_ENCODING = "utf-8"
_ERRORS = "surrogateescape"


def _can_elevate() -> bool:
    return not sys.platform.startswith("win") and command_exists("sudo")


def needs_elevation(path: Path) -> bool:
    """Check whether writing `path` (or creating siblings) needs sudo.

    Args:
        path: Target php.ini.

    Returns:
        True if the file or its directory is not writable by the current
        user and sudo is available.
    """
    writable = os.access(path, os.W_OK) and os.access(path.parent, os.W_OK)
    return not writable and _can_elevate()


@runtime_checkable
class PrivilegedFileAccess(Protocol):
    """File operations used for php.ini rewriting and backups."""

    elevated: bool

    def read_text(self, path: Path) -> str:
        """Read a file as text."""
        ...

    def write_text(self, path: Path, content: str) -> None:
        """Overwrite a file with text."""
        ...

    def copy(self, source: Path, destination: Path) -> None:
        """Copy a file; the copy gets a fresh modification time."""
        ...

    def remove(self, path: Path) -> None:
        """Delete a file."""
        ...


def _translate(e: OSError, path: Path, operation: str) -> PhpIniError:
    if isinstance(e, FileNotFoundError):
        return IniFileNotFoundError(path)
    if isinstance(e, PermissionError):
        return IniPermissionError(path, operation, needs_elevation=_can_elevate())
    return PhpIniError(f"Failed to {operation} {path}: {e.strerror or e}")


class DirectFileAccess:
    """Plain filesystem access as the current user."""

    elevated = False

    def read_text(self, path: Path) -> str:
        try:
            with open(path, encoding=_ENCODING, errors=_ERRORS, newline="") as f:
                return f.read()
        except OSError as e:
            raise _translate(e, path, "read") from e

    def write_text(self, path: Path, content: str) -> None:
        """Write atomically through a sibling temp file.

        The temp file takes over the target's permission bits before it
        replaces the target.
        """
        tmp_path: Path | None = None
        try:
            with NamedTemporaryFile(
                mode="w",
                encoding=_ENCODING,
                errors=_ERRORS,
                newline="",
                dir=path.parent,
                prefix=f".{path.name}.",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp_path = Path(f.name)
                f.write(content)
            if path.exists():
                shutil.copymode(path, tmp_path)
            os.replace(tmp_path, path)
        except OSError as e:
            if tmp_path is not None and tmp_path.exists():
                tmp_path.unlink()
            raise _translate(e, path, "write") from e

    def copy(self, source: Path, destination: Path) -> None:
        try:
            shutil.copy(source, destination)
        except OSError as e:
            failing = source if isinstance(e, FileNotFoundError) else destination
            raise _translate(e, failing, "copy") from e

    def remove(self, path: Path) -> None:
        try:
            path.unlink()
        except OSError as e:
            raise _translate(e, path, "delete") from e


class ElevatedFileAccess:
    """Routes file operations through sudo on Unix systems.

    sudo may prompt for a password on the controlling terminal.
    """

    elevated = True

    def _sudo(
        self, args: list[str], path: Path, operation: str, stdin: bytes | None = None
    ) -> bytes:
        try:
            result = run_binary_command(["sudo", *args], timeout=SUDO_TIMEOUT, input_bytes=stdin)
        except (OSError, subprocess.SubprocessError) as e:
            raise PhpIniError(f"Failed to {operation} {path} with sudo: {e}") from e
        if not result.success:
            stderr = result.stderr.strip()
            if "No such file" in stderr:
                raise IniFileNotFoundError(path)
            raise IniPermissionError(path, operation, needs_elevation=False)
        return result.stdout

    def read_text(self, path: Path) -> str:
        raw = self._sudo(["cat", str(path)], path, "read")
        return raw.decode(_ENCODING, _ERRORS)

    def write_text(self, path: Path, content: str) -> None:
        # tee keeps the target's inode, owner and mode
        data = content.encode(_ENCODING, _ERRORS)
        self._sudo(["tee", str(path)], path, "write", stdin=data)
        logger.debug("Wrote %s with sudo", path)

    def copy(self, source: Path, destination: Path) -> None:
        self._sudo(["cp", str(source), str(destination)], source, "copy")

    def remove(self, path: Path) -> None:
        self._sudo(["rm", "-f", str(path)], path, "delete")


def select_file_access(path: Path, *, allow_elevation: bool) -> PrivilegedFileAccess:
    """Choose the file access implementation for one target file.

    Args:
        path: The php.ini that will be read and written.
        allow_elevation: Whether the user permitted sudo.

    Returns:
        ElevatedFileAccess if elevation is allowed and needed, otherwise
        DirectFileAccess.
    """
    if allow_elevation and needs_elevation(path):
        logger.info("%s requires elevated permissions, using sudo", path)
        return ElevatedFileAccess()
    return DirectFileAccess()

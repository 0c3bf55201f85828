"""Timestamped backup copies of php.ini files.

Backups are stored next to the original as
'<php.ini>.backup.<timestamp>.ini', where the timestamp is a fixed-width
UTC ISO 8601 value with ':' and '.' replaced by '-'. Names therefore sort
in creation order. An optional '<backup>.meta.json' sidecar carries a
description.
"""

import glob
import json
import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path

from phpinictl.core.fileaccess import DirectFileAccess, PrivilegedFileAccess
from phpinictl.errors import BackupError, BackupNotFoundError, IniFileNotFoundError, PhpIniError
from phpinictl.models.backup import BackupInfo, BackupMetadata

logger = logging.getLogger(__name__)

BACKUP_MARKER = ".backup."
BACKUP_SUFFIX = ".ini"
METADATA_SUFFIX = ".meta.json"

# strptime pattern for the timestamp embedded in backup names
TIMESTAMP_FORMAT = "%Y-%m-%dT%H-%M-%S-%fZ"


def format_timestamp(when: datetime) -> str:
    """Format a time as 'YYYY-MM-DDTHH-MM-SS-mmmZ' in UTC."""
    when = when.astimezone(UTC)
    return when.strftime("%Y-%m-%dT%H-%M-%S-") + f"{when.microsecond // 1000:03d}Z"


def backup_name(path: Path, when: datetime) -> Path:
    """Backup file path for `path` taken at `when`."""
    return path.with_name(f"{path.name}{BACKUP_MARKER}{format_timestamp(when)}{BACKUP_SUFFIX}")


def metadata_path(backup_path: Path | str) -> Path:
    """Sidecar path belonging to a backup file."""
    backup_path = Path(backup_path)
    return backup_path.with_name(backup_path.name + METADATA_SUFFIX)


def _utc_now() -> datetime:
    return datetime.now(UTC)


class BackupArchive:
    """Creates, lists, restores and prunes php.ini backups.

    Args:
        file_access: File operations used for copying and deleting.
        clock: Returns the current time; replaced in tests.
    """

    def __init__(
        self,
        file_access: PrivilegedFileAccess | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._files = file_access or DirectFileAccess()
        self._clock = clock

    def _next_backup_path(self, path: Path) -> Path:
        """Pick a backup name that sorts after every existing backup.

        Two backups within the same millisecond, or a clock running
        behind the newest existing name, bump the timestamp forward.
        """
        when = self._clock()
        newest = self._newest_timestamp(path)
        if newest is not None and backup_name(path, when).name <= backup_name(path, newest).name:
            when = newest + timedelta(milliseconds=1)
        return backup_name(path, when)

    def _newest_timestamp(self, path: Path) -> datetime | None:
        """Latest timestamp embedded in an existing backup name."""
        prefix = f"{path.name}{BACKUP_MARKER}"
        newest: datetime | None = None
        for backup in self.list_backups(path):
            stamp = Path(backup).name[len(prefix) : -len(BACKUP_SUFFIX)]
            try:
                when = datetime.strptime(stamp, TIMESTAMP_FORMAT).replace(tzinfo=UTC)
            except ValueError:
                continue
            if newest is None or when > newest:
                newest = when
        return newest

    def create_backup(
        self,
        path: Path | str,
        *,
        strict: bool = True,
        description: str | None = None,
        version: str | None = None,
    ) -> str:
        """Copy `path` to a new timestamped backup.

        Args:
            path: The php.ini to back up.
            strict: Raise on failure. Pre-write backups use strict mode;
                user-invoked backups may pass False to get '' instead.
            description: Optional note stored in the metadata sidecar.
            version: PHP version recorded in the sidecar.

        Returns:
            The backup path, or '' if a non-strict backup failed.

        Raises:
            IniFileNotFoundError: If `path` does not exist.
            BackupError: If the copy failed in strict mode.
        """
        path = Path(path)
        if not path.is_file():
            raise IniFileNotFoundError(path)

        target = self._next_backup_path(path)
        try:
            self._files.copy(path, target)
        except PhpIniError as e:
            if strict:
                msg = f"Failed to create backup of {path}: {e}"
                raise BackupError(msg) from e
            logger.warning("Could not back up %s: %s", path, e)
            return ""

        logger.info("Backed up %s to %s", path, target)
        if description:
            meta = BackupMetadata.create(description, str(path), version)
            try:
                self._files.write_text(metadata_path(target), meta.to_json())
            except PhpIniError as e:
                logger.warning("Could not write backup metadata for %s: %s", target, e)
        return str(target)

    def list_backups(self, path: Path | str) -> list[str]:
        """List backups of `path`, newest first by modification time.

        Backups sharing a modification time are ordered by name, newest
        timestamp first.
        """
        path = Path(path)
        pattern = f"{glob.escape(path.name)}{BACKUP_MARKER}*{BACKUP_SUFFIX}"
        found: list[tuple[float, str]] = []
        try:
            candidates = list(path.parent.glob(pattern))
        except OSError as e:
            logger.debug("Cannot list backups in %s: %s", path.parent, e)
            return []
        for candidate in candidates:
            try:
                mtime = candidate.stat().st_mtime
            except OSError:
                continue
            found.append((mtime, str(candidate)))
        found.sort(reverse=True)
        return [p for _, p in found]

    def read_metadata(self, backup_path: Path | str) -> BackupMetadata | None:
        """Read a backup's sidecar, or None if it is absent or unreadable."""
        sidecar = metadata_path(backup_path)
        if not sidecar.is_file():
            return None
        try:
            return BackupMetadata.from_json(sidecar.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError, KeyError) as e:
            logger.debug("Ignoring unreadable metadata %s: %s", sidecar, e)
            return None

    def list_backup_info(self, path: Path | str) -> list[BackupInfo]:
        """Like list_backups, with size, modification time and metadata."""
        infos: list[BackupInfo] = []
        for backup in self.list_backups(path):
            try:
                stat = Path(backup).stat()
            except OSError:
                continue
            infos.append(
                BackupInfo(
                    path=backup,
                    size_bytes=stat.st_size,
                    modified=stat.st_mtime,
                    metadata=self.read_metadata(backup),
                )
            )
        return infos

    def restore_backup(
        self,
        backup_path: Path | str,
        target_path: Path | str,
        *,
        backup_current: bool = False,
    ) -> str:
        """Overwrite `target_path` with the content of a backup.

        Args:
            backup_path: Backup to restore.
            target_path: php.ini to overwrite.
            backup_current: Back up the current target first.

        Returns:
            Path of the safety backup of the current file, or ''.

        Raises:
            BackupNotFoundError: If the backup does not exist.
            BackupError: If the safety backup could not be written.
        """
        backup_path = Path(backup_path)
        target_path = Path(target_path)
        if not backup_path.is_file():
            raise BackupNotFoundError(backup_path)

        safety = ""
        if backup_current and target_path.is_file():
            safety = self.create_backup(target_path, strict=True)
        self._files.copy(backup_path, target_path)
        logger.info("Restored %s from %s", target_path, backup_path)
        return safety

    def delete_backup(self, backup_path: Path | str) -> None:
        """Delete a backup and its metadata sidecar.

        Raises:
            BackupNotFoundError: If the backup does not exist.
        """
        backup_path = Path(backup_path)
        if not backup_path.is_file():
            raise BackupNotFoundError(backup_path)
        self._files.remove(backup_path)
        sidecar = metadata_path(backup_path)
        if sidecar.exists():
            self._files.remove(sidecar)
        logger.info("Deleted backup %s", backup_path)

    def cleanup(self, path: Path | str, keep_count: int, older_than_days: float) -> list[str]:
        """Delete old backups beyond the newest `keep_count`.

        A backup is deleted only if it is both outside the newest
        `keep_count` and older than `older_than_days`.

        Returns:
            Paths of the deleted backups.
        """
        if keep_count < 0 or older_than_days < 0:
            msg = "keep_count and older_than_days must not be negative"
            raise ValueError(msg)

        cutoff = (self._clock() - timedelta(days=older_than_days)).timestamp()
        deleted: list[str] = []
        for backup in self.list_backups(path)[keep_count:]:
            try:
                mtime = Path(backup).stat().st_mtime
            except OSError:
                continue
            if mtime >= cutoff:
                continue
            self.delete_backup(backup)
            deleted.append(backup)
        if deleted:
            logger.info("Removed %d old backup(s) of %s", len(deleted), path)
        return deleted

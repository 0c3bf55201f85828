"""Unit tests for the php.ini backup archive."""

import os
from datetime import UTC, datetime, timedelta
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from phpinictl.backups.archive import (
    BackupArchive,
    backup_name,
    format_timestamp,
    metadata_path,
)
from phpinictl.core.fileaccess import DirectFileAccess
from phpinictl.errors import (
    BackupError,
    BackupNotFoundError,
    IniFileNotFoundError,
    IniPermissionError,
)

NOW = datetime(2026, 3, 14, 9, 26, 53, 589000, tzinfo=UTC)


class FrozenClock:
    """Clock returning a fixed, adjustable time."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def _age(path: Path | str, days: float) -> None:
    """Set a file's modification time `days` before NOW."""
    stamp = (NOW - timedelta(days=days)).timestamp()
    os.utime(path, (stamp, stamp))


class TestNaming:
    """Tests for backup naming helpers."""

    def test_format_timestamp(self) -> None:
        """Timestamps are fixed width with ':' and '.' replaced."""
        assert format_timestamp(NOW) == "2026-03-14T09-26-53-589Z"

    def test_format_timestamp_converts_to_utc(self) -> None:
        """Aware local times are converted to UTC."""
        local = NOW.astimezone(datetime.now().astimezone().tzinfo)

        assert format_timestamp(local) == "2026-03-14T09-26-53-589Z"

    def test_backup_name(self) -> None:
        """Backups sit next to the original."""
        path = backup_name(Path("/etc/php/8.3/cli/php.ini"), NOW)

        assert path == Path("/etc/php/8.3/cli/php.ini.backup.2026-03-14T09-26-53-589Z.ini")

    def test_metadata_path(self) -> None:
        """The sidecar appends .meta.json to the backup name."""
        assert metadata_path("/x/php.ini.backup.t.ini") == Path("/x/php.ini.backup.t.ini.meta.json")


class TestCreateBackup:
    """Tests for BackupArchive.create_backup."""

    def test_copies_content(self, ini_file: Path) -> None:
        """The backup is a byte copy of the original."""
        archive = BackupArchive(clock=FrozenClock())

        backup = archive.create_backup(ini_file)

        assert Path(backup).name == "php.ini.backup.2026-03-14T09-26-53-589Z.ini"
        assert Path(backup).read_bytes() == ini_file.read_bytes()

    def test_same_millisecond_names_are_unique(self, ini_file: Path) -> None:
        """Backups taken at the same instant still sort in creation order."""
        archive = BackupArchive(clock=FrozenClock())

        names = [Path(archive.create_backup(ini_file)).name for _ in range(3)]

        assert len(set(names)) == 3
        assert names == sorted(names)

    def test_clock_behind_existing(self, ini_file: Path) -> None:
        """A clock running behind the newest backup still sorts after it."""
        clock = FrozenClock()
        archive = BackupArchive(clock=clock)
        first = archive.create_backup(ini_file)

        clock.now = NOW - timedelta(hours=1)
        second = archive.create_backup(ini_file)

        assert Path(second).name > Path(first).name

    def test_missing_source(self, tmp_path: Path) -> None:
        """Backing up a missing file raises IniFileNotFoundError."""
        with pytest.raises(IniFileNotFoundError):
            BackupArchive().create_backup(tmp_path / "php.ini")

    def test_strict_failure_raises(self, ini_file: Path) -> None:
        """A failed copy raises BackupError in strict mode."""
        files = MagicMock(spec=DirectFileAccess)
        files.copy.side_effect = IniPermissionError(ini_file, "copy", needs_elevation=True)

        with pytest.raises(BackupError, match="Failed to create backup"):
            BackupArchive(files).create_backup(ini_file)

    def test_lenient_failure_returns_empty(self, ini_file: Path) -> None:
        """A failed copy returns '' when not strict."""
        files = MagicMock(spec=DirectFileAccess)
        files.copy.side_effect = IniPermissionError(ini_file, "copy", needs_elevation=False)

        assert BackupArchive(files).create_backup(ini_file, strict=False) == ""

    def test_description_sidecar(self, ini_file: Path) -> None:
        """A description is stored in the metadata sidecar."""
        archive = BackupArchive(clock=FrozenClock())

        backup = archive.create_backup(ini_file, description="before xdebug", version="8.3.4")

        meta = archive.read_metadata(backup)
        assert meta is not None
        assert meta.description == "before xdebug"
        assert meta.version == "8.3.4"
        assert meta.original_path == str(ini_file)


class TestListBackups:
    """Tests for listing backups."""

    def test_newest_first(self, ini_file: Path) -> None:
        """Backups are listed newest first by modification time."""
        archive = BackupArchive(clock=FrozenClock())
        old = archive.create_backup(ini_file)
        new = archive.create_backup(ini_file)
        _age(old, 2)
        _age(new, 1)

        assert archive.list_backups(ini_file) == [new, old]

    def test_ignores_other_files(self, ini_file: Path) -> None:
        """Sidecars and backups of other files are not listed."""
        archive = BackupArchive(clock=FrozenClock())
        backup = archive.create_backup(ini_file, description="note")
        (ini_file.parent / "php-cli.ini.backup.2026-01-01T00-00-00-000Z.ini").write_text("")

        assert archive.list_backups(ini_file) == [backup]

    def test_no_backups(self, ini_file: Path) -> None:
        """A file without backups lists nothing."""
        assert BackupArchive().list_backups(ini_file) == []

    def test_backup_info(self, ini_file: Path) -> None:
        """list_backup_info reports size and metadata."""
        archive = BackupArchive(clock=FrozenClock())
        archive.create_backup(ini_file, description="note")

        [info] = archive.list_backup_info(ini_file)

        assert info.size_bytes == ini_file.stat().st_size
        assert info.metadata is not None
        assert info.metadata.description == "note"

    def test_broken_metadata_ignored(self, ini_file: Path) -> None:
        """An unreadable sidecar reads as None."""
        archive = BackupArchive(clock=FrozenClock())
        backup = archive.create_backup(ini_file)
        metadata_path(backup).write_text("{not json")

        assert archive.read_metadata(backup) is None


class TestRestoreAndDelete:
    """Tests for restore_backup and delete_backup."""

    def test_restore(self, ini_file: Path) -> None:
        """Restoring overwrites the target with the backup content."""
        archive = BackupArchive(clock=FrozenClock())
        backup = archive.create_backup(ini_file)
        original = ini_file.read_text()
        ini_file.write_text("broken")

        safety = archive.restore_backup(backup, ini_file)

        assert ini_file.read_text() == original
        assert safety == ""

    def test_restore_backs_up_current(self, ini_file: Path) -> None:
        """backup_current saves the file being replaced."""
        archive = BackupArchive(clock=FrozenClock())
        backup = archive.create_backup(ini_file)
        ini_file.write_text("current")

        safety = archive.restore_backup(backup, ini_file, backup_current=True)

        assert Path(safety).read_text() == "current"
        assert Path(safety).name > Path(backup).name

    def test_restore_missing_backup(self, ini_file: Path) -> None:
        """Restoring a missing backup raises BackupNotFoundError."""
        with pytest.raises(BackupNotFoundError):
            BackupArchive().restore_backup(ini_file.with_name("gone.ini"), ini_file)

    def test_delete_removes_sidecar(self, ini_file: Path) -> None:
        """Deleting a backup also deletes its metadata."""
        archive = BackupArchive(clock=FrozenClock())
        backup = archive.create_backup(ini_file, description="note")

        archive.delete_backup(backup)

        assert not Path(backup).exists()
        assert not metadata_path(backup).exists()

    def test_delete_missing(self, tmp_path: Path) -> None:
        """Deleting a missing backup raises BackupNotFoundError."""
        with pytest.raises(BackupNotFoundError):
            BackupArchive().delete_backup(tmp_path / "php.ini.backup.x.ini")


class TestCleanup:
    """Tests for BackupArchive.cleanup."""

    @pytest.fixture
    def five_backups(self, ini_file: Path) -> tuple[BackupArchive, list[str]]:
        """Five backups aged 50, 40, 30, 20 and 10 days."""
        archive = BackupArchive(clock=FrozenClock())
        backups = [archive.create_backup(ini_file) for _ in range(5)]
        for backup, days in zip(backups, (50, 40, 30, 20, 10), strict=True):
            _age(backup, days)
        return archive, backups

    def test_keeps_newest(
        self, ini_file: Path, five_backups: tuple[BackupArchive, list[str]]
    ) -> None:
        """Only backups beyond keep_count and past the age limit go."""
        archive, backups = five_backups

        deleted = archive.cleanup(ini_file, keep_count=2, older_than_days=35)

        assert deleted == [backups[1], backups[0]]
        assert archive.list_backups(ini_file) == backups[:1:-1]

    def test_retention_floor(
        self, ini_file: Path, five_backups: tuple[BackupArchive, list[str]]
    ) -> None:
        """The newest keep_count backups survive even when old."""
        archive, _ = five_backups

        archive.cleanup(ini_file, keep_count=3, older_than_days=0)

        assert len(archive.list_backups(ini_file)) == 3

    def test_nothing_old_enough(
        self, ini_file: Path, five_backups: tuple[BackupArchive, list[str]]
    ) -> None:
        """Recent backups are kept regardless of count."""
        archive, _ = five_backups

        assert archive.cleanup(ini_file, keep_count=0, older_than_days=100) == []

    def test_negative_arguments(self, ini_file: Path) -> None:
        """Negative limits are rejected."""
        with pytest.raises(ValueError):
            BackupArchive().cleanup(ini_file, keep_count=-1, older_than_days=1)

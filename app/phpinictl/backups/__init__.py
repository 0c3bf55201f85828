"""Backup archive for php.ini files."""

from phpinictl.backups.archive import BackupArchive, backup_name, format_timestamp, metadata_path

__all__ = ["BackupArchive", "backup_name", "format_timestamp", "metadata_path"]

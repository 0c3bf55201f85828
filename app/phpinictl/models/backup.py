"""Backup models for the php.ini backup archive.

Backups live next to the original file. The optional sidecar
'<backup>.meta.json' carries a free-text description.
"""

import json
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any


@dataclass(frozen=True, slots=True)
class BackupMetadata:
    """Contents of a backup sidecar file.

    Attributes:
        description: Free-text note supplied by the user.
        created: ISO 8601 creation timestamp.
        original_path: The php.ini the backup was taken from.
        version: PHP version the ini belonged to, if known.
    """

    description: str
    created: str
    original_path: str
    version: str | None = None

    @classmethod
    def create(
        cls,
        description: str,
        original_path: str,
        version: str | None = None,
    ) -> "BackupMetadata":
        """Create metadata stamped with the current UTC time."""
        return cls(
            description=description,
            created=datetime.now(UTC).isoformat(),
            original_path=original_path,
            version=version,
        )

    def to_json(self) -> str:
        """Serialize using the sidecar's camelCase keys."""
        data: dict[str, Any] = {
            "description": self.description,
            "created": self.created,
            "originalPath": self.original_path,
            "version": self.version,
        }
        return json.dumps(data, indent=2)

    @classmethod
    def from_json(cls, text: str) -> "BackupMetadata":
        """Deserialize a sidecar.

        Raises:
            json.JSONDecodeError: If the text is not JSON.
            KeyError: If required fields are missing.
        """
        data = json.loads(text)
        return cls(
            description=str(data["description"]),
            created=str(data["created"]),
            original_path=str(data.get("originalPath", "")),
            version=data.get("version"),
        )


@dataclass(frozen=True, slots=True)
class BackupInfo:
    """A backup file on disk.

    Attributes:
        path: Absolute path of the backup copy.
        size_bytes: File size.
        modified: Modification time (seconds since epoch).
        metadata: Parsed sidecar, if one exists.
    """

    path: str
    size_bytes: int
    modified: float
    metadata: BackupMetadata | None = None

    @property
    def filename(self) -> str:
        """Base name of the backup file."""
        return self.path.replace("\\", "/").rsplit("/", 1)[-1]

    @property
    def modified_iso(self) -> str:
        """Modification time as a local ISO timestamp."""
        return datetime.fromtimestamp(self.modified).isoformat(timespec="seconds")

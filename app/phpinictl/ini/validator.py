"""Syntax checks for php.ini text."""

import re
from pathlib import Path

from phpinictl.core.fileaccess import DirectFileAccess, PrivilegedFileAccess
from phpinictl.ini.document import IniDocument, LineKind
from phpinictl.models.report import ValidationResult

_KEY_VALUE_RE = re.compile(r"^\s*([^=]*?)\s*=")


def validate_ini(text: str) -> ValidationResult:
    """Check ini text for malformed lines.

    Errors: section headers without a closing ']' and '=' lines without a
    key. Warnings: non-comment lines without '=' and extensions enabled
    more than once. Line numbers are 1-based.
    """
    errors: list[str] = []
    warnings: list[str] = []
    doc = IniDocument(text)
    first_seen: dict[str, int] = {}

    for entry in doc.entries:
        number = entry.index + 1
        stripped = entry.text.strip()
        if entry.kind in (LineKind.BLANK, LineKind.COMMENT, LineKind.SECTION):
            continue

        if stripped.startswith("["):
            errors.append(f"Line {number}: unclosed section header '{stripped}'")
            continue

        if entry.is_extension_directive and not entry.commented:
            name = entry.extension_name
            if name:
                if name in first_seen:
                    warnings.append(
                        f"Line {number}: extension '{name}' already enabled on line "
                        f"{first_seen[name]}"
                    )
                else:
                    first_seen[name] = number
            continue

        if entry.kind != LineKind.OTHER:
            continue
        match = _KEY_VALUE_RE.match(entry.text)
        if match is None:
            warnings.append(f"Line {number}: no '=' found in '{stripped}'")
        elif not match.group(1):
            errors.append(f"Line {number}: empty key name")

    return ValidationResult(errors=tuple(errors), warnings=tuple(warnings))


def validate_source_file(
    path: Path | str, file_access: PrivilegedFileAccess | None = None
) -> ValidationResult:
    """Read and validate a php.ini file.

    Raises:
        IniFileNotFoundError: If the file does not exist.
        IniPermissionError: If it cannot be read.
    """
    files = file_access or DirectFileAccess()
    return validate_ini(files.read_text(Path(path)))

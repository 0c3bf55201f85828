"""Line-oriented view of php.ini text.

The document is not a full INI parser. It classifies each line just
enough for targeted edits and renders unchanged lines byte for byte,
including their original line endings.
"""

import re
from dataclasses import dataclass
from enum import Enum
from functools import cached_property

from phpinictl.ini.edits import EditList

_SECTION_RE = re.compile(r"^\s*\[([^\]]*)\]\s*(;.*)?$")
_DIRECTIVE_RE = re.compile(
    r"^\s*(?P<comment>;+)?\s*(?P<key>[A-Za-z_][A-Za-z0-9_.\-\[\]]*)\s*=\s*(?P<value>.*?)\s*$"
)
_TRAILING_COMMENT_RE = re.compile(r"\s+;.*$")
_LIBRARY_SUFFIX_RE = re.compile(r"\.(dll|so|dylib)$", re.IGNORECASE)


class LineKind(str, Enum):
    """Classification of a single php.ini line."""

    BLANK = "blank"
    SECTION = "section"
    COMMENT = "comment"
    EXTENSION = "extension"
    ZEND_EXTENSION = "zend_extension"
    SETTING = "setting"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class IniLine:
    """One classified line.

    Attributes:
        index: Zero-based line number.
        text: Line content without its line ending.
        kind: Classification.
        commented: True for directives disabled with a leading ';'.
        key: Directive key for EXTENSION/ZEND_EXTENSION/SETTING lines.
        value: Raw directive value (trailing comment removed).
        section: Name of the enclosing section ('' before any header).
    """

    index: int
    text: str
    kind: LineKind
    commented: bool = False
    key: str | None = None
    value: str | None = None
    section: str = ""

    @property
    def is_extension_directive(self) -> bool:
        """True for extension= and zend_extension= lines, commented or not."""
        return self.kind in (LineKind.EXTENSION, LineKind.ZEND_EXTENSION)

    @property
    def extension_name(self) -> str | None:
        """Normalized extension name of an extension directive.

        'php_curl.dll', '"curl"', '/usr/lib/php/x/curl.so' all map to 'curl'.
        """
        if not self.is_extension_directive or not self.value:
            return None
        return normalize_extension_name(self.value)


def normalize_extension_name(value: str) -> str:
    """Reduce an extension directive value to a bare lowercase name."""
    name = _TRAILING_COMMENT_RE.sub("", value).strip().strip("\"'")
    name = re.split(r"[\\/]", name)[-1]
    name = _LIBRARY_SUFFIX_RE.sub("", name)
    if name.lower().startswith("php_"):
        name = name[4:]
    return name.lower()


def _classify(index: int, text: str, section: str) -> IniLine:
    stripped = text.strip()
    if not stripped:
        return IniLine(index, text, LineKind.BLANK, section=section)

    section_match = _SECTION_RE.match(text)
    if section_match:
        return IniLine(index, text, LineKind.SECTION, section=section_match.group(1).strip())

    directive = _DIRECTIVE_RE.match(text)
    if directive:
        commented = directive.group("comment") is not None
        key = directive.group("key")
        value = directive.group("value")
        if not commented:
            value = _TRAILING_COMMENT_RE.sub("", value)
        lowered = key.lower()
        if lowered == "extension":
            kind = LineKind.EXTENSION
        elif lowered == "zend_extension":
            kind = LineKind.ZEND_EXTENSION
        else:
            kind = LineKind.SETTING
        return IniLine(index, text, kind, commented, key, value, section)

    if stripped.startswith(("#", ";")):
        return IniLine(index, text, LineKind.COMMENT, section=section)
    return IniLine(index, text, LineKind.OTHER, section=section)


class IniDocument:
    """Ordered, classified lines of a php.ini file.

    Args:
        text: Raw file content.
    """

    def __init__(self, text: str) -> None:
        self._text = text
        parts = text.split("\n")
        if parts[-1] == "":
            parts.pop()
        self._cr = [part.endswith("\r") for part in parts]
        self._lines = [part[:-1] if cr else part for part, cr in zip(parts, self._cr, strict=True)]
        self.newline = "\r\n" if any(self._cr) else "\n"
        self._trailing_newline = text.endswith("\n") or not text

    @property
    def text(self) -> str:
        """The original text."""
        return self._text

    @property
    def lines(self) -> list[str]:
        """Line contents without line endings."""
        return list(self._lines)

    def __len__(self) -> int:
        return len(self._lines)

    @cached_property
    def entries(self) -> tuple[IniLine, ...]:
        """Classified lines, in file order."""
        section = ""
        result: list[IniLine] = []
        for index, text in enumerate(self._lines):
            entry = _classify(index, text, section)
            if entry.kind == LineKind.SECTION:
                section = entry.section
            result.append(entry)
        return tuple(result)

    def edits(self) -> EditList:
        """Create an empty edit list sized for this document."""
        return EditList(len(self._lines))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def extension_lines(self, name: str, *, commented: bool) -> list[IniLine]:
        """extension=/zend_extension= lines loading `name`.

        Args:
            name: Extension name, compared after normalization.
            commented: Select disabled (True) or active (False) lines.
        """
        wanted = name.lower()
        return [
            e
            for e in self.entries
            if e.is_extension_directive and e.commented == commented and e.extension_name == wanted
        ]

    def last_extension_index(self) -> int | None:
        """Index of the last extension directive, commented or not."""
        for entry in reversed(self.entries):
            if entry.is_extension_directive:
                return entry.index
        return None

    def section_index(self, name: str) -> int | None:
        """Index of the first section header called `name` (case-insensitive)."""
        wanted = name.lower()
        for entry in self.entries:
            if entry.kind == LineKind.SECTION and entry.section.lower() == wanted:
                return entry.index
        return None

    def section_end_index(self, name: str) -> int | None:
        """Index of the last non-blank line belonging to section `name`.

        Returns the header index for an empty section and None if the
        section does not exist.
        """
        start = self.section_index(name)
        if start is None:
            return None
        end = start
        for entry in self.entries[start + 1 :]:
            if entry.kind == LineKind.SECTION:
                break
            if entry.kind != LineKind.BLANK:
                end = entry.index
        return end

    def find_setting(self, key: str) -> int | None:
        """Locate the line holding setting `key`.

        Matches '[;] key = anything' with tolerant whitespace. The last
        active occurrence wins because PHP applies the last one; with
        none active the last commented occurrence is chosen, which skips
        documentation examples that precede the real directive.
        """
        pattern = re.compile(rf"^\s*(;+)?\s*{re.escape(key)}\s*=.*$")
        active: int | None = None
        commented: int | None = None
        for index, text in enumerate(self._lines):
            match = pattern.match(text)
            if not match:
                continue
            if match.group(1):
                commented = index
            else:
                active = index
        return active if active is not None else commented

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(self, edits: EditList) -> str:
        """Apply edits and return the new text.

        Untouched lines keep their exact content and line ending; new
        lines use the document's dominant newline.
        """
        new_cr = self.newline == "\r\n"
        out: list[str] = []
        for text, original_index in edits.apply(self._lines):
            cr = self._cr[original_index] if original_index is not None else new_cr
            out.append(text + ("\r" if cr else ""))
        if not out:
            return ""
        result = "\n".join(out)
        if self._trailing_newline:
            result += "\n"
        return result

"""Edit list for line-oriented rewriting.

Edits reference line indices of the original document and are applied
in a single pass, so every line that is not explicitly replaced comes
out unchanged and in its original order.
"""

from collections.abc import Iterator, Sequence

# Insertion anchor meaning "before the first line"
TOP = -1


class EditConflictError(ValueError):
    """Raised when two edits target the same original line."""


class EditList:
    """Pending replacements and insertions for a document.

    Args:
        size: Number of lines in the original document.
    """

    def __init__(self, size: int) -> None:
        self._size = size
        self._replacements: dict[int, str] = {}
        self._insertions: dict[int, list[str]] = {}

    def __len__(self) -> int:
        return len(self._replacements) + sum(len(v) for v in self._insertions.values())

    def _check(self, index: int, *, allow_top: bool = False) -> None:
        lower = TOP if allow_top else 0
        if not lower <= index < self._size:
            msg = f"Line index {index} out of range for {self._size} lines"
            raise IndexError(msg)

    def is_replaced(self, index: int) -> bool:
        """True if the line at index already has a replacement."""
        return index in self._replacements

    def replace(self, index: int, line: str) -> None:
        """Replace the original line at index.

        Raises:
            EditConflictError: If the line was already replaced.
        """
        self._check(index)
        if index in self._replacements:
            msg = f"Line {index + 1} is already being rewritten"
            raise EditConflictError(msg)
        self._replacements[index] = line

    def insert_after(self, index: int, line: str) -> None:
        """Insert a new line after the original line at index.

        Several insertions after the same line keep their call order.
        Use TOP to insert before the first line.
        """
        self._check(index, allow_top=True)
        self._insertions.setdefault(index, []).append(line)

    def prepend(self, line: str) -> None:
        """Insert a new line at the top of the document."""
        self.insert_after(TOP, line)

    def append(self, line: str) -> None:
        """Insert a new line at the end of the document."""
        self.insert_after(self._size - 1, line)

    def apply(self, lines: Sequence[str]) -> Iterator[tuple[str, int | None]]:
        """Yield the edited lines.

        Yields:
            (text, original_index) pairs; original_index is None for
            inserted lines.
        """
        if len(lines) != self._size:
            msg = f"Edit list built for {self._size} lines, got {len(lines)}"
            raise ValueError(msg)

        for inserted in self._insertions.get(TOP, []):
            yield inserted, None
        for index, text in enumerate(lines):
            yield self._replacements.get(index, text), index
            for inserted in self._insertions.get(index, []):
                yield inserted, None

"""Bounded-depth directory walker.

One walker serves both template deep scans and the standalone scan of
filesystem roots. Unreadable directories are skipped silently.
"""

import logging
from collections.abc import Callable, Iterator
from pathlib import Path

logger = logging.getLogger(__name__)

# Directory names never descended into
_SKIP_DIRS: frozenset[str] = frozenset(
    {
        ".git",
        "node_modules",
        "vendor",
        "$Recycle.Bin",
        "System Volume Information",
        "Windows",
        "proc",
        "sys",
        "dev",
    }
)


def walk_for(
    root: Path,
    predicate: Callable[[Path], bool],
    max_depth: int,
) -> Iterator[Path]:
    """Yield directories under root that satisfy predicate.

    The root itself is depth 0. Entries are visited in sorted order so
    results are deterministic for a given filesystem snapshot. Symlinked
    directories are not followed.

    Args:
        root: Directory to start from.
        predicate: Test applied to every visited directory.
        max_depth: Deepest level to visit (0 checks only the root).

    Yields:
        Matching directories, parents before children.
    """
    if max_depth < 0:
        return

    stack: list[tuple[Path, int]] = [(root, 0)]
    while stack:
        current, depth = stack.pop()
        try:
            if predicate(current):
                yield current
        except OSError as e:
            logger.debug("Predicate failed for %s: %s", current, e)
            continue

        if depth >= max_depth:
            continue

        try:
            children = sorted(
                entry
                for entry in current.iterdir()
                if entry.name not in _SKIP_DIRS
                and not entry.is_symlink()
                and entry.is_dir()
            )
        except OSError as e:
            logger.debug("Cannot list %s: %s", current, e)
            continue

        # Reverse so the stack pops children in sorted order
        stack.extend((child, depth + 1) for child in reversed(children))

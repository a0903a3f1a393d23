"""Remove empty directories left behind under a project root.

Build output, dependency and VCS directories are never entered, and the
root itself is never removed.
"""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

EXCLUDED_DIRS = frozenset(
    {
        "node_modules",
        ".git",
        ".next",
        ".vercel",
        "dist",
        "build",
        ".cache",
        ".turbo",
        "coverage",
        ".nyc_output",
        ".vscode",
        ".idea",
        "migrations",  # keep the migrations tree even when empty
    }
)


def _is_empty(directory: Path) -> bool:
    try:
        return not any(directory.iterdir())
    except OSError:
        return False


def clean_empty_directories(
    root: Path, excluded: frozenset[str] = EXCLUDED_DIRS
) -> int:
    """Remove empty directories below root, bottom-up.

    Returns:
        Number of directories removed.
    """
    return _clean(root, root, excluded)


def _clean(directory: Path, root: Path, excluded: frozenset[str]) -> int:
    removed = 0
    try:
        children = list(directory.iterdir())
    except OSError as e:
        logger.debug("Cannot list %s: %s", directory, e)
        return 0

    for child in children:
        if child.name in excluded or child.is_symlink() or not child.is_dir():
            continue
        removed += _clean(child, root, excluded)

    if directory != root and _is_empty(directory):
        try:
            directory.rmdir()
        except OSError as e:
            logger.debug("Could not remove %s: %s", directory, e)
        else:
            logger.info("Removed empty directory: %s", directory.relative_to(root))
            removed += 1
    return removed

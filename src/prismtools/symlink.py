"""Idempotent relative symlinks between a host project and the subtree.

The link path on the host side must end up as a symlink to the subtree
directory. A correct link is left alone, a stale link is replaced, and a
real file or directory in the way is never touched.

Key functions: inspect_link(), ensure_link(), symlinks_supported().
"""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from .errors import SymlinkConflictError

logger = logging.getLogger(__name__)

ABSENT = "absent"
CORRECT = "correct"
STALE = "stale"
REAL = "real"


@dataclass(frozen=True)
class SymlinkState:
    """What currently occupies a link path."""

    kind: str  # "absent" | "correct" | "stale" | "real"
    target: str = ""  # raw link text for "correct" / "stale"
    entry_kind: str = ""  # "directory" | "file" for "real"


def inspect_link(link_path: Path, target_dir: Path) -> SymlinkState:
    """Classify link_path relative to the directory it should point at."""
    if link_path.is_symlink():
        raw = os.readlink(link_path)
        resolved = (link_path.parent / raw).resolve()
        if resolved == target_dir.resolve():
            return SymlinkState(kind=CORRECT, target=raw)
        return SymlinkState(kind=STALE, target=raw)
    if not link_path.exists():
        return SymlinkState(kind=ABSENT)
    return SymlinkState(
        kind=REAL, entry_kind="directory" if link_path.is_dir() else "file"
    )


def ensure_link(link_path: Path, target_dir: Path) -> SymlinkState:
    """Make link_path a relative symlink to target_dir.

    Creates target_dir and the link's parent when missing. Returns the state
    observed before any change.

    Raises:
        SymlinkConflictError: A real file or directory occupies link_path.
        OSError: The link could not be created.
    """
    if not target_dir.exists():
        target_dir.mkdir(parents=True)
        logger.info("Created directory %s", target_dir)

    if not link_path.parent.exists():
        link_path.parent.mkdir(parents=True)
        logger.info("Created directory %s", link_path.parent)

    state = inspect_link(link_path, target_dir)
    if state.kind == CORRECT:
        logger.info("Symlink already exists and points to correct location")
        return state
    if state.kind == REAL:
        raise SymlinkConflictError(link_path, state.entry_kind)
    if state.kind == STALE:
        logger.warning(
            "Symlink %s points to different location: %s, replacing",
            link_path,
            state.target,
        )
        link_path.unlink()

    relative = os.path.relpath(target_dir.resolve(), link_path.parent.resolve())
    link_path.symlink_to(relative, target_is_directory=True)
    logger.info("Created symlink: %s -> %s", link_path, target_dir)
    return state


def symlinks_supported() -> bool:
    """Probe whether this process may create symlinks (scratch dir only)."""
    with tempfile.TemporaryDirectory(prefix="prismtools-probe-") as tmp:
        probe_target = Path(tmp) / "target"
        probe_target.mkdir()
        try:
            (Path(tmp) / "link").symlink_to(probe_target, target_is_directory=True)
        except OSError:
            return False
    return True

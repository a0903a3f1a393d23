"""Exception types shared by the orchestration components."""

from __future__ import annotations

from pathlib import Path


class PrismToolsError(Exception):
    """Base class for failures the entry points report and exit on."""


class AmbiguousContextError(PrismToolsError, ValueError):
    """Both the tool directory and its parent carry the subtree marker."""

    def __init__(self, tool_dir: Path, marker: str) -> None:
        super().__init__(
            f"Cannot tell host from subtree: both {tool_dir} and its parent "
            f"are named '{marker}'. Rename one of them or set a different "
            "marker in prismtools.toml."
        )
        self.tool_dir = tool_dir
        self.marker = marker


class SpawnError(PrismToolsError):
    """A command could not be launched at all (not a nonzero exit)."""

    def __init__(self, argv: list[str], cwd: Path, cause: OSError) -> None:
        super().__init__(f"Failed to launch {argv[0]!r} in {cwd}: {cause}")
        self.argv = argv
        self.cwd = cwd


class SymlinkConflictError(PrismToolsError):
    """A real file or directory occupies the path reserved for a symlink."""

    def __init__(self, link_path: Path, entry_kind: str) -> None:
        super().__init__(
            f"{link_path} exists but is not a symlink (it's a {entry_kind}). "
            "Please remove it manually if you want to create a symlink."
        )
        self.link_path = link_path
        self.entry_kind = entry_kind


class ProjectNotFoundError(PrismToolsError):
    """No project root was found above the working directory."""

    def __init__(self, start: Path, markers: tuple[str, ...]) -> None:
        super().__init__(
            f"No project found at or above {start}: none of "
            f"{', '.join(markers)} exists. Run this command from inside "
            "a project."
        )
        self.start = start
        self.markers = markers

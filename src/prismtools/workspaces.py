"""Workspace discovery — manifest patterns → concrete project directories.

The root manifest declares workspaces as a list of patterns. A literal
pattern names one directory; ``base/*`` names every immediate, non-hidden
subdirectory of ``base``. Eligibility for a check is decided here too, so
scans never duplicate their own existence checks.

Key entities:
  - WorkspaceEntry: one discovered workspace.
  - discover_workspaces(): expand patterns in declaration order.
  - is_eligible(): does a workspace take part in a "test"/"typecheck" scan.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from .settings import ToolSettings

logger = logging.getLogger(__name__)

WILDCARD = "*"

CHECK_TEST = "test"
CHECK_TYPECHECK = "typecheck"


@dataclass(frozen=True)
class WorkspaceEntry:
    """A workspace directory. Literal entries may not exist on disk."""

    path: Path
    name: str  # relative to the manifest root, e.g. "apps/admin"


def read_json(path: Path) -> dict:
    """Read a JSON object from path.

    Raises:
        FileNotFoundError: If path does not exist.
        ValueError: If the file is not a JSON object.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a JSON object")
    return data


def read_workspace_patterns(manifest_path: Path) -> list[str]:
    """Return the manifest's workspace patterns in declaration order.

    Accepts both ``"workspaces": [...]`` and the
    ``"workspaces": {"packages": [...]}`` form. A manifest without
    workspaces yields an empty list.
    """
    data = read_json(manifest_path)
    workspaces = data.get("workspaces", [])
    if isinstance(workspaces, dict):
        workspaces = workspaces.get("packages", [])
    if not isinstance(workspaces, list) or not all(
        isinstance(w, str) for w in workspaces
    ):
        raise ValueError(f"'workspaces' in {manifest_path} must be a list of strings")
    return list(workspaces)


def _split_wildcard(pattern: str) -> str | None:
    """Return the base of a wildcard pattern, or None for a literal one."""
    if pattern == WILDCARD:
        return ""
    if pattern.endswith("/" + WILDCARD):
        return pattern[: -len(WILDCARD) - 1]
    return None


def discover_workspaces(root: Path, patterns: list[str]) -> list[WorkspaceEntry]:
    """Expand workspace patterns relative to root.

    Literal patterns always produce an entry. Wildcard patterns produce one
    entry per non-hidden subdirectory, sorted by name, and nothing when the
    base directory is missing.
    """
    entries: list[WorkspaceEntry] = []
    for pattern in patterns:
        base = _split_wildcard(pattern)
        if base is None:
            entries.append(
                WorkspaceEntry(path=root / pattern, name=str(PurePosixPath(pattern)))
            )
            continue

        base_dir = root / base if base else root
        if not base_dir.is_dir():
            logger.debug("Skipping %s: %s does not exist", pattern, base_dir)
            continue

        for child in sorted(base_dir.iterdir(), key=lambda p: p.name):
            if child.name.startswith(".") or not child.is_dir():
                continue
            name = str(PurePosixPath(base) / child.name) if base else child.name
            entries.append(WorkspaceEntry(path=child, name=name))
    return entries


def _has_script(workspace_dir: Path, manifest: str, script: str) -> bool:
    manifest_path = workspace_dir / manifest
    if not manifest_path.is_file():
        return False
    try:
        scripts = read_json(manifest_path).get("scripts") or {}
    except ValueError as e:
        logger.warning("Ignoring unreadable manifest %s: %s", manifest_path, e)
        return False
    return isinstance(scripts, dict) and bool(scripts.get(script))


def is_eligible(entry: WorkspaceEntry, check_kind: str, settings: ToolSettings) -> bool:
    """Whether a workspace participates in the given check.

    "test": a test-runner config file exists or the workspace manifest
    defines the test script. "typecheck": a type config file exists.
    """
    if check_kind == CHECK_TEST:
        if any((entry.path / m).is_file() for m in settings.test_markers):
            return True
        return _has_script(entry.path, settings.manifest, settings.test_script)
    if check_kind == CHECK_TYPECHECK:
        return any((entry.path / m).is_file() for m in settings.typecheck_markers)
    raise ValueError(f"Unknown check kind: {check_kind!r}")


def eligible_workspaces(
    root: Path, check_kind: str, settings: ToolSettings
) -> list[WorkspaceEntry]:
    """Discover the root manifest's workspaces and keep the eligible ones."""
    patterns = read_workspace_patterns(settings.manifest_path(root))
    entries = discover_workspaces(root, patterns)
    eligible = [e for e in entries if is_eligible(e, check_kind, settings)]
    logger.info(
        "%d of %d workspace(s) eligible for %s", len(eligible), len(entries), check_kind
    )
    return eligible

"""Merge the subtree manifest's scripts into the host manifest.

Host scripts always win, so local overrides survive every sync. Scripts that
only make sense inside the prism monorepo (they target ``apps/`` or
``tools`` workspaces, or run tests across all workspaces) are dropped, and a
handful of scripts are rewritten for the host's flat layout.

Key function: sync_scripts().
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

from ..context import MountContext
from ..settings import ToolSettings
from ..workspaces import read_json

logger = logging.getLogger(__name__)

# Scripts every host gets, whatever the subtree declares
FORCED_SCRIPTS = {
    "quality": "prism-quality",
    "quality:quick": "npm run format && npm run lint && npm run typecheck",
}

# Replacement values for subtree scripts that need the host layout
_ADAPTED_SCRIPTS = {
    "lint:fix": "eslint app --ext .ts,.tsx --fix",
    "clean": "rm -rf .next node_modules/.cache *.tsbuildinfo",
    "clean:directories": "prism-clean-directories",
    "vercel:build": "vercel build",
    **FORCED_SCRIPTS,
}

_WORKSPACE_FLAGS = ("-w apps/", "-w tools")
_TEST_SCRIPTS = {"test", "test:run", "test:ui", "test:coverage"}
_DATABASE_CONFIG = "packages/database/drizzle.config.ts"
_HOST_DATABASE_CONFIG = "database/drizzle.config.ts"

# Monorepo globs in format scripts; the host only formats app/
_FORMAT_SCRIPTS = {"format", "format:check"}
_FORMAT_GLOBS = (
    ('"apps/**/*.{ts,tsx,json}"', '"app/**/*.{ts,tsx}"'),
    ('"packages/**/*.{ts,tsx,json}"', ""),
    ('"docs/**/*.md"', ""),
)

# Relative to the host root; dev:setup is useless without it
HOST_SETUP_SCRIPT = "scripts/setup-hosts.sh"


@dataclass
class ScriptSyncReport:
    added: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)


def _is_reserved(key: str, marker: str) -> bool:
    return key in (marker, "tools")


def _db_alias(key: str) -> str:
    return "db:" + key.removeprefix("database:")


def _targets_workspace(value: str) -> bool:
    return any(flag in value for flag in _WORKSPACE_FLAGS)


def _is_adaptable(key: str) -> bool:
    """Workspace-specific scripts that still make sense once rewritten."""
    return key in ("lint:fix", "clean") or key.startswith("quality")


def _should_remove(
    key: str, value: str, scripts: dict[str, str], marker: str, host_setup: bool
) -> bool:
    """Host scripts left behind by earlier, less careful syncs."""
    if _is_reserved(key, marker) or _targets_workspace(value):
        return True
    if key in ("test", "test:run") and "--workspaces" in value:
        return True
    if key.startswith("database:") and _db_alias(key) in scripts:
        return True
    if key == "dev:setup" and not host_setup:
        return True
    return key == "clean" and "apps/" in value


def _should_skip(
    key: str, value: str, host_scripts: dict[str, str], marker: str, host_setup: bool
) -> bool:
    """Subtree scripts that cannot be carried over to a host."""
    if _is_reserved(key, marker):
        return True
    if key.startswith("database:") and _db_alias(key) in host_scripts:
        return True
    if key == "dev:setup" and not host_setup:
        return True
    if key in _TEST_SCRIPTS and "--workspaces" in value:
        return True
    workspace_specific = _targets_workspace(value) or "apps/web" in value
    return workspace_specific and not _is_adaptable(key)


def _adapt_format(value: str) -> str:
    for old, new in _FORMAT_GLOBS:
        value = value.replace(old, new)
    return " ".join(value.split())


def _adapt(key: str, value: str, marker: str) -> str:
    if key in _ADAPTED_SCRIPTS:
        return _ADAPTED_SCRIPTS[key]
    if key.startswith("database:"):
        return value.replace(_DATABASE_CONFIG, _HOST_DATABASE_CONFIG)
    if key in _FORMAT_SCRIPTS:
        return _adapt_format(value)
    if key == "generate:colors":
        return f"cd {marker}/packages/ui && npm run generate:colors"
    return value


def merge_scripts(
    host_scripts: dict[str, str],
    subtree_scripts: dict[str, str],
    marker: str,
    force_quality: bool = True,
    host_setup: bool = False,
) -> tuple[dict[str, str], ScriptSyncReport]:
    """Return the merged, key-sorted scripts table and what changed.

    ``host_setup`` says whether the host ships its own hosts-file setup
    script; ``dev:setup`` is dropped without one.
    """
    report = ScriptSyncReport()
    merged = dict(host_scripts)

    for key, value in list(merged.items()):
        if _should_remove(key, value, merged, marker, host_setup):
            del merged[key]
            report.removed.append(key)

    for key, value in subtree_scripts.items():
        if key in merged:
            continue
        if _should_skip(key, value, host_scripts, marker, host_setup):
            report.skipped.append(key)
            continue
        merged[key] = _adapt(key, value, marker)
        report.added.append(key)

    if force_quality:
        merged.update(FORCED_SCRIPTS)

    return {key: merged[key] for key in sorted(merged)}, report


def _scripts_of(data: dict, path: Path) -> dict[str, str]:
    scripts = data.get("scripts") or {}
    if not isinstance(scripts, dict):
        raise ValueError(f"'scripts' in {path} must be an object")
    for key, value in scripts.items():
        if not isinstance(value, str):
            raise ValueError(
                f"Script {key!r} in {path} must be a command string, "
                f"got {type(value).__name__}"
            )
    return scripts


def sync_scripts(ctx: MountContext, settings: ToolSettings) -> bool:
    """Write the merged scripts table into the host manifest.

    Returns:
        True on success or when there is no host to sync into while running
        embedded; False when a required manifest is missing or unreadable.
    """
    subtree_manifest = settings.manifest_path(ctx.subtree_root)
    host_manifest = settings.manifest_path(ctx.app_root)

    if not subtree_manifest.is_file():
        logger.error("Prism %s not found at: %s", settings.manifest, subtree_manifest)
        return False

    if not host_manifest.is_file():
        if ctx.is_embedded:
            logger.info(
                "No parent project found at: %s, skipping script sync", host_manifest
            )
            return True
        logger.error("Main %s not found at: %s", settings.manifest, host_manifest)
        return False

    try:
        subtree_data = read_json(subtree_manifest)
        host_data = read_json(host_manifest)
        merged, report = merge_scripts(
            _scripts_of(host_data, host_manifest),
            _scripts_of(subtree_data, subtree_manifest),
            ctx.marker,
            force_quality=host_manifest.resolve() != subtree_manifest.resolve(),
            host_setup=(ctx.app_root / HOST_SETUP_SCRIPT).is_file(),
        )
    except ValueError as e:
        logger.error("%s", e)
        return False

    host_data["scripts"] = merged
    host_manifest.write_text(
        json.dumps(host_data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8"
    )

    logger.info("Synced scripts from %s", subtree_manifest)
    if report.added:
        logger.info(
            "Added %d new script(s): %s", len(report.added), ", ".join(report.added)
        )
    else:
        logger.info("No new scripts to add (all scripts already exist)")
    if report.skipped:
        logger.info("Skipped %d workspace-specific script(s)", len(report.skipped))
    if report.removed:
        logger.info(
            "Removed %d incompatible script(s): %s",
            len(report.removed),
            ", ".join(report.removed),
        )
    return True

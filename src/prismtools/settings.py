"""Tool settings — reads prismtools.toml (+ .env files for child commands).

Every key has a default, so a project without prismtools.toml runs the npm
commands the prism monorepo uses. The file lives in the project root (the
parent of the tool directory) and is read before the execution context is
resolved, since it may change the subtree marker.

Key entities:
  - ToolSettings: frozen dataclass with all resolved settings.
  - load_settings(): parse prismtools.toml → ToolSettings.
  - find_project_root(): locate the project from the working directory.
  - load_env_files(): export .env values so spawned commands inherit them.
"""

from __future__ import annotations

import logging
import shlex
import tomllib
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .context import DEFAULT_MARKER, MountContext
from .errors import ProjectNotFoundError

logger = logging.getLogger(__name__)

SETTINGS_FILE = "prismtools.toml"

# Either file marks a directory as a project root
PROJECT_MARKERS = (SETTINGS_FILE, "package.json")


# ---------------------------------------------------------------------------
# ToolSettings
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ToolSettings:
    """Resolved configuration shared by all entry points."""

    # Layout
    marker: str = DEFAULT_MARKER
    manifest: str = "package.json"
    commands_dir: str = ".cursor/commands"
    load_env: bool = True

    # Quality chain, in execution order
    quality_steps: tuple[tuple[str, str], ...] = (
        ("typecheck", "npm run typecheck"),
        ("lint", "npm run lint"),
        ("format", "npm run format"),
        ("test", "npm run test:run"),
    )

    # Workspace scans
    typecheck_command: str = "npx tsc --noEmit"
    typecheck_markers: tuple[str, ...] = ("tsconfig.json",)
    test_command: str = "npx vitest run"
    test_markers: tuple[str, ...] = ("vitest.config.ts", "vitest.config.js")
    test_script: str = "test:run"

    # Sync
    install_command: str = "npm install"

    def argv(self, command: str) -> list[str]:
        """Split a configured command line into an argv list."""
        return shlex.split(command)

    def manifest_path(self, root: Path) -> Path:
        return root / self.manifest

    def commands_path(self, root: Path) -> Path:
        return root / self.commands_dir


# ---------------------------------------------------------------------------
# Project root
# ---------------------------------------------------------------------------


def is_project_root(path: Path) -> bool:
    return any((path / name).is_file() for name in PROJECT_MARKERS)


def find_project_root(start: Path) -> Path:
    """Nearest directory at or above start that holds a project marker.

    Raises:
        ProjectNotFoundError: If no ancestor of start is a project root.
    """
    start = Path(start).absolute()
    for candidate in (start, *start.parents):
        if is_project_root(candidate):
            return candidate
    raise ProjectNotFoundError(start, PROJECT_MARKERS)


# ---------------------------------------------------------------------------
# load_settings
# ---------------------------------------------------------------------------

_QUALITY_ORDER = ("typecheck", "lint", "format", "test")


def load_settings(project_root: Path) -> ToolSettings:
    """Read ``prismtools.toml`` from project_root, falling back to defaults.

    Raises:
        ValueError: If the file is not valid TOML or a key has the wrong type.
    """
    toml_path = project_root / SETTINGS_FILE
    if not toml_path.is_file():
        logger.debug("No %s at %s, using defaults", SETTINGS_FILE, project_root)
        return ToolSettings()

    try:
        with open(toml_path, "rb") as f:
            raw = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid TOML in {toml_path}: {e}") from e

    logger.debug("Loaded settings from %s", toml_path)
    return _build_settings(raw)


def _build_settings(raw: dict) -> ToolSettings:
    """Overlay the TOML tables on the defaults."""
    defaults = ToolSettings()
    global_section = _table(raw, "global")
    quality_section = _table(raw, "quality")
    ws_section = _table(raw, "workspaces")
    sync_section = _table(raw, "sync")

    default_quality = dict(defaults.quality_steps)
    quality_steps = tuple(
        (name, _str(quality_section, name, default_quality[name]))
        for name in _QUALITY_ORDER
    )

    return ToolSettings(
        marker=_str(global_section, "marker", defaults.marker),
        manifest=_str(global_section, "manifest", defaults.manifest),
        commands_dir=_str(global_section, "commands_dir", defaults.commands_dir),
        load_env=_bool(global_section, "load_env", defaults.load_env),
        quality_steps=quality_steps,
        typecheck_command=_str(
            ws_section, "typecheck_command", defaults.typecheck_command
        ),
        typecheck_markers=_str_tuple(
            ws_section, "typecheck_markers", defaults.typecheck_markers
        ),
        test_command=_str(ws_section, "test_command", defaults.test_command),
        test_markers=_str_tuple(ws_section, "test_markers", defaults.test_markers),
        test_script=_str(ws_section, "test_script", defaults.test_script),
        install_command=_str(
            sync_section, "install_command", defaults.install_command
        ),
    )


def _table(raw: dict, name: str) -> dict:
    section = raw.get(name, {})
    if not isinstance(section, dict):
        raise ValueError(f"[{name}] must be a table")
    return section


def _str(section: dict, key: str, default: str) -> str:
    value = section.get(key, default)
    if not isinstance(value, str) or not value:
        raise ValueError(f"'{key}' must be a non-empty string")
    return value


def _bool(section: dict, key: str, default: bool) -> bool:
    value = section.get(key, default)
    if not isinstance(value, bool):
        raise ValueError(f"'{key}' must be true or false")
    return value


def _str_tuple(section: dict, key: str, default: tuple[str, ...]) -> tuple[str, ...]:
    value = section.get(key, list(default))
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"'{key}' must be a list of strings")
    return tuple(value)


# ---------------------------------------------------------------------------
# .env loading
# ---------------------------------------------------------------------------


def load_env_files(ctx: MountContext) -> list[Path]:
    """Load .env from the self root, then the host root, without overriding.

    Variables already set in the environment win. Returns the files loaded.
    """
    candidates = [ctx.self_root / ".env"]
    if ctx.host_root is not None:
        candidates.append(ctx.host_root / ".env")

    loaded: list[Path] = []
    for env_file in candidates:
        if env_file.is_file():
            load_dotenv(env_file, override=False)
            loaded.append(env_file)
            logger.debug("Loaded environment from %s", env_file)
    return loaded

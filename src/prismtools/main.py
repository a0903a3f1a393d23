"""Console entry points — one zero-argument command per tool.

Every entry point does the same bootstrap: configure logging, locate the
project, read prismtools.toml from it, resolve the execution context once,
optionally export .env files for child commands, then hand the resolved
roots to a workspace scan or a pipeline.

The project is the checkout holding the package when it is installed in
editable mode, and otherwise the nearest directory at or above the working
directory that has package.json or prismtools.toml.

Entry points:
  prism-quality               quality chain for host/current project, then prism
  prism-typecheck-workspaces  typecheck every workspace with a type config
  prism-test-workspaces       run tests in every workspace with a test config
  prism-sync                  git + scripts + commands + dependency installs
  prism-sync-light            git + scripts + commands
  prism-sync-git / prism-sync-scripts / prism-sync-commands
  prism-clean-directories     remove empty directories

Exit codes: 0 on full success, 1 on any failure.
"""

import logging
import shlex
import sys
from collections.abc import Callable
from pathlib import Path

from .aggregate import run_across_workspaces
from .clean import clean_empty_directories
from .context import MountContext, context_for_project, resolve_context
from .errors import PrismToolsError
from .pipeline import Stage, describe_failure, run_pipeline
from .quality import build_quality_stages
from .runner import CommandRunner
from .settings import (
    ToolSettings,
    find_project_root,
    is_project_root,
    load_env_files,
    load_settings,
)
from .sync.commands import sync_commands
from .sync.git import sync_git
from .sync.pipeline import build_sync_stages
from .sync.scripts import sync_scripts
from .workspaces import CHECK_TEST, CHECK_TYPECHECK, eligible_workspaces

logger = logging.getLogger(__name__)

# Work done after bootstrap; returns the process exit code
Body = Callable[[MountContext, ToolSettings, CommandRunner], int]


def checkout_tool_dir() -> Path | None:
    """Directory holding the package when it runs from a project checkout.

    In an editable install this is ``src/`` and its parent is the project.
    Returns None for a regular install into site-packages, where the
    project is found from the working directory instead.
    """
    tool_dir = Path(__file__).resolve().parent.parent
    if is_project_root(tool_dir.parent):
        return tool_dir
    return None


def _configure_logging() -> None:
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.WARNING,
    )
    logging.getLogger("prismtools").setLevel(logging.INFO)


def _bootstrap(tool_dir: Path | None) -> tuple[MountContext, ToolSettings]:
    """Resolve settings and context for this invocation."""
    if tool_dir is None:
        tool_dir = checkout_tool_dir()
    if tool_dir is not None:
        tool_dir = Path(tool_dir).absolute()
        settings = load_settings(tool_dir.parent)
        ctx = resolve_context(tool_dir, settings.marker)
    else:
        project_root = find_project_root(Path.cwd())
        settings = load_settings(project_root)
        ctx = context_for_project(project_root, settings.marker)
    if settings.load_env:
        load_env_files(ctx)
    return ctx, settings


def _run(
    body: Body,
    tool_dir: Path | None,
    runner: CommandRunner | None,
) -> None:
    """Bootstrap, run body, and exit with its code."""
    _configure_logging()
    try:
        ctx, settings = _bootstrap(tool_dir)
        code = body(ctx, settings, runner or CommandRunner())
    except (PrismToolsError, FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(1)
    sys.exit(code)


def _run_stages(stages: list[Stage], success: str, failure: str) -> int:
    result = run_pipeline(stages)
    if result.succeeded:
        print(success)
        return 0
    print(f"{failure}: {describe_failure(result)}", file=sys.stderr)
    return 1


# ---------------------------------------------------------------------------
# Quality
# ---------------------------------------------------------------------------


def _quality(ctx: MountContext, settings: ToolSettings, runner: CommandRunner) -> int:
    print("Running quality checks...\n")
    stages = build_quality_stages(ctx, settings, runner)
    if not stages:
        print(
            f"Error: no {settings.manifest} found in {ctx.app_root}",
            file=sys.stderr,
        )
        return 1
    return _run_stages(stages, "All quality checks passed!", "Quality checks failed")


def quality_main(
    tool_dir: Path | None = None, runner: CommandRunner | None = None
) -> None:
    _run(_quality, tool_dir, runner)


# ---------------------------------------------------------------------------
# Workspace scans
# ---------------------------------------------------------------------------


def _scan(check_kind: str) -> Body:
    def body(ctx: MountContext, settings: ToolSettings, runner: CommandRunner) -> int:
        command = (
            settings.test_command
            if check_kind == CHECK_TEST
            else settings.typecheck_command
        )
        entries = eligible_workspaces(ctx.self_root, check_kind, settings)
        if not entries:
            print(f"No workspaces configured for {check_kind}.")
            return 0
        result = run_across_workspaces(entries, shlex.split(command), runner)
        if result.any_failed:
            names = ", ".join(e.name for e in result.failed)
            print(
                f"{check_kind} failed in {len(result.failed)} of "
                f"{len(result.ran)} workspace(s): {names}",
                file=sys.stderr,
            )
            return 1
        print(f"{check_kind} passed in {len(result.ran)} workspace(s).")
        return 0

    return body


def typecheck_workspaces_main(
    tool_dir: Path | None = None, runner: CommandRunner | None = None
) -> None:
    _run(_scan(CHECK_TYPECHECK), tool_dir, runner)


def test_workspaces_main(
    tool_dir: Path | None = None, runner: CommandRunner | None = None
) -> None:
    _run(_scan(CHECK_TEST), tool_dir, runner)


# ---------------------------------------------------------------------------
# Sync
# ---------------------------------------------------------------------------


def _sync(install: bool) -> Body:
    def body(ctx: MountContext, settings: ToolSettings, runner: CommandRunner) -> int:
        print("Syncing prism (git + scripts + commands)...\n")
        stages = build_sync_stages(ctx, settings, runner, install=install)
        return _run_stages(stages, "Prism sync complete!", "Sync failed")

    return body


def sync_main(
    tool_dir: Path | None = None, runner: CommandRunner | None = None
) -> None:
    _run(_sync(install=True), tool_dir, runner)


def sync_light_main(
    tool_dir: Path | None = None, runner: CommandRunner | None = None
) -> None:
    _run(_sync(install=False), tool_dir, runner)


def _sync_git(ctx: MountContext, settings: ToolSettings, runner: CommandRunner) -> int:
    return 0 if sync_git(ctx, runner) else 1


def _sync_scripts(
    ctx: MountContext, settings: ToolSettings, runner: CommandRunner
) -> int:
    return 0 if sync_scripts(ctx, settings) else 1


def _sync_commands(
    ctx: MountContext, settings: ToolSettings, runner: CommandRunner
) -> int:
    return 0 if sync_commands(ctx, settings) else 1


def sync_git_main(
    tool_dir: Path | None = None, runner: CommandRunner | None = None
) -> None:
    _run(_sync_git, tool_dir, runner)


def sync_scripts_main(tool_dir: Path | None = None) -> None:
    _run(_sync_scripts, tool_dir, None)


def sync_commands_main(tool_dir: Path | None = None) -> None:
    _run(_sync_commands, tool_dir, None)


# ---------------------------------------------------------------------------
# Clean
# ---------------------------------------------------------------------------


def _clean(ctx: MountContext, settings: ToolSettings, runner: CommandRunner) -> int:
    print(f"Cleaning empty directories in: {ctx.self_root}\n")
    removed = clean_empty_directories(ctx.self_root)
    if removed == 0:
        print("No empty directories found")
    else:
        plural = "y" if removed == 1 else "ies"
        print(f"Removed {removed} empty director{plural}")
    return 0


def clean_directories_main(tool_dir: Path | None = None) -> None:
    _run(_clean, tool_dir, None)


if __name__ == "__main__":
    quality_main()

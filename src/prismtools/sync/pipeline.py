"""The sync pipeline: git → scripts → commands → installs.

All steps run as one fail-fast stage; installing dependencies after a failed
pull or a conflicting command directory would leave the host half-synced.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ..context import MountContext
from ..pipeline import Stage, Step
from ..runner import CommandRunner
from ..settings import ToolSettings
from .commands import sync_commands
from .git import sync_git
from .scripts import sync_scripts

logger = logging.getLogger(__name__)


def _install_step(
    name: str, root: Path, settings: ToolSettings, runner: CommandRunner
) -> Step:
    """Install dependencies in root; a root without a manifest is skipped."""

    def action() -> int:
        if not settings.manifest_path(root).is_file():
            logger.warning("No %s found in %s, skipping...", settings.manifest, root)
            return 0
        return runner.run(settings.argv(settings.install_command), root)

    return Step(name=name, action=action)


def build_sync_stages(
    ctx: MountContext,
    settings: ToolSettings,
    runner: CommandRunner,
    install: bool = True,
) -> list[Stage]:
    """Return the sync pipeline; ``install=False`` is the light variant."""
    steps = [
        Step.call("sync git repository", lambda: sync_git(ctx, runner)),
        Step.call("sync scripts", lambda: sync_scripts(ctx, settings)),
        Step.call("sync commands", lambda: sync_commands(ctx, settings)),
    ]
    if install:
        steps.append(
            _install_step("install dependencies in app", ctx.app_root, settings, runner)
        )
        steps.append(
            _install_step(
                "install dependencies in prism", ctx.subtree_root, settings, runner
            )
        )
    return [Stage(name="sync", steps=tuple(steps))]

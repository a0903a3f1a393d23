"""Quality pipeline — typecheck, lint, format and test, project by project.

Runs the host (or current) project first, then the prism subtree. Each
project is one fail-fast stage, and a failing project stops the pipeline.
"""

from __future__ import annotations

import logging
from pathlib import Path

from .context import MountContext
from .pipeline import Stage, Step
from .runner import CommandRunner
from .settings import ToolSettings

logger = logging.getLogger(__name__)


def quality_stage(
    name: str, root: Path, settings: ToolSettings, runner: CommandRunner
) -> Stage:
    """The four-step quality chain for one project root."""
    steps = tuple(
        Step.command(step_name, settings.argv(command), root, runner)
        for step_name, command in settings.quality_steps
    )
    return Stage(name=name, steps=steps)


def build_quality_stages(
    ctx: MountContext, settings: ToolSettings, runner: CommandRunner
) -> list[Stage]:
    """Stages to run for this context, in order.

    Embedded: the host project (if it has a manifest), then prism.
    Standalone: the current project, then a vendored prism checkout if one
    exists. A missing vendored checkout is logged and skipped.
    """
    stages: list[Stage] = []

    def has_manifest(root: Path) -> bool:
        return settings.manifest_path(root).is_file()

    if ctx.is_embedded:
        if ctx.host_root is not None and has_manifest(ctx.host_root):
            stages.append(
                quality_stage("host project", ctx.host_root, settings, runner)
            )
        if has_manifest(ctx.self_root):
            stages.append(quality_stage("prism", ctx.self_root, settings, runner))
        return stages

    if has_manifest(ctx.self_root):
        stages.append(
            quality_stage("current project", ctx.self_root, settings, runner)
        )
    if has_manifest(ctx.subtree_root):
        stages.append(quality_stage("prism", ctx.subtree_root, settings, runner))
    else:
        logger.info(
            "No prism directory found at: %s, skipping prism quality checks",
            ctx.subtree_root,
        )
    return stages

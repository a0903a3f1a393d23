"""Fail-fast pipelines of named steps.

A Stage is an ordered list of Steps; the first failing Step that aborts on
failure ends its Stage. A failed Stage ends the whole pipeline, because
later stages depend on the state the earlier ones verified or produced.

Key entities:
  - Step / Stage: declarative pipeline data.
  - run_stage() / run_pipeline(): the executor.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from .runner import CommandRunner, succeeded

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Step:
    """A named action returning an exit code."""

    name: str
    action: Callable[[], int]
    abort_on_failure: bool = True

    @classmethod
    def command(
        cls,
        name: str,
        argv: Sequence[str],
        cwd: Path,
        runner: CommandRunner,
        abort_on_failure: bool = True,
    ) -> Step:
        """Step that runs argv in cwd through runner."""
        args = list(argv)
        return cls(
            name=name,
            action=lambda: runner.run(args, cwd),
            abort_on_failure=abort_on_failure,
        )

    @classmethod
    def call(
        cls,
        name: str,
        fn: Callable[[], bool],
        abort_on_failure: bool = True,
    ) -> Step:
        """Step that wraps a Python callable returning True on success."""
        return cls(
            name=name,
            action=lambda: 0 if fn() else 1,
            abort_on_failure=abort_on_failure,
        )


@dataclass(frozen=True)
class Stage:
    name: str
    steps: tuple[Step, ...]


@dataclass(frozen=True)
class StepResult:
    step: Step
    exit_code: int

    @property
    def succeeded(self) -> bool:
        return succeeded(self.exit_code)


@dataclass
class StageResult:
    stage: Stage
    results: list[StepResult] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return all(r.succeeded for r in self.results)

    @property
    def failed_step(self) -> Step | None:
        for r in self.results:
            if not r.succeeded:
                return r.step
        return None


@dataclass
class PipelineResult:
    stages: list[StageResult] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return all(s.succeeded for s in self.stages)

    @property
    def failed_stage(self) -> Stage | None:
        for s in self.stages:
            if not s.succeeded:
                return s.stage
        return None

    @property
    def failed_step(self) -> Step | None:
        for s in self.stages:
            if not s.succeeded:
                return s.failed_step
        return None


def run_stage(stage: Stage) -> StageResult:
    """Run a stage's steps in order, stopping at the first aborting failure."""
    result = StageResult(stage=stage)
    for step in stage.steps:
        logger.info("[%s] %s", stage.name, step.name)
        exit_code = step.action()
        result.results.append(StepResult(step=step, exit_code=exit_code))
        if succeeded(exit_code):
            continue
        logger.error("[%s] %s failed (exit %d)", stage.name, step.name, exit_code)
        if step.abort_on_failure:
            skipped = len(stage.steps) - len(result.results)
            if skipped:
                logger.info("[%s] skipping %d remaining step(s)", stage.name, skipped)
            break
    return result


def run_pipeline(stages: Sequence[Stage]) -> PipelineResult:
    """Run stages in order; a failed stage aborts the rest."""
    result = PipelineResult()
    for index, stage in enumerate(stages):
        stage_result = run_stage(stage)
        result.stages.append(stage_result)
        if not stage_result.succeeded:
            remaining = len(stages) - index - 1
            if remaining:
                logger.warning(
                    "Stage '%s' failed, not running %d later stage(s)",
                    stage.name,
                    remaining,
                )
            break
    return result


def describe_failure(result: PipelineResult) -> str:
    """One-line explanation of where a failed pipeline stopped."""
    stage = result.failed_stage
    step = result.failed_step
    if stage is None:
        return "all stages passed"
    if step is None:
        return f"stage '{stage.name}' failed"
    return f"stage '{stage.name}' failed at step '{step.name}'"

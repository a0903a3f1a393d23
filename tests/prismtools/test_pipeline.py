"""Tests for pipeline.py — fail-fast stages."""

from pathlib import Path

import pytest

from prismtools.errors import SpawnError
from prismtools.pipeline import (
    Stage,
    Step,
    describe_failure,
    run_pipeline,
    run_stage,
)

from .conftest import FakeRunner


def _counting_step(name: str, counter: dict[str, int], ok: bool = True, **kw) -> Step:
    def action() -> int:
        counter[name] = counter.get(name, 0) + 1
        return 0 if ok else 1

    return Step(name=name, action=action, **kw)


class TestStepFactories:
    def test_command_step_uses_runner(self, tmp_path: Path, runner: FakeRunner) -> None:
        step = Step.command("lint", ["npm", "run", "lint"], tmp_path, runner)
        assert step.action() == 0
        assert runner.calls == [(["npm", "run", "lint"], tmp_path)]

    def test_command_step_copies_argv(self, tmp_path: Path, runner: FakeRunner) -> None:
        argv = ["npm", "run", "lint"]
        step = Step.command("lint", argv, tmp_path, runner)
        argv.append("--fix")
        step.action()
        assert runner.calls[0][0] == ["npm", "run", "lint"]

    def test_call_step_maps_bool(self) -> None:
        assert Step.call("ok", lambda: True).action() == 0
        assert Step.call("bad", lambda: False).action() == 1

    def test_abort_on_failure_default(self) -> None:
        assert Step.call("x", lambda: True).abort_on_failure is True


class TestRunStage:
    def test_runs_all_steps(self) -> None:
        counter: dict[str, int] = {}
        stage = Stage("s", tuple(_counting_step(n, counter) for n in "abc"))
        result = run_stage(stage)
        assert result.succeeded
        assert counter == {"a": 1, "b": 1, "c": 1}

    def test_stops_at_first_failure(self) -> None:
        counter: dict[str, int] = {}
        stage = Stage(
            "s",
            (
                _counting_step("a", counter),
                _counting_step("b", counter, ok=False),
                _counting_step("c", counter),
            ),
        )
        result = run_stage(stage)
        assert not result.succeeded
        assert result.failed_step is stage.steps[1]
        assert counter == {"a": 1, "b": 1}

    def test_non_aborting_failure_continues_but_fails_stage(self) -> None:
        counter: dict[str, int] = {}
        stage = Stage(
            "s",
            (
                _counting_step("a", counter, ok=False, abort_on_failure=False),
                _counting_step("b", counter),
            ),
        )
        result = run_stage(stage)
        assert counter == {"a": 1, "b": 1}
        assert not result.succeeded
        assert result.failed_step is stage.steps[0]

    def test_exit_codes_recorded(self) -> None:
        stage = Stage("s", (Step(name="x", action=lambda: 7),))
        result = run_stage(stage)
        assert result.results[0].exit_code == 7
        assert result.results[0].succeeded is False

    def test_quality_chain_stops_at_lint(self, tmp_path: Path) -> None:
        runner = FakeRunner(fail=lambda argv, cwd: argv[-1] == "lint")
        stage = Stage(
            "project",
            tuple(
                Step.command(name, ["npm", "run", name], tmp_path, runner)
                for name in ("typecheck", "lint", "format", "test")
            ),
        )
        run_stage(stage)
        assert [argv[-1] for argv, _ in runner.calls] == ["typecheck", "lint"]


class TestRunPipeline:
    def test_later_stage_never_runs_after_failure(self) -> None:
        counter: dict[str, int] = {}
        stage1 = Stage("one", (_counting_step("1a", counter, ok=False),))
        stage2 = Stage(
            "two", (_counting_step("2a", counter), _counting_step("2b", counter))
        )

        result = run_pipeline([stage1, stage2])

        assert not result.succeeded
        assert counter.get("2a", 0) == 0
        assert counter.get("2b", 0) == 0
        assert len(result.stages) == 1
        assert result.failed_stage is stage1

    def test_all_stages_pass(self) -> None:
        counter: dict[str, int] = {}
        stages = [
            Stage("one", (_counting_step("a", counter),)),
            Stage("two", (_counting_step("b", counter),)),
        ]
        result = run_pipeline(stages)
        assert result.succeeded
        assert result.failed_stage is None
        assert result.failed_step is None
        assert counter == {"a": 1, "b": 1}

    def test_empty_pipeline_succeeds(self) -> None:
        assert run_pipeline([]).succeeded

    def test_spawn_fault_propagates(self, tmp_path: Path) -> None:
        def boom() -> int:
            raise SpawnError(["npm"], tmp_path, FileNotFoundError("npm"))

        with pytest.raises(SpawnError):
            run_pipeline([Stage("s", (Step(name="x", action=boom),))])


class TestDescribeFailure:
    def test_names_stage_and_step(self) -> None:
        stage = Stage("host project", (Step(name="lint", action=lambda: 1),))
        result = run_pipeline([stage])
        assert describe_failure(result) == (
            "stage 'host project' failed at step 'lint'"
        )

    def test_success(self) -> None:
        assert describe_failure(run_pipeline([])) == "all stages passed"

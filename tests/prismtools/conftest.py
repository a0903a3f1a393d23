"""Shared test helpers for prismtools tests."""

import json
from collections.abc import Callable, Sequence
from pathlib import Path

import pytest


class FakeRunner:
    """Records every command instead of running it.

    ``fail`` decides, per call, whether the command exits 1.
    """

    def __init__(self, fail: Callable[[list[str], Path], bool] | None = None) -> None:
        self.calls: list[tuple[list[str], Path]] = []
        self._fail = fail or (lambda argv, cwd: False)

    def run(self, argv: Sequence[str], cwd: Path) -> int:
        args = list(argv)
        self.calls.append((args, Path(cwd)))
        return 1 if self._fail(args, Path(cwd)) else 0

    def calls_in(self, cwd: Path) -> list[list[str]]:
        return [argv for argv, where in self.calls if where == cwd]


def write_json(path: Path, data: dict) -> Path:
    """Write data as JSON, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2) + "\n")
    return path


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def embedded_layout(tmp_path: Path) -> dict[str, Path]:
    """host/ with package.json embedding host/prism/ (tool dir prism/src)."""
    host = tmp_path / "host"
    prism = host / "prism"
    tool_dir = prism / "src"
    tool_dir.mkdir(parents=True)
    write_json(host / "package.json", {"name": "host", "scripts": {}})
    write_json(prism / "package.json", {"name": "@prism/core", "scripts": {}})
    return {"host": host, "prism": prism, "tool_dir": tool_dir}

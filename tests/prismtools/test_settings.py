"""Tests for settings.py — ToolSettings, load_settings and .env loading."""

import os
from pathlib import Path

import pytest

from prismtools.context import EMBEDDED, STANDALONE, MountContext
from prismtools.errors import ProjectNotFoundError
from prismtools.settings import (
    ToolSettings,
    find_project_root,
    load_env_files,
    load_settings,
)


def _write_settings(tmp_path: Path, toml_content: str) -> Path:
    (tmp_path / "prismtools.toml").write_text(toml_content)
    return tmp_path


class TestToolSettings:
    def test_defaults(self) -> None:
        settings = ToolSettings()
        assert settings.marker == "prism"
        assert settings.manifest == "package.json"
        assert settings.commands_dir == ".cursor/commands"
        assert settings.load_env is True
        assert [name for name, _ in settings.quality_steps] == [
            "typecheck",
            "lint",
            "format",
            "test",
        ]
        assert settings.typecheck_markers == ("tsconfig.json",)
        assert settings.test_script == "test:run"

    def test_argv_splits_quoted_arguments(self) -> None:
        settings = ToolSettings()
        assert settings.argv('eslint "my app" --fix') == ["eslint", "my app", "--fix"]

    def test_derived_paths(self, tmp_path: Path) -> None:
        settings = ToolSettings()
        assert settings.manifest_path(tmp_path) == tmp_path / "package.json"
        assert settings.commands_path(tmp_path) == tmp_path / ".cursor" / "commands"


class TestLoadSettings:
    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        assert load_settings(tmp_path) == ToolSettings()

    def test_overrides(self, tmp_path: Path) -> None:
        _write_settings(
            tmp_path,
            """\
[global]
marker = "shared"
load_env = false

[quality]
test = "npm test"

[workspaces]
typecheck_markers = ["tsconfig.json", "jsconfig.json"]

[sync]
install_command = "pnpm install"
""",
        )
        settings = load_settings(tmp_path)
        assert settings.marker == "shared"
        assert settings.load_env is False
        assert dict(settings.quality_steps)["test"] == "npm test"
        assert dict(settings.quality_steps)["lint"] == "npm run lint"
        assert settings.typecheck_markers == ("tsconfig.json", "jsconfig.json")
        assert settings.install_command == "pnpm install"

    def test_quality_order_is_fixed(self, tmp_path: Path) -> None:
        _write_settings(tmp_path, '[quality]\ntest = "t"\ntypecheck = "tc"\n')
        settings = load_settings(tmp_path)
        assert [n for n, _ in settings.quality_steps][0] == "typecheck"

    def test_invalid_toml(self, tmp_path: Path) -> None:
        _write_settings(tmp_path, "[global\n")
        with pytest.raises(ValueError, match="Invalid TOML"):
            load_settings(tmp_path)

    def test_wrong_type(self, tmp_path: Path) -> None:
        _write_settings(tmp_path, "[global]\nload_env = 1\n")
        with pytest.raises(ValueError, match="load_env"):
            load_settings(tmp_path)

    def test_empty_string_rejected(self, tmp_path: Path) -> None:
        _write_settings(tmp_path, '[global]\nmarker = ""\n')
        with pytest.raises(ValueError, match="marker"):
            load_settings(tmp_path)

    def test_markers_must_be_strings(self, tmp_path: Path) -> None:
        _write_settings(tmp_path, "[workspaces]\ntest_markers = [1]\n")
        with pytest.raises(ValueError, match="test_markers"):
            load_settings(tmp_path)

    def test_section_must_be_table(self, tmp_path: Path) -> None:
        _write_settings(tmp_path, 'quality = "fast"\n')
        with pytest.raises(ValueError, match=r"\[quality\]"):
            load_settings(tmp_path)


class TestLoadEnvFiles:
    def test_loads_self_then_host(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("PRISM_TEST_A", raising=False)
        monkeypatch.delenv("PRISM_TEST_B", raising=False)
        host = tmp_path
        prism = tmp_path / "prism"
        prism.mkdir()
        (prism / ".env").write_text("PRISM_TEST_A=from-prism\n")
        (host / ".env").write_text("PRISM_TEST_A=from-host\nPRISM_TEST_B=host-only\n")
        ctx = MountContext(kind=EMBEDDED, self_root=prism, host_root=host)

        loaded = load_env_files(ctx)

        assert loaded == [prism / ".env", host / ".env"]
        assert os.environ["PRISM_TEST_A"] == "from-prism"
        assert os.environ["PRISM_TEST_B"] == "host-only"

    def test_existing_env_wins(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("PRISM_TEST_A", "from-shell")
        (tmp_path / ".env").write_text("PRISM_TEST_A=from-file\n")
        load_env_files(MountContext(kind=STANDALONE, self_root=tmp_path))
        assert os.environ["PRISM_TEST_A"] == "from-shell"

    def test_no_env_files(self, tmp_path: Path) -> None:
        assert load_env_files(MountContext(kind=STANDALONE, self_root=tmp_path)) == []


class TestFindProjectRoot:
    def test_start_is_project(self, tmp_path: Path) -> None:
        (tmp_path / "package.json").write_text("{}")
        assert find_project_root(tmp_path) == tmp_path

    def test_walks_up_from_subdirectory(self, tmp_path: Path) -> None:
        (tmp_path / "package.json").write_text("{}")
        nested = tmp_path / "app" / "components"
        nested.mkdir(parents=True)
        assert find_project_root(nested) == tmp_path

    def test_settings_file_marks_root(self, tmp_path: Path) -> None:
        _write_settings(tmp_path, "")
        (tmp_path / "src").mkdir()
        assert find_project_root(tmp_path / "src") == tmp_path

    def test_nearest_project_wins(self, tmp_path: Path) -> None:
        (tmp_path / "package.json").write_text("{}")
        inner = tmp_path / "prism"
        inner.mkdir()
        (inner / "package.json").write_text("{}")
        assert find_project_root(inner) == inner

    def test_no_project(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(
            "prismtools.settings.is_project_root", lambda path: False
        )
        with pytest.raises(ProjectNotFoundError, match="No project found"):
            find_project_root(tmp_path)

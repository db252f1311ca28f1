"""Unit tests for the package entry point (composition root and logging setup)."""

import logging
from pathlib import Path
from unittest.mock import patch

import pytest

from suite_policy_linter import __main__ as entry_point
from suite_policy_linter.infrastructure.di.container import SuitePolicyContainer


@pytest.fixture(autouse=True)
def _fresh_container():
    SuitePolicyContainer.reset()
    yield
    SuitePolicyContainer.reset()


class TestConfigureLogging:
    def test_level_comes_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SUITE_POLICY_LOG_LEVEL", "debug")
        with patch.object(logging, "basicConfig") as basic_config:
            entry_point.configure_logging()
        assert basic_config.call_args.kwargs["level"] == logging.DEBUG

    def test_unknown_level_falls_back_to_warning(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SUITE_POLICY_LOG_LEVEL", "chatty")
        with patch.object(logging, "basicConfig") as basic_config:
            entry_point.configure_logging()
        assert basic_config.call_args.kwargs["level"] == logging.WARNING


class TestMain:
    def test_rules_command_runs(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr("sys.argv", ["suite-policy", "rules"])
        with patch.object(logging, "basicConfig"), pytest.raises(SystemExit) as excinfo:
            entry_point.main()
        assert excinfo.value.code == 0
        assert "no-assert-in-hook" in capsys.readouterr().out

    def test_invalid_configuration_exits_two(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "pyproject.toml").write_text('[tool.suite-policy]\nparallel = "yes"\n', encoding="utf-8")
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr("sys.argv", ["suite-policy", "rules"])
        with patch.object(logging, "basicConfig"), pytest.raises(SystemExit) as excinfo:
            entry_point.main()
        assert excinfo.value.code == 2

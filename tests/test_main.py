"""
Tests for the capability inspection command (python -m harness).

Covers:
- Argument parsing.
- Listing of the backend selected per capability.
- Settings errors reported through the exit code.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Generator

import pytest
import yaml
from loguru import logger

from harness.__main__ import main, parse_args


@pytest.fixture(autouse=True)
def restore_loguru() -> Generator[None, None, None]:
    """main() replaces the loguru sinks; put the default one back."""
    yield
    logger.remove()
    logger.add(sys.stderr)


class TestParseArgs:
    def test_defaults(self) -> None:
        args = parse_args([])

        assert args.config is None
        assert args.verbose is False

    def test_config_and_verbose(self) -> None:
        args = parse_args(["--config", "ci.yml", "-v"])

        assert args.config == "ci.yml"
        assert args.verbose is True


class TestMain:
    def test_lists_selected_backends(
        self,
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        config = tmp_path / "harness.yml"
        config.write_text(
            yaml.safe_dump({"logging": {"provider": "console"}, "reporting": {"provider": "none"}}),
            encoding="utf-8",
        )

        assert main(["--config", str(config)]) == 0

        out = capsys.readouterr().out
        assert f"Settings: {config}" in out
        assert "ConsoleLoggingService" in out
        assert "NullReportingService (no-op)" in out
        assert "NullIssueTrackingService (no-op)" in out
        assert "JsonDataReader" in out

    def test_defaults_without_settings_file(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("HARNESS_CONFIG_DIR", raising=False)

        assert main([]) == 0
        assert "Settings: defaults" in capsys.readouterr().out

    def test_missing_config_file(self, tmp_path: Path) -> None:
        assert main(["--config", str(tmp_path / "missing.yml")]) == 1

    def test_invalid_config_file(self, tmp_path: Path) -> None:
        config = tmp_path / "harness.yml"
        config.write_text("issuetracking:\n  provider: bugzilla\n", encoding="utf-8")

        assert main(["--config", str(config)]) == 1

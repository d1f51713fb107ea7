"""
Root conftest.py - Shared Pytest fixtures for the harness test suite.

Provides fixtures for:
- Settings built from in-memory mappings
- Settings files written to a temporary config directory
- A fresh process-wide registry per test
- Loguru output captured into a list

The ``pytester`` plugin is enabled for the pytest plugin tests.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, Generator, List

import pytest
import yaml
from loguru import logger

from harness.config.settings import Settings
from harness.registry import reset_registry

pytest_plugins = ["pytester"]


# ---------------------------------------------------------------------------
# Settings Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    """Factory building ``Settings`` from a nested mapping."""

    def _make(data: Dict[str, Any] | None = None) -> Settings:
        return Settings(data or {})

    return _make


@pytest.fixture
def jira_settings() -> Settings:
    """Settings selecting a fully configured Jira tracker."""
    return Settings(
        {
            "issuetracking": {
                "provider": "jira",
                "timeout_sec": 5,
                "jira": {
                    "url": "https://jira.example.com",
                    "project": "QA",
                    "username": "automation@example.com",
                    "token": "jira-token",
                },
            }
        }
    )


@pytest.fixture
def github_settings() -> Settings:
    """Settings selecting a fully configured GitHub tracker."""
    return Settings(
        {
            "issuetracking": {
                "provider": "github",
                "github": {"repository": "acme/widgets", "token": "gh-token"},
            }
        }
    )


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    """Empty directory used as HARNESS_CONFIG_DIR."""
    directory = tmp_path / "config"
    directory.mkdir()
    return directory


@pytest.fixture
def write_settings(config_dir: Path) -> Callable[..., Path]:
    """Write a YAML settings file into ``config_dir`` and return its path."""

    def _write(data: Dict[str, Any], name: str = "harness.yml") -> Path:
        path = config_dir / name
        path.write_text(yaml.safe_dump(data), encoding="utf-8")
        return path

    return _write


# ---------------------------------------------------------------------------
# Registry / Logging Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def clean_registry() -> Generator[None, None, None]:
    """Forget the process-wide registry before and after the test."""
    reset_registry()
    yield
    reset_registry()


@pytest.fixture
def log_messages() -> Generator[List[str], None, None]:
    """Collect loguru messages emitted during the test."""
    messages: List[str] = []
    handler_id = logger.add(lambda message: messages.append(str(message)), level="DEBUG")
    yield messages
    logger.remove(handler_id)

"""
pytest integration for the harness.

Registered through the ``pytest11`` entry point, so installing the package is
enough to enable it. Provides:
- Markers ``track_issue`` (opt-in issue metadata) and ``failure_tolerance``
  (percentage of acceptable failures over a number of runs).
- Automatic issue filing for opted-in tests whose failure exceeds their budget.
- Fixtures exposing every resolved capability to tests.

Example::

    @pytest.mark.track_issue("Sign-in rejected", "Valid user cannot sign in", "Critical")
    @pytest.mark.failure_tolerance(50)
    @pytest.mark.parametrize("attempt", range(4))
    def test_sign_in(attempt, notifier):
        ...
"""

from __future__ import annotations

import math
import threading
from pathlib import Path
from typing import Callable, Dict, Optional

import pytest
from loguru import logger

from harness.config.loader import SettingsError, SettingsLoader
from harness.config.settings import Settings
from harness.data.reader import DataFormat, DataReader
from harness.issuetracking.listener import (
    FailureContext,
    IssueMetadata,
    IssueTrackingListener,
)
from harness.issuetracking.tracker import IssueTrackingService
from harness.log.base import Logger, LoggingService
from harness.notification.notifier import Notifier
from harness.notification.service import NotificationService
from harness.registry import (
    CapabilityRegistry,
    init_registry,
    installed_registry,
    replace_registry,
)
from harness.reporting.reporter import Reporter, ReportingService

TRACK_ISSUE_MARKER = "track_issue"
FAILURE_TOLERANCE_MARKER = "failure_tolerance"
TOLERATED_REASON = "within failure tolerance"
DEFAULT_SEVERITY = "Major"

_state_key = pytest.StashKey["HarnessState"]()


# ---------------------------------------------------------------------------
# Failure budget
# ---------------------------------------------------------------------------


class FailureBudget:
    """
    Counts failures per test against its tolerated share of runs.

    A test declaring ``failure_tolerance(percent, runs)`` may fail
    ``floor(runs * percent / 100)`` times before a failure counts as final.

    Thread Safety:
        ``record_failure`` is safe to call from concurrent workers.
    """

    def __init__(self) -> None:
        self._failures: Dict[str, int] = {}
        self._lock = threading.Lock()

    @staticmethod
    def allowance(percent: float, runs: int) -> int:
        """Number of failures tolerated for ``runs`` runs at ``percent``."""
        if runs <= 0 or percent <= 0:
            return 0
        return math.floor(runs * percent / 100)

    def record_failure(self, test_id: str, percent: float, runs: int) -> bool:
        """
        Record one failure of ``test_id``.

        Returns:
            True while the failure count is still within the allowance.
        """
        with self._lock:
            count = self._failures.get(test_id, 0) + 1
            self._failures[test_id] = count
        return count <= self.allowance(percent, runs)

    def failures(self, test_id: str) -> int:
        return self._failures.get(test_id, 0)

    def reset(self) -> None:
        with self._lock:
            self._failures.clear()


class HarnessState:
    """Per-session objects shared by the hooks and fixtures."""

    def __init__(
        self,
        settings: Settings,
        registry: CapabilityRegistry,
        previous_registry: Optional[CapabilityRegistry] = None,
    ) -> None:
        self.settings = settings
        self.registry = registry
        self.previous_registry = previous_registry
        self.listener = IssueTrackingListener(registry)
        self.budget = FailureBudget()
        self.collected_runs: Dict[str, int] = {}


def _budget_key(item: pytest.Item) -> str:
    # Parametrized cases of one test share a budget
    return item.nodeid.split("[", 1)[0]


def harness_state(config: pytest.Config) -> HarnessState:
    """Return the harness objects of the session owning ``config``."""
    return config.stash[_state_key]


# ---------------------------------------------------------------------------
# Hooks
# ---------------------------------------------------------------------------


def pytest_addoption(parser: pytest.Parser) -> None:
    """Add harness CLI options."""
    group = parser.getgroup("harness", "test harness capabilities")
    group.addoption(
        "--harness-config",
        default=None,
        help="Path to the harness settings file. "
        "Default: discovered from HARNESS_CONFIG_DIR / HARNESS_CONFIG_NAME",
    )


def pytest_configure(config: pytest.Config) -> None:
    """Register markers and build the session registry."""
    config.addinivalue_line(
        "markers",
        f"{TRACK_ISSUE_MARKER}(summary, description, severity): "
        "File an issue with this metadata when the test fails",
    )
    config.addinivalue_line(
        "markers",
        f"{FAILURE_TOLERANCE_MARKER}(percent, runs=None): "
        "Tolerate this percentage of failures before a failure counts as final",
    )

    config_path: Optional[str] = config.getoption("--harness-config", default=None)
    try:
        settings = SettingsLoader().load(Path(config_path) if config_path else None)
    except (SettingsError, FileNotFoundError) as e:
        raise pytest.UsageError(f"Invalid harness settings: {e}") from e
    previous = installed_registry()
    registry = init_registry(settings=settings)
    config.stash[_state_key] = HarnessState(settings, registry, previous)
    logger.debug(f"Harness registry initialised ({settings!r})")


def pytest_unconfigure(config: pytest.Config) -> None:
    if _state_key not in config.stash:
        return
    state = config.stash[_state_key]
    del config.stash[_state_key]
    # Leave a registry installed by someone else in place
    replace_registry(state.registry, state.previous_registry)


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    """Count collected runs per test so ``failure_tolerance`` can omit ``runs``."""
    state = harness_state(config)
    runs: Dict[str, int] = {}
    for item in items:
        if item.get_closest_marker(FAILURE_TOLERANCE_MARKER) is not None:
            key = _budget_key(item)
            runs[key] = runs.get(key, 0) + 1
    state.collected_runs = runs

    tracked = sum(1 for item in items if item.get_closest_marker(TRACK_ISSUE_MARKER))
    if tracked:
        logger.info(f"Issue tracking enabled for {tracked} collected test(s)")


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item: pytest.Item, call: pytest.CallInfo):
    """Apply the failure budget and hand final failures to the issue listener."""
    outcome = yield
    report = outcome.get_result()
    if report.when != "call" or not report.failed:
        return

    state = harness_state(item.config)
    within_tolerance = _record_failure(state, item)
    if within_tolerance:
        report.outcome = "skipped"
        report.wasxfail = TOLERATED_REASON

    context = FailureContext(
        test_id=item.nodeid,
        metadata=issue_metadata(item, report.longreprtext),
        within_tolerance=within_tolerance,
    )
    state.listener.on_test_failure(context)


def _record_failure(state: HarnessState, item: pytest.Item) -> bool:
    marker = item.get_closest_marker(FAILURE_TOLERANCE_MARKER)
    if marker is None:
        return False

    percent = marker.kwargs.get("percent", marker.args[0] if marker.args else 0)
    runs = marker.kwargs.get("runs", marker.args[1] if len(marker.args) > 1 else None)
    key = _budget_key(item)
    if runs is None:
        runs = state.collected_runs.get(key, 1)
    return state.budget.record_failure(key, float(percent), int(runs))


def issue_metadata(item: pytest.Item, failure_text: str = "") -> Optional[IssueMetadata]:
    """
    Build the issue metadata a test declared with ``track_issue``.

    Args:
        item: The collected test.
        failure_text: Failure representation used when no description is given.

    Returns:
        The metadata, or None when the test did not opt in.
    """
    marker = item.get_closest_marker(TRACK_ISSUE_MARKER)
    if marker is None:
        return None

    args = list(marker.args) + [None] * (3 - len(marker.args))
    summary = marker.kwargs.get("summary", args[0]) or f"{item.name} failed"
    description = marker.kwargs.get("description", args[1]) or failure_text
    severity = marker.kwargs.get("severity", args[2]) or DEFAULT_SEVERITY
    return IssueMetadata(summary=summary, description=description, severity=severity)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def harness_registry(pytestconfig: pytest.Config) -> CapabilityRegistry:
    """The capability registry of this test session."""
    return harness_state(pytestconfig).registry


@pytest.fixture(scope="session")
def harness_settings(pytestconfig: pytest.Config) -> Settings:
    return harness_state(pytestconfig).settings


@pytest.fixture
def harness_logger(
    request: pytest.FixtureRequest, harness_registry: CapabilityRegistry
) -> Logger:
    """Logger named after the running test."""
    service = harness_registry.resolve(LoggingService)
    return service.get_logger(request.node.nodeid)


@pytest.fixture
def notifier(harness_registry: CapabilityRegistry) -> Notifier:
    """A fresh notifier with no recipients."""
    return harness_registry.resolve(NotificationService).get_notifier()


@pytest.fixture
def issue_tracking_service(harness_registry: CapabilityRegistry) -> IssueTrackingService:
    return harness_registry.resolve(IssueTrackingService)


@pytest.fixture
def reporter(
    request: pytest.FixtureRequest, harness_registry: CapabilityRegistry
) -> Reporter:
    """Reporter for the running test, described by its docstring's first line."""
    doc = getattr(request.function, "__doc__", None) or ""
    description = doc.strip().splitlines()[0] if doc.strip() else None
    service = harness_registry.resolve(ReportingService)
    return service.get_reporter(request.node.name, description)


@pytest.fixture
def data_reader(
    harness_registry: CapabilityRegistry,
) -> Callable[[DataFormat], DataReader]:
    """Factory returning the reader resolved for a data format."""

    def _reader(data_format: DataFormat) -> DataReader:
        return harness_registry.resolve(data_format)

    return _reader

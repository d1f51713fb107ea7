"""
Unit Tests for the Issue Tracking Module.

Covers:
- IssueTrackingListener: opt-in, tolerance, no tracker, error absorption.
- JiraIssueTracker / GithubIssueTracker: blank checks, duplicate detection,
  issue creation, error mapping (API calls mocked).
- Tracking services: availability from settings.
"""

from __future__ import annotations

from typing import List, Optional
from unittest.mock import MagicMock

import pytest
import requests

from harness.config.settings import Settings
from harness.issuetracking.github import GithubIssueTracker, GithubIssueTrackingService
from harness.issuetracking.http import HttpIssueTracker
from harness.issuetracking.jira import JiraIssueTracker, JiraIssueTrackingService
from harness.issuetracking.listener import (
    FailureContext,
    IssueMetadata,
    IssueTrackingListener,
    TrackingOutcome,
)
from harness.issuetracking.tracker import (
    IssueTracker,
    IssueTrackerError,
    IssueTrackingService,
    NullIssueTrackingService,
)
from harness.registry import CapabilityRegistry

METADATA = IssueMetadata(
    summary="Sign-in rejected",
    description="Valid user cannot sign in",
    severity="Critical",
)


class RecordingTracker(IssueTracker):
    """Tracker double recording report_issue calls."""

    def __init__(self, result: bool = True, error: Optional[Exception] = None) -> None:
        self.calls: List[tuple] = []
        self.closed = False
        self._result = result
        self._error = error

    def report_issue(self, summary: str, description: str, severity: str) -> bool:
        self.calls.append((summary, description, severity))
        if self._error is not None:
            raise self._error
        return self._result

    def close(self) -> None:
        self.closed = True


class StubTrackingService(IssueTrackingService):
    def __init__(self, tracker: IssueTracker) -> None:
        self.tracker = tracker

    def get_issue_tracker(self) -> IssueTracker:
        return self.tracker

    def is_available(self) -> bool:
        return True


def registry_with(service_factory) -> CapabilityRegistry:
    registry = CapabilityRegistry()
    registry.register(
        IssueTrackingService, [service_factory], fallback=NullIssueTrackingService
    )
    return registry


def mock_response(body: object, status_code: int = 200) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = body
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(
            f"{status_code} error", response=response
        )
    else:
        response.raise_for_status.return_value = None
    return response


# ---------------------------------------------------------------------------
# Listener Tests
# ---------------------------------------------------------------------------


class TestIssueTrackingListener:
    """Tests for failure-triggered issue filing."""

    def test_files_issue_once_with_declared_metadata(self) -> None:
        tracker = RecordingTracker()
        listener = IssueTrackingListener(registry_with(lambda: StubTrackingService(tracker)))

        outcome = listener.on_test_failure(FailureContext("tests/test_a.py::test_x", METADATA))

        assert outcome is TrackingOutcome.FILED
        assert tracker.calls == [
            ("Sign-in rejected", "Valid user cannot sign in", "Critical")
        ]
        assert tracker.closed is True

    def test_declined_report_is_still_filed_outcome(self) -> None:
        tracker = RecordingTracker(result=False)
        listener = IssueTrackingListener(registry_with(lambda: StubTrackingService(tracker)))

        outcome = listener.on_test_failure(FailureContext("t", METADATA))

        assert outcome is TrackingOutcome.FILED
        assert len(tracker.calls) == 1

    def test_skips_without_metadata(self) -> None:
        tracker = RecordingTracker()
        listener = IssueTrackingListener(registry_with(lambda: StubTrackingService(tracker)))

        outcome = listener.on_test_failure(FailureContext("t"))

        assert outcome is TrackingOutcome.SKIPPED
        assert tracker.calls == []

    def test_skips_within_tolerance(self) -> None:
        tracker = RecordingTracker()
        listener = IssueTrackingListener(registry_with(lambda: StubTrackingService(tracker)))

        outcome = listener.on_test_failure(
            FailureContext("t", METADATA, within_tolerance=True)
        )

        assert outcome is TrackingOutcome.SKIPPED
        assert tracker.calls == []

    def test_skips_with_noop_tracker(self) -> None:
        registry = CapabilityRegistry()
        registry.register(IssueTrackingService, [], fallback=NullIssueTrackingService)
        listener = IssueTrackingListener(registry)

        assert listener.get_service() is None
        assert listener.on_test_failure(FailureContext("t", METADATA)) is TrackingOutcome.SKIPPED

    def test_skips_when_kind_not_registered(self) -> None:
        listener = IssueTrackingListener(CapabilityRegistry())

        assert listener.on_test_failure(FailureContext("t", METADATA)) is TrackingOutcome.SKIPPED

    def test_absorbs_tracker_exception(self) -> None:
        tracker = RecordingTracker(error=RuntimeError("tracker exploded"))
        listener = IssueTrackingListener(registry_with(lambda: StubTrackingService(tracker)))

        outcome = listener.on_test_failure(FailureContext("t", METADATA))

        assert outcome is TrackingOutcome.SKIPPED
        assert len(tracker.calls) == 1
        assert tracker.closed is True

    def test_absorbs_lookup_exception(self) -> None:
        registry = MagicMock()
        registry.resolve.side_effect = RuntimeError("registry broken")
        listener = IssueTrackingListener(registry)

        assert listener.on_test_failure(FailureContext("t", METADATA)) is TrackingOutcome.SKIPPED

    def test_absorbs_service_exception(self) -> None:
        service = MagicMock(spec=IssueTrackingService)
        service.noop = False
        service.name = "Broken"
        service.get_issue_tracker.side_effect = IssueTrackerError("cannot connect")
        registry = MagicMock()
        registry.resolve.return_value = service
        listener = IssueTrackingListener(registry)

        assert listener.on_test_failure(FailureContext("t", METADATA)) is TrackingOutcome.SKIPPED


# ---------------------------------------------------------------------------
# Jira Tests
# ---------------------------------------------------------------------------


@pytest.fixture
def jira_session() -> MagicMock:
    return MagicMock(spec=requests.Session)


@pytest.fixture
def jira(jira_session: MagicMock) -> JiraIssueTracker:
    return JiraIssueTracker(
        base_url="https://jira.example.com/",
        project_key="QA",
        username="bot",
        token="secret",
        timeout_sec=5,
        session=jira_session,
    )


class TestJiraIssueTracker:
    """Tests for the Jira backend (HTTP mocked)."""

    def test_base_url_trailing_slash_stripped(self, jira: JiraIssueTracker) -> None:
        assert jira.base_url == "https://jira.example.com"

    @pytest.mark.parametrize(
        "summary, description, severity",
        [("", "d", "High"), ("s", "  ", "High"), ("s", "d", None)],
    )
    def test_blank_input_declined_without_calls(
        self,
        jira: JiraIssueTracker,
        jira_session: MagicMock,
        summary: str,
        description: str,
        severity: Optional[str],
    ) -> None:
        assert jira.report_issue(summary, description, severity) is False
        jira_session.request.assert_not_called()

    def test_creates_issue_when_none_open(
        self, jira: JiraIssueTracker, jira_session: MagicMock
    ) -> None:
        jira_session.request.side_effect = [
            mock_response({"issues": []}),
            mock_response({"key": "QA-101"}),
        ]

        assert jira.report_issue("Login fails", "Details", "High") is True

        search_call, create_call = jira_session.request.call_args_list
        assert search_call.kwargs["url"] == "https://jira.example.com/rest/api/2/search"
        assert 'summary ~ "Login fails"' in search_call.kwargs["params"]["jql"]
        assert create_call.kwargs["method"] == "POST"
        assert create_call.kwargs["json"] == {
            "fields": {
                "project": {"key": "QA"},
                "issuetype": {"name": "Bug"},
                "summary": "Login fails",
                "description": "Details",
                "priority": {"name": "High"},
            }
        }
        assert create_call.kwargs["timeout"] == 5

    def test_duplicate_open_issue_declined(
        self, jira: JiraIssueTracker, jira_session: MagicMock
    ) -> None:
        jira_session.request.return_value = mock_response(
            {"issues": [{"key": "QA-7", "fields": {"summary": "Login fails"}}]}
        )

        assert jira.report_issue("Login fails", "Details", "High") is False
        assert jira_session.request.call_count == 1

    def test_partial_summary_match_is_not_duplicate(
        self, jira: JiraIssueTracker, jira_session: MagicMock
    ) -> None:
        jira_session.request.side_effect = [
            mock_response({"issues": [{"key": "QA-7", "fields": {"summary": "Login fails on Safari"}}]}),
            mock_response({"key": "QA-8"}),
        ]

        assert jira.report_issue("Login fails", "Details", "High") is True

    def test_http_error_declined(self, jira: JiraIssueTracker, jira_session: MagicMock) -> None:
        jira_session.request.return_value = mock_response({}, status_code=401)

        assert jira.report_issue("Login fails", "Details", "High") is False

    def test_http_error_maps_status_code(
        self, jira: JiraIssueTracker, jira_session: MagicMock
    ) -> None:
        jira_session.request.return_value = mock_response({}, status_code=403)

        with pytest.raises(IssueTrackerError) as exc_info:
            jira.find_open_issue("Login fails")

        assert exc_info.value.status_code == 403

    def test_timeout_declined(self, jira: JiraIssueTracker, jira_session: MagicMock) -> None:
        jira_session.request.side_effect = requests.exceptions.Timeout()

        assert jira.report_issue("Login fails", "Details", "High") is False

    def test_numeric_severity_is_priority_id(self, jira: JiraIssueTracker) -> None:
        fields = jira.build_fields("s", "d", "2")
        assert fields["priority"] == {"id": "2"}

    def test_jql_quotes_escaped(self, jira: JiraIssueTracker, jira_session: MagicMock) -> None:
        jira_session.request.return_value = mock_response({"issues": []})

        jira.find_open_issue('Value "x" missing')

        jql = jira_session.request.call_args.kwargs["params"]["jql"]
        assert 'summary ~ "Value \\"x\\" missing"' in jql

    def test_reserved_search_characters_escaped(
        self, jira: JiraIssueTracker, jira_session: MagicMock
    ) -> None:
        """A parametrized test name must not be read as a range query."""
        jira_session.request.return_value = mock_response({"issues": []})

        jira.find_open_issue("test_sync[3] failed: sign-in (retry)")

        jql = jira_session.request.call_args.kwargs["params"]["jql"]
        assert r'summary ~ "test_sync\\[3\\] failed\\: sign\\-in \\(retry\\)"' in jql

    def test_close_leaves_injected_session_open(
        self, jira: JiraIssueTracker, jira_session: MagicMock
    ) -> None:
        with jira:
            pass

        jira_session.close.assert_not_called()

    def test_close_owned_session(self, monkeypatch: pytest.MonkeyPatch) -> None:
        session = MagicMock(spec=requests.Session)
        session.headers = {}
        monkeypatch.setattr(requests, "Session", MagicMock(return_value=session))
        tracker = JiraIssueTracker("https://jira.example.com", "QA", "bot", "secret")
        session.request.return_value = mock_response({"issues": []})

        tracker.find_open_issue("Login fails")
        tracker.close()

        session.close.assert_called_once()

    def test_backend_must_implement_search_and_create(self) -> None:
        class SearchOnlyTracker(HttpIssueTracker):
            def find_open_issue(self, summary: str) -> Optional[str]:
                return None

        with pytest.raises(TypeError, match="create_issue"):
            SearchOnlyTracker("https://tracker.example.com")


# ---------------------------------------------------------------------------
# GitHub Tests
# ---------------------------------------------------------------------------


class TestGithubIssueTracker:
    """Tests for the GitHub backend (HTTP mocked)."""

    def test_creates_labelled_issue(self) -> None:
        session = MagicMock(spec=requests.Session)
        session.request.side_effect = [
            mock_response({"items": []}),
            mock_response({"number": 12}),
        ]
        tracker = GithubIssueTracker("acme/widgets", "gh-token", session=session)

        assert tracker.report_issue("Crash on save", "Stack trace", "critical") is True

        search_call, create_call = session.request.call_args_list
        assert search_call.kwargs["url"] == "https://api.github.com/search/issues"
        assert "repo:acme/widgets is:issue is:open" in search_call.kwargs["params"]["q"]
        assert create_call.kwargs["url"] == "https://api.github.com/repos/acme/widgets/issues"
        assert create_call.kwargs["json"] == {
            "title": "Crash on save",
            "body": "Stack trace",
            "labels": ["bug", "critical"],
        }

    def test_duplicate_title_declined(self) -> None:
        session = MagicMock(spec=requests.Session)
        session.request.return_value = mock_response(
            {"items": [{"number": 3, "title": "Crash on save"}]}
        )
        tracker = GithubIssueTracker("acme/widgets", "gh-token", session=session)

        assert tracker.report_issue("Crash on save", "Stack trace", "critical") is False
        assert session.request.call_count == 1

    def test_connection_error_declined(self) -> None:
        session = MagicMock(spec=requests.Session)
        session.request.side_effect = requests.exceptions.ConnectionError("refused")
        tracker = GithubIssueTracker("acme/widgets", "gh-token", session=session)

        assert tracker.report_issue("Crash on save", "Stack trace", "critical") is False

    def test_invalid_json_maps_to_tracker_error(self) -> None:
        session = MagicMock(spec=requests.Session)
        response = mock_response(None)
        response.json.side_effect = ValueError("not json")
        session.request.return_value = response
        tracker = GithubIssueTracker("acme/widgets", "gh-token", session=session)

        with pytest.raises(IssueTrackerError, match="invalid JSON"):
            tracker.find_open_issue("x")


# ---------------------------------------------------------------------------
# Service Tests
# ---------------------------------------------------------------------------


class TestTrackingServices:
    """Tests for tracker availability from settings."""

    def test_jira_available(self, jira_settings: Settings) -> None:
        service = JiraIssueTrackingService(jira_settings)

        assert service.is_available() is True
        tracker = service.get_issue_tracker()
        assert isinstance(tracker, JiraIssueTracker)
        assert tracker.project_key == "QA"
        tracker.close()

    def test_jira_unavailable_for_github_provider(self, github_settings: Settings) -> None:
        assert JiraIssueTrackingService(github_settings).is_available() is False

    @pytest.mark.parametrize("missing", ["url", "project", "username", "token"])
    def test_jira_unavailable_when_setting_missing(
        self, jira_settings: Settings, missing: str
    ) -> None:
        raw = jira_settings.raw
        raw["issuetracking"]["jira"] = {
            k: v for k, v in raw["issuetracking"]["jira"].items() if k != missing
        }

        assert JiraIssueTrackingService(Settings(raw)).is_available() is False

    def test_github_available(self, github_settings: Settings) -> None:
        service = GithubIssueTrackingService(github_settings)

        assert service.is_available() is True
        assert service.get_issue_tracker().repository == "acme/widgets"

    def test_github_unavailable_without_token(self) -> None:
        settings = Settings(
            {"issuetracking": {"provider": "github", "github": {"repository": "a/b"}}}
        )
        assert GithubIssueTrackingService(settings).is_available() is False

    def test_null_service(self) -> None:
        service = NullIssueTrackingService()

        assert service.noop is True
        with service.get_issue_tracker() as tracker:
            assert tracker.report_issue("s", "d", "High") is False

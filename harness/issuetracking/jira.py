"""
Jira issue tracking backend.

Files ``Bug`` issues through the Jira REST API (v2) with basic
authentication (username + API token). Before creating an issue the tracker
searches for an unresolved issue with the same summary and skips filing when
one exists.

Settings::

    issuetracking:
      provider: jira
      jira:
        url: https://jira.example.com
        project: QA
        username: automation@example.com
        token: "..."
"""

from __future__ import annotations

import re
from typing import Any, Dict, Optional

import requests
from loguru import logger

from harness.config.settings import Settings, provider_of
from harness.issuetracking.http import HttpIssueTracker
from harness.issuetracking.tracker import IssueTracker, IssueTrackingService
from harness.util.strings import is_not_blank

PROVIDER = "jira"
ISSUE_TYPE_BUG = "Bug"


def _escape_jql(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


# Operators of the text search behind "~"
_TEXT_RESERVED = re.compile(r"([\[\](){}:?*+\-!^~&|])")


def _escape_text_search(value: str) -> str:
    """Quote ``value`` for a ``~`` clause so it is matched as plain words."""
    return _escape_jql(_TEXT_RESERVED.sub(r"\\\1", value))


class JiraIssueTracker(HttpIssueTracker):
    """
    Client for filing issues in one Jira project.

    Usage::

        tracker = JiraIssueTracker(
            base_url="https://jira.example.com",
            project_key="QA",
            username="automation@example.com",
            token="your-token-here",
        )
        tracker.report_issue("Checkout fails", "Payment step returns 500", "High")
    """

    tracker_name = "Jira"

    ENDPOINTS = {
        "search": "/rest/api/2/search",
        "create_issue": "/rest/api/2/issue",
    }

    def __init__(
        self,
        base_url: str,
        project_key: str,
        username: str,
        token: str,
        timeout_sec: float = 30,
        session: Optional[requests.Session] = None,
    ) -> None:
        super().__init__(
            base_url,
            auth=(username, token),
            timeout_sec=timeout_sec,
            session=session,
        )
        self.project_key = project_key

    def find_open_issue(self, summary: str) -> Optional[str]:
        jql = (
            f'project = "{_escape_jql(self.project_key)}" '
            f'AND statusCategory != Done '
            f'AND summary ~ "{_escape_text_search(summary)}"'
        )
        response = self._request(
            "GET",
            self.ENDPOINTS["search"],
            params={"jql": jql, "maxResults": 10, "fields": "summary"},
        )
        issues = response.get("issues", []) if isinstance(response, dict) else []
        # "~" is a text match; only an exact summary counts as a duplicate.
        for issue in issues:
            if issue.get("fields", {}).get("summary", "").strip() == summary.strip():
                return issue.get("key")
        return None

    def create_issue(self, summary: str, description: str, severity: str) -> str:
        payload = {"fields": self.build_fields(summary, description, severity)}
        response = self._request("POST", self.ENDPOINTS["create_issue"], json=payload)
        return response.get("key", "") if isinstance(response, dict) else ""

    def build_fields(self, summary: str, description: str, severity: str) -> Dict[str, Any]:
        """Build the issue fields; numeric severities are priority ids, others names."""
        priority = {"id": severity} if severity.strip().isdigit() else {"name": severity}
        return {
            "project": {"key": self.project_key},
            "issuetype": {"name": ISSUE_TYPE_BUG},
            "summary": summary,
            "description": description,
            "priority": priority,
        }


class JiraIssueTrackingService(IssueTrackingService):
    """Available when the provider is jira and url/project/username/token are set."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        settings = settings if settings is not None else Settings()
        self._provider = provider_of(settings, "issuetracking.provider")
        self.url = settings.get_string("issuetracking.jira.url")
        self.project = settings.get_string("issuetracking.jira.project")
        self.username = settings.get_string("issuetracking.jira.username")
        self._token = settings.get_string("issuetracking.jira.token")
        self._timeout_sec = settings.get_float("issuetracking.timeout_sec", 30)

    def get_issue_tracker(self) -> IssueTracker:
        logger.debug(f"Creating Jira tracker for project {self.project} at {self.url}")
        return JiraIssueTracker(
            base_url=self.url,
            project_key=self.project,
            username=self.username,
            token=self._token,
            timeout_sec=self._timeout_sec,
        )

    def is_available(self) -> bool:
        return self._provider == PROVIDER and all(
            is_not_blank(value)
            for value in (self.url, self.project, self.username, self._token)
        )

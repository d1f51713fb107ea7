"""
GitHub issue tracking backend.

Opens issues labelled ``bug`` plus the severity through the GitHub REST API,
authenticated with a token. An open issue with the same title suppresses a
new one.

Settings::

    issuetracking:
      provider: github
      github:
        repository: owner/name
        token: "ghp_..."
"""

from __future__ import annotations

from typing import Optional

import requests
from loguru import logger

from harness.config.settings import Settings, provider_of
from harness.issuetracking.http import HttpIssueTracker
from harness.issuetracking.tracker import IssueTracker, IssueTrackingService
from harness.util.strings import is_not_blank

PROVIDER = "github"
ISSUE_LABEL = "bug"
DEFAULT_GITHUB_API_URL = "https://api.github.com"


class GithubIssueTracker(HttpIssueTracker):
    """Client for filing issues in one GitHub repository."""

    tracker_name = "GitHub"

    def __init__(
        self,
        repository: str,
        token: str,
        base_url: str = DEFAULT_GITHUB_API_URL,
        timeout_sec: float = 30,
        session: Optional[requests.Session] = None,
    ) -> None:
        super().__init__(
            base_url,
            headers={
                "Accept": "application/vnd.github+json",
                "Authorization": f"Bearer {token}",
            },
            timeout_sec=timeout_sec,
            session=session,
        )
        self.repository = repository

    def find_open_issue(self, summary: str) -> Optional[str]:
        query = (
            f'repo:{self.repository} is:issue is:open label:{ISSUE_LABEL} '
            f'in:title "{summary}"'
        )
        response = self._request("GET", "/search/issues", params={"q": query})
        items = response.get("items", []) if isinstance(response, dict) else []
        for item in items:
            if item.get("title", "").strip() == summary.strip():
                return f"#{item.get('number')}"
        return None

    def create_issue(self, summary: str, description: str, severity: str) -> str:
        response = self._request(
            "POST",
            f"/repos/{self.repository}/issues",
            json={"title": summary, "body": description, "labels": [ISSUE_LABEL, severity]},
        )
        number = response.get("number") if isinstance(response, dict) else None
        return f"#{number}"


class GithubIssueTrackingService(IssueTrackingService):
    """Available when the provider is github and repository/token are set."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        settings = settings if settings is not None else Settings()
        self._provider = provider_of(settings, "issuetracking.provider")
        self.repository = settings.get_string("issuetracking.github.repository")
        self._token = settings.get_string("issuetracking.github.token")
        self._api_url = settings.get_string("issuetracking.github.url", DEFAULT_GITHUB_API_URL)
        self._timeout_sec = settings.get_float("issuetracking.timeout_sec", 30)

    def get_issue_tracker(self) -> IssueTracker:
        logger.debug(f"Creating GitHub tracker for {self.repository}")
        return GithubIssueTracker(
            repository=self.repository,
            token=self._token,
            base_url=self._api_url,
            timeout_sec=self._timeout_sec,
        )

    def is_available(self) -> bool:
        return (
            self._provider == PROVIDER
            and is_not_blank(self.repository)
            and is_not_blank(self._token)
        )

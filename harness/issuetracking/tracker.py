"""
Issue tracking capability.

``IssueTrackingService`` is the capability kind resolved by the registry.
It hands out ``IssueTracker`` objects exposing a single filing operation::

    with service.get_issue_tracker() as tracker:
        tracker.report_issue("Login fails", "Valid user cannot sign in", "Critical")
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from harness.registry import Capability


class IssueTrackerError(Exception):
    """Raised by tracker backends when the remote tracker call fails."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class IssueTracker(ABC):
    """Files issues in one external tracker."""

    @abstractmethod
    def report_issue(self, summary: str, description: str, severity: str) -> bool:
        """
        File an issue.

        Returns:
            True if a new issue was created; False if the input was incomplete,
            an equivalent open issue already exists, or the tracker call failed.
        """

    def close(self) -> None:
        """Release any connection held by the tracker."""

    def __enter__(self) -> "IssueTracker":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class IssueTrackingService(Capability):
    """Capability kind: creates trackers for one backend."""

    @abstractmethod
    def get_issue_tracker(self) -> IssueTracker:
        """Return a tracker; callers close it when done."""


class NullIssueTracker(IssueTracker):
    def report_issue(self, summary: str, description: str, severity: str) -> bool:
        return False


class NullIssueTrackingService(IssueTrackingService):
    """Fallback used when no tracker is configured; automation skips it."""

    noop = True

    def get_issue_tracker(self) -> IssueTracker:
        return NullIssueTracker()

    def is_available(self) -> bool:
        return True

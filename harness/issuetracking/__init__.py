"""
Issue Tracking Module.

Provides:
- The ``IssueTrackingService`` capability and its ``IssueTracker`` contract.
- Jira and GitHub backends over their REST APIs.
- The listener that files issues automatically for opted-in failing tests.
"""

from harness.issuetracking.github import GithubIssueTracker, GithubIssueTrackingService
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
    NullIssueTracker,
    NullIssueTrackingService,
)

__all__ = [
    "FailureContext",
    "GithubIssueTracker",
    "GithubIssueTrackingService",
    "IssueMetadata",
    "IssueTracker",
    "IssueTrackerError",
    "IssueTrackingListener",
    "IssueTrackingService",
    "JiraIssueTracker",
    "JiraIssueTrackingService",
    "NullIssueTracker",
    "NullIssueTrackingService",
    "TrackingOutcome",
]

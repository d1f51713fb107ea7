"""
Failure-Triggered Issue Automation.

Observes failing tests and files an issue for those that opted in, once the
failure is final. Per failure event the listener moves from evaluating to one
of two terminal outcomes:

- SKIPPED: no tracker available, no opt-in metadata, failure still within the
  test's tolerance budget, or the tracker raised while filing.
- FILED: ``report_issue`` was called and returned (whatever its result).

Errors raised while filing are logged and absorbed; the test's own failure
stays the only visible outcome.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from loguru import logger

from harness.issuetracking.tracker import IssueTrackingService
from harness.registry import CapabilityConfigurationError, CapabilityRegistry, get_registry


class TrackingOutcome(Enum):
    """Terminal states of one failure evaluation."""

    FILED = "filed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class IssueMetadata:
    """
    Issue declared by a test for its own failure.

    Attributes:
        summary: Issue title.
        description: Issue body.
        severity: Tracker-specific severity or priority (free text).
    """

    summary: str
    description: str
    severity: str


@dataclass(frozen=True)
class FailureContext:
    """
    One failing-test event, as seen by the listener.

    Attributes:
        test_id: Identity of the failing test (pytest node id).
        metadata: Declared issue metadata, None when the test did not opt in.
        within_tolerance: True while the failure is still inside the test's
            failure-tolerance budget.
    """

    test_id: str
    metadata: Optional[IssueMetadata] = None
    within_tolerance: bool = False


class IssueTrackingListener:
    """
    Files tracker issues for qualifying test failures.

    Usage::

        listener = IssueTrackingListener(registry)
        outcome = listener.on_test_failure(
            FailureContext(
                test_id="tests/test_login.py::test_sign_in",
                metadata=IssueMetadata("Sign-in fails", "Valid user rejected", "Critical"),
            )
        )
    """

    def __init__(self, registry: Optional[CapabilityRegistry] = None) -> None:
        self._registry = registry

    @property
    def registry(self) -> CapabilityRegistry:
        return self._registry if self._registry is not None else get_registry()

    def get_service(self) -> Optional[IssueTrackingService]:
        """Return the resolved tracking service, or None when there is none."""
        try:
            service = self.registry.resolve(IssueTrackingService)
        except CapabilityConfigurationError as e:
            logger.warning(f"Issue tracking is not configured: {e}")
            return None
        if service is None or service.noop:
            return None
        return service

    def on_test_failure(self, context: FailureContext) -> TrackingOutcome:
        """
        Decide whether ``context`` warrants an issue and file it if so.

        Never raises.
        """
        try:
            service = self.get_service()
        except Exception as e:
            logger.error(f"Issue tracking lookup failed for {context.test_id}: {e}")
            return TrackingOutcome.SKIPPED

        if service is None:
            return TrackingOutcome.SKIPPED

        if context.metadata is None:
            logger.debug(f"{context.test_id} failed without issue metadata, not tracked")
            return TrackingOutcome.SKIPPED

        if context.within_tolerance:
            logger.debug(
                f"{context.test_id} failed within its failure tolerance, not tracked"
            )
            return TrackingOutcome.SKIPPED

        metadata = context.metadata
        logger.debug(f"Attempting to raise an issue for failed test [{context.test_id}]")
        try:
            with service.get_issue_tracker() as tracker:
                reported = tracker.report_issue(
                    metadata.summary,
                    metadata.description,
                    metadata.severity,
                )
        except Exception as e:
            logger.opt(exception=e).error(
                f"Unable to raise issue for failed test [{context.test_id}]: {e}"
            )
            return TrackingOutcome.SKIPPED

        logger.info(
            f"Issue report for [{context.test_id}] "
            f"{'accepted' if reported else 'declined'} by {service.name}"
        )
        return TrackingOutcome.FILED

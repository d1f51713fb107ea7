"""
HTTP plumbing shared by the REST-based issue trackers.

Wraps a ``requests.Session`` with authentication headers, a per-request
timeout and uniform error mapping to ``IssueTrackerError``.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Any, Dict, List, Optional, Tuple

import requests
from loguru import logger

from harness.issuetracking.tracker import IssueTracker, IssueTrackerError
from harness.util.strings import is_blank


class HttpIssueTracker(IssueTracker):
    """
    Base class for trackers talking to a JSON REST API.

    Subclasses implement ``find_open_issue`` and ``create_issue``; the
    duplicate check and error handling around them live here.
    """

    tracker_name = "tracker"

    def __init__(
        self,
        base_url: str,
        headers: Optional[Dict[str, str]] = None,
        auth: Optional[Tuple[str, str]] = None,
        timeout_sec: float = 30,
        verify_ssl: bool = True,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._headers = {"Content-Type": "application/json", "Accept": "application/json"}
        self._headers.update(headers or {})
        self._auth = auth
        self._timeout_sec = timeout_sec
        self._verify_ssl = verify_ssl
        self._session = session
        self._owns_session = False

    def _get_session(self) -> requests.Session:
        if self._session is not None:
            return self._session
        session = requests.Session()
        session.verify = self._verify_ssl
        session.headers.update(self._headers)
        if self._auth:
            session.auth = self._auth
        self._session = session
        self._owns_session = True
        return session

    def _request(self, method: str, endpoint: str, **kwargs: Any) -> Dict[str, Any] | List[Any]:
        """
        Send ``method`` to ``endpoint`` and decode the JSON reply.

        Raises:
            IssueTrackerError: On HTTP error status, timeout, connection
                failure or a body that is not JSON.
        """
        url = f"{self.base_url}{endpoint}"
        logger.debug(f"{self.tracker_name} {method} {url}")
        kwargs.setdefault("timeout", self._timeout_sec)

        try:
            response = self._get_session().request(method=method, url=url, **kwargs)
            response.raise_for_status()
            return response.json()
        except requests.exceptions.HTTPError as e:
            status = getattr(e.response, "status_code", None)
            raise IssueTrackerError(
                f"{self.tracker_name} rejected {method} {endpoint}: {e}", status_code=status
            ) from e
        except requests.exceptions.Timeout as e:
            raise IssueTrackerError(
                f"No answer from {self.tracker_name} within {self._timeout_sec}s"
            ) from e
        except requests.exceptions.RequestException as e:
            raise IssueTrackerError(f"Cannot reach {self.tracker_name}: {e}") from e
        except ValueError as e:
            raise IssueTrackerError(f"{self.tracker_name} returned invalid JSON: {e}") from e

    def report_issue(self, summary: str, description: str, severity: str) -> bool:
        if is_blank(summary) or is_blank(description) or is_blank(severity):
            logger.warning(
                f"{self.tracker_name}: summary, description and severity are all "
                f"required, issue not reported"
            )
            return False

        try:
            existing = self.find_open_issue(summary)
            if existing:
                logger.info(
                    f"{self.tracker_name} issue {existing} with summary '{summary}' "
                    f"is already open"
                )
                return False

            key = self.create_issue(summary, description, severity)
        except IssueTrackerError as e:
            logger.error(
                f"Unable to create {self.tracker_name} issue with summary "
                f"'{summary}': {e}"
            )
            return False

        logger.info(f"{self.tracker_name} issue {key} created with summary '{summary}'")
        return True

    @abstractmethod
    def find_open_issue(self, summary: str) -> Optional[str]:
        """Return the key of an open issue with the same summary, if any."""

    @abstractmethod
    def create_issue(self, summary: str, description: str, severity: str) -> str:
        """Create the issue and return its key."""

    def close(self) -> None:
        """Close the session this tracker opened. An injected session is left to its owner."""
        if self._session is None or not self._owns_session:
            return
        self._session.close()
        self._session = None
        self._owns_session = False
        logger.debug(f"{self.tracker_name} session closed")

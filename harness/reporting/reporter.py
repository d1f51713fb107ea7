"""
Reporting capability.

A ``Reporter`` records step results (pass / fail / info / error) for one test,
optionally tagged with a category and the device the test ran on. Messages
accept printf-style positional arguments.
"""

from __future__ import annotations

import sys
from abc import ABC, abstractmethod
from typing import Any, List, Optional, TextIO

from harness.config.settings import Settings, provider_of
from harness.registry import Capability
from harness.util.strings import format_message

DEFAULT_PROVIDER = "console"


class Reporter(ABC):
    """Step-level result recorder for one test."""

    def __init__(self) -> None:
        self.category: Optional[str] = None
        self.device: Optional[str] = None

    def assign_category(self, category: str) -> "Reporter":
        self.category = category
        return self

    def assign_device(self, device: str) -> "Reporter":
        self.device = device
        return self

    def pass_(self, message: str, *args: Any) -> None:
        self._write("PASS", format_message(message, args))

    def fail(self, message: str, *args: Any) -> None:
        self._write("FAIL", format_message(message, args))

    def info(self, message: str, *args: Any) -> None:
        self._write("INFO", format_message(message, args))

    def error(self, message: str, *args: Any) -> None:
        self._write("ERROR", format_message(message, args))

    @abstractmethod
    def _write(self, status: str, message: str) -> None:
        """Record one step."""


class StreamReporter(Reporter):
    """
    Writes ``[STATUS] [test] [description] [author] category device message``
    lines to a text stream (standard output by default).
    """

    def __init__(
        self,
        test_name: Optional[str] = None,
        description: Optional[str] = None,
        author: Optional[str] = None,
        stream: Optional[TextIO] = None,
    ) -> None:
        super().__init__()
        self._context: List[str] = [v for v in (test_name, description, author) if v]
        self._stream = stream

    def _write(self, status: str, message: str) -> None:
        parts = [f"[{status}]"]
        parts.extend(f"[{value}]" for value in self._context)
        parts.extend(value for value in (self.category, self.device) if value)
        parts.append(message)
        stream = self._stream if self._stream is not None else sys.stdout
        print(" ".join(parts), file=stream)


class NullReporter(Reporter):
    def _write(self, status: str, message: str) -> None:
        pass


class ReportingService(Capability):
    """Capability kind: creates reporters for tests."""

    @abstractmethod
    def get_reporter(
        self,
        test_name: str,
        description: Optional[str] = None,
        author: Optional[str] = None,
    ) -> Reporter:
        """Return a reporter for the named test."""


class ConsoleReportingService(ReportingService):
    def __init__(
        self,
        settings: Optional[Settings] = None,
        stream: Optional[TextIO] = None,
    ) -> None:
        self._provider = provider_of(settings, "reporting.provider") or DEFAULT_PROVIDER
        self._stream = stream

    def get_reporter(
        self,
        test_name: str,
        description: Optional[str] = None,
        author: Optional[str] = None,
    ) -> Reporter:
        return StreamReporter(test_name, description, author, self._stream)

    def is_available(self) -> bool:
        return self._provider == DEFAULT_PROVIDER


class NullReportingService(ReportingService):
    noop = True

    def get_reporter(
        self,
        test_name: str,
        description: Optional[str] = None,
        author: Optional[str] = None,
    ) -> Reporter:
        return NullReporter()

    def is_available(self) -> bool:
        return True

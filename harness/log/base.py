"""
Logging capability contract.

Test code asks the registry for a ``LoggingService`` and obtains named
``Logger`` instances from it. Messages accept printf-style positional
arguments; ``error`` additionally accepts the exception being reported.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

from harness.registry import Capability
from harness.util.strings import format_message


class Logger(ABC):
    """Leveled logger; subclasses implement ``_log``."""

    def __init__(self, name: Optional[str] = None) -> None:
        self.name = name

    def debug(self, message: str, *args: Any) -> None:
        self._log("DEBUG", message, args)

    def info(self, message: str, *args: Any) -> None:
        self._log("INFO", message, args)

    def warn(self, message: str, *args: Any) -> None:
        self._log("WARNING", message, args)

    warning = warn

    def error(self, message: str, *args: Any, exc: Optional[BaseException] = None) -> None:
        self._log("ERROR", message, args, exc)

    @staticmethod
    def render(message: str, args: tuple) -> str:
        """Format ``message`` with ``args``; a bad format never raises."""
        try:
            return format_message(message, args)
        except (TypeError, ValueError):
            return f"{message} {args!r}"

    @abstractmethod
    def _log(
        self,
        level: str,
        message: str,
        args: tuple,
        exc: Optional[BaseException] = None,
    ) -> None:
        """Write one record."""


class LoggingService(Capability):
    """Capability kind: hands out named loggers."""

    @abstractmethod
    def get_logger(self, name: Optional[str] = None) -> Logger:
        """Return a logger named after the calling module or class."""

"""
Logging backends.

- LoguruLoggingService: pass-through to loguru's configured handlers (preferred).
- ConsoleLoggingService: a loguru sink of its own writing plain
  "[LEVEL] [name] message" lines to a text stream.
- NullLoggingService: discard sink used when logging is switched off.

The ``logging.provider`` setting selects a backend explicitly; without it the
registry's declared order applies.
"""

from __future__ import annotations

import sys
import threading
from typing import Any, Dict, Optional, TextIO

from loguru import logger

from harness.config.settings import Settings, provider_of
from harness.log.base import Logger, LoggingService


class LoguruLogger(Logger):
    """Logger writing through a loguru logger bound to its ``name`` extra."""

    def __init__(self, name: Optional[str] = None, bound: Any = None) -> None:
        super().__init__(name)
        if bound is None:
            bound = logger.bind(name=name) if name else logger
        self._logger = bound

    def _log(
        self,
        level: str,
        message: str,
        args: tuple,
        exc: Optional[BaseException] = None,
    ) -> None:
        # depth=2 attributes the record to the caller of debug()/info()/...
        self._logger.opt(exception=exc, depth=2).log(level, self.render(message, args))


class LoguruLoggingService(LoggingService):
    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._provider = provider_of(settings, "logging.provider")

    def get_logger(self, name: Optional[str] = None) -> Logger:
        return LoguruLogger(name)

    def is_available(self) -> bool:
        return self._provider in (None, "loguru")


def _console_format(record: Dict[str, Any]) -> str:
    if record["extra"].get("name"):
        return "[{level}] [{extra[name]}] {message}\n{exception}"
    return "[{level}] {message}\n{exception}"


class ConsoleLoggingService(LoggingService):
    """
    Plain-text console logging.

    The first ``get_logger()`` call adds a loguru sink on ``stream`` (stdout
    by default) at the ``logging.level`` threshold. The sink only accepts
    records from this service's loggers; ``close()`` removes it.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        stream: Optional[TextIO] = None,
    ) -> None:
        settings = settings if settings is not None else Settings()
        self._provider = provider_of(settings, "logging.provider")
        self._level = (settings.get_string("logging.level") or "DEBUG").upper()
        self._stream = stream
        self._channel = object()
        self._sink_id: Optional[int] = None
        self._lock = threading.Lock()

    def _accepts(self, record: Dict[str, Any]) -> bool:
        return record["extra"].get("console_channel") is self._channel

    def _ensure_sink(self) -> None:
        with self._lock:
            if self._sink_id is not None:
                return
            self._sink_id = logger.add(
                self._stream if self._stream is not None else sys.stdout,
                level=self._level,
                format=_console_format,
                filter=self._accepts,
                colorize=False,
                backtrace=False,
                diagnose=False,
            )

    def get_logger(self, name: Optional[str] = None) -> Logger:
        self._ensure_sink()
        return LoguruLogger(name, logger.bind(console_channel=self._channel, name=name or ""))

    def close(self) -> None:
        with self._lock:
            if self._sink_id is not None:
                logger.remove(self._sink_id)
                self._sink_id = None

    def is_available(self) -> bool:
        return self._provider != "none"


class NullLogger(Logger):
    def _log(
        self,
        level: str,
        message: str,
        args: tuple,
        exc: Optional[BaseException] = None,
    ) -> None:
        pass


class NullLoggingService(LoggingService):
    noop = True

    def get_logger(self, name: Optional[str] = None) -> Logger:
        return NullLogger(name)

    def is_available(self) -> bool:
        return True

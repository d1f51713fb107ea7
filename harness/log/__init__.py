"""
Logging capability.

Provides the ``LoggingService`` contract and its backends (loguru, a
console sink, discard sink).
"""

from harness.log.backends import (
    ConsoleLoggingService,
    LoguruLogger,
    LoguruLoggingService,
    NullLoggingService,
)
from harness.log.base import Logger, LoggingService

__all__ = [
    "ConsoleLoggingService",
    "Logger",
    "LoggingService",
    "LoguruLogger",
    "LoguruLoggingService",
    "NullLoggingService",
]

"""
Reporting Module.

Step-level test reporting through the ``ReportingService`` capability:
- Console reporter writing one line per step.
- Discard reporter used when reporting is switched off.
"""

from harness.reporting.reporter import (
    ConsoleReportingService,
    NullReporter,
    NullReportingService,
    Reporter,
    ReportingService,
    StreamReporter,
)

__all__ = [
    "ConsoleReportingService",
    "NullReporter",
    "NullReportingService",
    "Reporter",
    "ReportingService",
    "StreamReporter",
]

"""
Default capability wiring.

Declares, once per process, the candidate backends for every capability kind
in order of preference. The first candidate whose ``is_available()`` returns
True is used; otherwise the kind's no-op fallback is.

    Kind                  Candidates (in order)            Fallback
    --------------------  -------------------------------  ---------------------
    LoggingService        loguru, console                  NullLoggingService
    NotificationService   slack, console                   NullNotificationService
    IssueTrackingService  jira, github                     NullIssueTrackingService
    ReportingService      console                          NullReportingService
    DataFormat.<FORMAT>   json, yaml, csv/tsv, txt, xlsx    NullDataReader
"""

from __future__ import annotations

from functools import partial
from typing import List, Optional

from loguru import logger

from harness.config.loader import SettingsLoader
from harness.config.settings import Settings
from harness.data.reader import (
    DataFormat,
    DelimitedDataReader,
    FixedWidthDataReader,
    JsonDataReader,
    NullDataReader,
    XlsxDataReader,
    YamlDataReader,
)
from harness.issuetracking.github import GithubIssueTrackingService
from harness.issuetracking.jira import JiraIssueTrackingService
from harness.issuetracking.tracker import IssueTrackingService, NullIssueTrackingService
from harness.log.backends import ConsoleLoggingService, LoguruLoggingService, NullLoggingService
from harness.log.base import LoggingService
from harness.notification.service import (
    ConsoleNotificationService,
    NotificationService,
    NullNotificationService,
)
from harness.notification.slack import SlackNotificationService
from harness.registry import CapabilityRegistry
from harness.reporting.reporter import (
    ConsoleReportingService,
    NullReportingService,
    ReportingService,
)

DATA_READERS: List[type] = [
    JsonDataReader,
    YamlDataReader,
    DelimitedDataReader,
    FixedWidthDataReader,
    XlsxDataReader,
]


def _data_reader_candidates(data_format: DataFormat, settings: Settings) -> list:
    candidates = []
    for reader_cls in DATA_READERS:
        if data_format not in reader_cls.formats:
            continue
        if issubclass(reader_cls, DelimitedDataReader):
            candidates.append(partial(reader_cls, settings, data_format))
        else:
            candidates.append(partial(reader_cls, settings))
    return candidates


def build_registry(settings: Optional[Settings] = None) -> CapabilityRegistry:
    """
    Build a registry with the default candidates for every capability.

    Args:
        settings: Settings the backends read their configuration from. When
                  omitted, the settings file is located and loaded.

    Returns:
        A registry with nothing resolved yet.

    Raises:
        SettingsError: If a settings file exists but is invalid.
    """
    if settings is None:
        settings = SettingsLoader().load()

    registry = CapabilityRegistry()
    registry.register(
        LoggingService,
        [partial(LoguruLoggingService, settings), partial(ConsoleLoggingService, settings)],
        fallback=NullLoggingService,
    )
    registry.register(
        NotificationService,
        [partial(SlackNotificationService, settings), partial(ConsoleNotificationService, settings)],
        fallback=NullNotificationService,
    )
    registry.register(
        IssueTrackingService,
        [partial(JiraIssueTrackingService, settings), partial(GithubIssueTrackingService, settings)],
        fallback=NullIssueTrackingService,
    )
    registry.register(
        ReportingService,
        [partial(ConsoleReportingService, settings)],
        fallback=NullReportingService,
    )
    for data_format in DataFormat:
        registry.register(
            data_format,
            _data_reader_candidates(data_format, settings),
            fallback=partial(NullDataReader, settings),
        )

    logger.debug(f"Default registry built with {len(registry.kinds())} capability kinds")
    return registry

"""
Notification capability.

Provides the recipient-addressed ``Notifier`` contract and its transports:
- Console: "[To: ...] message" lines on standard output.
- Slack: chat.postMessage to a single configured channel.
"""

from harness.notification.notifier import Notifier, NullNotifier, StreamNotifier
from harness.notification.service import (
    ConsoleNotificationService,
    NotificationService,
    NullNotificationService,
)
from harness.notification.slack import SlackNotificationService, SlackNotifier

__all__ = [
    "ConsoleNotificationService",
    "NotificationService",
    "Notifier",
    "NullNotificationService",
    "NullNotifier",
    "SlackNotificationService",
    "SlackNotifier",
    "StreamNotifier",
]

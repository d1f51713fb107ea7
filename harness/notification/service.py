"""
Notification capability.

``NotificationService`` is the capability kind; each call to ``get_notifier()``
returns a fresh notifier with its own recipient list.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Optional, TextIO

from harness.config.settings import Settings, provider_of
from harness.notification.notifier import Notifier, NullNotifier, StreamNotifier
from harness.registry import Capability

DEFAULT_PROVIDER = "console"


class NotificationService(Capability):
    """Capability kind: creates notifiers for one transport."""

    @abstractmethod
    def get_notifier(self) -> Notifier:
        """Return a new notifier with an empty recipient list."""


class ConsoleNotificationService(NotificationService):
    """Writes notifications to standard output (the default provider)."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        stream: Optional[TextIO] = None,
    ) -> None:
        self._provider = provider_of(settings, "notification.provider") or DEFAULT_PROVIDER
        self._stream = stream

    def get_notifier(self) -> Notifier:
        return StreamNotifier(self._stream)

    def is_available(self) -> bool:
        return self._provider == DEFAULT_PROVIDER


class NullNotificationService(NotificationService):
    noop = True

    def get_notifier(self) -> Notifier:
        return NullNotifier()

    def is_available(self) -> bool:
        return True

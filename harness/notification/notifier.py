"""
Notifier Module.

Defines the recipient-addressed notification contract shared by every
notification backend, independent of transport:
- Fluent recipient management (add / clear, chaining on ``self``).
- printf-style message formatting with positional context arguments.
- A boolean delivery result; transport errors never reach the caller.
"""

from __future__ import annotations

import sys
from abc import ABC, abstractmethod
from typing import Any, List, Optional, TextIO

from loguru import logger

from harness.util.strings import format_message


class Notifier(ABC):
    """
    Base class for notification backends.

    Subclasses implement ``_send()``, which delivers one already formatted
    message to the current recipients as a single logical send.

    Usage::

        notifier = service.get_notifier()
        notifier.add_recipient("qa-team").add_recipient("release-manager")
        notifier.notify("Suite finished: %d passed, %d failed", 120, 3)

    Thread Safety:
        The recipient list belongs to this instance. Callers sharing one
        notifier across threads must serialize recipient changes themselves.
    """

    def __init__(self) -> None:
        self._recipients: List[str] = []

    @property
    def recipients(self) -> List[str]:
        """Current recipients, in insertion order."""
        return list(self._recipients)

    def add_recipient(self, recipient: str) -> "Notifier":
        return self.add_recipients(recipient)

    def add_recipients(self, *recipients: str) -> "Notifier":
        """Append recipients; duplicates are kept."""
        self._recipients.extend(recipients)
        return self

    def clear_recipients(self) -> "Notifier":
        self._recipients.clear()
        return self

    def notify(self, message: str, *args: Any) -> bool:
        """
        Format ``message`` with ``args`` and deliver it to every recipient.

        Args:
            message: Message or printf-style format string.
            *args: Positional values substituted into ``message``.

        Returns:
            False when there are no recipients (nothing is sent) or when the
            send failed; True when the transport completed the send.
        """
        recipients = self.recipients
        if not recipients:
            logger.debug(f"{type(self).__name__}: no recipients, notification not sent")
            return False

        try:
            text = format_message(message, args)
            return bool(self._send(text, recipients))
        except Exception as e:
            logger.error(
                f"{type(self).__name__}: unable to send notification to "
                f"{recipients}: {e}"
            )
            return False

    @abstractmethod
    def _send(self, message: str, recipients: List[str]) -> bool:
        """Deliver ``message``; may raise on transport errors."""


class StreamNotifier(Notifier):
    """
    Writes notifications as ``[To: a, b] message`` lines to a text stream.

    Defaults to standard output, looked up at send time so pytest's
    output capturing sees the notification.
    """

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        super().__init__()
        self._stream = stream

    def _send(self, message: str, recipients: List[str]) -> bool:
        stream = self._stream if self._stream is not None else sys.stdout
        stream.write(f"[To: {', '.join(recipients)}] {message}\n")
        stream.flush()
        return True


class NullNotifier(Notifier):
    """Accepts recipients but never sends anything."""

    def _send(self, message: str, recipients: List[str]) -> bool:
        return False

"""
Slack notification backend.

Posts notifications to one configured Slack channel through the
``chat.postMessage`` Web API method. The channel is the only recipient:
adding or clearing recipients has no effect.

Settings::

    notification:
      provider: slack
      slack:
        channel: "#qa-alerts"
        token: "xoxb-..."
"""

from __future__ import annotations

from typing import List, Optional

import requests
from loguru import logger

from harness.config.settings import Settings, provider_of
from harness.notification.notifier import Notifier
from harness.notification.service import NotificationService
from harness.util.strings import is_not_blank

DEFAULT_SLACK_API_URL = "https://slack.com/api"
PROVIDER = "slack"


class SlackNotifier(Notifier):
    """Notifier bound to a single Slack channel."""

    def __init__(
        self,
        channel: str,
        token: str,
        api_url: str = DEFAULT_SLACK_API_URL,
        timeout_sec: float = 30,
        session: Optional[requests.Session] = None,
    ) -> None:
        super().__init__()
        self.channel = channel
        self._token = token
        self._api_url = api_url.rstrip("/")
        self._timeout_sec = timeout_sec
        self._session = session

    @property
    def recipients(self) -> List[str]:
        return [self.channel] if is_not_blank(self.channel) else []

    def add_recipients(self, *recipients: str) -> "Notifier":
        # Messages always go to the configured channel.
        return self

    def clear_recipients(self) -> "Notifier":
        return self

    def _send(self, message: str, recipients: List[str]) -> bool:
        poster = self._session if self._session is not None else requests
        response = poster.post(
            f"{self._api_url}/chat.postMessage",
            headers={"Authorization": f"Bearer {self._token}"},
            json={"channel": self.channel, "text": message},
            timeout=self._timeout_sec,
        )
        response.raise_for_status()
        body = response.json()
        if not body.get("ok", False):
            logger.warning(
                f"Slack rejected message for channel {self.channel}: "
                f"{body.get('error', 'unknown error')}"
            )
            return False
        return True


class SlackNotificationService(NotificationService):
    """Available when ``notification.provider`` is slack and channel/token are set."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        settings = settings if settings is not None else Settings()
        self._provider = provider_of(settings, "notification.provider")
        self.channel = settings.get_string("notification.slack.channel")
        self._token = settings.get_string("notification.slack.token")
        self._api_url = settings.get_string("notification.slack.url", DEFAULT_SLACK_API_URL)
        self._timeout_sec = settings.get_float("notification.slack.timeout_sec", 30)

    def get_notifier(self) -> Notifier:
        return SlackNotifier(self.channel, self._token, self._api_url, self._timeout_sec)

    def is_available(self) -> bool:
        return (
            self._provider == PROVIDER
            and is_not_blank(self.channel)
            and is_not_blank(self._token)
        )

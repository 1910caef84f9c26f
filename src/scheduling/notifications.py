"""Run outcome notifications.

This module formats success and failure messages for scheduled runs and
delivers them to a log stream or a chat webhook.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Protocol

import requests

from core.logging_config import get_logger
from core.types import RunNotification

_LOGGER = get_logger(__name__)
_WEBHOOK_TIMEOUT_SECONDS = 20


class Notifier(Protocol):
    """Sink that receives run outcomes."""

    def notify(self, notification: RunNotification) -> None:
        """Deliver one run outcome."""
        ...


def success_notification(bank_count: int) -> RunNotification:
    """Build the notification for a successful run."""
    return RunNotification(
        status="success",
        message=f"Weekly bank data scrape completed successfully. Found {bank_count} banks.",
        timestamp=datetime.now(timezone.utc),
        bank_count=bank_count,
    )


def failure_notification(error: BaseException) -> RunNotification:
    """Build the notification for a failed run."""
    return RunNotification(
        status="failure",
        message=f"Weekly bank data scrape failed: {error}",
        timestamp=datetime.now(timezone.utc),
        error=str(error),
    )


class LogNotifier:
    """Writes run outcomes to the structured log."""

    def notify(self, notification: RunNotification) -> None:
        """Log one run outcome."""
        _LOGGER.info(
            "notification_sent",
            channel="log",
            status=notification.status,
            message=notification.message,
            timestamp=notification.timestamp.isoformat(),
        )


class WebhookNotifier:
    """Posts run outcomes to a chat webhook as ``{"content": message}``.

    Delivery failures are logged and never raised, so a broken webhook
    cannot turn a successful run into a failed one.
    """

    def __init__(self, webhook_url: str, session: requests.Session | None = None) -> None:
        self._webhook_url = webhook_url
        self._session = session or requests.Session()

    def notify(self, notification: RunNotification) -> None:
        """Post one run outcome to the webhook."""
        try:
            response = self._session.post(
                self._webhook_url,
                json={"content": notification.message},
                timeout=_WEBHOOK_TIMEOUT_SECONDS,
            )
        except requests.RequestException as error:
            _LOGGER.error("notification_failed", channel="webhook", error=str(error))
            return
        if response.status_code >= 400:
            _LOGGER.error(
                "notification_failed",
                channel="webhook",
                status_code=response.status_code,
                body=response.text[:300],
            )
            return
        _LOGGER.info("notification_sent", channel="webhook", status=notification.status)


def build_notifier(webhook_url: str | None) -> Notifier:
    """Return a webhook notifier when a URL is configured, else a log notifier."""
    if webhook_url:
        return WebhookNotifier(webhook_url)
    return LogNotifier()

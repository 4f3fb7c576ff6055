"""Banner notifications for the settings workflow."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from textual.app import App

from pumpdesk.config.models import NotificationSettings
from pumpdesk.runtime_logging import get_runtime_logger
from pumpdesk.settings.ports import Severity

_TITLES: dict[str, str] = {
    "information": "Saved",
    "warning": "Check input",
    "error": "Error",
}


@dataclass(slots=True)
class NotificationEvent:
    title: str
    body: str
    severity: Severity = "information"


class BannerNotifier:
    """Shows workflow messages as Textual toasts that auto-dismiss after a fixed delay."""

    def __init__(self, app: App[Any], settings: NotificationSettings) -> None:
        self.app = app
        self.settings = settings
        self.logger = get_runtime_logger().bind(component="notifications")

    def notify(self, message: str, *, severity: Severity = "information") -> None:
        self.send(NotificationEvent(title=_TITLES.get(severity, "pumpdesk"), body=message, severity=severity))

    def send(self, event: NotificationEvent) -> None:
        self.logger.debug("notification.sent", severity=event.severity, body=event.body)
        self.app.notify(
            event.body,
            title=event.title,
            severity=event.severity,
            timeout=self.settings.banner_seconds,
        )

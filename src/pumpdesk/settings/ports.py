"""Seams between the settings workflow and whatever surface hosts it."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Protocol

from pumpdesk.settings.models import SectionId, SettingsDocument

Severity = Literal["information", "warning", "error"]


@dataclass(slots=True)
class ConfirmationRequest:
    title: str
    text: str
    changelog: list[str] = field(default_factory=list)
    confirm_label: str = "Confirm"
    danger: bool = False


class NotificationPort(Protocol):
    def notify(self, message: str, *, severity: Severity = "information") -> None: ...


class ConfirmationPort(Protocol):
    async def confirm(self, request: ConfirmationRequest) -> bool: ...


class SettingsBackend(Protocol):
    async def fetch_settings(self) -> SettingsDocument: ...

    async def save_settings_section(
        self,
        document: SettingsDocument,
        section: SectionId,
    ) -> SettingsDocument: ...

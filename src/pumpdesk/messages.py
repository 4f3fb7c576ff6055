"""Textual message objects for screen/app coordination."""

from __future__ import annotations

from textual.message import Message

from pumpdesk.settings.models import SectionId
from pumpdesk.settings.workflow import SaveOutcome


class SettingsLoaded(Message):
    def __init__(self, *, pump_name: str, error: str | None = None) -> None:
        self.pump_name = pump_name
        self.error = error
        super().__init__()


class SectionSaved(Message):
    def __init__(self, *, section_id: SectionId, outcome: SaveOutcome) -> None:
        self.section_id = section_id
        self.outcome = outcome
        super().__init__()

"""pumpdesk Textual application shell."""

from __future__ import annotations

from pathlib import Path

from textual.app import App

from pumpdesk.api.client import SettingsApiClient
from pumpdesk.config.models import ClientSettings
from pumpdesk.config.store import ClientSettingsStore
from pumpdesk.messages import SectionSaved, SettingsLoaded
from pumpdesk.notifications import BannerNotifier
from pumpdesk.runtime_logging import configure_runtime_logging
from pumpdesk.screens.modals import ModalConfirmation
from pumpdesk.screens.settings import SettingsScreen
from pumpdesk.settings.models import SettingsDocument
from pumpdesk.settings.ports import SettingsBackend
from pumpdesk.settings.workflow import SectionEditController


class PumpdeskApp(App[None]):
    TITLE = "pumpdesk"
    SUB_TITLE = "Petrol station back office"

    def __init__(
        self,
        *,
        api_url: str | None = None,
        settings: ClientSettings | None = None,
        backend: SettingsBackend | None = None,
        log_level: str | None = None,
        log_file: str | Path | None = None,
    ) -> None:
        self.logger = configure_runtime_logging(level=log_level, log_file=log_file)

        self.settings_store = ClientSettingsStore()
        self.settings = settings if settings is not None else self.settings_store.load()
        if api_url:
            self.settings.backend.base_url = api_url.rstrip("/")

        self._owns_backend = backend is None
        self.backend: SettingsBackend = backend or SettingsApiClient.from_settings(self.settings.backend)
        self.notifier = BannerNotifier(self, self.settings.notifications)
        self.controller = SectionEditController(
            SettingsDocument.fallback(),
            backend=self.backend,
            confirmation=ModalConfirmation(self),
            notifier=self.notifier,
            currency=self.settings.display.currency_symbol,
        )

        self.logger.info(
            "app.initialized",
            base_url=self.settings.backend.base_url,
            injected_backend=not self._owns_backend,
        )
        super().__init__()

    def on_mount(self) -> None:
        self.theme = self.settings.appearance.theme
        self.push_screen(SettingsScreen(controller=self.controller, backend=self.backend))
        self.logger.info("app.mounted", theme=self.theme)

    def on_settings_loaded(self, message: SettingsLoaded) -> None:
        if message.pump_name:
            self.sub_title = message.pump_name
        if message.error:
            self.notify(f"Using default settings: {message.error}", severity="error")
            self.logger.warning("app.settings.fallback", error=message.error)

    def on_section_saved(self, message: SectionSaved) -> None:
        self.logger.info(
            "app.section_saved",
            section=message.section_id.value,
            outcome=message.outcome.value,
        )
        pump_name = self.controller.document.general.pump_name
        if pump_name:
            self.sub_title = pump_name

    async def on_unmount(self) -> None:
        if self._owns_backend and isinstance(self.backend, SettingsApiClient):
            await self.backend.aclose()
        self.logger.info("app.exit")

"""Sectioned settings screen: browse, edit, review and save station settings."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import Screen
from textual.widget import Widget
from textual.widgets import Button, Footer, Header, Input, Label, ListItem, ListView, Static

from pumpdesk.errors import EditConflictError
from pumpdesk.messages import SectionSaved, SettingsLoaded
from pumpdesk.runtime_logging import get_runtime_logger
from pumpdesk.settings.formatting import format_currency, format_text
from pumpdesk.settings.models import FuelRecord, SectionId
from pumpdesk.settings.ports import SettingsBackend
from pumpdesk.settings.sections import (
    LABEL_SECTIONS,
    FuelNozzlesSection,
    FuelRatesSection,
    GeneralSection,
    LabelSetSection,
    LocalMutation,
    section_kind,
)
from pumpdesk.settings.workflow import SectionEditController, load_settings_document


class SettingsScreen(Screen):
    BINDINGS = [
        ("ctrl+e", "edit", "Edit"),
        ("ctrl+s", "save", "Save"),
        ("ctrl+x", "cancel", "Cancel"),
        ("ctrl+r", "reload", "Reload"),
    ]

    DEFAULT_CSS = """
    SettingsScreen {
        layout: vertical;
    }

    #load-error {
        height: auto;
        padding: 0 1;
        background: $error 20%;
        color: $text;
    }

    #settings-root {
        height: 1fr;
        layout: horizontal;
    }

    #sidebar {
        width: 32;
        border: round $surface-lighten-2;
        padding: 0 1;
    }

    #section-pane {
        width: 1fr;
        padding: 0 1;
    }

    #section-actions {
        height: 3;
    }

    #section-actions Button {
        width: auto;
        margin-right: 1;
    }

    #section-body {
        height: 1fr;
        border: round $panel;
        padding: 0 1;
    }

    .row {
        height: auto;
        margin-bottom: 1;
    }

    .row Static, .row Label {
        width: 1fr;
        padding-top: 1;
    }

    .row Input {
        width: 1fr;
    }

    .row Button {
        width: auto;
        min-width: 8;
    }

    .hidden {
        display: none;
    }
    """

    def __init__(self, *, controller: SectionEditController, backend: SettingsBackend) -> None:
        self.controller = controller
        self.backend = backend
        self.displayed = SectionId.GENERAL
        self._pending_prices: dict[str, str] = {}
        self.fetching = False
        self.logger = get_runtime_logger().bind(component="settings.screen")
        super().__init__()

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        yield Static("", id="load-error", classes="hidden", markup=False)
        with Horizontal(id="settings-root"):
            with Vertical(id="sidebar"):
                yield Static("[b]Settings[/b]", markup=True)
                yield ListView(
                    *[
                        ListItem(Label(section_kind(section_id).title), id=f"nav-{section_id.value}")
                        for section_id in SectionId
                    ],
                    id="section-list",
                )
            with Vertical(id="section-pane"):
                yield Static("", id="section-title")
                with Horizontal(id="section-actions"):
                    yield Button("Edit", id="edit", variant="primary")
                    yield Button("Save", id="save", variant="success")
                    yield Button("Cancel", id="cancel")
                yield VerticalScroll(id="section-body")
        yield Footer()

    def on_mount(self) -> None:
        self.action_reload()

    # -- actions ---------------------------------------------------------

    def action_edit(self) -> None:
        if self.fetching:
            return
        try:
            self.controller.begin_edit(self.displayed)
        except EditConflictError:
            active = self.controller.active_section
            title = section_kind(active).title if active else "another section"
            self.app.notify(f"Finish editing {title} first.", severity="warning")
            return
        self._refresh_section()

    def action_cancel(self) -> None:
        if not self.controller.is_editing(self.displayed):
            return
        self.controller.cancel_edit(self.displayed)
        self._pending_prices.clear()
        self._refresh_section()

    def action_save(self) -> None:
        if not self.controller.is_editing(self.displayed) or self.controller.gate.busy:
            return
        self.run_worker(
            self._save_section(self.displayed),
            group="settings-commit",
            exclusive=True,
            exit_on_error=False,
        )

    def action_reload(self) -> None:
        if self.controller.active_section is not None:
            self.app.notify("Save or cancel your edits before reloading.", severity="warning")
            return
        self.fetching = True
        self._update_actions()
        self.query_one("#section-title", Static).update("Loading settings...")
        self.run_worker(self._load_document(), group="settings-load", exclusive=True, exit_on_error=False)

    # -- events ----------------------------------------------------------

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        if event.list_view.id != "section-list" or event.item is None or not event.item.id:
            return
        self.show_section(event.item.id.removeprefix("nav-"))

    def show_section(self, section_id: SectionId | str) -> None:
        self.displayed = SectionId(section_id)
        self._pending_prices.clear()
        self._refresh_section()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = event.button.id or ""
        if button_id == "edit":
            self.action_edit()
        elif button_id == "save":
            self.action_save()
        elif button_id == "cancel":
            self.action_cancel()
        elif button_id.startswith("update-price-"):
            self._change_price(int(button_id.removeprefix("update-price-")))
        elif button_id.startswith("nozzle-plus-"):
            self._nozzle_step(int(button_id.removeprefix("nozzle-plus-")), +1)
        elif button_id.startswith("nozzle-minus-"):
            self._nozzle_step(int(button_id.removeprefix("nozzle-minus-")), -1)
        elif button_id == "add-fuel":
            self._add_fuel()
        elif button_id == "add-label":
            self._add_label()
        elif button_id.startswith("remove-label-"):
            self._remove_label(int(button_id.removeprefix("remove-label-")))

    def on_input_changed(self, event: Input.Changed) -> None:
        input_id = event.input.id or ""
        if input_id.startswith("field-") and self.controller.is_editing(SectionId.GENERAL):
            setattr(self.controller.document.general, input_id.removeprefix("field-"), event.value)
        elif input_id.startswith("price-"):
            self._pending_prices[input_id.removeprefix("price-")] = event.value

    # -- single-item changes ---------------------------------------------

    def _change_price(self, index: int) -> None:
        fuel = self._fuel_at(index)
        if fuel is None:
            return
        raw = self._pending_prices.get(str(index), "")
        try:
            price = float(raw)
        except ValueError:
            self.app.notify("Enter a valid price.", severity="warning")
            return
        kind = section_kind(SectionId.RATES)
        assert isinstance(kind, FuelRatesSection)
        self._submit_mutation(kind.change_price(self.controller.document, fuel.id, price, currency=self.controller.currency))

    def _nozzle_step(self, index: int, delta: int) -> None:
        fuel = self._fuel_at(index)
        if fuel is None:
            return
        kind = section_kind(SectionId.NOZZLES)
        assert isinstance(kind, FuelNozzlesSection)
        if delta > 0:
            mutation = kind.add_nozzle(self.controller.document, fuel.id)
        else:
            mutation = kind.remove_nozzle(self.controller.document, fuel.id)
        self._submit_mutation(mutation)

    def _add_fuel(self) -> None:
        name = self.query_one("#new-fuel-name", Input).value
        try:
            price = float(self.query_one("#new-fuel-price", Input).value or 0)
            nozzles = int(self.query_one("#new-fuel-nozzles", Input).value or 0)
        except ValueError:
            price, nozzles = 0.0, 0
        kind = section_kind(SectionId.NOZZLES)
        assert isinstance(kind, FuelNozzlesSection)
        mutation = kind.add_fuel(
            self.controller.document,
            name,
            price,
            nozzles,
            currency=self.controller.currency,
        )
        if mutation is None:
            self.app.notify(
                "Enter a new fuel name, a price above zero and at least one nozzle.",
                severity="warning",
            )
            return
        self._submit_mutation(mutation)

    def _add_label(self) -> None:
        kind = section_kind(self.displayed)
        assert isinstance(kind, LabelSetSection)
        value = self.query_one("#new-label", Input).value
        mutation = kind.add_item(self.controller.document, value)
        if mutation is None:
            if value.strip():
                self.app.notify(f'"{value.strip()}" is already in {kind.title}.', severity="warning")
            return
        self._submit_mutation(mutation)

    def _remove_label(self, index: int) -> None:
        kind = section_kind(self.displayed)
        assert isinstance(kind, LabelSetSection)
        labels = kind.current(self.controller.document)
        if not 0 <= index < len(labels):
            return
        self._submit_mutation(kind.remove_item(self.controller.document, labels[index]))

    def _submit_mutation(self, mutation: LocalMutation | None) -> None:
        if mutation is None or self.fetching or self.controller.gate.busy:
            return
        self.run_worker(
            self._apply_mutation(mutation),
            group="settings-mutation",
            exclusive=True,
            exit_on_error=False,
        )

    # -- workers ---------------------------------------------------------

    async def _load_document(self) -> None:
        try:
            document, error = await load_settings_document(self.backend)
            self.controller.replace_document(document)
        except EditConflictError as exc:
            self.logger.exception("settings.screen.reload_refused", exc)
            self.app.notify(str(exc), severity="warning")
            return
        finally:
            self.fetching = False
            self._update_actions()
        banner = self.query_one("#load-error", Static)
        if error:
            banner.update(f"Could not load settings: {error}. Showing defaults; press Ctrl+R to retry.")
            banner.remove_class("hidden")
        else:
            banner.add_class("hidden")
        self.post_message(SettingsLoaded(pump_name=format_text(document.general.pump_name), error=error))
        await self._rebuild_section()

    async def _save_section(self, section_id: SectionId) -> None:
        self._update_actions(committing=True)
        try:
            outcome = await self.controller.request_save(section_id)
        finally:
            self._update_actions()
        self.logger.info("settings.screen.saved", section=section_id.value, outcome=outcome.value)
        self._pending_prices.clear()
        self.post_message(SectionSaved(section_id=section_id, outcome=outcome))
        await self._rebuild_section()

    async def _apply_mutation(self, mutation: LocalMutation) -> None:
        try:
            applied = await self.controller.apply_local_mutation(mutation)
        except EditConflictError as exc:
            self.app.notify(str(exc), severity="warning")
            return
        if applied:
            await self._rebuild_section()

    # -- rendering -------------------------------------------------------

    def _refresh_section(self) -> None:
        self.run_worker(self._rebuild_section(), group="settings-render", exclusive=True, exit_on_error=False)

    async def _rebuild_section(self) -> None:
        kind = section_kind(self.displayed)
        editing = self.controller.is_editing(self.displayed)
        title = kind.title + ("  (editing)" if editing else "")
        self.query_one("#section-title", Static).update(f"[b]{title}[/b]")
        self._update_actions()

        body = self.query_one("#section-body", VerticalScroll)
        await body.remove_children()
        await body.mount_all(self._section_widgets(editing))

    def _update_actions(self, *, committing: bool = False) -> None:
        editing = self.controller.is_editing(self.displayed)
        busy = committing or self.controller.gate.busy
        self.query_one("#edit", Button).disabled = (
            self.fetching or editing or self.controller.active_section is not None
        )
        self.query_one("#save", Button).disabled = self.fetching or not editing or busy
        self.query_one("#cancel", Button).disabled = self.fetching or not editing or busy

    def _section_widgets(self, editing: bool) -> list[Widget]:
        if self.displayed is SectionId.GENERAL:
            return self._general_widgets(editing)
        if self.displayed is SectionId.RATES:
            return self._rate_widgets(editing)
        if self.displayed is SectionId.NOZZLES:
            return self._nozzle_widgets(editing)
        if self.displayed in LABEL_SECTIONS:
            return self._label_widgets(editing)
        return []

    def _general_widgets(self, editing: bool) -> list[Widget]:
        general = self.controller.document.general
        rows: list[Widget] = []
        for name, label in GeneralSection.FIELD_LABELS.items():
            rows.append(
                Horizontal(
                    Label(label),
                    Input(value=format_text(getattr(general, name)), id=f"field-{name}", disabled=not editing),
                    classes="row",
                )
            )
        return rows

    def _rate_widgets(self, editing: bool) -> list[Widget]:
        currency = self.controller.currency
        rows: list[Widget] = []
        for index, fuel in enumerate(self.controller.document.fuels):
            rows.append(
                Horizontal(
                    Static(f"{fuel.name}  {format_currency(fuel.price, currency)}", markup=False),
                    Input(
                        value=self._pending_prices.get(str(index), f"{fuel.price:.2f}"),
                        id=f"price-{index}",
                        type="number",
                        disabled=not editing,
                    ),
                    Button("Update", id=f"update-price-{index}", disabled=not editing),
                    classes="row",
                )
            )
        if not rows:
            rows.append(Static("No fuels configured yet. Add one under Fuel & Nozzle Management."))
        return rows

    def _nozzle_widgets(self, editing: bool) -> list[Widget]:
        currency = self.controller.currency
        rows: list[Widget] = []
        for index, fuel in enumerate(self.controller.document.fuels):
            rows.append(
                Horizontal(
                    Static(
                        f"{fuel.name}  {fuel.nozzles} nozzle(s)  {format_currency(fuel.price, currency)}",
                        markup=False,
                    ),
                    Button("+", id=f"nozzle-plus-{index}", disabled=not editing),
                    Button("-", id=f"nozzle-minus-{index}", disabled=not editing),
                    classes="row",
                )
            )
        rows.append(
            Horizontal(
                Input(placeholder="Fuel name", id="new-fuel-name", disabled=not editing),
                Input(placeholder="Price per litre", id="new-fuel-price", type="number", disabled=not editing),
                Input(placeholder="Nozzles", id="new-fuel-nozzles", type="integer", disabled=not editing),
                Button("Add Fuel", id="add-fuel", variant="success", disabled=not editing),
                classes="row",
            )
        )
        return rows

    def _label_widgets(self, editing: bool) -> list[Widget]:
        kind = section_kind(self.displayed)
        rows: list[Widget] = []
        for index, label in enumerate(kind.current(self.controller.document)):
            rows.append(
                Horizontal(
                    Static(label, markup=False),
                    Button("Remove", id=f"remove-label-{index}", variant="error", disabled=not editing),
                    classes="row",
                )
            )
        rows.append(
            Horizontal(
                Input(placeholder=f"New {kind.title.lower()} entry", id="new-label", disabled=not editing),
                Button("Add", id="add-label", variant="success", disabled=not editing),
                classes="row",
            )
        )
        return rows

    def _fuel_at(self, index: int) -> FuelRecord | None:
        fuels = self.controller.document.fuels
        if 0 <= index < len(fuels):
            return fuels[index]
        return None

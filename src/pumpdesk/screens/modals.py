"""Modal confirmation for pending settings changes."""

from __future__ import annotations

from typing import Any

from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Static

from pumpdesk.settings.ports import ConfirmationRequest
from pumpdesk.ui.changelog import render_changelog


class ConfirmChangesModal(ModalScreen[bool]):
    DEFAULT_CSS = """
    ConfirmChangesModal {
        align: center middle;
    }

    ConfirmChangesModal > Vertical {
        width: 80;
        height: auto;
        max-height: 80%;
        border: round $primary;
        background: $surface;
        padding: 1;
    }

    ConfirmChangesModal.danger > Vertical {
        border: round $error;
    }

    ConfirmChangesModal #changelog {
        margin: 1 0;
        color: $text-muted;
    }

    ConfirmChangesModal Horizontal {
        height: auto;
    }

    ConfirmChangesModal Button {
        width: 1fr;
        margin: 1 1 0 0;
    }
    """

    BINDINGS = [("escape", "reject", "Cancel")]

    def __init__(self, request: ConfirmationRequest) -> None:
        self.request = request
        super().__init__(classes="danger" if request.danger else "")

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Static(self.request.title, id="title", markup=False)
            yield Static(self.request.text, id="text", markup=False)
            if self.request.changelog:
                yield Static(render_changelog(self.request.changelog), id="changelog", markup=False)
            with Horizontal():
                yield Button("Cancel", id="reject")
                yield Button(
                    self.request.confirm_label,
                    id="confirm",
                    variant="error" if self.request.danger else "primary",
                )

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "confirm")

    def action_reject(self) -> None:
        self.dismiss(False)


class ModalConfirmation:
    """Confirmation port backed by :class:`ConfirmChangesModal`.

    Must be awaited from a worker, since it waits for the modal to be dismissed.
    """

    def __init__(self, app: App[Any]) -> None:
        self.app = app

    async def confirm(self, request: ConfirmationRequest) -> bool:
        result = await self.app.push_screen_wait(ConfirmChangesModal(request))
        return bool(result)

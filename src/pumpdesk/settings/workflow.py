"""Edit / diff / confirm / commit cycle for settings sections.

``SectionEditController`` owns the single edit session (which section is
unlocked, plus its pre-edit snapshot). ``CommitGate`` owns the
confirmation and persistence step. Neither knows about Textual: the
hosting surface plugs in through the ports in ``pumpdesk.settings.ports``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pumpdesk.errors import (
    BackendConnectionError,
    EditConflictError,
    PumpdeskError,
    ServerError,
    SettingsValidationError,
)
from pumpdesk.runtime_logging import get_runtime_logger
from pumpdesk.settings.formatting import CURRENCY_SYMBOL
from pumpdesk.settings.models import SectionId, SettingsDocument
from pumpdesk.settings.ports import (
    ConfirmationPort,
    ConfirmationRequest,
    NotificationPort,
    SettingsBackend,
)
from pumpdesk.settings.sections import LocalMutation, SectionKind, section_kind

_COMMIT_ERRORS = (SettingsValidationError, BackendConnectionError, ServerError)


class GateState(StrEnum):
    IDLE = "idle"
    AWAITING_CONFIRMATION = "awaiting-confirmation"
    COMMITTING = "committing"


class SaveOutcome(StrEnum):
    NO_CHANGES = "no-changes"
    CANCELLED = "cancelled"
    SAVED = "saved"
    FAILED = "failed"


@dataclass(slots=True)
class EditSession:
    section_id: SectionId
    snapshot: Any


@dataclass(slots=True)
class CommitResult:
    outcome: SaveOutcome
    document: SettingsDocument | None = None
    error: PumpdeskError | None = None


class CommitGate:
    def __init__(
        self,
        *,
        backend: SettingsBackend,
        confirmation: ConfirmationPort,
        notifier: NotificationPort,
    ) -> None:
        self.backend = backend
        self.confirmation = confirmation
        self.notifier = notifier
        self.state = GateState.IDLE
        self.logger = get_runtime_logger().bind(component="settings.gate")

    @property
    def busy(self) -> bool:
        return self.state is not GateState.IDLE

    async def submit(
        self,
        kind: SectionKind,
        changes: list[str],
        document: SettingsDocument,
    ) -> CommitResult:
        self._enter(kind.section_id)
        try:
            confirmed = await self.confirmation.confirm(
                ConfirmationRequest(
                    title="Confirm Changes",
                    text="You are about to make the following changes:",
                    changelog=list(changes),
                    confirm_label="Confirm Save",
                )
            )
            if not confirmed:
                self.logger.info("settings.commit.rejected", section=kind.section_id.value)
                return CommitResult(SaveOutcome.CANCELLED)

            self.state = GateState.COMMITTING
            self.logger.info(
                "settings.commit.start",
                section=kind.section_id.value,
                changes=len(changes),
            )
            try:
                canonical = await self.backend.save_settings_section(document, kind.section_id)
            except _COMMIT_ERRORS as exc:
                self.logger.exception("settings.commit.failed", exc, section=kind.section_id.value)
                self.notifier.notify(str(exc), severity="error")
                return CommitResult(SaveOutcome.FAILED, error=exc)

            self.logger.info("settings.commit.done", section=kind.section_id.value)
            return CommitResult(SaveOutcome.SAVED, document=canonical)
        finally:
            self.state = GateState.IDLE

    async def confirm_single(self, mutation: LocalMutation) -> bool:
        self._enter(mutation.section_id)
        try:
            return bool(await self.confirmation.confirm(mutation.request))
        finally:
            self.state = GateState.IDLE

    def _enter(self, section_id: SectionId) -> None:
        if self.busy:
            raise EditConflictError(
                f"Cannot start a confirmation for {section_id.value}: gate is {self.state.value}"
            )
        self.state = GateState.AWAITING_CONFIRMATION


class SectionEditController:
    def __init__(
        self,
        document: SettingsDocument,
        *,
        backend: SettingsBackend,
        confirmation: ConfirmationPort,
        notifier: NotificationPort,
        currency: str = CURRENCY_SYMBOL,
    ) -> None:
        self.document = document
        self.notifier = notifier
        self.currency = currency
        self.session: EditSession | None = None
        self.gate = CommitGate(backend=backend, confirmation=confirmation, notifier=notifier)
        self.logger = get_runtime_logger().bind(component="settings.controller")

    @property
    def active_section(self) -> SectionId | None:
        return self.session.section_id if self.session else None

    def is_editing(self, section_id: SectionId | str) -> bool:
        return self.session is not None and self.session.section_id == SectionId(section_id)

    def begin_edit(self, section_id: SectionId | str) -> None:
        section_id = SectionId(section_id)
        if self.session is not None:
            if self.session.section_id == section_id:
                return
            raise EditConflictError(
                f"Cannot edit {section_id.value} while {self.session.section_id.value} is being edited"
            )

        kind = section_kind(section_id)
        self.session = EditSession(section_id=section_id, snapshot=kind.snapshot(self.document))
        self.logger.info("settings.edit.begin", section=section_id.value)

    def cancel_edit(self, section_id: SectionId | str) -> None:
        if self.session is None:
            return
        session = self._require_session(section_id)
        section_kind(session.section_id).restore(self.document, session.snapshot)
        self.session = None
        self.logger.info("settings.edit.cancelled", section=session.section_id.value)

    def pending_changes(self, section_id: SectionId | str) -> list[str]:
        session = self._require_session(section_id)
        kind = section_kind(session.section_id)
        return kind.diff(session.snapshot, kind.current(self.document), currency=self.currency)

    async def request_save(self, section_id: SectionId | str) -> SaveOutcome:
        session = self._require_session(section_id)
        kind = section_kind(session.section_id)
        changes = self.pending_changes(session.section_id)

        if not changes:
            self.session = None
            self.logger.info("settings.edit.unchanged", section=session.section_id.value)
            return SaveOutcome.NO_CHANGES

        result = await self.gate.submit(kind, changes, self.document)
        if result.outcome is SaveOutcome.CANCELLED:
            self.cancel_edit(session.section_id)
        elif result.outcome is SaveOutcome.SAVED and result.document is not None:
            self.document = result.document
            self.session = None
            self.notifier.notify(kind.saved_message)
        return result.outcome

    async def apply_local_mutation(self, mutation: LocalMutation) -> bool:
        if self.session is not None and self.session.section_id != mutation.section_id:
            raise EditConflictError(
                f"Cannot change {mutation.section_id.value} while "
                f"{self.session.section_id.value} is being edited"
            )

        if not await self.gate.confirm_single(mutation):
            self.logger.debug("settings.mutation.rejected", section=mutation.section_id.value)
            return False

        section_kind(mutation.section_id).apply_local_mutation(self.document, mutation)
        self.logger.info(
            "settings.mutation.applied",
            section=mutation.section_id.value,
            change=mutation.request.changelog,
        )
        self.notifier.notify(mutation.success_message)
        return True

    def replace_document(self, document: SettingsDocument) -> None:
        if self.session is not None:
            raise EditConflictError(
                f"Cannot reload settings while {self.session.section_id.value} is being edited"
            )
        self.document = document

    def _require_session(self, section_id: SectionId | str) -> EditSession:
        section_id = SectionId(section_id)
        if self.session is None:
            raise EditConflictError(f"{section_id.value} is not being edited")
        if self.session.section_id != section_id:
            raise EditConflictError(
                f"{section_id.value} is not being edited; {self.session.section_id.value} is"
            )
        return self.session


async def load_settings_document(
    backend: SettingsBackend,
) -> tuple[SettingsDocument, str | None]:
    """Fetch the document, or fall back to defaults and report why."""
    logger = get_runtime_logger()
    try:
        document = await backend.fetch_settings()
    except (BackendConnectionError, ServerError, SettingsValidationError) as exc:
        logger.exception("settings.fetch.fallback", exc)
        return SettingsDocument.fallback(), str(exc) or "Failed to load settings"
    logger.info("settings.fetch.done", fuels=len(document.fuels))
    return document, None

"""Error taxonomy shared by the backend client and the settings workflow."""

from __future__ import annotations


class PumpdeskError(Exception):
    """Base class for every error pumpdesk raises on purpose."""


class BackendConnectionError(PumpdeskError, ConnectionError):
    """The backend could not be reached. Safe to retry."""


class ServerError(PumpdeskError):
    """The backend answered with a 5xx or a payload we could not read."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SettingsValidationError(PumpdeskError):
    """The backend rejected the request; the message is shown to the user as-is."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DuplicateError(SettingsValidationError):
    """The backend already holds the item (HTTP 409)."""


class EditConflictError(PumpdeskError):
    """The edit controller was driven out of contract, e.g. two sections at once."""

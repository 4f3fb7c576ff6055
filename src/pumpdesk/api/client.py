"""Async client for the petrol-station back-office REST API."""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import ValidationError

from pumpdesk.config.models import BackendSettings
from pumpdesk.creditors import Creditor
from pumpdesk.errors import (
    BackendConnectionError,
    DuplicateError,
    ServerError,
    SettingsValidationError,
)
from pumpdesk.runtime_logging import get_runtime_logger
from pumpdesk.settings.models import SectionId, SettingsDocument
from pumpdesk.settings.sections import section_kind


class SettingsApiClient:
    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers=headers,
            transport=transport,
        )
        self.logger = get_runtime_logger().bind(component="api")

    @classmethod
    def from_settings(
        cls,
        settings: BackendSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "SettingsApiClient":
        return cls(
            settings.base_url,
            timeout=settings.timeout_seconds,
            token=settings.api_token,
            transport=transport,
        )

    async def __aenter__(self) -> "SettingsApiClient":
        return self

    async def __aexit__(self, *_exc: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch_settings(self) -> SettingsDocument:
        return _parse_document(await self._request("GET", "/api/settings"))

    async def save_settings_section(
        self,
        document: SettingsDocument,
        section: SectionId,
    ) -> SettingsDocument:
        section = SectionId(section)
        adder = self._label_adders().get(section)
        if adder is not None:
            for label in section_kind(section).current(document):
                try:
                    await adder(label)
                except DuplicateError:
                    # The bulk POST below still carries the label.
                    self.logger.debug("api.label.duplicate", section=section.value, label=label)

        data = await self._request("POST", "/api/settings", json=document.to_payload())
        return _parse_document(data)

    async def add_credit_type(self, name: str) -> Any:
        return await self._request("POST", "/api/credit-types", json={"name": name})

    async def add_expense_category(self, name: str) -> Any:
        return await self._request("POST", "/api/expense-categories", json={"name": name})

    async def add_cash_mode(self, name: str) -> Any:
        return await self._request("POST", "/api/cash-modes", json={"name": name})

    async def fetch_creditors(self) -> list[Creditor]:
        data = await self._request("GET", "/api/dashboard/creditors")
        raw = data.get("creditors") if isinstance(data, dict) else None
        creditors: list[Creditor] = []
        for item in raw or []:
            try:
                creditors.append(Creditor.model_validate(item))
            except ValidationError:
                self.logger.warning("api.creditors.skipped", item=item)
        return creditors

    def _label_adders(self) -> dict[SectionId, Any]:
        return {
            SectionId.CREDIT_TYPES: self.add_credit_type,
            SectionId.EXPENSE_CATEGORIES: self.add_expense_category,
            SectionId.CASH_MODES: self.add_cash_mode,
        }

    async def _request(self, method: str, path: str, *, json: Any = None) -> Any:
        try:
            response = await self._client.request(method, path, json=json)
        except httpx.TimeoutException as exc:
            self.logger.exception("api.request.timeout", exc, method=method, path=path)
            raise BackendConnectionError(f"Timed out contacting {self.base_url}") from exc
        except httpx.TransportError as exc:
            self.logger.exception("api.request.unreachable", exc, method=method, path=path)
            raise BackendConnectionError(f"Cannot reach {self.base_url}: {exc}") from exc

        status = response.status_code
        self.logger.debug("api.request", method=method, path=path, status=status)

        if status >= 500:
            raise ServerError(_error_message(response) or f"Server error ({status})", status_code=status)
        if status == 409:
            raise DuplicateError(_error_message(response) or "Item already exists", status_code=status)
        if status >= 400:
            raise SettingsValidationError(
                _error_message(response) or f"Request failed ({status})",
                status_code=status,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise ServerError("Backend returned invalid JSON", status_code=status) from exc
        if not isinstance(payload, dict):
            raise ServerError("Backend returned an unexpected response", status_code=status)
        if payload.get("success") is False:
            raise SettingsValidationError(
                str(payload.get("message") or "Request was not accepted"),
                status_code=status,
            )
        return payload.get("data")


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return ""
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    return ""


def _parse_document(data: Any) -> SettingsDocument:
    if not isinstance(data, dict):
        raise ServerError("Backend returned no settings document")
    try:
        return SettingsDocument.model_validate(data)
    except ValidationError as exc:
        raise ServerError(f"Backend returned malformed settings: {exc.error_count()} invalid field(s)") from exc

"""Load/save the client configuration file."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from pumpdesk.config.models import ClientSettings
from pumpdesk.paths import settings_path
from pumpdesk.runtime_logging import get_runtime_logger


class ClientSettingsStore:
    def __init__(self, path: Path | None = None) -> None:
        self.path = path or settings_path()

    def load(self) -> ClientSettings:
        if not self.path.exists():
            settings = ClientSettings()
            self.save(settings)
            return settings

        raw = self.path.read_text(encoding="utf-8")
        try:
            return ClientSettings.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as exc:
            # Keep the unreadable file next to the fresh defaults.
            backup = self.path.with_suffix(".corrupt.json")
            backup.write_text(raw, encoding="utf-8")
            get_runtime_logger().warning(
                "config.load.corrupt",
                path=str(self.path),
                backup=str(backup),
                error=str(exc),
            )
            settings = ClientSettings()
            self.save(settings)
            return settings

    def save(self, settings: ClientSettings) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(settings.model_dump(mode="json"), indent=2, sort_keys=True, ensure_ascii=False)
        self.path.write_text(f"{payload}\n", encoding="utf-8")

    def update(self, dotted_key: str, value: Any) -> ClientSettings:
        data = self.load().model_dump()

        keys = dotted_key.split(".")
        cursor: dict[str, Any] = data
        for key in keys[:-1]:
            nested = cursor.get(key)
            if not isinstance(nested, dict):
                raise KeyError(f"Unknown setting path: {dotted_key}")
            cursor = nested
        if keys[-1] not in cursor:
            raise KeyError(f"Unknown setting path: {dotted_key}")
        cursor[keys[-1]] = value

        updated = ClientSettings.model_validate(data)
        self.save(updated)
        return updated

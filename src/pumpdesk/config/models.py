"""Client-side configuration schema for pumpdesk."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class BackendSettings(BaseModel):
    base_url: str = Field(default="http://localhost:5000", description="Back-office API root")
    timeout_seconds: float = Field(default=10.0, gt=0, le=300)
    api_token: str | None = Field(default=None, description="Bearer token sent with every request")

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.strip().rstrip("/")


class AppearanceSettings(BaseModel):
    theme: str = Field(default="textual-dark", description="Textual theme name")


class NotificationSettings(BaseModel):
    banner_seconds: float = Field(default=3.0, gt=0, le=60)


class DisplaySettings(BaseModel):
    currency_symbol: str = Field(default="₹")


class ClientSettings(BaseModel):
    schema_version: int = Field(default=1)
    backend: BackendSettings = Field(default_factory=BackendSettings)
    appearance: AppearanceSettings = Field(default_factory=AppearanceSettings)
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)
    display: DisplaySettings = Field(default_factory=DisplaySettings)

"""Settings document schema as exchanged with the back-office API."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SerializerFunctionWrapHandler,
    ValidationError,
    field_validator,
    model_serializer,
    model_validator,
)
from pydantic.alias_generators import to_camel

from pumpdesk.runtime_logging import get_runtime_logger
from pumpdesk.settings.formatting import derive_fuel_id


class SectionId(StrEnum):
    GENERAL = "general"
    RATES = "rates"
    NOZZLES = "nozzles"
    CREDIT_TYPES = "credit-types"
    EXPENSE_CATEGORIES = "expense-categories"
    CASH_MODES = "cash-modes"


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )


class GeneralInfo(_WireModel):
    pump_name: str | None = None
    owner_name: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    pincode: str | None = None
    phone: str | None = None
    email: str | None = None
    license_number: str | None = None
    gst_number: str | None = None
    established_date: str | None = None
    website: str | None = None
    operating_hours: str | None = None

    @field_validator("*", mode="before")
    @classmethod
    def coerce_scalars(cls, value: Any) -> Any:
        # PIN codes and phone numbers sometimes arrive as JSON numbers.
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class FuelRecord(_WireModel):
    id: str
    name: str
    price: float = Field(default=0.0, ge=0)
    nozzles: int = Field(default=1, ge=1)

    @model_validator(mode="before")
    @classmethod
    def normalize_wire_fields(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for key in ("current_price", "currentPrice"):
            current = data.pop(key, None)
            if current:
                data["price"] = current

        price = _as_number(data.get("price"))
        if price is not None and price < 0:
            data["price"] = 0.0
        nozzles = _as_number(data.get("nozzles"))
        if nozzles is not None and nozzles < 1:
            data["nozzles"] = 1
        return data

    @model_serializer(mode="wrap")
    def mirror_current_price(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        data = handler(self)
        # Outgoing rows carry the price under both keys.
        data["current_price"] = data["price"]
        return data

    @classmethod
    def create(cls, name: str, price: float, nozzles: int) -> "FuelRecord":
        name = name.strip()
        return cls(id=derive_fuel_id(name), name=name, price=float(price), nozzles=int(nozzles))


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def normalize_labels(value: Any) -> Any:
    if not isinstance(value, list):
        return value
    labels: list[str] = []
    for item in value:
        if isinstance(item, dict):
            item = item.get("name")
        if item is None:
            continue
        label = str(item).strip()
        if label and label not in labels:
            labels.append(label)
    return labels


class SettingsDocument(_WireModel):
    general: GeneralInfo = Field(default_factory=GeneralInfo)
    fuels: list[FuelRecord] = Field(default_factory=list)
    credit_types: list[str] = Field(default_factory=list)
    expense_categories: list[str] = Field(default_factory=list)
    cash_modes: list[str] = Field(default_factory=list)

    @field_validator("general", mode="before")
    @classmethod
    def general_or_empty(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("fuels", mode="before")
    @classmethod
    def usable_fuels(cls, value: Any) -> Any:
        if value is None:
            return []
        if not isinstance(value, list):
            return value
        fuels: list[Any] = []
        for item in value:
            if isinstance(item, FuelRecord):
                fuels.append(item)
                continue
            try:
                fuels.append(FuelRecord.model_validate(item))
            except ValidationError as exc:
                get_runtime_logger().warning("settings.fuel.skipped", item=item, errors=exc.error_count())
        return fuels

    @field_validator("credit_types", "expense_categories", "cash_modes", mode="before")
    @classmethod
    def unique_labels(cls, value: Any) -> Any:
        if value is None:
            return []
        return normalize_labels(value)

    @classmethod
    def fallback(cls) -> "SettingsDocument":
        """Empty-but-valid document used when the backend cannot be read."""
        return cls(general=GeneralInfo(pump_name="Petrol Pump Manager"))

    def fuel(self, fuel_id: str) -> FuelRecord | None:
        for record in self.fuels:
            if record.id == fuel_id:
                return record
        return None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

"""Per-section snapshot, diff and single-item mutation rules.

Every editable settings section is one :class:`SectionKind`. The edit
controller only ever talks to this interface, so adding a section means
adding a kind here and registering it in ``SECTION_KINDS``.

``diff`` output is the changelog shown to the user before a save.
"""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable

from pumpdesk.settings.formatting import CURRENCY_SYMBOL, format_currency, format_text
from pumpdesk.settings.models import (
    FuelRecord,
    GeneralInfo,
    SectionId,
    SettingsDocument,
    normalize_labels,
)
from pumpdesk.settings.ports import ConfirmationRequest


@dataclass(slots=True)
class LocalMutation:
    """One confirmed-then-applied change made outside the bulk Save flow."""

    section_id: SectionId
    request: ConfirmationRequest
    apply: Callable[[SettingsDocument], None]
    success_message: str


class SectionKind(ABC):
    section_id: SectionId
    attribute: str
    title: str
    saved_message: str

    def current(self, document: SettingsDocument) -> Any:
        return getattr(document, self.attribute)

    def snapshot(self, document: SettingsDocument) -> Any:
        return copy.deepcopy(self.current(document))

    def restore(self, document: SettingsDocument, snapshot: Any) -> None:
        setattr(document, self.attribute, copy.deepcopy(snapshot))

    def apply_local_mutation(self, document: SettingsDocument, mutation: LocalMutation) -> None:
        mutation.apply(document)

    def diff(self, before: Any, after: Any, *, currency: str = CURRENCY_SYMBOL) -> list[str]:
        before = self.empty() if before is None else self.coerce(before)
        after = self.empty() if after is None else self.coerce(after)
        return self.describe_changes(before, after, currency=currency)

    @abstractmethod
    def empty(self) -> Any: ...

    @abstractmethod
    def coerce(self, value: Any) -> Any: ...

    @abstractmethod
    def describe_changes(self, before: Any, after: Any, *, currency: str) -> list[str]: ...


class GeneralSection(SectionKind):
    section_id = SectionId.GENERAL
    attribute = "general"
    title = "Pump Information"
    saved_message = "Pump information saved successfully!"

    FIELD_LABELS: dict[str, str] = {
        "pump_name": "Pump Name",
        "owner_name": "Owner Name",
        "address": "Address",
        "city": "City",
        "state": "State",
        "pincode": "PIN Code",
        "phone": "Phone Number",
        "email": "Email",
        "license_number": "License Number",
        "gst_number": "GST Number",
        "established_date": "Established Date",
        "website": "Website",
        "operating_hours": "Operating Hours",
    }

    def empty(self) -> GeneralInfo:
        return GeneralInfo()

    def coerce(self, value: Any) -> GeneralInfo:
        if isinstance(value, GeneralInfo):
            return value
        return GeneralInfo.model_validate(value)

    def describe_changes(self, before: GeneralInfo, after: GeneralInfo, *, currency: str) -> list[str]:
        changes: list[str] = []
        for name, label in self.FIELD_LABELS.items():
            old = format_text(getattr(before, name))
            new = format_text(getattr(after, name))
            if old != new:
                changes.append(f'{label} will be changed to "{new}".')
        return changes


class _FuelSection(SectionKind):
    attribute = "fuels"

    def empty(self) -> list[FuelRecord]:
        return []

    def coerce(self, value: Any) -> list[FuelRecord]:
        return [
            item if isinstance(item, FuelRecord) else FuelRecord.model_validate(item)
            for item in value
        ]


class FuelRatesSection(_FuelSection):
    section_id = SectionId.RATES
    title = "Fuel Rate Management"
    saved_message = "Fuel rates saved successfully!"

    def describe_changes(
        self,
        before: list[FuelRecord],
        after: list[FuelRecord],
        *,
        currency: str,
    ) -> list[str]:
        previous = {fuel.id: fuel for fuel in before}
        changes: list[str] = []
        for fuel in after:
            original = previous.get(fuel.id)
            if original is None or original.price == fuel.price:
                continue
            changes.append(
                f"{fuel.name} price will be changed from "
                f"{format_currency(original.price, currency)} to {format_currency(fuel.price, currency)}."
            )
        return changes

    def change_price(
        self,
        document: SettingsDocument,
        fuel_id: str,
        price: float,
        *,
        currency: str = CURRENCY_SYMBOL,
    ) -> LocalMutation | None:
        fuel = document.fuel(fuel_id)
        if fuel is None or price <= 0 or price == fuel.price:
            return None

        name = fuel.name
        old_text = format_currency(fuel.price, currency)
        new_text = format_currency(price, currency)

        def apply(doc: SettingsDocument) -> None:
            target = doc.fuel(fuel_id)
            if target is not None:
                target.price = price

        return LocalMutation(
            section_id=self.section_id,
            request=ConfirmationRequest(
                title="Confirm Price Change",
                text=f"Are you sure you want to change the price for {name}?",
                changelog=[f"Price will be changed from {old_text} to {new_text}."],
                confirm_label="Update Price",
            ),
            apply=apply,
            success_message=f"{name} price updated to {new_text} successfully!",
        )


class FuelNozzlesSection(_FuelSection):
    section_id = SectionId.NOZZLES
    title = "Fuel & Nozzle Management"
    saved_message = "Fuel and nozzle configuration saved successfully!"

    def describe_changes(
        self,
        before: list[FuelRecord],
        after: list[FuelRecord],
        *,
        currency: str,
    ) -> list[str]:
        previous = {fuel.id: fuel for fuel in before}
        remaining = {fuel.id for fuel in after}
        changes: list[str] = []

        for fuel in after:
            original = previous.get(fuel.id)
            if original is not None and original.nozzles != fuel.nozzles:
                changes.append(
                    f"{fuel.name} nozzle count will be changed from {original.nozzles} to {fuel.nozzles}."
                )

        for fuel in after:
            if fuel.id not in previous:
                changes.append(
                    f'New fuel type "{fuel.name}" will be added with {fuel.nozzles} nozzles '
                    f"at {format_currency(fuel.price, currency)}."
                )

        for fuel in before:
            if fuel.id not in remaining:
                changes.append(f'Fuel type "{fuel.name}" will be removed.')

        return changes

    def add_nozzle(self, document: SettingsDocument, fuel_id: str) -> LocalMutation | None:
        fuel = document.fuel(fuel_id)
        if fuel is None:
            return None
        name, count = fuel.name, fuel.nozzles

        def apply(doc: SettingsDocument) -> None:
            target = doc.fuel(fuel_id)
            if target is not None:
                target.nozzles += 1

        return LocalMutation(
            section_id=self.section_id,
            request=ConfirmationRequest(
                title="Confirm Nozzle Addition",
                text=f"Are you sure you want to add a nozzle to {name}?",
                changelog=[f"{name} nozzles will be increased from {count} to {count + 1}."],
                confirm_label="Add Nozzle",
            ),
            apply=apply,
            success_message=f"Nozzle added to {name} successfully!",
        )

    def remove_nozzle(self, document: SettingsDocument, fuel_id: str) -> LocalMutation | None:
        fuel = document.fuel(fuel_id)
        if fuel is None:
            return None
        name, count = fuel.name, fuel.nozzles

        if count <= 1:
            # A fuel never sits at zero nozzles; the last one takes the fuel with it.
            def drop(doc: SettingsDocument) -> None:
                doc.fuels = [item for item in doc.fuels if item.id != fuel_id]

            return LocalMutation(
                section_id=self.section_id,
                request=ConfirmationRequest(
                    title="Confirm Fuel Type Deletion",
                    text=f'Are you sure you want to delete the fuel type "{name}"?',
                    changelog=[f'Fuel type "{name}" will be completely removed.'],
                    confirm_label="Delete Fuel Type",
                    danger=True,
                ),
                apply=drop,
                success_message=f"{name} fuel type deleted successfully!",
            )

        def decrement(doc: SettingsDocument) -> None:
            target = doc.fuel(fuel_id)
            if target is None:
                return
            if target.nozzles > 1:
                target.nozzles -= 1
            else:
                doc.fuels = [item for item in doc.fuels if item.id != fuel_id]

        return LocalMutation(
            section_id=self.section_id,
            request=ConfirmationRequest(
                title="Confirm Nozzle Removal",
                text=f"Are you sure you want to remove a nozzle from {name}?",
                changelog=[f"{name} nozzles will be decreased from {count} to {count - 1}."],
                confirm_label="Remove Nozzle",
            ),
            apply=decrement,
            success_message=f"Nozzle removed from {name} successfully!",
        )

    def add_fuel(
        self,
        document: SettingsDocument,
        name: str,
        price: float,
        nozzles: int,
        *,
        currency: str = CURRENCY_SYMBOL,
    ) -> LocalMutation | None:
        name = (name or "").strip()
        if not name or price <= 0 or nozzles <= 0:
            return None
        record = FuelRecord.create(name, price, nozzles)
        if document.fuel(record.id) is not None:
            return None

        def apply(doc: SettingsDocument) -> None:
            if doc.fuel(record.id) is None:
                doc.fuels.append(record.model_copy(deep=True))

        return LocalMutation(
            section_id=self.section_id,
            request=ConfirmationRequest(
                title="Confirm New Fuel Addition",
                text="Are you sure you want to add the new fuel type?",
                changelog=[
                    f'New fuel "{name}" will be added with {record.nozzles} nozzles '
                    f"at {format_currency(record.price, currency)} per liter."
                ],
                confirm_label="Add Fuel",
            ),
            apply=apply,
            success_message=f'New fuel "{name}" added successfully!',
        )


class LabelSetSection(SectionKind):
    def __init__(
        self,
        *,
        section_id: SectionId,
        attribute: str,
        title: str,
        noun: str,
    ) -> None:
        self.section_id = section_id
        self.attribute = attribute
        self.title = title
        self.noun = noun
        self.saved_message = f"{title} saved successfully!"

    def empty(self) -> list[str]:
        return []

    def coerce(self, value: Any) -> list[str]:
        return normalize_labels(list(value))

    def describe_changes(self, before: list[str], after: list[str], *, currency: str) -> list[str]:
        previous = set(before)
        remaining = set(after)
        changes = [f'{self.noun} "{label}" will be added.' for label in after if label not in previous]
        changes.extend(
            f'{self.noun} "{label}" will be removed.' for label in before if label not in remaining
        )
        return changes

    def add_item(self, document: SettingsDocument, label: str) -> LocalMutation | None:
        label = (label or "").strip()
        if not label or label in self.current(document):
            return None

        def apply(doc: SettingsDocument) -> None:
            labels = getattr(doc, self.attribute)
            if label not in labels:
                labels.append(label)

        return LocalMutation(
            section_id=self.section_id,
            request=ConfirmationRequest(
                title="Confirm Addition",
                text=f'Are you sure you want to add "{label}" to {self.title}?',
                changelog=[f'{self.noun} "{label}" will be added.'],
                confirm_label="Add",
            ),
            apply=apply,
            success_message=f'"{label}" added to {self.title} successfully!',
        )

    def remove_item(self, document: SettingsDocument, label: str) -> LocalMutation | None:
        if label not in self.current(document):
            return None

        def apply(doc: SettingsDocument) -> None:
            setattr(doc, self.attribute, [item for item in getattr(doc, self.attribute) if item != label])

        return LocalMutation(
            section_id=self.section_id,
            request=ConfirmationRequest(
                title="Confirm Deletion",
                text=f'Are you sure you want to remove "{label}" from {self.title}?',
                changelog=[f'{self.noun} "{label}" will be removed.'],
                confirm_label="Delete",
                danger=True,
            ),
            apply=apply,
            success_message=f'"{label}" removed from {self.title} successfully!',
        )


SECTION_KINDS: dict[SectionId, SectionKind] = {
    SectionId.GENERAL: GeneralSection(),
    SectionId.RATES: FuelRatesSection(),
    SectionId.NOZZLES: FuelNozzlesSection(),
    SectionId.CREDIT_TYPES: LabelSetSection(
        section_id=SectionId.CREDIT_TYPES,
        attribute="credit_types",
        title="Credit Sale Types",
        noun="Credit type",
    ),
    SectionId.EXPENSE_CATEGORIES: LabelSetSection(
        section_id=SectionId.EXPENSE_CATEGORIES,
        attribute="expense_categories",
        title="Expense Categories",
        noun="Expense category",
    ),
    SectionId.CASH_MODES: LabelSetSection(
        section_id=SectionId.CASH_MODES,
        attribute="cash_modes",
        title="Cash Collection Modes",
        noun="Cash collection mode",
    ),
}

LABEL_SECTIONS = frozenset(
    {SectionId.CREDIT_TYPES, SectionId.EXPENSE_CATEGORIES, SectionId.CASH_MODES}
)


def section_kind(section_id: SectionId | str) -> SectionKind:
    return SECTION_KINDS[SectionId(section_id)]


def diff(
    section_id: SectionId | str,
    before: Any,
    after: Any,
    *,
    currency: str = CURRENCY_SYMBOL,
) -> list[str]:
    """Describe every atomic change between ``before`` and ``after`` for one section."""
    return section_kind(section_id).diff(before, after, currency=currency)

from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

from pydantic import ValidationError

from pumpdesk.config.models import BackendSettings
from pumpdesk.config.store import ClientSettingsStore
from pumpdesk.creditors import Creditor, filter_creditors
from pumpdesk.runtime_logging import configure_runtime_logging
from pumpdesk.settings.models import FuelRecord, GeneralInfo, SettingsDocument
from pumpdesk.ui.changelog import render_changelog


class ClientSettingsStoreTests(unittest.TestCase):
    def setUp(self) -> None:
        configure_runtime_logging(level="off")

    def test_load_save_update_roundtrip(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "client.json"
            store = ClientSettingsStore(path)

            settings = store.load()
            self.assertTrue(path.exists())
            self.assertEqual(settings.schema_version, 1)
            self.assertEqual(settings.backend.base_url, "http://localhost:5000")

            updated = store.update("backend.base_url", "http://office.local:8080/")
            self.assertEqual(updated.backend.base_url, "http://office.local:8080")

            reloaded = store.load()
            self.assertEqual(reloaded.backend.base_url, "http://office.local:8080")

    def test_unknown_key_is_rejected(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            store = ClientSettingsStore(Path(tmp) / "client.json")
            with self.assertRaises(KeyError):
                store.update("backend.nope", 1)
            with self.assertRaises(KeyError):
                store.update("display.currency_symbol.deeper", "x")

    def test_invalid_value_is_rejected(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            store = ClientSettingsStore(Path(tmp) / "client.json")
            with self.assertRaises(ValidationError):
                store.update("backend.timeout_seconds", 0)

    def test_corrupt_file_is_backed_up_and_replaced(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "client.json"
            path.write_text("{not json", encoding="utf-8")

            settings = ClientSettingsStore(path).load()

            self.assertEqual(settings.display.currency_symbol, "₹")
            self.assertEqual(path.with_suffix(".corrupt.json").read_text(encoding="utf-8"), "{not json")
            self.assertEqual(json.loads(path.read_text(encoding="utf-8"))["schema_version"], 1)

    def test_base_url_is_trimmed(self) -> None:
        self.assertEqual(BackendSettings(base_url=" http://x/ ").base_url, "http://x")


class SettingsDocumentTests(unittest.TestCase):
    def setUp(self) -> None:
        configure_runtime_logging(level="off")

    def test_missing_collections_become_empty(self) -> None:
        document = SettingsDocument.model_validate(
            {"general": None, "fuels": None, "creditTypes": None, "cashModes": None}
        )
        self.assertEqual(document.general, GeneralInfo())
        self.assertEqual(document.fuels, [])
        self.assertEqual(document.credit_types, [])
        self.assertEqual(document.expense_categories, [])

    def test_labels_are_trimmed_and_unique(self) -> None:
        document = SettingsDocument.model_validate(
            {"cashModes": [" Cash", "Cash", {"name": "UPI"}, "", None, {"id": 3}]}
        )
        self.assertEqual(document.cash_modes, ["Cash", "UPI"])

    def test_general_numbers_are_text(self) -> None:
        general = GeneralInfo.model_validate({"pincode": 411001, "phone": 9822012345})
        self.assertEqual(general.pincode, "411001")
        self.assertEqual(general.phone, "9822012345")

    def test_current_price_is_accepted_as_price(self) -> None:
        fuel = FuelRecord.model_validate({"id": "ms", "name": "MS", "currentPrice": 104.5})
        self.assertEqual(fuel.price, 104.5)
        self.assertEqual(fuel.nozzles, 1)

    def test_out_of_range_fuel_values_are_clamped(self) -> None:
        fuel = FuelRecord.model_validate({"id": "ms", "name": "MS", "price": -1, "nozzles": 0})
        self.assertEqual((fuel.price, fuel.nozzles), (0.0, 1))
        with self.assertRaises(ValidationError):
            FuelRecord.model_validate({"id": "ms", "name": "MS", "price": "abc"})

    def test_current_price_wins_and_is_written_back(self) -> None:
        fuel = FuelRecord.model_validate({"id": "ms", "name": "MS", "price": 100, "current_price": 105})
        self.assertEqual(fuel.price, 105.0)
        payload = SettingsDocument(fuels=[fuel]).to_payload()["fuels"][0]
        self.assertEqual(payload["price"], 105.0)
        self.assertEqual(payload["current_price"], 105.0)

        fuel.price = 110
        payload = SettingsDocument(fuels=[fuel]).to_payload()["fuels"][0]
        self.assertEqual((payload["price"], payload["current_price"]), (110.0, 110.0))

    def test_zero_current_price_keeps_price(self) -> None:
        fuel = FuelRecord.model_validate({"id": "ms", "name": "MS", "price": 100, "currentPrice": 0})
        self.assertEqual(fuel.price, 100.0)

    def test_unusable_fuel_rows_are_skipped(self) -> None:
        document = SettingsDocument.model_validate(
            {
                "fuels": [
                    {"name": "no id"},
                    {"id": "ms", "name": "MS", "price": 100, "nozzles": 2},
                    {"id": "hsd", "name": "HSD", "price": "n/a"},
                ]
            }
        )
        self.assertEqual([fuel.id for fuel in document.fuels], ["ms"])

    def test_payload_uses_wire_names_and_keeps_unknown_keys(self) -> None:
        document = SettingsDocument.model_validate(
            {
                "general": {"pumpName": "Highway Fuels", "logoUrl": "/logo.png"},
                "fuels": [FuelRecord.create(" Xtra Premium ", 112, 2).model_dump()],
            }
        )
        payload = document.to_payload()
        self.assertEqual(payload["general"]["pumpName"], "Highway Fuels")
        self.assertEqual(payload["general"]["logoUrl"], "/logo.png")
        self.assertEqual(payload["fuels"][0]["id"], "xtra-premium")
        self.assertIn("creditTypes", payload)
        self.assertIn("expenseCategories", payload)
        self.assertIn("cashModes", payload)

    def test_fallback_document(self) -> None:
        document = SettingsDocument.fallback()
        self.assertEqual(document.general.pump_name, "Petrol Pump Manager")
        self.assertEqual(document.fuels, [])
        self.assertIsNone(document.fuel("ms"))


class CreditorSearchTests(unittest.TestCase):
    def setUp(self) -> None:
        self.creditors = [
            Creditor(name="Ravi Transport", total_amount=1520.5, transaction_count=3),
            Creditor(name="Sai Logistics"),
            Creditor(name="RAVINDRA Farms"),
        ]

    def test_case_insensitive_substring(self) -> None:
        names = [creditor.name for creditor in filter_creditors(self.creditors, "ravi")]
        self.assertEqual(names, ["Ravi Transport", "RAVINDRA Farms"])

    def test_empty_query_returns_everyone(self) -> None:
        self.assertEqual(len(filter_creditors(self.creditors, "  ")), 3)
        self.assertEqual(filter_creditors(self.creditors, "zzz"), [])


class ChangelogRenderTests(unittest.TestCase):
    def test_bullets_each_change(self) -> None:
        self.assertEqual(render_changelog(["a", "b"]), "• a\n• b")
        self.assertEqual(render_changelog([]), "")


if __name__ == "__main__":
    unittest.main()

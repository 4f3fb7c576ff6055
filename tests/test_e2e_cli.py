from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

import httpx
from click.testing import CliRunner

from pumpdesk.api.client import SettingsApiClient
from pumpdesk.cli import main
from pumpdesk.config.models import BackendSettings, ClientSettings
from pumpdesk.config.store import ClientSettingsStore
from pumpdesk.runtime_logging import configure_runtime_logging


def _mock_client_factory(handler):  # noqa: ANN001, ANN202
    def build(settings: BackendSettings, **_kwargs) -> SettingsApiClient:  # noqa: ANN003
        return SettingsApiClient(settings.base_url, transport=httpx.MockTransport(handler))

    return build


class CliE2ETests(unittest.TestCase):
    def setUp(self) -> None:
        configure_runtime_logging(level="off")
        self.runner = CliRunner()

    def test_help(self) -> None:
        result = self.runner.invoke(main, ["--help"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("Commands:", result.output)
        for command in ("run", "serve", "show", "diff", "creditors"):
            self.assertIn(command, result.output)

    def test_about(self) -> None:
        result = self.runner.invoke(main, ["about"])
        self.assertEqual(result.exit_code, 0)
        payload = json.loads(result.output)
        self.assertEqual(payload["name"], "pumpdesk")
        self.assertIn("version", payload)

    def test_settings_path(self) -> None:
        result = self.runner.invoke(main, ["settings-path"])
        self.assertEqual(result.exit_code, 0)
        self.assertTrue(result.output.strip().endswith("client.json"))

    def test_config_set_updates_client_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "client.json"
            with patch("pumpdesk.cli.ClientSettingsStore", side_effect=lambda: ClientSettingsStore(path)):
                url = self.runner.invoke(main, ["config-set", "backend.base_url", "http://office.local:5000/"])
                timeout = self.runner.invoke(main, ["config-set", "backend.timeout_seconds", "30"])
                unknown = self.runner.invoke(main, ["config-set", "backend.nope", "1"])
                invalid = self.runner.invoke(main, ["config-set", "backend.timeout_seconds", "0"])

            stored = json.loads(path.read_text(encoding="utf-8"))

        self.assertEqual(url.exit_code, 0, url.output)
        self.assertEqual(timeout.exit_code, 0, timeout.output)
        self.assertEqual(stored["backend"]["base_url"], "http://office.local:5000")
        self.assertEqual(stored["backend"]["timeout_seconds"], 30.0)
        self.assertEqual(unknown.exit_code, 1)
        self.assertIn("Unknown setting path: backend.nope", unknown.output)
        self.assertEqual(invalid.exit_code, 1)
        self.assertIn("Invalid value for backend.timeout_seconds", invalid.output)

    def test_run_constructs_app(self) -> None:
        with patch("pumpdesk.cli.PumpdeskApp.run", return_value=None) as run_mock:
            result = self.runner.invoke(main, ["run", "--api-url", "http://office.local:5000", "--log-level", "off"])

        self.assertEqual(result.exit_code, 0)
        run_mock.assert_called_once()

    def test_serve_hands_command_to_textual_serve(self) -> None:
        with patch("textual_serve.server.Server") as server_cls:
            result = self.runner.invoke(main, ["serve", "--api-url", "http://office.local:5000", "--port", "9000"])

        self.assertEqual(result.exit_code, 0, result.output)
        args, kwargs = server_cls.call_args
        self.assertEqual(args[0], "pumpdesk run --api-url http://office.local:5000")
        self.assertEqual(kwargs["port"], 9000)
        server_cls.return_value.serve.assert_called_once()

    def test_diff_prints_changelog(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            before = Path(tmp) / "before.json"
            after = Path(tmp) / "after.json"
            before.write_text(json.dumps({"fuels": [{"id": "ms", "name": "MS", "price": 100}]}), encoding="utf-8")
            after.write_text(json.dumps({"fuels": [{"id": "ms", "name": "MS", "price": 105}]}), encoding="utf-8")

            changed = self.runner.invoke(main, ["diff", "rates", str(before), str(after)])
            unchanged = self.runner.invoke(main, ["diff", "nozzles", str(before), str(after)])

        self.assertEqual(changed.exit_code, 0, changed.output)
        self.assertEqual(changed.output.strip(), "• MS price will be changed from ₹100.00 to ₹105.00.")
        self.assertEqual(unchanged.output.strip(), "No changes.")

    def test_diff_rejects_bad_document(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            bad = Path(tmp) / "bad.json"
            bad.write_text("[1, 2", encoding="utf-8")
            result = self.runner.invoke(main, ["diff", "general", str(bad), str(bad)])

        self.assertNotEqual(result.exit_code, 0)
        self.assertIn("is not a settings document", result.output)

    def test_show_prints_document(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"success": True, "data": {"general": {"pumpName": "Highway Fuels"}}})

        with (
            patch("pumpdesk.cli._client_settings", return_value=ClientSettings()),
            patch("pumpdesk.cli.SettingsApiClient.from_settings", side_effect=_mock_client_factory(handler)),
        ):
            result = self.runner.invoke(main, ["show"])

        self.assertEqual(result.exit_code, 0, result.output)
        payload = json.loads(result.output)
        self.assertEqual(payload["general"]["pumpName"], "Highway Fuels")
        self.assertEqual(payload["fuels"], [])

    def test_show_reports_backend_errors(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with (
            patch("pumpdesk.cli._client_settings", return_value=ClientSettings()),
            patch("pumpdesk.cli.SettingsApiClient.from_settings", side_effect=_mock_client_factory(handler)),
        ):
            result = self.runner.invoke(main, ["show"])

        self.assertEqual(result.exit_code, 1)
        self.assertIn("Cannot reach http://localhost:5000", result.output)

    def test_creditors_search(self) -> None:
        data = {
            "creditors": [
                {"name": "Ravi Transport", "totalAmount": 1520.5, "transactionCount": 3},
                {"name": "Sai Logistics", "totalAmount": 80, "transactionCount": 1},
            ]
        }

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"success": True, "data": data})

        with (
            patch("pumpdesk.cli._client_settings", return_value=ClientSettings()),
            patch("pumpdesk.cli.SettingsApiClient.from_settings", side_effect=_mock_client_factory(handler)),
        ):
            result = self.runner.invoke(main, ["creditors", "--search", "RAVI"])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(result.output.strip().splitlines(), ["Ravi Transport\t1520.50\t3"])


if __name__ == "__main__":
    unittest.main()

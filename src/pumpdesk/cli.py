"""CLI entrypoint for pumpdesk."""

from __future__ import annotations

import asyncio
import json
import shlex
from pathlib import Path

import click
from pydantic import ValidationError

from pumpdesk.api.client import SettingsApiClient
from pumpdesk.app import PumpdeskApp
from pumpdesk.config.models import ClientSettings
from pumpdesk.config.store import ClientSettingsStore
from pumpdesk.creditors import Creditor, filter_creditors
from pumpdesk.errors import PumpdeskError
from pumpdesk.paths import settings_path
from pumpdesk.settings.models import SectionId, SettingsDocument
from pumpdesk.settings.sections import diff, section_kind
from pumpdesk.ui.changelog import render_changelog
from pumpdesk.version import __version__

api_url_option = click.option(
    "--api-url",
    envvar="PUMPDESK_API_URL",
    help="Back-office API root (overrides the configured URL)",
)


@click.group(invoke_without_command=True, context_settings={"help_option_names": ["-h", "--help"]})
@click.pass_context
def main(ctx: click.Context) -> None:
    """pumpdesk: settings console for a petrol-station back office."""
    if ctx.invoked_subcommand is None:
        ctx.invoke(run)


@main.command()
@api_url_option
@click.option("--serve", is_flag=True, help="Serve the console to a browser via textual-serve")
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=8123, type=int, show_default=True)
@click.option("--public-url", default=None, help="Public URL when served behind a proxy")
@click.option("--log-level", default=None, help="off, error, warning, info or debug")
def run(
    api_url: str | None,
    serve: bool,
    host: str,
    port: int,
    public_url: str | None,
    log_level: str | None,
) -> None:
    """Run the settings console."""
    if serve:
        _serve_app(api_url, host, port, public_url)
        return

    app = PumpdeskApp(api_url=api_url, log_level=log_level)
    app.run()


@main.command()
@api_url_option
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=8123, type=int, show_default=True)
@click.option("--public-url", default=None)
def serve(api_url: str | None, host: str, port: int, public_url: str | None) -> None:
    """Serve the console in a browser using textual-serve."""
    _serve_app(api_url, host, port, public_url)


@main.command("settings-path")
def settings_path_command() -> None:
    """Print client configuration file path."""
    click.echo(str(settings_path()))


@main.command("config-set")
@click.argument("key")
@click.argument("value")
def config_set(key: str, value: str) -> None:
    """Update one client setting, e.g. backend.base_url or display.currency_symbol."""
    try:
        parsed = json.loads(value)
    except ValueError:
        parsed = value
    try:
        updated = ClientSettingsStore().update(key, parsed)
    except KeyError as exc:
        raise click.ClickException(str(exc.args[0]))
    except ValidationError as exc:
        raise click.ClickException(f"Invalid value for {key}: {exc.errors()[0]['msg']}")
    click.echo(json.dumps(updated.model_dump(mode="json"), indent=2, ensure_ascii=False))


@main.command()
def about() -> None:
    """Show version and project summary."""
    payload = {
        "name": "pumpdesk",
        "version": __version__,
        "description": "Petrol-station back-office settings console",
    }
    click.echo(json.dumps(payload, indent=2))


@main.command()
@api_url_option
def show(api_url: str | None) -> None:
    """Fetch the settings document and print it as JSON."""
    document = _run_backend_call(api_url, _fetch_document)
    click.echo(json.dumps(document.to_payload(), indent=2, ensure_ascii=False))


@main.command()
@api_url_option
@click.option("--search", default="", help="Case-insensitive name filter")
def creditors(api_url: str | None, search: str) -> None:
    """List creditors, optionally filtered by name."""
    records = _run_backend_call(api_url, _fetch_creditors)
    for creditor in filter_creditors(records, search):
        click.echo(f"{creditor.name}\t{creditor.total_amount:.2f}\t{creditor.transaction_count}")


@main.command("diff")
@click.argument("section", type=click.Choice([section.value for section in SectionId]))
@click.argument("before", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("after", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def diff_command(section: str, before: Path, after: Path) -> None:
    """Print the changelog between two saved settings documents."""
    documents = []
    for path in (before, after):
        try:
            documents.append(SettingsDocument.model_validate_json(path.read_text(encoding="utf-8")))
        except ValueError as exc:
            raise click.ClickException(f"{path} is not a settings document: {exc}")

    attribute = section_kind(section).attribute
    changes = diff(section, getattr(documents[0], attribute), getattr(documents[1], attribute))
    if not changes:
        click.echo("No changes.")
        return
    click.echo(render_changelog(changes))


def _client_settings(api_url: str | None) -> ClientSettings:
    settings = ClientSettingsStore().load()
    if api_url:
        settings.backend.base_url = api_url.rstrip("/")
    return settings


async def _fetch_document(client: SettingsApiClient) -> SettingsDocument:
    return await client.fetch_settings()


async def _fetch_creditors(client: SettingsApiClient) -> list[Creditor]:
    return await client.fetch_creditors()


def _run_backend_call(api_url: str | None, call):  # noqa: ANN001, ANN202
    settings = _client_settings(api_url)

    async def _go():  # noqa: ANN202
        async with SettingsApiClient.from_settings(settings.backend) as client:
            return await call(client)

    try:
        return asyncio.run(_go())
    except PumpdeskError as exc:
        raise click.ClickException(str(exc))


def _serve_app(api_url: str | None, host: str, port: int, public_url: str | None) -> None:
    try:
        from textual_serve.server import Server
    except ImportError as exc:
        raise click.ClickException(
            f"textual-serve is not available in this environment: {exc}"
        )

    command = "pumpdesk run"
    if api_url:
        command += f" --api-url {shlex.quote(api_url)}"
    server = Server(command, host=host, port=port, public_url=public_url)
    server.serve()


if __name__ == "__main__":
    main()

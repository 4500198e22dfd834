# ABOUTME: The `animeta config` command group for viewing and changing configuration.
# ABOUTME: Shows credentials status and scrape settings; applies partial updates.

from datetime import datetime, timezone
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from animeta import service
from animeta.cli.options import db_option, run_with_context


def _yes_no(flag: bool) -> str:
    return "[green]yes[/green]" if flag else "[dim]no[/dim]"


def _render(console: Console, view: service.ConfigView) -> None:
    table = Table(show_header=False, box=None, pad_edge=False)
    table.add_column("Field", style="bold", width=20)
    table.add_column("Value")

    table.add_row("Bangumi client id", view.client_id or "[dim]unset[/dim]")
    table.add_row("Client secret set", _yes_no(view.has_client_secret))
    table.add_row("Refresh token set", _yes_no(view.has_refresh_token))
    expiry = view.token_expires_at.isoformat() if view.token_expires_at else "unknown"
    table.add_row("Token expires", expiry)
    table.add_row("Token state", view.token_state.value)
    table.add_row("Hanime login", view.hanime_login_method.value)
    if view.hanime_username:
        table.add_row("Hanime user", view.hanime_username)
    table.add_row("Bangumi enabled", _yes_no(view.settings.enable_bangumi))
    table.add_row("Hanime enabled", _yes_no(view.settings.enable_hanime))
    table.add_row("Search timeout", f"{view.settings.search_timeout:g}s")
    if view.settings.redirect_uri:
        table.add_row("Redirect URI", view.settings.redirect_uri)
    console.print(table)


@click.group("config")
def config() -> None:
    """Show or change animeta configuration."""


@config.command("show")
@db_option
def config_show(db_path: Path | None) -> None:
    """Show the current configuration (secrets are never printed)."""

    async def _work(ctx: service.AppContext) -> service.ConfigView:
        return service.get_configuration(ctx)

    _render(Console(), run_with_context(db_path, _work))


@config.command("set")
@click.option("--client-id", default=None)
@click.option("--client-secret", default=None)
@click.option("--refresh-token", default=None, help="Bangumi refresh token obtained elsewhere.")
@click.option(
    "--token-expires-at",
    type=click.DateTime(formats=["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S"]),
    default=None,
    help="UTC expiry of the current access token.",
)
@click.option("--hanime-username", default=None)
@click.option("--hanime-password", default=None)
@click.option("--hanime-cookie", default=None)
@click.option("--bangumi/--no-bangumi", "enable_bangumi", default=None)
@click.option("--hanime/--no-hanime", "enable_hanime", default=None)
@click.option("--search-timeout", type=click.FloatRange(min=0.0, min_open=True), default=None)
@click.option("--redirect-uri", default=None)
@db_option
def config_set(db_path: Path | None, token_expires_at: datetime | None, **fields: object) -> None:
    """Update configuration; options left out keep their current value."""
    console = Console()
    if token_expires_at is not None:
        token_expires_at = token_expires_at.replace(tzinfo=timezone.utc)
    try:
        update = service.ConfigUpdate(token_expires_at=token_expires_at, **fields)  # type: ignore[arg-type]
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc

    async def _work(ctx: service.AppContext) -> service.ConfigView:
        return service.update_configuration(ctx, update)

    try:
        view = run_with_context(db_path, _work)
    except ValueError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise SystemExit(1) from exc
    console.print("[green]Configuration saved.[/green]")
    _render(console, view)

# ABOUTME: The `animeta auth` command group for Bangumi OAuth2 and Hanime sign-in.
# ABOUTME: Exchanges authorization codes, stores cookies, and logs in with a password.

from pathlib import Path

import click
from rich.console import Console

from animeta import service
from animeta.cli.options import db_option, run_with_context
from animeta.errors import AuthError, ScrapeError


@click.group("auth")
def auth() -> None:
    """Authenticate against Bangumi and Hanime."""


@auth.command("url")
@db_option
def auth_url(db_path: Path | None) -> None:
    """Print the Bangumi authorization URL to open in a browser."""
    console = Console()

    async def _work(ctx: service.AppContext) -> str:
        return service.authorize_url(ctx)

    try:
        url = run_with_context(db_path, _work)
    except ValueError:
        console.print(
            "[red]Error:[/red] set a Bangumi client id first "
            "(animeta config set --client-id ...)."
        )
        raise SystemExit(1) from None
    console.print(url, soft_wrap=True)


@auth.command("bangumi")
@click.argument("code")
@db_option
def auth_bangumi(code: str, db_path: Path | None) -> None:
    """Exchange a Bangumi authorization CODE for tokens."""
    console = Console()
    try:
        request = service.AuthorizeRequest(code=code)
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc

    try:
        live = run_with_context(
            db_path, lambda ctx: service.authenticate_with_code(ctx, request)
        )
    except AuthError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise SystemExit(1) from exc

    if live:
        console.print("[green]Bangumi authenticated.[/green]")
    else:
        console.print("[yellow]Tokens stored, but the token could not be verified.[/yellow]")


@auth.command("hanime")
@click.option("--cookie", default=None, help="Cookie header copied from a signed-in browser.")
@click.option("--username", default=None, help="Hanime account e-mail.")
@click.option("--password", default=None, help="Hanime password (prompted when omitted).")
@db_option
def auth_hanime(
    cookie: str | None, username: str | None, password: str | None, db_path: Path | None
) -> None:
    """Store a Hanime session from a cookie or a username/password login."""
    console = Console()
    if cookie and username:
        raise click.UsageError("use either --cookie or --username, not both")
    if not cookie and not username:
        raise click.UsageError("one of --cookie or --username is required")

    try:
        if cookie:
            cookie_request = service.CookieRequest(cookie=cookie)
        else:
            if password is None:
                password = click.prompt("Password", hide_input=True)
            login_request = service.LoginRequest(username=username or "", password=password)
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc

    if cookie:
        live = run_with_context(
            db_path, lambda ctx: service.authenticate_with_cookie(ctx, cookie_request)
        )
        if live:
            console.print("[green]Hanime cookie stored and verified.[/green]")
        else:
            console.print("[yellow]Hanime cookie stored, but the session looks signed out.[/yellow]")
        return

    try:
        run_with_context(
            db_path, lambda ctx: service.authenticate_with_credentials(ctx, login_request)
        )
    except ScrapeError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise SystemExit(1) from exc
    console.print("[green]Signed in to Hanime.[/green]")

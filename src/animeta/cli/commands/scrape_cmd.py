# ABOUTME: The `animeta scrape` command for resolving metadata for one title.
# ABOUTME: Runs both sources, prints the merged record and each source's outcome.

from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from animeta import service
from animeta.cli.options import db_option, run_with_context
from animeta.errors import ResolutionError
from animeta.metadata.types import MetadataRecord, OutcomeStatus, SourceOutcome


_STATUS_STYLE = {
    OutcomeStatus.OK: "green",
    OutcomeStatus.EMPTY: "yellow",
    OutcomeStatus.FAILED: "red",
    OutcomeStatus.CANCELLED: "magenta",
}


def _record_table(record: MetadataRecord) -> Table:
    table = Table(show_header=False, box=None, pad_edge=False)
    table.add_column("Field", style="bold", width=12)
    table.add_column("Value")

    table.add_row("Name", escape(record.name) if record.name else "[dim]unknown[/dim]")
    if record.release_date:
        table.add_row("Aired", record.release_date.isoformat())
    if record.rating is not None:
        table.add_row("Rating", f"{record.rating:.1f}")
    if record.genres:
        table.add_row("Genres", escape(", ".join(record.genres)))
    if record.image_url:
        table.add_row("Image", escape(record.image_url))
    for source, source_id in record.external_ids.items():
        table.add_row(source.capitalize(), escape(source_id))
    if record.overview:
        table.add_row("Overview", escape(record.overview))
    return table


def _outcome_table(outcomes: tuple[SourceOutcome, ...]) -> Table:
    table = Table(title="Sources")
    table.add_column("Source", style="bold")
    table.add_column("Status")
    table.add_column("Detail", style="dim")
    for outcome in outcomes:
        style = _STATUS_STYLE[outcome.status]
        detail = outcome.message or ""
        if outcome.error_kind:
            detail = f"{outcome.error_kind}: {detail}" if detail else outcome.error_kind
        table.add_row(outcome.source, f"[{style}]{outcome.status.value}[/{style}]", escape(detail))
    return table


@click.command("scrape")
@click.argument("title", required=False, default="")
@click.option("--bangumi-id", default=None, help="Known Bangumi subject id; skips the search.")
@click.option("--bangumi/--no-bangumi", "use_bangumi", default=True, help="Query Bangumi.")
@click.option("--hanime/--no-hanime", "use_hanime", default=True, help="Query Hanime.")
@click.option(
    "-t",
    "--timeout",
    type=click.FloatRange(min=0.0, min_open=True),
    default=None,
    help="Seconds each source may take (default: configured search timeout).",
)
@db_option
def scrape(
    title: str,
    bangumi_id: str | None,
    use_bangumi: bool,
    use_hanime: bool,
    timeout: float | None,
    db_path: Path | None,
) -> None:
    """Resolve metadata for TITLE from Bangumi and Hanime."""
    console = Console()

    try:
        request = service.ScrapeRequest(
            title=title,
            bangumi_id=bangumi_id,
            use_bangumi=use_bangumi,
            use_hanime=use_hanime,
            timeout=timeout,
        )
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc

    try:
        result = run_with_context(db_path, lambda ctx: service.trigger_scrape(ctx, request))
    except ResolutionError as exc:
        console.print("[red]Error:[/red] no source produced metadata.")
        console.print(_outcome_table(exc.outcomes))
        raise SystemExit(1) from exc
    except ValueError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise SystemExit(1) from exc

    console.print(_record_table(result.record))
    console.print(_outcome_table(result.outcomes))

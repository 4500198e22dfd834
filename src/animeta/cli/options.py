# ABOUTME: Shared Click options and the async runner for animeta CLI commands.
# ABOUTME: Provides --db and builds/closes the AppContext around each command.

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TypeVar

import click

from animeta import service
from animeta.db.connection import DB_ENV_VAR, DEFAULT_DB_PATH

T = TypeVar("T")

db_option = click.option(
    "--db",
    "db_path",
    type=click.Path(path_type=Path),
    default=None,
    envvar=DB_ENV_VAR,
    help=f"Path to the config database (default: {DEFAULT_DB_PATH})",
)


def run_with_context(
    db_path: Path | None, work: Callable[[service.AppContext], Awaitable[T]]
) -> T:
    """Build the AppContext, run `work` on a fresh event loop, always close."""

    async def _main() -> T:
        ctx = service.build_context(db_path)
        try:
            return await work(ctx)
        finally:
            await ctx.aclose()

    return asyncio.run(_main())

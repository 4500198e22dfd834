# ABOUTME: CLI package for animeta, built on Click.
# ABOUTME: Defines the root command group, logging setup, and registers subcommands.

import logging

import click
from rich.logging import RichHandler

from animeta.cli.commands import auth_cmd, config_cmd, scrape_cmd


@click.group()
@click.version_option(package_name="animeta")
@click.option("-v", "--verbose", count=True, help="Increase log output (-v info, -vv debug).")
def cli(verbose: int) -> None:
    """animeta - resolve anime metadata from Bangumi and Hanime."""
    level = {0: logging.WARNING, 1: logging.INFO}.get(verbose, logging.DEBUG)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )
    # httpx logs every request at INFO, including query strings.
    logging.getLogger("httpx").setLevel(logging.WARNING if verbose < 2 else logging.DEBUG)


cli.add_command(auth_cmd.auth)
cli.add_command(config_cmd.config)
cli.add_command(scrape_cmd.scrape)

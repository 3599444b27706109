"""Start command."""

import asyncio
import logging

import click

from . import cli
from .shared import console


@cli.command()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--roster", type=click.Path(exists=True, dir_okay=False), help="Roster JSON for the console group")
def start(debug, roster):
    """Start the bot on the console transport."""
    from groupbot.config import load_settings
    from groupbot.main import run, setup_logging

    overrides = {"roster_file": roster} if roster else {}
    settings = load_settings(**overrides)
    if debug:
        setup_logging(settings, level=logging.DEBUG)
    else:
        # Keep the console readable: warnings and up only; the log file keeps INFO
        setup_logging(settings, level=logging.INFO, console_level=logging.WARNING)
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)

    console.print("[bold blue]Starting groupbot...[/bold blue]")
    asyncio.run(run(settings))

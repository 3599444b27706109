"""groupbot CLI — command line interface."""

import click
from groupbot import __version__
from .shared import console


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="groupbot")
@click.pass_context
def cli(ctx):
    """groupbot — group chat stickers and mass mentions"""
    if ctx.invoked_subcommand is None:
        _show_help()


def _show_help():
    """Show all available commands grouped by category."""
    console.print(f"[bold]groupbot v{__version__}[/bold] — group chat stickers and mass mentions\n")

    groups = {
        "Usage": [
            ("start", "Start the bot on the console transport"),
            ("sticker", "Convert a local image/video/GIF into a sticker"),
        ],
        "Setup": [
            ("doctor", "Check ffmpeg and scratch directory (--fix to create dirs)"),
        ],
    }

    for category, commands in groups.items():
        console.print(f"  [bold cyan]{category}[/bold cyan]")
        for name, desc in commands:
            console.print(f"    [bold]groupbot {name:10s}[/bold] {desc}")
        console.print()

    console.print("[dim]Run 'groupbot <command> --help' for details on a specific command.[/dim]")


# Import all command modules (registers commands onto cli group)
from . import cmd_start  # noqa: E402, F401
from . import cmd_sticker  # noqa: E402, F401
from . import cmd_doctor  # noqa: E402, F401


@cli.command(name="help", hidden=True)
def help_cmd():
    """Show all available commands."""
    _show_help()

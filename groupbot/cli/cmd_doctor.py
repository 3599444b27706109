"""Doctor command — check external dependencies."""

import os
import shutil
import subprocess

import click
from rich.panel import Panel

from . import cli
from .shared import console


def _ffmpeg_has_libwebp(ffmpeg: str) -> bool:
    result = subprocess.run(
        [ffmpeg, "-hide_banner", "-encoders"],
        capture_output=True, text=True, timeout=15,
    )
    return result.returncode == 0 and "libwebp" in result.stdout


@cli.command()
@click.option("--fix", is_flag=True, help="Create missing directories")
def doctor(fix):
    """Check ffmpeg and the scratch directory. Run without --fix to check only."""
    from groupbot.config import load_settings

    settings = load_settings()
    issues = []

    console.print(Panel("[bold]groupbot doctor[/bold]", style="blue"))
    console.print()

    # -- 1. ffmpeg --
    console.print("[bold]1. ffmpeg[/bold]")
    ffmpeg = shutil.which(settings.ffmpeg_path) or (
        settings.ffmpeg_path if os.path.isfile(settings.ffmpeg_path) else None
    )
    if not ffmpeg:
        issues.append("ffmpeg not found")
        console.print(f"   [red]✗ Not found: {settings.ffmpeg_path}[/red]")
        console.print("   [dim]  Install ffmpeg or set GROUPBOT_FFMPEG_PATH[/dim]")
    else:
        try:
            version = subprocess.run(
                [ffmpeg, "-version"], capture_output=True, text=True, timeout=15,
            ).stdout.splitlines()[0]
            console.print(f"   [green]✓ {version[:60]}[/green]")
            if _ffmpeg_has_libwebp(ffmpeg):
                console.print("   [green]✓ libwebp encoder available[/green]")
            else:
                issues.append("ffmpeg built without libwebp")
                console.print("   [red]✗ libwebp encoder missing — stickers cannot be encoded[/red]")
        except (OSError, subprocess.TimeoutExpired, IndexError) as e:
            issues.append("ffmpeg not runnable")
            console.print(f"   [red]✗ Failed to run {ffmpeg}: {e}[/red]")

    # -- 2. Scratch directory --
    console.print("[bold]2. Scratch directory[/bold]")
    scratch = settings.scratch_dir
    if not os.path.isdir(scratch):
        if fix:
            os.makedirs(scratch, exist_ok=True)
            console.print(f"   [green]  → Created {scratch}[/green]")
        else:
            issues.append("scratch directory missing")
            console.print(f"   [yellow]! Missing: {scratch} (created on first use)[/yellow]")
    elif not os.access(scratch, os.W_OK):
        issues.append("scratch directory not writable")
        console.print(f"   [red]✗ Not writable: {scratch}[/red]")
    else:
        leftovers = [n for n in os.listdir(scratch) if n.startswith("sticker-")]
        console.print(f"   [green]✓ {scratch}[/green]")
        if leftovers:
            console.print(f"   [yellow]! {len(leftovers)} leftover scratch file(s)[/yellow]")

    console.print()
    if issues:
        console.print(f"[bold red]{len(issues)} issue(s):[/bold red] " + ", ".join(issues))
        raise SystemExit(1)
    console.print("[bold green]All checks passed.[/bold green]")

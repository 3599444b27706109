"""Sticker command — offline conversion of a local file."""

import asyncio
import os

import click

from . import cli
from .shared import console, format_size


@cli.command()
@click.argument("source", type=click.Path(exists=True, dir_okay=False))
@click.option("-o", "--output", type=click.Path(dir_okay=False), help="Output .webp path (default: next to source)")
@click.option("--animated/--static", "animated", default=None, help="Force kind instead of guessing from the file")
@click.option("--author", default="", help="Sticker author metadata")
@click.option("--pack", default="", help="Sticker pack metadata")
def sticker(source, output, animated, author, pack):
    """Convert an image, video or GIF into a WebP sticker."""
    from groupbot.channels.console import build_media_part
    from groupbot.communication.errors import classify_error
    from groupbot.config import load_settings
    from groupbot.errors import BotError
    from groupbot.media.models import MediaKind, ResolvedMedia
    from groupbot.media.resolver import classify_part
    from groupbot.media.sticker import StickerTranscoder
    from groupbot.media.imaging import inspect_sticker

    settings = load_settings()
    part = build_media_part(source)
    kind = classify_part(part)
    if animated is True and kind is MediaKind.STATIC:
        kind = MediaKind.ANIMATED_LOOP
    elif animated is False:
        kind = MediaKind.STATIC

    with open(source, "rb") as f:
        data = f.read()
    media = ResolvedMedia(data=data, mime_hint=part.mime_type, kind=kind, source_message_id=source)

    try:
        artifact = asyncio.run(StickerTranscoder(settings).transcode(media, author=author, pack=pack))
    except BotError as e:
        console.print(f"[red]✗ {classify_error(e)}[/red]")
        console.print(f"[dim]{type(e).__name__}: {e}[/dim]")
        raise SystemExit(1)

    output = output or os.path.splitext(source)[0] + ".sticker.webp"
    with open(output, "wb") as f:
        f.write(artifact.data)

    info = inspect_sticker(artifact.data)
    console.print(f"[green]✓ {output}[/green]")
    detail = f"   {info.width}x{info.height}, {format_size(len(artifact.data))}, {kind.value}"
    if info.animated:
        detail += f", {info.frame_count} frames, {info.duration_ms / 1000:.1f}s"
    console.print(detail)

"""Sticker Transcoder — turn resolved media into a WebP sticker via ffmpeg.

Geometry is the same for every kind: the longer edge is scaled to the
canvas size and the frame is centered on a fully transparent square
canvas. Animated sources are additionally resampled to a fixed frame rate
and cut to a maximum duration.

Source bytes are staged in the shared scratch directory. Every invocation
gets its own randomly named files, and they are removed on every exit
path (success, ffmpeg failure, timeout, cancellation).
"""

import asyncio
import logging
import math
import os
import secrets
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

from ..config import BotSettings
from ..errors import OversizeInput, TranscodeFailed, TranscodeTimeout
from .models import MediaKind, ResolvedMedia, StickerArtifact
from .imaging import StickerDecodeError, inspect_sticker

logger = logging.getLogger("groupbot.media.sticker")

# Scratch-file suffix per source mime type; ffmpeg probes content anyway
_INPUT_SUFFIXES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
    "image/apng": ".apng",
    "video/mp4": ".mp4",
    "video/webm": ".webm",
    "video/quicktime": ".mov",
    "video/3gpp": ".3gp",
}

# Fractions of the configured quality tried, in order, until the
# output fits under the size limit.
_QUALITY_LADDER = (1.0, 0.75, 0.5, 0.25)

_STDERR_TAIL = 400


@asynccontextmanager
async def scratch_files(directory: str, *suffixes: str) -> AsyncIterator[list[str]]:
    """Reserve uniquely named scratch paths; remove them on exit.

    Yields one path per suffix. Files need not exist yet; whatever exists
    at exit is deleted.
    """
    os.makedirs(directory, exist_ok=True)
    token = secrets.token_hex(8)
    paths = [os.path.join(directory, f"sticker-{token}-{i}{suffix}") for i, suffix in enumerate(suffixes)]
    try:
        yield paths
    finally:
        for path in paths:
            try:
                os.remove(path)
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning(f"Could not remove scratch file {path}: {e}")


def _write_bytes(path: str, data: bytes):
    Path(path).write_bytes(data)


def _read_bytes(path: str) -> bytes:
    try:
        return Path(path).read_bytes()
    except FileNotFoundError:
        return b""


async def _kill(proc):
    """Kill ffmpeg and reap it."""
    try:
        proc.kill()
    except ProcessLookupError:
        pass
    await proc.wait()


def _quality_ladder(start: int) -> list[int]:
    ladder: list[int] = []
    for fraction in _QUALITY_LADDER:
        q = max(1, int(start * fraction))
        if q not in ladder:
            ladder.append(q)
    return ladder


class StickerTranscoder:
    """Convert ResolvedMedia into a StickerArtifact using ffmpeg."""

    def __init__(self, settings: BotSettings):
        self._settings = settings

    # ── ffmpeg profiles ────────────────────────────────────────

    def _geometry_filter(self) -> str:
        c = self._settings.canvas_size
        return (
            f"scale={c}:{c}:force_original_aspect_ratio=decrease:flags=lanczos,"
            f"format=rgba,"
            f"pad={c}:{c}:(ow-iw)/2:(oh-ih)/2:color=black@0"
        )

    def build_command(self, src: str, dst: str, kind: MediaKind, quality: int) -> list[str]:
        """Build the ffmpeg argv for one encode attempt.

        Profiles:
            static-square-pad: one frame, scale + transparent pad
            animated-square-pad-fps-duration: fps resample, duration cap,
                no audio, infinite loop
        """
        s = self._settings
        argv = [
            s.ffmpeg_path,
            "-hide_banner",
            "-loglevel", "error",
            "-nostdin",
            "-y",
            "-i", src,
        ]
        if kind.is_animated:
            argv.extend([
                "-t", f"{s.max_duration:g}",
                "-vf", f"fps={s.fps},{self._geometry_filter()}",
                "-an",
                "-c:v", "libwebp",
                "-lossless", "0",
                "-q:v", str(quality),
                "-compression_level", "4",
                "-loop", "0",
            ])
        else:
            argv.extend([
                "-vf", self._geometry_filter(),
                "-frames:v", "1",
                "-c:v", "libwebp",
                "-lossless", "0",
                "-q:v", str(quality),
                "-compression_level", "6",
            ])
        argv.extend(["-f", "webp", dst])
        return argv

    # ── Subprocess ─────────────────────────────────────────────

    async def _run_ffmpeg(self, argv: list[str]):
        """Run ffmpeg with the configured timeout.

        Raises:
            TranscodeTimeout: process killed after transcode_timeout seconds
            TranscodeFailed: binary missing or non-zero exit status
        """
        timeout = self._settings.transcode_timeout
        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise TranscodeFailed(f"ffmpeg not found: {argv[0]}") from e

        try:
            _, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError as e:
            await _kill(proc)
            raise TranscodeTimeout(f"ffmpeg exceeded {timeout:g}s") from e
        except asyncio.CancelledError:
            await _kill(proc)
            raise

        if proc.returncode != 0:
            err = stderr.decode("utf-8", errors="replace").strip() if stderr else ""
            raise TranscodeFailed(f"ffmpeg failed (rc={proc.returncode}): {err[-_STDERR_TAIL:]}")

    def _check_output(self, data: bytes, kind: MediaKind) -> None:
        if not data:
            raise TranscodeFailed("ffmpeg produced no output")
        try:
            info = inspect_sticker(data)
        except StickerDecodeError as e:
            raise TranscodeFailed(f"malformed ffmpeg output: {e}") from e
        if info.format != "WEBP":
            raise TranscodeFailed(f"malformed ffmpeg output: {info.format or 'unknown'} instead of WEBP")

        s = self._settings
        c = s.canvas_size
        if (info.width, info.height) != (c, c):
            raise TranscodeFailed(f"unexpected canvas {info.width}x{info.height}, wanted {c}x{c}")
        if not kind.is_animated and info.animated:
            raise TranscodeFailed(f"static sticker came out with {info.frame_count} frames")
        # One frame of slack for the frame ffmpeg emits at the cut point
        max_frames = math.ceil(s.fps * s.max_duration) + 1
        if info.frame_count > max_frames:
            raise TranscodeFailed(f"animated sticker has {info.frame_count} frames, cap is {max_frames}")

    # ── Public API ─────────────────────────────────────────────

    async def transcode(
        self,
        media: ResolvedMedia,
        author: str = "",
        pack: str = "",
    ) -> StickerArtifact:
        """Encode media as a sticker.

        Raises:
            OversizeInput: source exceeds max_input_bytes (nothing spawned)
            TranscodeFailed / TranscodeTimeout: ffmpeg failure, or output
                still above the size limit at the lowest quality
        """
        s = self._settings
        size = len(media.data)
        if size > s.max_input_bytes:
            raise OversizeInput(size, s.max_input_bytes)

        animated = media.kind.is_animated
        limit = s.max_animated_sticker_bytes if animated else s.max_sticker_bytes
        start_quality = s.animated_quality if animated else s.sticker_quality
        suffix = _INPUT_SUFFIXES.get(media.mime_hint, ".bin")

        async with scratch_files(s.scratch_dir, suffix, ".webp") as (src, dst):
            await asyncio.to_thread(_write_bytes, src, media.data)

            output: Optional[bytes] = None
            for quality in _quality_ladder(start_quality):
                argv = self.build_command(src, dst, media.kind, quality)
                logger.debug(f"ffmpeg: {' '.join(argv)}")
                await self._run_ffmpeg(argv)

                output = await asyncio.to_thread(_read_bytes, dst)
                await asyncio.to_thread(self._check_output, output, media.kind)
                if len(output) <= limit:
                    logger.info(
                        f"Sticker encoded: kind={media.kind.value} q={quality} "
                        f"{size} -> {len(output)} bytes"
                    )
                    return StickerArtifact(data=output, animated=animated, author=author, pack=pack)

                logger.info(f"Sticker too large at q={quality} ({len(output)} > {limit}), retrying lower")

        raise TranscodeFailed(
            f"sticker still {len(output or b'')} bytes at lowest quality (limit {limit})"
        )

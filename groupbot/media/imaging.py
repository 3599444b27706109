"""Decode encoded stickers with Pillow to check what ffmpeg produced."""

import io
from dataclasses import dataclass
from typing import Optional

from PIL import Image, ImageSequence


class StickerDecodeError(ValueError):
    pass


@dataclass(frozen=True)
class StickerInfo:
    width: int
    height: int
    animated: bool
    frame_count: int = 1
    duration_ms: int = 0
    loop_count: Optional[int] = None  # 0 = infinite, None = not animated
    format: str = "WEBP"


def open_sticker(data: bytes) -> Image.Image:
    """Open and fully decode the first frame.

    Raises:
        StickerDecodeError: data is not an image Pillow can decode
    """
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (OSError, ValueError, SyntaxError) as e:
        raise StickerDecodeError(str(e) or type(e).__name__) from e
    return image


def inspect_sticker(data: bytes) -> StickerInfo:
    """Canvas size, animation flag, frame count and total duration."""
    image = open_sticker(data)
    width, height = image.size
    if not getattr(image, "is_animated", False):
        return StickerInfo(width=width, height=height, animated=False, format=image.format or "")

    duration_ms = 0
    try:
        for frame in ImageSequence.Iterator(image):
            frame.load()
            duration_ms += int(frame.info.get("duration", 0))
    except (OSError, ValueError, EOFError) as e:
        raise StickerDecodeError(f"frame decode failed: {e}") from e

    return StickerInfo(
        width=width,
        height=height,
        animated=True,
        frame_count=image.n_frames,
        duration_ms=duration_ms,
        loop_count=image.info.get("loop"),
        format=image.format or "",
    )

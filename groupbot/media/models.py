"""Media value types passed between the resolver, transcoder and transports."""

from dataclasses import dataclass
from enum import Enum


class MediaKind(str, Enum):
    STATIC = "static"
    VIDEO = "video"
    ANIMATED_LOOP = "animated_loop"

    @property
    def is_animated(self) -> bool:
        return self is not MediaKind.STATIC


@dataclass(frozen=True)
class ResolvedMedia:
    """Raw source bytes for one sticker command. Never shared between commands."""
    data: bytes
    mime_hint: str
    kind: MediaKind
    source_message_id: str = ""

    def __repr__(self) -> str:
        return (
            f"ResolvedMedia(kind={self.kind.value}, mime={self.mime_hint}, "
            f"size={len(self.data)}, source={self.source_message_id})"
        )


@dataclass(frozen=True)
class StickerArtifact:
    """Encoded WebP sticker, square canvas, within the protocol size limit."""
    data: bytes
    animated: bool
    author: str = ""
    pack: str = ""
    mime_type: str = "image/webp"

    def __repr__(self) -> str:
        return f"StickerArtifact(animated={self.animated}, size={len(self.data)})"

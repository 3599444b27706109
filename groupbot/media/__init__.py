"""Media pipeline — resolve attachments, transcode to stickers."""

from .models import MediaKind, ResolvedMedia, StickerArtifact

__all__ = ["MediaKind", "ResolvedMedia", "StickerArtifact"]

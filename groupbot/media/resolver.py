"""Media Resolver — find the attachment a sticker command operates on.

The quoted (replied-to) message is checked first, then the command
message itself. Within a message the priority is image, then video, then
a document whose mime type is an image or video.
"""

import logging
from typing import Optional

from ..channels.base import Transport
from ..communication.inbound import (
    DocumentPart,
    ImagePart,
    InboundMessage,
    MediaPart,
    VideoPart,
)
from ..errors import NoMediaFound
from .models import MediaKind, ResolvedMedia

logger = logging.getLogger("groupbot.media.resolver")

# Image formats that can carry more than one frame
ANIMATED_MIME_TYPES = frozenset({"image/gif", "image/apng"})


def _base_mime(mime_type: str) -> str:
    """Strip parameters: 'video/mp4; codecs=avc1' -> 'video/mp4'."""
    return (mime_type or "").split(";", 1)[0].strip().lower()


def find_media_part(parts) -> Optional[MediaPart]:
    """Return the highest-priority usable attachment among parts, if any."""
    for part in parts:
        if isinstance(part, ImagePart):
            return part
    for part in parts:
        if isinstance(part, VideoPart):
            return part
    for part in parts:
        if isinstance(part, DocumentPart):
            mime = _base_mime(part.mime_type)
            if mime.startswith("image/") or mime.startswith("video/"):
                return part
    return None


def classify_part(part: MediaPart) -> MediaKind:
    """Coarse media kind of an attachment.

    ANIMATED_LOOP wins over VIDEO: a gif-playback video is a silent loop.
    """
    mime = _base_mime(part.mime_type)
    looping = (
        (isinstance(part, VideoPart) and part.gif_playback)
        or (isinstance(part, ImagePart) and part.animated)
        or mime in ANIMATED_MIME_TYPES
    )
    if looping:
        return MediaKind.ANIMATED_LOOP
    if isinstance(part, VideoPart) or mime.startswith("video/"):
        return MediaKind.VIDEO
    return MediaKind.STATIC


class MediaResolver:
    """Locate and download the media a command refers to."""

    def __init__(self, transport: Transport):
        self._transport = transport

    def locate(self, message: InboundMessage) -> Optional[tuple[str, MediaPart]]:
        """Return (owning message id, part) without downloading anything."""
        if message.quoted is not None:
            part = find_media_part(message.quoted.parts)
            if part is not None:
                return message.quoted.message_id, part

        part = find_media_part(message.parts)
        if part is not None:
            return message.message_id, part
        return None

    async def resolve(self, message: InboundMessage) -> Optional[ResolvedMedia]:
        """Find and download the media for a command.

        Returns None when neither the quoted message nor the message itself
        has an attachment. Raises NoMediaFound if an attachment exists but
        the download yields nothing.
        """
        located = self.locate(message)
        if located is None:
            return None

        source_id, part = located
        data = await self._transport.download_attachment(message.chat_id, source_id, part)
        if not data:
            raise NoMediaFound(f"download of {source_id} returned no data")

        kind = classify_part(part)
        logger.info(
            f"Resolved media from {source_id}: {len(data)} bytes, "
            f"mime={part.mime_type}, kind={kind.value}"
        )
        return ResolvedMedia(
            data=data,
            mime_hint=_base_mime(part.mime_type) or "application/octet-stream",
            kind=kind,
            source_message_id=source_id,
        )

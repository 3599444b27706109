"""Inbound message model and text extraction.

Transports translate whatever their platform delivers into an
InboundMessage. A message is an ordered tuple of content parts; each part
is one dataclass per content kind, and an empty tuple means the message
carries nothing the bot understands.
"""

from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class TextPart:
    """Plain text body."""
    text: str


@dataclass(frozen=True)
class ImagePart:
    # Transport-specific download handle (file id, message id, path, URL…)
    handle: str
    mime_type: str = "image/jpeg"
    caption: str = ""
    # Animated image (e.g. animated WebP sticker forwarded as an image)
    animated: bool = False


@dataclass(frozen=True)
class VideoPart:
    handle: str
    mime_type: str = "video/mp4"
    caption: str = ""
    # Platform "GIF": a silent looping video
    gif_playback: bool = False


@dataclass(frozen=True)
class DocumentPart:
    handle: str
    mime_type: str = "application/octet-stream"
    caption: str = ""
    file_name: str = ""


ContentPart = Union[TextPart, ImagePart, VideoPart, DocumentPart]
MediaPart = Union[ImagePart, VideoPart, DocumentPart]


@dataclass(frozen=True)
class QuotedMessage:
    """The message an inbound message replies to."""
    message_id: str
    sender_id: str = ""
    parts: tuple[ContentPart, ...] = ()


@dataclass(frozen=True)
class InboundMessage:
    """A single inbound event, immutable once received."""

    message_id: str
    chat_id: str
    sender_id: str
    parts: tuple[ContentPart, ...] = ()
    quoted: Optional[QuotedMessage] = None
    from_me: bool = False
    is_group: bool = False
    sender_name: str = ""
    timestamp: float = 0.0


# Caption lookup order after the text body. Body always wins.
_CAPTION_ORDER = (ImagePart, VideoPart, DocumentPart)


def extract_text(message: InboundMessage) -> str:
    """Return the command-line text of a message.

    Checks, in order: text body, image caption, video caption, document
    caption. Returns the first non-empty one, or "" if there is none.
    """
    for part in message.parts:
        if isinstance(part, TextPart) and part.text:
            return part.text

    for kind in _CAPTION_ORDER:
        for part in message.parts:
            if isinstance(part, kind) and part.caption:
                return part.caption

    return ""

"""Base Transport class — every messaging channel implements this."""

from abc import ABC, abstractmethod
from typing import AsyncIterator, Optional, Sequence

from ..communication.inbound import MediaPart, InboundMessage
from ..communication.roster import GroupRoster
from ..media.models import StickerArtifact


class Transport(ABC):
    """Base class for messaging transports.

    A transport owns the session with the messaging platform (connection,
    credentials, reconnects) and exposes the handful of operations the
    command pipeline needs:

    - Inbound: `listen()` yields InboundMessage objects
    - Outbound: `send_text()`, `send_sticker()`
    - Lookups: `fetch_group_roster()`, `download_attachment()`

    All operations are coroutines; each one is a suspension point for the
    event loop. Implementations raise their own exceptions on failure; the
    command pipeline wraps outbound failures into SendFailed.
    """

    name: str = "transport"

    async def start(self):
        """Open the session. Default: nothing to do."""

    async def stop(self):
        """Close the session. Default: nothing to do."""

    @property
    @abstractmethod
    def self_id(self) -> str:
        """Member id of the account the bot runs as."""
        ...

    @abstractmethod
    def listen(self) -> AsyncIterator[InboundMessage]:
        """Yield inbound messages until the transport stops."""
        ...

    @abstractmethod
    async def send_text(
        self,
        chat_id: str,
        text: str,
        mentions: Optional[Sequence[str]] = None,
        quoted_id: Optional[str] = None,
    ) -> None:
        """Send a text message.

        Args:
            chat_id: Conversation to send to
            text: Message text as rendered
            mentions: Member ids attached as mention metadata; every listed
                member is notified regardless of the visible text
            quoted_id: Message id to reply to
        """
        ...

    @abstractmethod
    async def send_sticker(
        self,
        chat_id: str,
        sticker: StickerArtifact,
        quoted_id: Optional[str] = None,
    ) -> None:
        """Send an encoded sticker."""
        ...

    @abstractmethod
    async def fetch_group_roster(self, chat_id: str) -> GroupRoster:
        """Fetch the current member list with role tags. Never cached."""
        ...

    @abstractmethod
    async def download_attachment(self, chat_id: str, message_id: str, part: MediaPart) -> bytes:
        """Download the raw bytes behind a media part.

        Returns b"" when the platform has nothing to give back (expired
        media, deleted message).
        """
        ...

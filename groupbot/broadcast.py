"""Permission-gated mass mention ("tagall").

The visible text stays short; every member is notified through the mention
metadata attached to the message. One zero-width space per member is
appended so the platform accepts the mention list without rendering any
@name tokens.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .channels.base import Transport
from .communication.roster import GroupRoster
from .errors import EmptyRoster, NotAGroup, NotAuthorized, SendFailed

logger = logging.getLogger("groupbot.broadcast")

# U+200B ZERO WIDTH SPACE, appended back to back with no separator
INVISIBLE_FILLER = "\u200b"


@dataclass(frozen=True)
class Broadcast:
    text: str
    mentions: list[str]


def compose_broadcast(text: Optional[str], roster: GroupRoster, placeholder: str) -> Broadcast:
    """Build the outbound text and mention list for a roster.

    Filler count equals len(roster); mentions are the roster ids in order.
    """
    header = (text or "").strip() or placeholder
    return Broadcast(
        text=header + INVISIBLE_FILLER * len(roster),
        mentions=roster.ids,
    )


class Broadcaster:
    def __init__(self, transport: Transport, placeholder: str = "Hey everyone 👋"):
        self._transport = transport
        self._placeholder = placeholder

    async def broadcast(
        self,
        chat_id: str,
        sender_id: str,
        is_group: bool,
        text: Optional[str] = None,
        quoted_id: Optional[str] = None,
    ) -> Broadcast:
        """Mention every member of a group on behalf of an admin.

        Raises:
            NotAGroup: conversation is one-to-one (checked before any fetch)
            EmptyRoster: roster came back empty
            NotAuthorized: sender is not an admin or owner
            SendFailed: the transport failed to deliver
        """
        if not is_group:
            raise NotAGroup(chat_id)

        roster = await self._transport.fetch_group_roster(chat_id)

        # An empty roster cannot contain the sender; report it as such
        if len(roster) == 0:
            raise EmptyRoster(chat_id)

        role = roster.role_of(sender_id)
        if role is None or not role.is_admin:
            logger.info(f"tagall denied: {sender_id} is {role.value if role else 'not a member'} in {chat_id}")
            raise NotAuthorized(sender_id)

        message = compose_broadcast(text, roster, self._placeholder)
        try:
            await self._transport.send_text(
                chat_id, message.text, mentions=message.mentions, quoted_id=quoted_id,
            )
        except Exception as e:
            raise SendFailed(f"tagall to {chat_id}: {type(e).__name__}: {e}") from e

        logger.info(f"tagall in {chat_id} by {sender_id}: {len(message.mentions)} members")
        return message

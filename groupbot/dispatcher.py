"""Command Dispatcher: one inbound event in, at most one command out.

    sticker | s | stiker  → resolve media → transcode → send sticker
    tagall                → group check → roster → auth → broadcast
    help | menu           → command summary
    admindebug            → sender / bot roles in this group
    anything else         → ignored

Every failure ends at this boundary. BotError subclasses become a short
reply in the originating chat; anything else is logged with a traceback
and answered with a generic message. Failing to send that reply is logged
and dropped; it must never take down the event loop.
"""

import logging
from typing import Optional

from .broadcast import Broadcaster
from .channels.base import Transport
from .communication.commands import ParsedCommand, parse_command
from .communication.errors import classify_error
from .communication.inbound import InboundMessage, extract_text
from .config import BotSettings
from .errors import BotError, NotAGroup, SendFailed
from .media.resolver import MediaResolver
from .media.sticker import StickerTranscoder

logger = logging.getLogger("groupbot.dispatcher")

_ALIASES = {
    "s": "sticker",
    "stiker": "sticker",
    "menu": "help",
}

_DEFAULT_PACK = "Sticker"


def parse_sticker_meta(argument_text: str, default_author: str) -> tuple[str, str]:
    """Parse optional "author|pack" sticker arguments."""
    joined = (argument_text or "").strip()
    if not joined:
        return default_author, _DEFAULT_PACK
    author, _, pack = joined.partition("|")
    return author.strip() or default_author, pack.strip() or _DEFAULT_PACK


def render_help(prefix: str) -> str:
    """Command summary shown by help / menu."""
    p = prefix
    return "\n".join([
        "Commands:",
        f"• {p}tagall [message] — mention every member (admins only)",
        f"• {p}sticker [author|pack] — reply to an image, video or GIF (alias: {p}s, {p}stiker)",
        f"• {p}admindebug — show your and the bot's group role",
        f"• {p}help — this list (alias: {p}menu)",
    ])


class CommandDispatcher:
    """Route parsed commands to their handlers and report the outcome."""

    def __init__(
        self,
        settings: BotSettings,
        transport: Transport,
        resolver: Optional[MediaResolver] = None,
        transcoder: Optional[StickerTranscoder] = None,
        broadcaster: Optional[Broadcaster] = None,
    ):
        self._settings = settings
        self._transport = transport
        self._resolver = resolver or MediaResolver(transport)
        self._transcoder = transcoder or StickerTranscoder(settings)
        self._broadcaster = broadcaster or Broadcaster(
            transport, placeholder=settings.broadcast_placeholder,
        )
        self._handlers = {
            "sticker": self._handle_sticker,
            "tagall": self._handle_tagall,
            "help": self._handle_help,
            "admindebug": self._handle_admindebug,
        }

    def parse(self, message: InboundMessage) -> Optional[ParsedCommand]:
        return parse_command(extract_text(message), self._settings.command_prefix)

    async def handle(self, message: InboundMessage) -> Optional[str]:
        """Dispatch one inbound message.

        Returns the canonical verb that ran (even if it failed), or None
        when the message was not a recognized command.
        """
        if message.from_me and not self._settings.respond_to_self:
            return None

        command = self.parse(message)
        if command is None:
            return None

        verb = _ALIASES.get(command.verb, command.verb)
        handler = self._handlers.get(verb)
        if handler is None:
            logger.debug(f"Ignoring unrecognized command '{command.verb}' in {message.chat_id}")
            return None

        logger.info(f"{message.sender_id} in {message.chat_id}: {verb} {command.argument_text[:60]!r}")
        try:
            await handler(message, command)
        except BotError as e:
            logger.info(f"{verb} in {message.chat_id} ended with {type(e).__name__}: {e}")
            await self._reply(message, classify_error(e))
        except Exception as e:
            logger.error(f"Error handling {verb} in {message.chat_id}: {e}", exc_info=True)
            await self._reply(message, classify_error(e))
        return verb

    # ── Outbound helpers ───────────────────────────────────────

    async def _reply(self, message: InboundMessage, text: str) -> bool:
        """Best-effort reply to the originating chat. Failures are logged, never raised."""
        try:
            await self._transport.send_text(message.chat_id, text, quoted_id=message.message_id)
            return True
        except Exception as e:
            logger.warning(f"Failed to reply in {message.chat_id}: {type(e).__name__}: {e}")
            return False

    async def _send_or_raise(self, message: InboundMessage, text: str):
        try:
            await self._transport.send_text(message.chat_id, text, quoted_id=message.message_id)
        except Exception as e:
            raise SendFailed(f"reply to {message.chat_id}: {type(e).__name__}: {e}") from e

    # ── Handlers ───────────────────────────────────────────────

    async def _handle_sticker(self, message: InboundMessage, command: ParsedCommand):
        media = await self._resolver.resolve(message)
        if media is None:
            p = self._settings.command_prefix
            await self._send_or_raise(
                message,
                f"Reply to an image, video or GIF with {p}sticker [author|pack], "
                f"or send one with that caption.",
            )
            return

        author, pack = parse_sticker_meta(command.argument_text, self._settings.display_name)
        sticker = await self._transcoder.transcode(media, author=author, pack=pack)

        try:
            await self._transport.send_sticker(message.chat_id, sticker, quoted_id=message.message_id)
        except Exception as e:
            raise SendFailed(f"sticker to {message.chat_id}: {type(e).__name__}: {e}") from e

    async def _handle_tagall(self, message: InboundMessage, command: ParsedCommand):
        await self._broadcaster.broadcast(
            message.chat_id,
            message.sender_id,
            is_group=message.is_group,
            text=command.argument_text,
        )

    async def _handle_help(self, message: InboundMessage, command: ParsedCommand):
        await self._send_or_raise(message, render_help(self._settings.command_prefix))

    async def _handle_admindebug(self, message: InboundMessage, command: ParsedCommand):
        if not message.is_group:
            raise NotAGroup(message.chat_id)

        roster = await self._transport.fetch_group_roster(message.chat_id)
        bot_id = self._transport.self_id

        def fmt(label: str, member_id: str) -> str:
            role = roster.role_of(member_id)
            if role is None:
                return f"{label}: {member_id or '-'} | not in roster"
            return f"{label}: {member_id} | role={role.value} | admin={role.is_admin}"

        await self._send_or_raise(
            message,
            "🔧 Admin Debug\n"
            + fmt("Sender", message.sender_id) + "\n"
            + fmt("Bot", bot_id) + "\n"
            + f"Members: {len(roster)}",
        )

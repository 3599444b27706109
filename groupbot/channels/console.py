"""Console transport: drive the bot from a terminal with a simulated group.

Every line typed at the prompt becomes an InboundMessage in the simulated
group (or a direct chat, see /dm). Outbound messages are rendered with
rich; stickers are written to workspace/outputs/.

Lines starting with "/" are console commands (/as, /attach, /reply, ...)
and never reach the dispatcher. /help lists them.
"""

import asyncio
import json
import logging
import mimetypes
import os
import secrets
import time
from pathlib import Path
from typing import AsyncIterator, Optional, Sequence

import httpx
from prompt_toolkit import PromptSession
from prompt_toolkit.history import FileHistory
from prompt_toolkit.patch_stdout import patch_stdout
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..communication.inbound import (
    ContentPart,
    DocumentPart,
    ImagePart,
    InboundMessage,
    MediaPart,
    QuotedMessage,
    TextPart,
    VideoPart,
)
from ..communication.roster import GroupRoster, Role, RosterMember
from ..config import BotSettings
from ..media.models import StickerArtifact
from .base import Transport

logger = logging.getLogger("groupbot.channels.console")
console = Console()

GROUP_CHAT_ID = "console-group@g.us"
BOT_ID = "bot@console"

_DEFAULT_ROSTER = [
    {"id": "you@console", "role": "owner", "name": "You"},
    {"id": BOT_ID, "role": "admin", "name": "groupbot"},
    {"id": "alice@console", "role": "member", "name": "Alice"},
    {"id": "bob@console", "role": "member", "name": "Bob"},
]

_CONSOLE_HELP = (
    "[bold]Console Commands[/bold]\n\n"
    "/as <member>              — Send as another roster member\n"
    "/attach <path|url> [cap]  — Send a media message\n"
    "/reply <n> [text]         — Reply to message #n\n"
    "/dm, /group               — Switch chat\n"
    "/roster                   — Show roster\n"
    "/role <member> <role>     — Set role (member|admin|owner)\n"
    "/exit                     — Quit\n"
    "\n[dim]Everything else is sent to the group as a normal message.[/dim]"
)


def load_roster(path: Optional[str]) -> list[RosterMember]:
    """Load a roster JSON file: [{"id": ..., "role": ..., "name": ...}, ...]."""
    raw = _DEFAULT_ROSTER
    if path:
        with open(os.path.expanduser(path), encoding="utf-8") as f:
            raw = json.load(f)
    members = []
    for item in raw:
        member_id = str(item.get("id") or "").strip()
        if not member_id:
            continue
        members.append(RosterMember(
            id=member_id,
            role=Role(str(item.get("role") or "member").lower()),
            name=str(item.get("name") or member_id.split("@")[0]),
        ))
    return members


def build_media_part(source: str, caption: str = "") -> MediaPart:
    """Pick the part type for a local path or URL from its guessed mime type."""
    mime_type, _ = mimetypes.guess_type(source.split("?", 1)[0])
    mime_type = mime_type or "application/octet-stream"
    if mime_type.startswith("image/"):
        return ImagePart(handle=source, mime_type=mime_type, caption=caption)
    if mime_type.startswith("video/"):
        return VideoPart(handle=source, mime_type=mime_type, caption=caption)
    return DocumentPart(
        handle=source, mime_type=mime_type, caption=caption, file_name=os.path.basename(source),
    )


def _read_local(path: str) -> bytes:
    try:
        return Path(os.path.expanduser(path)).read_bytes()
    except FileNotFoundError:
        return b""


class ConsoleTransport(Transport):
    """Terminal-backed transport with an in-memory group."""

    name = "console"

    def __init__(self, settings: BotSettings, session: Optional[PromptSession] = None):
        self._settings = settings
        self._session = session
        self._members = load_roster(settings.roster_file)
        self._sender_id = self._members[0].id if self._members else "you@console"
        self._chat_id = GROUP_CHAT_ID
        self._history: dict[str, InboundMessage] = {}
        self._counter = 0
        self._running = False
        self._outputs_dir = os.path.join(os.path.dirname(settings.scratch_dir), "outputs")

    # ── Lifecycle ──────────────────────────────────────────────

    @property
    def self_id(self) -> str:
        return BOT_ID

    async def start(self):
        self._running = True
        if self._session is None:
            self._session = PromptSession(history=FileHistory(self.history_path()))
        console.print(Panel(
            f"[bold]{self._settings.display_name}[/bold] console\n"
            f"[dim]Prefix: {self._settings.command_prefix} | "
            f"Members: {len(self._members)} | Type /help for console commands[/dim]",
            style="blue",
        ))

    async def stop(self):
        self._running = False

    def history_path(self) -> str:
        """Prompt history file under store_dir (created on demand)."""
        os.makedirs(self._settings.store_dir, exist_ok=True)
        return os.path.join(self._settings.store_dir, "console_history")

    # ── Inbound ────────────────────────────────────────────────

    def _next_id(self) -> str:
        self._counter += 1
        return str(self._counter)

    def _find_member(self, who: str) -> Optional[RosterMember]:
        """Look up a member by id or (case-insensitive) name."""
        who = (who or "").strip()
        for m in self._members:
            if m.id == who or m.name.lower() == who.lower():
                return m
        return None

    def _display_name(self, member_id: str) -> str:
        for m in self._members:
            if m.id == member_id:
                return m.name
        return member_id

    def make_message(
        self,
        parts: tuple[ContentPart, ...],
        quoted_id: Optional[str] = None,
    ) -> InboundMessage:
        """Create and remember an inbound message from the current sender."""
        quoted = None
        if quoted_id and quoted_id in self._history:
            original = self._history[quoted_id]
            quoted = QuotedMessage(
                message_id=original.message_id,
                sender_id=original.sender_id,
                parts=original.parts,
            )
        message = InboundMessage(
            message_id=self._next_id(),
            chat_id=self._chat_id,
            sender_id=self._sender_id,
            parts=parts,
            quoted=quoted,
            from_me=self._sender_id == BOT_ID,
            is_group=self._chat_id == GROUP_CHAT_ID,
            sender_name=self._display_name(self._sender_id),
            timestamp=time.time(),
        )
        self._history[message.message_id] = message
        return message

    async def listen(self) -> AsyncIterator[InboundMessage]:
        with patch_stdout():
            while self._running:
                prompt = f"[{self._display_name(self._sender_id)}@{'group' if self._chat_id == GROUP_CHAT_ID else 'dm'}] > "
                try:
                    line = await self._session.prompt_async(prompt)
                except EOFError:
                    break
                except KeyboardInterrupt:
                    break

                line = line.strip()
                if not line:
                    continue

                if line.startswith("/"):
                    result = self._handle_console_command(line)
                    if result == "exit":
                        break
                    if isinstance(result, InboundMessage):
                        console.print(f"[dim]#{result.message_id}[/dim]")
                        yield result
                    continue

                message = self.make_message((TextPart(line),))
                console.print(f"[dim]#{message.message_id}[/dim]")
                yield message
        self._running = False

    def _handle_console_command(self, line: str):
        """Handle a console slash command.

        Returns "exit", an InboundMessage to dispatch, or None.
        """
        cmd, _, args = line.partition(" ")
        cmd = cmd.lower()
        args = args.strip()

        if cmd in ("/exit", "/quit", "/q"):
            return "exit"

        if cmd == "/help":
            console.print(Panel(_CONSOLE_HELP, style="blue"))
            return None

        if cmd == "/as":
            member = self._find_member(args)
            if member is None:
                console.print(f"[red]Unknown member: {args}[/red]")
                return None
            self._sender_id = member.id
            return None

        if cmd == "/dm":
            self._chat_id = self._sender_id
            return None

        if cmd == "/group":
            self._chat_id = GROUP_CHAT_ID
            return None

        if cmd == "/roster":
            self._print_roster()
            return None

        if cmd == "/role":
            who, _, role = args.partition(" ")
            member = self._find_member(who)
            try:
                new_role = Role(role.strip().lower())
            except ValueError:
                new_role = None
            if member is None or new_role is None:
                console.print("[red]Usage: /role <member> member|admin|owner[/red]")
                return None
            self._members = [
                RosterMember(id=m.id, role=new_role, name=m.name) if m.id == member.id else m
                for m in self._members
            ]
            return None

        if cmd == "/attach":
            source, _, caption = args.partition(" ")
            if not source:
                console.print("[red]Usage: /attach <path|url> [caption][/red]")
                return None
            return self.make_message((build_media_part(source, caption.strip()),))

        if cmd == "/reply":
            ref, _, text = args.partition(" ")
            ref = ref.lstrip("#")
            if ref not in self._history:
                console.print(f"[red]No message #{ref}[/red]")
                return None
            return self.make_message((TextPart(text.strip()),) if text.strip() else (), quoted_id=ref)

        console.print(f"[red]Unknown console command: {cmd}[/red]")
        return None

    def _print_roster(self):
        table = Table(title="Roster")
        table.add_column("id")
        table.add_column("name")
        table.add_column("role")
        for m in self._members:
            table.add_row(m.id, m.name, m.role.value)
        console.print(table)

    # ── Outbound ───────────────────────────────────────────────

    async def send_text(
        self,
        chat_id: str,
        text: str,
        mentions: Optional[Sequence[str]] = None,
        quoted_id: Optional[str] = None,
    ) -> None:
        subtitle = []
        if quoted_id:
            subtitle.append(f"reply to #{quoted_id}")
        if mentions:
            subtitle.append(f"mentions {len(mentions)}: {', '.join(self._display_name(m) for m in mentions)}")
        console.print(Panel(
            text,
            title=self._settings.display_name,
            subtitle=" | ".join(subtitle) or None,
            style="green",
        ))

    async def send_sticker(
        self,
        chat_id: str,
        sticker: StickerArtifact,
        quoted_id: Optional[str] = None,
    ) -> None:
        os.makedirs(self._outputs_dir, exist_ok=True)
        path = os.path.join(self._outputs_dir, f"sticker_{int(time.time())}_{secrets.token_hex(4)}.webp")
        await asyncio.to_thread(Path(path).write_bytes, sticker.data)
        kind = "animated" if sticker.animated else "static"
        console.print(Panel(
            f"🖼  {kind} sticker, {len(sticker.data):,} bytes\n{path}\n"
            f"[dim]{sticker.author} · {sticker.pack}[/dim]",
            title=self._settings.display_name,
            subtitle=f"reply to #{quoted_id}" if quoted_id else None,
            style="magenta",
        ))

    # ── Lookups ────────────────────────────────────────────────

    async def fetch_group_roster(self, chat_id: str) -> GroupRoster:
        if chat_id != GROUP_CHAT_ID:
            return GroupRoster()
        return GroupRoster(self._members)

    async def download_attachment(self, chat_id: str, message_id: str, part: MediaPart) -> bytes:
        source = part.handle
        if source.startswith(("http://", "https://")):
            async with httpx.AsyncClient(timeout=30, follow_redirects=True) as client:
                response = await client.get(source)
                response.raise_for_status()
                logger.info(f"Fetched attachment {source}: {len(response.content)} bytes")
                return response.content
        return await asyncio.to_thread(_read_local, source)

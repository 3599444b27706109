"""Pytest configuration and shared fixtures."""

import io
import os
from typing import Optional, Sequence

import pytest
from PIL import Image

from groupbot.channels.base import Transport
from groupbot.communication.inbound import InboundMessage, TextPart
from groupbot.communication.roster import GroupRoster, Role, RosterMember
from groupbot.config import BotSettings


GROUP_ID = "120363000000000001@g.us"
ADMIN_ID = "6281111111111@s.whatsapp.net"
OWNER_ID = "6280000000000@s.whatsapp.net"
MEMBER_ID = "6282222222222@s.whatsapp.net"
BOT_ID = "6289999999999@s.whatsapp.net"


def make_webp(width: int = 512, height: int = 512, frames: int = 0, frame_ms: int = 67,
              noise: bool = False) -> bytes:
    """Encode a real WebP with Pillow.

    The canvas is transparent with an opaque square in the middle. frames > 0
    produces an animated file; every frame gets a different colour so the
    encoder keeps them all. noise=True fills the canvas with random opaque
    pixels, encoded lossless, for outputs that must be large.
    """
    buf = io.BytesIO()
    if noise:
        pixels = bytearray(os.urandom(width * height * 4))
        pixels[3::4] = b"\xff" * (width * height)
        Image.frombytes("RGBA", (width, height), bytes(pixels)).save(buf, "WEBP", lossless=True, method=0)
        return buf.getvalue()

    def frame(i: int) -> Image.Image:
        image = Image.new("RGBA", (width, height), (0, 0, 0, 0))
        box = (width // 4, height // 4, width * 3 // 4, height * 3 // 4)
        image.paste((i * 37 % 256, i * 91 % 256, 200, 255), box)
        return image

    if not frames:
        frame(0).save(buf, "WEBP")
        return buf.getvalue()

    images = [frame(i) for i in range(frames)]
    images[0].save(
        buf, "WEBP", save_all=True, append_images=images[1:], duration=frame_ms, loop=0,
    )
    return buf.getvalue()


class FakeTransport(Transport):
    """In-memory transport that records every outbound call."""

    name = "fake"

    def __init__(self, roster: Optional[list[RosterMember]] = None, downloads: Optional[dict] = None):
        self.roster_members = roster if roster is not None else [
            RosterMember(OWNER_ID, Role.OWNER, "Owner"),
            RosterMember(ADMIN_ID, Role.ADMIN, "Admin"),
            RosterMember(MEMBER_ID, Role.MEMBER, "Member"),
            RosterMember(BOT_ID, Role.ADMIN, "Bot"),
        ]
        self.downloads = downloads or {}
        self.texts: list[dict] = []
        self.stickers: list[dict] = []
        self.roster_fetches = 0
        self.download_calls: list[tuple[str, str, str]] = []
        self.fail_send_text = False
        self.fail_send_sticker = False
        self.inbound: list[InboundMessage] = []
        self.started = False
        self.stopped = False

    @property
    def self_id(self) -> str:
        return BOT_ID

    async def start(self):
        self.started = True

    async def stop(self):
        self.stopped = True

    async def listen(self):
        for message in self.inbound:
            yield message

    async def send_text(self, chat_id: str, text: str, mentions: Optional[Sequence[str]] = None,
                        quoted_id: Optional[str] = None) -> None:
        if self.fail_send_text:
            raise ConnectionError("socket closed")
        self.texts.append({
            "chat_id": chat_id,
            "text": text,
            "mentions": list(mentions) if mentions is not None else None,
            "quoted_id": quoted_id,
        })

    async def send_sticker(self, chat_id, sticker, quoted_id=None) -> None:
        if self.fail_send_sticker:
            raise ConnectionError("socket closed")
        self.stickers.append({"chat_id": chat_id, "sticker": sticker, "quoted_id": quoted_id})

    async def fetch_group_roster(self, chat_id: str) -> GroupRoster:
        self.roster_fetches += 1
        return GroupRoster(self.roster_members)

    async def download_attachment(self, chat_id, message_id, part) -> bytes:
        self.download_calls.append((chat_id, message_id, part.handle))
        return self.downloads.get(part.handle, b"")


class FakeProcess:
    """Stand-in for asyncio.subprocess.Process."""

    def __init__(self, returncode: int = 0, stderr: bytes = b""):
        self.returncode = returncode
        self._stderr = stderr
        self.killed = False
        self.waited = False

    async def communicate(self):
        return b"", self._stderr

    def kill(self):
        self.killed = True

    async def wait(self):
        self.waited = True
        return self.returncode


class FakeFfmpeg:
    """Patch target for asyncio.create_subprocess_exec.

    Writes `output` to the last argv element (the output path) and records
    every invocation.
    """

    def __init__(self, output: bytes = b"", returncode: int = 0, stderr: bytes = b"", outputs=None):
        self.output = output or make_webp()
        self.outputs = list(outputs) if outputs else None
        self.returncode = returncode
        self.stderr = stderr
        self.calls: list[list[str]] = []
        self.inputs_seen: list[bytes] = []

    async def __call__(self, *argv, **kwargs):
        self.calls.append(list(argv))
        src = argv[argv.index("-i") + 1]
        with open(src, "rb") as f:
            self.inputs_seen.append(f.read())
        if self.returncode == 0:
            data = self.outputs.pop(0) if self.outputs else self.output
            with open(argv[-1], "wb") as f:
                f.write(data)
        return FakeProcess(self.returncode, self.stderr)


@pytest.fixture
def settings(tmp_path):
    """Settings isolated from the environment, scratch dir under tmp_path."""
    return BotSettings(
        _env_file=None,
        scratch_dir=str(tmp_path / "scratch"),
        log_file="",
        display_name="TestBot",
    )


@pytest.fixture
def transport():
    return FakeTransport()


def text_message(text: str, sender_id: str = ADMIN_ID, chat_id: str = GROUP_ID, **kwargs) -> InboundMessage:
    return InboundMessage(
        message_id=kwargs.pop("message_id", "MSG1"),
        chat_id=chat_id,
        sender_id=sender_id,
        parts=(TextPart(text),),
        is_group=kwargs.pop("is_group", chat_id.endswith("@g.us")),
        **kwargs,
    )


def scratch_entries(settings: BotSettings) -> list[str]:
    if not os.path.isdir(settings.scratch_dir):
        return []
    return os.listdir(settings.scratch_dir)

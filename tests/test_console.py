"""Tests for the console transport."""

import contextlib
import json
import os
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from groupbot.channels.console import (
    BOT_ID,
    GROUP_CHAT_ID,
    ConsoleTransport,
    build_media_part,
    load_roster,
)
from groupbot.communication.inbound import DocumentPart, ImagePart, TextPart, VideoPart
from groupbot.communication.roster import Role
from groupbot.media.models import StickerArtifact

from conftest import make_webp


def _fake_session(*lines):
    session = MagicMock()
    session.prompt_async = AsyncMock(side_effect=[*lines, EOFError()])
    return session


async def _collect(transport):
    with patch("groupbot.channels.console.patch_stdout", contextlib.nullcontext):
        return [m async for m in transport.listen()]


class TestLoadRoster:
    def test_default_roster(self):
        members = load_roster(None)
        assert members[0].role is Role.OWNER
        assert any(m.id == BOT_ID for m in members)

    def test_from_file(self, tmp_path):
        path = tmp_path / "roster.json"
        path.write_text(json.dumps([
            {"id": "a@x", "role": "ADMIN", "name": "Ana"},
            {"id": "b@x"},
            {"name": "no id, skipped"},
        ]))
        members = load_roster(str(path))
        assert [m.id for m in members] == ["a@x", "b@x"]
        assert members[0].role is Role.ADMIN
        assert members[1].role is Role.MEMBER
        assert members[1].name == "b"


class TestBuildMediaPart:
    def test_image(self):
        part = build_media_part("/tmp/cat.gif", "!s")
        assert isinstance(part, ImagePart)
        assert part.mime_type == "image/gif"
        assert part.caption == "!s"

    def test_video_url_with_query(self):
        part = build_media_part("https://cdn.example.com/clip.mp4?sig=abc")
        assert isinstance(part, VideoPart)

    def test_unknown_is_document(self):
        part = build_media_part("/tmp/notes.unknownext")
        assert isinstance(part, DocumentPart)
        assert part.file_name == "notes.unknownext"


class TestInbound:
    def test_messages_in_group_with_sequential_ids(self, settings):
        transport = ConsoleTransport(settings)
        first = transport.make_message((TextPart("hi"),))
        second = transport.make_message((TextPart("!s"),), quoted_id=first.message_id)
        assert (first.message_id, second.message_id) == ("1", "2")
        assert first.chat_id == GROUP_CHAT_ID and first.is_group
        assert second.quoted.message_id == "1"
        assert second.quoted.parts == (TextPart("hi"),)

    @pytest.mark.asyncio
    async def test_listen_yields_text_and_handles_console_commands(self, settings):
        transport = ConsoleTransport(settings, session=_fake_session(
            "hello", "/as alice", "!tagall", "/reply 1 !s", "/dm", "!help",
        ))
        await transport.start()
        messages = await _collect(transport)

        assert [m.message_id for m in messages] == ["1", "2", "3", "4"]
        assert messages[1].sender_id == "alice@console"
        assert messages[2].quoted.message_id == "1"
        assert messages[3].is_group is False
        assert messages[3].chat_id == "alice@console"

    @pytest.mark.asyncio
    async def test_exit_stops_listening(self, settings):
        transport = ConsoleTransport(settings, session=_fake_session("/exit", "never"))
        await transport.start()
        assert await _collect(transport) == []

    @pytest.mark.asyncio
    async def test_role_change_affects_roster(self, settings):
        transport = ConsoleTransport(settings, session=_fake_session("/role bob admin"))
        await transport.start()
        await _collect(transport)
        roster = await transport.fetch_group_roster(GROUP_CHAT_ID)
        assert roster.role_of("bob@console") is Role.ADMIN

    @pytest.mark.asyncio
    async def test_attach(self, settings):
        transport = ConsoleTransport(settings, session=_fake_session("/attach ~/cat.png !sticker"))
        await transport.start()
        messages = await _collect(transport)
        assert isinstance(messages[0].parts[0], ImagePart)
        assert messages[0].parts[0].caption == "!sticker"


class TestLookups:
    @pytest.mark.asyncio
    async def test_roster_only_for_group(self, settings):
        transport = ConsoleTransport(settings)
        assert len(await transport.fetch_group_roster(GROUP_CHAT_ID)) == 4
        assert len(await transport.fetch_group_roster("you@console")) == 0

    @pytest.mark.asyncio
    async def test_download_local_file(self, settings, tmp_path):
        path = tmp_path / "pic.jpg"
        path.write_bytes(b"\xff\xd8\xffjpeg")
        transport = ConsoleTransport(settings)
        data = await transport.download_attachment(GROUP_CHAT_ID, "1", ImagePart(str(path)))
        assert data == b"\xff\xd8\xffjpeg"

    @pytest.mark.asyncio
    async def test_download_missing_file_is_empty(self, settings, tmp_path):
        transport = ConsoleTransport(settings)
        assert await transport.download_attachment(GROUP_CHAT_ID, "1", ImagePart(str(tmp_path / "nope.jpg"))) == b""


class TestOutbound:
    @pytest.mark.asyncio
    async def test_sticker_written_to_outputs(self, settings):
        transport = ConsoleTransport(settings)
        data = make_webp()
        await transport.send_sticker(GROUP_CHAT_ID, StickerArtifact(data=data, animated=False), quoted_id="3")
        outputs = os.path.join(os.path.dirname(settings.scratch_dir), "outputs")
        files = os.listdir(outputs)
        assert len(files) == 1 and files[0].endswith(".webp")
        with open(os.path.join(outputs, files[0]), "rb") as f:
            assert f.read() == data

    @pytest.mark.asyncio
    async def test_send_text_does_not_raise(self, settings):
        transport = ConsoleTransport(settings)
        await transport.send_text(GROUP_CHAT_ID, "hello", mentions=["alice@console"], quoted_id="1")

    @pytest.mark.asyncio
    async def test_stickers_in_same_instant_do_not_collide(self, settings):
        transport = ConsoleTransport(settings)
        with patch("groupbot.channels.console.time.time", return_value=1_700_000_000.0):
            await transport.send_sticker(GROUP_CHAT_ID, StickerArtifact(data=b"one", animated=False))
            await transport.send_sticker(GROUP_CHAT_ID, StickerArtifact(data=b"two", animated=False))
        outputs = os.path.join(os.path.dirname(settings.scratch_dir), "outputs")
        assert len(os.listdir(outputs)) == 2


class TestHistory:
    def test_history_kept_under_store_dir(self, tmp_path):
        from groupbot.config import BotSettings

        s = BotSettings(_env_file=None, scratch_dir=str(tmp_path / "scratch"), store_dir=str(tmp_path / "store"))
        path = ConsoleTransport(s).history_path()
        assert path == str(tmp_path / "store" / "console_history")
        assert (tmp_path / "store").is_dir()

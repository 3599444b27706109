"""Tests for BotSettings / load_settings."""

import logging

import pytest
from pydantic import ValidationError

from groupbot.config import BotSettings, load_settings


class TestBotSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("GROUPBOT_COMMAND_PREFIX", raising=False)
        s = BotSettings(_env_file=None)
        assert s.command_prefix == "!"
        assert s.canvas_size == 512
        assert s.fps == 15
        assert s.max_duration == 6.0
        assert s.max_input_bytes == 15 * 1024 * 1024
        assert s.transcode_timeout == 60.0
        assert s.respond_to_self is False

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("GROUPBOT_COMMAND_PREFIX", ".")
        monkeypatch.setenv("GROUPBOT_FPS", "10")
        s = BotSettings(_env_file=None)
        assert s.command_prefix == "."
        assert s.fps == 10

    def test_frozen(self):
        s = BotSettings(_env_file=None)
        with pytest.raises(ValidationError):
            s.command_prefix = "#"

    def test_rejects_empty_prefix(self):
        with pytest.raises(ValidationError):
            BotSettings(_env_file=None, command_prefix="")

    def test_rejects_out_of_range_quality(self):
        with pytest.raises(ValidationError):
            BotSettings(_env_file=None, sticker_quality=0)


class TestLoadSettings:
    def test_warns_when_ffmpeg_missing(self, caplog):
        with caplog.at_level(logging.WARNING, logger="groupbot.config"):
            s = load_settings(_env_file=None, ffmpeg_path="/nonexistent/ffmpeg")
        assert s.ffmpeg_path == "/nonexistent/ffmpeg"
        assert "ffmpeg not found" in caplog.text

    def test_warns_on_huge_input_limit(self, caplog):
        with caplog.at_level(logging.WARNING, logger="groupbot.config"):
            load_settings(_env_file=None, max_input_bytes=128 * 1024 * 1024)
        assert "max_input_bytes" in caplog.text

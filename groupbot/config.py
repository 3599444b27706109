"""groupbot configuration management."""

import logging
import os
import shutil
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings

logger = logging.getLogger("groupbot.config")

_PROJECT_ROOT = Path(__file__).resolve().parent.parent


def _default_workspace(*parts: str) -> str:
    return str(_PROJECT_ROOT.joinpath("workspace", *parts))


class BotSettings(BaseSettings):
    """Settings loaded from environment variables or .env file.

    Built once at startup and handed to every component; instances are frozen.
    """

    # Identity / commands
    command_prefix: str = Field(default="!", min_length=1, description="Command prefix")
    display_name: str = Field(default="groupbot", description="Bot display name")
    respond_to_self: bool = Field(
        default=False, description="Also handle commands sent from the bot's own account"
    )

    # Transport session (credential storage location)
    store_dir: str = Field(
        default_factory=lambda: os.path.expanduser("~/.groupbot"),
        description="Session / credential storage directory (console keeps its input history here)",
    )

    # Sticker transcoding
    ffmpeg_path: str = Field(default="ffmpeg", description="ffmpeg binary")
    scratch_dir: str = Field(
        default_factory=lambda: _default_workspace("temp"),
        description="Scratch directory for transcoder staging files",
    )
    canvas_size: int = Field(default=512, gt=0, description="Sticker canvas edge (px)")
    sticker_quality: int = Field(default=80, ge=1, le=100, description="Static WebP quality")
    animated_quality: int = Field(default=50, ge=1, le=100, description="Animated WebP quality")
    fps: int = Field(default=15, gt=0, description="Animated sticker frame rate")
    max_duration: float = Field(default=6.0, gt=0, description="Animated sticker max seconds")
    max_input_bytes: int = Field(default=15 * 1024 * 1024, gt=0, description="Max source media size")
    max_sticker_bytes: int = Field(default=100 * 1024, gt=0, description="Max static sticker size")
    max_animated_sticker_bytes: int = Field(
        default=500 * 1024, gt=0, description="Max animated sticker size"
    )
    transcode_timeout: float = Field(default=60.0, gt=0, description="ffmpeg timeout (seconds)")

    # Broadcast
    broadcast_placeholder: str = Field(
        default="Hey everyone 👋", description="Text used by tagall when no message is given"
    )

    # Console transport
    roster_file: Optional[str] = Field(
        default=None, description="JSON roster for the console transport's simulated group"
    )

    # Logging
    log_file: Optional[str] = Field(
        default_factory=lambda: os.path.expanduser("~/groupbot.log"),
        description="Log file path (empty disables file logging)",
    )

    model_config = {"env_prefix": "GROUPBOT_", "env_file": ".env", "extra": "ignore", "frozen": True}


def load_settings(**overrides) -> BotSettings:
    """Load settings from environment."""
    settings = BotSettings(**overrides)

    if not shutil.which(settings.ffmpeg_path) and not os.path.isfile(settings.ffmpeg_path):
        logger.warning(
            f"ffmpeg not found at '{settings.ffmpeg_path}' — sticker commands will fail. "
            "Install ffmpeg or set GROUPBOT_FFMPEG_PATH."
        )
    if settings.max_input_bytes > 64 * 1024 * 1024:
        logger.warning(
            f"max_input_bytes is {settings.max_input_bytes} bytes; large inputs keep ffmpeg busy "
            "and hold the whole file in memory."
        )

    return settings

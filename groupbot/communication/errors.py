"""Channel-agnostic error classification for user-facing messages."""

import asyncio

import httpx

from ..errors import (
    EmptyRoster,
    NoMediaFound,
    NotAGroup,
    NotAuthorized,
    OversizeInput,
    SendFailed,
    TranscodeFailed,
    TranscodeTimeout,
)


def _format_mib(size: int) -> str:
    return f"{size / (1024 * 1024):.0f} MB"


def classify_error(e: Exception) -> str:
    """Classify any exception into a user-friendly message.

    Works for every transport. Returns a short string suitable for
    sending directly to the chat the command came from.
    """
    # 1-3: tagall preconditions
    if isinstance(e, NotAGroup):
        return "This command only works in groups."
    if isinstance(e, NotAuthorized):
        return "Only group admins can use this command."
    if isinstance(e, EmptyRoster):
        return "Couldn't find any members in this group."

    # 4-6: sticker pipeline
    if isinstance(e, NoMediaFound):
        return "Couldn't download that media. Please try again."
    if isinstance(e, OversizeInput):
        return f"That file is too large for a sticker (max {_format_mib(e.limit)})."
    if isinstance(e, TranscodeTimeout):
        return "Sticker conversion took too long. Try a shorter clip."
    if isinstance(e, TranscodeFailed):
        return "Failed to convert that media into a sticker."

    # 7: delivery
    if isinstance(e, SendFailed):
        return "Couldn't send the message. Please try again."

    # 8: attachment fetched over HTTP
    if isinstance(e, httpx.HTTPStatusError):
        return f"Couldn't download that media (HTTP {e.response.status_code})."
    if isinstance(e, httpx.ConnectError):
        return "Cannot connect to the media host. Please try again later."
    if isinstance(e, (httpx.TimeoutException, asyncio.TimeoutError)):
        return "Request timed out. Please try again."

    # 9: Fallback, type name included for debugging
    type_name = type(e).__name__
    return f"Something went wrong ({type_name}). Check logs for details."

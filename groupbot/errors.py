"""groupbot exception hierarchy.

Every error a command can end in is a BotError subclass, so the dispatcher
can tell an expected outcome (reply to the user) from a programming error
(log with traceback).
"""


# ════════════════════════════════════════════════════════
# Command outcome exceptions. Classify by type,
# not by string matching.  dispatcher.py catches these.
# ════════════════════════════════════════════════════════

class BotError(Exception):
    """Base class for all expected command failures."""
    pass

class NotAGroup(BotError):
    """Command only makes sense in a group conversation."""
    pass

class NotAuthorized(BotError):
    """Sender lacks the role the command requires."""
    pass

class EmptyRoster(BotError):
    """Group roster came back with zero members."""
    pass

class NoMediaFound(BotError):
    """No usable attachment in the message or its quoted parent."""
    pass

class OversizeInput(BotError):
    """Source media exceeds the transcoder input ceiling."""

    def __init__(self, size: int, limit: int):
        super().__init__(f"input is {size} bytes, limit is {limit} bytes")
        self.size = size
        self.limit = limit

class TranscodeFailed(BotError):
    """ffmpeg exited non-zero or produced unusable output."""
    pass

class TranscodeTimeout(TranscodeFailed):
    """ffmpeg did not finish within the configured timeout."""
    pass

class SendFailed(BotError):
    """Transport refused or failed to deliver an outbound message."""
    pass

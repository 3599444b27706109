"""Communication sub-core — channel-agnostic message handling.

- Inbound: InboundMessage, content parts, text extraction
- Commands: prefix / verb / argument parsing
- Roster: group members and role tags
- Errors: exception → user-facing reply text
"""

from .inbound import (
    DocumentPart,
    ImagePart,
    InboundMessage,
    QuotedMessage,
    TextPart,
    VideoPart,
    extract_text,
)
from .commands import ParsedCommand, parse_command
from .roster import GroupRoster, Role, RosterMember
from .errors import classify_error

__all__ = [
    # Inbound
    "InboundMessage",
    "QuotedMessage",
    "TextPart",
    "ImagePart",
    "VideoPart",
    "DocumentPart",
    "extract_text",
    # Commands
    "ParsedCommand",
    "parse_command",
    # Roster
    "GroupRoster",
    "Role",
    "RosterMember",
    # Errors
    "classify_error",
]

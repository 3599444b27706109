"""Command line parsing — prefix check, verb and argument split."""

import re
from dataclasses import dataclass
from typing import Optional

_FIRST_WS_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class ParsedCommand:
    verb: str           # lowercased, "" for a bare prefix
    argument_text: str  # original casing, internal whitespace kept


def parse_command(text: str, prefix: str = "!") -> Optional[ParsedCommand]:
    """Split prefixed text into verb and argument text.

    Returns None when the text does not start with the prefix.
    A bare prefix ("!") parses to an empty verb, which no handler matches.

    Examples:
        parse_command("!tagall hello")  -> ParsedCommand("tagall", "hello")
        parse_command("!S")             -> ParsedCommand("s", "")
        parse_command("hello")          -> None
    """
    if not text or not prefix or not text.startswith(prefix):
        return None

    rest = text[len(prefix):].strip()
    parts = _FIRST_WS_RE.split(rest, maxsplit=1)
    verb = parts[0].lower()
    argument_text = parts[1] if len(parts) > 1 else ""
    return ParsedCommand(verb=verb, argument_text=argument_text)

"""groupbot — group chat command bot (stickers, mass mentions)."""

__version__ = "0.3.0"

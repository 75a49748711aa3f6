"""Bot package: the IRCBot facade and signal handling."""

from .core import IRCBot
from .signal_handler import SignalHandler

__all__ = ["IRCBot", "SignalHandler"]

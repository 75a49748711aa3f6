"""Command registry and routing."""

from .registry import (
    CommandHandler,
    CommandInvocation,
    CommandRegistry,
    RegisteredCommand,
)
from .router import MISSING_COMMAND, CommandRouter

__all__ = [
    "CommandHandler",
    "CommandInvocation",
    "CommandRegistry",
    "CommandRouter",
    "MISSING_COMMAND",
    "RegisteredCommand",
]

"""Registry of plugin command handlers keyed by (plugin, command)."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from ..access.levels import AccessLevel
from ..irc.parser import Hostmask
from ..logs.logger import logger

CHANNEL_SIGILS = ("#", "&", "!", "+")


@dataclass(frozen=True)
class CommandInvocation:
    user: Hostmask
    target: str
    plugin: str
    command: str
    args: list[str] = field(default_factory=list)

    @property
    def in_channel(self) -> bool:
        return self.target.startswith(CHANNEL_SIGILS)

    @property
    def reply_target(self) -> str:
        """Channel the command was said in, or the user for private messages."""
        return self.target if self.in_channel else self.user.nick


# Returns whether the handler recognised the invocation
CommandHandler = Callable[[CommandInvocation], Awaitable[bool] | bool]


@dataclass
class RegisteredCommand:
    plugin: str
    command: str
    handlers: list[CommandHandler] = field(default_factory=list)
    access: AccessLevel = AccessLevel.NOT_REGISTERED
    help: str = ""


class CommandRegistry:
    def __init__(self) -> None:
        self._commands: dict[tuple[str, str], RegisteredCommand] = {}

    def register(
        self,
        plugin: str,
        command: str,
        handler: CommandHandler,
        access: AccessLevel = AccessLevel.NOT_REGISTERED,
        help: str = "",
    ) -> RegisteredCommand:
        """Add ``handler`` for ``plugin command``.

        Several handlers may share a key; the strictest access level and the
        first non-empty help text win.
        """
        key = (plugin.lower(), command.lower())
        entry = self._commands.get(key)
        if entry is None:
            entry = RegisteredCommand(plugin=key[0], command=key[1], access=access, help=help)
            self._commands[key] = entry
        else:
            entry.access = max(entry.access, access)
            entry.help = entry.help or help
        entry.handlers.append(handler)
        logger.log_event(
            "commands", "registered", level=logging.DEBUG, plugin=key[0], command=key[1]
        )
        return entry

    def unregister_plugin(self, plugin: str) -> int:
        plugin = plugin.lower()
        keys = [key for key in self._commands if key[0] == plugin]
        for key in keys:
            del self._commands[key]
        return len(keys)

    def lookup(self, plugin: str, command: str) -> RegisteredCommand | None:
        return self._commands.get((plugin.lower(), command.lower()))

    def commands_for(self, plugin: str) -> list[RegisteredCommand]:
        plugin = plugin.lower()
        return sorted(
            (entry for key, entry in self._commands.items() if key[0] == plugin),
            key=lambda e: e.command,
        )

    async def call(self, invocation: CommandInvocation) -> bool:
        """Run every handler registered for the invocation's key.

        Returns True if at least one handler recognised the invocation.
        """
        entry = self.lookup(invocation.plugin, invocation.command)
        if entry is None:
            return False
        recognised = False
        for handler in list(entry.handlers):
            result = handler(invocation)
            if inspect.isawaitable(result):
                result = await result
            recognised = bool(result) or recognised
        return recognised

    def __len__(self) -> int:
        return len(self._commands)

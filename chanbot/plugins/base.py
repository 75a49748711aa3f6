"""Base class for bot plugins."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..access.levels import AccessLevel
from ..commands.registry import CommandHandler
from ..logs.logger import logger

if TYPE_CHECKING:  # pragma: no cover
    from ..bot.core import IRCBot


class Plugin:
    """A named bundle of commands plus optional persistent state.

    Subclasses set ``name`` and register their commands in ``on_enable``.
    Commands are removed from the registry automatically on disable.
    """

    name: str = ""

    def __init__(self, bot: IRCBot) -> None:
        if not self.name:
            raise ValueError(f"{type(self).__name__} must define a plugin name")
        self.bot = bot
        self.enabled = False

    def __repr__(self) -> str:
        return f"{type(self).__name__}[{self.name}]"

    def command(
        self,
        command: str,
        handler: CommandHandler,
        access: AccessLevel = AccessLevel.NOT_REGISTERED,
        help: str = "",
    ) -> None:
        self.bot.commands.register(self.name, command, handler, access=access, help=help)

    def enable(self) -> None:
        if self.enabled:
            return
        self.on_enable()
        self.enabled = True
        logger.log_event("plugins", "enabled", plugin=self.name)

    def disable(self) -> None:
        if not self.enabled:
            return
        try:
            self.save()
            self.on_disable()
        finally:
            self.bot.commands.unregister_plugin(self.name)
            self.enabled = False
        logger.log_event("plugins", "disabled", plugin=self.name)

    def save(self) -> None:
        """Persist plugin state. Called before reconnects and on disable."""
        logger.log_event("plugins", "saved", level=logging.DEBUG, plugin=self.name)

    def on_enable(self) -> None:
        pass

    def on_disable(self) -> None:
        pass

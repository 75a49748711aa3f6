"""Recognises commands addressed to the bot and dispatches them."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..access.levels import AccessLevel
from ..errors import TransportFault
from ..logs.logger import logger
from .registry import CommandInvocation, CommandRegistry

if TYPE_CHECKING:  # pragma: no cover
    from ..access.control import AccessControl
    from ..irc.parser import IRCMessage
    from ..irc.supervisor import ConnectionSupervisor

MISSING_COMMAND = "Missing command."


class CommandRouter:
    """Turns PRIVMSG/NOTICE lines into command invocations.

    Two addressing forms are recognised on the first word of the text:

    - ``<prefix><plugin> <command> [args...]`` (e.g. ``!core join #chan``)
    - ``<botnick>[:,] <plugin> <command> [args...]``
    """

    def __init__(
        self,
        client: ConnectionSupervisor,
        registry: CommandRegistry,
        access: AccessControl,
        prefix: str = "!",
    ) -> None:
        self.client = client
        self.registry = registry
        self.access = access
        self.prefix = prefix

    def parse(self, message: IRCMessage) -> CommandInvocation | str | None:
        """Build an invocation from ``message``.

        Returns None if the message is not addressed to the bot, or the
        MISSING_COMMAND text if it is but lacks the plugin/command pair.
        """
        if len(message.params) < 2:
            return None
        # Field layout: target, then the text split on single spaces
        fields = [message.param(0), *message.text.split(" ")]
        first = fields[1]
        if first.startswith(self.prefix):
            if len(fields) < 3:
                return MISSING_COMMAND
            plugin, command, args = first[len(self.prefix) :], fields[2], fields[3:]
        elif first.lower().startswith(self.client.session.nick.lower()):
            if len(fields) < 4:
                return MISSING_COMMAND
            plugin, command, args = fields[2], fields[3], fields[4:]
        else:
            return None
        if not plugin or not command:
            return MISSING_COMMAND
        return CommandInvocation(
            user=message.hostmask,
            target=fields[0],
            plugin=plugin,
            command=command,
            args=args,
        )

    async def handle(self, message: IRCMessage) -> bool:
        """Route one PRIVMSG/NOTICE. Returns True if a handler ran."""
        parsed = self.parse(message)
        if parsed is None:
            return False
        user = message.nick
        if isinstance(parsed, str):
            await self._notify(user, parsed)
            return False

        logger.log_event(
            "commands",
            "received",
            level=logging.DEBUG,
            bot=self.client.session.nick,
            channel=parsed.target if parsed.in_channel else None,
            sender=user,
            plugin=parsed.plugin,
            command=parsed.command,
        )
        unknown = f"Unknown command '{parsed.plugin} {parsed.command}'"
        entry = self.registry.lookup(parsed.plugin, parsed.command)
        if entry is None:
            await self._notify(user, unknown)
            return False

        if entry.access > AccessLevel.NOT_REGISTERED:
            level = await self.access.resolve(user)
            if level < entry.access:
                logger.log_event(
                    "commands",
                    "denied",
                    level=logging.INFO,
                    bot=self.client.session.nick,
                    sender=user,
                    plugin=entry.plugin,
                    command=entry.command,
                    required=entry.access.label,
                    actual=level.label,
                )
                await self._notify(
                    user,
                    f"Permission denied: '{parsed.plugin} {parsed.command}' "
                    f"requires {entry.access.label}.",
                )
                return False

        try:
            recognised = await self.registry.call(parsed)
        except TransportFault:
            raise
        except Exception as e:  # noqa: BLE001
            logger.log_event(
                "commands",
                "handler_error",
                level=logging.ERROR,
                bot=self.client.session.nick,
                plugin=parsed.plugin,
                command=parsed.command,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            return False
        if not recognised:
            await self._notify(user, unknown)
        return recognised

    async def _notify(self, nick: str, text: str) -> None:
        await self.client.send_notice(nick, text)

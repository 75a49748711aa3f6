"""Inbound message dispatch."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..logs.logger import logger
from .parser import IRCMessage

if TYPE_CHECKING:  # pragma: no cover
    from .supervisor import ConnectionSupervisor

RPL_WELCOME = "001"
RPL_ISUPPORT = "005"


class IRCDispatcher:
    def __init__(self, client: ConnectionSupervisor):
        self.client = client

    async def dispatch(self, message: IRCMessage) -> None:
        command = message.command
        if command == RPL_WELCOME:
            await self._handle_welcome(message)
        elif command == RPL_ISUPPORT:
            self._handle_isupport(message)
        elif command in ("PRIVMSG", "NOTICE"):
            self._handle_chat(message)
        elif command == "NICK":
            self._handle_nick(message)

    async def _handle_welcome(self, message: IRCMessage) -> None:
        logger.log_event(
            "irc", "welcome", bot=self.client.session.nick, server=message.sender
        )
        for channel in self.client.config.channels:
            await self.client.join_channel(channel)

    def _handle_isupport(self, message: IRCMessage) -> None:
        tokens = {p.split("=", 1)[0].upper() for p in message.params[1:]}
        if "WHOX" in tokens and not self.client.session.whox_supported:
            self.client.session.whox_supported = True
            logger.log_event("irc", "whox_supported", bot=self.client.session.nick)

    def _handle_nick(self, message: IRCMessage) -> None:
        # Server-confirmed nick change for ourselves (e.g. forced by services)
        session = self.client.session
        if message.nick.lower() == session.nick.lower() and message.text:
            session.nick = message.text
            logger.log_event("irc", "nick_changed", bot=session.nick)

    def _handle_chat(self, message: IRCMessage) -> None:
        logger.log_event(
            "irc",
            "chat",
            level=logging.DEBUG,
            bot=self.client.session.nick,
            channel=message.param(0),
            author=message.nick,
            verb=message.command,
            human=f"{message.nick}: {message.text}",
        )
        router = self.client.command_router
        if router is None:
            logger.log_event(
                "irc", "no_command_router", level=logging.DEBUG, bot=self.client.session.nick
            )
            return
        # Own task: handlers may wait on exchanges fed by the read loop
        self.client.spawn(router.handle(message), name=f"command:{message.nick}")

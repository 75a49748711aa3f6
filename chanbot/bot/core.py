"""IRCBot: wires the connection, access control, commands and plugins together."""

from __future__ import annotations

import asyncio
import logging
import os

from ..access.control import AccessControl
from ..access.levels import AccessLevel, ChannelAccess
from ..access.mute import MuteSet
from ..commands.registry import CommandRegistry
from ..commands.router import CommandRouter
from ..config.model import BotConfig
from ..config.store import ConfigStore
from ..config.watcher import ConfigWatcher
from ..constants import LIVENESS_TIMEOUT
from ..irc.supervisor import ConnectionSupervisor
from ..logs.logger import logger
from ..plugins.manager import PluginManager
from .signal_handler import SignalHandler


class IRCBot:  # pylint: disable=too-many-instance-attributes
    """One bot on one server; the API plugins program against.

    Attributes:
        store: Durable configuration backing the access lists.
        config: Configuration as of the last (re)load.
        muted: Targets whose outbound messages are dropped.
        supervisor: Connection state machine and read loop.
        access: Account tiers and channel membership queries.
        commands: Registry of plugin commands.
        router: Turns chat lines into command invocations.
        plugins: Loaded plugins.
    """

    def __init__(
        self,
        store: ConfigStore,
        *,
        liveness_timeout: float = LIVENESS_TIMEOUT,
    ) -> None:
        self.store = store
        self.config = store.config
        self.muted = MuteSet()
        self.supervisor = ConnectionSupervisor(
            self.config,
            self.muted,
            on_reconnect=self.save_plugins,
            liveness_timeout=liveness_timeout,
        )
        self.access = AccessControl(store, self.supervisor.resolver, self.supervisor)
        self.commands = CommandRegistry()
        self.router = CommandRouter(
            self.supervisor, self.commands, self.access, prefix=self.config.cmd_prefix
        )
        self.supervisor.set_command_router(self.router)
        self.plugins = PluginManager(self, self.config.plugins)
        self.signals = SignalHandler()
        self.watcher: ConfigWatcher | None = None

    def __repr__(self) -> str:
        return f"[{self.config.host}:{self.config.port}/{self.nick}]"

    # --- Lifecycle ---

    async def run(self, *, watch_config: bool = True, handle_signals: bool = True) -> str:
        """Load plugins, connect and serve until disconnected.

        Returns:
            The final disconnect reason.

        Raises:
            TransportFault: If the first connection attempt fails.
            MissingConfiguration: If a configured plugin cannot be loaded.
        """
        loop = asyncio.get_running_loop()
        self.plugins.load_all()
        self.plugins.enable_all()
        if watch_config:
            self.watcher = ConfigWatcher(self.store, self.on_config_reload, loop)
            self.watcher.start()
        if handle_signals:
            self.signals.install(
                loop, lambda: self.request_disconnect("Shutting down")
            )
        logger.log_event("app", "bot_start", bot=self.nick, server=self.config.host)
        try:
            return await self.supervisor.run()
        finally:
            logger.log_event("app", "bot_stop", bot=self.nick)
            self.plugins.disable_all()
            if self.watcher is not None:
                self.watcher.stop()
                self.watcher = None
            self.signals.uninstall()

    def request_disconnect(self, reason: str = "") -> bool:
        return self.supervisor.request_disconnect(reason)

    def request_reconnect(self, reason: str = "") -> bool:
        return self.supervisor.request_reconnect(reason)

    def save_plugins(self) -> None:
        self.plugins.save_all()

    def on_config_reload(self, config: BotConfig) -> None:
        """Apply a config file edited on disk: access lists and command prefix."""
        self.config = config
        self.supervisor.config = config
        self.router.prefix = config.cmd_prefix
        self.access.reload()
        logger.log_event("config", "applied", bot=self.nick, entries=len(self.access.records))

    # --- Plugin-facing API ---

    @property
    def nick(self) -> str:
        return self.supervisor.session.nick

    @property
    def plugin_data_dir(self) -> str:
        """Per-server data directory: ``<plugin_dir>/<host>.<port>.<nick>``."""
        return os.path.join(
            self.config.plugin_dir, f"{self.config.host}.{self.config.port}.{self.nick}"
        )

    async def send_raw(self, command: str) -> None:
        await self.supervisor.send_raw(command)

    async def send_message(self, target: str, text: str) -> int:
        return await self.supervisor.send_message(target, text)

    async def send_notice(self, target: str, text: str) -> int:
        return await self.supervisor.send_notice(target, text)

    async def join_channel(self, channel: str) -> None:
        await self.supervisor.join_channel(channel)

    async def leave_channel(self, channel: str, reason: str = "") -> None:
        await self.supervisor.leave_channel(channel, reason)

    async def change_nick(self, nick: str) -> None:
        await self.supervisor.change_nick(nick)

    async def get_access_level(self, name: str, is_nick: bool = True) -> AccessLevel:
        return await self.access.resolve(name, is_nick=is_nick)

    async def get_channel_access(self, nick: str, channel: str) -> ChannelAccess:
        return await self.access.channel_access(nick, channel)

    def update_access_level(self, account: str, level: AccessLevel) -> bool:
        return self.access.update(account, level)

    def toggle_mute(self, target: str) -> bool:
        muted = self.muted.toggle(target)
        logger.log_event(
            "outbound",
            "mute_toggled",
            level=logging.INFO,
            bot=self.nick,
            target=target,
            muted=muted,
        )
        return muted

    def is_muted(self, target: str) -> bool:
        return self.muted.is_muted(target)

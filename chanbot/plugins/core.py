"""Built-in ``core`` plugin: bot administration commands."""

from __future__ import annotations

from ..access.levels import AccessLevel
from ..commands.registry import CommandInvocation
from .base import Plugin


class CorePlugin(Plugin):
    name = "core"

    def on_enable(self) -> None:
        self.command("ping", self.ping, help="Check that the bot responds")
        self.command("help", self.help, help="help [plugin] - list commands")
        self.command("access", self.access, help="access [nick] - show access level")
        self.command(
            "mute", self.mute, AccessLevel.MOD, "mute [target] - toggle output to a target"
        )
        self.command("join", self.join, AccessLevel.ADMIN, "join <channel>")
        self.command("part", self.part, AccessLevel.ADMIN, "part [channel] [reason]")
        self.command("save", self.save_all, AccessLevel.ADMIN, "Save plugin data")
        self.command(
            "setaccess",
            self.set_access,
            AccessLevel.ADMIN,
            "setaccess <account> <level> - grant a level below your own",
        )
        self.command("nick", self.nick, AccessLevel.OWNER, "nick <newnick>")
        self.command("raw", self.raw, AccessLevel.OWNER, "raw <line> - send a raw line")
        self.command("reconnect", self.reconnect, AccessLevel.OWNER, "Reconnect to the server")
        self.command("quit", self.quit, AccessLevel.OWNER, "quit [reason] - disconnect")

    async def _reply(self, inv: CommandInvocation, text: str) -> None:
        await self.bot.send_notice(inv.user.nick, text)

    async def ping(self, inv: CommandInvocation) -> bool:
        await self.bot.send_message(inv.reply_target, f"{inv.user.nick}: pong")
        return True

    async def help(self, inv: CommandInvocation) -> bool:
        plugin = inv.args[0] if inv.args else self.name
        entries = self.bot.commands.commands_for(plugin)
        if not entries:
            await self._reply(inv, f"No commands for plugin '{plugin}'")
            return True
        for entry in entries:
            line = f"{self.bot.config.cmd_prefix}{entry.plugin} {entry.command}"
            if entry.access > AccessLevel.NOT_REGISTERED:
                line += f" [{entry.access.label}]"
            if entry.help:
                line += f": {entry.help}"
            await self._reply(inv, line)
        return True

    async def access(self, inv: CommandInvocation) -> bool:
        nick = inv.args[0] if inv.args else inv.user.nick
        level = await self.bot.get_access_level(nick)
        text = f"{nick}: {level.label}"
        if inv.in_channel:
            chan = await self.bot.get_channel_access(nick, inv.target)
            text += f" (channel {inv.target}: {chan.value})"
        await self._reply(inv, text)
        return True

    async def mute(self, inv: CommandInvocation) -> bool:
        target = inv.args[0] if inv.args else inv.reply_target
        muted = self.bot.toggle_mute(target)
        await self._reply(inv, f"{target} is now {'muted' if muted else 'unmuted'}")
        return True

    async def join(self, inv: CommandInvocation) -> bool:
        if not inv.args:
            await self._reply(inv, "Usage: join <channel>")
            return True
        await self.bot.join_channel(inv.args[0])
        return True

    async def part(self, inv: CommandInvocation) -> bool:
        if inv.args:
            channel, reason = inv.args[0], " ".join(inv.args[1:])
        elif inv.in_channel:
            channel, reason = inv.target, ""
        else:
            await self._reply(inv, "Usage: part <channel> [reason]")
            return True
        await self.bot.leave_channel(channel, reason)
        return True

    async def save_all(self, inv: CommandInvocation) -> bool:
        self.bot.save_plugins()
        await self._reply(inv, "Plugin data saved")
        return True

    async def set_access(self, inv: CommandInvocation) -> bool:
        if len(inv.args) < 2:
            await self._reply(inv, "Usage: setaccess <account> <level>")
            return True
        account = inv.args[0].lower()
        try:
            level = AccessLevel.parse(inv.args[1])
        except ValueError as e:
            await self._reply(inv, str(e))
            return True

        caller = await self.bot.get_access_level(inv.user.nick)
        current = self.bot.access.level_of(account)
        # Owners may do anything; everyone else only manages tiers below their own
        if caller < AccessLevel.OWNER and (level >= caller or current >= caller):
            await self._reply(inv, f"Permission denied: cannot set {account} to {level.label}")
            return True
        if not self.bot.update_access_level(account, level):
            await self._reply(inv, f"Cannot store level {level.label}")
            return True
        await self._reply(inv, f"{account} is now {level.label}")
        return True

    async def nick(self, inv: CommandInvocation) -> bool:
        if not inv.args:
            await self._reply(inv, "Usage: nick <newnick>")
            return True
        await self.bot.change_nick(inv.args[0])
        return True

    async def raw(self, inv: CommandInvocation) -> bool:
        if not inv.args:
            await self._reply(inv, "Usage: raw <line>")
            return True
        await self.bot.send_raw(" ".join(inv.args))
        return True

    async def reconnect(self, inv: CommandInvocation) -> bool:
        self.bot.request_reconnect(f"Reconnect requested by {inv.user.nick}")
        return True

    async def quit(self, inv: CommandInvocation) -> bool:
        reason = " ".join(inv.args) or f"Requested by {inv.user.nick}"
        self.bot.request_disconnect(reason)
        return True

"""Account privilege table and channel membership queries."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Protocol

from ..errors import TransportFault
from ..logs.logger import logger
from .levels import ACCESS_CONFIG_KEYS, MODE_PREFIXES, AccessLevel, ChannelAccess

if TYPE_CHECKING:  # pragma: no cover
    from ..irc.parser import IRCMessage
    from ..irc.resolver import AccountResolver
    from ..irc.supervisor import ConnectionSupervisor

RPL_NAMREPLY = "353"
RPL_ENDOFNAMES = "366"


class AccessStore(Protocol):
    """Durable lists backing the privilege table (the config file)."""

    def get_list(self, key: str) -> list[str]: ...

    def add_to_list(self, key: str, value: str) -> bool: ...

    def remove_from_list(self, key: str, value: str) -> bool: ...


def build_access_table(lists: Mapping[str, list[str]]) -> dict[str, AccessLevel]:
    """Build the account -> tier table from config lists; higher tiers win."""
    table: dict[str, AccessLevel] = {}
    for level in sorted(ACCESS_CONFIG_KEYS):
        for name in lists.get(ACCESS_CONFIG_KEYS[level], []):
            table[name.lower()] = level
    return table


class AccessControl:
    """Maps accounts to bot tiers and answers channel-level questions.

    The table only ever holds MOD and above: NORMAL is the implicit default
    and NOT_REGISTERED follows from a failed identity lookup.
    """

    def __init__(
        self,
        store: AccessStore,
        resolver: AccountResolver | None = None,
        client: ConnectionSupervisor | None = None,
    ) -> None:
        self.store = store
        self.resolver = resolver
        self.client = client
        self.records: dict[str, AccessLevel] = {}
        self.reload()

    def reload(self) -> None:
        """Rebuild the table from the durable lists."""
        self.records = build_access_table(
            {key: self.store.get_list(key) for key in ACCESS_CONFIG_KEYS.values()}
        )
        logger.log_event(
            "access", "table_loaded", level=logging.DEBUG, entries=len(self.records)
        )

    def level_of(self, account: str) -> AccessLevel:
        return self.records.get(account.lower(), AccessLevel.NORMAL)

    async def resolve(self, name: str, is_nick: bool = True) -> AccessLevel:
        """Return the tier of ``name``.

        With ``is_nick`` the nick is first mapped to its account; users who are
        not logged in (or whose lookup failed) are NOT_REGISTERED.
        """
        account = name
        if is_nick:
            if self.resolver is None:
                raise RuntimeError("AccessControl has no account resolver")
            lookup = await self.resolver.resolve(name)
            if not lookup.ok:
                return AccessLevel.NOT_REGISTERED
            account = lookup.sentinel
        level = self.level_of(account)
        logger.log_event(
            "access", "checked", level=logging.DEBUG, account=account, tier=level.label
        )
        return level

    def update(self, account: str, level: AccessLevel) -> bool:
        """Set the tier of ``account`` and sync the durable lists.

        Returns False (and changes nothing) for NOT_REGISTERED, which cannot
        be stored.
        """
        if level is AccessLevel.NOT_REGISTERED:
            logger.log_event(
                "access", "update_rejected", level=logging.WARNING, account=account
            )
            return False
        account = account.lower()
        old = self.records.get(account, AccessLevel.NORMAL)
        if old is level:
            return True
        # Disk first: a failed save leaves the table as it was
        if level.config_key:
            self.store.add_to_list(level.config_key, account)
        if old.config_key:
            self.store.remove_from_list(old.config_key, account)
        if level is AccessLevel.NORMAL:
            self.records.pop(account, None)
        else:
            self.records[account] = level
        logger.log_event("access", "updated", account=account, old=old.label, new=level.label)
        return True

    async def channel_access(self, nick: str, channel: str) -> ChannelAccess:
        """Look up ``nick``'s membership prefix in ``channel`` via NAMES."""
        if self.client is None:
            raise RuntimeError("AccessControl has no connection")
        subject = nick.lower()
        chan = channel.lower()

        def claims(message: IRCMessage) -> bool:
            if message.command == RPL_NAMREPLY:
                return message.param(len(message.params) - 2).lower() == chan
            return message.command == RPL_ENDOFNAMES and message.param(1).lower() == chan

        try:
            async with self.client.exchanges.open("names", claims) as exchange:
                await self.client.send_raw(f"NAMES {channel}")
                while True:
                    message = await exchange.next()
                    if message.command == RPL_ENDOFNAMES:
                        return ChannelAccess.NONE
                    found = _find_member(message.text, subject)
                    if found is not None:
                        return found
        except (TransportFault, TimeoutError) as e:
            logger.log_event(
                "access",
                "names_failed",
                level=logging.WARNING,
                channel=channel,
                error=str(e) or type(e).__name__,
            )
            return ChannelAccess.NONE


def _find_member(names: str, subject: str) -> ChannelAccess | None:
    """Scan a NAMES list for ``subject``; None if it is not in this batch."""
    for entry in names.split(" "):
        bare = entry.lstrip("".join(MODE_PREFIXES))
        if bare.lower() != subject:
            continue
        prefix = entry[: len(entry) - len(bare)]
        if not prefix:
            return ChannelAccess.NONE
        return MODE_PREFIXES[prefix[0]]
    return None

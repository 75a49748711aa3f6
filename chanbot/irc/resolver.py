"""Account identity resolution over WHOX, or WHOIS plus an identity service."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING, Protocol

from ..errors import TransportFault
from ..logs.logger import logger
from .exchange import PendingExchange
from .parser import IRCMessage

if TYPE_CHECKING:  # pragma: no cover
    from .supervisor import ConnectionSupervisor

UNRESOLVED_SENTINEL = "0"

RPL_WHOISREGNICK = "307"
RPL_ENDOFWHO = "315"
RPL_ENDOFWHOIS = "318"
RPL_WHOISACCOUNT = "330"
RPL_WHOSPCRPL = "354"

_FORMATTING_CODES = re.compile(r"[\x02\x0f\x16\x1d\x1f]|\x03\d{0,2}(?:,\d{1,2})?")


class LookupStatus(Enum):
    RESOLVED = auto()
    UNRESOLVED = auto()
    FAULT = auto()


@dataclass(frozen=True, slots=True)
class AccountLookup:
    """Outcome of one account query.

    UNRESOLVED means the server answered and the user is not logged in.
    FAULT means the query could not be completed (disconnect, timeout).
    """

    status: LookupStatus
    account: str | None = None
    reason: str | None = None

    @classmethod
    def resolved(cls, account: str) -> AccountLookup:
        account = account.strip().lower()
        if not account or account == UNRESOLVED_SENTINEL:
            return cls.unresolved()
        return cls(LookupStatus.RESOLVED, account=account)

    @classmethod
    def unresolved(cls) -> AccountLookup:
        return cls(LookupStatus.UNRESOLVED)

    @classmethod
    def fault(cls, reason: str) -> AccountLookup:
        return cls(LookupStatus.FAULT, reason=reason)

    @property
    def ok(self) -> bool:
        return self.status is LookupStatus.RESOLVED

    @property
    def sentinel(self) -> str:
        """Account name, or ``"0"`` when the user is not (known to be) logged in."""
        return self.account if self.account else UNRESOLVED_SENTINEL


class IdentityServiceAdapter(Protocol):
    """Talks to a services bot that maps registered nicks to accounts."""

    service: str

    def query(self, nick: str) -> str: ...

    def claims(self, message: IRCMessage) -> bool: ...

    def interpret(self, text: str) -> AccountLookup | None:
        """Return a final lookup, or None to keep waiting."""
        ...


class NickServAdapter:
    """Parses Atheme/Anope style ``INFO`` replies."""

    TERMINAL_PHRASES = (
        "invalid command",
        "*** end of info ***",
        "isn't registered",
        "is not registered",
        "for more verbose information",
    )
    ACCOUNT_PHRASE = "information on"
    TRAILING_ARTIFACT = "):"

    def __init__(self, service: str = "NickServ") -> None:
        self.service = service

    def query(self, nick: str) -> str:
        return f"INFO {nick}"

    def claims(self, message: IRCMessage) -> bool:
        return (
            message.command in ("NOTICE", "PRIVMSG")
            and message.nick.lower() == self.service.lower()
        )

    def interpret(self, text: str) -> AccountLookup | None:
        text = _FORMATTING_CODES.sub("", text).lower()
        if any(phrase in text for phrase in self.TERMINAL_PHRASES):
            return AccountLookup.unresolved()
        if self.ACCOUNT_PHRASE in text:
            # "Information on Foo (account foo):" -> "foo"
            account = text.split(" ")[-1]
            account = account.removesuffix(self.TRAILING_ARTIFACT)
            return AccountLookup.resolved(account)
        return None


class AccountResolver:
    def __init__(
        self,
        client: ConnectionSupervisor,
        identity_service: IdentityServiceAdapter | None = None,
    ) -> None:
        self.client = client
        self.identity_service = identity_service or NickServAdapter()

    async def resolve(self, nick: str) -> AccountLookup:
        """Map ``nick`` to its services account.

        Never raises for protocol or transport problems; those come back as
        a FAULT lookup.
        """
        use_whox = self.client.session.whox_supported
        try:
            if use_whox:
                lookup = await self._resolve_whox(nick)
            else:
                lookup = await self._resolve_whois(nick)
        except TransportFault as e:
            lookup = AccountLookup.fault(str(e))
        except TimeoutError:
            lookup = AccountLookup.fault("exchange timed out")
        logger.log_event(
            "resolver",
            "result",
            level=logging.DEBUG if lookup.status is not LookupStatus.FAULT else logging.WARNING,
            bot=self.client.session.nick,
            nick=nick,
            status=lookup.status.name,
            account=lookup.account,
            reason=lookup.reason,
            protocol="whox" if use_whox else "whois",
        )
        return lookup

    async def _resolve_whox(self, nick: str) -> AccountLookup:
        subject = nick.lower()

        def claims(message: IRCMessage) -> bool:
            if message.command == RPL_WHOSPCRPL:
                return True
            return message.command == RPL_ENDOFWHO and message.param(1).lower() == subject

        async with self.client.exchanges.open("whox", claims) as exchange:
            await self.client.send_raw(f"WHO {nick} %a")
            while True:
                message = await exchange.next()
                if message.command == RPL_WHOSPCRPL:
                    if len(message.params) < 2:
                        continue
                    return AccountLookup.resolved(message.param(1))
                return AccountLookup.unresolved()

    async def _resolve_whois(self, nick: str) -> AccountLookup:
        subject = nick.lower()

        def claims(message: IRCMessage) -> bool:
            return (
                message.command in (RPL_WHOISREGNICK, RPL_WHOISACCOUNT, RPL_ENDOFWHOIS)
                and message.param(1).lower() == subject
            )

        async with self.client.exchanges.open("whois", claims) as exchange:
            await self.client.send_raw(f"WHOIS {nick}")
            while True:
                message = await exchange.next()
                if message.command == RPL_WHOISREGNICK:
                    text = message.text.lower()
                    if "is a registered nick" in text:
                        return await self._resolve_via_service(exchange, nick)
                    if "has identified for this nick" in text:
                        return AccountLookup.resolved(message.param(1))
                elif message.command == RPL_WHOISACCOUNT:
                    if len(message.params) >= 3:
                        return AccountLookup.resolved(message.param(2))
                else:
                    return AccountLookup.unresolved()

    async def _resolve_via_service(
        self, exchange: PendingExchange, nick: str
    ) -> AccountLookup:
        service = self.identity_service
        # Remaining WHOIS replies now flow to normal dispatch
        exchange.claims = service.claims
        await self.client.send_raw(f"PRIVMSG {service.service} :{service.query(nick)}")
        while True:
            message = await exchange.next()
            verdict = service.interpret(message.text)
            if verdict is not None:
                return verdict

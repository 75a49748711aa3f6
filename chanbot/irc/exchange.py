"""Single in-flight query/response exchange layered over the shared read stream.

The read task offers every parsed message to the open exchange first. Messages
the exchange claims are queued for its waiter; all others continue to normal
dispatch, so unrelated traffic keeps flowing while a query is pending.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

from ..constants import EXCHANGE_TIMEOUT
from ..errors import ExchangeAborted
from ..logs.logger import logger
from .parser import IRCMessage

ClaimPredicate = Callable[[IRCMessage], bool]


class PendingExchange:
    def __init__(self, name: str, claims: ClaimPredicate, timeout: float) -> None:
        self.name = name
        self.claims = claims
        self.timeout = timeout
        self._queue: asyncio.Queue[IRCMessage | ExchangeAborted] = asyncio.Queue()
        self._aborted = False

    def offer(self, message: IRCMessage) -> bool:
        if self._aborted or not self.claims(message):
            return False
        self._queue.put_nowait(message)
        return True

    def abort(self, reason: str) -> None:
        if self._aborted:
            return
        self._aborted = True
        self._queue.put_nowait(ExchangeAborted(reason, data={"exchange": self.name}))

    async def next(self) -> IRCMessage:
        """Wait for the next claimed message.

        Raises:
            ExchangeAborted: If the connection was torn down meanwhile.
            TimeoutError: If nothing arrives within the exchange timeout.
        """
        item = await asyncio.wait_for(self._queue.get(), timeout=self.timeout)
        if isinstance(item, ExchangeAborted):
            raise item
        return item


class ExchangeSlot:
    """Holds at most one PendingExchange; later callers queue on the lock."""

    def __init__(self, timeout: float = EXCHANGE_TIMEOUT) -> None:
        self.timeout = timeout
        self._lock = asyncio.Lock()
        self.current: PendingExchange | None = None

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    @asynccontextmanager
    async def open(self, name: str, claims: ClaimPredicate) -> AsyncIterator[PendingExchange]:
        async with self._lock:
            exchange = PendingExchange(name, claims, self.timeout)
            self.current = exchange
            logger.log_event("exchange", "open", level=logging.DEBUG, exchange=name)
            try:
                yield exchange
            finally:
                self.current = None
                logger.log_event("exchange", "close", level=logging.DEBUG, exchange=name)

    def offer(self, message: IRCMessage) -> bool:
        exchange = self.current
        return exchange is not None and exchange.offer(message)

    def abort(self, reason: str) -> None:
        exchange = self.current
        if exchange is not None:
            logger.log_event(
                "exchange", "aborted", level=logging.DEBUG, exchange=exchange.name, reason=reason
            )
            exchange.abort(reason)

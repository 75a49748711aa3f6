"""Outbound PRIVMSG/NOTICE path: mute suppression and length fragmentation."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterator

from ..access.mute import MuteSet
from ..constants import MAX_MESSAGE_LENGTH, MESSAGE_SEGMENT_LENGTH
from ..logs.logger import logger


def fragment_text(
    text: str,
    limit: int = MAX_MESSAGE_LENGTH,
    segment: int = MESSAGE_SEGMENT_LENGTH,
) -> Iterator[str]:
    """Yield ``text`` in order: ``segment``-sized pieces while longer than ``limit``.

    An empty remainder after the last full piece is not yielded.
    """
    while len(text) > limit:
        yield text[:segment]
        text = text[segment:]
    if text:
        yield text


class Outbox:
    def __init__(self, send_raw: Callable[[str], Awaitable[None]], muted: MuteSet) -> None:
        self._send_raw = send_raw
        self.muted = muted

    async def message(self, target: str, text: str) -> int:
        return await self._deliver("PRIVMSG", target, text)

    async def notice(self, target: str, text: str) -> int:
        return await self._deliver("NOTICE", target, text)

    async def _deliver(self, verb: str, target: str, text: str) -> int:
        """Send ``text`` to ``target``; returns the number of lines written."""
        if target in self.muted:
            logger.log_event(
                "outbound", "muted_drop", level=logging.DEBUG, target=target, verb=verb
            )
            return 0
        sent = 0
        for piece in fragment_text(text):
            await self._send_raw(f"{verb} {target} :{piece}")
            sent += 1
        return sent

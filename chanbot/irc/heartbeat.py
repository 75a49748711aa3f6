"""Liveness watchdog for the server connection."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING

from ..constants import LIVENESS_TIMEOUT
from ..logs.logger import logger

if TYPE_CHECKING:  # pragma: no cover
    from .supervisor import ConnectionSupervisor


class LivenessWatchdog:
    """Requests a reconnect when a whole check interval passes without inbound traffic.

    Runs every ``timeout / 2`` seconds. It never touches the transport itself:
    it only posts a reconnect request to the supervisor's control path.
    """

    def __init__(self, client: ConnectionSupervisor, timeout: float = LIVENESS_TIMEOUT):
        self.client = client
        self.timeout = timeout
        self._task: asyncio.Task[None] | None = None

    @property
    def interval(self) -> float:
        return self.timeout / 2

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        self.stop()
        # Traffic must be seen within the first interval too
        self.client.session.activity_seen = False
        self._task = asyncio.create_task(self._loop(), name="liveness-watchdog")

    def stop(self) -> None:
        task = self._task
        self._task = None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            if self.check():
                return

    def check(self) -> bool:
        """Run one liveness check. Returns True if a reconnect was requested."""
        session = self.client.session
        if session.activity_seen:
            session.activity_seen = False
            logger.log_event(
                "irc", "liveness_ok", level=logging.DEBUG, bot=session.nick
            )
            return False
        silent_for = time.time() - session.last_activity
        logger.log_event(
            "irc",
            "liveness_timeout",
            level=logging.WARNING,
            bot=session.nick,
            silent_for=round(silent_for, 1),
        )
        self.client.request_reconnect(f"Ping timeout: {int(silent_for)} seconds")
        return True

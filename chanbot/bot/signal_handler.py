"""SIGINT/SIGTERM handling for the running bot."""

import asyncio
import logging
import signal
from collections.abc import Callable

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class SignalHandler:
    """Turns the first termination signal into a graceful disconnect.

    A second signal falls through to the default handler, so a stuck
    shutdown can still be interrupted from the terminal.
    """

    def __init__(self) -> None:
        self.triggered = False
        self._loop: asyncio.AbstractEventLoop | None = None

    def install(  # pragma: no cover
        self, loop: asyncio.AbstractEventLoop, on_shutdown: Callable[[], object]
    ) -> None:
        def _on_signal(signum: signal.Signals) -> None:
            self.triggered = True
            logging.warning(f"🛑 {signum.name} received, disconnecting")
            self.uninstall()
            on_shutdown()

        for signum in SHUTDOWN_SIGNALS:
            loop.add_signal_handler(signum, _on_signal, signum)
        self._loop = loop

    def uninstall(self) -> None:  # pragma: no cover
        loop, self._loop = self._loop, None
        if loop is None:
            return
        for signum in SHUTDOWN_SIGNALS:
            loop.remove_signal_handler(signum)

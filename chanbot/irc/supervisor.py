"""Connection lifecycle for one IRC server connection."""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import logging
from collections.abc import Awaitable, Callable, Coroutine
from typing import TYPE_CHECKING, Any

from ..access.mute import MuteSet
from ..constants import (
    CONNECT_TIMEOUT,
    LIVENESS_TIMEOUT,
    WELCOME_MARKER_COUNT,
    WELCOME_READ_TIMEOUT,
)
from ..errors import MalformedLine, TransportFault
from ..errors.handling import log_error, retry_transport
from ..logs.logger import logger
from .codec import decode_line, encode_line
from .dispatcher import IRCDispatcher
from .exchange import ExchangeSlot
from .heartbeat import LivenessWatchdog
from .models import ConnectionState, ControlKind, ControlSignal, Session
from .outbound import Outbox
from .parser import parse_message
from .resolver import AccountResolver

if TYPE_CHECKING:  # pragma: no cover
    from ..commands.router import CommandRouter
    from ..config.model import BotConfig

WELCOME_MARKER = "***"


def _is_ping(line: str) -> bool:
    return line.split(" ", 1)[0] == "PING"


class ConnectionSupervisor:  # pylint: disable=too-many-instance-attributes
    """Owns the connection state machine, the read task and the control path.

    Everything that wants the connection torn down or re-established (read
    errors, the liveness watchdog, plugins, signal handlers) posts a
    ControlSignal; only ``run()`` acts on them.
    """

    def __init__(
        self,
        config: BotConfig,
        muted: MuteSet | None = None,
        *,
        on_reconnect: Callable[[], Awaitable[None] | None] | None = None,
        liveness_timeout: float = LIVENESS_TIMEOUT,
    ) -> None:
        self.config = config
        self.session = Session(nick=config.nick)
        self.state = ConnectionState.DISCONNECTED
        self.muted = muted if muted is not None else MuteSet()
        self.outbox = Outbox(self.send_raw, self.muted)
        self.exchanges = ExchangeSlot()
        self.dispatcher = IRCDispatcher(self)
        self.watchdog = LivenessWatchdog(self, liveness_timeout)
        self.resolver = AccountResolver(self)
        self.command_router: CommandRouter | None = None
        self.on_reconnect = on_reconnect
        self.terminated = False
        self.disconnect_reason = ""
        self._control: asyncio.Queue[ControlSignal] = asyncio.Queue()
        self._reconnect_pending = False
        self._disconnect_pending = False
        self._reconnect_task: asyncio.Task[None] | None = None
        self._reader_task: asyncio.Task[None] | None = None
        self._send_lock = asyncio.Lock()
        self._tasks: set[asyncio.Task[Any]] = set()

    def __repr__(self) -> str:
        return f"{type(self).__name__}[{self.config.host}:{self.config.port}]"

    def _set_state(self, new_state: ConnectionState) -> None:
        if self.state != new_state:
            logger.log_event(
                "irc",
                "state_change",
                level=logging.DEBUG,
                bot=self.session.nick,
                old_state=self.state.name,
                new_state=new_state.name,
            )
            self.state = new_state

    def set_command_router(self, router: CommandRouter) -> None:
        self.command_router = router

    # --- Lifecycle ---

    async def run(self) -> str:
        """Connect, then serve control signals until a terminal disconnect.

        Returns:
            The reason given for the final disconnect.

        Raises:
            TransportFault: If the initial connection cannot be established.
        """
        await self.connect()
        while not self.terminated:
            signal = await self._control.get()
            await self.process_signal(signal)
        return self.disconnect_reason

    async def process_signal(self, signal: ControlSignal) -> None:
        if signal.kind is ControlKind.RECONNECT:
            # A disconnect queued behind this reconnect takes precedence
            if self.terminated or self._disconnect_pending:
                self._reconnect_pending = False
                return
            task = asyncio.create_task(self._reconnect(signal.reason), name="irc-reconnect")
            self._reconnect_task = task
            try:
                # wait() so a cancelled reconnect does not cancel us
                await asyncio.wait({task})
            finally:
                self._reconnect_task = None
                if not task.done():
                    task.cancel()
        else:
            await self._teardown(signal.reason, terminal=True)

    async def connect(self) -> None:
        """Open the stream, wait for the banner, register, start reading.

        Raises:
            TransportFault: If the server cannot be reached or the stream
                fails before registration completes.
        """
        host, port = self.config.host, self.config.port
        self._set_state(ConnectionState.CONNECTING)
        logger.log_event("irc", "connect_start", bot=self.session.nick, server=host, port=port)
        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_connection(host, port), timeout=CONNECT_TIMEOUT
            )
        except (OSError, TimeoutError) as e:
            self._set_state(ConnectionState.DISCONNECTED)
            raise TransportFault(
                f"Unable to connect to {host}:{port}: {str(e) or type(e).__name__}",
                data={"host": host, "port": port},
            ) from e

        self.session.attach(reader, writer)
        self._set_state(ConnectionState.AWAITING_WELCOME)
        try:
            await self._await_welcome()
            await self._register()
        except TransportFault:
            self.watchdog.stop()
            await self._close_transport()
            self._set_state(ConnectionState.DISCONNECTED)
            raise
        self._reader_task = asyncio.create_task(self._read_loop(), name="irc-reader")
        self._set_state(ConnectionState.RUNNING)
        logger.log_event("irc", "connect_success", bot=self.session.nick, server=host, port=port)

    async def _await_welcome(self) -> None:
        """Best-effort wait for the server banner.

        Proceeds after WELCOME_MARKER_COUNT lines containing the marker, or on
        the first read that times out.
        """
        reader = self.session.reader
        assert reader is not None
        markers = 0
        while markers < WELCOME_MARKER_COUNT:
            try:
                raw = await asyncio.wait_for(reader.readline(), timeout=WELCOME_READ_TIMEOUT)
            except TimeoutError:
                break
            except ValueError:
                continue
            except OSError as e:
                raise TransportFault(f"Read error during welcome: {e}") from e
            if not raw:
                raise TransportFault("Connection closed during welcome")
            line = decode_line(raw)
            self.session.mark_activity()
            logger.log_event("irc", "recv", level=logging.DEBUG, bot=self.session.nick, raw=line)
            if _is_ping(line):
                await self._pong(line)
            elif WELCOME_MARKER in line:
                markers += 1
        logger.log_event(
            "irc", "welcome_wait_done", level=logging.DEBUG, bot=self.session.nick, markers=markers
        )

    async def _register(self) -> None:
        await self.change_nick(self.session.nick)
        await self.send_raw(f"USER {self.config.user} * * :{self.config.desc}")
        self._set_state(ConnectionState.REGISTERED)
        self.watchdog.start()

    async def _read_loop(self) -> None:
        reader = self.session.reader
        while reader is not None and not self.terminated:
            try:
                raw = await reader.readline()
            except ValueError:
                # Over-long line; the stream skips past it
                logger.log_event(
                    "irc", "line_too_long", level=logging.WARNING, bot=self.session.nick
                )
                continue
            except OSError as e:
                log_error("Read error in main loop", e)
                self._report_fault(f"Read error: {e}")
                return
            if not raw:
                self._report_fault("Connection closed by server")
                return
            try:
                await self.handle_line(decode_line(raw))
            except TransportFault:
                return
            except Exception as e:  # noqa: BLE001
                log_error("Unexpected error while handling a line", e)
                self._report_fault(f"Unknown error: {e}")
                return

    async def handle_line(self, line: str) -> None:
        """Process one decoded inbound line."""
        self.session.mark_activity()
        logger.log_event("irc", "recv", level=logging.DEBUG, bot=self.session.nick, raw=line)
        if _is_ping(line):
            await self._pong(line)
            return
        try:
            message = parse_message(line)
        except MalformedLine as e:
            logger.log_event(
                "irc", "malformed_line", level=logging.DEBUG, bot=self.session.nick, raw=e.line
            )
            return
        if self.exchanges.offer(message):
            return
        await self.dispatcher.dispatch(message)

    async def _pong(self, line: str) -> None:
        _, sep, token = line.partition(":")
        if not sep:
            token = line.partition(" ")[2]
        await self.send_raw(f"PONG :{token}")

    # --- Control path requests ---

    def request_reconnect(self, reason: str) -> bool:
        """Ask the control path to reconnect. Duplicate requests are ignored."""
        if self.terminated or self._reconnect_pending or self._disconnect_pending:
            logger.log_event(
                "irc", "reconnect_request_ignored", level=logging.DEBUG, bot=self.session.nick
            )
            return False
        self._reconnect_pending = True
        self._control.put_nowait(ControlSignal(ControlKind.RECONNECT, reason))
        return True

    def request_disconnect(self, reason: str = "") -> bool:
        """Ask the control path to disconnect for good."""
        if self.terminated or self._disconnect_pending:
            return False
        self._disconnect_pending = True
        reconnect = self._reconnect_task
        if reconnect is not None and not reconnect.done():
            reconnect.cancel()
        self._control.put_nowait(ControlSignal(ControlKind.DISCONNECT, reason))
        return True

    def _report_fault(self, reason: str) -> None:
        # Faults while connecting are raised to connect()'s caller instead
        if self.state is ConnectionState.RUNNING:
            self.request_disconnect(reason)

    # --- Teardown / reconnect (control path only) ---

    async def _reconnect(self, reason: str) -> None:
        logger.log_event("irc", "reconnecting", level=logging.WARNING, bot=self.session.nick, reason=reason)
        try:
            if self.on_reconnect is not None:
                result = self.on_reconnect()
                if inspect.isawaitable(result):
                    await result
        except Exception as e:  # noqa: BLE001
            log_error("Flushing plugin state before reconnect failed", e)
        try:
            await self._teardown(reason, terminal=False)
            await retry_transport(self.connect, "reconnect")
        except TransportFault as e:
            logger.log_event(
                "irc", "reconnect_failed", level=logging.ERROR, bot=self.session.nick, error=str(e)
            )
            self.terminated = True
            self.disconnect_reason = f"Unable to reconnect: {e}"
            await self._cancel_tasks()
            self._set_state(ConnectionState.DISCONNECTED)
        else:
            logger.log_event("irc", "reconnect_success", bot=self.session.nick)
        finally:
            self._reconnect_pending = False

    async def _teardown(self, reason: str, *, terminal: bool) -> None:
        if terminal:
            self.terminated = True
            self.disconnect_reason = reason
        self._set_state(ConnectionState.DISCONNECTING)
        logger.log_event(
            "irc",
            "disconnecting",
            level=logging.WARNING,
            bot=self.session.nick,
            reason=reason,
            terminal=terminal,
        )
        self.watchdog.stop()
        await self._cancel_reader()
        self.exchanges.abort(reason or "Disconnected")
        try:
            if self.session.writer is not None:
                await self.send_raw(f"QUIT :{reason}")
        except TransportFault as e:
            logger.log_event(
                "irc", "quit_failed", level=logging.WARNING, bot=self.session.nick, error=str(e)
            )
        finally:
            await self._close_transport()
        if terminal:
            await self._cancel_tasks()
        self._set_state(ConnectionState.DISCONNECTED)
        logger.log_event("irc", "disconnected", level=logging.WARNING, bot=self.session.nick)

    async def _cancel_reader(self) -> None:
        task = self._reader_task
        self._reader_task = None
        if task is None or task.done() or task is asyncio.current_task():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _cancel_tasks(self) -> None:
        current = asyncio.current_task()
        pending = [t for t in self._tasks if t is not current and not t.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    async def _close_transport(self) -> None:
        writer = self.session.detach()
        if writer is None:
            return
        try:
            writer.close()
            await writer.wait_closed()
        except OSError as e:
            logger.log_event(
                "irc", "close_error", level=logging.ERROR, bot=self.session.nick, error=str(e)
            )

    # --- Background tasks ---

    def spawn(self, coro: Coroutine[Any, Any, Any], name: str | None = None) -> asyncio.Task[Any]:
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.log_event(
                "irc",
                "task_error",
                level=logging.WARNING if isinstance(exc, TransportFault) else logging.ERROR,
                bot=self.session.nick,
                task=task.get_name(),
                error=str(exc),
                error_type=type(exc).__name__,
            )

    # --- Outbound ---

    async def send_raw(self, command: str) -> None:
        """Write one line. Writers never interleave.

        Raises:
            TransportFault: If not connected or the write fails.
        """
        command = command.replace("\r", " ").replace("\n", " ")
        writer = self.session.writer
        if writer is None:
            raise TransportFault("Not connected", data={"command": command.split(" ", 1)[0]})
        async with self._send_lock:
            logger.log_event("irc", "send", level=logging.DEBUG, bot=self.session.nick, raw=command)
            try:
                writer.write(encode_line(command))
                await writer.drain()
            except OSError as e:
                self._report_fault(f"Write error: {e}")
                raise TransportFault(f"Write failed: {e}") from e

    async def send_message(self, target: str, text: str) -> int:
        return await self.outbox.message(target, text)

    async def send_notice(self, target: str, text: str) -> int:
        return await self.outbox.notice(target, text)

    async def change_nick(self, nick: str) -> None:
        await self.send_raw(f"NICK {nick}")
        self.session.nick = nick

    async def join_channel(self, channel: str) -> None:
        await self.send_raw(f"JOIN {channel}")

    async def leave_channel(self, channel: str, reason: str = "") -> None:
        await self.send_raw(f"PART {channel} :{reason}")

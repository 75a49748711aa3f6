"""Shared IRC data models."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from enum import Enum, auto


class ConnectionState(Enum):
    DISCONNECTED = auto()
    CONNECTING = auto()
    AWAITING_WELCOME = auto()
    REGISTERED = auto()
    RUNNING = auto()
    DISCONNECTING = auto()


class ControlKind(Enum):
    DISCONNECT = auto()
    RECONNECT = auto()


@dataclass(frozen=True, slots=True)
class ControlSignal:
    kind: ControlKind
    reason: str = ""


@dataclass
class Session:
    """Per-connection state owned by the supervisor."""

    nick: str
    whox_supported: bool = False
    reader: asyncio.StreamReader | None = None
    writer: asyncio.StreamWriter | None = None
    last_activity: float = 0.0
    activity_seen: bool = False

    @property
    def connected(self) -> bool:
        return self.reader is not None and self.writer is not None

    def attach(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self.reader = reader
        self.writer = writer
        self.whox_supported = False
        self.mark_activity()

    def detach(self) -> asyncio.StreamWriter | None:
        writer = self.writer
        self.reader = None
        self.writer = None
        return writer

    def mark_activity(self) -> None:
        self.last_activity = time.time()
        self.activity_seen = True

"""Exception types raised across the connection and configuration layers.

Raw socket and pydantic errors are wrapped in one of these before they
leave the module that saw them.
"""

from __future__ import annotations

from collections.abc import Mapping


class InternalError(Exception):
    """Root of chanbot's exceptions; ``data`` holds structured context."""

    data: dict[str, object]

    def __init__(self, message: str, *, data: Mapping[str, object] | None = None) -> None:
        super().__init__(message)
        self.data = dict(data or {})


class TransportFault(InternalError):
    """The connection failed: refused, reset, or a read/write error.

    The supervisor disconnects with the fault text as reason. Only the
    liveness watchdog reconnects on its own.
    """


class ExchangeAborted(TransportFault):
    """A pending query was cut short by teardown."""


class MalformedLine(InternalError):
    """An inbound line did not have at least two tokens. Logged and dropped."""

    def __init__(self, line: str) -> None:
        super().__init__(f"Malformed line: {line!r}", data={"line": line})
        self.line = line


class MissingConfiguration(InternalError):
    """Required configuration is absent or invalid; the bot refuses to start."""


__all__ = [
    "InternalError",
    "TransportFault",
    "ExchangeAborted",
    "MalformedLine",
    "MissingConfiguration",
]

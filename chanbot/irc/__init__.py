"""IRC subsystem package.

Contains the line codec, message parser, account resolver, outbound filter,
dispatcher, liveness watchdog and the connection supervisor that ties them
together.
"""

from .codec import LineCodec, decode_line, encode_line  # noqa: F401
from .dispatcher import IRCDispatcher  # noqa: F401
from .exchange import ExchangeSlot, PendingExchange  # noqa: F401
from .heartbeat import LivenessWatchdog  # noqa: F401
from .models import ConnectionState, ControlKind, ControlSignal, Session  # noqa: F401
from .outbound import Outbox, fragment_text  # noqa: F401
from .parser import Hostmask, IRCMessage, parse_message  # noqa: F401
from .resolver import (  # noqa: F401
    AccountLookup,
    AccountResolver,
    IdentityServiceAdapter,
    LookupStatus,
    NickServAdapter,
)
from .supervisor import ConnectionSupervisor  # noqa: F401

__all__ = [
    "AccountLookup",
    "AccountResolver",
    "ConnectionState",
    "ConnectionSupervisor",
    "ControlKind",
    "ControlSignal",
    "ExchangeSlot",
    "Hostmask",
    "IRCDispatcher",
    "IRCMessage",
    "IdentityServiceAdapter",
    "LineCodec",
    "LivenessWatchdog",
    "LookupStatus",
    "NickServAdapter",
    "Outbox",
    "PendingExchange",
    "Session",
    "decode_line",
    "encode_line",
    "fragment_text",
    "parse_message",
]

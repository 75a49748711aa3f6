"""
Tunable constants for chanbot.

Each constant can be overridden by setting an environment variable with the same name.
"""

import os
import sys
from typing import TypeVar

N = TypeVar("N", int, float)


def _env_number(name: str, default: N) -> N:
    """Read ``name`` from the environment, cast like ``default``.

    Unparseable values are reported on stderr and the default is kept;
    logging is not configured yet when this module is imported.
    """
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return type(default)(raw)
    except ValueError:
        print(f"Ignoring {name}={raw!r}, expected {type(default).__name__}", file=sys.stderr)
        return default


# Config file location
CONFIG_FILE_ENV = "CHANBOT_CONF_FILE"
DEFAULT_CONFIG_FILE = "chanbot.conf"

# Connection establishment
CONNECT_TIMEOUT = _env_number("CONNECT_TIMEOUT", 15.0)  # Seconds to open the TCP stream
WELCOME_READ_TIMEOUT = _env_number(
    "WELCOME_READ_TIMEOUT", 2.0
)  # Per-read timeout while waiting for the server banner
WELCOME_MARKER_COUNT = _env_number(
    "WELCOME_MARKER_COUNT", 4
)  # Banner lines containing "***" after which registration proceeds

# Liveness
LIVENESS_TIMEOUT = _env_number(
    "LIVENESS_TIMEOUT", 300.0
)  # Silence after which the connection is considered dead; checked every half interval

# Reconnect policy (tenacity)
RECONNECT_MAX_ATTEMPTS = _env_number("RECONNECT_MAX_ATTEMPTS", 5)
RECONNECT_BACKOFF_BASE = _env_number("RECONNECT_BACKOFF_BASE", 2.0)
RECONNECT_BACKOFF_MAX = _env_number("RECONNECT_BACKOFF_MAX", 60.0)

# Query/response exchanges (WHO, WHOIS, NAMES, identity service)
EXCHANGE_TIMEOUT = _env_number(
    "EXCHANGE_TIMEOUT", 30.0
)  # Max seconds to wait for the next reply of an exchange

# Outbound messages
MAX_MESSAGE_LENGTH = 400  # Longer texts are fragmented
MESSAGE_SEGMENT_LENGTH = 401  # Size of each leading fragment

# Commands
DEFAULT_COMMAND_PREFIX = "!"
DEFAULT_PLUGIN_DIR = "plugins"

# Config watcher
RELOAD_WATCH_DELAY = _env_number(
    "RELOAD_WATCH_DELAY", 2.0
)  # Seconds the watcher stays paused after a bot-initiated save

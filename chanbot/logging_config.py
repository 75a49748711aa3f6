"""
Logging configuration for chanbot.

Console setup via colorlog plus structured error logging. Errors are counted
per category so reconnect storms or a misbehaving plugin stand out in a
long-running session, and a summary is printed at exit.
"""

import atexit
import logging
import os
import sys
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Any

import colorlog

FAULT_HISTORY = 500  # Occurrences kept per category
ALERT_RATE_PER_HOUR = 10.0
RECENT_WINDOW = 3600.0


class FseventsFilter(logging.Filter):
    """Drops macOS fsevents chatter emitted by the config file observer."""

    def filter(self, record):
        return "fsevents" not in record.getMessage().lower()


@dataclass(frozen=True, slots=True)
class FaultRecord:
    timestamp: float
    message: str
    context: dict[str, Any]


@dataclass(frozen=True, slots=True)
class FaultStats:
    total: int
    recent: int
    rate_per_hour: float
    last: FaultRecord | None


class FaultTracker:
    """Counts logged errors per category (network, config, parsing, ...)."""

    def __init__(self, history: int = FAULT_HISTORY):
        self.history = history
        self.started = time.time()
        self._faults: dict[str, deque[FaultRecord]] = {}
        self._lock = threading.Lock()

    def record(self, category: str, message: str, context: dict[str, Any] | None = None) -> None:
        entry = FaultRecord(time.time(), message, dict(context or {}))
        with self._lock:
            bucket = self._faults.setdefault(category, deque(maxlen=self.history))
            bucket.append(entry)

    def stats(self) -> dict[str, FaultStats]:
        now = time.time()
        hours = max((now - self.started) / 3600, 1.0)
        with self._lock:
            return {
                category: FaultStats(
                    total=len(bucket),
                    recent=sum(1 for f in bucket if now - f.timestamp < RECENT_WINDOW),
                    rate_per_hour=len(bucket) / hours,
                    last=bucket[-1] if bucket else None,
                )
                for category, bucket in self._faults.items()
            }

    def is_storming(self, category: str, threshold: float = ALERT_RATE_PER_HOUR) -> bool:
        stats = self.stats().get(category)
        return stats is not None and stats.rate_per_hour > threshold

    def report(self) -> None:
        stats = self.stats()
        if not stats:
            logging.info("No errors recorded in this session")
            return
        logging.warning("🚨 Error summary")
        for category, s in sorted(stats.items()):
            logging.warning(
                f"  {category}: {s.total} total, {s.recent} in the last hour "
                f"({s.rate_per_hour:.1f}/hour)"
            )
            if s.last is not None:
                logging.warning(f"    last: {s.last.message}")


fault_tracker = FaultTracker()


def log_structured_error(
    error_type: str,
    message: str,
    exception: Exception | None = None,
    context: dict[str, Any] | None = None,
    level: int = logging.ERROR,
) -> None:
    """Log an error line with its category and context, and count it.

    Args:
        error_type: Category of the error ('network', 'config', 'parsing', ...).
        message: Descriptive error message.
        exception: The exception that occurred, if any.
        context: Extra key/value pairs appended to the line.
        level: Logging level.
    """
    parts = [f"[{error_type.upper()}] {message}"]
    if exception is not None:
        parts.append(f"{type(exception).__name__}: {exception}")
    if context:
        parts.append(", ".join(f"{k}={v}" for k, v in context.items()))
    logging.log(level, " | ".join(parts))

    fault_tracker.record(error_type, message, context)
    if fault_tracker.is_storming(error_type):
        rate = fault_tracker.stats()[error_type].rate_per_hour
        logging.critical(f"🚨 {error_type} errors at {rate:.1f}/hour")


class LoggerConfigurator:
    """Configures root logging with colorlog.

    Uses environment variables:
    - DEBUG: 'true', '1' or 'yes' for DEBUG level, otherwise INFO
    """

    LOG_COLORS = {
        "DEBUG": "cyan",
        "INFO": "green",
        "WARNING": "yellow",
        "ERROR": "red",
        "CRITICAL": "magenta",
    }

    def __init__(self, stream=None):
        self.stream = stream or sys.stderr

    @staticmethod
    def level_from_env() -> int:
        debug = os.environ.get("DEBUG", "").lower() in ("true", "1", "yes")
        return logging.DEBUG if debug else logging.INFO

    def configure(self):
        level = self.level_from_env()
        formatter = colorlog.ColoredFormatter(
            "%(asctime)s %(log_color)s%(levelname)-8s%(reset)s %(message_log_color)s%(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            log_colors=self.LOG_COLORS,
            secondary_log_colors={"message": {"ERROR": "red", "CRITICAL": "magenta"}},
            reset=True,
        )
        handler = logging.StreamHandler(self.stream)
        handler.setFormatter(formatter)
        handler.addFilter(FseventsFilter())

        root = logging.getLogger()
        for old in list(root.handlers):
            root.removeHandler(old)
        root.addHandler(handler)
        root.setLevel(level)

        # The file observer logs every inotify event at DEBUG
        logging.getLogger("watchdog").setLevel(logging.INFO)
        logging.getLogger("asyncio").setLevel(logging.WARNING)

        atexit.register(self._report_at_exit)

    @staticmethod
    def _report_at_exit():
        try:
            logging.info("📊 Final error summary before shutdown:")
            fault_tracker.report()
        except Exception as e:  # noqa: BLE001
            logging.error(f"Failed to log final error summary: {e}")

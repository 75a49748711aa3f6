"""Event logger used throughout chanbot."""

from __future__ import annotations

import logging
import os

from .event_catalog import EVENT_TEMPLATES

EVENT_COLUMN = 32
PREFIX_COLUMN = 24


def _debug_mode() -> bool:
    return os.environ.get("DEBUG", "").lower() in ("true", "1", "yes")


def render_event(domain: str, action: str, fields: dict[str, object]) -> tuple[str, bool]:
    """Return the human text for an event and whether it was derived."""
    template = EVENT_TEMPLATES.get((domain, action))
    if template is None:
        return f"{domain.replace('_', ' ')}: {action.replace('_', ' ')}", True
    try:
        return template.format(**fields), False
    except (KeyError, IndexError, ValueError):
        return template, False


class BotLogger:
    """Logs ``(domain, action, **fields)`` events as single lines.

    Normal mode prints ``[bot#channel] text``. With DEBUG set the event
    name leads in a fixed column and the remaining fields are appended.
    Handlers are installed once by ``LoggerConfigurator``.
    """

    def __init__(self, name: str = "chanbot") -> None:
        self.logger = logging.getLogger(name)

    def log_event(
        self,
        domain: str,
        action: str,
        level: int = logging.INFO,
        human: str | None = None,
        *,
        exc_info: bool = False,
        **fields: object,
    ) -> None:
        bot = fields.pop("bot", None)
        channel = fields.pop("channel", None)
        if human is None:
            human, derived = render_event(domain, action, fields)
            if derived:
                fields["derived"] = True
        prefix = self._prefix(
            bot if isinstance(bot, str) else None,
            channel if isinstance(channel, str) else None,
        )
        event = f"{domain}_{action}".lower()
        if _debug_mode():
            line = self._debug_line(event, prefix, human, fields)
        else:
            line = f"{prefix} {human or event}"
        self.logger.log(level, line, exc_info=exc_info)

    @staticmethod
    def _prefix(bot: str | None, channel: str | None) -> str:
        label = (bot or "system") + (channel or "")
        return f"[{label.ljust(PREFIX_COLUMN)[:PREFIX_COLUMN]}]"

    @staticmethod
    def _debug_line(event: str, prefix: str, human: str, fields: dict[str, object]) -> str:
        if len(event) > EVENT_COLUMN:
            event = event[: EVENT_COLUMN - 1] + "…"
        parts = [event.ljust(EVENT_COLUMN), prefix]
        if human:
            parts.append(human)
        line = " ".join(parts)
        if fields:
            line += " (" + ", ".join(f"{k}={v}" for k, v in fields.items()) + ")"
        return line


logger = BotLogger()

"""Structured event logging for chanbot."""

from .event_catalog import EVENT_TEMPLATES, reload_event_templates
from .logger import BotLogger, logger

__all__ = ["BotLogger", "logger", "EVENT_TEMPLATES", "reload_event_templates"]

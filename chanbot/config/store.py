"""Durable configuration store backing the bot's access lists."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from typing import Any

from ..errors import MissingConfiguration
from ..logs.logger import logger
from .model import BotConfig
from .repository import ConfigRepository


class ConfigStore:
    """Validated view over the JSON config file with list-editing helpers.

    Every mutation is written back immediately, mirroring an auto-saving
    configuration. ``save_hooks`` run around each write so a file watcher can
    ignore changes the bot made itself.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.repository = ConfigRepository(path)
        self._raw: dict[str, Any] = {}
        self._config: BotConfig | None = None
        self.before_save: Callable[[], None] | None = None
        self.after_save: Callable[[], None] | None = None

    @property
    def path(self) -> str:
        return self.repository.path

    @property
    def config(self) -> BotConfig:
        if self._config is None:
            raise MissingConfiguration("Configuration has not been loaded")
        return self._config

    def load(self) -> BotConfig:
        """Read and validate the config file.

        Raises:
            MissingConfiguration: If the file is missing, empty or invalid.
        """
        raw = self.repository.load_raw()
        if not raw:
            raise MissingConfiguration(
                f"No configuration found at {self.path}", data={"path": self.path}
            )
        config = BotConfig.from_dict(raw)
        self._raw = raw
        self._config = config
        logger.log_event(
            "config", "loaded", level=logging.DEBUG, path=self.path, host=config.host
        )
        return config

    def reload(self) -> BotConfig | None:
        """Re-read the file, keeping the current config if the new one is invalid."""
        try:
            return self.load()
        except MissingConfiguration as e:
            logger.log_event(
                "config", "reload_rejected", level=logging.WARNING, error=str(e)
            )
            return None

    def get_list(self, key: str) -> list[str]:
        value = getattr(self.config, key)
        if not isinstance(value, list):
            raise KeyError(key)
        return list(value)

    def add_to_list(self, key: str, value: str) -> bool:
        """Append ``value`` to list ``key`` unless present. Returns True if saved."""
        current = self.get_list(key)
        if value in current:
            return False
        current.append(value)
        self._set(key, current)
        return True

    def remove_from_list(self, key: str, value: str) -> bool:
        """Remove ``value`` from list ``key`` if present. Returns True if saved."""
        current = self.get_list(key)
        if value not in current:
            return False
        current.remove(value)
        self._set(key, current)
        return True

    def _set(self, key: str, value: Any) -> None:
        raw = dict(self._raw)
        raw[key] = value
        config = BotConfig.from_dict(raw)
        if self.before_save:
            self.before_save()
        try:
            self.repository.save(raw)
        finally:
            if self.after_save:
                self.after_save()
        self._raw = raw
        self._config = config
        logger.log_event("config", "list_updated", level=logging.DEBUG, key=key)

"""Loads, enables and saves the plugins named in the configuration."""

from __future__ import annotations

import importlib
import logging
from typing import TYPE_CHECKING

from ..errors import MissingConfiguration
from ..errors.handling import log_error
from ..logs.logger import logger
from .base import Plugin

if TYPE_CHECKING:  # pragma: no cover
    from ..bot.core import IRCBot


def _builtin_plugins() -> dict[str, type[Plugin]]:
    from .core import CorePlugin

    return {CorePlugin.name: CorePlugin}


def load_plugin_class(spec: str) -> type[Plugin]:
    """Resolve a plugin spec: a built-in name or ``package.module:ClassName``.

    Raises:
        MissingConfiguration: If the plugin path cannot be imported or is not a Plugin.
    """
    builtin = _builtin_plugins().get(spec.lower())
    if builtin is not None:
        return builtin
    module_name, sep, class_name = spec.partition(":")
    if not sep or not module_name or not class_name:
        raise MissingConfiguration(f"Unknown plugin '{spec}'", data={"plugin": spec})
    try:
        module = importlib.import_module(module_name)
        cls = getattr(module, class_name)
    except (ImportError, AttributeError) as e:
        raise MissingConfiguration(
            f"Unable to load plugin '{spec}': {e}", data={"plugin": spec}
        ) from e
    if not isinstance(cls, type) or not issubclass(cls, Plugin):
        raise MissingConfiguration(f"'{spec}' is not a plugin", data={"plugin": spec})
    return cls


class PluginManager:
    def __init__(self, bot: IRCBot, specs: list[str]) -> None:
        self.bot = bot
        self.specs = list(specs)
        self.plugins: dict[str, Plugin] = {}

    def load_all(self) -> None:
        """Instantiate every configured plugin; duplicates by name are ignored.

        Raises:
            MissingConfiguration: If a plugin cannot be loaded.
        """
        for spec in self.specs:
            plugin = load_plugin_class(spec)(self.bot)
            if plugin.name in self.plugins:
                logger.log_event(
                    "plugins", "duplicate", level=logging.WARNING, plugin=plugin.name
                )
                continue
            self.plugins[plugin.name] = plugin
            logger.log_event("plugins", "loaded", level=logging.DEBUG, plugin=plugin.name)

    def get(self, name: str) -> Plugin | None:
        return self.plugins.get(name.lower())

    def enable_all(self) -> None:
        for plugin in self.plugins.values():
            plugin.enable()

    def disable_all(self) -> None:
        for plugin in list(self.plugins.values()):
            try:
                plugin.disable()
            except Exception as e:  # noqa: BLE001
                log_error(f"Disabling plugin {plugin.name} failed", e)

    def save_all(self) -> None:
        for plugin in self.plugins.values():
            if not plugin.enabled:
                continue
            try:
                plugin.save()
            except Exception as e:  # noqa: BLE001
                log_error(f"Saving plugin {plugin.name} failed", e)

    def __len__(self) -> int:
        return len(self.plugins)

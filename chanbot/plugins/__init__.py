"""Plugin base class, loader and the built-in core plugin."""

from .base import Plugin
from .manager import PluginManager, load_plugin_class

__all__ = ["Plugin", "PluginManager", "load_plugin_class"]

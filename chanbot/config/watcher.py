"""
Reloads the configuration when the file is edited by hand while the bot runs.

watchdog delivers events on its observer thread. Nothing is reloaded there:
the watcher only schedules ``ConfigStore.reload`` onto the asyncio loop, so
access lists are swapped between two dispatched messages.
"""

import asyncio
import logging
import os
import threading
from collections.abc import Callable

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ..constants import RELOAD_WATCH_DELAY
from ..logs.logger import logger
from .model import BotConfig
from .store import ConfigStore

# Event types that can leave new contents at the watched path
_RELEVANT = {"modified", "created", "moved"}


class ConfigFileHandler(FileSystemEventHandler):
    """Filters directory events down to real edits of one file."""

    def __init__(self, config_file: str, watcher_instance: "ConfigWatcher"):
        super().__init__()
        self.config_file = os.path.abspath(config_file)
        self.watcher = watcher_instance
        self.last_modified = 0.0

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type not in _RELEVANT:
            return
        # Atomic saves arrive as a rename onto the config path
        path = getattr(event, "dest_path", "") or event.src_path
        self._handle_event(str(path))

    def _handle_event(self, src_path: str) -> None:
        if os.path.abspath(src_path) != self.config_file:
            return
        try:
            mtime = os.path.getmtime(self.config_file)
        except FileNotFoundError:
            return
        seen, self.last_modified = self.last_modified, max(self.last_modified, mtime)
        # A paused watcher still records the mtime so the bot's own save
        # is not picked up once watching resumes.
        if mtime > seen and not self.watcher.paused:
            self.watcher.on_config_changed()


class ConfigWatcher:
    """Owns the watchdog observer for the store's config file."""

    def __init__(
        self,
        store: ConfigStore,
        on_reload: Callable[[BotConfig], None],
        loop: asyncio.AbstractEventLoop,
    ):
        self.store = store
        self.on_reload = on_reload
        self.loop = loop
        self.observer: Observer | None = None
        self.paused = False
        self._lock = threading.Lock()
        self._resume_timer: threading.Timer | None = None

    @property
    def running(self) -> bool:
        return self.observer is not None

    def _cancel_resume(self) -> None:
        if self._resume_timer is not None:
            self._resume_timer.cancel()
            self._resume_timer = None

    def pause_watching(self) -> None:
        with self._lock:
            self._cancel_resume()
            self.paused = True
        logger.log_event("config_watch", "paused", level=logging.DEBUG)

    def resume_watching(self) -> None:
        """Unpause after RELOAD_WATCH_DELAY so the save's own events pass by."""
        with self._lock:
            self._cancel_resume()
            timer = threading.Timer(RELOAD_WATCH_DELAY, self._unpause)
            timer.daemon = True
            self._resume_timer = timer
        timer.start()

    def _unpause(self) -> None:
        with self._lock:
            self.paused = False
            self._resume_timer = None
        logger.log_event("config_watch", "resumed", level=logging.DEBUG)

    def start(self) -> None:
        if self.running:
            return
        watch_dir = os.path.dirname(os.path.abspath(self.store.path))
        if not os.path.isdir(watch_dir):
            logger.log_event("config_watch", "dir_missing", level=logging.WARNING, path=watch_dir)
            return
        observer = Observer()
        observer.schedule(ConfigFileHandler(self.store.path, self), watch_dir, recursive=False)
        try:
            observer.start()
        except OSError as e:
            logger.log_event("config_watch", "start_failed", level=logging.ERROR, error=str(e))
            return
        self.observer = observer
        self.store.before_save = self.pause_watching
        self.store.after_save = self.resume_watching
        logger.log_event("config_watch", "start", path=self.store.path)

    def stop(self) -> None:
        observer, self.observer = self.observer, None
        with self._lock:
            self._cancel_resume()
        if observer is None:
            return
        observer.stop()
        observer.join()
        logger.log_event("config_watch", "stopped")

    def on_config_changed(self) -> None:
        """Observer-thread entry point."""
        self.loop.call_soon_threadsafe(self._reload)

    def _reload(self) -> None:
        config = self.store.reload()
        if config is not None:
            logger.log_event("config_watch", "reloaded", path=self.store.path)
            self.on_reload(config)

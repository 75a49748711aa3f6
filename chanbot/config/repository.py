from __future__ import annotations

import contextlib
import fcntl
import hashlib
import json
import logging
import os
import tempfile
from collections.abc import Iterator
from pathlib import Path
from typing import Any


def _fingerprint(data: dict[str, Any]) -> str:
    canonical = json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


class ConfigRepository:
    """JSON file access for the bot configuration.

    Writes go through a temp file and ``os.replace`` under an exclusive
    ``flock``, so a crash mid-save never leaves a truncated config. The
    previous file is rotated into ``<name>.bak.1`` .. ``<name>.bak.N``.
    """

    MAX_BACKUPS = 3

    def __init__(self, path: str | os.PathLike[str]):
        if not isinstance(path, str | os.PathLike):
            raise TypeError("path must be str or os.PathLike")
        self.path = str(path)
        self._file = Path(path)
        self._saved_fingerprint: str | None = None

    def load_raw(self) -> dict[str, Any]:
        """Return the decoded JSON object, or {} when it cannot be used."""
        try:
            data = json.loads(self._file.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logging.error(f"Could not read {self._file.name}: {e}")
            return {}
        if not isinstance(data, dict):
            logging.error(f"{self._file.name}: top level must be a JSON object")
            return {}
        self._saved_fingerprint = _fingerprint(data)
        return data

    def save(self, data: dict[str, Any]) -> bool:
        """Persist ``data``; returns False when it matches what is on disk."""
        if not isinstance(data, dict):
            raise TypeError("data must be a dict")
        fingerprint = _fingerprint(data)
        if fingerprint == self._saved_fingerprint:
            logging.debug("Config unchanged, save skipped")
            return False
        self._file.parent.mkdir(mode=0o755, parents=True, exist_ok=True)
        with self._locked():
            self._rotate_backups()
            self._replace_contents(data)
        self._saved_fingerprint = fingerprint
        logging.info(f"💾 Saved {self._file.name}")
        return True

    @contextlib.contextmanager
    def _locked(self) -> Iterator[None]:
        lock_path = self._file.with_suffix(".lock")
        try:
            with open(lock_path, "w", encoding="utf-8") as lock:
                fcntl.flock(lock.fileno(), fcntl.LOCK_EX)
                yield
        finally:
            with contextlib.suppress(OSError):
                lock_path.unlink()

    def _replace_contents(self, data: dict[str, Any]) -> None:
        fd, tmp_name = tempfile.mkstemp(
            dir=self._file.parent, prefix=f".{self._file.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                json.dump(data, tmp, indent=2, default=str)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self._file)
        except (OSError, ValueError) as e:
            with contextlib.suppress(OSError):
                os.unlink(tmp_name)
            logging.error(f"💥 Saving {self._file.name} failed: {type(e).__name__}")
            raise

    def _backup_path(self, index: int) -> Path:
        return self._file.with_name(f"{self._file.name}.bak.{index}")

    def _rotate_backups(self) -> None:
        if not self._file.is_file():
            return
        try:
            for index in range(self.MAX_BACKUPS - 1, 0, -1):
                older = self._backup_path(index)
                if older.exists():
                    older.replace(self._backup_path(index + 1))
            self._backup_path(1).write_bytes(self._file.read_bytes())
        except OSError as e:
            logging.debug(f"Backup rotation failed: {e}")

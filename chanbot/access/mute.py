"""In-memory set of targets whose outbound messages are suppressed."""

from __future__ import annotations

from collections.abc import Iterator


class MuteSet:
    def __init__(self) -> None:
        self._targets: set[str] = set()

    def toggle(self, target: str) -> bool:
        """Flip the mute state of ``target``; returns True if it is now muted."""
        key = target.lower()
        if key in self._targets:
            self._targets.remove(key)
            return False
        self._targets.add(key)
        return True

    def is_muted(self, target: str) -> bool:
        return target.lower() in self._targets

    def __contains__(self, target: object) -> bool:
        return isinstance(target, str) and self.is_muted(target)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._targets))

    def __len__(self) -> int:
        return len(self._targets)

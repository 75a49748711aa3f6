"""IRC message parsing utilities."""

from __future__ import annotations

from dataclasses import dataclass, field

from ..errors import MalformedLine


@dataclass(frozen=True, slots=True)
class Hostmask:
    nick: str
    user: str | None = None
    host: str | None = None

    @classmethod
    def parse(cls, sender: str) -> Hostmask:
        """Split ``nick!user@host``; bare nicks and server names are accepted."""
        nick, _, rest = sender.partition("!")
        if not rest:
            return cls(nick=nick)
        user, _, host = rest.partition("@")
        return cls(nick=nick, user=user or None, host=host or None)

    def __str__(self) -> str:
        if self.user and self.host:
            return f"{self.nick}!{self.user}@{self.host}"
        return self.nick


@dataclass(frozen=True)
class IRCMessage:
    raw: str
    sender: str
    command: str
    params: list[str] = field(default_factory=list)

    def param(self, index: int, default: str = "") -> str:
        try:
            return self.params[index]
        except IndexError:
            return default

    @property
    def text(self) -> str:
        """The last parameter, which carries the trailing text when present."""
        return self.params[-1] if self.params else ""

    @property
    def hostmask(self) -> Hostmask:
        return Hostmask.parse(self.sender)

    @property
    def nick(self) -> str:
        return self.hostmask.nick


def parse_message(line: str) -> IRCMessage:
    """Split a decoded line into sender, command and parameters.

    The line is split on single spaces. The first parameter starting with
    ``:`` starts the trailing parameter: it and everything after it are
    rejoined verbatim, marker removed, into one value.

    Raises:
        MalformedLine: If the line has fewer than two tokens.
    """
    parts = line.split(" ")
    if len(parts) < 2 or not parts[0] or not parts[1]:
        raise MalformedLine(line)
    sender, command = parts[0], parts[1]
    params: list[str] = []
    rest = parts[2:]
    for i, token in enumerate(rest):
        if token.startswith(":"):
            params.append(" ".join(rest[i:])[1:])
            break
        params.append(token)
    return IRCMessage(raw=line, sender=sender, command=command.upper(), params=params)

"""Shared in-memory stand-ins for streams and the access store."""

import asyncio

BASE_CONFIG = {
    "host": "irc.example.net",
    "port": 6667,
    "nick": "testbot",
    "user": "chanbot",
    "desc": "chanbot test instance",
    "channels": ["#chan"],
    "access_mod": ["modder"],
    "access_admin": ["adminer"],
    "access_owner": ["owner"],
}


def make_config_data(**overrides) -> dict:
    data = {k: list(v) if isinstance(v, list) else v for k, v in BASE_CONFIG.items()}
    data.update(overrides)
    return data


class FakeWriter:
    """Stands in for asyncio.StreamWriter, recording every line written."""

    def __init__(self) -> None:
        self.buffer = b""
        self.closed = False

    def write(self, data: bytes) -> None:
        self.buffer += data

    async def drain(self) -> None:
        await asyncio.sleep(0)

    def close(self) -> None:
        self.closed = True

    def is_closing(self) -> bool:
        return self.closed

    async def wait_closed(self) -> None:
        return None

    @property
    def lines(self) -> list[str]:
        return [line for line in self.buffer.decode().split("\r\n") if line]


class MemoryStore:
    """In-memory access list store."""

    def __init__(self, lists: dict[str, list[str]] | None = None) -> None:
        self.lists: dict[str, list[str]] = {
            "access_mod": [],
            "access_admin": [],
            "access_owner": [],
        }
        self.lists.update(lists or {})

    def get_list(self, key: str) -> list[str]:
        return list(self.lists[key])

    def add_to_list(self, key: str, value: str) -> bool:
        if value in self.lists[key]:
            return False
        self.lists[key].append(value)
        return True

    def remove_from_list(self, key: str, value: str) -> bool:
        if value not in self.lists[key]:
            return False
        self.lists[key].remove(value)
        return True


async def wait_for_line(writer: FakeWriter, prefix: str, attempts: int = 200) -> str:
    """Yield to the loop until a line starting with ``prefix`` was written."""
    for _ in range(attempts):
        for line in writer.lines:
            if line.startswith(prefix):
                return line
        await asyncio.sleep(0)
    raise AssertionError(f"no line starting with {prefix!r} in {writer.lines!r}")


class StubResolver:
    """AccountResolver stand-in answering from a fixed nick -> lookup map."""

    def __init__(self, lookups) -> None:
        self.lookups = lookups
        self.calls: list[str] = []

    async def resolve(self, nick: str):
        from chanbot.irc.resolver import AccountLookup

        self.calls.append(nick)
        return self.lookups.get(nick, AccountLookup.unresolved())
